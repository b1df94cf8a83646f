"""Unit tests for plusblocks.fsutil."""

from __future__ import annotations

import stat
import sys
from typing import TYPE_CHECKING

import pytest

from plusblocks.fsutil import write_atomic, write_model
from plusblocks.models.cache import CacheStats

if TYPE_CHECKING:
    from pathlib import Path


def test_write_atomic_creates_parents(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "file.json"
    write_atomic(target, b"{}")
    assert target.read_bytes() == b"{}"


def test_write_atomic_replaces_and_leaves_no_temp(tmp_path: Path) -> None:
    target = tmp_path / "file.json"
    write_atomic(target, b"old")
    write_atomic(target, b"new")
    assert target.read_bytes() == b"new"
    assert [p.name for p in tmp_path.iterdir()] == ["file.json"]


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_write_atomic_applies_mode(tmp_path: Path) -> None:
    target = tmp_path / "secret.json"
    write_atomic(target, b"{}", mode=0o600)
    assert stat.S_IMODE(target.stat().st_mode) == 0o600


def test_write_model_returns_size(tmp_path: Path) -> None:
    target = tmp_path / "stats.json"
    size = write_model(target, CacheStats(total_size=10, entry_count=1))
    assert size == len(target.read_bytes())
    assert CacheStats.model_validate_json(target.read_text()).entry_count == 1
