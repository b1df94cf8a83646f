"""Unit tests for plusblocks.config."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from plusblocks.config import Settings


class TestDefaults:
    def test_scraper_defaults(self, tmp_path: Path) -> None:
        settings = Settings(data_dir=str(tmp_path))
        assert settings.scraper.request_delay_seconds == 3.0
        assert settings.scraper.retry_max_attempts == 3
        assert settings.scraper.index_url == "https://tailwindcss.com/plus/ui-blocks"
        assert settings.scraper.login_url == "https://tailwindcss.com/plus/login"
        assert settings.cache.ttl_days == 7
        assert settings.catalog.refresh_hours == 24
        assert settings.browser.recycle_interval == 15
        assert settings.server.transport == "stdio"

    def test_paths_under_data_dir(self, tmp_path: Path) -> None:
        settings = Settings(data_dir=str(tmp_path))
        assert settings.root == tmp_path
        assert settings.cookies_path == tmp_path / "cookies.json"
        assert settings.catalog_path == tmp_path / "catalog.json"
        assert settings.block_catalog_path == tmp_path / "catalog-v3.json"
        assert settings.cache_dir == tmp_path / "cache"
        assert settings.cache_manifest_path == tmp_path / "cache" / "manifest.json"
        assert settings.browsers_dir == tmp_path / "browsers"

    def test_data_dir_expands_user(self) -> None:
        settings = Settings(data_dir="~/plusblocks-test")
        assert settings.root == Path("~/plusblocks-test").expanduser()


class TestOverrides:
    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("PLUSBLOCKS__SCRAPER__REQUEST_DELAY_SECONDS", "5")
        monkeypatch.setenv("PLUSBLOCKS__SERVER__PORT", "9090")
        settings = Settings(data_dir=str(tmp_path))
        assert settings.scraper.request_delay_seconds == 5.0
        assert settings.server.port == 9090

    def test_data_dir_from_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("PLUSBLOCKS__DATA_DIR", str(tmp_path / "env"))
        assert Settings().root == tmp_path / "env"

    def test_constructor_beats_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("PLUSBLOCKS__DATA_DIR", str(tmp_path / "env"))
        assert Settings(data_dir=str(tmp_path / "arg")).root == tmp_path / "arg"

    def test_invalid_transport_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLUSBLOCKS__SERVER__TRANSPORT", "websocket")
        with pytest.raises(ValidationError):
            Settings()
