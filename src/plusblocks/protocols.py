"""Protocol interfaces for swappable components.

Tool handlers, the sync pipeline and AppState reference these protocols, not
the concrete implementations, so tests can substitute in-memory fakes for
the cache and for the browser-driven extractors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from plusblocks.models.cache import VariantCode, VariantStats
    from plusblocks.models.catalog import (
        Block,
        BlockIndexEntry,
        CodeFormat,
        Context,
        FrameworkVersion,
        Theme,
    )


class CacheProtocol(Protocol):
    """Interface for the variant code cache."""

    @property
    def entry_count(self) -> int: ...

    @property
    def total_size(self) -> int: ...

    async def get(
        self,
        context: Context,
        block_slug: str,
        variant_slug: str,
        format: CodeFormat,
        theme: Theme,
        version: FrameworkVersion,
    ) -> VariantCode | None: ...

    def has(
        self,
        context: Context,
        block_slug: str,
        variant_slug: str,
        format: CodeFormat,
        theme: Theme,
        version: FrameworkVersion,
    ) -> bool: ...

    async def set(self, code: VariantCode) -> None: ...

    async def prune_expired(self) -> int: ...

    async def clear_all(self) -> int: ...

    def variant_stats(self) -> VariantStats: ...

    async def flush(self) -> None: ...


class BlockIndexSource(Protocol):
    """Interface for reading the block index page."""

    async def fetch_block_index(self) -> list[BlockIndexEntry]: ...


class VariantSource(Protocol):
    """Interface for extracting block metadata and variant code."""

    async def fetch_variant_code(
        self,
        context: Context,
        subcategory: str,
        block_slug: str,
        variant_index: int,
        format: CodeFormat,
        version: FrameworkVersion,
        theme: Theme,
    ) -> VariantCode: ...

    async def fetch_block_complete(
        self,
        context: Context,
        subcategory: str,
        block_slug: str,
        formats: Sequence[CodeFormat] = ...,
        versions: Sequence[FrameworkVersion] = ...,
        theme: Theme = ...,
        on_progress: Callable[[str, CodeFormat, FrameworkVersion], None] | None = None,
    ) -> tuple[Block, list[VariantCode]]: ...
