"""Catalog repositories.

Two documents live side by side under the data directory:

  BlockCatalog     catalog-v3.json  blocks keyed by "context/subcategory/slug",
                                    each with its ordered variants
  CategoryCatalog  catalog.json     flat per-context listing taken from the
                                    index page (name, URL, declared count)

Both are loaded lazily, held in memory, and rewritten whole on every
mutation; the file write runs in a worker thread so a sync loop never
blocks the event loop on disk I/O. An unreadable document behaves as if it did not exist and is
replaced on the next save.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, TypeVar

import structlog
from pydantic import BaseModel

from plusblocks.fsutil import write_atomic
from plusblocks.models.catalog import (
    Block,
    BlockCatalogDocument,
    BlockCatalogStats,
    CatalogCategory,
    CategoryCatalogDocument,
    CategoryCatalogStats,
    CategoryInfo,
    Context,
    Variant,
)
from plusblocks.slugs import generate_block_key

if TYPE_CHECKING:
    from pathlib import Path

log = structlog.get_logger()

DEFAULT_REFRESH_AFTER = timedelta(hours=24)

_DocT = TypeVar("_DocT", bound=BaseModel)


def _load_document(path: Path, model: type[_DocT]) -> _DocT | None:
    if not path.is_file():
        return None
    try:
        document = model.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        log.warning("catalog_unreadable", path=str(path), exc_info=True)
        return None
    log.debug("catalog_loaded", path=str(path))
    return document


async def _write_document(path: Path, document: BaseModel) -> None:
    payload = document.model_dump_json(indent=2).encode("utf-8")
    await asyncio.to_thread(write_atomic, path, payload)


def _is_stale(last_updated_at: datetime, refresh_after: timedelta) -> bool:
    return datetime.now(UTC) - last_updated_at > refresh_after


class BlockCatalog:
    """Repository over catalog-v3.json."""

    def __init__(self, path: Path, *, refresh_after: timedelta = DEFAULT_REFRESH_AFTER) -> None:
        self._path = path
        self._refresh_after = refresh_after
        self._document: BlockCatalogDocument | None = None

    def load(self) -> BlockCatalogDocument | None:
        if self._document is None:
            self._document = _load_document(self._path, BlockCatalogDocument)
        return self._document

    async def save(self, document: BlockCatalogDocument) -> None:
        document.last_updated_at = datetime.now(UTC)
        document.stats.total_blocks = len(document.blocks)
        document.stats.total_variants = sum(b.variant_count for b in document.blocks.values())
        await _write_document(self._path, document)
        self._document = document

    def exists(self) -> bool:
        return self._path.is_file()

    def needs_refresh(self) -> bool:
        document = self.load()
        return document is None or _is_stale(document.last_updated_at, self._refresh_after)

    @property
    def last_updated_at(self) -> datetime | None:
        document = self.load()
        return document.last_updated_at if document is not None else None

    def stats(self) -> BlockCatalogStats | None:
        document = self.load()
        return document.stats if document is not None else None

    async def set_block(self, block: Block) -> None:
        """Upsert one block by its identity key and persist the whole document."""
        document = self.load() or BlockCatalogDocument()
        document.blocks[block.key] = block
        await self.save(document)

    async def set_cached_variant_count(self, count: int) -> None:
        document = self.load()
        if document is None or document.stats.total_cached_variants == count:
            return
        document.stats.total_cached_variants = count
        await self.save(document)

    def get_block(self, context: Context, subcategory: str, slug: str) -> Block | None:
        document = self.load()
        if document is None:
            return None
        return document.blocks.get(generate_block_key(context, subcategory, slug))

    def find_block(self, context: Context, slug: str) -> Block | None:
        """First block in ``context`` with this slug, whatever its subcategory."""
        return next((b for b in self.get_blocks(context) if b.slug == slug), None)

    def get_blocks(
        self, context: Context | None = None, subcategory: str | None = None
    ) -> list[Block]:
        document = self.load()
        if document is None:
            return []
        blocks = list(document.blocks.values())
        if context is not None:
            blocks = [b for b in blocks if b.context == context]
        if subcategory is not None:
            blocks = [b for b in blocks if b.subcategory == subcategory]
        return blocks

    def get_category_info(self) -> list[CategoryInfo]:
        """Per-context block counts and distinct subcategories, in first-seen order."""
        counts: dict[Context, int] = {}
        subcategories: dict[Context, set[str]] = {}
        for block in self.get_blocks():
            counts[block.context] = counts.get(block.context, 0) + 1
            subcategories.setdefault(block.context, set()).add(block.subcategory)
        return [
            CategoryInfo(
                name=context.label,
                slug=context,
                block_count=count,
                subcategories=sorted(subcategories[context]),
            )
            for context, count in counts.items()
        ]

    def get_variants(self, context: Context, subcategory: str, slug: str) -> list[Variant]:
        block = self.get_block(context, subcategory, slug)
        return block.variants if block is not None else []


class CategoryCatalog:
    """Repository over the flat per-context listing in catalog.json."""

    def __init__(self, path: Path, *, refresh_after: timedelta = DEFAULT_REFRESH_AFTER) -> None:
        self._path = path
        self._refresh_after = refresh_after
        self._document: CategoryCatalogDocument | None = None

    def load(self) -> CategoryCatalogDocument | None:
        if self._document is None:
            self._document = _load_document(self._path, CategoryCatalogDocument)
        return self._document

    async def save(self, document: CategoryCatalogDocument) -> None:
        document.last_updated_at = datetime.now(UTC)
        document.stats.total_categories = sum(len(items) for items in document.contexts.values())
        document.stats.total_blocks = sum(
            item.component_count for items in document.contexts.values() for item in items
        )
        await _write_document(self._path, document)
        self._document = document

    def exists(self) -> bool:
        return self._path.is_file()

    def needs_refresh(self) -> bool:
        document = self.load()
        return document is None or _is_stale(document.last_updated_at, self._refresh_after)

    @property
    def last_updated_at(self) -> datetime | None:
        document = self.load()
        return document.last_updated_at if document is not None else None

    def stats(self) -> CategoryCatalogStats | None:
        document = self.load()
        return document.stats if document is not None else None

    async def merge(self, context: Context, categories: list[CatalogCategory]) -> None:
        """Upsert by slug: entries not in ``categories`` survive, matching ones are replaced."""
        document = self.load() or CategoryCatalogDocument()
        by_slug = {item.slug: item for item in document.contexts.get(context, [])}
        for item in categories:
            by_slug[item.slug] = item
        document.contexts[context] = list(by_slug.values())
        await self.save(document)

    def get_categories(self, context: Context | None = None) -> list[CatalogCategory]:
        document = self.load()
        if document is None:
            return []
        if context is not None:
            return list(document.contexts.get(context, []))
        return [item for ctx in Context for item in document.contexts.get(ctx, [])]
