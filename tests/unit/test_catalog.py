"""Unit tests for plusblocks.catalog and plusblocks.seed."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from unittest.mock import patch

import plusblocks.catalog as catalog_module
from plusblocks.catalog import BlockCatalog, CategoryCatalog
from plusblocks.fsutil import write_atomic
from plusblocks.models.catalog import CatalogCategory, Context
from plusblocks.seed import seed_categories

if TYPE_CHECKING:
    from plusblocks.config import Settings
    from plusblocks.models.catalog import Block


def _listing(slug: str, count: int, context: Context = Context.MARKETING) -> CatalogCategory:
    return CatalogCategory(
        name=slug.split("/")[-1].title(),
        slug=slug,
        context=context,
        subcategory=slug.split("/")[0],
        component_count=count,
    )


class TestBlockCatalog:
    def test_missing_file_is_empty(self, settings: Settings) -> None:
        catalog = BlockCatalog(settings.block_catalog_path)
        assert not catalog.exists()
        assert catalog.load() is None
        assert catalog.get_blocks() == []
        assert catalog.needs_refresh()
        assert catalog.stats() is None
        assert catalog.last_updated_at is None

    def test_set_block_persists_and_updates_stats(
        self, settings: Settings, block_catalog: BlockCatalog
    ) -> None:
        reloaded = BlockCatalog(settings.block_catalog_path)
        stats = reloaded.stats()
        assert stats is not None
        assert stats.total_blocks == 5
        assert stats.total_variants == 8
        assert not reloaded.needs_refresh()

        raw = json.loads(settings.block_catalog_path.read_text(encoding="utf-8"))
        assert "marketing/sections/testimonials" in raw["blocks"]

    async def test_set_block_upserts(
        self, block_catalog: BlockCatalog, sample_blocks: list[Block]
    ) -> None:
        updated = sample_blocks[0].model_copy(update={"description": "Updated"})
        await block_catalog.set_block(updated)

        found = block_catalog.get_block(Context.MARKETING, "sections", "testimonials")
        assert found is not None
        assert found.description == "Updated"
        assert len(block_catalog.get_blocks()) == 5

    def test_filters(self, block_catalog: BlockCatalog) -> None:
        assert len(block_catalog.get_blocks(Context.MARKETING)) == 2
        assert [b.slug for b in block_catalog.get_blocks(Context.APPLICATION_UI, "lists")] == [
            "tables"
        ]
        assert block_catalog.get_blocks(Context.ECOMMERCE, "missing") == []

    def test_subcategory_filter_without_context(self, block_catalog: BlockCatalog) -> None:
        assert {b.slug for b in block_catalog.get_blocks(subcategory="sections")} == {
            "testimonials",
            "pricing",
        }
        assert block_catalog.get_blocks(subcategory="missing") == []

    def test_find_block_ignores_subcategory(self, block_catalog: BlockCatalog) -> None:
        block = block_catalog.find_block(Context.APPLICATION_UI, "sidebars")
        assert block is not None
        assert block.subcategory == "navigation"
        assert block_catalog.find_block(Context.MARKETING, "sidebars") is None

    def test_get_variants(self, block_catalog: BlockCatalog) -> None:
        variants = block_catalog.get_variants(Context.APPLICATION_UI, "lists", "tables")
        assert [v.slug for v in variants] == ["simple", "with-checkboxes"]
        assert block_catalog.get_variants(Context.APPLICATION_UI, "lists", "nope") == []

    def test_category_info(self, block_catalog: BlockCatalog) -> None:
        info = {c.slug: c for c in block_catalog.get_category_info()}
        assert info[Context.MARKETING].block_count == 2
        assert info[Context.MARKETING].subcategories == ["sections"]
        assert info[Context.APPLICATION_UI].name == "Application UI"
        assert info[Context.APPLICATION_UI].subcategories == ["lists", "navigation"]

    async def test_cached_variant_count(
        self, settings: Settings, block_catalog: BlockCatalog
    ) -> None:
        await block_catalog.set_cached_variant_count(12)
        stats = BlockCatalog(settings.block_catalog_path).stats()
        assert stats is not None
        assert stats.total_cached_variants == 12

    def test_stale_after_refresh_window(
        self, settings: Settings, block_catalog: BlockCatalog
    ) -> None:
        old = (datetime.now(UTC) - timedelta(hours=30)).isoformat()
        raw = json.loads(settings.block_catalog_path.read_text(encoding="utf-8"))
        raw["last_updated_at"] = old
        settings.block_catalog_path.write_text(json.dumps(raw), encoding="utf-8")

        assert BlockCatalog(settings.block_catalog_path).needs_refresh()
        assert not BlockCatalog(
            settings.block_catalog_path, refresh_after=timedelta(hours=48)
        ).needs_refresh()

    async def test_write_runs_off_the_event_loop(
        self, settings: Settings, sample_blocks: list[Block]
    ) -> None:
        catalog = BlockCatalog(settings.block_catalog_path)
        with patch.object(
            catalog_module.asyncio, "to_thread", wraps=catalog_module.asyncio.to_thread
        ) as to_thread:
            await catalog.set_block(sample_blocks[0])

        assert to_thread.call_args.args[0] is write_atomic
        assert to_thread.call_args.args[1] == settings.block_catalog_path
        reloaded = BlockCatalog(settings.block_catalog_path).get_blocks()
        assert [b.slug for b in reloaded] == [sample_blocks[0].slug]

    def test_corrupt_file_reads_as_missing(self, settings: Settings) -> None:
        settings.block_catalog_path.parent.mkdir(parents=True, exist_ok=True)
        settings.block_catalog_path.write_text("{oops", encoding="utf-8")
        catalog = BlockCatalog(settings.block_catalog_path)
        assert catalog.load() is None
        assert catalog.needs_refresh()


class TestCategoryCatalog:
    async def test_merge_upserts_by_slug(self, settings: Settings) -> None:
        catalog = CategoryCatalog(settings.catalog_path)
        await catalog.merge(Context.MARKETING, [_listing("sections/heroes", 12)])
        await catalog.merge(
            Context.MARKETING,
            [_listing("sections/heroes", 14), _listing("sections/pricing", 12)],
        )

        items = {c.slug: c for c in catalog.get_categories(Context.MARKETING)}
        assert set(items) == {"sections/heroes", "sections/pricing"}
        assert items["sections/heroes"].component_count == 14

        stats = CategoryCatalog(settings.catalog_path).stats()
        assert stats is not None
        assert stats.total_categories == 2
        assert stats.total_blocks == 26

    async def test_get_categories_across_contexts(self, settings: Settings) -> None:
        catalog = CategoryCatalog(settings.catalog_path)
        carts = _listing("components/carts", 6, Context.ECOMMERCE)
        await catalog.merge(Context.ECOMMERCE, [carts])
        await catalog.merge(Context.MARKETING, [_listing("sections/heroes", 12)])

        contexts = [c.context for c in catalog.get_categories()]
        assert contexts == [Context.MARKETING, Context.ECOMMERCE]

    def test_empty(self, settings: Settings) -> None:
        catalog = CategoryCatalog(settings.catalog_path)
        assert catalog.get_categories() == []
        assert catalog.needs_refresh()


class TestSeed:
    def test_covers_every_context(self) -> None:
        entries = seed_categories("https://tailwindcss.com/plus/ui-blocks")
        assert {e.context for e in entries} == set(Context)

    def test_filtered_and_urls_built(self) -> None:
        entries = seed_categories("https://x.test/plus/ui-blocks", Context.ECOMMERCE)
        assert entries
        assert all(e.context == Context.ECOMMERCE for e in entries)
        first = entries[0]
        assert first.url == f"https://x.test/plus/ui-blocks/ecommerce/{first.slug}"
        assert first.subcategory
