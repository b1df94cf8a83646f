"""Shared test fixtures for the plusblocks test suite."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import pytest

from plusblocks.cache import VariantCache
from plusblocks.catalog import BlockCatalog
from plusblocks.config import Settings
from plusblocks.models.cache import VariantCode
from plusblocks.models.catalog import (
    Block,
    CodeFormat,
    Context,
    FrameworkVersion,
    Theme,
    Variant,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable
    from pathlib import Path


def _variants(*names: str) -> list[Variant]:
    return [
        Variant(
            index=i,
            name=name,
            slug=name.lower().replace(" ", "-"),
            anchor_id=f"component-{i:04x}",
        )
        for i, name in enumerate(names)
    ]


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings with every persisted file under tmp_path."""
    return Settings(data_dir=str(tmp_path))


@pytest.fixture()
def sample_blocks() -> list[Block]:
    base = "https://tailwindcss.com/plus/ui-blocks"
    return [
        Block(
            name="Testimonials",
            slug="testimonials",
            context=Context.MARKETING,
            subcategory="sections",
            url=f"{base}/marketing/sections/testimonials",
            description="Quotes from happy customers.",
            variant_count=2,
            variants=_variants("Simple centered", "With large avatar"),
        ),
        Block(
            name="Pricing Sections",
            slug="pricing",
            context=Context.MARKETING,
            subcategory="sections",
            url=f"{base}/marketing/sections/pricing",
            variant_count=2,
            variants=_variants("Three tiers", "Single price with details"),
        ),
        Block(
            name="Sidebar Navigation",
            slug="sidebars",
            context=Context.APPLICATION_UI,
            subcategory="navigation",
            url=f"{base}/application-ui/navigation/sidebars",
            variant_count=1,
            variants=_variants("Dark"),
        ),
        Block(
            name="Tables",
            slug="tables",
            context=Context.APPLICATION_UI,
            subcategory="lists",
            url=f"{base}/application-ui/lists/tables",
            variant_count=2,
            variants=_variants("Simple", "With checkboxes"),
        ),
        Block(
            name="Shopping Carts",
            slug="shopping-carts",
            context=Context.ECOMMERCE,
            subcategory="components",
            url=f"{base}/ecommerce/components/shopping-carts",
            variant_count=1,
            variants=_variants("Slide-over"),
        ),
    ]


@pytest.fixture()
async def block_catalog(settings: Settings, sample_blocks: list[Block]) -> BlockCatalog:
    """A persisted catalog holding sample_blocks."""
    catalog = BlockCatalog(settings.block_catalog_path)
    for block in sample_blocks:
        await catalog.set_block(block)
    return catalog


@pytest.fixture()
def make_code() -> Callable[..., VariantCode]:
    """Factory for VariantCode with overridable fields."""

    def _make(**overrides: Any) -> VariantCode:
        fields: dict[str, Any] = {
            "context": Context.MARKETING,
            "block_slug": "testimonials",
            "variant_slug": "simple-centered",
            "variant_name": "Simple centered",
            "anchor_id": "component-0000",
            "format": CodeFormat.REACT,
            "version": FrameworkVersion.V4_1,
            "theme": Theme.LIGHT,
            "code": "export default function Example() { return <section /> }",
            "dependencies": [],
            "captured_at": datetime.now(UTC),
        }
        fields.update(overrides)
        return VariantCode(**fields)

    return _make


@pytest.fixture()
async def cache(settings: Settings) -> AsyncGenerator[VariantCache, None]:
    """VariantCache with a short manifest debounce, flushed on teardown."""
    variant_cache = VariantCache(
        settings.cache_dir, settings.cache_manifest_path, flush_delay=0.05
    )
    yield variant_cache
    await variant_cache.close()
