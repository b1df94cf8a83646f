"""Integration test fixtures.

Provides a fully wired AppState backed by tmp_path files, with the
browser-driven extractors replaced by in-memory fakes. Catalog fixtures
(settings, sample_blocks, block_catalog) come from tests/conftest.py.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock

import pytest

from plusblocks.cache import VariantCache
from plusblocks.catalog import BlockCatalog, CategoryCatalog
from plusblocks.errors import VariantIndexOutOfRangeError
from plusblocks.extract.variants import ALL_FORMATS, ALL_VERSIONS
from plusblocks.models.cache import VariantCode
from plusblocks.models.catalog import (
    Block,
    BlockIndexEntry,
    CodeFormat,
    Context,
    FrameworkVersion,
    Theme,
    Variant,
)
from plusblocks.ratelimit import RateLimiter
from plusblocks.session import SessionStore
from plusblocks.slugs import to_kebab_case
from plusblocks.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Sequence

    from plusblocks.config import Settings

INDEX_URL = "https://tailwindcss.com/plus/ui-blocks"

# block slug -> variant names shown on its page
PAGES: dict[str, list[str]] = {
    "heroes": ["Simple centered", "Split with screenshot"],
    "testimonials": ["Grid"],
    "tables": ["Simple"],
}


def index_entries() -> list[BlockIndexEntry]:
    rows = [
        ("Hero Sections", "heroes", Context.MARKETING, "sections", 12),
        ("Testimonials", "testimonials", Context.MARKETING, "sections", 8),
        ("Tables", "tables", Context.APPLICATION_UI, "lists", 19),
    ]
    return [
        BlockIndexEntry(
            name=name,
            slug=slug,
            context=context,
            subcategory=subcategory,
            component_count=count,
            url=f"{INDEX_URL}/{context}/{subcategory}/{slug}",
        )
        for name, slug, context, subcategory, count in rows
    ]


class FakeIndexSource:
    def __init__(self, entries: list[BlockIndexEntry]) -> None:
        self.entries = entries
        self.calls = 0

    async def fetch_block_index(self) -> list[BlockIndexEntry]:
        self.calls += 1
        return list(self.entries)


class FakeVariantSource:
    """Serves PAGES; ``failures`` maps a block slug to the error its page raises."""

    def __init__(self, pages: dict[str, list[str]]) -> None:
        self.pages = pages
        self.failures: dict[str, Exception] = {}
        self.block_calls: list[str] = []
        self.code_calls: list[tuple[str, int, CodeFormat, FrameworkVersion, Theme]] = []

    def _variants(self, block_slug: str) -> list[Variant]:
        return [
            Variant(index=i, name=name, slug=to_kebab_case(name), anchor_id=f"component-{i}")
            for i, name in enumerate(self.pages.get(block_slug, []))
        ]

    def _code(
        self,
        context: Context,
        block_slug: str,
        variant: Variant,
        fmt: CodeFormat,
        version: FrameworkVersion,
        theme: Theme,
    ) -> VariantCode:
        return VariantCode(
            context=context,
            block_slug=block_slug,
            variant_slug=variant.slug,
            variant_name=variant.name,
            anchor_id=variant.anchor_id,
            format=fmt,
            version=version,
            theme=theme,
            code=f"// {block_slug}/{variant.slug} {fmt} {version} {theme}\nimport x from 'react'",
            dependencies=["react"],
            captured_at=datetime.now(UTC),
        )

    async def fetch_variant_code(
        self,
        context: Context,
        subcategory: str,
        block_slug: str,
        variant_index: int,
        format: CodeFormat = CodeFormat.REACT,
        version: FrameworkVersion = FrameworkVersion.V4_1,
        theme: Theme = Theme.LIGHT,
    ) -> VariantCode:
        self.code_calls.append((block_slug, variant_index, format, version, theme))
        variants = self._variants(block_slug)
        if variant_index >= len(variants):
            raise VariantIndexOutOfRangeError(variant_index, len(variants))
        return self._code(context, block_slug, variants[variant_index], format, version, theme)

    async def fetch_block_complete(
        self,
        context: Context,
        subcategory: str,
        block_slug: str,
        formats: Sequence[CodeFormat] = ALL_FORMATS,
        versions: Sequence[FrameworkVersion] = ALL_VERSIONS,
        theme: Theme = Theme.LIGHT,
        on_progress: Callable[[str, CodeFormat, FrameworkVersion], None] | None = None,
    ) -> tuple[Block, list[VariantCode]]:
        self.block_calls.append(block_slug)
        if block_slug in self.failures:
            raise self.failures[block_slug]

        variants = self._variants(block_slug)
        codes: list[VariantCode] = []
        for variant in variants:
            for fmt in formats:
                for version in versions:
                    if on_progress is not None:
                        on_progress(variant.name, fmt, version)
                    codes.append(self._code(context, block_slug, variant, fmt, version, theme))

        block = Block(
            name=block_slug.replace("-", " ").title(),
            slug=block_slug,
            context=context,
            subcategory=subcategory,
            url=f"{INDEX_URL}/{context}/{subcategory}/{block_slug}",
            variant_count=len(variants),
            variants=variants,
            last_fetched_at=datetime.now(UTC),
        )
        return block, codes


@pytest.fixture()
def fake_index() -> FakeIndexSource:
    return FakeIndexSource(index_entries())


@pytest.fixture()
def fake_variants() -> FakeVariantSource:
    return FakeVariantSource(dict(PAGES))


@pytest.fixture()
def fake_browser() -> MagicMock:
    browser = MagicMock()
    browser.recycle = AsyncMock()
    browser.close = AsyncMock()
    return browser


@pytest.fixture()
async def app_state(
    settings: Settings,
    fake_index: FakeIndexSource,
    fake_variants: FakeVariantSource,
    fake_browser: MagicMock,
) -> AsyncGenerator[AppState, None]:
    """AppState over tmp_path with fake extractors and a mocked browser."""
    state = AppState(
        settings=settings,
        session=SessionStore(settings.cookies_path),
        browser=fake_browser,
        rate_limiter=RateLimiter(0),
        block_catalog=BlockCatalog(settings.block_catalog_path),
        category_catalog=CategoryCatalog(settings.catalog_path),
        cache=VariantCache(settings.cache_dir, settings.cache_manifest_path, flush_delay=0.05),
        index_extractor=fake_index,
        variant_extractor=fake_variants,
    )
    yield state
    await state.aclose()


@pytest.fixture()
def signed_in(app_state: AppState) -> AppState:
    """app_state with a stored non-expiring session cookie."""
    app_state.session.save([{"name": "session", "value": "x", "domain": ".tailwindcss.com"}])
    return app_state


@pytest.fixture()
async def with_catalog(signed_in: AppState, sample_blocks: list[Block]) -> AppState:
    """Signed-in state whose block catalog holds sample_blocks."""
    for block in sample_blocks:
        await signed_in.block_catalog.set_block(block)
    return signed_in

