"""Application state container.

AppState is created once per process (inside the FastMCP lifespan context
manager, or by the CLI for one-shot commands) and passed to every tool
handler and to the sync pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from plusblocks.browser import BrowserManager
from plusblocks.cache import VariantCache
from plusblocks.catalog import BlockCatalog, CategoryCatalog
from plusblocks.extract.index import BlockIndexExtractor
from plusblocks.extract.variants import VariantExtractor
from plusblocks.ratelimit import RateLimiter
from plusblocks.session import SessionStore

if TYPE_CHECKING:
    from plusblocks.config import Settings
    from plusblocks.protocols import BlockIndexSource, CacheProtocol, VariantSource


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings
    session: SessionStore
    browser: BrowserManager
    rate_limiter: RateLimiter
    block_catalog: BlockCatalog
    category_catalog: CategoryCatalog
    cache: CacheProtocol
    index_extractor: BlockIndexSource
    variant_extractor: VariantSource

    async def aclose(self) -> None:
        """Persist pending cache state and shut the browser down."""
        try:
            await self.cache.flush()
        finally:
            await self.browser.close()


def build_state(settings: Settings) -> AppState:
    """Wire the concrete components for ``settings``. Launches nothing."""
    refresh_after = timedelta(hours=settings.catalog.refresh_hours)
    session = SessionStore(settings.cookies_path)
    browser = BrowserManager(settings)
    rate_limiter = RateLimiter(settings.scraper.request_delay_seconds)
    return AppState(
        settings=settings,
        session=session,
        browser=browser,
        rate_limiter=rate_limiter,
        block_catalog=BlockCatalog(settings.block_catalog_path, refresh_after=refresh_after),
        category_catalog=CategoryCatalog(settings.catalog_path, refresh_after=refresh_after),
        cache=VariantCache(
            settings.cache_dir,
            settings.cache_manifest_path,
            ttl=timedelta(days=settings.cache.ttl_days),
            flush_delay=settings.cache.manifest_flush_delay_seconds,
        ),
        index_extractor=BlockIndexExtractor(browser, session, rate_limiter, settings.scraper),
        variant_extractor=VariantExtractor(browser, session, rate_limiter, settings.scraper),
    )
