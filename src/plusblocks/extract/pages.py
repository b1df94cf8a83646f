"""Page-level helpers shared by the index and variant extractors."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from plusblocks.errors import AuthExpiredError, AuthRequiredError

if TYPE_CHECKING:
    from playwright.async_api import Page

    from plusblocks.config import ScraperSettings
    from plusblocks.session import SessionStore

log = structlog.get_logger()

LOGIN_PATH = "/login"


async def navigate_authenticated(
    page: Page,
    url: str,
    *,
    session: SessionStore,
    scraper: ScraperSettings,
) -> None:
    """Apply the saved session to ``page`` and load ``url``.

    Raises AuthRequiredError when no cookies are stored and AuthExpiredError
    when the site bounces the request to its login page.
    """
    if not await session.apply_cookies(page.context, scraper.base_url):
        raise AuthRequiredError()

    await page.goto(
        url,
        wait_until="networkidle",
        timeout=scraper.navigation_timeout_seconds * 1000,
    )
    if LOGIN_PATH in page.url:
        raise AuthExpiredError()


async def soft_wait(page: Page, selector: str, timeout_seconds: float) -> bool:
    """Wait for ``selector`` but treat a timeout as "not present"."""
    try:
        await page.wait_for_selector(selector, timeout=timeout_seconds * 1000)
    except PlaywrightTimeoutError:
        log.debug("soft_wait_timeout", selector=selector, timeout=timeout_seconds)
        return False
    return True
