"""Session cookie persistence and authentication state.

The cookie jar is saved by ``interactive_login`` and applied to every
browser context the extractors open. A missing or corrupt file reads as
"no session"; it is never an error.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from plusblocks.errors import LoginFailedError
from plusblocks.fsutil import write_model
from plusblocks.models.session import NO_EXPIRY, AuthState, CookieJar, CookieRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from playwright.async_api import BrowserContext

    from plusblocks.browser import BrowserManager
    from plusblocks.config import ScraperSettings

log = structlog.get_logger()

_LOGGED_IN_PATHS = ("/plus/ui-blocks", "/plus/templates", "/plus/ui-kit")


class SessionStore:
    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> CookieJar | None:
        """Return the saved cookie jar, or None if absent or unreadable."""
        if not self._path.is_file():
            return None
        try:
            return CookieJar.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            log.warning("cookies_unreadable", path=str(self._path), exc_info=True)
            return None

    def save(self, cookies: Iterable[Mapping[str, Any]]) -> CookieJar:
        """Normalise and persist cookies with owner-only permissions."""
        jar = CookieJar(
            cookies=[normalise_cookie(cookie) for cookie in cookies],
            saved_at=datetime.now(UTC),
        )
        write_model(self._path, jar, mode=0o600)
        log.info("cookies_saved", path=str(self._path), count=len(jar.cookies))
        return jar

    def clear(self) -> bool:
        if not self._path.exists():
            return False
        self._path.unlink()
        return True

    def check_auth_state(self, now: datetime | None = None) -> AuthState:
        jar = self.load()
        if jar is None:
            return AuthState(authenticated=False, cookies_exist=False, cookies_expired=False)

        now_ts = (now or datetime.now(UTC)).timestamp()
        has_valid = any(
            cookie.expires == NO_EXPIRY or cookie.expires > now_ts for cookie in jar.cookies
        )
        return AuthState(
            authenticated=has_valid,
            cookies_exist=True,
            cookies_expired=not has_valid,
            last_login_at=jar.saved_at,
        )

    async def apply_cookies(self, context: BrowserContext, default_url: str) -> bool:
        """Install saved cookies on a browser context; False if none are stored.

        Cookies saved without a domain are scoped to ``default_url``.
        """
        jar = self.load()
        if jar is None or not jar.cookies:
            return False
        await context.add_cookies([_to_playwright(cookie, default_url) for cookie in jar.cookies])
        return True


def normalise_cookie(raw: Mapping[str, Any]) -> CookieRecord:
    """Accept Playwright's camelCase cookie dicts as well as our own shape."""
    return CookieRecord(
        name=raw["name"],
        value=raw["value"],
        domain=raw.get("domain") or "",
        path=raw.get("path") or "/",
        expires=raw.get("expires") or NO_EXPIRY,
        http_only=bool(raw.get("httpOnly", raw.get("http_only", False))),
        secure=bool(raw.get("secure", False)),
    )


def _to_playwright(cookie: CookieRecord, default_url: str) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": cookie.name,
        "value": cookie.value,
        "expires": cookie.expires,
        "httpOnly": cookie.http_only,
        "secure": cookie.secure,
    }
    if cookie.domain:
        payload["domain"] = cookie.domain
        payload["path"] = cookie.path
    else:
        payload["url"] = default_url
    return payload


def is_logged_in_url(url: str) -> bool:
    if any(path in url for path in _LOGGED_IN_PATHS):
        return True
    return "/plus" in url and "/login" not in url


async def interactive_login(
    browser: BrowserManager,
    store: SessionStore,
    scraper: ScraperSettings,
) -> CookieJar:
    """Open a visible browser on the login page and save the session once signed in.

    Waits up to ``scraper.login_timeout_seconds`` for the page to land on a
    members-area URL. The visible browser is always closed.
    """
    async with browser.visible_page() as page:
        await page.goto(
            scraper.login_url,
            wait_until="networkidle",
            timeout=scraper.navigation_timeout_seconds * 1000,
        )
        log.info("login_waiting", url=scraper.login_url, timeout=scraper.login_timeout_seconds)
        try:
            await page.wait_for_url(
                is_logged_in_url,
                timeout=scraper.login_timeout_seconds * 1000,
            )
        except PlaywrightTimeoutError as exc:
            raise LoginFailedError("Timed out waiting for the login to complete.") from exc

        cookies = await page.context.cookies()
        return store.save(cookies)
