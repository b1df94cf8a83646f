"""Headless browser ownership.

BrowserManager owns one long-lived Chromium process shared by every
extraction call. Pages are opened per operation through ``open_page()``,
each in its own context with a rotated user agent, and are always closed.
Bulk sync calls ``recycle()`` periodically to bound memory growth.
"""

from __future__ import annotations

import asyncio
import os
import random
import shutil
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from playwright.async_api import async_playwright

from plusblocks.errors import BrowserUnavailableError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from playwright.async_api import Browser, Page, Playwright

    from plusblocks.config import Settings

log = structlog.get_logger()

USER_AGENTS = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
)

LAUNCH_ARGS = ("--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage")

_WHICH_NAMES = ("google-chrome", "chromium", "chromium-browser")


def random_user_agent() -> str:
    return random.choice(USER_AGENTS)


def well_known_executables(
    platform: str = sys.platform,
    environ: Mapping[str, str] = os.environ,
) -> list[str]:
    """Install locations of Chrome-family browsers, most preferred first."""
    if platform == "darwin":
        return [
            "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            "/Applications/Chromium.app/Contents/MacOS/Chromium",
            "/Applications/Google Chrome Canary.app/Contents/MacOS/Google Chrome Canary",
            "/Applications/Brave Browser.app/Contents/MacOS/Brave Browser",
            "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
        ]
    if platform == "win32":
        program_files = environ.get("PROGRAMFILES", "C:\\Program Files")
        program_files_x86 = environ.get("PROGRAMFILES(X86)", "C:\\Program Files (x86)")
        local_app_data = environ.get("LOCALAPPDATA", "")
        return [
            f"{program_files}\\Google\\Chrome\\Application\\chrome.exe",
            f"{program_files_x86}\\Google\\Chrome\\Application\\chrome.exe",
            f"{local_app_data}\\Google\\Chrome\\Application\\chrome.exe",
            f"{program_files}\\Microsoft\\Edge\\Application\\msedge.exe",
            f"{program_files_x86}\\Microsoft\\Edge\\Application\\msedge.exe",
        ]
    return [
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/snap/bin/chromium",
        "/usr/bin/brave-browser",
        "/usr/bin/microsoft-edge",
    ]


def find_system_browser(
    override: str | None = None,
    *,
    platform: str = sys.platform,
    environ: Mapping[str, str] = os.environ,
) -> str | None:
    """Locate a local Chrome-family executable.

    Order: CHROME_PATH, the configured override, well-known install paths,
    then a PATH lookup on POSIX systems.
    """
    for pinned in (environ.get("CHROME_PATH"), override):
        if pinned and Path(pinned).exists():
            return pinned

    for candidate in well_known_executables(platform, environ):
        if Path(candidate).exists():
            return candidate

    if platform != "win32":
        for name in _WHICH_NAMES:
            found = shutil.which(name)
            if found:
                return found
    return None


async def download_chromium(browsers_dir: Path) -> None:
    """Install Playwright's pinned Chromium build into ``browsers_dir``.

    Sets PLAYWRIGHT_BROWSERS_PATH for this process so the driver started
    afterwards finds the download.
    """
    browsers_dir.mkdir(parents=True, exist_ok=True)
    os.environ["PLAYWRIGHT_BROWSERS_PATH"] = str(browsers_dir)

    if any(browsers_dir.glob("chromium-*")):
        log.debug("browser_download_skipped", path=str(browsers_dir))
        return

    log.info("browser_download_started", path=str(browsers_dir))
    process = await asyncio.create_subprocess_exec(
        sys.executable,
        "-m",
        "playwright",
        "install",
        "chromium",
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
        env=os.environ.copy(),
    )
    if process.stdout is None:
        raise BrowserUnavailableError("Chromium installer started without an output pipe.")
    async for raw_line in process.stdout:
        line = raw_line.decode("utf-8", errors="replace").strip()
        if line:
            log.info("browser_download_progress", line=line)
    returncode = await process.wait()
    if returncode != 0:
        raise BrowserUnavailableError(f"Chromium download failed with exit code {returncode}.")
    log.info("browser_download_complete", path=str(browsers_dir))


class BrowserManager:
    """Owner of the shared browser process."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._executable: str | None = None
        self._executable_resolved = False
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def resolve_executable(self) -> str | None:
        """Resolve the browser binary once; None means Playwright's own download."""
        if not self._executable_resolved:
            self._executable = find_system_browser(self._settings.browser.executable_path)
            if self._executable is None:
                log.warning("browser_not_found_downloading")
                await download_chromium(self._settings.browsers_dir)
            self._executable_resolved = True
        return self._executable

    async def acquire(self) -> Browser:
        """Return the shared browser, launching it if absent or disconnected."""
        async with self._lock:
            if self._browser is None or not self._browser.is_connected():
                self._browser = await self._launch(headless=self._settings.browser.headless)
            return self._browser

    async def recycle(self) -> None:
        """Close the shared browser and pause; the next acquire relaunches it."""
        await self._close_browser()
        pause = self._settings.browser.recycle_pause_seconds
        log.info("browser_recycled", pause_seconds=pause)
        await asyncio.sleep(pause)

    async def close(self) -> None:
        await self._close_browser()
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    @asynccontextmanager
    async def open_page(self) -> AsyncIterator[Page]:
        """Yield a fresh page with a random user agent and the fixed viewport."""
        browser = await self.acquire()
        context = await browser.new_context(
            user_agent=random_user_agent(),
            viewport={
                "width": self._settings.browser.viewport_width,
                "height": self._settings.browser.viewport_height,
            },
        )
        try:
            yield await context.new_page()
        finally:
            await context.close()

    @asynccontextmanager
    async def visible_page(self) -> AsyncIterator[Page]:
        """Yield a page in a dedicated headed browser, closed on exit."""
        browser = await self._launch(headless=False)
        try:
            context = await browser.new_context(user_agent=random_user_agent())
            yield await context.new_page()
        finally:
            await browser.close()

    async def _launch(self, *, headless: bool) -> Browser:
        executable = await self.resolve_executable()
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        log.info("browser_launching", executable=executable or "playwright", headless=headless)
        return await self._playwright.chromium.launch(
            executable_path=executable,
            headless=headless,
            args=list(LAUNCH_ARGS),
        )

    async def _close_browser(self) -> None:
        async with self._lock:
            browser, self._browser = self._browser, None
        if browser is not None:
            await browser.close()
            log.debug("browser_closed")
