"""Variant-level extraction from block pages.

A block page renders every variant with its own Preview/Code tabs and
dropdowns; the code shown depends on which tab is active and what the
dropdowns are set to. Extraction therefore drives the UI in a fixed order
(code tab, format, version, theme) before reading the code text.

``fetch_variant_code`` loads the page for a single rendering. The bulk sync
path uses ``fetch_block_complete`` instead, which loads the page once and
walks every variant, format and version on it.
"""

from __future__ import annotations

import asyncio
import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog
from playwright.async_api import Error as PlaywrightError

from plusblocks.errors import (
    AuthRequiredError,
    CodeFetchError,
    VariantIndexOutOfRangeError,
    is_retryable,
)
from plusblocks.extract.controls import DEFAULT_STRATEGIES
from plusblocks.extract.pages import navigate_authenticated, soft_wait
from plusblocks.models.cache import VariantCode
from plusblocks.models.catalog import Block, CodeFormat, FrameworkVersion, Theme, Variant
from plusblocks.retry import RetryPolicy, with_retry
from plusblocks.slugs import to_kebab_case

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from playwright.async_api import Locator, Page

    from plusblocks.browser import BrowserManager
    from plusblocks.config import ScraperSettings
    from plusblocks.extract.controls import ControlStrategy
    from plusblocks.models.catalog import Context
    from plusblocks.ratelimit import RateLimiter
    from plusblocks.session import SessionStore

    ProgressCallback = Callable[[int, int, str], None]
    ComboCallback = Callable[[str, CodeFormat, FrameworkVersion], None]

log = structlog.get_logger()

ALL_FORMATS: tuple[CodeFormat, ...] = tuple(CodeFormat)
ALL_VERSIONS: tuple[FrameworkVersion, ...] = tuple(FrameworkVersion)

TABPANEL_SELECTOR = '[role="tabpanel"]'
ANCHOR_PREFIX = "component-"

# Page title, description and every h2 with its component anchor (if any).
HEADINGS_SCRIPT = """
() => ({
  title: (document.querySelector("h1")?.textContent || "").trim(),
  description: (document.querySelector("h1 + p")?.textContent || "").trim(),
  headings: Array.from(document.querySelectorAll("h2")).map((h2) => {
    const link = h2.querySelector('a[href*="#component-"]');
    return { text: (h2.textContent || "").trim(), href: link ? link.getAttribute("href") : null };
  }),
})
"""

# Tries each named lookup in the given order and returns the first code text.
CODE_TEXT_SCRIPT = """
({ index, anchorId, order }) => {
  const codePanels = (root) => root.querySelectorAll('[role="tabpanel"][aria-label="Code"]');
  const codeText = (panel) => {
    const el = panel.querySelector("code");
    return el && el.textContent ? el.textContent : null;
  };
  const lookups = {
    scoped: () => {
      const scope = document.getElementById(anchorId);
      if (!scope) return null;
      const panels = codePanels(scope);
      return panels.length === 1 ? codeText(panels[0]) : null;
    },
    positional: () => {
      const panels = codePanels(document);
      return panels.length > index ? codeText(panels[index]) : null;
    },
    visible: () => {
      const markers = ["import", "export", "<template>", "<section", "<div"];
      for (const el of document.querySelectorAll("code")) {
        const text = el.textContent || "";
        if (!markers.some((marker) => text.includes(marker))) continue;
        const rect = el.getBoundingClientRect();
        if (rect.width > 0 && rect.height > 0) return text;
      }
      return null;
    },
  };
  for (const name of order) {
    const lookup = lookups[name];
    const text = lookup ? lookup() : null;
    if (text) return text;
  }
  return null;
}
"""

_IMPORT_FROM = re.compile(r"""import\s+[\w*{}\s,$]+?\s+from\s+['"]([^'"]+)['"]""")


def parse_dependencies(code: str) -> list[str]:
    """Return the external packages imported by ``code``, in first-seen order.

    Scoped specifiers keep ``@scope/name``; others keep their first path
    segment. Relative and absolute imports are skipped.
    """
    packages: dict[str, None] = {}
    for match in _IMPORT_FROM.finditer(code):
        specifier = match.group(1)
        if specifier.startswith((".", "/")):
            continue
        parts = specifier.split("/")
        package = "/".join(parts[:2]) if specifier.startswith("@") else parts[0]
        if package:
            packages[package] = None
    return list(packages)


def _anchor_id(href: str) -> str:
    return href.rsplit("#", 1)[-1]


def variants_from_headings(headings: Sequence[dict[str, Any]]) -> list[Variant]:
    """Variants are the h2 headings carrying a component anchor, in page order."""
    variants: list[Variant] = []
    for heading in headings:
        href = heading.get("href")
        if not href or ANCHOR_PREFIX not in href:
            continue
        index = len(variants)
        name = (heading.get("text") or "").strip() or f"Variant {index}"
        variants.append(
            Variant(
                index=index,
                name=name,
                slug=to_kebab_case(name) or f"variant-{index}",
                anchor_id=_anchor_id(href),
            )
        )
    return variants


def select_variant_heading(headings: Sequence[dict[str, Any]], index: int) -> Variant:
    """Return the ``index``-th anchored heading as a Variant.

    Raises VariantIndexOutOfRangeError carrying the number of variants found.
    """
    variants = variants_from_headings(headings)
    if index < 0 or index >= len(variants):
        raise VariantIndexOutOfRangeError(index, len(variants))
    return variants[index]


class VariantExtractor:
    def __init__(
        self,
        browser: BrowserManager,
        session: SessionStore,
        rate_limiter: RateLimiter,
        scraper: ScraperSettings,
        *,
        strategies: Sequence[ControlStrategy] = DEFAULT_STRATEGIES,
    ) -> None:
        self._browser = browser
        self._session = session
        self._rate_limiter = rate_limiter
        self._scraper = scraper
        self._strategies = tuple(strategies)
        self._retry_policy = RetryPolicy.from_settings(scraper)

    def block_url(self, context: Context, subcategory: str, block_slug: str) -> str:
        return f"{self._scraper.index_url}/{context}/{subcategory}/{block_slug}"

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def fetch_block_variants(
        self,
        context: Context,
        subcategory: str,
        block_slug: str,
    ) -> Block:
        """Load a block page and return its metadata and variant list (no code)."""
        url = self.block_url(context, subcategory, block_slug)
        await self._rate_limiter.acquire()

        async def attempt() -> Block:
            async with self._browser.open_page() as page:
                log.info("block_variants_loading", url=url)
                await self._load(page, url)
                await page.wait_for_selector("h1", timeout=self._selector_timeout_ms)
                data = await page.evaluate(HEADINGS_SCRIPT)
            return self._block_from_page(context, subcategory, block_slug, url, data)

        return await self._retry(attempt, label=block_slug)

    # ------------------------------------------------------------------
    # Single rendering
    # ------------------------------------------------------------------

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
        """Load a block page and extract one variant's code for one combination."""
        url = self.block_url(context, subcategory, block_slug)
        await self._rate_limiter.acquire()

        async def attempt() -> VariantCode:
            async with self._browser.open_page() as page:
                log.info(
                    "variant_code_loading",
                    block=block_slug,
                    index=variant_index,
                    format=format,
                    version=version,
                    theme=theme,
                )
                await self._load(page, url)
                await page.wait_for_selector(
                    TABPANEL_SELECTOR, timeout=self._selector_timeout_ms
                )
                data = await page.evaluate(HEADINGS_SCRIPT)
                variant = select_variant_heading(data["headings"], variant_index)

                if not await self._activate_code_tab(page, variant):
                    log.warning("code_tab_not_found", block=block_slug, index=variant_index)
                await soft_wait(page, "code", self._scraper.code_wait_timeout_seconds)

                await self._select_format(page, variant, format)
                await asyncio.sleep(self._scraper.format_change_delay_seconds)
                await self._select_version(page, variant, version)
                await asyncio.sleep(self._scraper.version_change_delay_seconds)
                if theme is Theme.DARK and await self._apply_dark_theme(page, variant):
                    await asyncio.sleep(self._scraper.version_change_delay_seconds)

                code = await self._read_code(page, variant)

            if code is None:
                raise CodeFetchError(variant_index)
            return self._variant_code(context, block_slug, variant, format, version, theme, code)

        return await self._retry(attempt, label=f"{block_slug}[{variant_index}]")

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    async def fetch_all_variant_codes(
        self,
        context: Context,
        subcategory: str,
        block_slug: str,
        formats: Sequence[CodeFormat] = ALL_FORMATS,
        versions: Sequence[FrameworkVersion] = ALL_VERSIONS,
        theme: Theme = Theme.LIGHT,
        on_progress: ProgressCallback | None = None,
    ) -> list[VariantCode]:
        """One page load per combination. Auth failures abort; others are skipped."""
        block = await self.fetch_block_variants(context, subcategory, block_slug)
        total = len(block.variants) * len(formats) * len(versions)
        current = 0
        results: list[VariantCode] = []

        for variant in block.variants:
            for fmt in formats:
                for version in versions:
                    current += 1
                    label = f"{variant.name} ({fmt}, {version})"
                    if on_progress is not None:
                        on_progress(current, total, label)
                    try:
                        code = await self.fetch_variant_code(
                            context, subcategory, block_slug, variant.index, fmt, version, theme
                        )
                    except AuthRequiredError:
                        raise
                    except Exception as exc:
                        log.warning("variant_code_failed", label=label, error=str(exc))
                        continue
                    results.append(code)
        return results

    async def fetch_block_code_efficient(
        self,
        context: Context,
        subcategory: str,
        block_slug: str,
        variants: Sequence[Variant],
        formats: Sequence[CodeFormat] = ALL_FORMATS,
        versions: Sequence[FrameworkVersion] = ALL_VERSIONS,
        theme: Theme = Theme.LIGHT,
        on_progress: ComboCallback | None = None,
    ) -> list[VariantCode]:
        """Extract code for known variants from a single page load."""
        if not variants:
            return []
        url = self.block_url(context, subcategory, block_slug)
        await self._rate_limiter.acquire()

        codes: list[VariantCode] = []
        async with self._browser.open_page() as page:
            log.info("block_page_loading", url=url)
            await self._load(page, url)
            await page.wait_for_selector(TABPANEL_SELECTOR, timeout=self._selector_timeout_ms)
            for variant in variants:
                codes.extend(
                    await self._extract_variant(
                        page, context, block_slug, variant, formats, versions, theme, on_progress
                    )
                )
        return codes

    async def fetch_block_complete(
        self,
        context: Context,
        subcategory: str,
        block_slug: str,
        formats: Sequence[CodeFormat] = ALL_FORMATS,
        versions: Sequence[FrameworkVersion] = ALL_VERSIONS,
        theme: Theme = Theme.LIGHT,
        on_progress: ComboCallback | None = None,
    ) -> tuple[Block, list[VariantCode]]:
        """Extract block metadata and every requested rendering from one page load.

        Pass empty ``formats`` for a metadata-only pass.
        """
        url = self.block_url(context, subcategory, block_slug)
        await self._rate_limiter.acquire()

        codes: list[VariantCode] = []
        async with self._browser.open_page() as page:
            log.info("block_page_loading", url=url)
            await self._load(page, url)
            await page.wait_for_selector("h1", timeout=self._selector_timeout_ms)
            data = await page.evaluate(HEADINGS_SCRIPT)
            block = self._block_from_page(context, subcategory, block_slug, url, data)
            log.info("block_variants_found", block=block_slug, variants=block.variant_count)

            if formats and versions and block.variants:
                await soft_wait(page, TABPANEL_SELECTOR, self._scraper.selector_timeout_seconds)
                for variant in block.variants:
                    codes.extend(
                        await self._extract_variant(
                            page, context, block_slug, variant, formats, versions, theme,
                            on_progress,
                        )
                    )
        return block, codes

    # ------------------------------------------------------------------
    # Page driving
    # ------------------------------------------------------------------

    @property
    def _selector_timeout_ms(self) -> float:
        return self._scraper.selector_timeout_seconds * 1000

    async def _load(self, page: Page, url: str) -> None:
        await navigate_authenticated(page, url, session=self._session, scraper=self._scraper)

    async def _retry(self, operation: Callable[[], Any], *, label: str) -> Any:
        def on_retry(attempt: int, exc: Exception) -> None:
            log.warning(
                "extraction_retry",
                target=label,
                attempt=attempt,
                max_attempts=self._retry_policy.max_attempts,
                error=str(exc),
            )

        return await with_retry(
            operation, self._retry_policy, on_retry=on_retry, retry_if=is_retryable
        )

    async def _extract_variant(
        self,
        page: Page,
        context: Context,
        block_slug: str,
        variant: Variant,
        formats: Sequence[CodeFormat],
        versions: Sequence[FrameworkVersion],
        theme: Theme,
        on_progress: ComboCallback | None,
    ) -> list[VariantCode]:
        """Walk every format and version of one variant on an already loaded page."""
        if not await self._activate_code_tab(page, variant):
            log.warning("code_tab_not_found", block=block_slug, variant=variant.slug)
            return []
        await soft_wait(page, "code", self._scraper.code_wait_timeout_seconds)
        await asyncio.sleep(self._scraper.version_change_delay_seconds)

        codes: list[VariantCode] = []
        for fmt in formats:
            if not await self._select_format(page, variant, fmt):
                log.warning(
                    "format_not_selected", block=block_slug, variant=variant.slug, format=fmt
                )
            await asyncio.sleep(self._scraper.ui_interaction_delay_seconds)

            for version in versions:
                if on_progress is not None:
                    on_progress(variant.name, fmt, version)
                await self._select_version(page, variant, version)
                await asyncio.sleep(self._scraper.ui_interaction_delay_seconds)
                if theme is Theme.DARK and await self._apply_dark_theme(page, variant):
                    await asyncio.sleep(self._scraper.ui_interaction_delay_seconds)

                code = await self._read_code(page, variant)
                if code is None:
                    log.debug(
                        "variant_code_missing",
                        block=block_slug,
                        variant=variant.slug,
                        format=fmt,
                        version=version,
                    )
                    continue
                codes.append(
                    self._variant_code(context, block_slug, variant, fmt, version, theme, code)
                )
        return codes

    async def _activate_code_tab(self, page: Page, variant: Variant) -> bool:
        for strategy in self._strategies:
            tab = await strategy.code_tab(page, variant)
            if tab is not None and await self._interact(strategy.name, "tab", self._clicker(tab)):
                return True
        return False

    async def _select_format(self, page: Page, variant: Variant, fmt: CodeFormat) -> bool:
        for strategy in self._strategies:
            select = await strategy.format_select(page, variant)
            if select is not None and await self._choose(strategy.name, select, fmt.label):
                return True
        return False

    async def _select_version(
        self, page: Page, variant: Variant, version: FrameworkVersion
    ) -> bool:
        for strategy in self._strategies:
            select = await strategy.version_select(page, variant)
            if select is not None and await self._choose(strategy.name, select, version.label):
                return True
        return False

    async def _apply_dark_theme(self, page: Page, variant: Variant) -> bool:
        for strategy in self._strategies:
            toggle = await strategy.theme_toggle(page, variant)
            if toggle is not None and await self._interact(
                strategy.name, "theme", self._clicker(toggle)
            ):
                return True
        log.debug("dark_theme_toggle_not_found", variant=variant.slug)
        return False

    async def _choose(self, strategy: str, select: Locator, option: str) -> bool:
        async def choose() -> None:
            await select.select_option(option, timeout=self._selector_timeout_ms)

        return await self._interact(strategy, "select", choose)

    def _clicker(self, locator: Locator) -> Callable[[], Awaitable[None]]:
        async def click() -> None:
            await locator.click(timeout=self._selector_timeout_ms)

        return click

    async def _interact(
        self, strategy: str, control: str, action: Callable[[], Awaitable[None]]
    ) -> bool:
        """Run one control interaction; a detached or stale element means "try the next"."""
        try:
            await action()
        except PlaywrightError as exc:
            log.debug(
                "control_interaction_failed", strategy=strategy, control=control, error=str(exc)
            )
            return False
        return True

    async def _read_code(self, page: Page, variant: Variant) -> str | None:
        order = [strategy.name for strategy in self._strategies] + ["visible"]
        return await page.evaluate(
            CODE_TEXT_SCRIPT,
            {"index": variant.index, "anchorId": variant.anchor_id, "order": order},
        )

    # ------------------------------------------------------------------
    # Record building
    # ------------------------------------------------------------------

    def _block_from_page(
        self,
        context: Context,
        subcategory: str,
        block_slug: str,
        url: str,
        data: dict[str, Any],
    ) -> Block:
        variants = variants_from_headings(data.get("headings") or [])
        return Block(
            name=data.get("title") or block_slug,
            slug=block_slug,
            context=context,
            subcategory=subcategory,
            url=url,
            description=data.get("description") or None,
            variant_count=len(variants),
            variants=variants,
            last_fetched_at=datetime.now(UTC),
        )

    def _variant_code(
        self,
        context: Context,
        block_slug: str,
        variant: Variant,
        fmt: CodeFormat,
        version: FrameworkVersion,
        theme: Theme,
        code: str,
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
            code=code,
            dependencies=parse_dependencies(code),
            captured_at=datetime.now(UTC),
        )
