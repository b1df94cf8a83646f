"""Block index extraction.

The index page lists every block of all three contexts under one section
heading per context. One in-page walk collects headings and links in
document order; ``parse_block_index`` turns that into block descriptors.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import structlog

from plusblocks.extract.pages import navigate_authenticated
from plusblocks.models.catalog import BlockIndexEntry, Context

if TYPE_CHECKING:
    from plusblocks.browser import BrowserManager
    from plusblocks.config import ScraperSettings
    from plusblocks.ratelimit import RateLimiter
    from plusblocks.session import SessionStore

log = structlog.get_logger()

BLOCKS_PATH_SEGMENT = "/ui-blocks/"

_LINK_TEXT = re.compile(r"^(.+?)(\d+)\s+(?:components?|examples?)", re.DOTALL)

# Returns [{"kind": "heading" | "link", "text": str, "href": str | null}, ...]
INDEX_NODES_SCRIPT = """
() => {
  const main = document.querySelector("main");
  if (!main) return [];
  const nodes = [];
  const walker = document.createTreeWalker(main, NodeFilter.SHOW_ELEMENT);
  let node = walker.currentNode;
  while (node) {
    if (node.tagName === "H2") {
      nodes.push({ kind: "heading", text: node.textContent || "", href: null });
    } else if (node.tagName === "A") {
      nodes.push({ kind: "link", text: node.textContent || "", href: node.getAttribute("href") });
    }
    node = walker.nextNode();
  }
  return nodes;
}
"""


def parse_link_text(text: str) -> tuple[str, int] | None:
    """Split "Hero Sections12 components" into ("Hero Sections", 12)."""
    match = _LINK_TEXT.search(text.strip())
    if match is None:
        return None
    name = " ".join(match.group(1).split())
    if not name:
        return None
    return name, int(match.group(2))


def absolute_url(href: str, site_url: str) -> str:
    if href.startswith("http"):
        return href
    return f"{site_url.rstrip('/')}{href}"


def parse_block_index(nodes: list[dict[str, Any]], site_url: str) -> list[BlockIndexEntry]:
    """Build de-duplicated block descriptors from the ordered index-page nodes.

    A heading whose text names a context switches the current context; other
    headings leave it unchanged. Links count only while a context is active
    and only if they point into that context's block pages.
    """
    entries: list[BlockIndexEntry] = []
    seen: set[tuple[str, Context]] = set()
    current: Context | None = None

    for node in nodes:
        text = node.get("text") or ""
        if node.get("kind") == "heading":
            current = Context.from_heading(text) or current
            continue
        if current is None:
            continue

        href = node.get("href") or ""
        if BLOCKS_PATH_SEGMENT not in href or current.value not in href:
            continue

        parsed = parse_link_text(text)
        if parsed is None:
            continue
        name, count = parsed

        segments = [segment for segment in href.split("#")[0].split("/") if segment]
        if len(segments) < 2:
            continue
        subcategory, slug = segments[-2], segments[-1]

        if (slug, current) in seen:
            continue
        seen.add((slug, current))
        entries.append(
            BlockIndexEntry(
                name=name,
                slug=slug,
                context=current,
                subcategory=subcategory,
                component_count=count,
                url=absolute_url(href, site_url),
            )
        )

    return entries


class BlockIndexExtractor:
    def __init__(
        self,
        browser: BrowserManager,
        session: SessionStore,
        rate_limiter: RateLimiter,
        scraper: ScraperSettings,
    ) -> None:
        self._browser = browser
        self._session = session
        self._rate_limiter = rate_limiter
        self._scraper = scraper

    async def fetch_block_index(self) -> list[BlockIndexEntry]:
        """Load the index page once and return every block across all contexts."""
        await self._rate_limiter.acquire()
        async with self._browser.open_page() as page:
            log.info("block_index_loading", url=self._scraper.index_url)
            await navigate_authenticated(
                page,
                self._scraper.index_url,
                session=self._session,
                scraper=self._scraper,
            )
            nodes = await page.evaluate(INDEX_NODES_SCRIPT)

        entries = parse_block_index(nodes, self._scraper.base_url)
        log.info("block_index_loaded", blocks=len(entries))
        return entries
