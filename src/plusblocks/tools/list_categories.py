"""Tool handler for list_categories.

Prefers the synced block catalog; falls back to the flat listing recorded
from the index page, then to the built-in seed list. No MCP or FastMCP
imports; server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from plusblocks.models.catalog import CategoryInfo, Context
from plusblocks.models.tools import ListCategoriesOutput
from plusblocks.seed import seed_categories

if TYPE_CHECKING:
    from plusblocks.models.catalog import CatalogCategory
    from plusblocks.state import AppState


def summarise_listing(entries: list[CatalogCategory]) -> list[CategoryInfo]:
    """Group flat listing entries into per-context counts."""
    categories: list[CategoryInfo] = []
    for context in Context:
        in_context = [e for e in entries if e.context == context]
        if not in_context:
            continue
        categories.append(
            CategoryInfo(
                name=context.label,
                slug=context,
                block_count=len(in_context),
                subcategories=sorted({e.slug.split("/", 1)[0] for e in in_context}),
            )
        )
    return categories


async def handle(state: AppState) -> dict:
    """Handle a list_categories tool call."""
    log = structlog.get_logger().bind(tool="list_categories")
    log.info("handler_called")

    categories = state.block_catalog.get_category_info()
    source = "catalog"
    if not categories:
        categories = summarise_listing(state.category_catalog.get_categories())
        source = "listing"
    if not categories:
        categories = summarise_listing(seed_categories(state.settings.scraper.index_url))
        source = "seed"

    log.info("categories_listed", source=source, count=len(categories))
    output = ListCategoriesOutput(source=source, categories=categories)
    return output.model_dump(mode="json")
