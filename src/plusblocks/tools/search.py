"""Tool handler for search.

No MCP or FastMCP imports; server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from plusblocks.errors import ErrorCode, PlusBlocksError
from plusblocks.models.tools import SearchInput, SearchOutput
from plusblocks.search import search

if TYPE_CHECKING:
    from plusblocks.state import AppState


async def handle(query: str, category: str | None, limit: int, state: AppState) -> dict:
    """Handle a search tool call."""
    log = structlog.get_logger().bind(tool="search", query=query)
    log.info("handler_called", category=category, limit=limit)

    try:
        validated = SearchInput(query=query, category=category, limit=limit)
    except ValueError as exc:
        raise PlusBlocksError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a non-empty query (max 500 chars) and a limit between 1 and 100.",
            recoverable=False,
        ) from exc

    results = search(
        validated.query,
        state.block_catalog,
        context=validated.category,
        limit=validated.limit,
    )
    log.info("search_complete", result_count=len(results))

    output = SearchOutput(
        query=validated.query,
        category=validated.category or "all",
        result_count=len(results),
        results=results,
    )
    return output.model_dump(mode="json")
