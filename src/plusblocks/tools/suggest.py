"""Tool handler for suggest.

No MCP or FastMCP imports; server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from plusblocks.errors import ErrorCode, PlusBlocksError
from plusblocks.models.tools import SuggestInput, SuggestOutput
from plusblocks.search import suggest

if TYPE_CHECKING:
    from plusblocks.state import AppState


async def handle(building: str, already_used: list[str] | None, state: AppState) -> dict:
    """Handle a suggest tool call."""
    log = structlog.get_logger().bind(tool="suggest", building=building)
    log.info("handler_called")

    try:
        validated = SuggestInput(building=building, already_used=already_used or [])
    except ValueError as exc:
        raise PlusBlocksError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Describe what you are building in at most 500 characters.",
            recoverable=False,
        ) from exc

    suggestions = suggest(validated.building, state.block_catalog, validated.already_used)

    output = SuggestOutput(
        building=validated.building,
        excluded_count=len(validated.already_used),
        suggestion_count=len(suggestions),
        suggestions=suggestions,
    )
    return output.model_dump(mode="json")
