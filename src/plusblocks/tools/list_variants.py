"""Tool handler for list_variants.

No MCP or FastMCP imports; server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from plusblocks.errors import BlockNotFoundError, ErrorCode, PlusBlocksError
from plusblocks.models.tools import ListVariantsInput, ListVariantsOutput, VariantSummary

if TYPE_CHECKING:
    from plusblocks.state import AppState


async def handle(category: str, block: str, state: AppState) -> dict:
    """Handle a list_variants tool call."""
    log = structlog.get_logger().bind(tool="list_variants", category=category, block=block)
    log.info("handler_called")

    try:
        validated = ListVariantsInput(category=category, block=block)
    except ValueError as exc:
        raise PlusBlocksError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a category and a kebab-case block slug from list_blocks.",
            recoverable=False,
        ) from exc

    found = state.block_catalog.find_block(validated.category, validated.block)
    if found is None:
        raise BlockNotFoundError(validated.category, validated.block)

    output = ListVariantsOutput(
        category=found.context,
        block=found.slug,
        block_name=found.name,
        subcategory=found.subcategory,
        description=found.description,
        variant_count=len(found.variants),
        variants=[VariantSummary(index=v.index, name=v.name, slug=v.slug) for v in found.variants],
    )
    return output.model_dump(mode="json")
