"""Tool handler for list_blocks.

No MCP or FastMCP imports; server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from plusblocks.errors import CatalogEmptyError, ErrorCode, PlusBlocksError
from plusblocks.models.tools import BlockSummary, ListBlocksInput, ListBlocksOutput

if TYPE_CHECKING:
    from plusblocks.state import AppState


async def handle(category: str, subcategory: str | None, state: AppState) -> dict:
    """Handle a list_blocks tool call."""
    log = structlog.get_logger().bind(tool="list_blocks", category=category)
    log.info("handler_called", subcategory=subcategory)

    try:
        validated = ListBlocksInput(category=category, subcategory=subcategory)
    except ValueError as exc:
        raise PlusBlocksError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Use one of: marketing, application-ui, ecommerce.",
            recoverable=False,
        ) from exc

    blocks = state.block_catalog.get_blocks(validated.category, validated.subcategory)
    if not blocks:
        if not state.block_catalog.get_blocks():
            raise CatalogEmptyError()
        where = validated.category
        if validated.subcategory:
            where = f"{validated.category}/{validated.subcategory}"
        raise PlusBlocksError(
            code=ErrorCode.BLOCK_NOT_FOUND,
            message=f"No blocks found in {where}.",
            suggestion="Try without the subcategory filter, or call list_categories.",
            recoverable=False,
        )

    output = ListBlocksOutput(
        category=validated.category,
        subcategory=validated.subcategory or "all",
        block_count=len(blocks),
        blocks=[
            BlockSummary(
                name=b.name,
                slug=b.slug,
                subcategory=b.subcategory,
                variant_count=b.variant_count,
                description=b.description,
            )
            for b in blocks
        ],
    )
    return output.model_dump(mode="json")
