"""Tool handler for status: session, catalog freshness and cache size.

No MCP or FastMCP imports; server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from plusblocks import __version__
from plusblocks.models.tools import CacheStatus, CatalogStatus, StatusOutput

if TYPE_CHECKING:
    from plusblocks.state import AppState


def collect_status(state: AppState) -> StatusOutput:
    stats = state.block_catalog.stats()
    variant_stats = state.cache.variant_stats()
    return StatusOutput(
        version=__version__,
        data_dir=str(state.settings.root),
        auth=state.session.check_auth_state(),
        catalog=CatalogStatus(
            exists=state.block_catalog.exists(),
            block_count=stats.total_blocks if stats else 0,
            variant_count=stats.total_variants if stats else 0,
            last_updated_at=state.block_catalog.last_updated_at,
            needs_refresh=state.block_catalog.needs_refresh(),
        ),
        cache=CacheStatus(
            entry_count=variant_stats.total_entries,
            total_size=variant_stats.total_size,
            by_context=variant_stats.by_context,
            by_format=variant_stats.by_format,
        ),
    )


async def handle(state: AppState) -> dict:
    """Handle a status tool call."""
    log = structlog.get_logger().bind(tool="status")
    log.info("handler_called")
    return collect_status(state).model_dump(mode="json")
