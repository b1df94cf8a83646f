"""Tool handler for get_variant.

Receives AppState, checks the session, serves from the cache when possible
and otherwise drives the browser to extract the code, caching the result.
No MCP or FastMCP imports; server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from plusblocks.errors import (
    AuthRequiredError,
    BlockNotFoundError,
    ErrorCode,
    PlusBlocksError,
    VariantNotFoundError,
)
from plusblocks.models.tools import GetVariantInput, GetVariantOutput

if TYPE_CHECKING:
    from plusblocks.state import AppState


async def handle(
    category: str,
    block: str,
    variant: str,
    format: str,
    version: str,
    theme: str,
    state: AppState,
) -> dict:
    """Handle a get_variant tool call."""
    log = structlog.get_logger().bind(
        tool="get_variant", category=category, block=block, variant=variant
    )
    log.info("handler_called", format=format, version=version, theme=theme)

    try:
        validated = GetVariantInput(
            category=category,
            block=block,
            variant=variant,
            format=format,
            version=version,
            theme=theme,
        )
    except ValueError as exc:
        raise PlusBlocksError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion=(
                "Use block and variant slugs from list_blocks and list_variants. "
                "format must be react, vue or html; version v4.1 or v3.4; theme light or dark."
            ),
            recoverable=False,
        ) from exc

    auth = state.session.check_auth_state()
    if not auth.authenticated:
        if auth.cookies_expired:
            raise AuthRequiredError("Stored session cookies have expired.")
        raise AuthRequiredError()

    cached = await state.cache.get(
        validated.category,
        validated.block,
        validated.variant,
        validated.format,
        validated.theme,
        validated.version,
    )
    if cached is not None:
        log.info("cache_hit")
        return GetVariantOutput(**cached.model_dump(), cached=True).model_dump(mode="json")

    found = state.block_catalog.find_block(validated.category, validated.block)
    if found is None:
        raise BlockNotFoundError(validated.category, validated.block)
    target = found.find_variant(validated.variant)
    if target is None:
        raise VariantNotFoundError(found.slug, validated.variant)

    log.info("cache_miss", variant_index=target.index)
    code = await state.variant_extractor.fetch_variant_code(
        validated.category,
        found.subcategory,
        found.slug,
        target.index,
        validated.format,
        validated.version,
        validated.theme,
    )
    await state.cache.set(code)

    return GetVariantOutput(**code.model_dump(), cached=False).model_dump(mode="json")
