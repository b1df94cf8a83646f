"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the FastMCP lifespan context manager
- Register tools and the /health route
- Start the correct transport (stdio or HTTP)
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent
from starlette.responses import JSONResponse

import plusblocks.tools.get_variant as t_get_variant
import plusblocks.tools.list_blocks as t_list_blocks
import plusblocks.tools.list_categories as t_list_categories
import plusblocks.tools.list_variants as t_list_variants
import plusblocks.tools.login as t_login
import plusblocks.tools.search as t_search
import plusblocks.tools.status as t_status
import plusblocks.tools.suggest as t_suggest
from plusblocks import __version__
from plusblocks.cache import VariantCache
from plusblocks.config import Settings
from plusblocks.errors import PlusBlocksError
from plusblocks.session import SessionStore
from plusblocks.state import AppState, build_state
from plusblocks.transport import run_http_server

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from starlette.requests import Request

log = structlog.get_logger()

# Settings chosen by the process entrypoint; the lifespan falls back to loading them.
_settings: Settings | None = None
# State built by the running lifespan; /health reads it so it sees unflushed cache writes.
_active_state: AppState | None = None


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # Logs go to stderr: stdout carries the MCP JSON-RPC stream and CLI output
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = _settings or Settings()
    setup_logging(settings)

    log.info("server_starting", version=__version__, transport=settings.server.transport)

    global _active_state
    state = build_state(settings)
    _active_state = state
    auth = state.session.check_auth_state()
    if not auth.authenticated:
        log.warning(
            "server_not_authenticated",
            cookies_exist=auth.cookies_exist,
            cookies_expired=auth.cookies_expired,
        )
    pruned = await state.cache.prune_expired()

    catalog_stats = state.block_catalog.stats()
    log.info(
        "server_started",
        version=__version__,
        transport=settings.server.transport,
        authenticated=auth.authenticated,
        catalog_blocks=catalog_stats.total_blocks if catalog_stats else 0,
        catalog_variants=catalog_stats.total_variants if catalog_stats else 0,
        cache_entries=state.cache.entry_count,
        cache_pruned=pruned,
    )

    try:
        yield state
    finally:
        if _active_state is state:
            _active_state = None
        await state.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("plusblocks", lifespan=lifespan)
# FastMCP doesn't expose a version kwarg; set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: PlusBlocksError) -> CallToolResult:
    """Convert a PlusBlocksError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


async def _run_tool(tool: str, call: Callable[[], Awaitable[dict]]) -> object:
    try:
        return await call()
    except PlusBlocksError as exc:
        log.warning(
            "tool_error",
            tool=tool,
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool=tool, exc_info=True)
        raise


def _state(ctx: Context) -> AppState:
    return ctx.request_context.lifespan_context


@mcp.tool()
async def list_categories(ctx: Context) -> object:
    """List the top-level UI block categories with block counts.

    Categories: marketing (landing pages, heroes, pricing), application-ui
    (dashboards, forms, tables, modals) and ecommerce (products, carts,
    checkout). Each category holds blocks, and each block holds variants.
    """
    return await _run_tool("list_categories", lambda: t_list_categories.handle(_state(ctx)))


@mcp.tool()
async def list_blocks(category: str, ctx: Context, subcategory: str | None = None) -> object:
    """List the blocks of a category with their variant counts.

    category is one of marketing, application-ui, ecommerce. subcategory
    optionally narrows the list (e.g. "sections", "forms").
    """
    return await _run_tool(
        "list_blocks", lambda: t_list_blocks.handle(category, subcategory, _state(ctx))
    )


@mcp.tool()
async def list_variants(category: str, block: str, ctx: Context) -> object:
    """List the variants of one block. Pass the variant slugs to get_variant."""
    return await _run_tool(
        "list_variants", lambda: t_list_variants.handle(category, block, _state(ctx))
    )


@mcp.tool()
async def get_variant(
    category: str,
    block: str,
    variant: str,
    ctx: Context,
    format: str = "react",
    version: str = "v4.1",
    theme: str = "light",
) -> object:
    """Fetch the source code of one variant.

    Requires a signed-in session (run the login tool or 'plusblocks login').
    format: react, vue or html. version: v4.1 (latest) or v3.4 (legacy).
    theme: light or dark. Code is cached for 7 days after capture.
    """
    return await _run_tool(
        "get_variant",
        lambda: t_get_variant.handle(
            category, block, variant, format, version, theme, _state(ctx)
        ),
    )


@mcp.tool()
async def search(
    query: str, ctx: Context, category: str | None = None, limit: int = 10
) -> object:
    """Search blocks and variants by name and description, ranked by relevance."""
    return await _run_tool(
        "search", lambda: t_search.handle(query, category, limit, _state(ctx))
    )


@mcp.tool()
async def suggest(building: str, ctx: Context, already_used: list[str] | None = None) -> object:
    """Suggest blocks for what you are building, e.g. "SaaS landing page".

    already_used lists block slugs to leave out.
    """
    return await _run_tool(
        "suggest", lambda: t_suggest.handle(building, already_used, _state(ctx))
    )


@mcp.tool()
async def status(ctx: Context) -> object:
    """Report session state, catalog freshness and cache usage."""
    return await _run_tool("status", lambda: t_status.handle(_state(ctx)))


@mcp.tool()
async def login(ctx: Context) -> object:
    """Open a browser window on the server machine to sign in and save the session."""
    return await _run_tool("login", lambda: t_login.handle(_state(ctx)))


@mcp.custom_route("/health", methods=["GET"])
async def health(request: Request) -> JSONResponse:
    state = _active_state
    if state is not None:
        session, stats = state.session, state.cache.variant_stats()
    else:
        # No MCP session has started yet, so nothing is held in memory
        settings = _settings or Settings()
        session = SessionStore(settings.cookies_path)
        stats = VariantCache(settings.cache_dir, settings.cache_manifest_path).variant_stats()
    return JSONResponse(
        {
            "status": "ok",
            "server": "plusblocks",
            "version": __version__,
            "authenticated": session.check_auth_state().authenticated,
            "cache": {"total_variants": stats.total_entries, "total_size": stats.total_size},
        }
    )


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main(settings: Settings | None = None) -> None:
    global _settings
    _settings = settings or Settings()
    setup_logging(_settings)

    if _settings.server.transport == "http":
        run_http_server(mcp, _settings)
        return

    mcp.run()


if __name__ == "__main__":
    main()
