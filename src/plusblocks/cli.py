"""Command-line interface.

With no subcommand, starts the MCP server: stdio by default, Streamable HTTP
with ``--remote``. Subcommands run one operation against the local state
directory and exit 0 on success, 1 on a reported error.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import TYPE_CHECKING

import plusblocks.tools.get_variant as t_get_variant
import plusblocks.tools.list_blocks as t_list_blocks
import plusblocks.tools.list_categories as t_list_categories
import plusblocks.tools.list_variants as t_list_variants
import plusblocks.tools.search as t_search
from plusblocks import __version__
from plusblocks.config import LoggingSettings, Settings
from plusblocks.errors import PlusBlocksError
from plusblocks.models.catalog import CodeFormat, Context, FrameworkVersion, Theme
from plusblocks.server import main as serve
from plusblocks.server import setup_logging
from plusblocks.session import interactive_login
from plusblocks.state import build_state
from plusblocks.sync import sync_catalog
from plusblocks.tools.status import collect_status

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from plusblocks.state import AppState

_CONTEXTS = [c.value for c in Context]


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="plusblocks",
        description="MCP server and CLI for Tailwind Plus UI block source code.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "--remote",
        nargs="?",
        type=int,
        const=0,
        metavar="PORT",
        help="Serve over HTTP instead of stdio (port from PORT, --port, or config)",
    )
    p.add_argument("--port", type=int, help="HTTP port for --remote")

    sub = p.add_subparsers(dest="cmd")

    sub.add_parser("login", help="Sign in through a visible browser and save the session")
    sub.add_parser("status", help="Show session, catalog and cache status")
    sub.add_parser("list-categories", help="List top-level categories")

    blocks = sub.add_parser("list-blocks", help="List the blocks of a category")
    blocks.add_argument("category", choices=_CONTEXTS)
    blocks.add_argument("--subcategory", help="Only blocks in this subcategory")

    variants = sub.add_parser("list-variants", help="List the variants of a block")
    variants.add_argument("category", choices=_CONTEXTS)
    variants.add_argument("block", help="Block slug, e.g. testimonials")

    get = sub.add_parser("get-variant", help="Print the code of one variant")
    get.add_argument("category", choices=_CONTEXTS)
    get.add_argument("block", help="Block slug")
    get.add_argument("variant", help="Variant slug")
    get.add_argument("--format", default=CodeFormat.REACT, choices=[f.value for f in CodeFormat])
    get.add_argument(
        "--version",
        dest="framework_version",
        default=FrameworkVersion.V4_1,
        choices=[v.value for v in FrameworkVersion],
    )
    get.add_argument("--theme", default=Theme.LIGHT, choices=[t.value for t in Theme])

    find = sub.add_parser("search", help="Search blocks and variants")
    find.add_argument("query")
    find.add_argument("--category", choices=_CONTEXTS)
    find.add_argument("--limit", type=int, default=10)

    sync = sub.add_parser("sync-catalog", help="Sync the catalog and download variant code")
    sync.add_argument("--category", choices=_CONTEXTS, help="Only blocks in this category")
    sync.add_argument("--block", help="Re-sync one block already in the catalog")
    sync.add_argument("--force", action="store_true", help="Re-sync blocks that are complete")
    sync.add_argument(
        "--metadata-only", action="store_true", help="Record variants, skip code download"
    )
    sync.add_argument("--verbose", action="store_true", help="Show per-rendering progress")

    clear = sub.add_parser("clear-cache", help="Delete cached variant code")
    clear.add_argument("--expired", action="store_true", help="Only delete expired entries")

    return p


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _print_json(data: dict) -> None:
    print(json.dumps(data, indent=2))


async def _login(state: AppState, args: argparse.Namespace) -> int:
    print("Opening a browser window. Sign in to Tailwind Plus to continue...")
    jar = await interactive_login(state.browser, state.session, state.settings.scraper)
    print(f"Saved {len(jar.cookies)} cookies to {state.session.path}")
    return 0


async def _status(state: AppState, args: argparse.Namespace) -> int:
    report = collect_status(state)
    auth = report.auth
    if auth.authenticated:
        auth_line = "signed in"
    elif auth.cookies_expired:
        auth_line = "session expired, run 'plusblocks login'"
    else:
        auth_line = "not signed in, run 'plusblocks login'"

    print(f"plusblocks {report.version}")
    print(f"  Data dir: {report.data_dir}")
    print(f"  Auth:     {auth_line}")
    if report.catalog.exists and report.catalog.last_updated_at is not None:
        freshness = "stale" if report.catalog.needs_refresh else "fresh"
        print(
            f"  Catalog:  {report.catalog.block_count} blocks, "
            f"{report.catalog.variant_count} variants ({freshness}, "
            f"updated {report.catalog.last_updated_at:%Y-%m-%d %H:%M})"
        )
    else:
        print("  Catalog:  not synced, run 'plusblocks sync-catalog'")
    print(
        f"  Cache:    {report.cache.entry_count} entries, "
        f"{report.cache.total_size / 1024:.1f} KiB"
    )
    return 0


async def _list_categories(state: AppState, args: argparse.Namespace) -> int:
    _print_json(await t_list_categories.handle(state))
    return 0


async def _list_blocks(state: AppState, args: argparse.Namespace) -> int:
    _print_json(await t_list_blocks.handle(args.category, args.subcategory, state))
    return 0


async def _list_variants(state: AppState, args: argparse.Namespace) -> int:
    _print_json(await t_list_variants.handle(args.category, args.block, state))
    return 0


async def _get_variant(state: AppState, args: argparse.Namespace) -> int:
    result = await t_get_variant.handle(
        args.category,
        args.block,
        args.variant,
        args.format,
        args.framework_version,
        args.theme,
        state,
    )
    print(result["code"])
    source = "cache" if result["cached"] else "site"
    deps = ", ".join(result["dependencies"]) or "none"
    print(f"\n# {result['variant_name']} ({source}; dependencies: {deps})", file=sys.stderr)
    return 0


async def _search(state: AppState, args: argparse.Namespace) -> int:
    _print_json(await t_search.handle(args.query, args.category, args.limit, state))
    return 0


async def _sync(state: AppState, args: argparse.Namespace) -> int:
    if args.force:
        print("Force mode: re-syncing all blocks")
    if args.metadata_only:
        print("Metadata-only mode: skipping code download")

    def on_progress(message: str) -> None:
        # Per-rendering lines are indented; only shown with --verbose
        if args.verbose or not message.startswith("  "):
            print(message, flush=True)

    report = await sync_catalog(
        state,
        context=Context(args.category) if args.category else None,
        block=args.block,
        force=args.force,
        metadata_only=args.metadata_only,
        on_progress=on_progress,
    )
    print(
        f"\nSynced: {report.synced_blocks} blocks, {report.total_variants} variants, "
        f"{report.total_codes} code files"
    )
    print(f"Skipped: {report.skipped_blocks} blocks (already complete)")
    if report.failed_blocks:
        print(f"Failed: {', '.join(report.failed_blocks)}")
    if report.error is not None:
        raise report.error
    return 0


async def _clear_cache(state: AppState, args: argparse.Namespace) -> int:
    if args.expired:
        removed = await state.cache.prune_expired()
        print(f"Cleared {removed} expired cache entries")
    else:
        removed = await state.cache.clear_all()
        print(f"Cleared {removed} cache entries")
    return 0


_COMMANDS: dict[str, Callable[[AppState, argparse.Namespace], Awaitable[int]]] = {
    "login": _login,
    "status": _status,
    "list-categories": _list_categories,
    "list-blocks": _list_blocks,
    "list-variants": _list_variants,
    "get-variant": _get_variant,
    "search": _search,
    "sync-catalog": _sync,
    "clear-cache": _clear_cache,
}


async def run_command(settings: Settings, args: argparse.Namespace) -> int:
    """Run one subcommand; PlusBlocksError becomes exit code 1."""
    state = build_state(settings)
    try:
        return await _COMMANDS[args.cmd](state, args)
    except PlusBlocksError as exc:
        print(f"Error [{exc.code}]: {exc.message}", file=sys.stderr)
        print(f"  {exc.suggestion}", file=sys.stderr)
        return 1
    finally:
        await state.aclose()


def _remote_port(args: argparse.Namespace, settings: Settings) -> int:
    if args.remote:
        return args.remote
    if args.port:
        return args.port
    env_port = os.environ.get("PORT")
    if env_port:
        return int(env_port)
    return settings.server.port


def main(argv: list[str] | None = None) -> None:
    args = build_arg_parser().parse_args(argv)
    settings = Settings()

    if args.cmd is None:
        if args.remote is not None:
            settings.server.transport = "http"
            settings.server.port = _remote_port(args, settings)
        serve(settings)
        return

    verbose = getattr(args, "verbose", False)
    settings.logging = LoggingSettings(
        level="INFO" if verbose else "WARNING",
        format="text",
    )
    setup_logging(settings)
    sys.exit(asyncio.run(run_command(settings, args)))
