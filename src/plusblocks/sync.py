"""Bulk catalog synchronisation.

Loads the block index once, then visits each block page exactly once with
``fetch_block_complete`` to capture its variants and (unless metadata-only)
every format/version rendering. Blocks are processed strictly in sequence.

Failure policy: an authentication failure stops the run, since every later
block would fail the same way. Any other per-block failure is logged and the
run moves on, keeping what was already persisted.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from plusblocks.errors import AuthRequiredError, BlockNotFoundError, ErrorCode, PlusBlocksError
from plusblocks.extract.variants import ALL_FORMATS, ALL_VERSIONS
from plusblocks.models.catalog import CatalogCategory, Context, Theme

if TYPE_CHECKING:
    from collections.abc import Callable

    from plusblocks.models.catalog import Block, BlockIndexEntry, CodeFormat, FrameworkVersion
    from plusblocks.state import AppState

log = structlog.get_logger()

SYNC_THEME = Theme.LIGHT


@dataclass
class SyncReport:
    synced_blocks: int = 0
    skipped_blocks: int = 0
    total_variants: int = 0
    total_codes: int = 0
    failed_blocks: list[str] = field(default_factory=list)
    # Set when the run stopped early on an authentication failure
    error: PlusBlocksError | None = None


async def sync_catalog(
    state: AppState,
    *,
    context: Context | None = None,
    block: str | None = None,
    force: bool = False,
    metadata_only: bool = False,
    on_progress: Callable[[str], None] | None = None,
) -> SyncReport:
    """Refresh the block catalog and cache from the live site.

    With ``block`` set (which requires ``context``), only that block is
    re-fetched; it must already be in the catalog. Otherwise every block on
    the index page (optionally limited to ``context``) is visited, skipping
    blocks that are already complete unless ``force`` is set.
    """
    if not state.session.check_auth_state().authenticated:
        raise AuthRequiredError()

    notify = on_progress or (lambda _message: None)
    formats: tuple[CodeFormat, ...] = () if metadata_only else ALL_FORMATS
    versions: tuple[FrameworkVersion, ...] = () if metadata_only else ALL_VERSIONS
    report = SyncReport()

    try:
        if block is not None:
            await _sync_single_block(state, context, block, formats, versions, report, notify)
        else:
            await _sync_all_blocks(
                state, context, force, metadata_only, formats, versions, report, notify
            )
    finally:
        await state.cache.flush()
        await state.block_catalog.set_cached_variant_count(state.cache.entry_count)

    log.info(
        "sync_complete",
        synced=report.synced_blocks,
        skipped=report.skipped_blocks,
        failed=len(report.failed_blocks),
        variants=report.total_variants,
        codes=report.total_codes,
        aborted=report.error is not None,
    )
    return report


async def _sync_single_block(
    state: AppState,
    context: Context | None,
    slug: str,
    formats: tuple[CodeFormat, ...],
    versions: tuple[FrameworkVersion, ...],
    report: SyncReport,
    notify: Callable[[str], None],
) -> None:
    if context is None:
        raise PlusBlocksError(
            code=ErrorCode.INVALID_INPUT,
            message="Syncing a single block requires its category.",
            suggestion="Pass --category together with --block.",
        )
    existing = state.block_catalog.find_block(context, slug)
    if existing is None:
        raise BlockNotFoundError(context, slug)

    notify(f"Syncing {context}/{slug}...")
    block, count = await _fetch_and_store(state, existing, formats, versions, notify)
    report.synced_blocks = 1
    report.total_variants = block.variant_count
    report.total_codes = count
    notify(f"{slug}: {block.variant_count} variants, {count} code files")


async def _sync_all_blocks(
    state: AppState,
    context: Context | None,
    force: bool,
    metadata_only: bool,
    formats: tuple[CodeFormat, ...],
    versions: tuple[FrameworkVersion, ...],
    report: SyncReport,
    notify: Callable[[str], None],
) -> None:
    notify(f"Loading block index from {state.settings.scraper.index_url}...")
    entries = await state.index_extractor.fetch_block_index()
    notify(f"Found {len(entries)} blocks across all categories")
    await _merge_listing(state, entries)

    targets = [e for e in entries if context is None or e.context == context]
    notify(f"Syncing {len(targets)} blocks" + (f" ({context})" if context else ""))

    recycle_interval = state.settings.browser.recycle_interval
    since_recycle = 0

    for position, entry in enumerate(targets, start=1):
        if recycle_interval > 0 and since_recycle >= recycle_interval:
            notify(f"Recycling browser after {since_recycle} blocks...")
            await state.browser.recycle()
            since_recycle = 0

        if not force:
            existing = state.block_catalog.get_block(entry.context, entry.subcategory, entry.slug)
            if existing is not None and _is_complete(state, existing, metadata_only):
                report.skipped_blocks += 1
                report.total_variants += len(existing.variants)
                notify(f"{entry.slug}: skipped (complete)")
                continue

        started = time.monotonic()
        log.info(
            "sync_block_started",
            position=position,
            total=len(targets),
            block=f"{entry.context}/{entry.subcategory}/{entry.slug}",
        )
        try:
            block, count = await _fetch_and_store(state, entry, formats, versions, notify)
        except AuthRequiredError as exc:
            log.error("sync_aborted_auth", block=entry.slug, code=exc.code)
            report.failed_blocks.append(entry.slug)
            report.error = exc
            notify(f"{entry.slug}: {exc.message} Run 'plusblocks login' to refresh.")
            break
        except Exception as exc:
            log.warning("sync_block_failed", block=entry.slug, exc_info=True)
            report.failed_blocks.append(entry.slug)
            notify(f"{entry.slug}: Error - {exc}")
            since_recycle += 1
            continue

        since_recycle += 1
        report.synced_blocks += 1
        report.total_variants += block.variant_count
        report.total_codes += count
        notify(
            f"[{position}/{len(targets)}] {entry.slug}: {block.variant_count} variants, "
            f"{count} code files ({time.monotonic() - started:.1f}s)"
        )
        if block.variant_count == 0:
            log.warning("sync_block_no_variants", block=entry.slug)
            notify(f"{entry.slug}: 0 variants found, possible rate limiting or page change")


async def _fetch_and_store(
    state: AppState,
    target: Block | BlockIndexEntry,
    formats: tuple[CodeFormat, ...],
    versions: tuple[FrameworkVersion, ...],
    notify: Callable[[str], None],
) -> tuple[Block, int]:
    def on_combo(variant: str, fmt: CodeFormat, version: FrameworkVersion) -> None:
        notify(f"  {variant} ({fmt}, {version})")

    block, codes = await state.variant_extractor.fetch_block_complete(
        target.context,
        target.subcategory,
        target.slug,
        formats,
        versions,
        SYNC_THEME,
        on_combo,
    )
    await state.block_catalog.set_block(block)
    for code in codes:
        await state.cache.set(code)
    return block, len(codes)


def _is_complete(state: AppState, block: Block, metadata_only: bool) -> bool:
    """True if the block has variants and, unless metadata-only, every rendering is cached."""
    if not block.variants:
        return False
    if metadata_only:
        return True
    return all(
        state.cache.has(block.context, block.slug, variant.slug, fmt, SYNC_THEME, version)
        for variant in block.variants
        for fmt in ALL_FORMATS
        for version in ALL_VERSIONS
    )


async def _merge_listing(state: AppState, entries: list[BlockIndexEntry]) -> None:
    """Record the index page in the flat per-context listing."""
    for context in Context:
        listing = [
            CatalogCategory(
                name=entry.name,
                slug=f"{entry.subcategory}/{entry.slug}",
                context=entry.context,
                subcategory=entry.subcategory,
                component_count=entry.component_count,
                url=entry.url,
            )
            for entry in entries
            if entry.context == context
        ]
        if listing:
            await state.category_catalog.merge(context, listing)
