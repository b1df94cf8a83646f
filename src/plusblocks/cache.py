"""On-disk cache of extracted variant code.

One JSON file per rendering under the cache directory, indexed by a
manifest. Entries expire a fixed TTL after the code was captured, not after
it was written.

The manifest is a write-behind buffer: mutations mark it dirty and schedule
one write after ``flush_delay`` seconds, so a burst of ``set`` calls costs a
single manifest write. ``flush()`` writes immediately.

Infrastructure errors never cross the class boundary: unreadable bodies are
treated as misses (and their entry dropped), failed writes are logged and
skipped, and a corrupt manifest starts the cache empty.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from plusblocks.fsutil import write_atomic
from plusblocks.models.cache import CacheEntry, CacheManifest, CacheStats, VariantCode, VariantStats
from plusblocks.slugs import block_key_prefix, generate_variant_cache_key, parse_variant_cache_key

if TYPE_CHECKING:
    from pathlib import Path

    from plusblocks.models.catalog import CodeFormat, Context, FrameworkVersion, Theme

log = structlog.get_logger()

DEFAULT_TTL = timedelta(days=7)


class VariantCache:
    def __init__(
        self,
        cache_dir: Path,
        manifest_path: Path,
        *,
        ttl: timedelta = DEFAULT_TTL,
        flush_delay: float = 1.0,
    ) -> None:
        self._cache_dir = cache_dir
        self._manifest_path = manifest_path
        self._ttl = ttl
        self._flush_delay = flush_delay
        self._manifest = self._load_manifest()
        self._dirty = False
        self._flush_task: asyncio.Task[None] | None = None

    @property
    def entry_count(self) -> int:
        return len(self._manifest.entries)

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self._manifest.entries.values())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(
        self,
        context: Context,
        block_slug: str,
        variant_slug: str,
        format: CodeFormat,
        theme: Theme,
        version: FrameworkVersion,
    ) -> VariantCode | None:
        """Return the cached rendering, or None on miss, expiry or read failure."""
        key = generate_variant_cache_key(context, block_slug, variant_slug, format, theme, version)
        entry = self._manifest.entries.get(key)
        if entry is None:
            return None

        if entry.is_expired():
            await self.delete(key)
            return None

        code = await self._read_body(key, entry)
        if code is None:
            await self.delete(key)
        return code

    def has(
        self,
        context: Context,
        block_slug: str,
        variant_slug: str,
        format: CodeFormat,
        theme: Theme,
        version: FrameworkVersion,
    ) -> bool:
        """True if a live entry exists; the body is not read."""
        key = generate_variant_cache_key(context, block_slug, variant_slug, format, theme, version)
        entry = self._manifest.entries.get(key)
        return entry is not None and not entry.is_expired()

    async def get_block_variants(self, context: Context, block_slug: str) -> list[VariantCode]:
        """All live renderings of one block, read from disk."""
        prefix = block_key_prefix(context, block_slug)
        results: list[VariantCode] = []
        for key, entry in list(self._manifest.entries.items()):
            if not key.startswith(prefix) or entry.is_expired():
                continue
            code = await self._read_body(key, entry)
            if code is not None:
                results.append(code)
        return results

    def variant_stats(self) -> VariantStats:
        """Live entry counts broken down by context and by format."""
        by_context: Counter[str] = Counter()
        by_format: Counter[str] = Counter()
        total_entries = 0
        total_size = 0
        for key, entry in self._manifest.entries.items():
            if entry.is_expired():
                continue
            fields = parse_variant_cache_key(key)
            if fields is None:
                continue
            by_context[fields["context"]] += 1
            by_format[fields["format"]] += 1
            total_entries += 1
            total_size += entry.size
        return VariantStats(
            total_entries=total_entries,
            total_size=total_size,
            by_context=dict(by_context),
            by_format=dict(by_format),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def set(self, code: VariantCode) -> None:
        """Persist one rendering and record it in the manifest. Non-fatal on failure."""
        key = code.cache_key
        file_name = f"{key}.json"
        payload = code.model_dump_json(indent=2).encode("utf-8")
        try:
            await asyncio.to_thread(write_atomic, self._cache_dir / file_name, payload)
        except OSError:
            log.warning("cache_write_error", key=key, exc_info=True)
            return

        captured_at = code.captured_at
        if captured_at.tzinfo is None:
            captured_at = captured_at.replace(tzinfo=UTC)
        self._manifest.entries[key] = CacheEntry(
            context=code.context,
            block_slug=code.block_slug,
            variant_slug=code.variant_slug,
            format=code.format,
            theme=code.theme,
            version=code.version,
            cached_at=captured_at,
            expires_at=captured_at + self._ttl,
            file_path=file_name,
            size=len(payload),
        )
        self._mark_dirty()

    async def delete(self, key: str) -> bool:
        entry = self._manifest.entries.pop(key, None)
        if entry is None:
            return False
        try:
            await asyncio.to_thread((self._cache_dir / entry.file_path).unlink, missing_ok=True)
        except OSError:
            log.warning("cache_delete_error", key=key, exc_info=True)
        self._mark_dirty()
        return True

    async def prune_expired(self) -> int:
        now = datetime.now(UTC)
        expired = [key for key, entry in self._manifest.entries.items() if entry.is_expired(now)]
        for key in expired:
            await self.delete(key)
        if expired:
            log.info("cache_pruned", removed=len(expired))
        return len(expired)

    async def clear_all(self) -> int:
        keys = list(self._manifest.entries)
        for key in keys:
            await self.delete(key)
        log.info("cache_cleared", removed=len(keys))
        return len(keys)

    # ------------------------------------------------------------------
    # Manifest persistence
    # ------------------------------------------------------------------

    async def flush(self) -> None:
        """Cancel any pending delayed write and persist the manifest now if dirty."""
        task, self._flush_task = self._flush_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        await self._write_manifest()

    async def close(self) -> None:
        await self.flush()

    def _mark_dirty(self) -> None:
        self._dirty = True
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = asyncio.get_running_loop().create_task(self._delayed_flush())

    async def _delayed_flush(self) -> None:
        await asyncio.sleep(self._flush_delay)
        self._flush_task = None
        await self._write_manifest()

    async def _write_manifest(self) -> None:
        if not self._dirty:
            return
        self._manifest.stats = CacheStats(total_size=self.total_size, entry_count=self.entry_count)
        payload = self._manifest.model_dump_json(indent=2).encode("utf-8")
        self._dirty = False
        try:
            await asyncio.to_thread(write_atomic, self._manifest_path, payload)
        except OSError:
            self._dirty = True
            log.warning("cache_manifest_write_error", path=str(self._manifest_path), exc_info=True)
            return
        log.debug("cache_manifest_written", entries=self._manifest.stats.entry_count)

    def _load_manifest(self) -> CacheManifest:
        if not self._manifest_path.is_file():
            return CacheManifest()
        try:
            return CacheManifest.model_validate_json(
                self._manifest_path.read_text(encoding="utf-8")
            )
        except (OSError, ValueError):
            log.warning("cache_manifest_unreadable", path=str(self._manifest_path), exc_info=True)
            return CacheManifest()

    async def _read_body(self, key: str, entry: CacheEntry) -> VariantCode | None:
        path = self._cache_dir / entry.file_path
        try:
            raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
            return VariantCode.model_validate_json(raw)
        except (OSError, ValueError):
            log.warning("cache_read_error", key=key, exc_info=True)
            return None
