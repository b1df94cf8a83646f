from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from plusblocks.models.catalog import CodeFormat, Context, FrameworkVersion, Theme
from plusblocks.slugs import generate_variant_cache_key


class VariantCode(BaseModel):
    """One extracted rendering of a variant."""

    context: Context
    block_slug: str
    variant_slug: str
    variant_name: str
    anchor_id: str
    format: CodeFormat
    version: FrameworkVersion
    theme: Theme
    code: str
    dependencies: list[str] = []  # npm packages imported by the code
    captured_at: datetime

    @property
    def cache_key(self) -> str:
        return generate_variant_cache_key(
            self.context,
            self.block_slug,
            self.variant_slug,
            self.format,
            self.theme,
            self.version,
        )


class CacheEntry(BaseModel):
    """Manifest record for one cached VariantCode body."""

    context: Context
    block_slug: str
    variant_slug: str
    format: CodeFormat
    theme: Theme
    version: FrameworkVersion
    cached_at: datetime
    expires_at: datetime
    file_path: str  # Relative to the cache directory
    size: int  # Body size in bytes

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(UTC)) > self.expires_at


class CacheStats(BaseModel):
    total_size: int = 0
    entry_count: int = 0


class CacheManifest(BaseModel):
    version: str = "2.0.0"
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    entries: dict[str, CacheEntry] = {}
    stats: CacheStats = CacheStats()


class VariantStats(BaseModel):
    total_entries: int
    total_size: int
    by_context: dict[str, int]
    by_format: dict[str, int]
