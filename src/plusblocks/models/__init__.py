from __future__ import annotations

from plusblocks.models.cache import CacheEntry, CacheManifest, CacheStats, VariantCode, VariantStats
from plusblocks.models.catalog import (
    Block,
    BlockCatalogDocument,
    BlockIndexEntry,
    CatalogCategory,
    CategoryCatalogDocument,
    CategoryInfo,
    CodeFormat,
    Context,
    FrameworkVersion,
    Theme,
    Variant,
)
from plusblocks.models.search import SearchResult, Suggestion
from plusblocks.models.session import AuthState, CookieJar, CookieRecord

__all__ = [
    # taxonomy
    "Context",
    "CodeFormat",
    "FrameworkVersion",
    "Theme",
    # catalog
    "Block",
    "Variant",
    "BlockIndexEntry",
    "CategoryInfo",
    "CatalogCategory",
    "CategoryCatalogDocument",
    "BlockCatalogDocument",
    # cache
    "VariantCode",
    "CacheEntry",
    "CacheManifest",
    "CacheStats",
    "VariantStats",
    # session
    "CookieRecord",
    "CookieJar",
    "AuthState",
    # search
    "SearchResult",
    "Suggestion",
]
