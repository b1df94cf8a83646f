from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from plusblocks.models.cache import VariantCode
from plusblocks.models.catalog import CategoryInfo, CodeFormat, Context, FrameworkVersion, Theme
from plusblocks.models.search import SearchResult, Suggestion
from plusblocks.models.session import AuthState
from plusblocks.slugs import to_kebab_case

# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


def _require_slug(value: str) -> str:
    """Accept only normalised kebab-case slugs, which are safe inside cache keys."""
    if to_kebab_case(value) != value:
        raise ValueError(f"{value!r} is not a kebab-case slug such as 'simple-centered'")
    return value


class ListBlocksInput(BaseModel):
    category: Context
    subcategory: str | None = None


class ListVariantsInput(BaseModel):
    category: Context
    block: str = Field(min_length=1, max_length=200)

    check_block = field_validator("block")(_require_slug)


class GetVariantInput(BaseModel):
    category: Context
    block: str = Field(min_length=1, max_length=200)
    variant: str = Field(min_length=1, max_length=200)
    format: CodeFormat = CodeFormat.REACT
    version: FrameworkVersion = FrameworkVersion.V4_1
    theme: Theme = Theme.LIGHT

    check_slugs = field_validator("block", "variant")(_require_slug)


class SearchInput(BaseModel):
    query: str = Field(min_length=1, max_length=500)
    category: Context | None = None
    limit: int = Field(default=10, ge=1, le=100)

    @field_validator("query")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("query must not be blank")
        return value


class SuggestInput(BaseModel):
    building: str = Field(min_length=1, max_length=500)
    already_used: list[str] = []


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class ListCategoriesOutput(BaseModel):
    # "catalog": synced blocks, "listing": legacy index listing, "seed": built-in list
    source: Literal["catalog", "listing", "seed"]
    categories: list[CategoryInfo]


class BlockSummary(BaseModel):
    name: str
    slug: str
    subcategory: str
    variant_count: int
    description: str | None = None


class ListBlocksOutput(BaseModel):
    category: Context
    subcategory: str
    block_count: int
    blocks: list[BlockSummary]


class VariantSummary(BaseModel):
    index: int
    name: str
    slug: str


class ListVariantsOutput(BaseModel):
    category: Context
    block: str
    block_name: str
    subcategory: str
    description: str | None = None
    variant_count: int
    variants: list[VariantSummary]


class GetVariantOutput(VariantCode):
    cached: bool


class SearchOutput(BaseModel):
    query: str
    category: str
    result_count: int
    results: list[SearchResult]


class SuggestOutput(BaseModel):
    building: str
    excluded_count: int
    suggestion_count: int
    suggestions: list[Suggestion]


class CatalogStatus(BaseModel):
    exists: bool
    block_count: int
    variant_count: int
    last_updated_at: datetime | None
    needs_refresh: bool


class CacheStatus(BaseModel):
    entry_count: int
    total_size: int
    by_context: dict[str, int]
    by_format: dict[str, int]


class StatusOutput(BaseModel):
    version: str
    data_dir: str
    auth: AuthState
    catalog: CatalogStatus
    cache: CacheStatus


class LoginOutput(BaseModel):
    authenticated: bool
    cookie_count: int
    message: str
