from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from plusblocks.models.catalog import Context


class SearchResult(BaseModel):
    type: Literal["block", "variant"]
    context: Context
    block: str
    block_name: str
    variant: str | None = None
    variant_name: str | None = None
    variant_count: int | None = None
    relevance: float


class Suggestion(BaseModel):
    context: Context
    block: str
    block_name: str
    reason: str
    recommended_variants: list[str]
