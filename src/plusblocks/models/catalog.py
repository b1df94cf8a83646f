"""Catalog taxonomy: contexts, blocks and variants, plus the persisted documents."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from plusblocks.slugs import generate_block_key


class Context(StrEnum):
    MARKETING = "marketing"
    APPLICATION_UI = "application-ui"
    ECOMMERCE = "ecommerce"

    @property
    def label(self) -> str:
        match self:
            case Context.MARKETING:
                return "Marketing"
            case Context.APPLICATION_UI:
                return "Application UI"
            case Context.ECOMMERCE:
                return "Ecommerce"

    @classmethod
    def from_heading(cls, text: str) -> Context | None:
        """Map an index-page section heading to its context (case-insensitive)."""
        normalised = text.strip().lower()
        for context in cls:
            if context.label.lower() == normalised:
                return context
        return None


class CodeFormat(StrEnum):
    REACT = "react"
    VUE = "vue"
    HTML = "html"

    @property
    def label(self) -> str:
        """Option text of the format dropdown on block pages."""
        match self:
            case CodeFormat.REACT:
                return "React"
            case CodeFormat.VUE:
                return "Vue"
            case CodeFormat.HTML:
                return "HTML"


class FrameworkVersion(StrEnum):
    V4_1 = "v4.1"
    V3_4 = "v3.4"

    @property
    def label(self) -> str:
        match self:
            case FrameworkVersion.V4_1:
                return "v4.1"
            case FrameworkVersion.V3_4:
                return "v3.4"


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"


def _now() -> datetime:
    return datetime.now(UTC)


class Variant(BaseModel):
    """One named example within a block, in page order."""

    index: int = Field(ge=0)
    name: str
    slug: str
    anchor_id: str  # "component-<hash>", re-locates the example on the page


class Block(BaseModel):
    name: str
    slug: str
    context: Context
    subcategory: str
    url: str
    description: str | None = None
    variant_count: int = 0
    variants: list[Variant] = []
    last_fetched_at: datetime | None = None

    @property
    def key(self) -> str:
        return generate_block_key(self.context, self.subcategory, self.slug)

    def find_variant(self, slug: str) -> Variant | None:
        return next((v for v in self.variants if v.slug == slug), None)


class BlockIndexEntry(BaseModel):
    """A block as listed on the index page, before its own page is visited."""

    name: str
    slug: str
    context: Context
    subcategory: str
    component_count: int
    url: str


class CategoryInfo(BaseModel):
    name: str
    slug: Context
    block_count: int
    subcategories: list[str]


class CatalogCategory(BaseModel):
    """Legacy flat listing entry: one block with its declared variant count."""

    name: str
    slug: str  # "<subcategory>/<block-slug>"
    context: Context
    subcategory: str | None = None
    component_count: int = 0
    url: str = ""
    last_fetched_at: datetime | None = None
    is_complete: bool = False


class CategoryCatalogStats(BaseModel):
    total_categories: int = 0
    total_blocks: int = 0
    total_cached_components: int = 0


class CategoryCatalogDocument(BaseModel):
    version: str = "2.0.0"
    generated_at: datetime = Field(default_factory=_now)
    last_updated_at: datetime = Field(default_factory=_now)
    contexts: dict[Context, list[CatalogCategory]] = Field(
        default_factory=lambda: {context: [] for context in Context}
    )
    stats: CategoryCatalogStats = CategoryCatalogStats()


class BlockCatalogStats(BaseModel):
    total_blocks: int = 0
    total_variants: int = 0
    total_cached_variants: int = 0


class BlockCatalogDocument(BaseModel):
    version: str = "3.0.0"
    generated_at: datetime = Field(default_factory=_now)
    last_updated_at: datetime = Field(default_factory=_now)
    blocks: dict[str, Block] = {}  # keyed by "<context>/<subcategory>/<slug>"
    stats: BlockCatalogStats = BlockCatalogStats()
