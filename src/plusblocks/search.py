"""Fuzzy search and "what are you building" suggestions over the block catalog.

Pure business logic: reads blocks from a BlockCatalog, returns models.
No knowledge of AppState, MCP, or the browser.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from rapidfuzz.distance import Levenshtein

from plusblocks.models.catalog import Context
from plusblocks.models.search import SearchResult, Suggestion

if TYPE_CHECKING:
    from plusblocks.catalog import BlockCatalog
    from plusblocks.models.catalog import Block

RESULT_THRESHOLD = 0.3
BLOCK_BOOST_THRESHOLD = 0.5
KEYWORD_THRESHOLD = 0.4
MAX_SUGGESTIONS = 6
RECOMMENDED_VARIANTS = 2

_WORD_SPLIT = re.compile(r"[\s-]+")

# Phrase -> (context, recommended block slugs in priority order)
CONTEXT_KEYWORDS: dict[str, tuple[Context, tuple[str, ...]]] = {
    "landing page": (
        Context.MARKETING,
        ("heroes", "cta-sections", "features", "pricing", "testimonials", "footers"),
    ),
    "saas": (
        Context.MARKETING,
        ("heroes", "pricing", "features", "testimonials", "cta-sections"),
    ),
    "portfolio": (Context.MARKETING, ("heroes", "portfolios", "contact-sections", "footers")),
    "dashboard": (
        Context.APPLICATION_UI,
        ("sidebars", "stacked-layouts", "stats", "tables", "lists"),
    ),
    "admin": (Context.APPLICATION_UI, ("sidebars", "tables", "forms", "stats", "overlays")),
    "settings": (
        Context.APPLICATION_UI,
        ("form-layouts", "headings", "vertical-navigation", "description-lists"),
    ),
    "store": (
        Context.ECOMMERCE,
        ("product-overviews", "product-lists", "shopping-carts", "category-filters"),
    ),
    "checkout": (Context.ECOMMERCE, ("checkout-forms", "order-summaries", "shopping-carts")),
    "product": (
        Context.ECOMMERCE,
        ("product-overviews", "product-quickviews", "product-features", "reviews"),
    ),
    "blog": (Context.MARKETING, ("blog-sections", "headers", "footers")),
    "auth": (Context.APPLICATION_UI, ("sign-in-and-registration", "forms")),
    "login": (Context.APPLICATION_UI, ("sign-in-and-registration",)),
    "modal": (Context.APPLICATION_UI, ("modal-dialogs", "overlays", "notifications")),
    "form": (
        Context.APPLICATION_UI,
        ("form-layouts", "forms", "input-groups", "select-menus"),
    ),
    "table": (Context.APPLICATION_UI, ("tables", "lists", "grid-lists")),
    "navigation": (
        Context.APPLICATION_UI,
        ("navbars", "sidebars", "vertical-navigation", "tabs"),
    ),
}

SUGGESTION_REASONS: dict[str, str] = {
    "heroes": "Eye-catching hero section to grab attention",
    "cta-sections": "Drive conversions with a call-to-action",
    "pricing": "Display your pricing plans clearly",
    "testimonials": "Add social proof to build trust",
    "features": "Showcase your product features",
    "footers": "Professional footer with links and info",
    "sidebars": "Navigation sidebar for your dashboard",
    "tables": "Display data in organized tables",
    "forms": "Collect user input with styled forms",
    "shopping-carts": "Shopping cart for your store",
    "product-overviews": "Showcase your products",
    "checkout-forms": "Streamline the checkout process",
    "sign-in-and-registration": "User authentication forms",
    "modal-dialogs": "Overlay dialogs for actions and confirmations",
    "navbars": "Top navigation for your site",
    "stats": "Display key metrics and statistics",
}


def levenshtein_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def calculate_similarity(first: str, second: str) -> float:
    """Score two strings from 0 to 1, case-insensitively.

    1.0 for equality, 0.9 when either contains the other. Otherwise the
    larger of (0.7 * word overlap + 0.3 * edit similarity) and the edit
    similarity alone. A word of ``first`` overlaps if some word of
    ``second`` equals it or contains it (or is contained by it).
    """
    s1 = first.lower()
    s2 = second.lower()

    if s1 == s2:
        return 1.0
    if s1 in s2 or s2 in s1:
        return 0.9

    words1 = _WORD_SPLIT.split(s1)
    words2 = _WORD_SPLIT.split(s2)
    matched = sum(
        1 for w1 in words1 if any(w1 == w2 or w2 in w1 or w1 in w2 for w2 in words2)
    )
    word_score = matched / max(len(words1), len(words2))

    max_len = max(len(s1), len(s2))
    edit_score = 1 - levenshtein_distance(s1, s2) / max_len

    return max(word_score * 0.7 + edit_score * 0.3, edit_score)


def search(
    query: str,
    catalog: BlockCatalog,
    *,
    context: Context | None = None,
    limit: int = 10,
    include_variants: bool = True,
) -> list[SearchResult]:
    """Rank blocks and variants against ``query``.

    Ties keep catalog order.
    """
    query_lower = query.lower()
    results: list[SearchResult] = []

    for block in catalog.get_blocks(context):
        name_score = calculate_similarity(block.name, query_lower)
        description_score = (
            calculate_similarity(block.description, query_lower) * 0.8 if block.description else 0.0
        )
        block_score = max(name_score, description_score)

        if block_score > RESULT_THRESHOLD:
            results.append(
                SearchResult(
                    type="block",
                    context=block.context,
                    block=block.slug,
                    block_name=block.name,
                    variant_count=block.variant_count,
                    relevance=block_score,
                )
            )

        if not include_variants:
            continue

        for variant in block.variants:
            score = calculate_similarity(variant.name, query_lower)
            if block_score > BLOCK_BOOST_THRESHOLD:
                score = score * 0.7 + block_score * 0.3
            if score > RESULT_THRESHOLD:
                results.append(
                    SearchResult(
                        type="variant",
                        context=block.context,
                        block=block.slug,
                        block_name=block.name,
                        variant=variant.slug,
                        variant_name=variant.name,
                        relevance=score,
                    )
                )

    results.sort(key=lambda r: r.relevance, reverse=True)
    return results[:limit]


def suggest(
    building: str,
    catalog: BlockCatalog,
    already_used: list[str] | None = None,
) -> list[Suggestion]:
    """Recommend blocks for a free-text description of what is being built.

    Matches the description against CONTEXT_KEYWORDS; with no keyword match,
    falls back to a block-only search. Slugs in ``already_used`` are skipped.
    """
    building_lower = building.lower()
    used = {slug.lower() for slug in already_used or []}

    matched = [
        (score, entry)
        for keyword, entry in CONTEXT_KEYWORDS.items()
        if (score := calculate_similarity(building_lower, keyword)) > KEYWORD_THRESHOLD
    ]
    matched.sort(key=lambda item: item[0], reverse=True)

    suggestions: list[Suggestion] = []
    seen: set[str] = set()
    for _, (context, slugs) in matched:
        for slug in slugs:
            if slug in used or slug in seen:
                continue
            seen.add(slug)
            block = catalog.find_block(context, slug)
            if block is not None:
                suggestions.append(
                    _suggestion(block, _reason(block, building_lower))
                )

    if not matched:
        for result in search(building, catalog, limit=5, include_variants=False):
            if result.block in used:
                continue
            block = catalog.find_block(result.context, result.block)
            if block is not None:
                suggestions.append(
                    _suggestion(block, f'Matches your search for "{building}"')
                )

    return suggestions[:MAX_SUGGESTIONS]


def _suggestion(block: Block, reason: str) -> Suggestion:
    return Suggestion(
        context=block.context,
        block=block.slug,
        block_name=block.name,
        reason=reason,
        recommended_variants=[v.slug for v in block.variants[:RECOMMENDED_VARIANTS]],
    )


def _reason(block: Block, building: str) -> str:
    return SUGGESTION_REASONS.get(block.slug, f"{block.name} components for your {building}")
