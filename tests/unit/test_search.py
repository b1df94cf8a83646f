"""Unit tests for plusblocks.search."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from plusblocks.models.catalog import Context
from plusblocks.search import (
    MAX_SUGGESTIONS,
    SUGGESTION_REASONS,
    calculate_similarity,
    levenshtein_distance,
    search,
    suggest,
)

if TYPE_CHECKING:
    from plusblocks.catalog import BlockCatalog


class TestSimilarity:
    def test_identical_is_one(self) -> None:
        assert calculate_similarity("Pricing", "pricing") == 1.0

    def test_containment_is_point_nine(self) -> None:
        assert calculate_similarity("pricing", "pricing table") == 0.9
        assert calculate_similarity("pricing table", "pricing") == 0.9

    def test_unrelated_scores_low(self) -> None:
        assert calculate_similarity("checkout", "avatar") < 0.3

    def test_word_overlap_beats_edit_distance(self) -> None:
        score = calculate_similarity("hero dark", "dark hero")
        assert score > 0.7

    @pytest.mark.parametrize(("a", "b"), [("hero", "heroes"), ("form", "forms layout")])
    def test_bounded(self, a: str, b: str) -> None:
        assert 0.0 <= calculate_similarity(a, b) <= 1.0

    def test_levenshtein_distance(self) -> None:
        assert levenshtein_distance("kitten", "sitting") == 3


class TestSearch:
    def test_exact_block_name_ranks_first(self, block_catalog: BlockCatalog) -> None:
        results = search("tables", block_catalog)
        assert results[0].type == "block"
        assert results[0].block == "tables"
        assert results[0].relevance == 1.0

    def test_variants_included(self, block_catalog: BlockCatalog) -> None:
        results = search("with checkboxes", block_catalog)
        variant_hits = [r for r in results if r.type == "variant"]
        assert variant_hits[0].variant == "with-checkboxes"
        assert variant_hits[0].block == "tables"

    def test_include_variants_false(self, block_catalog: BlockCatalog) -> None:
        results = search("tables", block_catalog, include_variants=False)
        assert all(r.type == "block" for r in results)

    def test_context_filter(self, block_catalog: BlockCatalog) -> None:
        results = search("sections", block_catalog, context=Context.ECOMMERCE)
        assert all(r.context == Context.ECOMMERCE for r in results)

    def test_sorted_and_limited(self, block_catalog: BlockCatalog) -> None:
        results = search("s", block_catalog, limit=3)
        assert len(results) <= 3
        relevances = [r.relevance for r in results]
        assert relevances == sorted(relevances, reverse=True)

    def test_description_contributes(self, block_catalog: BlockCatalog) -> None:
        results = search("happy customers", block_catalog, include_variants=False)
        assert results
        assert results[0].block == "testimonials"
        # Description matches are discounted
        assert results[0].relevance == pytest.approx(0.9 * 0.8)

    def test_no_match_is_empty(self, block_catalog: BlockCatalog) -> None:
        assert search("zzzzqqqq", block_catalog) == []


class TestSuggest:
    def test_keyword_match_uses_catalog_blocks(self, block_catalog: BlockCatalog) -> None:
        suggestions = suggest("admin dashboard", block_catalog)
        slugs = [s.block for s in suggestions]
        assert "sidebars" in slugs
        assert "tables" in slugs
        sidebars = next(s for s in suggestions if s.block == "sidebars")
        assert sidebars.reason == SUGGESTION_REASONS["sidebars"]
        assert sidebars.recommended_variants == ["dark"]

    def test_already_used_excluded(self, block_catalog: BlockCatalog) -> None:
        suggestions = suggest("admin dashboard", block_catalog, already_used=["sidebars"])
        assert "sidebars" not in [s.block for s in suggestions]

    def test_no_duplicates_and_capped(self, block_catalog: BlockCatalog) -> None:
        suggestions = suggest("saas landing page", block_catalog)
        slugs = [s.block for s in suggestions]
        assert len(slugs) == len(set(slugs))
        assert len(slugs) <= MAX_SUGGESTIONS

    def test_recommended_variants_are_first_two(self, block_catalog: BlockCatalog) -> None:
        suggestions = suggest("saas landing page", block_catalog)
        testimonials = next(s for s in suggestions if s.block == "testimonials")
        assert testimonials.recommended_variants == ["simple-centered", "with-large-avatar"]

    def test_fallback_search_without_keyword(self, block_catalog: BlockCatalog) -> None:
        suggestions = suggest("shopping carts", block_catalog)
        assert suggestions[0].block == "shopping-carts"
        assert suggestions[0].reason == 'Matches your search for "shopping carts"'
