"""Unit tests for plusblocks.extract.index."""

from __future__ import annotations

import pytest

from plusblocks.extract.index import absolute_url, parse_block_index, parse_link_text
from plusblocks.models.catalog import Context

SITE = "https://tailwindcss.com"


def _heading(text: str) -> dict:
    return {"kind": "heading", "text": text, "href": None}


def _link(text: str, href: str | None) -> dict:
    return {"kind": "link", "text": text, "href": href}


class TestParseLinkText:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Hero Sections12 components", ("Hero Sections", 12)),
            ("Testimonials 8 components", ("Testimonials", 8)),
            ("  Page\n  Headings 1 component ", ("Page Headings", 1)),
            ("Stats 3 examples", ("Stats", 3)),
        ],
    )
    def test_parses(self, text: str, expected: tuple[str, int]) -> None:
        assert parse_link_text(text) == expected

    @pytest.mark.parametrize("text", ["Browse all", "Hero Sections", ""])
    def test_rejects(self, text: str) -> None:
        assert parse_link_text(text) is None


def test_absolute_url() -> None:
    assert absolute_url("/plus/ui-blocks/marketing", SITE) == f"{SITE}/plus/ui-blocks/marketing"
    assert absolute_url("https://other.example/x", SITE) == "https://other.example/x"


class TestParseBlockIndex:
    def test_groups_links_under_context_headings(self) -> None:
        nodes = [
            _link("Pricing 4 components", "/plus/ui-blocks/marketing/sections/pricing"),
            _heading("Marketing"),
            _link("Hero Sections 12 components", "/plus/ui-blocks/marketing/sections/heroes"),
            _heading("Page Sections"),
            _link("Testimonials 8 components", "/plus/ui-blocks/marketing/sections/testimonials"),
            _link("Hero Sections 12 components", "/plus/ui-blocks/marketing/sections/heroes"),
            _heading("Application UI"),
            _link("Tables 19 components", "/plus/ui-blocks/application-ui/lists/tables"),
            _link("Docs", "/docs/installation"),
        ]

        entries = parse_block_index(nodes, SITE)

        assert [(e.context, e.slug) for e in entries] == [
            (Context.MARKETING, "heroes"),
            (Context.MARKETING, "testimonials"),
            (Context.APPLICATION_UI, "tables"),
        ]
        heroes = entries[0]
        assert heroes.name == "Hero Sections"
        assert heroes.subcategory == "sections"
        assert heroes.component_count == 12
        assert heroes.url == f"{SITE}/plus/ui-blocks/marketing/sections/heroes"

    def test_link_must_point_into_current_context(self) -> None:
        nodes = [
            _heading("Ecommerce"),
            _link("Tables 19 components", "/plus/ui-blocks/application-ui/lists/tables"),
            _link(
                "Shopping Carts 6 components",
                "/plus/ui-blocks/ecommerce/components/shopping-carts#top",
            ),
        ]

        entries = parse_block_index(nodes, SITE)

        assert len(entries) == 1
        assert entries[0].slug == "shopping-carts"
        assert entries[0].subcategory == "components"

    def test_same_slug_in_two_contexts_is_kept(self) -> None:
        nodes = [
            _heading("Marketing"),
            _link("Headers 11 components", "/plus/ui-blocks/marketing/elements/headers"),
            _heading("Application UI"),
            _link("Headers 3 components", "/plus/ui-blocks/application-ui/headings/headers"),
        ]
        assert len(parse_block_index(nodes, SITE)) == 2

    def test_empty_page(self) -> None:
        assert parse_block_index([], SITE) == []
