"""Binding page controls to the variant they affect.

A block page repeats the same control set (Preview/Code tabs, format and
version dropdowns, theme toggle) once per variant. Each strategy answers
"which control belongs to this variant"; the extractor asks them in order
and uses the first answer that works.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol

from plusblocks.models.catalog import CodeFormat, FrameworkVersion

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

    from plusblocks.models.catalog import Variant

CODE_TAB_NAME = "Code"
DARK_THEME_SELECTOR = 'input[type="radio"][value="dark"], [aria-label*="Dark"]'

_FORMAT_OPTION = re.compile("|".join(re.escape(fmt.label) for fmt in CodeFormat))
_VERSION_OPTION = re.compile("|".join(re.escape(v.label) for v in FrameworkVersion))


class ControlStrategy(Protocol):
    name: str

    async def code_tab(self, page: Page, variant: Variant) -> Locator | None: ...

    async def format_select(self, page: Page, variant: Variant) -> Locator | None: ...

    async def version_select(self, page: Page, variant: Variant) -> Locator | None: ...

    async def theme_toggle(self, page: Page, variant: Variant) -> Locator | None: ...


def _selects_with_options(scope: Page | Locator, page: Page, pattern: re.Pattern[str]) -> Locator:
    return scope.locator("select").filter(has=page.locator("option", has_text=pattern))


class ScopedControlStrategy:
    """Controls inside the element carrying the variant's anchor id.

    Only answers when the anchored section holds exactly one matching
    control, so an anchor on a bare heading never binds a neighbour's tab.
    """

    name = "scoped"

    def _scope(self, page: Page, variant: Variant) -> Locator:
        return page.locator(f'[id="{variant.anchor_id}"]')

    async def _single(self, locator: Locator) -> Locator | None:
        return locator if await locator.count() == 1 else None

    async def code_tab(self, page: Page, variant: Variant) -> Locator | None:
        scope = self._scope(page, variant)
        return await self._single(scope.get_by_role("tab", name=CODE_TAB_NAME, exact=True))

    async def format_select(self, page: Page, variant: Variant) -> Locator | None:
        scope = self._scope(page, variant)
        return await self._single(_selects_with_options(scope, page, _FORMAT_OPTION))

    async def version_select(self, page: Page, variant: Variant) -> Locator | None:
        scope = self._scope(page, variant)
        return await self._single(_selects_with_options(scope, page, _VERSION_OPTION))

    async def theme_toggle(self, page: Page, variant: Variant) -> Locator | None:
        scope = self._scope(page, variant)
        return await self._single(scope.locator(DARK_THEME_SELECTOR))


class PositionalControlStrategy:
    """The k-th control of its kind in document order belongs to variant k.

    Format falls back to the first dropdown when there are fewer dropdowns
    than variants (a page-wide selector). Version and theme use the first
    matching control on the page.
    """

    name = "positional"

    async def code_tab(self, page: Page, variant: Variant) -> Locator | None:
        tabs = page.get_by_role("tab", name=CODE_TAB_NAME, exact=True)
        if await tabs.count() <= variant.index:
            return None
        return tabs.nth(variant.index)

    async def format_select(self, page: Page, variant: Variant) -> Locator | None:
        selects = page.locator("select")
        count = await selects.count()
        if count > variant.index:
            return selects.nth(variant.index)
        if count > 0:
            return selects.first
        return None

    async def version_select(self, page: Page, variant: Variant) -> Locator | None:
        selects = _selects_with_options(page, page, _VERSION_OPTION)
        return selects.first if await selects.count() > 0 else None

    async def theme_toggle(self, page: Page, variant: Variant) -> Locator | None:
        toggles = page.locator(DARK_THEME_SELECTOR)
        return toggles.first if await toggles.count() > 0 else None


DEFAULT_STRATEGIES: tuple[ControlStrategy, ...] = (
    ScopedControlStrategy(),
    PositionalControlStrategy(),
)
