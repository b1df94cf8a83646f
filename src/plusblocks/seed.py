"""Built-in block listing used when no catalog has been synced yet.

Mirrors the index page at the time of writing. Counts are the declared
example counts, not verified variant counts.
"""

from __future__ import annotations

from plusblocks.models.catalog import CatalogCategory, Context

_M = Context.MARKETING
_A = Context.APPLICATION_UI
_E = Context.ECOMMERCE

# (name, "<subcategory>/<block-slug>", context, example count, index section)
_ROWS: tuple[tuple[str, str, Context, int, str], ...] = (
    # Marketing - Page Sections
    ("Hero Sections", "sections/heroes", _M, 12, "PAGE SECTIONS"),
    ("Feature Sections", "sections/feature-sections", _M, 15, "PAGE SECTIONS"),
    ("CTA Sections", "sections/cta-sections", _M, 11, "PAGE SECTIONS"),
    ("Bento Grids", "sections/bento-grids", _M, 3, "PAGE SECTIONS"),
    ("Pricing Sections", "sections/pricing", _M, 12, "PAGE SECTIONS"),
    ("Header Sections", "sections/header", _M, 8, "PAGE SECTIONS"),
    ("Newsletter Sections", "sections/newsletter-sections", _M, 6, "PAGE SECTIONS"),
    ("Stats", "sections/stats-sections", _M, 8, "PAGE SECTIONS"),
    ("Testimonials", "sections/testimonials", _M, 8, "PAGE SECTIONS"),
    ("Blog Sections", "sections/blog-sections", _M, 7, "PAGE SECTIONS"),
    ("Contact Sections", "sections/contact-sections", _M, 7, "PAGE SECTIONS"),
    ("Team Sections", "sections/team-sections", _M, 9, "PAGE SECTIONS"),
    ("Content Sections", "sections/content-sections", _M, 7, "PAGE SECTIONS"),
    ("Logo Clouds", "sections/logo-clouds", _M, 6, "PAGE SECTIONS"),
    ("FAQs", "sections/faq-sections", _M, 7, "PAGE SECTIONS"),
    ("Footers", "sections/footers", _M, 7, "PAGE SECTIONS"),
    # Marketing - Elements
    ("Headers", "elements/headers", _M, 11, "ELEMENTS"),
    ("Flyout Menus", "elements/flyout-menus", _M, 7, "ELEMENTS"),
    ("Banners", "elements/banners", _M, 13, "ELEMENTS"),
    # Marketing - Feedback
    ("404 Pages", "feedback/404-pages", _M, 5, "FEEDBACK"),
    # Marketing - Page Examples
    ("Landing Pages", "page-examples/landing-pages", _M, 4, "PAGE EXAMPLES"),
    ("Pricing Pages", "page-examples/pricing-pages", _M, 3, "PAGE EXAMPLES"),
    ("About Pages", "page-examples/about-pages", _M, 3, "PAGE EXAMPLES"),

    # Application UI - Application Shells
    ("Stacked Layouts", "application-shells/stacked", _A, 9, "APPLICATION SHELLS"),
    ("Sidebar Layouts", "application-shells/sidebar", _A, 8, "APPLICATION SHELLS"),
    ("Multi-Column Layouts", "application-shells/multi-column", _A, 6, "APPLICATION SHELLS"),
    # Application UI - Headings
    ("Page Headings", "headings/page-headings", _A, 9, "HEADINGS"),
    ("Card Headings", "headings/card-headings", _A, 6, "HEADINGS"),
    ("Section Headings", "headings/section-headings", _A, 10, "HEADINGS"),
    # Application UI - Data Display
    ("Description Lists", "data-display/description-lists", _A, 6, "DATA DISPLAY"),
    ("Stats", "data-display/stats", _A, 5, "DATA DISPLAY"),
    ("Calendars", "data-display/calendars", _A, 8, "DATA DISPLAY"),
    # Application UI - Lists
    ("Stacked Lists", "lists/stacked-lists", _A, 15, "LISTS"),
    ("Tables", "lists/tables", _A, 19, "LISTS"),
    ("Grid Lists", "lists/grid-lists", _A, 7, "LISTS"),
    ("Feeds", "lists/feeds", _A, 3, "LISTS"),
    # Application UI - Forms
    ("Form Layouts", "forms/form-layouts", _A, 4, "FORMS"),
    ("Input Groups", "forms/input-groups", _A, 21, "FORMS"),
    ("Select Menus", "forms/select-menus", _A, 7, "FORMS"),
    ("Sign-in and Registration", "forms/sign-in-forms", _A, 4, "FORMS"),
    ("Textareas", "forms/textareas", _A, 5, "FORMS"),
    ("Radio Groups", "forms/radio-groups", _A, 12, "FORMS"),
    ("Checkboxes", "forms/checkboxes", _A, 4, "FORMS"),
    ("Toggles", "forms/toggles", _A, 5, "FORMS"),
    ("Action Panels", "forms/action-panels", _A, 8, "FORMS"),
    ("Comboboxes", "forms/comboboxes", _A, 4, "FORMS"),
    # Application UI - Feedback
    ("Alerts", "feedback/alerts", _A, 6, "FEEDBACK"),
    ("Empty States", "feedback/empty-states", _A, 6, "FEEDBACK"),
    # Application UI - Navigation
    ("Navbars", "navigation/navbars", _A, 11, "NAVIGATION"),
    ("Pagination", "navigation/pagination", _A, 3, "NAVIGATION"),
    ("Tabs", "navigation/tabs", _A, 9, "NAVIGATION"),
    ("Vertical Navigation", "navigation/vertical-navigation", _A, 6, "NAVIGATION"),
    ("Sidebar Navigation", "navigation/sidebar-navigation", _A, 5, "NAVIGATION"),
    ("Breadcrumbs", "navigation/breadcrumbs", _A, 4, "NAVIGATION"),
    ("Progress Bars", "navigation/progress-bars", _A, 8, "NAVIGATION"),
    ("Command Palettes", "navigation/command-palettes", _A, 8, "NAVIGATION"),
    # Application UI - Overlays
    ("Modal Dialogs", "overlays/modal-dialogs", _A, 6, "OVERLAYS"),
    ("Drawers", "overlays/drawers", _A, 12, "OVERLAYS"),
    ("Notifications", "overlays/notifications", _A, 6, "OVERLAYS"),
    # Application UI - Elements
    ("Avatars", "elements/avatars", _A, 11, "ELEMENTS"),
    ("Badges", "elements/badges", _A, 16, "ELEMENTS"),
    ("Dropdowns", "elements/dropdowns", _A, 5, "ELEMENTS"),
    ("Buttons", "elements/buttons", _A, 8, "ELEMENTS"),
    ("Button Groups", "elements/button-groups", _A, 5, "ELEMENTS"),
    # Application UI - Layout
    ("Containers", "layout/containers", _A, 5, "LAYOUT"),
    ("Cards", "layout/cards", _A, 10, "LAYOUT"),
    ("List containers", "layout/list-containers", _A, 7, "LAYOUT"),
    ("Media Objects", "layout/media-objects", _A, 8, "LAYOUT"),
    ("Dividers", "layout/dividers", _A, 8, "LAYOUT"),
    # Application UI - Page Examples
    ("Home Screens", "page-examples/home-screens", _A, 2, "PAGE EXAMPLES"),
    ("Detail Screens", "page-examples/detail-screens", _A, 2, "PAGE EXAMPLES"),
    ("Settings Screens", "page-examples/settings-screens", _A, 2, "PAGE EXAMPLES"),

    # Ecommerce - Components
    ("Product Overviews", "components/product-overviews", _E, 5, "COMPONENTS"),
    ("Product Lists", "components/product-lists", _E, 11, "COMPONENTS"),
    ("Category Previews", "components/category-previews", _E, 6, "COMPONENTS"),
    ("Shopping Carts", "components/shopping-carts", _E, 6, "COMPONENTS"),
    ("Category Filters", "components/category-filters", _E, 5, "COMPONENTS"),
    ("Product Quickviews", "components/product-quickviews", _E, 4, "COMPONENTS"),
    ("Product Features", "components/product-features", _E, 9, "COMPONENTS"),
    ("Store Navigation", "components/store-navigation", _E, 5, "COMPONENTS"),
    ("Promo Sections", "components/promo-sections", _E, 8, "COMPONENTS"),
    ("Checkout Forms", "components/checkout-forms", _E, 5, "COMPONENTS"),
    ("Reviews", "components/reviews", _E, 4, "COMPONENTS"),
    ("Order Summaries", "components/order-summaries", _E, 4, "COMPONENTS"),
    ("Order History", "components/order-history", _E, 4, "COMPONENTS"),
    ("Incentives", "components/incentives", _E, 8, "COMPONENTS"),
    # Ecommerce - Page Examples
    ("Storefront Pages", "page-examples/storefront-pages", _E, 4, "PAGE EXAMPLES"),
    ("Product Pages", "page-examples/product-pages", _E, 5, "PAGE EXAMPLES"),
    ("Category Pages", "page-examples/category-pages", _E, 5, "PAGE EXAMPLES"),
    ("Shopping Cart Pages", "page-examples/shopping-cart-pages", _E, 3, "PAGE EXAMPLES"),
    ("Checkout Pages", "page-examples/checkout-pages", _E, 5, "PAGE EXAMPLES"),
    ("Order Detail Pages", "page-examples/order-detail-pages", _E, 3, "PAGE EXAMPLES"),
    ("Order History Pages", "page-examples/order-history-pages", _E, 5, "PAGE EXAMPLES"),
)


def seed_categories(index_url: str, context: Context | None = None) -> list[CatalogCategory]:
    """Seed rows as catalog entries, optionally limited to one context."""
    return [
        CatalogCategory(
            name=name,
            slug=slug,
            context=ctx,
            subcategory=section,
            component_count=count,
            url=f"{index_url}/{ctx}/{slug}",
        )
        for name, slug, ctx, count, section in _ROWS
        if context is None or ctx == context
    ]
