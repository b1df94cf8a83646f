"""Slug normalisation and key construction for cache and catalog entries.

Pure functions with no I/O.
"""

from __future__ import annotations

import re

KEY_SEPARATOR = "--"
_KEY_FIELDS = ("context", "block_slug", "variant_slug", "format", "theme", "version")


def to_kebab_case(text: str) -> str:
    """Lowercase, drop punctuation, and join words with single hyphens.

    Idempotent: ``to_kebab_case(to_kebab_case(x)) == to_kebab_case(x)``.
    """
    value = text.lower().strip()
    value = re.sub(r"[^\w\s-]", "", value)
    value = re.sub(r"\s+", "-", value)
    value = re.sub(r"-+", "-", value)
    return value.strip("-")


def generate_variant_cache_key(
    context: str,
    block_slug: str,
    variant_slug: str,
    format: str,
    theme: str,
    version: str,
) -> str:
    """Join the six identity fields of a rendering into its cache key.

    Raises ValueError if a field is empty or contains the separator, since
    such a key could not be parsed back or prefix-scanned per block.
    """
    parts = (context, block_slug, variant_slug, str(format), str(theme), str(version))
    for name, part in zip(_KEY_FIELDS, parts, strict=True):
        if not part:
            raise ValueError(f"cache key field '{name}' must not be empty")
        if KEY_SEPARATOR in part:
            raise ValueError(
                f"cache key field '{name}' must not contain '{KEY_SEPARATOR}': {part!r}"
            )
    return KEY_SEPARATOR.join(parts)


def parse_variant_cache_key(key: str) -> dict[str, str] | None:
    """Split a cache key into its six named fields, or None if malformed."""
    parts = key.split(KEY_SEPARATOR)
    if len(parts) != len(_KEY_FIELDS):
        return None
    return dict(zip(_KEY_FIELDS, parts, strict=True))


def block_key_prefix(context: str, block_slug: str) -> str:
    """Prefix shared by every cache key of one block."""
    return f"{context}{KEY_SEPARATOR}{block_slug}{KEY_SEPARATOR}"


def generate_block_key(context: str, subcategory: str, slug: str) -> str:
    return f"{context}/{subcategory}/{slug}"


def parse_block_key(key: str) -> tuple[str, str, str] | None:
    parts = key.split("/")
    if len(parts) != 3 or not all(parts):
        return None
    return parts[0], parts[1], parts[2]
