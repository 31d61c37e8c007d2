"""URL slug helpers shared by categories and variations."""

import re

_INVALID_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_REPEATED_DASHES = re.compile(r"-+")


def slugify(text: str) -> str:
    """Convert text to a lowercase, dash-separated URL slug.

    Example:
        >>> slugify("Red - XL / 256GB")
        'red-xl-256gb'
    """
    slug = _INVALID_CHARS.sub("", text.lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _REPEATED_DASHES.sub("-", slug)
    return slug.strip("-")
