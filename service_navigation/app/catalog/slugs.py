"""
Slug rules for features and pages.
"""

import re
from typing import Optional

DEFAULT_PAGE_SLUG = "dashboard"

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]")
_SLUG = re.compile(r"[a-z0-9-]+")


def slugify(key: str) -> str:
    """Derive the URL slug for a feature key.

    Lowercases the key and replaces every character outside ``[a-z0-9]``
    with ``-``, one for one. Runs of separators are not collapsed, so
    ``"Staff  Management"`` becomes ``"staff--management"``.
    """
    return _NON_SLUG_CHARS.sub("-", key.lower())


def is_valid_slug(slug: Optional[str]) -> bool:
    """True when ``slug`` could have come out of ``slugify``."""
    return bool(slug) and _SLUG.fullmatch(slug) is not None


def page_slug_for_href(href: str) -> str:
    """Return the trailing path segment of a menu link href."""
    return href.split("/")[-1] or DEFAULT_PAGE_SLUG


def normalize_page_slug(page_slug: Optional[str]) -> str:
    """Apply the dashboard default to a requested page slug."""
    return page_slug or DEFAULT_PAGE_SLUG
