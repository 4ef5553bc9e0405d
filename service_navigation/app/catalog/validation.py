"""
Catalog integrity checks.

Integrity violations are raised, never repaired. They are meant to stop a
catalog load before bad data reaches a store.
"""

from typing import Dict, Iterable, List

from shared.errors import (
    CatalogIntegrityError, DuplicateSlugError, DuplicateHrefError, InvalidMenuLinkError
)
from .models import Feature, MenuLink
from .slugs import is_valid_slug


def validate_menu_links(links: Iterable[MenuLink], owner: str) -> None:
    """Check one menu-link list (a feature default or a tenant override)."""
    seen_hrefs = set()
    for index, link in enumerate(links):
        if not link.name or not link.name.strip():
            raise InvalidMenuLinkError("name is blank", owner, index)
        if not link.href or not link.href.strip():
            raise InvalidMenuLinkError("href is blank", owner, index)
        if not link.href.startswith("/"):
            raise InvalidMenuLinkError(f"href '{link.href}' is not an absolute app path", owner, index)
        if link.href in seen_hrefs:
            raise DuplicateHrefError(link.href, owner)
        seen_hrefs.add(link.href)


def validate_feature(feature: Feature) -> None:
    """Check one feature on its own: its slug and its default menu links."""
    if not is_valid_slug(feature.slug):
        raise CatalogIntegrityError(
            "INVALID_SLUG",
            f"Feature {feature.key} has slug '{feature.slug}', which is not of the form [a-z0-9-]+",
            details={"feature_id": feature.id, "slug": feature.slug}
        )
    validate_menu_links(feature.default_menu_links, owner=f"feature {feature.key}")


def validate_catalog(features: Iterable[Feature]) -> None:
    """Check the active catalog as a whole.

    Retired features are ignored. Raises on the first violation found.
    """
    by_id: Dict[str, Feature] = {}
    by_key: Dict[str, Feature] = {}
    by_slug: Dict[str, List[str]] = {}

    for feature in features:
        if not feature.is_active:
            continue

        if feature.id in by_id:
            raise CatalogIntegrityError(
                "DUPLICATE_FEATURE_ID",
                f"Feature id '{feature.id}' appears more than once",
                details={"feature_id": feature.id}
            )
        by_id[feature.id] = feature

        if feature.key in by_key:
            raise CatalogIntegrityError(
                "DUPLICATE_FEATURE_KEY",
                f"Feature key '{feature.key}' is used by {by_key[feature.key].id} and {feature.id}",
                details={"key": feature.key, "feature_ids": [by_key[feature.key].id, feature.id]}
            )
        by_key[feature.key] = feature

        by_slug.setdefault(feature.slug, []).append(feature.key)

        validate_feature(feature)

    for slug, keys in by_slug.items():
        if len(keys) > 1:
            raise DuplicateSlugError(slug, keys)
