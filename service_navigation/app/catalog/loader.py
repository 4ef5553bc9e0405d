"""
YAML catalog documents.

A catalog document has three top-level lists::

    features:
      - id: feat-staff
        key: staff-management
        display_name: Staff Management
        default_menu_links:
          - {name: Dashboard, href: /school/features/staff/, icon: layout-dashboard}
    entitlements:
      - {tenant_id: school-1, feature_id: feat-staff, enabled: true}
    overrides:
      - tenant_id: school-1
        feature_id: feat-staff
        menu_links: [...]
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Union

import yaml

from shared.logging import get_logger
from shared.errors import CatalogIntegrityError
from .models import Feature, TenantFeatureEntitlement, TenantMenuOverride
from .validation import validate_catalog, validate_menu_links


logger = get_logger("navigation.catalog.loader")


@dataclass
class CatalogDocument:
    """Parsed and validated catalog document."""
    features: List[Feature] = field(default_factory=list)
    entitlements: List[TenantFeatureEntitlement] = field(default_factory=list)
    overrides: List[TenantMenuOverride] = field(default_factory=list)


def _malformed(section: str, index: int, error: Exception) -> CatalogIntegrityError:
    return CatalogIntegrityError(
        "MALFORMED_CATALOG",
        f"{section}[{index}] is malformed: {error}",
        details={"section": section, "index": index, "error": str(error)}
    )


def _section(document: Dict[str, Any], name: str) -> List[Dict[str, Any]]:
    entries = document.get(name) or []
    if not isinstance(entries, list):
        raise CatalogIntegrityError(
            "MALFORMED_CATALOG",
            f"'{name}' must be a list",
            details={"section": name}
        )
    return entries


def parse_catalog_document(document: Dict[str, Any]) -> CatalogDocument:
    """Parse a catalog mapping and run every integrity check on it."""
    if not isinstance(document, dict):
        raise CatalogIntegrityError("MALFORMED_CATALOG", "Catalog document must be a mapping")

    catalog = CatalogDocument()

    for index, entry in enumerate(_section(document, "features")):
        try:
            catalog.features.append(Feature.from_dict(entry))
        except (KeyError, TypeError, AttributeError) as e:
            raise _malformed("features", index, e)

    for index, entry in enumerate(_section(document, "entitlements")):
        try:
            catalog.entitlements.append(TenantFeatureEntitlement.from_dict(entry))
        except (KeyError, TypeError, AttributeError) as e:
            raise _malformed("entitlements", index, e)

    for index, entry in enumerate(_section(document, "overrides")):
        try:
            catalog.overrides.append(TenantMenuOverride.from_dict(entry))
        except (KeyError, TypeError, AttributeError) as e:
            raise _malformed("overrides", index, e)

    validate_catalog(catalog.features)

    seen_entitlements = set()
    for entitlement in catalog.entitlements:
        pair = (entitlement.tenant_id, entitlement.feature_id)
        if pair in seen_entitlements:
            raise CatalogIntegrityError(
                "DUPLICATE_ENTITLEMENT",
                f"Entitlement for tenant {pair[0]} and feature {pair[1]} appears more than once",
                details={"tenant_id": pair[0], "feature_id": pair[1]}
            )
        seen_entitlements.add(pair)

    seen_overrides = set()
    for override in catalog.overrides:
        pair = (override.tenant_id, override.feature_id)
        if pair in seen_overrides:
            raise CatalogIntegrityError(
                "DUPLICATE_OVERRIDE",
                f"Override for tenant {pair[0]} and feature {pair[1]} appears more than once",
                details={"tenant_id": pair[0], "feature_id": pair[1]}
            )
        seen_overrides.add(pair)
        validate_menu_links(override.menu_links, owner=f"override {pair[0]}/{pair[1]}")

    return catalog


def read_catalog_file(path: Union[str, Path]) -> CatalogDocument:
    """Read and validate a YAML catalog file."""
    path = Path(path)
    try:
        with open(path, "r") as f:
            document = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise CatalogIntegrityError(
            "MALFORMED_CATALOG",
            f"Invalid YAML in {path}: {e}",
            details={"path": str(path)}
        )

    catalog = parse_catalog_document(document)
    logger.info(
        "Catalog file read",
        path=str(path),
        features=len(catalog.features),
        entitlements=len(catalog.entitlements),
        overrides=len(catalog.overrides)
    )
    return catalog


async def apply_catalog(store, catalog: CatalogDocument) -> None:
    """Write a validated catalog into a navigation store."""
    for feature in catalog.features:
        await store.upsert_feature(feature)
    for entitlement in catalog.entitlements:
        await store.set_entitlement(entitlement.tenant_id, entitlement.feature_id, entitlement.enabled)
    for override in catalog.overrides:
        await store.put_override(override)

    logger.info(
        "Catalog applied",
        features=len(catalog.features),
        entitlements=len(catalog.entitlements),
        overrides=len(catalog.overrides)
    )
