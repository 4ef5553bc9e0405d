"""
In-memory navigation store.

Used for local runs (optionally seeded from a YAML catalog) and in tests.
"""

from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from shared.logging import get_logger
from shared.errors import CatalogIntegrityError, DuplicateSlugError
from ..catalog.models import Feature, TenantFeatureEntitlement, TenantMenuOverride
from ..catalog.validation import validate_feature, validate_menu_links
from ..catalog.loader import read_catalog_file, apply_catalog
from .base import NavigationStore


class InMemoryNavigationStore(NavigationStore):
    """Navigation store held in process memory."""

    def __init__(self, catalog_file: Optional[str] = None):
        self.catalog_file = catalog_file
        self.logger = get_logger("navigation.stores.memory")
        self._features: Dict[str, Feature] = {}
        self._entitlements: Dict[Tuple[str, str], TenantFeatureEntitlement] = {}
        self._overrides: Dict[Tuple[str, str], TenantMenuOverride] = {}

    async def start(self):
        """Seed the store from the configured catalog file."""
        if self.catalog_file:
            await apply_catalog(self, read_catalog_file(self.catalog_file))
        self.logger.info("In-memory store started", features=len(self._features))

    async def health_check(self) -> str:
        return "ok"

    async def get_feature(self, feature_id: str) -> Optional[Feature]:
        feature = self._features.get(feature_id)
        if feature is None or not feature.is_active:
            return None
        return feature

    async def list_features(self) -> List[Feature]:
        active = [f for f in self._features.values() if f.is_active]
        return sorted(active, key=lambda f: f.key)

    async def list_entitlements(self, tenant_id: str) -> List[TenantFeatureEntitlement]:
        return [e for (tenant, _), e in self._entitlements.items() if tenant == tenant_id]

    async def get_override(self, tenant_id: str, feature_id: str) -> Optional[TenantMenuOverride]:
        return self._overrides.get((tenant_id, feature_id))

    async def upsert_feature(self, feature: Feature) -> Feature:
        validate_feature(feature)

        existing = self._features.get(feature.id)
        if existing is not None:
            feature = replace(
                feature,
                slug=existing.slug,
                created_at=existing.created_at,
                retired_at=existing.retired_at
            )

        if feature.is_active:
            for other in self._features.values():
                if other.id == feature.id or not other.is_active:
                    continue
                if other.slug == feature.slug:
                    raise DuplicateSlugError(feature.slug, [other.key, feature.key])
                if other.key == feature.key:
                    raise CatalogIntegrityError(
                        "DUPLICATE_FEATURE_KEY",
                        f"Feature key '{feature.key}' is used by {other.id} and {feature.id}",
                        details={"key": feature.key, "feature_ids": [other.id, feature.id]}
                    )

        self._features[feature.id] = feature
        self.logger.info("Feature saved", feature_id=feature.id, key=feature.key, slug=feature.slug)
        return feature

    async def retire_feature(self, feature_id: str) -> bool:
        feature = self._features.get(feature_id)
        if feature is None or not feature.is_active:
            return False
        self._features[feature_id] = replace(feature, retired_at=datetime.now())
        self.logger.info("Feature retired", feature_id=feature_id, key=feature.key)
        return True

    async def set_entitlement(self, tenant_id: str, feature_id: str,
                              enabled: bool) -> TenantFeatureEntitlement:
        entitlement = TenantFeatureEntitlement(tenant_id=tenant_id, feature_id=feature_id, enabled=enabled)
        self._entitlements[(tenant_id, feature_id)] = entitlement
        self.logger.info("Entitlement set", tenant_id=tenant_id, feature_id=feature_id, enabled=enabled)
        return entitlement

    async def put_override(self, override: TenantMenuOverride) -> TenantMenuOverride:
        validate_menu_links(
            override.menu_links,
            owner=f"override {override.tenant_id}/{override.feature_id}"
        )
        self._overrides[(override.tenant_id, override.feature_id)] = override
        self.logger.info(
            "Menu override saved",
            tenant_id=override.tenant_id,
            feature_id=override.feature_id,
            links=len(override.menu_links)
        )
        return override

    async def clear_override(self, tenant_id: str, feature_id: str) -> bool:
        removed = self._overrides.pop((tenant_id, feature_id), None)
        if removed is not None:
            self.logger.info("Menu override cleared", tenant_id=tenant_id, feature_id=feature_id)
        return removed is not None
