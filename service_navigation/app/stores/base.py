"""
Store contracts for Navigation Service.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..catalog.models import Feature, TenantFeatureEntitlement, TenantMenuOverride


class CatalogStore(ABC):
    """Read access to the global feature catalog."""

    @abstractmethod
    async def get_feature(self, feature_id: str) -> Optional[Feature]:
        """Return an active feature, or None when it is unknown or retired."""

    @abstractmethod
    async def list_features(self) -> List[Feature]:
        """Return every active feature ordered by key."""


class EntitlementStore(ABC):
    """Read access to tenant entitlements and menu overrides."""

    @abstractmethod
    async def list_entitlements(self, tenant_id: str) -> List[TenantFeatureEntitlement]:
        """Return all entitlement rows for a tenant, enabled or not."""

    @abstractmethod
    async def get_override(self, tenant_id: str, feature_id: str) -> Optional[TenantMenuOverride]:
        """Return the tenant's menu override for a feature, if any."""


class NavigationStore(CatalogStore, EntitlementStore):
    """Both read contracts plus lifecycle and administration operations."""

    async def start(self):
        """Open connections. Override in subclasses."""

    async def stop(self):
        """Close connections. Override in subclasses."""

    @abstractmethod
    async def health_check(self) -> str:
        """Return "ok" or an error description."""

    @abstractmethod
    async def upsert_feature(self, feature: Feature) -> Feature:
        """Create or update a feature. An existing feature keeps its slug."""

    @abstractmethod
    async def retire_feature(self, feature_id: str) -> bool:
        """Remove a feature from the active catalog, keeping its row."""

    @abstractmethod
    async def set_entitlement(self, tenant_id: str, feature_id: str,
                              enabled: bool) -> TenantFeatureEntitlement:
        """Grant or toggle a feature for a tenant. Rows are never deleted."""

    @abstractmethod
    async def put_override(self, override: TenantMenuOverride) -> TenantMenuOverride:
        """Replace the tenant's menu for a feature."""

    @abstractmethod
    async def clear_override(self, tenant_id: str, feature_id: str) -> bool:
        """Drop the tenant's menu override so the feature default applies."""
