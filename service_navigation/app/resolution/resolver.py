"""
Menu resolver for Navigation Service.
"""

import asyncio
from typing import List, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.errors import StoreUnavailableError, ResolutionTimeoutError
from shared.tracing import trace_operation
from ..catalog.models import ResolvedFeature
from ..stores.base import CatalogStore, EntitlementStore


class MenuResolver:
    """Builds a tenant's effective menu from current store state.

    For every enabled entitlement the feature and the tenant's override
    are read concurrently. An override replaces the feature's default
    links entirely. Disabled links are dropped with their order kept,
    and features are returned by ascending key.

    A resolution either returns the whole list or raises. Timeouts raise
    ``ResolutionTimeoutError``; store failures propagate as
    ``StoreUnavailableError``. Nothing is retried here.
    """

    def __init__(self, catalog_store: CatalogStore, entitlement_store: EntitlementStore,
                 metrics: Optional[MetricsCollector] = None, timeout_seconds: float = 5.0):
        self.catalog_store = catalog_store
        self.entitlement_store = entitlement_store
        self.metrics = metrics
        self.timeout_seconds = timeout_seconds
        self.logger = get_logger("navigation.resolver")

    async def resolve(self, tenant_id: str) -> List[ResolvedFeature]:
        """Resolve the ordered, filtered menu for a tenant."""
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        with trace_operation("navigation.resolve", tenant_id=tenant_id) as span:
            try:
                resolved = await asyncio.wait_for(self._resolve(tenant_id), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                self._record_outcome("timeout", loop.time() - start_time)
                self.logger.error(
                    "Menu resolution timed out",
                    tenant_id=tenant_id,
                    timeout_seconds=self.timeout_seconds
                )
                raise ResolutionTimeoutError(tenant_id, self.timeout_seconds)
            except StoreUnavailableError as e:
                self._record_outcome("store_unavailable", loop.time() - start_time)
                self.logger.error("Menu resolution failed", tenant_id=tenant_id, error=e.message)
                raise

            span.set_attribute("navigation.features", len(resolved))

        self._record_outcome("resolved", loop.time() - start_time)
        self.logger.debug("Menu resolved", tenant_id=tenant_id, features=len(resolved))
        return resolved

    async def _resolve(self, tenant_id: str) -> List[ResolvedFeature]:
        entitlements = await self.entitlement_store.list_entitlements(tenant_id)
        feature_ids = [e.feature_id for e in entitlements if e.enabled]
        if not feature_ids:
            return []

        results = await asyncio.gather(
            *(self._resolve_feature(tenant_id, feature_id) for feature_id in feature_ids)
        )

        resolved = [r for r in results if r is not None]
        resolved.sort(key=lambda r: r.feature.key)
        return resolved

    async def _resolve_feature(self, tenant_id: str, feature_id: str) -> Optional[ResolvedFeature]:
        feature, override = await asyncio.gather(
            self.catalog_store.get_feature(feature_id),
            self.entitlement_store.get_override(tenant_id, feature_id)
        )

        if feature is None:
            # Stale entitlement: the feature left the catalog
            self.logger.debug("Skipping stale entitlement", tenant_id=tenant_id, feature_id=feature_id)
            if self.metrics:
                self.metrics.increment_counter("stale_entitlements_total")
            return None

        links = override.menu_links if override is not None else feature.default_menu_links
        return ResolvedFeature(
            feature=feature,
            effective_menu_links=[link for link in links if link.enabled]
        )

    def _record_outcome(self, outcome: str, duration: float):
        if self.metrics:
            self.metrics.increment_counter("menu_resolutions_total", outcome=outcome)
            self.metrics.observe_histogram("menu_resolution_duration_seconds", duration)
