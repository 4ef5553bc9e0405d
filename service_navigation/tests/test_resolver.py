"""
Unit tests for the menu resolver.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock

from service_navigation.app.catalog.models import Feature, MenuLink, TenantMenuOverride
from service_navigation.app.resolution.resolver import MenuResolver
from service_navigation.app.stores.memory import InMemoryNavigationStore
from shared.errors import StoreUnavailableError, ResolutionTimeoutError
from shared.metrics import MetricsCollector


STAFF_LINKS = [
    MenuLink("List", "/school/features/staff/list", "users", True),
    MenuLink("Archive", "/school/features/staff/archive", "archive", False),
]


class TestMenuResolver:
    """Test cases for MenuResolver."""

    @pytest.fixture
    async def store(self):
        """Create a store holding Scenario A."""
        store = InMemoryNavigationStore()
        await store.upsert_feature(
            Feature.create("feat-staff", "staff-management", "Staff Management", default_menu_links=STAFF_LINKS)
        )
        await store.upsert_feature(Feature.create("feat-time", "timetable", "Timetable"))
        await store.upsert_feature(
            Feature.create("feat-att", "attendance", "Attendance", default_menu_links=[MenuLink("Daily", "/a/daily")])
        )
        await store.set_entitlement("school-1", "feat-staff", True)
        return store

    @pytest.fixture
    def metrics(self):
        """Create a navigation metrics collector."""
        return MetricsCollector("navigation")

    @pytest.fixture
    def resolver(self, store, metrics):
        """Create MenuResolver instance."""
        return MenuResolver(store, store, metrics=metrics, timeout_seconds=1.0)

    @pytest.mark.asyncio
    async def test_default_links_filtered(self, resolver):
        """Test Scenario A: only enabled default links are visible."""
        resolved = await resolver.resolve("school-1")

        assert len(resolved) == 1
        assert resolved[0].feature.key == "staff-management"
        assert resolved[0].effective_menu_links == [STAFF_LINKS[0]]

    @pytest.mark.asyncio
    async def test_override_replaces_defaults(self, resolver, store):
        """Test Scenario B: an override replaces the default menu entirely."""
        await store.put_override(
            TenantMenuOverride("school-1", "feat-staff", [MenuLink("Custom List", "/x/a")])
        )

        resolved = await resolver.resolve("school-1")

        links = resolved[0].effective_menu_links
        assert [(l.name, l.href) for l in links] == [("Custom List", "/x/a")]
        assert all(l.name not in ("List", "Archive") for l in links)

    @pytest.mark.asyncio
    async def test_override_links_are_filtered_in_order(self, resolver, store):
        """Test override links keep their order and drop disabled entries."""
        await store.put_override(TenantMenuOverride("school-1", "feat-staff", [
            MenuLink("Zeta", "/z"),
            MenuLink("Hidden", "/h", enabled=False),
            MenuLink("Alpha", "/a"),
        ]))

        resolved = await resolver.resolve("school-1")

        assert [l.name for l in resolved[0].effective_menu_links] == ["Zeta", "Alpha"]

    @pytest.mark.asyncio
    async def test_empty_override_hides_all_links(self, resolver, store):
        """Test an empty override still replaces the defaults."""
        await store.put_override(TenantMenuOverride("school-1", "feat-staff", []))

        resolved = await resolver.resolve("school-1")

        assert len(resolved) == 1
        assert resolved[0].effective_menu_links == []

    @pytest.mark.asyncio
    async def test_only_enabled_entitlements(self, resolver, store):
        """Test a feature appears only with an enabled entitlement."""
        await store.set_entitlement("school-1", "feat-time", False)
        await store.set_entitlement("school-1", "feat-att", True)

        resolved = await resolver.resolve("school-1")

        assert [r.feature.key for r in resolved] == ["attendance", "staff-management"]

    @pytest.mark.asyncio
    async def test_order_by_key(self, resolver, store):
        """Test features are ordered by ascending key."""
        for feature_id in ("feat-time", "feat-att"):
            await store.set_entitlement("school-1", feature_id, True)

        resolved = await resolver.resolve("school-1")

        assert [r.feature.key for r in resolved] == ["attendance", "staff-management", "timetable"]

    @pytest.mark.asyncio
    async def test_feature_without_links_is_listed(self, resolver, store):
        """Test a feature with no effective links is still included."""
        await store.set_entitlement("school-1", "feat-time", True)

        resolved = await resolver.resolve("school-1")

        timetable = next(r for r in resolved if r.feature.key == "timetable")
        assert timetable.effective_menu_links == []

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, resolver):
        """Test an unknown tenant resolves to an empty list."""
        assert await resolver.resolve("no-such-school") == []

    @pytest.mark.asyncio
    async def test_stale_entitlement_skipped(self, resolver, store, metrics):
        """Test entitlements for features no longer in the catalog are skipped."""
        await store.set_entitlement("school-1", "feat-deleted", True)
        await store.set_entitlement("school-1", "feat-time", True)
        await store.retire_feature("feat-time")

        resolved = await resolver.resolve("school-1")

        assert [r.feature.key for r in resolved] == ["staff-management"]
        assert metrics.registry.get_sample_value("stale_entitlements_total") == 2

    @pytest.mark.asyncio
    async def test_idempotent(self, resolver, store):
        """Test two resolutions without mutation give identical output."""
        for feature_id in ("feat-time", "feat-att"):
            await store.set_entitlement("school-1", feature_id, True)

        first = await resolver.resolve("school-1")
        second = await resolver.resolve("school-1")

        assert first == second

    @pytest.mark.asyncio
    async def test_reads_current_state(self, resolver, store):
        """Test every call reflects the latest store state."""
        assert len(await resolver.resolve("school-1")) == 1

        await store.set_entitlement("school-1", "feat-staff", False)

        assert await resolver.resolve("school-1") == []

    @pytest.mark.asyncio
    async def test_outcome_metrics(self, resolver, metrics):
        """Test successful resolutions are counted."""
        await resolver.resolve("school-1")

        assert metrics.registry.get_sample_value("menu_resolutions_total", {"outcome": "resolved"}) == 1
        assert metrics.registry.get_sample_value("menu_resolution_duration_seconds_count") == 1

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, store, metrics):
        """Test a store failure reaches the caller without a partial result."""
        store.get_override = AsyncMock(side_effect=StoreUnavailableError("postgres", "connection refused"))
        resolver = MenuResolver(store, store, metrics=metrics)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await resolver.resolve("school-1")

        assert exc_info.value.retryable is True
        assert metrics.registry.get_sample_value(
            "menu_resolutions_total", {"outcome": "store_unavailable"}
        ) == 1

    @pytest.mark.asyncio
    async def test_timeout_raises(self, store, metrics):
        """Test a slow store turns into a timeout error, never a partial list."""
        async def slow_get_feature(feature_id):
            await asyncio.sleep(1.0)
            return None

        store.get_feature = slow_get_feature
        resolver = MenuResolver(store, store, metrics=metrics, timeout_seconds=0.05)

        with pytest.raises(ResolutionTimeoutError) as exc_info:
            await resolver.resolve("school-1")

        assert exc_info.value.code == "RESOLUTION_TIMEOUT"
        assert exc_info.value.retryable is True
        assert exc_info.value.details == {"tenant_id": "school-1", "timeout_seconds": 0.05}

    @pytest.mark.asyncio
    async def test_feature_reads_are_concurrent(self, store):
        """Test per-feature reads overlap instead of running one by one."""
        for feature_id in ("feat-time", "feat-att"):
            await store.set_entitlement("school-1", feature_id, True)

        original_get_feature = store.get_feature
        in_flight = 0
        peak = 0

        async def tracking_get_feature(feature_id):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return await original_get_feature(feature_id)

        store.get_feature = tracking_get_feature
        resolver = MenuResolver(store, store)

        resolved = await resolver.resolve("school-1")

        assert len(resolved) == 3
        assert peak == 3
