"""
Unit tests for the navigation engine.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from service_navigation.app.catalog.models import Feature, MenuLink, TenantFeatureEntitlement
from service_navigation.app.engine import NavigationEngine
from service_navigation.app.resolution.gate import AccessGate, GateState
from service_navigation.app.resolution.matcher import RouteMatcher, Found, PageNotImplemented
from service_navigation.app.resolution.resolver import MenuResolver
from service_navigation.app.stores.base import NavigationStore


STAFF = Feature.create(
    "feat-staff",
    "staff-management",
    "Staff Management",
    default_menu_links=[
        MenuLink("List", "/school/features/staff/list"),
        MenuLink("Archive", "/school/features/staff/archive", enabled=False),
    ]
)


class TestNavigationEngine:
    """Test cases for NavigationEngine."""

    @pytest.fixture
    def store(self):
        """Mock store holding one enabled entitlement."""
        store = MagicMock(spec=NavigationStore)
        store.list_entitlements = AsyncMock(
            return_value=[TenantFeatureEntitlement("school-1", "feat-staff", True)]
        )
        store.get_feature = AsyncMock(return_value=STAFF)
        store.get_override = AsyncMock(return_value=None)
        return store

    @pytest.fixture
    def engine(self, store):
        """Create NavigationEngine instance."""
        return NavigationEngine(
            gate=AccessGate(),
            resolver=MenuResolver(store, store),
            matcher=RouteMatcher()
        )

    @pytest.mark.asyncio
    async def test_student_never_reaches_stores(self, engine, store):
        """Test Scenario E: a student is gated without any store access."""
        engine.resolver.resolve = AsyncMock(wraps=engine.resolver.resolve)

        outcome = await engine.menu_for("student", "school-1")

        assert outcome.decision.state is GateState.GATED
        assert outcome.features == []
        engine.resolver.resolve.assert_not_called()
        store.list_entitlements.assert_not_called()
        store.get_feature.assert_not_called()
        store.get_override.assert_not_called()

    @pytest.mark.asyncio
    async def test_staff_menu(self, engine, store):
        """Test staff get the resolved menu for their tenant."""
        outcome = await engine.menu_for("teacher", "school-1")

        assert outcome.decision.allowed
        assert [l.name for l in outcome.features[0].effective_menu_links] == ["List"]
        store.list_entitlements.assert_awaited_once_with("school-1")

    @pytest.mark.asyncio
    async def test_missing_tenant_is_gated(self, engine, store):
        """Test a staff session without a tenant reads nothing."""
        outcome = await engine.menu_for("school_admin", None)

        assert outcome.to_dict() == {
            "result": "gated",
            "reason": "no_tenant",
            "tenant_id": None,
            "features": []
        }
        store.list_entitlements.assert_not_called()

    @pytest.mark.asyncio
    async def test_route_found(self, engine):
        """Test routing a mapped page."""
        outcome = await engine.route("school_admin", "school-1", "staff-management", "list")

        assert isinstance(outcome.match, Found)
        assert outcome.to_dict()["result"] == "found"

    @pytest.mark.asyncio
    async def test_route_unmapped_page(self, engine):
        """Test routing a page with no enabled link."""
        outcome = await engine.route("school_admin", "school-1", "staff-management", "archive")

        assert isinstance(outcome.match, PageNotImplemented)

    @pytest.mark.asyncio
    async def test_route_gated(self, engine, store):
        """Test a gated caller gets no match and no store reads."""
        outcome = await engine.route("parent", "school-1", "staff-management", "list")

        assert outcome.match is None
        assert outcome.to_dict() == {"result": "gated", "reason": "end_user_audience"}
        store.list_entitlements.assert_not_called()
