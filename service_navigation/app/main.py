"""
Navigation service for EliteScholar Access Layer.
"""

from typing import Dict, Optional

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .auth.client import AuthClient
from .auth.dependencies import SessionResolver, bearer_token
from .auth.session import SessionCache, SessionContext
from .catalog.models import MenuResponse
from .engine import NavigationEngine
from .resolution.gate import AccessGate
from .resolution.matcher import RouteMatcher, FeatureNotFound, PageNotImplemented
from .resolution.resolver import MenuResolver
from .stores.base import NavigationStore
from .stores.memory import InMemoryNavigationStore
from .stores.postgres import PostgresNavigationStore


class NavigationService(BaseService):
    """Navigation service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None,
                 store: Optional[NavigationStore] = None,
                 session_cache: Optional[SessionCache] = None,
                 auth_client: Optional[AuthClient] = None):
        super().__init__("navigation", 8020, config)

        # Initialize components
        self.store = store or self._create_store()
        self.session_cache = session_cache or SessionCache(
            self.config.redis_url,
            ttl_seconds=self.config.session_ttl_seconds,
            metrics=self.metrics
        )
        self.auth_client = auth_client or AuthClient(self.config.auth_service_url)
        self.sessions = SessionResolver(self.auth_client, self.session_cache)

        self.engine = NavigationEngine(
            gate=AccessGate(self.metrics),
            resolver=MenuResolver(
                self.store,
                self.store,
                metrics=self.metrics,
                timeout_seconds=self.config.resolution_timeout_seconds
            ),
            matcher=RouteMatcher(self.metrics)
        )

        self._setup_navigation_routes()

    def _create_store(self) -> NavigationStore:
        backend = self.config.store_backend.lower()
        if backend == "postgres":
            return PostgresNavigationStore(self.config.postgres_dsn)
        if backend == "memory":
            return InMemoryNavigationStore(self.config.catalog_file)
        raise ValueError(f"Unknown store backend: {self.config.store_backend}")

    def _setup_navigation_routes(self):
        """Set up navigation-specific routes."""

        async def current_session(request: Request) -> SessionContext:
            return await self.sessions.authenticate(request)

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "navigation",
                "message": "EliteScholar Access Layer - Navigation Service",
                "version": "1.0.0",
                "capabilities": ["menu_resolution", "route_matching", "access_gate"]
            }

        @self.app.get("/navigation/menu", response_model=MenuResponse)
        async def get_menu(session: SessionContext = Depends(current_session)):
            """Resolve the caller's navigation menu."""
            outcome = await self.engine.menu_for(session.role, session.tenant_id)
            return MenuResponse(**outcome.to_dict())

        @self.app.get("/navigation/features/{feature_slug}")
        async def route_feature(feature_slug: str,
                                session: SessionContext = Depends(current_session)):
            """Route a feature's dashboard page."""
            return await self._route(session, feature_slug, None)

        @self.app.get("/navigation/features/{feature_slug}/{page_slug}")
        async def route_page(feature_slug: str, page_slug: str,
                             session: SessionContext = Depends(current_session)):
            """Route a feature page."""
            return await self._route(session, feature_slug, page_slug)

        @self.app.post("/navigation/session/logout")
        async def logout(request: Request):
            """Tear down the caller's session."""
            removed = await self.session_cache.teardown(bearer_token(request))
            self.observability.log_business_event("session_logout", removed=removed)
            return {"logged_out": True, "session_found": removed}

    async def _route(self, session: SessionContext, feature_slug: str,
                     page_slug: Optional[str]):
        outcome = await self.engine.route(session.role, session.tenant_id, feature_slug, page_slug)
        body = outcome.to_dict()

        if isinstance(outcome.match, FeatureNotFound):
            return JSONResponse(status_code=404, content=body)

        if isinstance(outcome.match, PageNotImplemented):
            self.observability.log_business_event(
                "page_not_implemented",
                tenant_id=session.tenant_id,
                attempted_url=outcome.match.attempted_url
            )

        return body

    async def _check_dependencies(self) -> Dict[str, str]:
        return {
            "store": await self.store.health_check(),
            "session_cache": await self.session_cache.health_check()
        }

    async def start(self):
        """Start service components."""
        await self.store.start()
        await self.session_cache.start()
        self.logger.info("Navigation service started", store_backend=self.config.store_backend)

    async def stop(self):
        """Stop service components."""
        await self.session_cache.stop()
        await self.store.stop()
        self.logger.info("Navigation service stopped")


def create_app():
    """Create the Navigation service application."""
    return NavigationService().app


if __name__ == "__main__":
    NavigationService().run()
