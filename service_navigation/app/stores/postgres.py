"""
PostgreSQL navigation store.
"""

import asyncio
import json
from contextlib import asynccontextmanager
from typing import List, Optional

import asyncpg
from shared.logging import get_logger
from shared.errors import StoreUnavailableError, CatalogIntegrityError, DuplicateSlugError
from ..catalog.models import Feature, MenuLink, TenantFeatureEntitlement, TenantMenuOverride
from ..catalog.validation import validate_feature, validate_menu_links
from .base import NavigationStore


_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class PostgresNavigationStore(NavigationStore):
    """Catalog, entitlements and overrides in PostgreSQL."""

    def __init__(self, dsn: str):
        self.dsn = dsn
        self.logger = get_logger("navigation.stores.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Open the pool and create tables."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=2,
                max_size=10,
                command_timeout=30
            )
            await self._create_tables()
            self.logger.info("PostgreSQL store started")

        except _STORE_ERRORS as e:
            self.logger.error("Failed to start PostgreSQL store", error=str(e))
            raise StoreUnavailableError("postgres", str(e))

    async def stop(self):
        """Close the pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL store stopped")

    @asynccontextmanager
    async def _connection(self):
        if self.pool is None:
            raise StoreUnavailableError("postgres", "Store is not started")
        try:
            async with self.pool.acquire() as conn:
                yield conn
        except _STORE_ERRORS as e:
            self.logger.error("PostgreSQL store error", error=str(e))
            raise StoreUnavailableError("postgres", str(e))

    async def _create_tables(self):
        """Create database tables."""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS features (
                    id VARCHAR(255) PRIMARY KEY,
                    key VARCHAR(255) NOT NULL,
                    slug VARCHAR(255) NOT NULL,
                    display_name VARCHAR(255) NOT NULL,
                    description TEXT,
                    default_menu_links JSONB NOT NULL DEFAULT '[]',
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    retired_at TIMESTAMP WITH TIME ZONE
                );
            """)
            await conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS uq_features_active_slug
                ON features(slug) WHERE retired_at IS NULL;
            """)
            await conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS uq_features_active_key
                ON features(key) WHERE retired_at IS NULL;
            """)

            await conn.execute("""
                CREATE TABLE IF NOT EXISTS tenant_feature_entitlements (
                    tenant_id VARCHAR(255) NOT NULL,
                    feature_id VARCHAR(255) NOT NULL,
                    enabled BOOLEAN NOT NULL DEFAULT TRUE,
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    PRIMARY KEY (tenant_id, feature_id)
                );
            """)

            await conn.execute("""
                CREATE TABLE IF NOT EXISTS tenant_menu_overrides (
                    tenant_id VARCHAR(255) NOT NULL,
                    feature_id VARCHAR(255) NOT NULL,
                    menu_links JSONB NOT NULL DEFAULT '[]',
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    PRIMARY KEY (tenant_id, feature_id)
                );
            """)

    async def get_feature(self, feature_id: str) -> Optional[Feature]:
        async with self._connection() as conn:
            row = await conn.fetchrow("""
                SELECT * FROM features WHERE id = $1 AND retired_at IS NULL
            """, feature_id)
        return self._row_to_feature(row) if row else None

    async def list_features(self) -> List[Feature]:
        async with self._connection() as conn:
            rows = await conn.fetch("""
                SELECT * FROM features WHERE retired_at IS NULL ORDER BY key ASC
            """)
        return [self._row_to_feature(row) for row in rows]

    async def list_entitlements(self, tenant_id: str) -> List[TenantFeatureEntitlement]:
        async with self._connection() as conn:
            rows = await conn.fetch("""
                SELECT tenant_id, feature_id, enabled, updated_at
                FROM tenant_feature_entitlements
                WHERE tenant_id = $1
                ORDER BY feature_id ASC
            """, tenant_id)
        return [
            TenantFeatureEntitlement(
                tenant_id=row["tenant_id"],
                feature_id=row["feature_id"],
                enabled=row["enabled"],
                updated_at=row["updated_at"]
            )
            for row in rows
        ]

    async def get_override(self, tenant_id: str, feature_id: str) -> Optional[TenantMenuOverride]:
        async with self._connection() as conn:
            row = await conn.fetchrow("""
                SELECT tenant_id, feature_id, menu_links, updated_at
                FROM tenant_menu_overrides
                WHERE tenant_id = $1 AND feature_id = $2
            """, tenant_id, feature_id)
        if not row:
            return None
        return TenantMenuOverride(
            tenant_id=row["tenant_id"],
            feature_id=row["feature_id"],
            menu_links=self._decode_links(row["menu_links"]),
            updated_at=row["updated_at"]
        )

    async def upsert_feature(self, feature: Feature) -> Feature:
        validate_feature(feature)

        async with self._connection() as conn:
            try:
                # slug is only written on insert
                row = await conn.fetchrow("""
                    INSERT INTO features (
                        id, key, slug, display_name, description, default_menu_links
                    ) VALUES ($1, $2, $3, $4, $5, $6::jsonb)
                    ON CONFLICT (id) DO UPDATE SET
                        key = EXCLUDED.key,
                        display_name = EXCLUDED.display_name,
                        description = EXCLUDED.description,
                        default_menu_links = EXCLUDED.default_menu_links,
                        updated_at = NOW()
                    RETURNING *
                """,
                    feature.id, feature.key, feature.slug, feature.display_name,
                    feature.description, self._encode_links(feature.default_menu_links)
                )
            except asyncpg.UniqueViolationError as e:
                if e.constraint_name == "uq_features_active_slug":
                    keys = await conn.fetch("""
                        SELECT key FROM features WHERE slug = $1 AND retired_at IS NULL
                    """, feature.slug)
                    raise DuplicateSlugError(feature.slug, [r["key"] for r in keys] + [feature.key])
                raise CatalogIntegrityError(
                    "DUPLICATE_FEATURE_KEY",
                    f"Feature key '{feature.key}' is already in use",
                    details={"key": feature.key, "feature_id": feature.id}
                )

        saved = self._row_to_feature(row)
        self.logger.info("Feature saved", feature_id=saved.id, key=saved.key, slug=saved.slug)
        return saved

    async def retire_feature(self, feature_id: str) -> bool:
        async with self._connection() as conn:
            result = await conn.execute("""
                UPDATE features SET retired_at = NOW(), updated_at = NOW()
                WHERE id = $1 AND retired_at IS NULL
            """, feature_id)

        if result == "UPDATE 1":
            self.logger.info("Feature retired", feature_id=feature_id)
            return True
        self.logger.warning("Active feature not found for retirement", feature_id=feature_id)
        return False

    async def set_entitlement(self, tenant_id: str, feature_id: str,
                              enabled: bool) -> TenantFeatureEntitlement:
        async with self._connection() as conn:
            row = await conn.fetchrow("""
                INSERT INTO tenant_feature_entitlements (tenant_id, feature_id, enabled)
                VALUES ($1, $2, $3)
                ON CONFLICT (tenant_id, feature_id) DO UPDATE SET
                    enabled = EXCLUDED.enabled,
                    updated_at = NOW()
                RETURNING tenant_id, feature_id, enabled, updated_at
            """, tenant_id, feature_id, enabled)

        self.logger.info("Entitlement set", tenant_id=tenant_id, feature_id=feature_id, enabled=enabled)
        return TenantFeatureEntitlement(
            tenant_id=row["tenant_id"],
            feature_id=row["feature_id"],
            enabled=row["enabled"],
            updated_at=row["updated_at"]
        )

    async def put_override(self, override: TenantMenuOverride) -> TenantMenuOverride:
        validate_menu_links(
            override.menu_links,
            owner=f"override {override.tenant_id}/{override.feature_id}"
        )

        async with self._connection() as conn:
            await conn.execute("""
                INSERT INTO tenant_menu_overrides (tenant_id, feature_id, menu_links)
                VALUES ($1, $2, $3::jsonb)
                ON CONFLICT (tenant_id, feature_id) DO UPDATE SET
                    menu_links = EXCLUDED.menu_links,
                    updated_at = NOW()
            """, override.tenant_id, override.feature_id, self._encode_links(override.menu_links))

        self.logger.info(
            "Menu override saved",
            tenant_id=override.tenant_id,
            feature_id=override.feature_id,
            links=len(override.menu_links)
        )
        return override

    async def clear_override(self, tenant_id: str, feature_id: str) -> bool:
        async with self._connection() as conn:
            result = await conn.execute("""
                DELETE FROM tenant_menu_overrides WHERE tenant_id = $1 AND feature_id = $2
            """, tenant_id, feature_id)

        if result == "DELETE 1":
            self.logger.info("Menu override cleared", tenant_id=tenant_id, feature_id=feature_id)
            return True
        return False

    async def health_check(self) -> str:
        """Check database health."""
        try:
            async with self._connection() as conn:
                await conn.fetchval("SELECT 1")
            return "ok"
        except StoreUnavailableError as e:
            return f"error: {e.message}"

    def _encode_links(self, links: List[MenuLink]) -> str:
        return json.dumps([link.to_dict() for link in links])

    def _decode_links(self, value) -> List[MenuLink]:
        if isinstance(value, str):
            value = json.loads(value)
        return [MenuLink.from_dict(link) for link in value or []]

    def _row_to_feature(self, row) -> Feature:
        """Convert database row to Feature object."""
        return Feature(
            id=row["id"],
            key=row["key"],
            slug=row["slug"],
            display_name=row["display_name"],
            description=row["description"],
            default_menu_links=self._decode_links(row["default_menu_links"]),
            created_at=row["created_at"],
            retired_at=row["retired_at"]
        )
