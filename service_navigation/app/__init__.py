"""
Navigation Service package for the EliteScholar Access Layer.

This package decides which catalog features and menu links a school's
staff can see, and routes feature/page paths back to a menu link. It
provides:

- app.main: API surface for menus, page routing, logout and health.
- app.catalog: Feature and menu-link model, slug rules, integrity checks
  and the YAML catalog loader.
- app.resolution: Access gate, menu resolver and route matcher.
- app.stores: Catalog and entitlement stores (in-memory and PostgreSQL).
- app.auth: Auth service client and the Redis-backed session cache.

Guidelines:
- The service is stateless; every menu is resolved from current store state.
- The gate runs before any store read. Gated callers never touch a store.
- Keep resolution deterministic and observable (metrics + logs).
"""
