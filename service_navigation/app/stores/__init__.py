"""
Stores package for Navigation Service.

The resolver reads two collections: the global feature catalog and the
per-tenant entitlements and menu overrides. Both contracts live in
``base``; ``memory`` and ``postgres`` implement them together with the
administration operations used by the catalog loader.
"""

from .base import CatalogStore, EntitlementStore, NavigationStore
from .memory import InMemoryNavigationStore
from .postgres import PostgresNavigationStore

__all__ = [
    "CatalogStore",
    "EntitlementStore",
    "NavigationStore",
    "InMemoryNavigationStore",
    "PostgresNavigationStore",
]
