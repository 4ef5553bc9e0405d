#!/usr/bin/env python3
"""
Validate a feature catalog file and optionally load it into PostgreSQL.

Integrity errors (duplicate slugs, keys or hrefs, blank or relative links)
are printed for the operator and the script exits non-zero. Nothing is
written unless --apply is given.
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

from shared.errors import CatalogIntegrityError, StoreUnavailableError
from service_navigation.app.catalog.loader import CatalogDocument, apply_catalog, read_catalog_file
from service_navigation.app.stores.postgres import PostgresNavigationStore


def summarize(catalog: CatalogDocument) -> dict:
    return {
        "features": [
            {"id": f.id, "key": f.key, "slug": f.slug, "links": len(f.default_menu_links)}
            for f in catalog.features
        ],
        "entitlements": len(catalog.entitlements),
        "overrides": len(catalog.overrides),
    }


async def load(catalog: CatalogDocument, dsn: str) -> None:
    """Write a validated catalog into PostgreSQL."""
    store = PostgresNavigationStore(dsn)
    await store.start()
    try:
        await apply_catalog(store, catalog)
    finally:
        await store.stop()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate and load a feature catalog.")
    parser.add_argument("catalog", type=Path, help="Path to the catalog YAML file")
    parser.add_argument("--dsn", default=os.getenv("NAV_POSTGRES_DSN", "postgres://localhost:5432/elitescholar"), help="PostgreSQL DSN")
    parser.add_argument("--apply", action="store_true", help="Write the catalog into PostgreSQL")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()

    if not args.catalog.exists():
        print(f"[catalog] {args.catalog} not found", file=sys.stderr)
        return 1

    try:
        catalog = read_catalog_file(args.catalog)
    except CatalogIntegrityError as exc:
        print(f"[catalog] {exc.code}: {exc.message}", file=sys.stderr)
        print(json.dumps(exc.details, indent=2), file=sys.stderr)
        return 2

    print(json.dumps(summarize(catalog), indent=2))

    if not args.apply:
        print("[catalog] valid - not applied (use --apply to write)")
        return 0

    try:
        asyncio.run(load(catalog, args.dsn))
    except KeyboardInterrupt:
        return 130
    except CatalogIntegrityError as exc:
        print(f"[catalog] {exc.code}: {exc.message}", file=sys.stderr)
        return 2
    except StoreUnavailableError as exc:
        print(f"[catalog] store unavailable: {exc.message}", file=sys.stderr)
        return 1

    print("[catalog] applied")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
