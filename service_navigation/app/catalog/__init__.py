"""
Catalog package.

Defines the global feature catalog model and the rules that keep it
consistent:

- models: Feature, MenuLink, tenant entitlement and override records,
  plus the API response models.
- slugs: Slug derivation for feature keys and page slugs for hrefs.
- validation: Integrity checks (duplicate slugs, keys and hrefs, blank or
  relative links). Violations are fatal at load time.
- loader: Reads YAML catalog documents and applies them to a store.
"""
