"""
Resolution package.

Turns an authenticated caller into a navigation menu and a routing
decision:

- gate: Closed role enumeration, menu audiences and the staff allow-list.
- resolver: Entitlements plus overrides into an ordered, filtered menu.
- matcher: Feature/page slugs to Found, FeatureNotFound or
  PageNotImplemented.

The gate always runs first. The resolver and matcher never read session
state; they receive tenant id and role as parameters.
"""
