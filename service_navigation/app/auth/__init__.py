"""
Auth package for Navigation Service.

Navigation never validates credentials itself. It asks the external Auth
service to verify a bearer token and keeps the resulting session in a
Redis-backed cache until logout.
"""

from .client import AuthClient
from .session import SessionCache, SessionContext
from .dependencies import SessionResolver, bearer_token

__all__ = [
    "AuthClient",
    "SessionCache",
    "SessionContext",
    "SessionResolver",
    "bearer_token",
]
