"""
Request authentication for Navigation Service.
"""

from fastapi import Request

from shared.logging import get_logger, set_user_context
from shared.errors import AuthenticationError
from shared.tracing import add_span_attributes
from .client import AuthClient
from .session import SessionCache, SessionContext


def bearer_token(request: Request) -> str:
    """Extract the bearer token from the Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise AuthenticationError("Authorization header required")

    if not auth_header.startswith("Bearer ") or not auth_header[7:].strip():
        raise AuthenticationError("Invalid authorization header format")

    return auth_header[7:].strip()


class SessionResolver:
    """Turns a request's bearer token into a SessionContext.

    A cached session is used when present. Otherwise the token is
    verified with Auth service and the session is cached until it
    expires or the caller logs out.
    """

    def __init__(self, auth_client: AuthClient, session_cache: SessionCache):
        self.auth_client = auth_client
        self.session_cache = session_cache
        self.logger = get_logger("navigation.auth.sessions")

    async def authenticate(self, request: Request) -> SessionContext:
        token = bearer_token(request)

        context = await self.session_cache.init(token)
        if context is None:
            result = await self.auth_client.verify_token(token)
            if not result.get("valid"):
                raise AuthenticationError(
                    "Invalid token",
                    details={"error": result.get("error")}
                )

            context = SessionContext.from_dict(result.get("user_info") or {})
            if not context.user_id:
                raise AuthenticationError("Token carries no user")

            await self.session_cache.store(token, context)
            self.logger.info(
                "Session established",
                user_id=context.user_id,
                tenant_id=context.tenant_id,
                role=context.role
            )

        request.state.log_context = set_user_context(context.user_id, context.tenant_id, context.role)
        add_span_attributes(user_id=context.user_id, tenant_id=context.tenant_id, role=context.role)
        return context
