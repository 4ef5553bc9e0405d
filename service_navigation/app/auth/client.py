"""
Auth service client for Navigation Service.
"""

from typing import Dict, Any

import httpx
from shared.logging import get_logger
from shared.errors import AuthenticationError
from shared.circuit_breaker import CircuitBreaker, CircuitBreakerOpenException


class AuthClient:
    """Client for communicating with Auth service."""

    def __init__(self, auth_service_url: str, timeout: float = 10.0):
        self.auth_service_url = auth_service_url
        self.timeout = timeout
        self.logger = get_logger("navigation.auth_client")
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=3,
            recovery_timeout=30.0,
            name="auth_service"
        )

    async def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify a bearer token with Auth service.

        Returns the service's verdict, ``{"valid": bool, "user_info": {...}}``.
        """
        async def _verify_token():
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.auth_service_url}/auth/verify",
                    json={"token": token}
                )

            if response.status_code == 200:
                result = response.json()
                if not result.get("valid"):
                    self.logger.warning(
                        "Token validation failed",
                        error=result.get("error")
                    )
                return result

            raise httpx.HTTPStatusError(
                f"Auth service error: {response.status_code}",
                request=response.request,
                response=response
            )

        try:
            return await self.circuit_breaker.call(_verify_token)

        except CircuitBreakerOpenException as e:
            self.logger.warning("Auth service circuit open", error=str(e))
            raise AuthenticationError(
                "Auth service unavailable",
                details={"circuit_breaker": self.circuit_breaker.get_state()["state"]}
            )
        except httpx.HTTPStatusError as e:
            self.logger.error("Auth service returned an error", status_code=e.response.status_code)
            raise AuthenticationError(
                f"Auth service error: {e.response.status_code}",
                details={"status_code": e.response.status_code}
            )
        except httpx.HTTPError as e:
            self.logger.error("Auth service HTTP error", error=str(e))
            raise AuthenticationError(
                "Auth service unavailable",
                details={"http_error": str(e)}
            )
