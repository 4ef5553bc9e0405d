"""
Unit tests for Navigation Auth Client.
"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from service_navigation.app.auth.client import AuthClient
from shared.errors import AuthenticationError


VERIFY_URL = "http://localhost:8010/auth/verify"


def verify_response(status_code, body):
    return httpx.Response(
        status_code=status_code,
        content=json.dumps(body),
        request=httpx.Request("POST", VERIFY_URL)
    )


class TestAuthClient:
    """Test cases for AuthClient."""

    @pytest.fixture
    def auth_client(self):
        """Create AuthClient instance."""
        return AuthClient("http://localhost:8010")

    @pytest.fixture
    def mock_token(self):
        """Mock bearer token."""
        return "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9.test.signature"

    @pytest.mark.asyncio
    async def test_verify_token_success(self, auth_client, mock_token):
        """Test successful token verification."""
        body = {
            "valid": True,
            "user_info": {"user_id": "user-1", "tenant_id": "school-1", "role": "teacher"}
        }

        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=verify_response(200, body))
            mock_client.return_value.__aenter__.return_value.post = post

            result = await auth_client.verify_token(mock_token)

        assert result == body
        post.assert_awaited_once_with(VERIFY_URL, json={"token": mock_token})

    @pytest.mark.asyncio
    async def test_verify_token_invalid(self, auth_client, mock_token):
        """Test an invalid verdict is returned, not raised."""
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=verify_response(200, {"valid": False, "error": "expired"})
            )

            result = await auth_client.verify_token(mock_token)

        assert result["valid"] is False

    @pytest.mark.asyncio
    async def test_verify_token_server_error(self, auth_client, mock_token):
        """Test an error status becomes an authentication error."""
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=verify_response(500, {"detail": "boom"})
            )

            with pytest.raises(AuthenticationError) as exc_info:
                await auth_client.verify_token(mock_token)

        assert exc_info.value.details == {"status_code": 500}
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_verify_token_connection_error(self, auth_client, mock_token):
        """Test an unreachable auth service becomes an authentication error."""
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ConnectError("Connection failed")
            )

            with pytest.raises(AuthenticationError) as exc_info:
                await auth_client.verify_token(mock_token)

        assert exc_info.value.message == "Auth service unavailable"

    @pytest.mark.asyncio
    async def test_circuit_breaker_opens(self, auth_client, mock_token):
        """Test repeated failures stop calls to the auth service."""
        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(side_effect=httpx.ConnectError("Connection failed"))
            mock_client.return_value.__aenter__.return_value.post = post

            for _ in range(3):
                with pytest.raises(AuthenticationError):
                    await auth_client.verify_token(mock_token)

            with pytest.raises(AuthenticationError) as exc_info:
                await auth_client.verify_token(mock_token)

        assert post.await_count == 3
        assert exc_info.value.details == {"circuit_breaker": "open"}
        assert auth_client.circuit_breaker.is_open()
