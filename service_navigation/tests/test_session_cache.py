"""
Unit tests for the session cache.
"""

import hashlib
import json

import pytest
import redis.asyncio as redis
from unittest.mock import AsyncMock, patch

from service_navigation.app.auth.session import SessionCache, SessionContext
from shared.errors import StoreUnavailableError
from shared.metrics import MetricsCollector


TOKEN = "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9.test.signature"
TOKEN_KEY = "session:" + hashlib.sha256(TOKEN.encode()).hexdigest()


class TestSessionCache:
    """Test cases for SessionCache."""

    @pytest.fixture
    def metrics(self):
        """Create a navigation metrics collector."""
        return MetricsCollector("navigation")

    @pytest.fixture
    def mock_redis(self):
        """Mock Redis client."""
        return AsyncMock()

    @pytest.fixture
    def cache(self, mock_redis, metrics):
        """Create SessionCache wired to a mock Redis."""
        cache = SessionCache("redis://localhost:6379/0", ttl_seconds=600, metrics=metrics)
        cache.redis = mock_redis
        return cache

    @pytest.fixture
    def context(self):
        """A teacher session."""
        return SessionContext(user_id="user-1", tenant_id="school-1", role="teacher")

    @pytest.mark.asyncio
    async def test_store_writes_hashed_key(self, cache, mock_redis, context):
        """Test sessions are written under a hash of the token with a TTL."""
        assert await cache.store(TOKEN, context) is True

        key, ttl, payload = mock_redis.setex.call_args[0]
        assert key == TOKEN_KEY
        assert TOKEN not in key
        assert ttl == 600
        assert json.loads(payload) == {"user_id": "user-1", "tenant_id": "school-1", "role": "teacher"}

    @pytest.mark.asyncio
    async def test_init_without_redis_uses_memory(self, cache, context):
        """Test sessions are served from process memory while Redis is not connected."""
        cache.redis = None
        await cache.store(TOKEN, context)

        assert await cache.init(TOKEN) == context

    @pytest.mark.asyncio
    async def test_init_reads_redis_every_time(self, cache, mock_redis, context, metrics):
        """Test a connected cache always consults Redis and counts the session once."""
        mock_redis.get.return_value = json.dumps(context.to_dict())

        assert await cache.init(TOKEN) == context
        assert await cache.init(TOKEN) == context
        assert mock_redis.get.await_count == 2
        mock_redis.get.assert_awaited_with(TOKEN_KEY)
        assert metrics.registry.get_sample_value("active_sessions") == 1

    @pytest.mark.asyncio
    async def test_logout_on_another_worker_is_seen(self, mock_redis, context):
        """Test a session cached by one worker is gone after another worker logs it out."""
        worker_a = SessionCache("redis://localhost:6379/0", ttl_seconds=600)
        worker_b = SessionCache("redis://localhost:6379/0", ttl_seconds=600)
        worker_a.redis = worker_b.redis = mock_redis

        await worker_a.store(TOKEN, context)
        mock_redis.get.return_value = json.dumps(context.to_dict())
        assert await worker_b.init(TOKEN) == context

        mock_redis.delete.return_value = 1
        assert await worker_a.teardown(TOKEN) is True
        mock_redis.get.return_value = None

        assert await worker_b.init(TOKEN) is None
        assert worker_b._local == {}

    @pytest.mark.asyncio
    async def test_init_unknown_token(self, cache, mock_redis):
        """Test an unknown token has no session."""
        mock_redis.get.return_value = None

        assert await cache.init("other-token") is None

    @pytest.mark.asyncio
    async def test_init_redis_error_is_a_miss(self, cache, mock_redis):
        """Test a Redis read failure falls back to verifying the token again."""
        mock_redis.get.side_effect = redis.RedisError("timeout")

        assert await cache.init(TOKEN) is None

    @pytest.mark.asyncio
    async def test_teardown_clears_both_copies(self, cache, mock_redis, context, metrics):
        """Test logout removes the in-memory and the durable session."""
        await cache.store(TOKEN, context)
        mock_redis.delete.return_value = 1
        mock_redis.get.return_value = None

        assert await cache.teardown(TOKEN) is True

        mock_redis.delete.assert_awaited_once_with(TOKEN_KEY)
        assert await cache.init(TOKEN) is None
        assert metrics.registry.get_sample_value("active_sessions") == 0

    @pytest.mark.asyncio
    async def test_teardown_redis_error_raises(self, cache, mock_redis, context):
        """Test a failed durable delete is reported instead of claiming logout worked."""
        await cache.store(TOKEN, context)
        mock_redis.delete.side_effect = redis.ConnectionError("refused")

        with pytest.raises(StoreUnavailableError) as exc_info:
            await cache.teardown(TOKEN)

        assert exc_info.value.store == "session_cache"
        assert exc_info.value.retryable is True
        assert cache._local == {}

    @pytest.mark.asyncio
    async def test_teardown_without_session(self, cache, mock_redis):
        """Test logging out twice is harmless."""
        mock_redis.delete.return_value = 0

        assert await cache.teardown(TOKEN) is False

    @pytest.mark.asyncio
    async def test_expired_local_session(self, cache, context):
        """Test expired in-memory sessions are not served."""
        cache.redis = None
        await cache.store(TOKEN, context)

        with patch("service_navigation.app.auth.session.time.time", return_value=10 ** 12):
            assert await cache.init(TOKEN) is None

        assert cache._local == {}

    @pytest.mark.asyncio
    async def test_expired_sessions_are_evicted(self, cache, context, metrics):
        """Test expired sessions for other tokens do not pile up in memory."""
        for i in range(1000):
            await cache.store(f"token-{i}", context)
        assert metrics.registry.get_sample_value("active_sessions") == 1000

        with patch("service_navigation.app.auth.session.time.time", return_value=10 ** 12):
            await cache.store(TOKEN, context)

        assert len(cache._local) == 1
        assert metrics.registry.get_sample_value("active_sessions") == 1

    @pytest.mark.asyncio
    async def test_start_failure(self):
        """Test an unreachable Redis fails startup as store unavailable."""
        cache = SessionCache("redis://localhost:6379/0")
        client = AsyncMock()
        client.ping.side_effect = redis.ConnectionError("refused")

        with patch("service_navigation.app.auth.session.redis.from_url", return_value=client):
            with pytest.raises(StoreUnavailableError) as exc_info:
                await cache.start()

        assert exc_info.value.store == "session_cache"

    @pytest.mark.asyncio
    async def test_health_check(self, cache, mock_redis):
        """Test health reflects Redis reachability."""
        assert await cache.health_check() == "ok"

        mock_redis.ping.side_effect = redis.ConnectionError("refused")
        assert (await cache.health_check()).startswith("error")


class TestSessionContext:
    """Test cases for SessionContext."""

    def test_from_dict(self):
        """Test a verified user payload maps onto a session."""
        context = SessionContext.from_dict({"user_id": 7, "tenant_id": "school-1", "role": "teacher"})

        assert context == SessionContext(user_id="7", tenant_id="school-1", role="teacher")

    @pytest.mark.parametrize("data", [{}, {"user_id": None}, {"user_id": ""}])
    def test_missing_user_is_empty(self, data):
        """Test a missing or null user id never becomes a truthy string."""
        assert SessionContext.from_dict(data).user_id == ""
