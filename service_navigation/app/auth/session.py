"""
Session cache for Navigation Service.
"""

import hashlib
import json
import time
from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple

import redis.asyncio as redis
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.errors import StoreUnavailableError


@dataclass(frozen=True)
class SessionContext:
    """Who is calling: the values the navigation engine runs on."""
    user_id: str
    tenant_id: Optional[str] = None
    role: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionContext":
        return cls(
            user_id=str(data.get("user_id") or ""),
            tenant_id=data.get("tenant_id"),
            role=data.get("role")
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"user_id": self.user_id, "tenant_id": self.tenant_id, "role": self.role}


class SessionCache:
    """Process-wide session cache with a durable copy in Redis.

    Redis is the source of truth. While it is connected, ``init`` reads the
    durable copy on every call, so a logout handled by any worker is seen by
    all of them. The in-process copy only serves sessions while Redis is not
    connected. Expired in-process entries are evicted whenever a session is
    stored or looked up.

    ``teardown`` is logout: it drops both copies and raises
    ``StoreUnavailableError`` when the durable copy could not be deleted.
    Keys are a SHA-256 of the token so raw tokens never reach Redis.
    """

    SESSION_PREFIX = "session:"

    def __init__(self, redis_url: str, ttl_seconds: int = 3600,
                 metrics: Optional[MetricsCollector] = None):
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.metrics = metrics
        self.logger = get_logger("navigation.auth.session")
        self.redis: Optional[redis.Redis] = None
        self._local: Dict[str, Tuple[SessionContext, float]] = {}

    async def start(self):
        """Connect to Redis."""
        try:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30
            )
            await self.redis.ping()
            self.logger.info("Session cache started")

        except (redis.RedisError, OSError) as e:
            self.logger.error("Failed to start session cache", error=str(e))
            raise StoreUnavailableError("session_cache", str(e))

    async def stop(self):
        """Disconnect from Redis and forget in-process sessions."""
        self._local.clear()
        self._update_gauge()
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Session cache stopped")

    def _key(self, token: str) -> str:
        return self.SESSION_PREFIX + hashlib.sha256(token.encode()).hexdigest()

    async def init(self, token: str) -> Optional[SessionContext]:
        """Load the session for a token, or None when there is none."""
        key = self._key(token)
        self._evict_expired(time.time())

        if self.redis is None:
            cached = self._local.get(key)
            return cached[0] if cached else None

        try:
            data = await self.redis.get(key)
        except redis.RedisError as e:
            self.logger.error("Error reading session", error=str(e))
            return None

        if not data:
            # Logged out elsewhere or expired in Redis
            if self._local.pop(key, None) is not None:
                self._update_gauge()
            return None

        context = SessionContext.from_dict(json.loads(data))
        self._remember(key, context)
        self.logger.debug("Session loaded from Redis", user_id=context.user_id)
        return context

    async def store(self, token: str, context: SessionContext) -> bool:
        """Keep a verified session in memory and in Redis."""
        key = self._key(token)
        self._remember(key, context)

        if self.redis is None:
            return False

        try:
            await self.redis.setex(key, self.ttl_seconds, json.dumps(context.to_dict()))
            return True
        except redis.RedisError as e:
            self.logger.error("Error storing session", error=str(e))
            return False

    async def teardown(self, token: str) -> bool:
        """Logout: clear the in-memory and the durable copy."""
        key = self._key(token)
        removed_local = self._local.pop(key, None) is not None
        self._update_gauge()

        removed_durable = False
        if self.redis is not None:
            try:
                removed_durable = bool(await self.redis.delete(key))
            except redis.RedisError as e:
                self.logger.error("Error deleting session", error=str(e))
                raise StoreUnavailableError("session_cache", f"logout failed: {e}")

        self.logger.info("Session torn down", local=removed_local, durable=removed_durable)
        return removed_local or removed_durable

    async def health_check(self) -> str:
        if self.redis is None:
            return "error: not connected"
        try:
            await self.redis.ping()
            return "ok"
        except redis.RedisError as e:
            return f"error: {e}"

    def _remember(self, key: str, context: SessionContext):
        now = time.time()
        self._evict_expired(now)
        self._local[key] = (context, now + self.ttl_seconds)
        self._update_gauge()

    def _evict_expired(self, now: float):
        expired = [key for key, (_, expires_at) in self._local.items() if expires_at <= now]
        for key in expired:
            del self._local[key]
        if expired:
            self._update_gauge()

    def _update_gauge(self):
        if self.metrics:
            self.metrics.set_gauge("active_sessions", len(self._local))
