import logging
import time
from typing import Optional

import redis
from redis.exceptions import RedisError

from indiyum.core.security import new_token

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Bearer tokens for logged-in users.
    Redis is the primary store when REDIS_URL is set; RAM is the fallback and
    always receives a copy, so a Redis outage only costs a warning.
    """

    def __init__(self, redis_url: Optional[str] = None, ttl: int = 86400):
        self.ttl = ttl
        self.redis = None
        self.redis_available = False

        # 1. Primary (Redis)
        if redis_url:
            try:
                self.redis = redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_connect_timeout=1  # fail fast if Redis is down
                )
                self.redis.ping()
                self.redis_available = True
                logger.info("✅ SessionStore: connected to Redis.")
            except RedisError as e:
                logger.warning(f"⚠️ SessionStore: Redis unreachable ({e}). Using RAM fallback.")

        # 2. Fallback (RAM): token -> (user_id, expires_at)
        self._memory_store: dict[str, tuple[int, float]] = {}

    def issue(self, user_id: int) -> str:
        token = new_token()
        token_key = f"session:{token}"
        user_key = f"user:{user_id}:sessions"

        if self.redis_available:
            try:
                pipe = self.redis.pipeline()
                pipe.setex(token_key, self.ttl, user_id)
                pipe.sadd(user_key, token)
                pipe.expire(user_key, self.ttl)
                pipe.execute()
            except RedisError as e:
                self._handle_redis_error(e)

        self._memory_store[token] = (user_id, time.time() + self.ttl)
        return token

    def resolve(self, token: str) -> Optional[int]:
        """User id behind a token, or None if unknown or expired."""
        if not token:
            return None

        if self.redis_available:
            try:
                value = self.redis.get(f"session:{token}")
                if value is not None:
                    return int(value)
            except RedisError as e:
                self._handle_redis_error(e)

        entry = self._memory_store.get(token)
        if not entry:
            return None
        user_id, expires_at = entry
        if expires_at <= time.time():
            self._memory_store.pop(token, None)
            return None
        return user_id

    def revoke_user(self, user_id: int) -> None:
        """Drop every token of a user (login rotates tokens)."""
        user_key = f"user:{user_id}:sessions"

        if self.redis_available:
            try:
                tokens = self.redis.smembers(user_key)
                if tokens:
                    self.redis.delete(*[f"session:{t}" for t in tokens])
                self.redis.delete(user_key)
            except RedisError as e:
                self._handle_redis_error(e)

        for token in [t for t, (uid, _) in self._memory_store.items() if uid == user_id]:
            self._memory_store.pop(token, None)

    def _handle_redis_error(self, e):
        """Log and stop trying Redis."""
        logger.error(f"❌ Redis Error: {e}. Switching to RAM mode.")
        self.redis_available = False
