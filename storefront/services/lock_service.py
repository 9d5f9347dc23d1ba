# storefront/services/lock_service.py
import uuid

import redis

from storefront.utils.settings import REDIS_SOCKET_TIMEOUT_SECONDS, REDIS_URL
from storefront.utils.retry import redis_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# compare-and-delete in one step: only the holder's token may release the key
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Per-user checkout lock.
    SET NX EX so a crashed holder's lock expires on its own.
    """

    def __init__(self, url: str | None = None, socket_timeout: float | None = None):
        timeout = REDIS_SOCKET_TIMEOUT_SECONDS if socket_timeout is None else socket_timeout
        # fail fast when Redis is unreachable
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=timeout,
            socket_timeout=timeout,
        )

    @staticmethod
    def _key(user_id: str) -> str:
        return f"checkout:{user_id}:lock"

    @redis_retry()
    def acquire_checkout_lock(self, user_id: str, ttl: int) -> str | None:
        """Returns the holder token, or None when another checkout holds the lock."""
        key = self._key(user_id)
        token = uuid.uuid4().hex
        logger.info(f"Acquire lock {key}")
        acquired = self.redis.set(name=key, value=token, nx=True, ex=ttl)
        return token if acquired else None

    @redis_retry()
    def release_checkout_lock(self, user_id: str, token: str) -> bool:
        key = self._key(user_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
