# storefront/services/lock_service.py
import redis

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# compare-and-delete in Lua, runs atomically on the redis side:
# nothing can get between the GET and the DEL
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


_EXTEND_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('EXPIRE', KEYS[1], ARGV[2])
else
    return 0
end
"""


class LockService:
    """
    Lease on the progression driver of an order.
    - acquire: SET order:{id}:driver <owner> NX EX ttl
    - extend: owner pushes the expiry forward on every driver tick (Lua)
    - release: only by the owner (Lua)
    Keeps the one-driver-per-order rule across API processes.
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(order_id: int) -> str:
        return f"order:{order_id}:driver"

    @redis_retry()
    def acquire_order_lock(self, order_id: int, owner: str, ttl: int) -> bool:
        key = self._key(order_id)
        logger.info(f"Acquire lock {key} for {owner}")
        # ex: expires by itself if the owning process dies
        return bool(self.redis.set(name=key, value=owner, nx=True, ex=ttl))

    @redis_retry()
    def extend_order_lock(self, order_id: int, owner: str, ttl: int) -> bool:
        key = self._key(order_id)
        res = self.redis.eval(_EXTEND_LUA, 1, key, owner, ttl)
        return bool(res)

    @redis_retry()
    def release_order_lock(self, order_id: int, owner: str) -> bool:
        key = self._key(order_id)
        logger.info(f"Release lock {key} for {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)
