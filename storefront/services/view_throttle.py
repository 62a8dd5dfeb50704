# storefront/services/view_throttle.py
import redis

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, VIEW_DEDUP_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ViewThrottle:
    """
    Counts at most one view per (viewer, product) per window.

    SET key NX EX window: redis creates the key only when it is missing,
    so of any number of views inside the window exactly one sees True.
    A window of 0 turns deduplication off and never talks to redis.
    """

    def __init__(self, url: str | None = None, window: int = VIEW_DEDUP_SECONDS, client=None):
        self.window = window
        self._url = url or REDIS_URL
        self._redis = client

    @property
    def redis(self):
        if self._redis is None:
            self._redis = redis.Redis.from_url(self._url, decode_responses=True)
        return self._redis

    @redis_retry()
    def should_count(self, product_id: int, viewer_key: str | None) -> bool:
        if self.window <= 0 or not viewer_key:
            return True

        key = f"product:{product_id}:viewed:{viewer_key}"
        first = self.redis.set(name=key, value="1", nx=True, ex=self.window)
        if not first:
            logger.info(f"View of product {product_id} by {viewer_key} already counted")
        return bool(first)
