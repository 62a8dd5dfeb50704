# storefront/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception
from sqlalchemy.exc import OperationalError
import redis

from storefront.domain.errors import InternalError


def _is_transient_db_failure(exc: BaseException) -> bool:
    # deadlocks, serialization failures, sqlite "database is locked"
    return isinstance(exc, InternalError) and isinstance(exc.__cause__, OperationalError)


def db_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
        retry=retry_if_exception(_is_transient_db_failure),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception(lambda e: isinstance(e, redis.RedisError)),
    )
