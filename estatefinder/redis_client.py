# Redis client helper: opt-in, fail-open access to a shared Redis connection.
# Controlled by REDIS_ENABLED and REDIS_URL; only the rate limiter depends on it.
import logging
import os

import redis

from .config import _truthy

_logger = logging.getLogger("estatefinder.redis")


# Feature flag: enable Redis by setting REDIS_ENABLED to a truthy value
def is_redis_enabled() -> bool:
    return _truthy(os.getenv("REDIS_ENABLED", "false"))


# Cached client instance (if connected) and a one-shot initialization guard.
# Once initialization is attempted and fails, we remain fail-open.
_client = None
_initialized = False


def get_redis():
    """
    Return a Redis client if enabled and reachable; otherwise return None.

    Behavior:
    - Lazy initialization on first call
    - Fail-open on errors (do not raise), so rate limiting degrades to a no-op
    - After a failed attempt in this process, subsequent calls also return None
    """
    global _client, _initialized
    if not is_redis_enabled():
        return None
    if _client is not None:
        return _client
    if _initialized:
        return None

    url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    try:
        _client = redis.Redis.from_url(
            url,
            socket_timeout=0.25,
            socket_connect_timeout=0.25,
            retry_on_timeout=False,
            health_check_interval=0,
        )
        _client.ping()
        _initialized = True
        _logger.info("Connected to Redis at %s", url)
        return _client
    except redis.RedisError as exc:
        _logger.warning("Redis unavailable (fail-open): %s", exc)
        _client = None
        _initialized = True
        return None


def reset_redis() -> None:
    """Forget the cached client so the next get_redis() reconnects (used by tests)."""
    global _client, _initialized
    _client = None
    _initialized = False
