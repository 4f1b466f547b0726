# Simple Redis-backed fixed-window rate limiter for credential and write endpoints.
# - Per-IP counters; keys: rl:v1:ip:{ip}:{scope} with a TTL-based fixed window.
# - Fail-open if Redis is disabled or unavailable, so the API remains usable in dev or outages.
import logging
import os
from typing import Callable, Literal

import redis
from fastapi import Request

from .config import _to_int
from .errors import RateLimited
from .redis_client import get_redis, is_redis_enabled

logger = logging.getLogger("estatefinder.rate_limit")

Scope = Literal["login", "register", "password_reset", "write"]

# Per-scope env var and default cap per window
_SCOPE_LIMITS = {
    "login": ("RATE_LIMIT_LOGIN_PER_WINDOW", 10),
    "register": ("RATE_LIMIT_REGISTER_PER_WINDOW", 5),
    "password_reset": ("RATE_LIMIT_PASSWORD_RESET_PER_WINDOW", 5),
    "write": ("RATE_LIMIT_WRITE_PER_WINDOW", 30),
}


# Window length in seconds; configured via RATE_LIMIT_WINDOW_SECONDS (default 60)
def _window_seconds() -> int:
    return _to_int(os.getenv("RATE_LIMIT_WINDOW_SECONDS"), 60)


def _limit_for_scope(scope: Scope) -> int:
    env_name, default = _SCOPE_LIMITS[scope]
    return _to_int(os.getenv(env_name), default)


def _client_ip(request: Request) -> str:
    # Connection's remote address only; X-Forwarded-For is not trusted
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(scope: Scope) -> Callable[[Request], None]:
    """
    Fixed-window rate limiting dependency.

    - On first hit in a window the TTL is initialized; later hits share the same expiry.
    - Over the cap, raises RateLimited with the remaining TTL as Retry-After.
    - If Redis is disabled or unavailable, requests pass through.
    """
    window = _window_seconds()
    limit = _limit_for_scope(scope)

    def _dependency(request: Request) -> None:
        if not is_redis_enabled():
            return
        r = get_redis()
        if r is None:
            return

        ip = _client_ip(request)
        key = f"rl:v1:ip:{ip}:{scope}"
        try:
            current = r.incr(key, amount=1)
            if current == 1:
                r.expire(key, window)
            ttl = r.ttl(key) if current > limit else None
        except redis.RedisError as exc:
            logger.warning("Rate limit fail-open (scope=%s, ip=%s): %s", scope, ip, exc)
            return

        if ttl is not None:
            retry_after = ttl if isinstance(ttl, int) and ttl > 0 else window
            logger.info("rate_limit.exceeded", extra={"scope": scope, "ip": ip, "limit": limit})
            raise RateLimited(scope, retry_after)

    return _dependency
