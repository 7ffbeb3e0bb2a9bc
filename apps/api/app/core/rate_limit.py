"""Rate limiting configuration for the TaskClearers API.

Two layers share the same backing store:
- `limiter` (slowapi) for plain per-route decorator limits.
- `check_rate_limit` for named, keyed fixed-window limits where the key is
  not the caller's IP (login email, global application counter, ...).
"""

import logging
import math
import os
import time
from dataclasses import dataclass

import redis
from fastapi import HTTPException, Request
from limits import RateLimitItem, parse
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter
from slowapi import Limiter

from app.core.config import settings

logger = logging.getLogger(__name__)

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then 'unknown'."""
    forwarded_for = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.headers.get("x-real-ip") or "unknown"


def _resolve_storage_uri() -> str:
    # Redis keeps counters consistent across workers; memory is per-process.
    if IS_TESTING or not settings.REDIS_URL:
        return "memory://"
    try:
        redis.from_url(settings.REDIS_URL, socket_connect_timeout=1).ping()
        return settings.REDIS_URL
    except redis.RedisError as e:
        logger.warning("Redis unavailable for rate limiting, using in-memory: %s", e)
        return "memory://"


STORAGE_URI = _resolve_storage_uri()

limiter = Limiter(key_func=get_client_ip, storage_uri=STORAGE_URI)

_storage = storage_from_string(STORAGE_URI)
_strategy = FixedWindowRateLimiter(_storage)

RATE_LIMITS: dict[str, RateLimitItem] = {
    "login": parse(settings.RATE_LIMIT_LOGIN),
    "verify": parse(settings.RATE_LIMIT_VERIFY),
    "global_ip": parse(settings.RATE_LIMIT_GLOBAL_IP),
    "application": parse(settings.RATE_LIMIT_APPLICATION),
    "application_global": parse(settings.RATE_LIMIT_APPLICATION_GLOBAL),
}


@dataclass
class RateLimitResult:
    success: bool
    remaining: int
    reset_at: float  # epoch seconds

    @property
    def retry_after(self) -> int:
        """Whole seconds until the window resets (for Retry-After)."""
        return max(1, math.ceil(self.reset_at - time.time()))


def check_rate_limit(name: str, key: str) -> RateLimitResult:
    """Count one hit against the named limit for `key`."""
    item = RATE_LIMITS[name]
    success = _strategy.hit(item, key)
    reset_at, remaining = _strategy.get_window_stats(item, key)
    if not success:
        logger.info("Rate limit %s exceeded", name)
    return RateLimitResult(success=success, remaining=remaining, reset_at=reset_at)


def reset_rate_limits() -> None:
    """Clear every counter (used between tests)."""
    _storage.reset()
    limiter.reset()


def enforce_rate_limit(name: str, key: str, detail: str, status_code: int = 429) -> RateLimitResult:
    """
    Count a hit and reject the request once the limit is spent.

    Raises:
        HTTPException: `status_code` with a Retry-After header
    """
    result = check_rate_limit(name, key)
    if not result.success:
        raise HTTPException(
            status_code=status_code,
            detail=detail,
            headers={"Retry-After": str(result.retry_after)},
        )
    return result
