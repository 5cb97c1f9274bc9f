"""
Redis-backed rate limiting for public endpoints (payment callbacks and
provider notifications). Falls back to a per-process window when Redis
is unreachable so payment notifications are never dropped for lack of it.
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None

# Fallback windows: {key: {"count": int, "reset_time": int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client
    Supports REDIS_URL or individual REDIS_* settings
    """
    global redis_client

    if redis_client is None:
        redis_url = os.getenv("REDIS_URL")

        if redis_url:
            logger.info("📡 Using Redis URL connection for rate limiting")
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        else:
            redis_host = os.getenv("REDIS_HOST", "localhost")
            redis_port = int(os.getenv("REDIS_PORT", "6379"))
            logger.info(f"📡 Using Redis at {redis_host}:{redis_port} for rate limiting")
            client = redis.Redis(
                host=redis_host,
                port=redis_port,
                password=os.getenv("REDIS_PASSWORD"),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )

        client.ping()
        logger.info("Redis connected successfully")
        redis_client = client

    return redis_client


def _check_memory(key: str, limit: int, window_seconds: int) -> tuple[bool, int, int]:
    current_time = int(time.time())
    with cache_lock:
        expired = [k for k, v in memory_cache.items() if current_time >= v["reset_time"]]
        for k in expired:
            del memory_cache[k]

        entry = memory_cache.get(key)
        if entry is None:
            entry = {"count": 0, "reset_time": current_time + window_seconds}
            memory_cache[key] = entry

        is_allowed = entry["count"] < limit
        if is_allowed:
            entry["count"] += 1
        return is_allowed, entry["count"], max(0, entry["reset_time"] - current_time)


def check_rate_limit(key: str, limit: int, window_seconds: int) -> tuple[bool, int, int]:
    """Fixed-window check.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    try:
        client = get_redis_client()
        pipe = client.pipeline()
        pipe.incr(key)
        pipe.expire(key, window_seconds, nx=True)
        pipe.ttl(key)
        count, _, ttl = pipe.execute()
        return int(count) <= limit, int(count), max(0, int(ttl))
    except Exception as e:
        logger.warning(f"⚠️ Redis rate limit unavailable, using in-memory window: {e}")
        return _check_memory(key, limit, window_seconds)


async def rate_limit_dependency(
    request: Request, limit: int, window_seconds: int, key_prefix: str = "rate_limit"
):
    """FastAPI dependency enforcing a per-IP limit"""
    client_ip = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()

    key = f"{key_prefix}:{client_ip}"
    is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds)

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
        raise HTTPException(
            status_code=429,
            detail={
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after": ttl,
            },
            headers={"Retry-After": str(ttl)},
        )


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        cardcom_webhook_limiter = create_rate_limiter(limit=120, window_seconds=60, key_prefix="cardcom")

        @router.post("/cardcom/webhook")
        async def cardcom_webhook(request: Request, _: None = Depends(cardcom_webhook_limiter)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix)

    return rate_limiter


# Public payment endpoints
cardcom_webhook_limiter = create_rate_limiter(limit=120, window_seconds=60, key_prefix="cardcom_webhook")
payment_callback_limiter = create_rate_limiter(
    limit=30, window_seconds=60, key_prefix="payment_callback"
)
