"""
Per-IP rate limiting for the public form endpoints.

Windows are counted in process memory and written through to Redis every few
seconds when REDIS_URL is configured, so that several API processes converge
on roughly the same count. Without Redis the limiter is memory-only.
"""

import logging
import time
from threading import Lock
from typing import Optional, Sequence

import redis
from fastapi import HTTPException, Request

from .config import Settings

logger = logging.getLogger(__name__)

REDIS_SYNC_SECONDS = 10
PRUNE_EVERY_SECONDS = 60

_redis_client: Optional[redis.Redis] = None
_redis_url: Optional[str] = None

# key -> {"count": int, "reset_at": int, "synced_at": int}
_windows: dict[str, dict] = {}
_windows_lock = Lock()
_last_prune = 0


def get_redis_client(settings: Settings) -> Optional[redis.Redis]:
    """Shared Redis client for REDIS_URL, or None when it is not configured"""
    global _redis_client, _redis_url

    if not settings.redis_url:
        return None

    if _redis_client is None or _redis_url != settings.redis_url:
        logger.info("🔄 Connecting rate limiter to Redis")
        _redis_client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=15,
            socket_timeout=30,
            retry_on_timeout=True,
            health_check_interval=30,
            max_connections=20,
        )
        _redis_url = settings.redis_url

    return _redis_client


def reset_rate_limits() -> None:
    with _windows_lock:
        _windows.clear()


def _prune(now: int) -> None:
    global _last_prune

    if now - _last_prune < PRUNE_EVERY_SECONDS:
        return

    with _windows_lock:
        finished = [key for key, window in _windows.items() if now >= window["reset_at"]]
        for key in finished:
            del _windows[key]

    if finished:
        logger.debug(f"🧹 Dropped {len(finished)} finished rate limit windows")
    _last_prune = now


def _open_window(client: Optional[redis.Redis], key: str, window_seconds: int, now: int) -> dict:
    """Start a window, resuming the count another process already stored in Redis"""
    if client is not None:
        try:
            stored = client.get(key)
            remaining = client.ttl(key)
            if stored and remaining > 0:
                return {"count": int(stored), "reset_at": now + remaining, "synced_at": now}
        except redis.RedisError as e:
            logger.warning(f"⚠️ Could not read rate limit window {key} from Redis: {e}")
    return {"count": 0, "reset_at": now + window_seconds, "synced_at": now}


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis] = None
) -> tuple[bool, int, int]:
    """
    Count one request against key.

    Returns:
        (allowed, requests counted in the window, seconds until the window resets)
    """
    now = int(time.time())
    _prune(now)

    with _windows_lock:
        window = _windows.get(key)
        if window is None:
            window = _windows[key] = _open_window(client, key, window_seconds, now)
        elif now >= window["reset_at"]:
            window.update(count=0, reset_at=now + window_seconds, synced_at=0)

        allowed = window["count"] < limit
        if allowed:
            window["count"] += 1

        if client is not None and now - window["synced_at"] >= REDIS_SYNC_SECONDS:
            try:
                client.set(key, window["count"], ex=window_seconds)
                window["synced_at"] = now
            except redis.RedisError as e:
                logger.warning(f"⚠️ Could not write rate limit window {key} to Redis: {e}")

        return allowed, window["count"], max(0, window["reset_at"] - now)


def client_ip(request: Request, trusted_proxies: Sequence[str] = ()) -> str:
    """Peer address, or the first X-Forwarded-For hop when the peer is a trusted proxy"""
    peer = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and peer in trusted_proxies:
        return forwarded.split(",")[0].strip() or peer
    return peer


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Build a FastAPI dependency enforcing `limit` requests per `window_seconds` per client IP.

        callback_rate_limit = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="callback")

        @router.post("/callback")
        async def request_callback(data: CallbackCreate, _: None = Depends(callback_rate_limit)):
            ...
    """

    async def enforce_rate_limit(request: Request) -> None:
        settings: Settings = request.app.state.settings
        if not settings.rate_limit_enabled:
            return

        key = f"{key_prefix}:{client_ip(request, settings.trusted_proxies)}"
        allowed, count, retry_after = check_rate_limit(key, limit, window_seconds, get_redis_client(settings))
        if not allowed:
            logger.warning(f"🚫 Rate limit hit for {key} ({count}/{limit})")
            raise HTTPException(
                status_code=429,
                detail={
                    "message": f"Too many requests. Limit is {limit} per {window_seconds} seconds.",
                    "retry_after": retry_after,
                },
                headers={"Retry-After": str(retry_after)},
            )

    return enforce_rate_limit
