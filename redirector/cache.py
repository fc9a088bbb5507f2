from __future__ import annotations

import math

from redis import Redis

from redirector.config import settings
from redirector.models import Redirect

redis_client = Redis.from_url(settings.redis_url, decode_responses=True)


def cache_key_for_id(redirect_id: str) -> str:
    return f"redirect:{redirect_id}"


def get_cached(redirect_id: str) -> Redirect | None:
    """
    Returns a transient Redirect built from the cached row, or None on a miss.
    Expiry is not trusted from Redis: callers recompute it from the row.
    """
    if not settings.cache_enabled:
        return None
    data = redis_client.hgetall(cache_key_for_id(redirect_id))
    if not data:
        return None
    try:
        return Redirect(
            id=redirect_id,
            target_url=data["url"],
            created_at=int(data["created_at"]),
            ttl_seconds=int(data["ttl"]),
        )
    except (KeyError, ValueError):
        return None


def put_cached(row: Redirect, now_ms: int) -> None:
    """
    Cache a row for the rest of its lifetime (rounded up to whole seconds).
    Rows that are already expired are never cached.
    """
    if not settings.cache_enabled:
        return
    remaining_ms = row.expires_at_ms - now_ms
    if remaining_ms <= 0:
        return
    key = cache_key_for_id(row.id)
    pipe = redis_client.pipeline()
    pipe.hset(key, mapping={"url": row.target_url, "created_at": row.created_at, "ttl": row.ttl_seconds})
    pipe.expire(key, math.ceil(remaining_ms / 1000))
    pipe.execute()


def evict(redirect_id: str) -> None:
    if not settings.cache_enabled:
        return
    redis_client.delete(cache_key_for_id(redirect_id))
