"""Redis client and key layout for counters, rankings and cached lookups."""

import logging

import redis.asyncio as redis

from app.config import settings

logger = logging.getLogger(__name__)

PLAYLIST_VIEW_RANKING = "playlist:view_count"
PLAYLIST_LIKE_RANKING = "playlist:like_count"
CURATION_VIEW_RANKING = "curation:view_count"
CURATION_LIKE_RANKING = "curation:like_count"

_client: redis.Redis | None = None


def playlist_recommend_key(playlist_id: int) -> str:
    return f"playlist:recommend:{playlist_id}"


def link_preview_key(url: str) -> str:
    return f"link:preview:{url}"


def revoked_token_key(jti: str) -> str:
    return f"auth:revoked:{jti}"


def get_redis() -> redis.Redis:
    """Return the process-wide Redis client, creating it on first use."""
    global _client
    if _client is None:
        _client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        logger.info("Redis client created for %s", settings.redis_url)
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
        logger.info("Redis client closed")
