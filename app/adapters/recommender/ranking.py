"""Ranking-based recommender backed by Redis sorted sets.

Cache-aside lookup:

1. ``GET playlist:recommend:{id}``; a hit is returned as-is.
2. On a miss, take the top-N of the view ranking (trending) and of the
   like ranking (popular), union them in rank order with trending first,
   then append public playlists sharing a tag with the source playlist.
3. Store the ``[id, reason]`` pairs under the cache key with a TTL.
"""

import json
import logging

import redis.asyncio as redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import PLAYLIST_LIKE_RANKING, PLAYLIST_VIEW_RANKING, playlist_recommend_key
from app.domain.exceptions import NotFoundException
from app.domain.models import Playlist, PlaylistTag
from app.ports.recommender import RecommendationResult, RecommenderPort

logger = logging.getLogger(__name__)


class RankingRecommenderAdapter(RecommenderPort):
    """Blends view/like rankings with tag overlap, caching the result."""

    def __init__(
        self,
        session: AsyncSession,
        redis_client: redis.Redis,
        top_n: int = 10,
        cache_ttl_seconds: int = 3600,
    ) -> None:
        self._session = session
        self._redis = redis_client
        self._top_n = top_n
        self._ttl = cache_ttl_seconds

    async def recommend(self, playlist_id: int) -> list[RecommendationResult]:
        key = playlist_recommend_key(playlist_id)
        cached = await self._redis.get(key)
        if cached is not None:
            logger.debug("Recommendation cache hit for playlist %s", playlist_id)
            return [
                RecommendationResult(playlist_id=int(pid), reason=reason)
                for pid, reason in json.loads(cached)
            ]

        logger.debug("Recommendation cache miss for playlist %s", playlist_id)
        source = await self._session.get(Playlist, playlist_id)
        if source is None:
            raise NotFoundException("Playlist not found", "404-1")

        trending = await self._redis.zrevrange(PLAYLIST_VIEW_RANKING, 0, self._top_n - 1)
        popular = await self._redis.zrevrange(PLAYLIST_LIKE_RANKING, 0, self._top_n - 1)

        results: list[RecommendationResult] = []
        seen = {playlist_id}

        def _add(pid: int, reason: str) -> None:
            if pid not in seen:
                seen.add(pid)
                results.append(RecommendationResult(playlist_id=pid, reason=reason))

        for member in trending:
            _add(int(member), "trending")
        for member in popular:
            _add(int(member), "popular")
        for pid in await self._find_by_tags(source):
            _add(pid, "tag")

        await self._redis.set(
            key,
            json.dumps([[r.playlist_id, r.reason] for r in results]),
            ex=self._ttl,
        )
        logger.info(
            "Computed %d recommendations for playlist %s (trending=%d, popular=%d)",
            len(results),
            playlist_id,
            len(trending),
            len(popular),
        )
        return results

    async def _find_by_tags(self, source: Playlist) -> list[int]:
        """Public playlists sharing at least one tag with ``source``."""
        tag_ids = [pt.tag_id for pt in source.tags]
        if not tag_ids:
            return []
        shared = select(PlaylistTag.playlist_id).where(PlaylistTag.tag_id.in_(tag_ids))
        result = await self._session.execute(
            select(Playlist.id)
            .where(
                Playlist.id.in_(shared),
                Playlist.id != source.id,
                Playlist.is_public.is_(True),
            )
            .order_by(Playlist.like_count.desc(), Playlist.id.desc())
            .limit(self._top_n)
        )
        return list(result.scalars().all())

    async def invalidate(self, playlist_id: int) -> None:
        await self._redis.delete(playlist_recommend_key(playlist_id))
