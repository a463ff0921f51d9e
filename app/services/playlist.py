"""Playlist service: CRUD, item management, views, likes and recommendations."""

import logging

import redis.asyncio as redis
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.recommender.ranking import RankingRecommenderAdapter
from app.api.schemas import PlaylistCreateDto, PlaylistUpdateDto
from app.cache import PLAYLIST_LIKE_RANKING, PLAYLIST_VIEW_RANKING
from app.config import settings
from app.domain.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from app.domain.models import (
    Curation,
    Link,
    Member,
    Playlist,
    PlaylistItem,
    PlaylistItemType,
    PlaylistLike,
    PlaylistTag,
)
from app.ports.recommender import RecommenderPort
from app.services.link import LinkService
from app.services.tag import TagService

logger = logging.getLogger(__name__)


class PlaylistService:
    """Handles playlists and their ranking counters in Redis."""

    def __init__(
        self,
        session: AsyncSession,
        redis_client: redis.Redis,
        recommender: RecommenderPort | None = None,
    ) -> None:
        self._session = session
        self._redis = redis_client
        self._tags = TagService(session)
        self._links = LinkService(session)
        self._recommender = recommender or RankingRecommenderAdapter(
            session,
            redis_client,
            top_n=settings.recommendation_top_n,
            cache_ttl_seconds=settings.recommendation_cache_ttl_seconds,
        )

    async def _find(self, playlist_id: int) -> Playlist:
        result = await self._session.execute(
            select(Playlist).where(Playlist.id == playlist_id)
        )
        playlist = result.scalar_one_or_none()
        if playlist is None:
            raise NotFoundException("Playlist not found", "404-1")
        return playlist

    @staticmethod
    def _check_owner(playlist: Playlist, actor: Member | None) -> None:
        if actor is None:
            raise ForbiddenException("Permission denied", "403-1")
        if playlist.member_id != actor.id and not actor.is_admin:
            raise ForbiddenException("Only the owner may change this playlist", "403-1")

    async def _set_tags(self, playlist: Playlist, names: list[str]) -> None:
        playlist.tags.clear()
        await self._session.flush()
        for tag in await self._tags.get_tags(names):
            playlist.tags.append(PlaylistTag(tag=tag))

    @staticmethod
    def _renumber(playlist: Playlist) -> None:
        for index, item in enumerate(sorted(playlist.items, key=lambda i: i.display_order)):
            item.display_order = index

    # ── CRUD ───────────────────────────────────────

    async def create_playlist(self, data: PlaylistCreateDto, owner: Member | None) -> Playlist:
        playlist = Playlist(
            title=data.title,
            description=data.description,
            is_public=data.is_public,
            thumbnail_url=data.thumbnail_url,
            owner=owner,
            like_count=0,
            items=[],
            tags=[],
        )
        self._session.add(playlist)
        for tag in await self._tags.get_tags(data.tags):
            playlist.tags.append(PlaylistTag(tag=tag))
        await self._session.flush()
        logger.info("Playlist created: id=%s owner=%s", playlist.id, owner.id if owner else None)
        return playlist

    async def get_playlist(self, playlist_id: int, viewer: Member | None = None) -> Playlist:
        """Fetch a playlist and count the view. Private playlists are owner-only."""
        playlist = await self._find(playlist_id)
        if not playlist.is_public and (viewer is None or viewer.id != playlist.member_id):
            raise ForbiddenException("This playlist is private", "403-2")
        await self.record_playlist_view(playlist_id)
        return playlist

    async def get_all_playlists(self) -> list[Playlist]:
        result = await self._session.execute(
            select(Playlist)
            .where(Playlist.is_public.is_(True))
            .order_by(Playlist.created_at.desc(), Playlist.id.desc())
        )
        return list(result.scalars().all())

    async def get_playlists_by_member(self, member: Member) -> list[Playlist]:
        result = await self._session.execute(
            select(Playlist)
            .where(Playlist.member_id == member.id)
            .order_by(Playlist.created_at.desc(), Playlist.id.desc())
        )
        return list(result.scalars().all())

    async def get_liked_playlists(self, member: Member) -> list[Playlist]:
        result = await self._session.execute(
            select(Playlist)
            .join(PlaylistLike, PlaylistLike.playlist_id == Playlist.id)
            .where(PlaylistLike.member_id == member.id)
            .order_by(PlaylistLike.liked_at.desc())
        )
        return list(result.scalars().all())

    async def update_playlist(
        self, playlist_id: int, data: PlaylistUpdateDto, actor: Member | None
    ) -> Playlist:
        playlist = await self._find(playlist_id)
        self._check_owner(playlist, actor)

        playlist.update_playlist(
            title=data.title,
            description=data.description,
            is_public=data.is_public,
            thumbnail_url=data.thumbnail_url,
        )
        if data.tags is not None:
            await self._set_tags(playlist, data.tags)
            await self._recommender.invalidate(playlist_id)
        await self._session.flush()
        return playlist

    async def delete_playlist(self, playlist_id: int, actor: Member | None) -> None:
        playlist = await self._find(playlist_id)
        self._check_owner(playlist, actor)

        await self._session.execute(
            delete(PlaylistLike).where(PlaylistLike.playlist_id == playlist_id)
        )
        await self._session.delete(playlist)
        await self._session.flush()

        await self._redis.zrem(PLAYLIST_VIEW_RANKING, str(playlist_id))
        await self._redis.zrem(PLAYLIST_LIKE_RANKING, str(playlist_id))
        await self._recommender.invalidate(playlist_id)
        logger.info("Playlist deleted: id=%s", playlist_id)

    # ── Items ──────────────────────────────────────

    async def add_playlist_item(
        self,
        playlist_id: int,
        item_id: int,
        item_type: PlaylistItemType,
        actor: Member | None,
    ) -> Playlist:
        playlist = await self._find(playlist_id)
        self._check_owner(playlist, actor)

        target = Link if item_type == PlaylistItemType.LINK else Curation
        if await self._session.get(target, item_id) is None:
            raise NotFoundException(f"{item_type.value.title()} {item_id} not found", "404-3")

        playlist.items.append(
            PlaylistItem(
                item_id=item_id,
                item_type=item_type,
                display_order=len(playlist.items),
            )
        )
        await self._session.flush()
        logger.info("Playlist %s: added %s item %s", playlist_id, item_type.value, item_id)
        return playlist

    async def add_link_item(
        self,
        playlist_id: int,
        url: str,
        title: str | None,
        description: str | None,
        thumbnail: str | None,
        actor: Member | None,
    ) -> Playlist:
        link = await self._links.add_link(url, title, description, thumbnail)
        return await self.add_playlist_item(playlist_id, link.id, PlaylistItemType.LINK, actor)

    async def delete_playlist_item(
        self, playlist_id: int, item_id: int, actor: Member | None
    ) -> Playlist:
        """Remove every entry referencing ``item_id`` and close the gaps."""
        playlist = await self._find(playlist_id)
        self._check_owner(playlist, actor)

        doomed = [item for item in playlist.items if item.item_id == item_id]
        if not doomed:
            raise NotFoundException("Playlist item not found", "404-2")
        for item in doomed:
            playlist.items.remove(item)
        self._renumber(playlist)
        await self._session.flush()
        return playlist

    async def update_playlist_item_order(
        self, playlist_id: int, ordered_item_ids: list[int], actor: Member | None
    ) -> Playlist:
        """Reassign display order; the ids must be exactly the playlist's item ids."""
        playlist = await self._find(playlist_id)
        self._check_owner(playlist, actor)

        items = {item.id: item for item in playlist.items}
        if len(ordered_item_ids) != len(items):
            raise BadRequestException("Item count does not match the playlist", "400-1")
        if set(ordered_item_ids) != set(items):
            raise BadRequestException("Item ids do not match the playlist", "400-1")

        for index, item_pk in enumerate(ordered_item_ids):
            items[item_pk].display_order = index
        await self._session.flush()
        return playlist

    # ── Views & likes ──────────────────────────────

    async def record_playlist_view(self, playlist_id: int) -> None:
        await self._redis.zincrby(PLAYLIST_VIEW_RANKING, 1, str(playlist_id))

    async def view_count(self, playlist_id: int) -> int:
        score = await self._redis.zscore(PLAYLIST_VIEW_RANKING, str(playlist_id))
        return int(score or 0)

    async def view_counts(self, playlist_ids: list[int]) -> dict[int, int]:
        if not playlist_ids:
            return {}
        scores = await self._redis.zmscore(PLAYLIST_VIEW_RANKING, [str(pid) for pid in playlist_ids])
        return {pid: int(score or 0) for pid, score in zip(playlist_ids, scores)}

    async def _find_like(self, playlist_id: int, member: Member) -> PlaylistLike | None:
        return await self._session.get(PlaylistLike, (playlist_id, member.id))

    async def like_playlist(self, playlist_id: int, member: Member) -> Playlist:
        playlist = await self._find(playlist_id)
        if await self._find_like(playlist_id, member) is not None:
            raise ConflictException("Playlist already liked", "409-1")

        self._session.add(PlaylistLike(playlist_id=playlist_id, member_id=member.id))
        playlist.like_count = (playlist.like_count or 0) + 1
        await self._session.flush()
        await self._redis.zincrby(PLAYLIST_LIKE_RANKING, 1, str(playlist_id))
        return playlist

    async def unlike_playlist(self, playlist_id: int, member: Member) -> Playlist:
        playlist = await self._find(playlist_id)
        like = await self._find_like(playlist_id, member)
        if like is None:
            raise NotFoundException("Playlist is not liked", "404-4")

        await self._session.delete(like)
        playlist.like_count = max((playlist.like_count or 0) - 1, 0)
        await self._session.flush()
        await self._redis.zincrby(PLAYLIST_LIKE_RANKING, -1, str(playlist_id))
        return playlist

    async def has_liked_playlist(self, playlist_id: int, member: Member) -> bool:
        await self._find(playlist_id)
        return await self._find_like(playlist_id, member) is not None

    # ── Recommendations ────────────────────────────

    async def recommend_playlist(self, playlist_id: int) -> list[Playlist]:
        """Related public playlists, in the order the recommender ranked them."""
        recommendations = await self._recommender.recommend(playlist_id)
        ids = [r.playlist_id for r in recommendations]
        if not ids:
            return []

        result = await self._session.execute(select(Playlist).where(Playlist.id.in_(ids)))
        by_id = {p.id: p for p in result.scalars().all()}
        return [by_id[pid] for pid in ids if pid in by_id and by_id[pid].is_public]
