"""Curation CRUD, search, views and likes."""

import enum
import logging

import redis.asyncio as redis
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import CURATION_LIKE_RANKING, CURATION_VIEW_RANKING
from app.domain.exceptions import ForbiddenException, NotFoundException
from app.domain.models import (
    Comment,
    Curation,
    CurationLink,
    CurationTag,
    Like,
    Member,
    PlaylistItemType,
    Tag,
)
from app.services.image import ImageService
from app.services.link import LinkService
from app.services.playlist_items import purge_playlist_items
from app.services.tag import TagService

logger = logging.getLogger(__name__)


class SearchOrder(str, enum.Enum):
    LATEST = "LATEST"
    OLDEST = "OLDEST"
    LIKECOUNT = "LIKECOUNT"


class CurationService:
    """Handles curations together with their links, tags and rankings."""

    def __init__(
        self,
        session: AsyncSession,
        redis_client: redis.Redis,
        image_service: ImageService | None = None,
    ) -> None:
        self._session = session
        self._redis = redis_client
        self._links = LinkService(session)
        self._tags = TagService(session)
        self._images = image_service

    async def _find(self, curation_id: int) -> Curation:
        result = await self._session.execute(
            select(Curation).where(Curation.id == curation_id)
        )
        curation = result.scalar_one_or_none()
        if curation is None:
            raise NotFoundException("Curation not found", "404-1")
        return curation

    @staticmethod
    def _check_author(curation: Curation, actor: Member | None, allow_admin: bool) -> None:
        if actor is None:
            raise ForbiddenException("Permission denied", "403-1")
        if curation.member_id == actor.id:
            return
        if allow_admin and actor.is_admin:
            return
        raise ForbiddenException("Only the author may change this curation", "403-1")

    async def _attach(self, curation: Curation, urls: list[str], tags: list[str]) -> None:
        seen_urls: set[str] = set()
        for url in urls:
            if url in seen_urls:
                continue
            seen_urls.add(url)
            curation.links.append(CurationLink(link=await self._links.get_link(url)))
        for tag in await self._tags.get_tags(tags):
            curation.tags.append(CurationTag(tag=tag))

    async def create_curation(
        self,
        title: str,
        content: str,
        urls: list[str],
        tags: list[str],
        author: Member | None = None,
    ) -> Curation:
        curation = Curation(
            title=title,
            content=content,
            author=author,
            like_count=0,
            links=[],
            tags=[],
        )
        self._session.add(curation)
        await self._attach(curation, urls, tags)
        await self._session.flush()

        if self._images is not None:
            await self._images.sync_curation_images(curation)
        logger.info(
            "Curation created: id=%s links=%d tags=%d",
            curation.id,
            len(curation.links),
            len(curation.tags),
        )
        return curation

    async def update_curation(
        self,
        curation_id: int,
        title: str,
        content: str,
        urls: list[str],
        tags: list[str],
        actor: Member | None,
    ) -> Curation:
        curation = await self._find(curation_id)
        self._check_author(curation, actor, allow_admin=False)

        curation.title = title
        curation.content = content
        curation.links.clear()
        curation.tags.clear()
        # flush the orphan deletes before re-inserting the same pairs
        await self._session.flush()
        await self._attach(curation, urls, tags)
        await self._session.flush()

        if self._images is not None:
            await self._images.sync_curation_images(curation)
        logger.info("Curation updated: id=%s", curation.id)
        return curation

    async def delete_curation(self, curation_id: int, actor: Member | None) -> None:
        curation = await self._find(curation_id)
        self._check_author(curation, actor, allow_admin=True)

        await self._session.execute(delete(Comment).where(Comment.curation_id == curation_id))
        await self._session.execute(delete(Like).where(Like.curation_id == curation_id))
        await purge_playlist_items(self._session, PlaylistItemType.CURATION, [curation_id])
        if self._images is not None:
            await self._images.delete_curation_images([curation_id])
        await self._session.delete(curation)
        await self._session.flush()

        await self._redis.zrem(CURATION_VIEW_RANKING, str(curation_id))
        await self._redis.zrem(CURATION_LIKE_RANKING, str(curation_id))
        logger.info("Curation deleted: id=%s", curation_id)

    async def get_curation(self, curation_id: int, count_view: bool = True) -> Curation:
        """Fetch a curation, counting the view unless told otherwise."""
        curation = await self._find(curation_id)
        if count_view:
            await self._redis.zincrby(CURATION_VIEW_RANKING, 1, str(curation_id))
        return curation

    async def view_count(self, curation_id: int) -> int:
        score = await self._redis.zscore(CURATION_VIEW_RANKING, str(curation_id))
        return int(score or 0)

    async def view_counts(self, curation_ids: list[int]) -> dict[int, int]:
        if not curation_ids:
            return {}
        scores = await self._redis.zmscore(CURATION_VIEW_RANKING, [str(cid) for cid in curation_ids])
        return {cid: int(score or 0) for cid, score in zip(curation_ids, scores)}

    def _search_statement(
        self,
        tags: list[str] | None,
        title: str | None,
        content: str | None,
        author: str | None,
    ):
        stmt = select(Curation)
        if tags:
            tagged = (
                select(CurationTag.curation_id)
                .join(Tag, Tag.id == CurationTag.tag_id)
                .where(Tag.name.in_(tags))
            )
            stmt = stmt.where(Curation.id.in_(tagged))
        if title:
            stmt = stmt.where(Curation.title.contains(title, autoescape=True))
        if content:
            stmt = stmt.where(Curation.content.contains(content, autoescape=True))
        if author:
            stmt = stmt.join(Member, Member.id == Curation.member_id).where(Member.username == author)
        return stmt

    async def search_curations(
        self,
        tags: list[str] | None = None,
        title: str | None = None,
        content: str | None = None,
        author: str | None = None,
        order: SearchOrder = SearchOrder.LATEST,
        page: int = 1,
        size: int = 20,
    ) -> tuple[list[Curation], int]:
        """Curations matching ANY of ``tags`` and the text filters, paged."""
        stmt = self._search_statement(tags, title, content, author)
        total = await self._session.scalar(
            select(func.count()).select_from(stmt.subquery())
        )

        if order == SearchOrder.OLDEST:
            stmt = stmt.order_by(Curation.created_at.asc(), Curation.id.asc())
        elif order == SearchOrder.LIKECOUNT:
            stmt = stmt.order_by(Curation.like_count.desc(), Curation.id.desc())
        else:
            stmt = stmt.order_by(Curation.created_at.desc(), Curation.id.desc())

        result = await self._session.execute(stmt.offset((page - 1) * size).limit(size))
        return list(result.scalars().all()), total or 0

    async def search_by_tags(self, tags: list[str]) -> list[Curation]:
        stmt = self._search_statement(tags, None, None, None).order_by(Curation.id.desc())
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def like_curation(self, curation_id: int, member: Member) -> tuple[Curation, bool]:
        """Toggle the member's like. Returns the curation and whether it is now liked."""
        curation = await self._find(curation_id)
        result = await self._session.execute(
            select(Like).where(Like.curation_id == curation_id, Like.member_id == member.id)
        )
        like = result.scalar_one_or_none()

        if like is None:
            self._session.add(Like(curation_id=curation_id, member_id=member.id))
            curation.like_count = (curation.like_count or 0) + 1
            liked = True
        else:
            await self._session.delete(like)
            curation.like_count = max((curation.like_count or 0) - 1, 0)
            liked = False

        await self._session.flush()
        await self._redis.zincrby(CURATION_LIKE_RANKING, 1 if liked else -1, str(curation_id))
        return curation, liked

    async def has_liked(self, curation_id: int, member: Member) -> bool:
        found = await self._session.scalar(
            select(func.count(Like.id)).where(
                Like.curation_id == curation_id, Like.member_id == member.id
            )
        )
        return bool(found)
