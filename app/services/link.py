"""Link management and link preview service."""

import json
import logging

import httpx
import redis.asyncio as redis
from bs4 import BeautifulSoup
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import LinkPreviewDto
from app.cache import link_preview_key
from app.config import settings
from app.domain.exceptions import BadRequestException, NotFoundException
from app.domain.models import CurationLink, Link, PlaylistItemType
from app.services.playlist_items import purge_playlist_items

logger = logging.getLogger(__name__)

_USER_AGENT = "Mozilla/5.0 (compatible; LinkShelfBot/1.0; +https://linkshelf.example)"


def parse_link_metadata(url: str, page: str) -> LinkPreviewDto:
    """Extract title, description and image from ``og:`` tags, then plain HTML."""
    soup = BeautifulSoup(page, "html.parser")
    meta: dict[str, str] = {}
    for tag in soup.find_all("meta"):
        key = tag.get("property") or tag.get("name")
        content = tag.get("content")
        if key and content is not None:
            meta.setdefault(key.lower(), content.strip())

    title = meta.get("og:title")
    if not title and soup.title is not None:
        title = soup.title.get_text(strip=True)

    return LinkPreviewDto(
        url=meta.get("og:url") or url,
        title=title or None,
        description=meta.get("og:description") or meta.get("description"),
        image=meta.get("og:image"),
    )


class LinkService:
    """CRUD over links plus click counting and metadata previews."""

    def __init__(self, session: AsyncSession, redis_client: redis.Redis | None = None) -> None:
        self._session = session
        self._redis = redis_client

    async def _find(self, link_id: int) -> Link:
        result = await self._session.execute(select(Link).where(Link.id == link_id))
        link = result.scalar_one_or_none()
        if link is None:
            raise NotFoundException("Link not found", "404-1")
        return link

    async def add_link(
        self,
        url: str,
        title: str | None = None,
        description: str | None = None,
        thumbnail: str | None = None,
    ) -> Link:
        """Register a link; an already-known url is updated in place."""
        result = await self._session.execute(select(Link).where(Link.url == url))
        link = result.scalar_one_or_none()
        if link is None:
            link = Link(url=url, click=0)
            self._session.add(link)
        if title is not None:
            link.title = title
        if description is not None:
            link.description = description
        if thumbnail is not None:
            link.thumbnail = thumbnail
        await self._session.flush()
        logger.info("Link saved: id=%s url=%s", link.id, url)
        return link

    async def get_link(self, url: str) -> Link:
        """Return the link for ``url``, creating an empty one if needed."""
        result = await self._session.execute(select(Link).where(Link.url == url))
        link = result.scalar_one_or_none()
        if link is None:
            link = Link(url=url, click=0)
            self._session.add(link)
            await self._session.flush()
        return link

    async def get_link_by_id(self, link_id: int) -> Link:
        return await self._find(link_id)

    async def update_link(
        self,
        link_id: int,
        title: str | None,
        description: str | None,
        thumbnail: str | None,
    ) -> Link:
        link = await self._find(link_id)
        link.title = title
        link.description = description
        link.thumbnail = thumbnail
        await self._session.flush()
        return link

    async def delete_link(self, link_id: int) -> None:
        """Delete a link and detach it from every curation and playlist."""
        link = await self._find(link_id)
        await self._session.execute(delete(CurationLink).where(CurationLink.link_id == link_id))
        await purge_playlist_items(self._session, PlaylistItemType.LINK, [link_id])
        await self._session.delete(link)
        await self._session.flush()
        logger.info("Link deleted: id=%s", link_id)

    async def add_click(self, link_id: int) -> Link:
        link = await self._find(link_id)
        link.click = (link.click or 0) + 1
        await self._session.flush()
        return link

    async def preview(self, url: str) -> LinkPreviewDto:
        """Fetch page metadata for ``url``; results are cached in Redis."""
        if not url.startswith(("http://", "https://")):
            raise BadRequestException("url must start with http:// or https://")

        key = link_preview_key(url)
        if self._redis is not None:
            cached = await self._redis.get(key)
            if cached:
                logger.debug("Link preview cache hit: %s", url)
                return LinkPreviewDto.model_validate_json(cached)

        try:
            async with httpx.AsyncClient(
                timeout=settings.link_preview_timeout,
                follow_redirects=True,
                headers={"User-Agent": _USER_AGENT},
            ) as client:
                resp = await client.get(url)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Link preview failed for %s: %s", url, exc)
            raise BadRequestException("Could not fetch link metadata", "400-2")

        preview = parse_link_metadata(url, resp.text)
        if self._redis is not None:
            await self._redis.set(
                key,
                json.dumps(preview.model_dump()),
                ex=settings.link_preview_cache_ttl_seconds,
            )
        return preview
