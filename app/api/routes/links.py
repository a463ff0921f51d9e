"""Link routes."""

import redis.asyncio as redis
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.middleware.auth import get_current_user
from app.api.schemas import LinkPreviewDto, LinkPreviewRequest, LinkReqDTO, LinkResDTO, RsData
from app.cache import get_redis
from app.database import get_session
from app.domain.models import Member
from app.services.link import LinkService

router = APIRouter(prefix="/api/v1/link", tags=["Links"])


@router.post("", response_model=RsData[LinkResDTO], status_code=status.HTTP_201_CREATED)
async def add_link(
    data: LinkReqDTO,
    session: AsyncSession = Depends(get_session),
    _user: Member = Depends(get_current_user),
) -> RsData[LinkResDTO]:
    link = await LinkService(session).add_link(data.url, data.title, data.description, data.thumbnail)
    return RsData(code="201-1", msg="Link added", data=LinkResDTO.model_validate(link))


@router.post("/preview", response_model=RsData[LinkPreviewDto])
async def preview_link(
    data: LinkPreviewRequest,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
) -> RsData[LinkPreviewDto]:
    """Fetch title, description and image for a url."""
    preview = await LinkService(session, redis_client).preview(data.url)
    return RsData(code="200-1", msg="Link metadata fetched", data=preview)


@router.get("/{link_id}", response_model=RsData[LinkResDTO])
async def get_link(
    link_id: int,
    session: AsyncSession = Depends(get_session),
) -> RsData[LinkResDTO]:
    link = await LinkService(session).get_link_by_id(link_id)
    return RsData(code="200-1", msg="OK", data=LinkResDTO.model_validate(link))


@router.put("/{link_id}", response_model=RsData[LinkResDTO])
async def update_link(
    link_id: int,
    data: LinkReqDTO,
    session: AsyncSession = Depends(get_session),
    _user: Member = Depends(get_current_user),
) -> RsData[LinkResDTO]:
    link = await LinkService(session).update_link(link_id, data.title, data.description, data.thumbnail)
    return RsData(code="200-1", msg="Link updated", data=LinkResDTO.model_validate(link))


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_link(
    link_id: int,
    session: AsyncSession = Depends(get_session),
    _user: Member = Depends(get_current_user),
) -> Response:
    await LinkService(session).delete_link(link_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{link_id}/click", response_model=RsData[LinkResDTO])
async def click_link(
    link_id: int,
    session: AsyncSession = Depends(get_session),
) -> RsData[LinkResDTO]:
    """Count a click-through on a link."""
    link = await LinkService(session).add_click(link_id)
    return RsData(code="200-1", msg="Click recorded", data=LinkResDTO.model_validate(link))
