"""Curation routes."""

import redis.asyncio as redis
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.storage import get_storage
from app.api.middleware.auth import get_current_user, get_optional_user
from app.api.schemas import CurationReqDTO, CurationResDto, LikeStatusDto, PageDto, RsData
from app.cache import get_redis
from app.database import get_session
from app.domain.models import Curation, Member
from app.ports.storage import StoragePort
from app.services.curation import CurationService, SearchOrder
from app.services.image import ImageService

router = APIRouter(prefix="/api/v1/curation", tags=["Curations"])


def _service(session: AsyncSession, redis_client: redis.Redis, storage: StoragePort) -> CurationService:
    return CurationService(session, redis_client, ImageService(session, storage))


async def _to_dtos(service: CurationService, curations: list[Curation]) -> list[CurationResDto]:
    views = await service.view_counts([c.id for c in curations])
    return [CurationResDto.from_entity(c, views.get(c.id, 0)) for c in curations]


@router.post("", response_model=RsData[CurationResDto], status_code=status.HTTP_201_CREATED)
async def create_curation(
    data: CurationReqDTO,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    storage: StoragePort = Depends(get_storage),
    user: Member = Depends(get_current_user),
) -> RsData[CurationResDto]:
    service = _service(session, redis_client, storage)
    curation = await service.create_curation(data.title, data.content, data.urls, data.tag_names, user)
    return RsData(
        code="201-1",
        msg="Curation created",
        data=CurationResDto.from_entity(curation),
    )


@router.get("", response_model=RsData[PageDto[CurationResDto]])
async def search_curations(
    tags: list[str] | None = Query(None),
    title: str | None = None,
    content: str | None = None,
    author: str | None = None,
    order: SearchOrder = SearchOrder.LATEST,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    storage: StoragePort = Depends(get_storage),
) -> RsData[PageDto[CurationResDto]]:
    """Filter curations by tags (any match), title, content and author."""
    service = _service(session, redis_client, storage)
    curations, total = await service.search_curations(tags, title, content, author, order, page, size)
    return RsData(
        code="200-1",
        msg="Curations found",
        data=PageDto(items=await _to_dtos(service, curations), page=page, size=size, total=total),
    )


@router.get("/search", response_model=RsData[list[CurationResDto]])
async def search_by_tags(
    tags: list[str] = Query(...),
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    storage: StoragePort = Depends(get_storage),
) -> RsData[list[CurationResDto]]:
    service = _service(session, redis_client, storage)
    curations = await service.search_by_tags(tags)
    return RsData(code="200-1", msg="Curations found", data=await _to_dtos(service, curations))


@router.get("/members/{username}", response_model=RsData[PageDto[CurationResDto]])
async def list_by_member(
    username: str,
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    storage: StoragePort = Depends(get_storage),
) -> RsData[PageDto[CurationResDto]]:
    service = _service(session, redis_client, storage)
    curations, total = await service.search_curations(author=username, page=page, size=size)
    return RsData(
        code="200-1",
        msg="OK",
        data=PageDto(items=await _to_dtos(service, curations), page=page, size=size, total=total),
    )


@router.get("/{curation_id}", response_model=RsData[CurationResDto])
async def get_curation(
    curation_id: int,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    storage: StoragePort = Depends(get_storage),
) -> RsData[CurationResDto]:
    service = _service(session, redis_client, storage)
    curation = await service.get_curation(curation_id)
    views = await service.view_count(curation_id)
    return RsData(code="200-1", msg="OK", data=CurationResDto.from_entity(curation, views))


@router.put("/{curation_id}", response_model=RsData[CurationResDto])
async def update_curation(
    curation_id: int,
    data: CurationReqDTO,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    storage: StoragePort = Depends(get_storage),
    user: Member = Depends(get_current_user),
) -> RsData[CurationResDto]:
    service = _service(session, redis_client, storage)
    curation = await service.update_curation(
        curation_id, data.title, data.content, data.urls, data.tag_names, user
    )
    views = await service.view_count(curation_id)
    return RsData(code="200-1", msg="Curation updated", data=CurationResDto.from_entity(curation, views))


@router.delete("/{curation_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_curation(
    curation_id: int,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    storage: StoragePort = Depends(get_storage),
    user: Member = Depends(get_current_user),
) -> Response:
    await _service(session, redis_client, storage).delete_curation(curation_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{curation_id}/like", response_model=RsData[LikeStatusDto])
async def like_curation(
    curation_id: int,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    storage: StoragePort = Depends(get_storage),
    user: Member = Depends(get_current_user),
) -> RsData[LikeStatusDto]:
    """Toggle the current member's like."""
    curation, liked = await _service(session, redis_client, storage).like_curation(curation_id, user)
    return RsData(
        code="200-1",
        msg="Liked" if liked else "Like removed",
        data=LikeStatusDto(liked=liked, like_count=curation.like_count),
    )


@router.get("/{curation_id}/like", response_model=RsData[LikeStatusDto])
async def like_status(
    curation_id: int,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    storage: StoragePort = Depends(get_storage),
    user: Member | None = Depends(get_optional_user),
) -> RsData[LikeStatusDto]:
    service = _service(session, redis_client, storage)
    curation = await service.get_curation(curation_id, count_view=False)
    liked = await service.has_liked(curation_id, user) if user else False
    return RsData(code="200-1", msg="OK", data=LikeStatusDto(liked=liked, like_count=curation.like_count))
