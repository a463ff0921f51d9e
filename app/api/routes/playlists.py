"""Playlist routes: CRUD, items, likes and recommendations."""

import redis.asyncio as redis
from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.middleware.auth import get_current_user, get_optional_user
from app.api.schemas import (
    LikeStatusDto,
    PlaylistCreateDto,
    PlaylistDto,
    PlaylistItemAddRequest,
    PlaylistLinkItemRequest,
    PlaylistUpdateDto,
    RsData,
)
from app.cache import get_redis
from app.database import get_session
from app.domain.models import Member, Playlist
from app.services.playlist import PlaylistService

router = APIRouter(prefix="/api/v1/playlists", tags=["Playlists"])


async def _to_dtos(service: PlaylistService, playlists: list[Playlist]) -> list[PlaylistDto]:
    views = await service.view_counts([p.id for p in playlists])
    return [PlaylistDto.from_entity(p, views.get(p.id, 0)) for p in playlists]


async def _to_dto(service: PlaylistService, playlist: Playlist) -> PlaylistDto:
    return PlaylistDto.from_entity(playlist, await service.view_count(playlist.id))


@router.post("", response_model=RsData[PlaylistDto])
async def create_playlist(
    data: PlaylistCreateDto,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member = Depends(get_current_user),
) -> RsData[PlaylistDto]:
    playlist = await PlaylistService(session, redis_client).create_playlist(data, user)
    return RsData(code="200-1", msg="Playlist created", data=PlaylistDto.from_entity(playlist))


@router.get("", response_model=RsData[list[PlaylistDto]])
async def list_playlists(
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
) -> RsData[list[PlaylistDto]]:
    """All public playlists, newest first."""
    service = PlaylistService(session, redis_client)
    playlists = await service.get_all_playlists()
    return RsData(code="200-1", msg="OK", data=await _to_dtos(service, playlists))


@router.get("/me", response_model=RsData[list[PlaylistDto]])
async def my_playlists(
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member = Depends(get_current_user),
) -> RsData[list[PlaylistDto]]:
    service = PlaylistService(session, redis_client)
    playlists = await service.get_playlists_by_member(user)
    return RsData(code="200-1", msg="OK", data=await _to_dtos(service, playlists))


@router.get("/liked", response_model=RsData[list[PlaylistDto]])
async def liked_playlists(
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member = Depends(get_current_user),
) -> RsData[list[PlaylistDto]]:
    service = PlaylistService(session, redis_client)
    playlists = await service.get_liked_playlists(user)
    return RsData(code="200-1", msg="OK", data=await _to_dtos(service, playlists))


@router.get("/{playlist_id}", response_model=RsData[PlaylistDto])
async def get_playlist(
    playlist_id: int,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member | None = Depends(get_optional_user),
) -> RsData[PlaylistDto]:
    service = PlaylistService(session, redis_client)
    playlist = await service.get_playlist(playlist_id, user)
    return RsData(code="200-1", msg="OK", data=await _to_dto(service, playlist))


@router.patch("/{playlist_id}", response_model=RsData[PlaylistDto])
async def update_playlist(
    playlist_id: int,
    data: PlaylistUpdateDto,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member = Depends(get_current_user),
) -> RsData[PlaylistDto]:
    """Patch the fields that are present; omitted fields keep their value."""
    service = PlaylistService(session, redis_client)
    playlist = await service.update_playlist(playlist_id, data, user)
    return RsData(code="200-1", msg="Playlist updated", data=await _to_dto(service, playlist))


@router.delete("/{playlist_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_playlist(
    playlist_id: int,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member = Depends(get_current_user),
) -> Response:
    await PlaylistService(session, redis_client).delete_playlist(playlist_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Items ──────────────────────────────────────────


@router.post("/{playlist_id}/items", response_model=RsData[PlaylistDto])
async def add_item(
    playlist_id: int,
    data: PlaylistItemAddRequest,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member = Depends(get_current_user),
) -> RsData[PlaylistDto]:
    service = PlaylistService(session, redis_client)
    playlist = await service.add_playlist_item(playlist_id, data.item_id, data.item_type, user)
    return RsData(code="200-1", msg="Item added", data=await _to_dto(service, playlist))


@router.post("/{playlist_id}/items/link", response_model=RsData[PlaylistDto])
async def add_link_item(
    playlist_id: int,
    data: PlaylistLinkItemRequest,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member = Depends(get_current_user),
) -> RsData[PlaylistDto]:
    """Create (or reuse) a link by url and append it to the playlist."""
    service = PlaylistService(session, redis_client)
    playlist = await service.add_link_item(
        playlist_id, data.url, data.title, data.description, data.thumbnail, user
    )
    return RsData(code="200-1", msg="Link item added", data=await _to_dto(service, playlist))


@router.patch("/{playlist_id}/items/order", response_model=RsData[PlaylistDto])
async def reorder_items(
    playlist_id: int,
    ordered_item_ids: list[int] = Body(...),
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member = Depends(get_current_user),
) -> RsData[PlaylistDto]:
    service = PlaylistService(session, redis_client)
    playlist = await service.update_playlist_item_order(playlist_id, ordered_item_ids, user)
    return RsData(code="200-1", msg="Item order updated", data=await _to_dto(service, playlist))


@router.delete("/{playlist_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_item(
    playlist_id: int,
    item_id: int,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member = Depends(get_current_user),
) -> Response:
    await PlaylistService(session, redis_client).delete_playlist_item(playlist_id, item_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Likes ──────────────────────────────────────────


@router.post("/{playlist_id}/like", response_model=RsData[LikeStatusDto])
async def like_playlist(
    playlist_id: int,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member = Depends(get_current_user),
) -> RsData[LikeStatusDto]:
    playlist = await PlaylistService(session, redis_client).like_playlist(playlist_id, user)
    return RsData(code="200-1", msg="Liked", data=LikeStatusDto(liked=True, like_count=playlist.like_count))


@router.delete("/{playlist_id}/like", response_model=RsData[LikeStatusDto])
async def unlike_playlist(
    playlist_id: int,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member = Depends(get_current_user),
) -> RsData[LikeStatusDto]:
    playlist = await PlaylistService(session, redis_client).unlike_playlist(playlist_id, user)
    return RsData(
        code="200-1",
        msg="Like removed",
        data=LikeStatusDto(liked=False, like_count=playlist.like_count),
    )


@router.get("/{playlist_id}/like/status", response_model=RsData[bool])
async def like_status(
    playlist_id: int,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    user: Member = Depends(get_current_user),
) -> RsData[bool]:
    liked = await PlaylistService(session, redis_client).has_liked_playlist(playlist_id, user)
    return RsData(code="200-1", msg="OK", data=liked)


# ── Recommendations ────────────────────────────────


@router.get("/{playlist_id}/recommendation", response_model=RsData[list[PlaylistDto]])
async def recommend(
    playlist_id: int,
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
) -> RsData[list[PlaylistDto]]:
    """Playlists related to this one: trending, popular, then shared tags."""
    service = PlaylistService(session, redis_client)
    playlists = await service.recommend_playlist(playlist_id)
    return RsData(code="200-1", msg="OK", data=await _to_dtos(service, playlists))
