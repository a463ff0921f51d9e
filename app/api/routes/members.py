"""Member routes: join, login/logout, profiles and follows."""

import redis.asyncio as redis
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.storage import get_storage
from app.api.middleware.auth import get_bearer_token, get_current_user, revoke_token
from app.api.schemas import (
    LoginRequest,
    LoginResponse,
    MemberDto,
    MemberJoinRequest,
    MemberProfileDto,
    MemberSummaryDto,
    MemberUpdateRequest,
    RsData,
)
from app.cache import get_redis
from app.database import get_session
from app.domain.models import Member
from app.ports.storage import StoragePort
from app.services.image import ImageService
from app.services.member import MemberService

router = APIRouter(prefix="/api/v1/members", tags=["Members"])


@router.post("/join", response_model=RsData[MemberDto], status_code=status.HTTP_201_CREATED)
async def join(
    data: MemberJoinRequest,
    session: AsyncSession = Depends(get_session),
) -> RsData[MemberDto]:
    """Register a new member."""
    member = await MemberService(session).join(data)
    return RsData(
        code="201-1",
        msg=f"Welcome, {member.username}!",
        data=MemberDto.from_entity(member),
    )


@router.post("/login", response_model=RsData[LoginResponse])
async def login(
    data: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> RsData[LoginResponse]:
    member, token = await MemberService(session).login(data.username, data.password)
    return RsData(
        code="200-1",
        msg=f"Logged in as {member.username}",
        data=LoginResponse(access_token=token, member=MemberDto.from_entity(member)),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def logout(
    token: str = Depends(get_bearer_token),
    _user: Member = Depends(get_current_user),
    redis_client: redis.Redis = Depends(get_redis),
) -> Response:
    """Revoke the presented access token."""
    await revoke_token(token, redis_client)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=RsData[MemberDto])
async def me(user: Member = Depends(get_current_user)) -> RsData[MemberDto]:
    return RsData(code="200-1", msg="OK", data=MemberDto.from_entity(user))


@router.put("/me", response_model=RsData[MemberDto])
async def update_me(
    data: MemberUpdateRequest,
    session: AsyncSession = Depends(get_session),
    user: Member = Depends(get_current_user),
) -> RsData[MemberDto]:
    member = await MemberService(session).update_member(user, data)
    return RsData(code="200-1", msg="Profile updated", data=MemberDto.from_entity(member))


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_me(
    token: str = Depends(get_bearer_token),
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
    storage: StoragePort = Depends(get_storage),
    user: Member = Depends(get_current_user),
) -> Response:
    """Delete the current member and everything they own."""
    images = ImageService(session, storage)
    await MemberService(session, redis_client, images).delete_member(user)
    await revoke_token(token, redis_client)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{username}", response_model=RsData[MemberProfileDto])
async def get_profile(
    username: str,
    session: AsyncSession = Depends(get_session),
) -> RsData[MemberProfileDto]:
    service = MemberService(session)
    member = await service.get_by_username(username)
    followers, following = await service.follow_counts(member)
    return RsData(
        code="200-1",
        msg="OK",
        data=MemberProfileDto.from_entity(member, followers, following),
    )


@router.post("/{username}/follow", response_model=RsData[MemberProfileDto])
async def follow(
    username: str,
    session: AsyncSession = Depends(get_session),
    user: Member = Depends(get_current_user),
) -> RsData[MemberProfileDto]:
    service = MemberService(session)
    followee = await service.follow(user, username)
    followers, following = await service.follow_counts(followee)
    return RsData(
        code="200-1",
        msg=f"Now following {followee.username}",
        data=MemberProfileDto.from_entity(followee, followers, following),
    )


@router.delete("/{username}/follow", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def unfollow(
    username: str,
    session: AsyncSession = Depends(get_session),
    user: Member = Depends(get_current_user),
) -> Response:
    await MemberService(session).unfollow(user, username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{username}/followers", response_model=RsData[list[MemberSummaryDto]])
async def followers(
    username: str,
    session: AsyncSession = Depends(get_session),
) -> RsData[list[MemberSummaryDto]]:
    members = await MemberService(session).followers(username)
    return RsData(
        code="200-1",
        msg="OK",
        data=[MemberSummaryDto.model_validate(m) for m in members],
    )


@router.get("/{username}/following", response_model=RsData[list[MemberSummaryDto]])
async def following(
    username: str,
    session: AsyncSession = Depends(get_session),
) -> RsData[list[MemberSummaryDto]]:
    members = await MemberService(session).following(username)
    return RsData(
        code="200-1",
        msg="OK",
        data=[MemberSummaryDto.model_validate(m) for m in members],
    )
