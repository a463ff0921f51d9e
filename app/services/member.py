"""Member registration, authentication, profile and follow service."""

import logging

import redis.asyncio as redis
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.middleware.auth import create_access_token, hash_password, verify_password
from app.api.schemas import MemberJoinRequest, MemberUpdateRequest
from app.cache import (
    CURATION_LIKE_RANKING,
    CURATION_VIEW_RANKING,
    PLAYLIST_LIKE_RANKING,
    PLAYLIST_VIEW_RANKING,
)
from app.domain.exceptions import (
    BadRequestException,
    ConflictException,
    NotFoundException,
    UnauthorizedException,
)
from app.domain.models import (
    Comment,
    Curation,
    CurationImage,
    CurationLink,
    CurationTag,
    Follow,
    Like,
    Member,
    Playlist,
    PlaylistItem,
    PlaylistItemType,
    PlaylistLike,
    PlaylistTag,
    RoleEnum,
)
from app.services.image import ImageService
from app.services.playlist_items import purge_playlist_items

logger = logging.getLogger(__name__)


class MemberService:
    """Handles member lifecycle and the follow graph."""

    def __init__(
        self,
        session: AsyncSession,
        redis_client: redis.Redis | None = None,
        image_service: ImageService | None = None,
    ) -> None:
        self._session = session
        self._redis = redis_client
        self._images = image_service

    async def join(self, data: MemberJoinRequest, role: RoleEnum = RoleEnum.MEMBER) -> Member:
        """Register a new member. Raises 409 if username or email exists."""
        existing = await self._session.execute(
            select(Member).where(
                or_(Member.username == data.username, Member.email == data.email)
            )
        )
        if existing.scalars().first():
            raise ConflictException("Username or email already registered", "409-1")

        member = Member(
            username=data.username,
            email=data.email,
            hashed_password=hash_password(data.password),
            role=role,
            profile_image=data.profile_image,
            introduction=data.introduction,
        )
        self._session.add(member)
        await self._session.flush()
        logger.info("Member joined: id=%s username=%s", member.id, member.username)
        return member

    async def login(self, username: str, password: str) -> tuple[Member, str]:
        """Authenticate and return the member with a fresh access token."""
        result = await self._session.execute(
            select(Member).where(Member.username == username)
        )
        member = result.scalar_one_or_none()

        if not member or not verify_password(password, member.hashed_password):
            raise UnauthorizedException("Invalid username or password", "401-4")

        return member, create_access_token(member.id)

    async def get_by_username(self, username: str) -> Member:
        result = await self._session.execute(
            select(Member).where(Member.username == username)
        )
        member = result.scalar_one_or_none()
        if member is None:
            raise NotFoundException(f"Member '{username}' not found", "404-1")
        return member

    async def follow_counts(self, member: Member) -> tuple[int, int]:
        """Return ``(followers, following)`` for a member."""
        followers = await self._session.scalar(
            select(func.count(Follow.id)).where(Follow.followee_id == member.id)
        )
        following = await self._session.scalar(
            select(func.count(Follow.id)).where(Follow.follower_id == member.id)
        )
        return followers or 0, following or 0

    async def update_member(self, member: Member, data: MemberUpdateRequest) -> Member:
        if data.email is not None and data.email != member.email:
            taken = await self._session.execute(
                select(Member.id).where(Member.email == data.email)
            )
            if taken.first():
                raise ConflictException("Email already registered", "409-2")
            member.email = data.email
        if data.password is not None:
            member.hashed_password = hash_password(data.password)
        if data.profile_image is not None:
            member.profile_image = data.profile_image
        if data.introduction is not None:
            member.introduction = data.introduction
        await self._session.flush()
        return member

    async def delete_member(self, member: Member) -> None:
        """Remove a member together with everything they own."""
        member_id = member.id
        curation_ids = select(Curation.id).where(Curation.member_id == member_id)
        playlist_ids = select(Playlist.id).where(Playlist.member_id == member_id)
        owned_curations = list((await self._session.scalars(curation_ids)).all())
        owned_playlists = list((await self._session.scalars(playlist_ids)).all())

        await self._session.execute(
            delete(Follow).where(or_(Follow.follower_id == member_id, Follow.followee_id == member_id))
        )
        await self._session.execute(delete(Like).where(Like.member_id == member_id))
        await self._session.execute(delete(PlaylistLike).where(PlaylistLike.member_id == member_id))
        await self._session.execute(delete(Comment).where(Comment.author_id == member_id))

        if owned_curations:
            await self._session.execute(delete(Comment).where(Comment.curation_id.in_(owned_curations)))
            await self._session.execute(delete(Like).where(Like.curation_id.in_(owned_curations)))
            await self._session.execute(delete(CurationLink).where(CurationLink.curation_id.in_(owned_curations)))
            await self._session.execute(delete(CurationTag).where(CurationTag.curation_id.in_(owned_curations)))
            await purge_playlist_items(self._session, PlaylistItemType.CURATION, owned_curations)
            if self._images is not None:
                await self._images.delete_curation_images(owned_curations)
            else:
                await self._session.execute(
                    CurationImage.__table__.update()
                    .where(CurationImage.curation_id.in_(owned_curations))
                    .values(curation_id=None)
                )
            await self._session.execute(delete(Curation).where(Curation.id.in_(owned_curations)))
        if owned_playlists:
            await self._session.execute(delete(PlaylistLike).where(PlaylistLike.playlist_id.in_(owned_playlists)))
            await self._session.execute(delete(PlaylistItem).where(PlaylistItem.playlist_id.in_(owned_playlists)))
            await self._session.execute(delete(PlaylistTag).where(PlaylistTag.playlist_id.in_(owned_playlists)))
            await self._session.execute(delete(Playlist).where(Playlist.id.in_(owned_playlists)))

        await self._session.delete(member)
        await self._session.flush()

        if self._redis is not None:
            if owned_curations:
                members = [str(cid) for cid in owned_curations]
                await self._redis.zrem(CURATION_VIEW_RANKING, *members)
                await self._redis.zrem(CURATION_LIKE_RANKING, *members)
            if owned_playlists:
                members = [str(pid) for pid in owned_playlists]
                await self._redis.zrem(PLAYLIST_VIEW_RANKING, *members)
                await self._redis.zrem(PLAYLIST_LIKE_RANKING, *members)

        logger.info(
            "Member deleted: id=%s (%d curations, %d playlists)",
            member_id,
            len(owned_curations),
            len(owned_playlists),
        )

    # ── Follow graph ───────────────────────────────

    async def follow(self, follower: Member, username: str) -> Member:
        followee = await self.get_by_username(username)
        if followee.id == follower.id:
            raise BadRequestException("You cannot follow yourself", "400-3")

        existing = await self._session.execute(
            select(Follow).where(
                Follow.follower_id == follower.id,
                Follow.followee_id == followee.id,
            )
        )
        if existing.scalar_one_or_none():
            raise ConflictException(f"Already following '{username}'", "409-3")

        self._session.add(Follow(follower=follower, followee=followee))
        await self._session.flush()
        logger.info("Member %s followed %s", follower.id, followee.id)
        return followee

    async def unfollow(self, follower: Member, username: str) -> None:
        followee = await self.get_by_username(username)
        result = await self._session.execute(
            select(Follow).where(
                Follow.follower_id == follower.id,
                Follow.followee_id == followee.id,
            )
        )
        follow = result.scalar_one_or_none()
        if follow is None:
            raise NotFoundException(f"Not following '{username}'", "404-2")
        await self._session.delete(follow)
        await self._session.flush()

    async def followers(self, username: str) -> list[Member]:
        member = await self.get_by_username(username)
        result = await self._session.execute(
            select(Member)
            .join(Follow, Follow.follower_id == Member.id)
            .where(Follow.followee_id == member.id)
            .order_by(Follow.followed_at.desc(), Follow.id.desc())
        )
        return list(result.scalars().all())

    async def following(self, username: str) -> list[Member]:
        member = await self.get_by_username(username)
        result = await self._session.execute(
            select(Member)
            .join(Follow, Follow.followee_id == Member.id)
            .where(Follow.follower_id == member.id)
            .order_by(Follow.followed_at.desc(), Follow.id.desc())
        )
        return list(result.scalars().all())
