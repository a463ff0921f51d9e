"""Pydantic request/response schemas.

Field names are snake_case in Python and camelCase on the wire; requests
accept either spelling.
"""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from app.domain.models import (
    Comment,
    Curation,
    Member,
    Playlist,
    PlaylistItemType,
    RoleEnum,
)

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── Envelope ───────────────────────────────────────


class RsData(BaseModel, Generic[T]):
    """Standard response envelope: result code, message and payload."""

    code: str
    msg: str
    data: T | None = None

    @property
    def status_code(self) -> int:
        return int(self.code.split("-", 1)[0])


class PageDto(CamelModel, Generic[T]):
    items: list[T]
    page: int
    size: int
    total: int


# ── Members ────────────────────────────────────────


class MemberJoinRequest(CamelModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    profile_image: str | None = None
    introduction: str | None = Field(None, max_length=1000)


class LoginRequest(CamelModel):
    username: str
    password: str


class MemberUpdateRequest(CamelModel):
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=8, max_length=72)
    profile_image: str | None = None
    introduction: str | None = Field(None, max_length=1000)


class MemberDto(CamelModel):
    id: int
    username: str
    email: str
    role: RoleEnum
    profile_image: str | None = None
    introduction: str | None = None
    created_datetime: datetime | None = None
    modified_datetime: datetime | None = None

    @classmethod
    def from_entity(cls, member: Member) -> "MemberDto":
        return cls(
            id=member.id,
            username=member.username,
            email=member.email,
            role=member.role,
            profile_image=member.profile_image,
            introduction=member.introduction,
            created_datetime=member.created_at,
            modified_datetime=member.modified_at,
        )


class MemberSummaryDto(CamelModel):
    id: int
    username: str
    profile_image: str | None = None


class MemberProfileDto(CamelModel):
    id: int
    username: str
    profile_image: str | None = None
    introduction: str | None = None
    follower_count: int = 0
    following_count: int = 0
    created_datetime: datetime | None = None

    @classmethod
    def from_entity(cls, member: Member, follower_count: int, following_count: int) -> "MemberProfileDto":
        return cls(
            id=member.id,
            username=member.username,
            profile_image=member.profile_image,
            introduction=member.introduction,
            follower_count=follower_count,
            following_count=following_count,
            created_datetime=member.created_at,
        )


class LoginResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    member: MemberDto


# ── Links & tags ───────────────────────────────────


class LinkReqDTO(CamelModel):
    url: str = Field(..., min_length=1, max_length=2000)
    title: str | None = Field(None, max_length=500)
    description: str | None = None
    thumbnail: str | None = None

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v


class LinkResDTO(CamelModel):
    id: int
    url: str
    title: str | None = None
    description: str | None = None
    thumbnail: str | None = None
    click: int = 0
    created_at: datetime | None = None


class LinkPreviewRequest(CamelModel):
    url: str


class LinkPreviewDto(CamelModel):
    url: str
    title: str | None = None
    description: str | None = None
    image: str | None = None


class TagReqDto(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)


class TagResDto(CamelModel):
    name: str


class UrlDto(CamelModel):
    id: int
    url: str
    title: str | None = None
    thumbnail: str | None = None


# ── Curations ──────────────────────────────────────


class CurationReqDTO(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    link_req_dtos: list[LinkReqDTO] = Field(default_factory=list)
    tag_req_dtos: list[TagReqDto] = Field(default_factory=list)

    @property
    def urls(self) -> list[str]:
        return [link.url for link in self.link_req_dtos]

    @property
    def tag_names(self) -> list[str]:
        return [tag.name for tag in self.tag_req_dtos]


class CurationResDto(CamelModel):
    id: int
    title: str
    content: str
    urls: list[UrlDto] = Field(default_factory=list)
    tags: list[TagResDto] = Field(default_factory=list)
    like_count: int = 0
    view_count: int = 0
    author_id: int | None = None
    author_name: str | None = None
    author_image: str | None = None
    created_at: datetime | None = None
    modified_at: datetime | None = None

    @classmethod
    def from_entity(cls, curation: Curation, view_count: int = 0) -> "CurationResDto":
        author = curation.author
        return cls(
            id=curation.id,
            title=curation.title,
            content=curation.content,
            urls=[UrlDto.model_validate(cl.link) for cl in curation.links],
            tags=[TagResDto(name=ct.tag.name) for ct in curation.tags],
            like_count=curation.like_count or 0,
            view_count=view_count,
            author_id=author.id if author else None,
            author_name=author.username if author else None,
            author_image=author.profile_image if author else None,
            created_at=curation.created_at,
            modified_at=curation.modified_at,
        )


# ── Comments ───────────────────────────────────────


class CommentReqDto(CamelModel):
    content: str = Field(..., min_length=1, max_length=2000)


class CommentResDto(CamelModel):
    id: int
    curation_id: int
    author_id: int
    author_name: str | None = None
    content: str
    created_at: datetime | None = None
    modified_at: datetime | None = None

    @classmethod
    def from_entity(cls, comment: Comment) -> "CommentResDto":
        return cls(
            id=comment.id,
            curation_id=comment.curation_id,
            author_id=comment.author_id,
            author_name=comment.author.username if comment.author else None,
            content=comment.content,
            created_at=comment.created_at,
            modified_at=comment.modified_at,
        )


# ── Images ─────────────────────────────────────────


class ImageUploadResponse(CamelModel):
    image_name: str
    url: str


# ── Playlists ──────────────────────────────────────


class PlaylistCreateDto(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., max_length=5000)
    is_public: bool = True
    thumbnail_url: str | None = None
    tags: list[str] = Field(default_factory=list)


class PlaylistUpdateDto(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = Field(None, max_length=5000)
    is_public: bool | None = None
    thumbnail_url: str | None = None
    tags: list[str] | None = None


class PlaylistItemAddRequest(CamelModel):
    item_id: int
    item_type: PlaylistItemType


class PlaylistLinkItemRequest(LinkReqDTO):
    pass


class PlaylistItemDto(CamelModel):
    id: int
    item_id: int
    item_type: PlaylistItemType
    display_order: int


class PlaylistDto(CamelModel):
    id: int
    title: str
    description: str
    is_public: bool = True
    thumbnail_url: str | None = None
    owner_id: int | None = None
    owner_name: str | None = None
    like_count: int = 0
    view_count: int = 0
    tags: list[str] = Field(default_factory=list)
    items: list[PlaylistItemDto] = Field(default_factory=list)
    created_at: datetime | None = None
    modified_at: datetime | None = None

    @classmethod
    def from_entity(cls, playlist: Playlist, view_count: int = 0) -> "PlaylistDto":
        owner = playlist.owner
        items = sorted(playlist.items, key=lambda item: item.display_order)
        return cls(
            id=playlist.id,
            title=playlist.title,
            description=playlist.description,
            is_public=playlist.is_public,
            thumbnail_url=playlist.thumbnail_url,
            owner_id=owner.id if owner else None,
            owner_name=owner.username if owner else None,
            like_count=playlist.like_count or 0,
            view_count=view_count,
            tags=[pt.tag.name for pt in playlist.tags],
            items=[PlaylistItemDto.model_validate(item) for item in items],
            created_at=playlist.created_at,
            modified_at=playlist.modified_at,
        )


class LikeStatusDto(CamelModel):
    liked: bool
    like_count: int
