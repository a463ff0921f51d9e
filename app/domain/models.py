"""SQLAlchemy ORM models."""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class RoleEnum(str, enum.Enum):
    MEMBER = "MEMBER"
    ADMIN = "ADMIN"


class PlaylistItemType(str, enum.Enum):
    LINK = "LINK"
    CURATION = "CURATION"


class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(RoleEnum, name="role_enum"), nullable=False, default=RoleEnum.MEMBER)
    profile_image = Column(String(1000), nullable=True)
    introduction = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    modified_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN


class Follow(Base):
    __tablename__ = "follows"
    __table_args__ = (UniqueConstraint("follower_id", "followee_id", name="uq_follow_pair"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    follower_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    followee_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    followed_at = Column(DateTime, default=datetime.utcnow)

    follower = relationship("Member", foreign_keys=[follower_id], lazy="selectin")
    followee = relationship("Member", foreign_keys=[followee_id], lazy="selectin")


class Link(Base):
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(String(2000), unique=True, nullable=False, index=True)
    title = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    thumbnail = Column(String(2000), nullable=True)
    click = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False, index=True)


class Curation(Base):
    __tablename__ = "curations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False, index=True)
    content = Column(Text, nullable=False)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=True, index=True)
    like_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    modified_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("Member", lazy="selectin")
    links = relationship(
        "CurationLink",
        back_populates="curation",
        cascade="all, delete-orphan",
        order_by="CurationLink.id",
        lazy="selectin",
    )
    tags = relationship(
        "CurationTag",
        back_populates="curation",
        cascade="all, delete-orphan",
        order_by="CurationTag.id",
        lazy="selectin",
    )


class CurationLink(Base):
    __tablename__ = "curation_links"
    __table_args__ = (UniqueConstraint("curation_id", "link_id", name="uq_curation_link"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    curation_id = Column(Integer, ForeignKey("curations.id", ondelete="CASCADE"), nullable=False, index=True)
    link_id = Column(Integer, ForeignKey("links.id", ondelete="CASCADE"), nullable=False)

    curation = relationship("Curation", back_populates="links")
    link = relationship("Link", lazy="selectin")


class CurationTag(Base):
    __tablename__ = "curation_tags"
    __table_args__ = (UniqueConstraint("curation_id", "tag_id", name="uq_curation_tag"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    curation_id = Column(Integer, ForeignKey("curations.id", ondelete="CASCADE"), nullable=False, index=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False, index=True)

    curation = relationship("Curation", back_populates="tags")
    tag = relationship("Tag", lazy="selectin")


class Like(Base):
    __tablename__ = "likes"
    __table_args__ = (UniqueConstraint("curation_id", "member_id", name="uq_like_pair"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    curation_id = Column(Integer, ForeignKey("curations.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    curation_id = Column(Integer, ForeignKey("curations.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    modified_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("Member", lazy="selectin")


class CurationImage(Base):
    __tablename__ = "curation_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    image_name = Column(String(255), unique=True, nullable=False, index=True)
    storage_key = Column(String(500), nullable=False)
    content_type = Column(String(100), nullable=False)
    curation_id = Column(Integer, ForeignKey("curations.id", ondelete="SET NULL"), nullable=True, index=True)
    uploaded_at = Column(DateTime, default=datetime.utcnow)


class Playlist(Base):
    __tablename__ = "playlists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)
    is_public = Column(Boolean, nullable=False, default=True)
    thumbnail_url = Column(String(2000), nullable=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=True, index=True)
    like_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    modified_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("Member", lazy="selectin")
    items = relationship(
        "PlaylistItem",
        back_populates="playlist",
        cascade="all, delete-orphan",
        order_by="PlaylistItem.display_order",
        lazy="selectin",
    )
    tags = relationship(
        "PlaylistTag",
        back_populates="playlist",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def update_playlist(
        self,
        title: str | None = None,
        description: str | None = None,
        is_public: bool | None = None,
        thumbnail_url: str | None = None,
    ) -> None:
        """Patch the editable fields; ``None`` leaves a field unchanged."""
        if title is not None:
            self.title = title
        if description is not None:
            self.description = description
        if is_public is not None:
            self.is_public = is_public
        if thumbnail_url is not None:
            self.thumbnail_url = thumbnail_url


class PlaylistItem(Base):
    __tablename__ = "playlist_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    playlist_id = Column(Integer, ForeignKey("playlists.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, nullable=False)
    item_type = Column(Enum(PlaylistItemType, name="playlist_item_type_enum"), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)

    playlist = relationship("Playlist", back_populates="items")


class PlaylistTag(Base):
    __tablename__ = "playlist_tags"
    __table_args__ = (UniqueConstraint("playlist_id", "tag_id", name="uq_playlist_tag"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    playlist_id = Column(Integer, ForeignKey("playlists.id", ondelete="CASCADE"), nullable=False, index=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False, index=True)

    playlist = relationship("Playlist", back_populates="tags")
    tag = relationship("Tag", lazy="selectin")


class PlaylistLike(Base):
    __tablename__ = "playlist_likes"

    playlist_id = Column(Integer, ForeignKey("playlists.id", ondelete="CASCADE"), primary_key=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), primary_key=True)
    liked_at = Column(DateTime, default=datetime.utcnow)
