"""Initial schema.

Revision ID: 001
Revises:
Create Date: 2025-03-01 00:00:00.000000
"""

import sqlalchemy as sa

from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

role_enum = sa.Enum("MEMBER", "ADMIN", name="role_enum")
playlist_item_type_enum = sa.Enum("LINK", "CURATION", name="playlist_item_type_enum")


def _fk(column: str, target: str, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        column,
        sa.Integer,
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    # Members and the follow graph
    op.create_table(
        "members",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), unique=True, nullable=False, index=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", role_enum, nullable=False, server_default="MEMBER"),
        sa.Column("profile_image", sa.String(1000), nullable=True),
        sa.Column("introduction", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("modified_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_table(
        "follows",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _fk("follower_id", "members.id"),
        _fk("followee_id", "members.id"),
        sa.Column("followed_at", sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint("follower_id", "followee_id", name="uq_follow_pair"),
    )
    op.create_index("ix_follows_follower_id", "follows", ["follower_id"])
    op.create_index("ix_follows_followee_id", "follows", ["followee_id"])

    # Links and tags
    op.create_table(
        "links",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("url", sa.String(2000), unique=True, nullable=False, index=True),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("thumbnail", sa.String(2000), nullable=True),
        sa.Column("click", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_table(
        "tags",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), unique=True, nullable=False, index=True),
    )

    # Curations
    op.create_table(
        "curations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(500), nullable=False, index=True),
        sa.Column("content", sa.Text, nullable=False),
        _fk("member_id", "members.id", nullable=True),
        sa.Column("like_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("modified_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_curations_member_id", "curations", ["member_id"])
    op.create_table(
        "curation_links",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _fk("curation_id", "curations.id"),
        _fk("link_id", "links.id"),
        sa.UniqueConstraint("curation_id", "link_id", name="uq_curation_link"),
    )
    op.create_index("ix_curation_links_curation_id", "curation_links", ["curation_id"])
    op.create_table(
        "curation_tags",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _fk("curation_id", "curations.id"),
        _fk("tag_id", "tags.id"),
        sa.UniqueConstraint("curation_id", "tag_id", name="uq_curation_tag"),
    )
    op.create_index("ix_curation_tags_curation_id", "curation_tags", ["curation_id"])
    op.create_index("ix_curation_tags_tag_id", "curation_tags", ["tag_id"])
    op.create_table(
        "likes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _fk("curation_id", "curations.id"),
        _fk("member_id", "members.id"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint("curation_id", "member_id", name="uq_like_pair"),
    )
    op.create_table(
        "comments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _fk("curation_id", "curations.id"),
        _fk("author_id", "members.id"),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("modified_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_comments_curation_id", "comments", ["curation_id"])
    op.create_table(
        "curation_images",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("image_name", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("storage_key", sa.String(500), nullable=False),
        sa.Column("content_type", sa.String(100), nullable=False),
        _fk("curation_id", "curations.id", nullable=True, ondelete="SET NULL"),
        sa.Column("uploaded_at", sa.DateTime, server_default=sa.func.now()),
    )

    # Playlists
    op.create_table(
        "playlists",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("thumbnail_url", sa.String(2000), nullable=True),
        _fk("member_id", "members.id", nullable=True),
        sa.Column("like_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("modified_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_playlists_member_id", "playlists", ["member_id"])
    op.create_table(
        "playlist_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _fk("playlist_id", "playlists.id"),
        sa.Column("item_id", sa.Integer, nullable=False),
        sa.Column("item_type", playlist_item_type_enum, nullable=False),
        sa.Column("display_order", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("ix_playlist_items_playlist_id", "playlist_items", ["playlist_id"])
    op.create_table(
        "playlist_tags",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _fk("playlist_id", "playlists.id"),
        _fk("tag_id", "tags.id"),
        sa.UniqueConstraint("playlist_id", "tag_id", name="uq_playlist_tag"),
    )
    op.create_index("ix_playlist_tags_playlist_id", "playlist_tags", ["playlist_id"])
    op.create_index("ix_playlist_tags_tag_id", "playlist_tags", ["tag_id"])
    op.create_table(
        "playlist_likes",
        sa.Column(
            "playlist_id",
            sa.Integer,
            sa.ForeignKey("playlists.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "member_id",
            sa.Integer,
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("liked_at", sa.DateTime, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("playlist_likes")
    op.drop_table("playlist_tags")
    op.drop_table("playlist_items")
    op.drop_table("playlists")
    op.drop_table("curation_images")
    op.drop_table("comments")
    op.drop_table("likes")
    op.drop_table("curation_tags")
    op.drop_table("curation_links")
    op.drop_table("curations")
    op.drop_table("tags")
    op.drop_table("links")
    op.drop_table("follows")
    op.drop_table("members")
    op.execute("DROP TYPE IF EXISTS playlist_item_type_enum")
    op.execute("DROP TYPE IF EXISTS role_enum")
