"""Comment service with author/admin permission checks."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.exceptions import ForbiddenException, NotFoundException
from app.domain.models import Comment, Curation, Member

logger = logging.getLogger(__name__)


class CommentService:
    """Handles comments on curations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _find(self, comment_id: int) -> Comment:
        result = await self._session.execute(select(Comment).where(Comment.id == comment_id))
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFoundException("Comment not found", "404-2")
        return comment

    @staticmethod
    def can_edit(comment: Comment, actor: Member) -> bool:
        return comment.author_id == actor.id

    @staticmethod
    def can_delete(comment: Comment, actor: Member) -> bool:
        return comment.author_id == actor.id or actor.is_admin

    async def create_comment(self, actor: Member, curation_id: int, content: str) -> Comment:
        curation = await self._session.get(Curation, curation_id)
        if curation is None:
            raise NotFoundException("Curation not found", "404-1")

        comment = Comment(curation_id=curation_id, author=actor, content=content)
        self._session.add(comment)
        await self._session.flush()
        logger.info("Comment created: id=%s curation=%s", comment.id, curation_id)
        return comment

    async def get_comments_by_curation_id(self, curation_id: int) -> list[Comment]:
        result = await self._session.execute(
            select(Comment)
            .where(Comment.curation_id == curation_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        return list(result.scalars().all())

    async def update_comment(
        self, curation_id: int, comment_id: int, content: str, actor: Member
    ) -> Comment:
        comment = await self._find(comment_id)
        if comment.curation_id != curation_id:
            raise NotFoundException("Comment not found", "404-2")
        if not self.can_edit(comment, actor):
            raise ForbiddenException("Only the author may edit this comment", "403-2")

        comment.content = content
        await self._session.flush()
        return comment

    async def delete_comment(self, curation_id: int, comment_id: int, actor: Member) -> None:
        comment = await self._find(comment_id)
        if comment.curation_id != curation_id:
            raise NotFoundException("Comment not found", "404-2")
        if not self.can_delete(comment, actor):
            raise ForbiddenException("Only the author or an admin may delete this comment", "403-3")

        await self._session.delete(comment)
        await self._session.flush()
        logger.info("Comment deleted: id=%s by member %s", comment_id, actor.id)
