"""Comment routes, nested under a curation."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.middleware.auth import get_current_user
from app.api.schemas import CommentReqDto, CommentResDto, RsData
from app.database import get_session
from app.domain.models import Member
from app.services.comment import CommentService

router = APIRouter(prefix="/api/v1/curations/{curation_id}/comments", tags=["Comments"])


@router.post("", response_model=RsData[CommentResDto], status_code=status.HTTP_201_CREATED)
async def create_comment(
    curation_id: int,
    data: CommentReqDto,
    session: AsyncSession = Depends(get_session),
    user: Member = Depends(get_current_user),
) -> RsData[CommentResDto]:
    comment = await CommentService(session).create_comment(user, curation_id, data.content)
    return RsData(code="201-1", msg="Comment created", data=CommentResDto.from_entity(comment))


@router.get("", response_model=RsData[list[CommentResDto]])
async def list_comments(
    curation_id: int,
    session: AsyncSession = Depends(get_session),
) -> RsData[list[CommentResDto]]:
    comments = await CommentService(session).get_comments_by_curation_id(curation_id)
    return RsData(
        code="200-1",
        msg="OK",
        data=[CommentResDto.from_entity(c) for c in comments],
    )


@router.put("/{comment_id}", response_model=RsData[CommentResDto])
async def update_comment(
    curation_id: int,
    comment_id: int,
    data: CommentReqDto,
    session: AsyncSession = Depends(get_session),
    user: Member = Depends(get_current_user),
) -> RsData[CommentResDto]:
    """Only the comment's author may edit it."""
    comment = await CommentService(session).update_comment(curation_id, comment_id, data.content, user)
    return RsData(code="200-1", msg="Comment updated", data=CommentResDto.from_entity(comment))


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_comment(
    curation_id: int,
    comment_id: int,
    session: AsyncSession = Depends(get_session),
    user: Member = Depends(get_current_user),
) -> Response:
    await CommentService(session).delete_comment(curation_id, comment_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
