"""Sample data for a fresh database."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import MemberJoinRequest
from app.cache import get_redis
from app.domain.models import Curation, Member
from app.services.curation import CurationService
from app.services.member import MemberService

logger = logging.getLogger(__name__)


async def seed_initial_data(session: AsyncSession) -> bool:
    """Create one member and one curation when both tables are empty."""
    members = await session.scalar(select(func.count(Member.id)))
    curations = await session.scalar(select(func.count(Curation.id)))
    if members or curations:
        logger.info("Seed data skipped: database is not empty")
        return False

    member = await MemberService(session).join(
        MemberJoinRequest(
            username="username",
            email="team8@gmail.com",
            password="password",
            profile_image="imgurl",
            introduction="test",
        )
    )
    await CurationService(session, get_redis()).create_curation(
        "curation test title",
        "curation test content",
        ["https://example.com/url1", "https://example.com/url2"],
        ["tag1", "tag2"],
        author=member,
    )
    logger.info("Seed data created")
    return True
