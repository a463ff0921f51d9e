"""Tag lookup service."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import Tag


class TagService:
    """Resolves tag names to rows, creating missing tags on the fly."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_tag(self, name: str) -> Tag:
        name = name.strip()
        result = await self._session.execute(select(Tag).where(Tag.name == name))
        tag = result.scalar_one_or_none()
        if tag is None:
            tag = Tag(name=name)
            self._session.add(tag)
            await self._session.flush()
        return tag

    async def get_tags(self, names: list[str]) -> list[Tag]:
        """Resolve names in order, skipping blanks and duplicates."""
        tags: list[Tag] = []
        seen: set[str] = set()
        for name in names:
            name = name.strip()
            if not name or name in seen:
                continue
            seen.add(name)
            tags.append(await self.get_tag(name))
        return tags
