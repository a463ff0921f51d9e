"""Keeps playlist entries in step with the links and curations they point at."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import PlaylistItem, PlaylistItemType

logger = logging.getLogger(__name__)


async def purge_playlist_items(
    session: AsyncSession, item_type: PlaylistItemType, item_ids: list[int]
) -> None:
    """Drop entries referencing ``item_ids`` and renumber the playlists they left."""
    if not item_ids:
        return

    match = (PlaylistItem.item_type == item_type, PlaylistItem.item_id.in_(item_ids))
    affected = list((await session.scalars(select(PlaylistItem.playlist_id).where(*match).distinct())).all())
    if not affected:
        return

    await session.execute(delete(PlaylistItem).where(*match).execution_options(synchronize_session=False))

    remaining = await session.scalars(
        select(PlaylistItem)
        .where(PlaylistItem.playlist_id.in_(affected))
        .order_by(PlaylistItem.playlist_id, PlaylistItem.display_order, PlaylistItem.id)
        .execution_options(populate_existing=True)
    )
    position: dict[int, int] = {}
    for item in remaining.all():
        item.display_order = position.get(item.playlist_id, 0)
        position[item.playlist_id] = item.display_order + 1
    await session.flush()
    logger.info("Removed %s items %s from playlists %s", item_type.value, item_ids, affected)
