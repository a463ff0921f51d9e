"""Curation image upload and lifecycle service."""

import logging
import mimetypes
import re
import uuid

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.domain.exceptions import BadRequestException, NotFoundException
from app.domain.models import Curation, CurationImage
from app.ports.storage import StoragePort

logger = logging.getLogger(__name__)

IMAGE_URL_PREFIX = "/api/v1/images/"
ALLOWED_IMAGE_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp"}

_IMAGE_REF_RE = re.compile(re.escape(IMAGE_URL_PREFIX) + r"([A-Za-z0-9_.-]+)")


def image_url(image_name: str) -> str:
    return f"{IMAGE_URL_PREFIX}{image_name}"


def referenced_image_names(content: str) -> set[str]:
    """Image names linked from curation content."""
    return set(_IMAGE_REF_RE.findall(content or ""))


class ImageService:
    """Stores uploaded images and ties them to the curations that embed them."""

    def __init__(self, session: AsyncSession, storage: StoragePort) -> None:
        self._session = session
        self._storage = storage

    async def upload(self, file: UploadFile) -> CurationImage:
        content_type = (file.content_type or "").lower()
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise BadRequestException(f"Unsupported image type: {content_type or 'unknown'}", "400-4")

        content = await file.read()
        if not content:
            raise BadRequestException("Uploaded image is empty", "400-5")
        if len(content) > settings.max_image_size:
            raise BadRequestException("Uploaded image is too large", "400-6")

        extension = mimetypes.guess_extension(content_type) or ".bin"
        image_name = f"{uuid.uuid4().hex}{extension}"
        storage_key = await self._storage.save(image_name, content, content_type)

        image = CurationImage(
            image_name=image_name,
            storage_key=storage_key,
            content_type=content_type,
        )
        self._session.add(image)
        await self._session.flush()
        logger.info("Image uploaded: %s (%d bytes)", image_name, len(content))
        return image

    async def read(self, image_name: str) -> tuple[bytes, str]:
        result = await self._session.execute(
            select(CurationImage).where(CurationImage.image_name == image_name)
        )
        image = result.scalar_one_or_none()
        if image is None:
            raise NotFoundException("Image not found", "404-1")
        try:
            content = await self._storage.read(image.storage_key)
        except FileNotFoundError:
            logger.warning("Image row %s has no stored object", image_name)
            raise NotFoundException("Image not found", "404-1")
        return content, image.content_type

    async def sync_curation_images(self, curation: Curation) -> None:
        """Attach images referenced in the content, drop ones no longer referenced."""
        names = referenced_image_names(curation.content)

        attached = await self._session.execute(
            select(CurationImage).where(CurationImage.curation_id == curation.id)
        )
        stale = [image for image in attached.scalars().all() if image.image_name not in names]

        if names:
            result = await self._session.execute(
                select(CurationImage).where(
                    CurationImage.image_name.in_(names),
                    CurationImage.curation_id.is_(None),
                )
            )
            for image in result.scalars().all():
                image.curation_id = curation.id
        await self._remove(stale)

    async def delete_curation_images(self, curation_ids: list[int]) -> None:
        """Remove the images attached to the given curations, rows and files."""
        if not curation_ids:
            return
        result = await self._session.execute(
            select(CurationImage).where(CurationImage.curation_id.in_(curation_ids))
        )
        await self._remove(list(result.scalars().all()))

    async def _remove(self, images: list[CurationImage]) -> None:
        # files go only once the row deletes have flushed cleanly
        for image in images:
            await self._session.delete(image)
        await self._session.flush()
        for image in images:
            await self._storage.delete(image.storage_key)
            logger.info("Image removed: %s", image.image_name)
