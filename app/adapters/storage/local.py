"""Local filesystem storage adapter."""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from app.ports.storage import StoragePort

logger = logging.getLogger(__name__)


class LocalStorageAdapter(StoragePort):
    """Store curation images on the local filesystem."""

    def __init__(self, base_path: str) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)
        logger.info("LocalStorage initialized at: %s", self._base.resolve())

    def _path_for(self, key: str) -> Path:
        # keys are flat file names; never let one escape the base directory
        return self._base / Path(key).name

    async def save(self, name: str, content: bytes, content_type: str) -> str:
        filepath = self._path_for(name)
        async with aiofiles.open(filepath, "wb") as f:
            await f.write(content)
        logger.info("Saved image: %s (%d bytes, %s)", name, len(content), content_type)
        return filepath.name

    async def read(self, key: str) -> bytes:
        filepath = self._path_for(key)
        if not filepath.exists():
            raise FileNotFoundError(key)
        async with aiofiles.open(filepath, "rb") as f:
            content = await f.read()
        logger.debug("Read image: %s (%d bytes)", key, len(content))
        return content

    async def delete(self, key: str) -> None:
        target = self._path_for(key)
        if target.exists():
            await aiofiles.os.remove(str(target))
            logger.info("Deleted image: %s", key)
        else:
            logger.warning("Image not found for deletion: %s", key)
