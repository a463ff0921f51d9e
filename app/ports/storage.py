"""Storage port: abstract interface for curation image storage."""

from abc import ABC, abstractmethod


class StoragePort(ABC):
    """Abstraction over where uploaded image bytes live."""

    @abstractmethod
    async def save(self, name: str, content: bytes, content_type: str) -> str:
        """Persist content under ``name``. Returns the storage key."""
        ...

    @abstractmethod
    async def read(self, key: str) -> bytes:
        """Return the stored bytes. Raises ``FileNotFoundError`` if absent."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the stored object; missing objects are ignored."""
        ...
