"""Storage adapter selection."""

from functools import lru_cache

from app.config import StorageBackend, settings
from app.ports.storage import StoragePort


@lru_cache
def get_storage() -> StoragePort:
    """Build the configured storage adapter once per process."""
    if settings.storage_backend == StorageBackend.S3:
        from app.adapters.storage.s3 import S3StorageAdapter

        return S3StorageAdapter(
            endpoint_url=settings.s3_endpoint_url,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key,
            bucket=settings.s3_bucket,
        )

    from app.adapters.storage.local import LocalStorageAdapter

    return LocalStorageAdapter(settings.local_storage_path)
