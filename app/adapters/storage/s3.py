"""S3-compatible storage adapter (AWS S3, MinIO, etc.)."""

import asyncio
import logging
from functools import partial

import boto3
from botocore.exceptions import ClientError

from app.ports.storage import StoragePort

logger = logging.getLogger(__name__)


class S3StorageAdapter(StoragePort):
    """Store curation images in S3-compatible object storage."""

    def __init__(
        self,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        bucket: str,
    ) -> None:
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
        )
        self._bucket = bucket
        self._ensure_bucket()
        logger.info("S3Storage initialized: bucket=%s, endpoint=%s", bucket, endpoint_url)

    def _ensure_bucket(self) -> None:
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except ClientError:
            self._client.create_bucket(Bucket=self._bucket)
            logger.info("Created S3 bucket: %s", self._bucket)

    async def _run(self, func, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, **kwargs))

    async def save(self, name: str, content: bytes, content_type: str) -> str:
        key = f"curation-images/{name}"
        await self._run(
            self._client.put_object,
            Bucket=self._bucket,
            Key=key,
            Body=content,
            ContentType=content_type,
        )
        logger.info("Uploaded to S3: %s (%d bytes)", key, len(content))
        return key

    async def read(self, key: str) -> bytes:
        try:
            resp = await self._run(self._client.get_object, Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise FileNotFoundError(key) from exc
            raise
        content = resp["Body"].read()
        logger.debug("Downloaded from S3: %s (%d bytes)", key, len(content))
        return content

    async def delete(self, key: str) -> None:
        await self._run(self._client.delete_object, Bucket=self._bucket, Key=key)
        logger.info("Deleted from S3: %s", key)
