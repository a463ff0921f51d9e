"""Storage adapter tests."""

import io
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from app.adapters.storage.local import LocalStorageAdapter
from app.adapters.storage.s3 import S3StorageAdapter


@pytest.mark.asyncio
async def test_local_save_read_delete(tmp_path):
    storage = LocalStorageAdapter(str(tmp_path))
    key = await storage.save("cover.png", b"bytes", "image/png")
    assert key == "cover.png"
    assert await storage.read(key) == b"bytes"

    await storage.delete(key)
    with pytest.raises(FileNotFoundError):
        await storage.read(key)


@pytest.mark.asyncio
async def test_local_keys_cannot_escape_base(tmp_path):
    storage = LocalStorageAdapter(str(tmp_path / "uploads"))
    key = await storage.save("../../evil.png", b"x", "image/png")
    assert key == "evil.png"
    assert (tmp_path / "uploads" / "evil.png").exists()


@pytest.fixture
def s3_client():
    client = MagicMock()
    with patch("app.adapters.storage.s3.boto3.client", return_value=client):
        yield client


@pytest.mark.asyncio
async def test_s3_save_uses_prefixed_key(s3_client):
    storage = S3StorageAdapter("http://minio:9000", "key", "secret", "bucket")
    key = await storage.save("cover.png", b"bytes", "image/png")

    assert key == "curation-images/cover.png"
    s3_client.put_object.assert_called_once_with(
        Bucket="bucket", Key=key, Body=b"bytes", ContentType="image/png"
    )


@pytest.mark.asyncio
async def test_s3_read_missing_key(s3_client):
    s3_client.get_object.side_effect = ClientError(
        {"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject"
    )
    storage = S3StorageAdapter("http://minio:9000", "key", "secret", "bucket")
    with pytest.raises(FileNotFoundError):
        await storage.read("curation-images/gone.png")


@pytest.mark.asyncio
async def test_s3_read_returns_body(s3_client):
    s3_client.get_object.return_value = {"Body": io.BytesIO(b"payload")}
    storage = S3StorageAdapter("http://minio:9000", "key", "secret", "bucket")
    assert await storage.read("curation-images/a.png") == b"payload"
