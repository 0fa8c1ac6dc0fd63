"""Tests for blob storage backends."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from storekeeper._storage.blob_local import LocalBlobStorage
from storekeeper._storage.blob_s3 import S3BlobStorage


@pytest.mark.asyncio
async def test_local_upload_writes_file(tmp_path):
    blob = LocalBlobStorage(global_config={"blob_local_dir": str(tmp_path)})

    url = await blob.upload(b"payload", "backups/snap/backup_snap.json", "application/json")

    target = tmp_path / "backups" / "snap" / "backup_snap.json"
    assert target.read_bytes() == b"payload"
    assert url == target.resolve().as_uri()


@pytest.mark.asyncio
async def test_local_upload_writes_off_the_event_loop(tmp_path):
    blob = LocalBlobStorage(global_config={"blob_local_dir": str(tmp_path)})

    with patch("storekeeper._storage.blob_local.asyncio.to_thread", new=AsyncMock()) as to_thread:
        await blob.upload(b"payload", "backups/a.json")

    to_thread.assert_awaited_once()
    assert to_thread.await_args.args[1:] == ((tmp_path / "backups" / "a.json").resolve(), b"payload")
    assert not (tmp_path / "backups").exists()


@pytest.mark.asyncio
async def test_local_upload_public_url(tmp_path):
    blob = LocalBlobStorage(global_config={
        "blob_local_dir": str(tmp_path),
        "blob_public_base_url": "https://files.example.com/",
    })

    url = await blob.upload(b"x", "backups/a.zip")

    assert url == "https://files.example.com/backups/a.zip"


@pytest.mark.asyncio
async def test_local_upload_rejects_escaping_paths(tmp_path):
    blob = LocalBlobStorage(global_config={"blob_local_dir": str(tmp_path / "root")})

    with pytest.raises(ValueError, match="escapes"):
        await blob.upload(b"x", "../outside.txt")


def test_s3_requires_bucket():
    with pytest.raises(ValueError, match="blob_s3_bucket"):
        S3BlobStorage(global_config={})


@pytest.mark.asyncio
async def test_s3_upload():
    mock_client = MagicMock()
    mock_client.put_object = AsyncMock()
    mock_context = MagicMock()
    mock_context.__aenter__ = AsyncMock(return_value=mock_client)
    mock_context.__aexit__ = AsyncMock(return_value=False)

    with patch("storekeeper._storage.blob_s3.aioboto3.Session") as mock_session_class:
        mock_session_class.return_value.client.return_value = mock_context
        blob = S3BlobStorage(global_config={"blob_s3_bucket": "bucket", "blob_s3_region": "eu-west-1"})

        url = await blob.upload(b"data", "backups/s/backup_s.zip", "application/zip")

    mock_client.put_object.assert_awaited_once_with(
        Bucket="bucket", Key="backups/s/backup_s.zip", Body=b"data", ContentType="application/zip"
    )
    assert url == "https://bucket.s3.eu-west-1.amazonaws.com/backups/s/backup_s.zip"


def test_s3_url_with_endpoint():
    with patch("storekeeper._storage.blob_s3.aioboto3.Session"):
        blob = S3BlobStorage(global_config={
            "blob_s3_bucket": "bucket",
            "blob_s3_endpoint_url": "http://minio:9000/",
        })
    assert blob.url_for("k.json") == "http://minio:9000/bucket/k.json"
