# This project was developed with assistance from AI tools.
"""Tests for the S3 storage wrapper (boto3 client mocked)."""

import json
import re
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from app_tracker.services.storage import StorageError, StorageService


def _client_error(op: str) -> ClientError:
    return ClientError({"Error": {"Code": "500", "Message": "boom"}}, op)


def _unreachable() -> EndpointConnectionError:
    return EndpointConnectionError(endpoint_url="http://minio:9000/documents")


@pytest.fixture
def s3_client():
    client = MagicMock()
    with patch("app_tracker.services.storage.boto3.client", return_value=client):
        yield client


def _service(**kwargs) -> StorageService:
    return StorageService(
        endpoint="http://minio:9000",
        access_key="minio",
        secret_key="minio123",
        default_bucket="documents",
        **kwargs,
    )


def test_build_object_key_strips_path_components():
    key = StorageService.build_object_key("user-1", "../../etc/passwd")
    assert re.fullmatch(r"user-1/\d+-passwd", key)


def test_build_object_key_empty_name_falls_back():
    key = StorageService.build_object_key("user-1", "uploads/")
    assert key.endswith("-document")


def test_missing_buckets_are_created(s3_client):
    s3_client.head_bucket.side_effect = _client_error("HeadBucket")

    _service(buckets=("avatars",))

    created = {c.kwargs["Bucket"] for c in s3_client.create_bucket.call_args_list}
    assert created == {"documents", "avatars"}


def test_public_url_uses_public_base(s3_client):
    svc = _service(public_url="http://localhost:9000/")
    assert svc.get_public_url("u/a.png", bucket="avatars") == "http://localhost:9000/avatars/u/a.png"


@pytest.mark.asyncio
async def test_upload_defaults_content_type(s3_client):
    svc = _service()

    key = await svc.upload_file(b"data", "u/1-a.bin", "")

    assert key == "u/1-a.bin"
    kwargs = s3_client.put_object.call_args.kwargs
    assert kwargs["ContentType"] == "application/octet-stream"
    assert kwargs["Bucket"] == "documents"


@pytest.mark.asyncio
async def test_client_errors_become_storage_errors(s3_client):
    s3_client.get_object.side_effect = _client_error("GetObject")
    svc = _service()

    with pytest.raises(StorageError):
        await svc.download_file("u/missing.pdf")


@pytest.mark.asyncio
async def test_delete_files_reports_failures(s3_client):
    def delete_object(Bucket, Key):
        if Key == "u/2-b.pdf":
            raise _client_error("DeleteObject")

    s3_client.delete_object.side_effect = delete_object
    svc = _service()

    failed = await svc.delete_files(["u/1-a.pdf", "u/2-b.pdf", "u/3-c.pdf"])

    assert failed == ["u/2-b.pdf"]
    assert s3_client.delete_object.call_count == 3


def test_public_buckets_get_read_policy(s3_client):
    _service(buckets=("scratch",), public_buckets=("avatars",))

    [call] = s3_client.put_bucket_policy.call_args_list
    assert call.kwargs["Bucket"] == "avatars"
    [statement] = json.loads(call.kwargs["Policy"])["Statement"]
    assert statement["Action"] == ["s3:GetObject"]
    assert statement["Resource"] == ["arn:aws:s3:::avatars/*"]


def test_private_buckets_get_no_policy(s3_client):
    _service(buckets=("scratch",))

    s3_client.put_bucket_policy.assert_not_called()


@pytest.mark.asyncio
async def test_unreachable_endpoint_becomes_storage_error(s3_client):
    s3_client.put_object.side_effect = _unreachable()
    svc = _service()

    with pytest.raises(StorageError, match="Could not connect"):
        await svc.upload_file(b"data", "u/1-a.pdf", "application/pdf")


@pytest.mark.asyncio
async def test_delete_files_survives_unreachable_endpoint(s3_client):
    s3_client.delete_object.side_effect = _unreachable()
    svc = _service()

    assert await svc.delete_files(["u/1-a.pdf"]) == ["u/1-a.pdf"]
