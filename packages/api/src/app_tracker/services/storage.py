# This project was developed with assistance from AI tools.
"""S3-compatible object storage service backed by MinIO.

Uses boto3 synchronous client run in a thread-pool executor for async
compatibility. The module exposes a singleton initialised at app startup
via ``init_storage_service()``. Two buckets are managed: application
documents (private) and avatars (public-read bucket policy).
"""

import asyncio
import json
import logging
import os
import time
from functools import partial

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import Settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an object storage call fails."""


class StorageService:
    """Thin wrapper around a boto3 S3 client."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        default_bucket: str,
        buckets: tuple[str, ...] = (),
        public_buckets: tuple[str, ...] = (),
        region: str = "us-east-1",
        public_url: str | None = None,
    ):
        self._default_bucket = default_bucket
        self._public_url = (public_url or endpoint).rstrip("/")
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(
                signature_version="s3v4",
                s3={
                    "addressing_style": "path",
                    "use_accelerate_endpoint": False,
                },
            ),
        )
        for bucket in {default_bucket, *buckets, *public_buckets}:
            self._ensure_bucket(bucket)
        for bucket in public_buckets:
            self._allow_public_read(bucket)

    def _ensure_bucket(self, bucket: str) -> None:
        """Create the bucket if it doesn't already exist (dev convenience)."""
        try:
            self._client.head_bucket(Bucket=bucket)
        except ClientError:
            logger.info("Creating S3 bucket: %s", bucket)
            self._client.create_bucket(Bucket=bucket)

    def _allow_public_read(self, bucket: str) -> None:
        """Let anonymous clients GET objects, so unsigned public URLs resolve."""
        policy = {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"AWS": ["*"]},
                    "Action": ["s3:GetObject"],
                    "Resource": [f"arn:aws:s3:::{bucket}/*"],
                }
            ],
        }
        self._client.put_bucket_policy(Bucket=bucket, Policy=json.dumps(policy))

    async def _run(self, func, **kwargs):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(func, **kwargs))
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(str(exc)) from exc

    async def upload_file(
        self,
        file_data: bytes,
        object_key: str,
        content_type: str,
        *,
        bucket: str | None = None,
    ) -> str:
        """Upload bytes to S3 and return the object key."""
        await self._run(
            self._client.put_object,
            Bucket=bucket or self._default_bucket,
            Key=object_key,
            Body=file_data,
            ContentType=content_type or "application/octet-stream",
        )
        return object_key

    async def download_file(self, object_key: str, *, bucket: str | None = None) -> bytes:
        """Download file bytes from S3."""
        response = await self._run(
            self._client.get_object,
            Bucket=bucket or self._default_bucket,
            Key=object_key,
        )
        return response["Body"].read()

    async def delete_file(self, object_key: str, *, bucket: str | None = None) -> None:
        """Remove an object. Deleting a missing key is not an error in S3."""
        await self._run(
            self._client.delete_object,
            Bucket=bucket or self._default_bucket,
            Key=object_key,
        )

    async def delete_files(self, object_keys: list[str], *, bucket: str | None = None) -> list[str]:
        """Best-effort removal of several objects. Returns the keys that failed."""
        failed = []
        for key in object_keys:
            try:
                await self.delete_file(key, bucket=bucket)
            except StorageError:
                logger.warning("Failed to delete object %s", key, exc_info=True)
                failed.append(key)
        return failed

    def get_public_url(self, object_key: str, *, bucket: str | None = None) -> str:
        """Unsigned URL for objects in a public-read bucket."""
        return f"{self._public_url}/{bucket or self._default_bucket}/{object_key}"

    @staticmethod
    def build_object_key(user_id: str, filename: str) -> str:
        """Build the S3 object key: {user_id}/{unix_ms}-{filename}.

        Strips path components from filename to prevent path traversal attacks.
        """
        safe_name = os.path.basename(filename) or "document"
        return f"{user_id}/{int(time.time() * 1000)}-{safe_name}"


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_service: StorageService | None = None


def init_storage_service(cfg: Settings) -> StorageService:
    """Initialise the singleton (called once from app lifespan)."""
    global _service  # noqa: PLW0603
    _service = StorageService(
        endpoint=cfg.S3_ENDPOINT,
        access_key=cfg.S3_ACCESS_KEY,
        secret_key=cfg.S3_SECRET_KEY,
        default_bucket=cfg.DOCUMENTS_BUCKET,
        public_buckets=(cfg.AVATARS_BUCKET,),
        region=cfg.S3_REGION,
        public_url=cfg.S3_PUBLIC_URL,
    )
    logger.info(
        "StorageService initialised (documents=%s, avatars=%s)",
        cfg.DOCUMENTS_BUCKET,
        cfg.AVATARS_BUCKET,
    )
    return _service


def get_storage_service() -> StorageService:
    """Return the initialised StorageService singleton."""
    if _service is None:
        raise RuntimeError("StorageService not initialised -- call init_storage_service() first")
    return _service
