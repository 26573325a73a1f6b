"""S3-compatible storage client for IPGuard evidence.

Provides utilities for storing screenshots and uploaded evidence files.
"""

import asyncio
import hashlib
import secrets
import string
from datetime import datetime, timezone
from io import BytesIO
from typing import BinaryIO
from uuid import UUID

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import get_settings
from .errors import StorageError
from .logging import get_logger
from .retry import RetryExhausted, RetryPolicy, with_retry

logger = get_logger(__name__)


class StorageClient:
    """S3-compatible storage client for evidence storage.

    Supports MinIO for local development and AWS S3 for production.
    Uploads never overwrite: an existing key is reported as a collision.
    """

    def __init__(self, client=None, bucket: str | None = None, public_base_url: str | None = None):
        settings = get_settings()
        self._client = client or boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            region_name=settings.s3_region,
            config=Config(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
            ),
        )
        self._bucket = bucket or settings.s3_bucket
        base = public_base_url if public_base_url is not None else settings.s3_public_base_url
        self._public_base_url = (base or f"{settings.s3_endpoint}/{self._bucket}").rstrip("/")

    def upload(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Upload an object and return its public URL.

        Args:
            key: S3 key (path within bucket)
            data: File content as bytes or file-like object
            content_type: MIME type of the content
            metadata: Optional metadata to attach to the object

        Returns:
            Public URL of the stored object

        Raises:
            StorageError: If the key already exists or the upload fails
        """
        if self.file_exists(key):
            raise StorageError(f"Object already exists: {key}")

        if isinstance(data, bytes):
            data = BytesIO(data)

        extra_args = {"ContentType": content_type, "CacheControl": "max-age=3600"}
        if metadata:
            extra_args["Metadata"] = metadata

        try:
            self._client.upload_fileobj(
                data,
                self._bucket,
                key,
                ExtraArgs=extra_args,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Upload of {key} failed: {e}") from e

        return self.get_public_url(key)

    def get_public_url(self, key: str) -> str:
        """Public URL for an object key."""
        return f"{self._public_base_url}/{key}"

    def file_exists(self, key: str) -> bool:
        """Check if a file exists in storage.

        Args:
            key: S3 key (path within bucket)

        Returns:
            True if file exists, False otherwise

        Raises:
            StorageError: If the check itself fails
        """
        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"Could not check {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Could not check {key}: {e}") from e


def compute_content_hash(data: bytes) -> str:
    """Compute SHA-256 hash of content.

    Args:
        data: Content to hash

    Returns:
        Hex-encoded SHA-256 hash
    """
    return hashlib.sha256(data).hexdigest()


_KEY_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def generate_screenshot_key(
    job_id: UUID | str,
    timestamp: datetime | None = None,
    disambiguate: bool = False,
) -> str:
    """Generate a storage key for a surveillance screenshot.

    Format: surveillance/{job_id}_{epoch_ms}.png, with a random
    9-character suffix before the extension when ``disambiguate`` is set.
    """
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)

    epoch_ms = int(timestamp.timestamp() * 1000)
    suffix = ""
    if disambiguate:
        suffix = "_" + "".join(secrets.choice(_KEY_SUFFIX_ALPHABET) for _ in range(9))

    return f"surveillance/{job_id}_{epoch_ms}{suffix}.png"


SCREENSHOT_UPLOAD_POLICY = RetryPolicy(attempts=2, backoff="fixed", base_delay=0.0)


async def store_screenshot(
    storage: StorageClient,
    job_id: UUID | str,
    screenshot: bytes,
    policy: RetryPolicy = SCREENSHOT_UPLOAD_POLICY,
) -> str | None:
    """Upload a job screenshot, retrying once under an alternate key.

    Returns:
        Public URL, or None when every attempt failed (non-fatal for the job)
    """

    async def _attempt(attempt: int) -> str:
        key = generate_screenshot_key(job_id, disambiguate=attempt > 0)
        logger.info(f"Uploading screenshot to storage: {key}")
        return await asyncio.to_thread(storage.upload, key, screenshot, "image/png")

    try:
        return await with_retry(
            _attempt,
            policy,
            retry_on=lambda e: isinstance(e, StorageError),
            logger=logger,
        )
    except RetryExhausted as e:
        logger.error(f"Screenshot upload failed for job {job_id}: {e.last_error}")
        return None


# Singleton instance
_storage_client: StorageClient | None = None


def get_storage() -> StorageClient:
    """Get the storage client singleton."""
    global _storage_client
    if _storage_client is None:
        _storage_client = StorageClient()
    return _storage_client
