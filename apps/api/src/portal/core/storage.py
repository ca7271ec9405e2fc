"""
Object Storage

S3-compatible storage (AWS S3 or MinIO) for generated student documents and
hour-request attachments. boto3 is synchronous, so calls run in a worker
thread to keep the event loop free.
"""

import asyncio
import logging
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from portal.core.config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an object storage call fails."""


class ObjectAlreadyExistsError(StorageError):
    """Raised when a non-overwriting upload targets an existing key."""

    def __init__(self, bucket: str, key: str):
        self.bucket = bucket
        self.key = key
        super().__init__(f"Object already exists: {bucket}/{key}")


class ObjectStorage:
    """Thin async wrapper over a boto3 S3 client."""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=settings.storage_endpoint_url,
                aws_access_key_id=settings.storage_access_key_id,
                aws_secret_access_key=settings.storage_secret_access_key,
                region_name=settings.storage_region,
            )
        return self._client

    def public_url(self, bucket: str, key: str) -> str:
        """Public URL of an object in a public-read bucket."""
        base = settings.storage_public_base_url.rstrip("/")
        return f"{base}/{bucket}/{quote(key)}"

    def _exists(self, bucket: str, key: str) -> bool:
        try:
            self.client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise

    def _upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str,
        overwrite: bool,
    ) -> str:
        if not overwrite and self._exists(bucket, key):
            raise ObjectAlreadyExistsError(bucket, key)

        self.client.put_object(
            Bucket=bucket,
            Key=key,
            Body=content,
            ContentType=content_type,
        )
        return self.public_url(bucket, key)

    async def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str,
        overwrite: bool = True,
    ) -> str:
        """
        Upload bytes and return the object's public URL.

        Args:
            bucket: Target bucket
            key: Object key (path inside the bucket)
            content: Object body
            content_type: MIME type stored with the object
            overwrite: Replace an existing object at the same key

        Raises:
            ObjectAlreadyExistsError: overwrite is False and the key is taken
            StorageError: The storage backend failed
        """
        try:
            url = await asyncio.to_thread(
                self._upload, bucket, key, content, content_type, overwrite
            )
        except ObjectAlreadyExistsError:
            raise
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload to {bucket}/{key} failed: {e}")
            raise StorageError(str(e)) from e

        logger.info(f"Uploaded {len(content)} bytes to {bucket}/{key}")
        return url


_storage: ObjectStorage | None = None


def get_storage() -> ObjectStorage:
    """Return the process-wide storage client (FastAPI dependency)."""
    global _storage
    if _storage is None:
        _storage = ObjectStorage()
    return _storage
