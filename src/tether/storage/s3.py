"""S3-compatible blob storage backend.

Supports:
- AWS S3
- MinIO
- DigitalOcean Spaces
- Any S3-compatible object storage
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

if TYPE_CHECKING:
    import aioboto3

    from tether.blob import Blob

from tether.storage.base import BlobStorage

logger = logging.getLogger(__name__)


class S3BlobStorage(BlobStorage):
    """S3-compatible blob storage implementation.

    Uses aioboto3 for async S3 operations.

    Configuration via:
    - bucket: S3 bucket name
    - prefix: Optional key prefix (e.g., "tether/blobs/")
    - endpoint_url: For non-AWS S3-compatible services
    - region_name: AWS region
    - credentials: via AWS SDK defaults or explicit aws_access_key_id/secret_access_key
    """

    storage_type = "s3"

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        endpoint_url: str | None = None,
        region_name: str = "us-east-1",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
    ):
        """Initialize S3 blob storage.

        Args:
            bucket: S3 bucket name
            prefix: Key prefix for all blobs (optional)
            endpoint_url: Custom endpoint for S3-compatible services
            region_name: AWS region
            aws_access_key_id: Access key (optional, uses SDK defaults)
            aws_secret_access_key: Secret key (optional, uses SDK defaults)
        """
        self.bucket = bucket
        self.prefix = prefix.rstrip("/") + "/" if prefix else ""
        self.endpoint_url = endpoint_url
        self.region_name = region_name
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self._session: "aioboto3.Session | None" = None

    async def _get_session(self) -> "aioboto3.Session":
        """Get or create aioboto3 session."""
        if self._session is None:
            import aioboto3

            self._session = aioboto3.Session(
                aws_access_key_id=self.aws_access_key_id,
                aws_secret_access_key=self.aws_secret_access_key,
                region_name=self.region_name,
            )
        return self._session

    def _build_key(self, blob: Blob) -> str:
        """Build S3 object key: {prefix}{folder}/{owner_id}{extension}."""
        return f"{self.prefix}{self.object_key(blob)}"

    def costs_to_check_existence(self) -> bool:
        return True

    async def load(self, blob: Blob) -> bytes:
        """Load blob content from S3."""
        key = self._build_key(blob)

        session = await self._get_session()

        async with session.client("s3", endpoint_url=self.endpoint_url) as s3:
            try:
                response = await s3.get_object(Bucket=self.bucket, Key=key)
                async with response["Body"] as stream:
                    data = await stream.read()
                    return cast(bytes, data)
            except s3.exceptions.NoSuchKey:
                raise FileNotFoundError(f"Blob not found: s3://{self.bucket}/{key}")

    async def save(self, blob: Blob) -> None:
        """Upload blob content to S3."""
        content = self.require_content(blob)
        key = self._build_key(blob)

        session = await self._get_session()

        async with session.client("s3", endpoint_url=self.endpoint_url) as s3:
            await s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=blob.mime_type,
                Metadata={
                    "file-name": blob.file_name,
                    "content-hash": self.compute_hash(content),
                },
            )

        logger.debug(f"Stored blob at s3://{self.bucket}/{key} ({len(content)} bytes)")

    async def delete(self, blob: Blob) -> None:
        """Delete a blob from S3 (S3 deletes are idempotent)."""
        if blob.owner_id() is None:
            return
        key = self._build_key(blob)

        session = await self._get_session()

        async with session.client("s3", endpoint_url=self.endpoint_url) as s3:
            await s3.delete_object(Bucket=self.bucket, Key=key)

        logger.debug(f"Deleted blob at s3://{self.bucket}/{key}")

    async def exists(self, blob: Blob) -> bool:
        """Check if a blob exists in S3."""
        if blob.owner_id() is None:
            return False
        key = self._build_key(blob)

        from botocore.exceptions import ClientError

        session = await self._get_session()

        async with session.client("s3", endpoint_url=self.endpoint_url) as s3:
            try:
                await s3.head_object(Bucket=self.bucket, Key=key)
                return True
            except ClientError as exc:
                if exc.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                    return False
                raise

    async def get_presigned_url(self, blob: Blob, expires_in: int = 3600) -> str:
        """Generate a presigned URL for direct download.

        Args:
            blob: Attached blob
            expires_in: URL expiration time in seconds (default 1 hour)
        """
        key = self._build_key(blob)

        session = await self._get_session()

        async with session.client("s3", endpoint_url=self.endpoint_url) as s3:
            url = await s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
            return cast(str, url)

    async def close(self) -> None:
        """Close the S3 session."""
        # aioboto3 sessions don't need explicit closing
        self._session = None
