# storage.py
"""S3-compatible object storage for entry attachments."""

import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .errors import BadRequest, InternalError

logger = logging.getLogger(__name__)


class S3Storage:
    """Thin wrapper around a boto3 S3 client bound to one bucket.

    Objects are uploaded public-read and addressed as ``{public_url}/{key}``.
    """

    def __init__(
        self,
        bucket: str,
        public_url: str,
        region: Optional[str] = None,
        endpoint: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")
        self.client = client or boto3.client("s3", region_name=region, endpoint_url=endpoint)

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["S3Storage"]:
        """Build the storage client, or return None when S3 is not configured."""
        if not settings.s3_bucket:
            return None
        public_url = settings.s3_public_url or f"https://{settings.s3_bucket}.s3.amazonaws.com"
        return cls(
            bucket=settings.s3_bucket,
            public_url=public_url,
            region=settings.s3_region,
            endpoint=settings.s3_endpoint,
        )

    def upload_attachment(
        self,
        entry_id: str,
        attachment_id: str,
        data: bytes,
        content_type: str,
        extension: str,
    ) -> str:
        """Store the file and return its public URL."""
        key = f"attachments/{entry_id}/{attachment_id}.{extension}"
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )
        except (BotoCoreError, ClientError):
            logger.exception(f"S3 attachment upload failed for {key}")
            raise InternalError("Attachment upload failed")
        return f"{self.public_url}/{key}"

    def delete_attachment(self, file_url: str) -> None:
        prefix = f"{self.public_url}/"
        if not file_url.startswith(prefix):
            logger.error(f"Invalid file URL format: {file_url}")
            raise BadRequest("Invalid file URL format")
        key = file_url[len(prefix):]
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError):
            logger.exception(f"S3 attachment delete failed for {key}")
            raise InternalError("Attachment delete failed")
