"""Object storage for uploaded study documents (bucket `academic-documents`)."""

import asyncio
import logging
import time
from uuid import UUID

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

PRESIGNED_UPLOAD_TTL_SECONDS = 300


class StorageError(RuntimeError):
    """An object storage operation failed."""


def document_key(user_id: UUID, file_name: str) -> str:
    """
    Storage key for a new upload: '<user_id>/<epoch ms>_<file name>'.

    Slashes in the file name are replaced so every upload stays one level under the user prefix.
    """
    safe_name = file_name.replace("/", "_").replace("\\", "_")
    return f"{user_id}/{int(time.time() * 1000)}_{safe_name}"


class S3Service:
    """
    Thin async wrapper around a boto3 S3 client.

    boto3 is blocking, so every call runs in a worker thread.
    """

    def __init__(self):
        options = {
            "aws_access_key_id": settings.aws_access_key_id,
            "aws_secret_access_key": settings.aws_secret_access_key,
            "region_name": settings.aws_s3_region,
        }
        # MinIO / LocalStack
        if settings.aws_s3_endpoint_url:
            options["endpoint_url"] = settings.aws_s3_endpoint_url

        self.client = boto3.client("s3", **options)
        self.bucket = settings.aws_s3_bucket

    async def _run(self, action: str, func, /, **kwargs):
        try:
            return await asyncio.to_thread(func, **kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 %s failed: %s", action, str(e))
            raise StorageError(f"Failed to {action}: {e}") from e

    async def generate_presigned_upload_url(self, file_key: str, content_type: str) -> dict:
        """
        Presigned POST data ({"url", "fields"}) for a direct browser upload.

        The policy pins the content type and caps the size at the upload limit.
        """
        return await self._run(
            "generate presigned URL",
            self.client.generate_presigned_post,
            Bucket=self.bucket,
            Key=file_key,
            Fields={"Content-Type": content_type},
            Conditions=[
                {"Content-Type": content_type},
                ["content-length-range", 1, settings.max_document_size_bytes],
            ],
            ExpiresIn=PRESIGNED_UPLOAD_TTL_SECONDS,
        )

    async def download_document(self, file_key: str) -> bytes:
        """Fetch a document's bytes."""

        def fetch() -> bytes:
            response = self.client.get_object(Bucket=self.bucket, Key=file_key)
            return response["Body"].read()

        return await self._run("download document", fetch)

    async def delete_document(self, file_key: str) -> None:
        await self._run(
            "delete document",
            self.client.delete_object,
            Bucket=self.bucket,
            Key=file_key,
        )


s3_service = S3Service()
