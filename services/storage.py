# services/storage.py
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool
import logging
import time
import config

logger = logging.getLogger(__name__)

class StorageError(Exception):
    pass

class ObjectStorage:
    """Course assets in a Backblaze B2 bucket through its S3-compatible API."""

    def __init__(self, bucket: str = None, client=None):
        self.bucket = bucket or config.B2_BUCKET_NAME
        self.client = client or boto3.client(
            "s3",
            region_name=config.B2_REGION,
            endpoint_url=config.B2_ENDPOINT,
            aws_access_key_id=config.B2_KEY_ID,
            aws_secret_access_key=config.B2_APP_KEY,
        )

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{config.B2_REGION}.backblazeb2.com/{key}"

    async def upload(self, data: bytes, filename: str, content_type: str = None, folder: str = "courses") -> dict:
        key = f"{folder}/{int(time.time() * 1000)}-{filename}"
        extra = {"ContentType": content_type} if content_type else {}
        try:
            await run_in_threadpool(self.client.put_object, Bucket=self.bucket, Key=key, Body=data, **extra)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"B2 upload error for {key}: {str(e)}")
            raise StorageError("Failed to upload file. Please try again.") from e
        return {"fileName": key, "url": self.public_url(key)}

    async def delete(self, key: str) -> bool:
        """Best effort: a failed delete leaves an orphaned object, nothing more."""
        try:
            await run_in_threadpool(self.client.delete_object, Bucket=self.bucket, Key=key)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"B2 delete error for {key}: {str(e)}")
            return False

_storage = None

def get_storage() -> ObjectStorage:
    global _storage
    if _storage is None:
        _storage = ObjectStorage()
    return _storage
