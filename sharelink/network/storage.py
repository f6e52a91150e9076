import logging
from typing import Optional, Tuple
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from sharelink.core.errors import UpstreamError

logger = logging.getLogger(__name__)

# SigV4 pre-signed URLs cannot outlive 7 days
MAX_PRESIGN_SECONDS = 7 * 24 * 60 * 60


class S3Storage:
    """Pre-signed URL issuer and bucket janitor for the file bucket.

    The application never streams file bytes; clients PUT and GET directly
    against the URLs handed out here.
    """

    def __init__(self, bucket: str, region: str, access_key_id: str = "",
                 secret_access_key: str = "", client=None):
        self.bucket = bucket
        self.region = region
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
            config=Config(signature_version="s3v4"),
        )

    def generate_upload_url(self, key: str, content_type: str, expires_in: int = 3600) -> str:
        try:
            return self._client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self.bucket,
                    "Key": key,
                    "ContentType": content_type,
                },
                ExpiresIn=min(expires_in, MAX_PRESIGN_SECONDS),
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Presigned upload URL generation failed for %s", key)
            raise UpstreamError("Error generating upload URL") from exc

    def generate_download_url(self, key: str, original_name: str, expires_in: int = 3600) -> str:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self.bucket,
                    "Key": key,
                    "ResponseContentDisposition": f'attachment; filename="{quote(original_name)}"',
                },
                ExpiresIn=min(expires_in, MAX_PRESIGN_SECONDS),
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Presigned download URL generation failed for %s", key)
            raise UpstreamError("Error generating download URL") from exc

    def clear_bucket(self, prefix: Optional[str] = None) -> Tuple[int, int]:
        """Delete every object in the bucket. Returns (deleted, errors)."""
        deleted = 0
        errors = 0
        params = {"Bucket": self.bucket}
        if prefix:
            params["Prefix"] = prefix
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**params):
                contents = page.get("Contents", [])
                if not contents:
                    continue
                result = self._client.delete_objects(
                    Bucket=self.bucket,
                    Delete={
                        "Objects": [{"Key": obj["Key"]} for obj in contents],
                        "Quiet": False,
                    },
                )
                deleted += len(result.get("Deleted", []))
                errors += len(result.get("Errors", []))
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Clearing bucket %s failed", self.bucket)
            raise UpstreamError("Error clearing storage bucket") from exc

        logger.info("Cleared bucket %s: deleted=%d errors=%d", self.bucket, deleted, errors)
        return deleted, errors
