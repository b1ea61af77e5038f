"""S3 storage — pre-signed upload/download URLs and object deletion.

Uploads and downloads never stream through the API; clients talk to S3
directly with short-lived pre-signed URLs. Credentials come from the
standard AWS chain (instance role in production, local profile in dev).

Called by: services/file_service.py
Depends on: boto3, config
"""

from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException
from loguru import logger

from ..config import settings


@lru_cache(maxsize=1)
def get_s3_client():
    return boto3.client("s3", region_name=settings.aws_region)


def presigned_upload_url(key: str, content_type: str, metadata: dict[str, str]) -> str:
    try:
        return get_s3_client().generate_presigned_url(
            "put_object",
            Params={
                "Bucket": settings.s3_bucket_name,
                "Key": key,
                "ContentType": content_type,
                "Metadata": metadata,
            },
            ExpiresIn=settings.upload_url_expiry_seconds,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error("Failed to presign upload for {}: {}", key, e)
        raise HTTPException(502, "File storage unavailable")


def presigned_download_url(key: str) -> str:
    try:
        return get_s3_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": settings.s3_bucket_name, "Key": key},
            ExpiresIn=settings.download_url_expiry_seconds,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error("Failed to presign download for {}: {}", key, e)
        raise HTTPException(502, "File storage unavailable")


def delete_object(key: str) -> None:
    try:
        get_s3_client().delete_object(Bucket=settings.s3_bucket_name, Key=key)
    except (BotoCoreError, ClientError) as e:
        logger.error("Failed to delete {} from storage: {}", key, e)
        raise HTTPException(502, "File storage unavailable")
    logger.info("Deleted {} from storage", key)
