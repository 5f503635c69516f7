"""
Interact with S3-compatible object storage (e.g., AWS S3, MinIO, SeaweedFS, Cloudflare R2).

Any failure of the store other than a missing object is raised as StoreUnavailableError.
"""

import logging
from typing import AsyncIterator

import async_lru
from botocore.exceptions import BotoCoreError, ClientError
from types_aiobotocore_s3.type_defs import HeadObjectOutputTypeDef

from mediastore.config import get_settings
from mediastore.connections import s3
from mediastore.errors import StoreUnavailableError
from mediastore.models import BlobStream

NOT_FOUND_CODES = ("404", "NoSuchKey", "NoSuchBucket", "NotFound")
BUCKET_RACE_CODES = ("BucketAlreadyOwnedByYou", "BucketAlreadyExists")
CHUNK_SIZE = 64 * 1024


def _error_code(e: ClientError) -> str | None:
    return e.response.get("Error", {}).get("Code")


async def get_bucket(bucket: str) -> str:
    """
    Get the bucket with this name, creating it if needed, taking into account whether we are using a test bucket.
    """
    if get_settings().use_test_bucket:
        bucket = f"test-{bucket}"
    return await _create_or_get_bucket_name(bucket)


@async_lru.alru_cache(maxsize=1000)
async def _create_or_get_bucket_name(bucket: str) -> str:
    # alru_cache shares one pending call between concurrent first users and does not cache failures
    try:
        try:
            await s3().head_bucket(Bucket=bucket)
            return bucket
        except ClientError as e:
            if _error_code(e) not in NOT_FOUND_CODES:
                raise
        logging.info(f"Creating bucket {bucket}")
        try:
            await s3().create_bucket(Bucket=bucket)
        except ClientError as e:
            # someone else created it between our head and create call
            if _error_code(e) not in BUCKET_RACE_CODES:
                raise
            logging.info(f"Bucket {bucket} was created concurrently")
    except (ClientError, BotoCoreError) as e:
        raise StoreUnavailableError(f"Cannot get or create bucket {bucket}: {e}") from e
    return bucket


async def object_exists(bucket: str, key: str) -> bool:
    return await stat_s3_object(bucket, key) is not None


async def stat_s3_object(bucket: str, key: str) -> HeadObjectOutputTypeDef | None:
    """Return the HEAD information of this object, or None if it doesn't exist"""
    try:
        return await s3().head_object(Bucket=bucket, Key=key)
    except ClientError as e:
        if _error_code(e) in NOT_FOUND_CODES:
            return None
        raise StoreUnavailableError(f"Cannot stat object {key}: {e}") from e
    except BotoCoreError as e:
        raise StoreUnavailableError(f"Cannot stat object {key}: {e}") from e


async def add_s3_object(bucket: str, key: str, data: bytes, content_type: str, metadata: dict[str, str]):
    try:
        await s3().put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type, Metadata=metadata)
    except (ClientError, BotoCoreError) as e:
        raise StoreUnavailableError(f"Cannot upload object {key}: {e}") from e


async def get_s3_object(bucket: str, key: str) -> BlobStream | None:
    """Open the object for reading, or return None if it doesn't exist"""
    try:
        res = await s3().get_object(Bucket=bucket, Key=key)
    except ClientError as e:
        if _error_code(e) in NOT_FOUND_CODES:
            return None
        raise StoreUnavailableError(f"Cannot download object {key}: {e}") from e
    except BotoCoreError as e:
        raise StoreUnavailableError(f"Cannot download object {key}: {e}") from e
    return BlobStream(
        key=key,
        content_type=res.get("ContentType") or "application/octet-stream",
        size=res["ContentLength"],
        chunks=_iter_body(key, res["Body"]),
    )


async def _iter_body(key: str, body) -> AsyncIterator[bytes]:
    try:
        async for chunk in body.iter_chunks(CHUNK_SIZE):
            yield chunk
    except (ClientError, BotoCoreError) as e:
        raise StoreUnavailableError(f"Download of object {key} failed: {e}") from e
    finally:
        body.close()


async def scan_s3_objects(bucket: str, prefix: str = "", page_size=1000) -> AsyncIterator[str]:
    paginator = s3().get_paginator("list_objects_v2")

    try:
        async for page in paginator.paginate(Bucket=bucket, Prefix=prefix, PaginationConfig={"PageSize": page_size}):
            for content in page.get("Contents", []):
                if "Key" in content:
                    yield content["Key"]
    except (ClientError, BotoCoreError) as e:
        raise StoreUnavailableError(f"Cannot list bucket {bucket}: {e}") from e
