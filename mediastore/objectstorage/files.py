"""
Store uploaded files in the object store, together with their original filename and content type.

The original filename is kept in the object metadata under FILENAME_METADATA_KEY. The content type is the
Content-Type of the object itself, and the size is its Content-Length.
"""

import logging
from typing import AsyncIterator, BinaryIO, Iterable

from mediastore.config import get_settings
from mediastore.contenttypes import get_content_type
from mediastore.errors import BlobNotFoundError
from mediastore.ids import new_id
from mediastore.models import BlobStream, FileDescriptor, UploadedFile
from mediastore.objectstorage.s3bucket import (
    add_s3_object,
    get_bucket,
    get_s3_object,
    object_exists,
    scan_s3_objects,
    stat_s3_object,
)

## Persisted format: existing objects were written with this exact key
FILENAME_METADATA_KEY = "FileName"


async def files_bucket() -> str:
    return await get_bucket(get_settings().bucket)


async def put_file(file_id: str, filename: str, content_type: str, file: BinaryIO) -> None:
    """
    Upload the content of file under file_id, overwriting any existing object.
    The file is read from the start, even if the caller already consumed part of it.
    """
    bucket = await files_bucket()
    file.seek(0)
    data = file.read()
    await add_s3_object(bucket, file_id, data, content_type=content_type, metadata={FILENAME_METADATA_KEY: filename})
    logging.debug(f"Stored {file_id} ({filename}, {content_type}, {len(data)} bytes)")


async def add_file_from_stream(
    file: BinaryIO | None, size: int, filename: str, file_id: str | None = None
) -> FileDescriptor | None:
    if file is None:
        return None
    if file_id is None:
        file_id = new_id()
    content_type = get_content_type(filename)
    await put_file(file_id, filename, content_type, file)
    return FileDescriptor(id=file_id, filename=filename, content_type=content_type, size=size)


async def add_files(files: Iterable[UploadedFile]) -> list[FileDescriptor] | None:
    """
    Store all non-empty files, in order. Returns None (rather than an empty list) if nothing was stored.
    """
    result: list[FileDescriptor] = []
    for file, size, filename in files:
        if size <= 0:
            logging.info(f"Skipping empty upload {filename!r}")
            continue
        descriptor = await add_file_from_stream(file, size, filename)
        if descriptor is not None:
            result.append(descriptor)
    if get_settings().log_files_after_upload:
        await log_all_files()
    return result if result else None


async def get_file_meta(file_id: str) -> FileDescriptor:
    bucket = await files_bucket()
    head = await stat_s3_object(bucket, file_id)
    if head is None:
        raise BlobNotFoundError(file_id)
    return FileDescriptor(
        id=file_id,
        filename=_get_filename(head.get("Metadata", {})) or file_id,
        content_type=head.get("ContentType") or "application/octet-stream",
        size=head["ContentLength"],
    )


def _get_filename(metadata: dict[str, str]) -> str | None:
    # S3 returns user metadata keys in lower case
    for key, value in metadata.items():
        if key.lower() == FILENAME_METADATA_KEY.lower():
            return value
    return None


async def file_exists(file_id: str) -> bool:
    bucket = await files_bucket()
    return await object_exists(bucket, file_id)


async def open_file(file_id: str) -> BlobStream | None:
    """Open a stored file for reading. Unlike get_file_meta, a missing file gives None rather than an error"""
    bucket = await files_bucket()
    return await get_s3_object(bucket, file_id)


async def list_files(prefix: str = "") -> AsyncIterator[str]:
    bucket = await files_bucket()
    async for key in scan_s3_objects(bucket, prefix=prefix):
        yield key


async def log_all_files():
    logging.info("############### All Files ###############")
    async for key in list_files():
        logging.info(f"\t{key}")
    logging.info("############### / All Files ###############")
