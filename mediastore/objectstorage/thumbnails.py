"""
Thumbnails of stored images, computed on first request and cached in the same bucket.

A thumbnail is stored under a key derived from the source id and the requested parameters
(see thumbnail_key), so every distinct (file, fill, width, height) combination is rendered once.
Later requests find the object under that key and stream it without touching the source.

Within one process, concurrent requests for a thumbnail that is not cached yet share a single
computation. Separate processes can still render the same thumbnail at the same time; both then
write identical bytes to the same key.
"""

import asyncio
import functools
import io
import logging

from mediastore.config import get_settings
from mediastore.errors import SourceNotFoundError
from mediastore.models import BlobStream
from mediastore.objectstorage.files import files_bucket, open_file, put_file
from mediastore.objectstorage.image_processing import THUMBNAIL_CONTENT_TYPE, build_thumbnail
from mediastore.objectstorage.s3bucket import get_s3_object, object_exists

_IN_FLIGHT: dict[str, asyncio.Task[bytes | None]] = {}


def thumbnail_key(file_id: str, fill: bool, width: int | None, height: int | None) -> str:
    """
    The key of a thumbnail, e.g. '01J9Z..._fill_200_' for fill=True, width=200, height=None.
    Missing dimensions are rendered as empty strings. Existing thumbnails are stored under
    this format, so it should not change.
    """
    fill_part = "_fill" if fill else ""
    return f"{file_id}{fill_part}_{'' if width is None else width}_{'' if height is None else height}"


def validate_dimensions(width: int | None, height: int | None) -> None:
    max_size = get_settings().thumbnail_max_size
    for name, value in (("width", width), ("height", height)):
        if value is None:
            continue
        if value <= 0:
            raise ValueError(f"Thumbnail {name} should be a positive number, got {value}")
        if value > max_size:
            raise ValueError(f"Thumbnail {name} {value} exceeds the maximum of {max_size}")


async def get_thumbnail(
    file_id: str, fill: bool = False, width: int | None = None, height: int | None = None
) -> BlobStream | None:
    """
    Get a thumbnail of the file with this id, creating and storing it if it doesn't exist yet.

    Returns None if the file is not an image that can be rendered.
    Raises SourceNotFoundError if there is no file with this id.
    """
    validate_dimensions(width, height)
    key = thumbnail_key(file_id, fill, width, height)
    bucket = await files_bucket()

    if await object_exists(bucket, key):
        cached = await get_s3_object(bucket, key)
        if cached is not None:
            logging.debug(f"Thumbnail cache hit: {key}")
            return cached

    task = _IN_FLIGHT.get(key)
    if task is None:
        task = asyncio.ensure_future(_create_thumbnail(key, file_id, fill, width, height))
        _IN_FLIGHT[key] = task
        task.add_done_callback(functools.partial(_forget, key))
    else:
        logging.debug(f"Waiting for thumbnail {key} that is being created")

    # shield: a cancelled caller should not cancel the computation for the others
    data = await asyncio.shield(task)
    if data is None:
        return None
    return BlobStream.from_bytes(key, THUMBNAIL_CONTENT_TYPE, data)


def _forget(key: str, task: asyncio.Task[bytes | None]) -> None:
    """Drop a finished computation, so errors and unreadable images are tried again on the next request"""
    _IN_FLIGHT.pop(key, None)
    # all waiters may have been cancelled, the error is then only logged here
    if not task.cancelled() and (e := task.exception()) is not None:
        logging.debug(f"Creating thumbnail {key} failed: {e!r}")


async def _create_thumbnail(key: str, file_id: str, fill: bool, width: int | None, height: int | None) -> bytes | None:
    source = await open_file(file_id)
    if source is None:
        raise SourceNotFoundError(file_id)
    image_data = await source.read()

    logging.info(f"Creating thumbnail {key}")
    quality = get_settings().thumbnail_quality
    data = await asyncio.to_thread(build_thumbnail, image_data, fill, width, height, quality)
    if data is None:
        logging.info(f"No thumbnail for {file_id}: not a readable image")
        return None

    await put_file(key, key, THUMBNAIL_CONTENT_TYPE, io.BytesIO(data))
    return data
