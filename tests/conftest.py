import io

import pytest
from botocore.exceptions import ClientError
from httpx import ASGITransport, AsyncClient
from PIL import Image

from mediastore import api
from mediastore.config import get_settings
from mediastore.connections import OBJECT_STORE
from mediastore.objectstorage.s3bucket import _create_or_get_bucket_name

TEST_BUCKET = "test-mediastore"


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeBody:
    """Mimics the aiobotocore StreamingBody"""

    def __init__(self, data: bytes):
        self._data = data
        self.closed = False

    def close(self):
        self.closed = True

    async def read(self) -> bytes:
        return self._data

    async def iter_chunks(self, chunk_size: int = 1024):
        for i in range(0, len(self._data), chunk_size):
            yield self._data[i : i + chunk_size]


class FakePaginator:
    def __init__(self, client: "FakeS3Client"):
        self.client = client

    async def paginate(self, Bucket, Prefix="", PaginationConfig=None):
        if Bucket not in self.client.buckets:
            raise client_error("NoSuchBucket", "ListObjectsV2")
        page_size = (PaginationConfig or {}).get("PageSize", 1000)
        keys = sorted(k for k in self.client.buckets[Bucket] if k.startswith(Prefix))
        for i in range(0, len(keys), page_size):
            page = keys[i : i + page_size]
            yield {"Contents": [{"Key": k, "Size": len(self.client.buckets[Bucket][k]["Body"])} for k in page]}


class FakeS3Client:
    """
    In-memory stand-in for the aiobotocore S3 client, implementing the calls mediastore uses.
    Like S3, user metadata keys come back in lower case.
    """

    def __init__(self):
        self.buckets: dict[str, dict[str, dict]] = {}
        self.calls: dict[str, int] = {}
        self.fail: set[str] = set()

    def _call(self, operation: str):
        self.calls[operation] = self.calls.get(operation, 0) + 1
        if operation in self.fail:
            raise client_error("InternalError", operation)

    def _get(self, Bucket, Key, operation):
        if Bucket not in self.buckets:
            raise client_error("NoSuchBucket", operation)
        if Key not in self.buckets[Bucket]:
            raise client_error("404" if operation == "HeadObject" else "NoSuchKey", operation)
        return self.buckets[Bucket][Key]

    async def head_bucket(self, Bucket):
        self._call("HeadBucket")
        if Bucket not in self.buckets:
            raise client_error("404", "HeadBucket")
        return {}

    async def create_bucket(self, Bucket):
        self._call("CreateBucket")
        if Bucket in self.buckets:
            raise client_error("BucketAlreadyOwnedByYou", "CreateBucket")
        self.buckets[Bucket] = {}
        return {}

    async def put_object(self, Bucket, Key, Body, ContentType="binary/octet-stream", Metadata=None):
        self._call("PutObject")
        if Bucket not in self.buckets:
            raise client_error("NoSuchBucket", "PutObject")
        self.buckets[Bucket][Key] = {
            "Body": bytes(Body),
            "ContentType": ContentType,
            "Metadata": {k.lower(): v for k, v in (Metadata or {}).items()},
        }
        return {}

    async def head_object(self, Bucket, Key):
        self._call("HeadObject")
        obj = self._get(Bucket, Key, "HeadObject")
        return {"ContentType": obj["ContentType"], "ContentLength": len(obj["Body"]), "Metadata": dict(obj["Metadata"])}

    async def get_object(self, Bucket, Key):
        self._call("GetObject")
        obj = self._get(Bucket, Key, "GetObject")
        return {
            "Body": FakeBody(obj["Body"]),
            "ContentType": obj["ContentType"],
            "ContentLength": len(obj["Body"]),
            "Metadata": dict(obj["Metadata"]),
        }

    def get_paginator(self, operation):
        assert operation == "list_objects_v2"
        return FakePaginator(self)

    def keys(self, bucket: str = TEST_BUCKET) -> set[str]:
        return set(self.buckets.get(bucket, {}))


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def s3_client():
    get_settings().use_test_bucket = True
    get_settings().log_files_after_upload = False
    fake = FakeS3Client()
    OBJECT_STORE.client = fake  # type: ignore
    _create_or_get_bucket_name.cache_clear()
    yield fake
    OBJECT_STORE.client = None
    _create_or_get_bucket_name.cache_clear()


@pytest.fixture()
async def client():
    async with AsyncClient(transport=ASGITransport(app=api.app), base_url="http://test", follow_redirects=False) as client:
        yield client


def make_image(width: int = 400, height: int = 300, format: str = "PNG", mode: str = "RGB") -> bytes:
    img = Image.new(mode, (width, height))
    # a gradient, so resizing and cropping actually change the pixels
    for x in range(width):
        for y in range(0, height, 10):
            img.putpixel((x, y), (x % 256, y % 256, 128) if mode == "RGB" else (x % 256, y % 256, 128, 200))
    buffer = io.BytesIO()
    img.save(buffer, format=format)
    return buffer.getvalue()


@pytest.fixture()
def png_image() -> bytes:
    return make_image()


@pytest.fixture()
def image_factory():
    return make_image
