from typing import AsyncIterator, BinaryIO, NamedTuple

from pydantic import BaseModel, Field


class FileDescriptor(BaseModel):
    id: str = Field(description="Identifier of the stored object, also its key in the bucket")
    filename: str = Field(description="Original name of the uploaded file")
    content_type: str = Field(description="MIME type, derived from the filename at upload time")
    size: int = Field(description="Size in bytes as reported by the uploader")


class UploadedFile(NamedTuple):
    file: BinaryIO
    size: int
    filename: str


async def _iter_bytes(data: bytes) -> AsyncIterator[bytes]:
    yield data


class BlobStream:
    """
    The content of a stored object. The chunks can be consumed only once,
    either by iterating over them (e.g. in a StreamingResponse) or with read().
    """

    def __init__(self, key: str, content_type: str, size: int, chunks: AsyncIterator[bytes]):
        self.key = key
        self.content_type = content_type
        self.size = size
        self.chunks = chunks

    @classmethod
    def from_bytes(cls, key: str, content_type: str, data: bytes) -> "BlobStream":
        return cls(key, content_type, len(data), _iter_bytes(data))

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.chunks

    async def read(self) -> bytes:
        return b"".join([chunk async for chunk in self.chunks])

    def __repr__(self):
        return f"<BlobStream {self.key!r} {self.content_type} {self.size} bytes>"
