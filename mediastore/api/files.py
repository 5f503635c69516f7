from typing import Annotated

from fastapi import APIRouter, File, HTTPException, Path, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from mediastore.models import BlobStream, FileDescriptor, UploadedFile
from mediastore.objectstorage.files import add_files, get_file_meta, open_file
from mediastore.objectstorage.thumbnails import get_thumbnail

app_files = APIRouter(prefix="", tags=["files"])


def _stream_response(stream: BlobStream) -> StreamingResponse:
    return StreamingResponse(
        stream.chunks,
        media_type=stream.content_type,
        headers={"Content-Length": str(stream.size)},
    )


@app_files.post("/files", status_code=status.HTTP_201_CREATED)
async def upload_files(
    files: Annotated[list[UploadFile], File(description="One or more files to store")],
) -> list[FileDescriptor]:
    """
    Upload one or more files as multipart form data. Empty files are skipped.

    Every stored file gets a new id, which is returned together with the detected content type and size.
    """
    uploads = [UploadedFile(file=f.file, size=f.size or 0, filename=f.filename or "") for f in files]
    result = await add_files(uploads)
    if result is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No non-empty files were uploaded")
    return result


@app_files.get("/files/{file_id}/meta")
async def file_meta(
    file_id: Annotated[str, Path(description="The id of the stored file")],
) -> FileDescriptor:
    """Get the original filename, content type and size of a stored file."""
    return await get_file_meta(file_id)


@app_files.get("/files/{file_id}/thumbnail", response_class=StreamingResponse)
async def file_thumbnail(
    file_id: Annotated[str, Path(description="The id of the stored image")],
    fill: Annotated[
        bool, Query(description="If true and both width and height are given, crop the image to fill the whole box")
    ] = False,
    width: Annotated[int | None, Query(description="Width of the thumbnail in pixels")] = None,
    height: Annotated[int | None, Query(description="Height of the thumbnail in pixels")] = None,
):
    """
    Get a JPEG thumbnail of a stored image. Thumbnails are created on first request and stored for later use.
    """
    stream = await get_thumbnail(file_id, fill=fill, width=width, height=height)
    if stream is None:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"File {file_id} is not an image that can be shown as thumbnail",
        )
    return _stream_response(stream)


@app_files.get("/files/{file_id}", response_class=StreamingResponse)
async def file_content(
    file_id: Annotated[str, Path(description="The id of the stored file")],
):
    """Download a stored file."""
    stream = await open_file(file_id)
    if stream is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"File {file_id} not found")
    return _stream_response(stream)
