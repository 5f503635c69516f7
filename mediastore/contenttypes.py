import mimetypes

DEFAULT_CONTENT_TYPE = "application/octet-stream"

INFER_MIME_TYPE: dict[str, str] = {
    # Images
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    # Videos
    "mp4": "video/mp4",
    "mov": "video/quicktime",
    "webm": "video/webm",
    # Audio
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "m4a": "audio/m4a",
    # Text and documents
    "txt": "text/plain",
    "csv": "text/csv",
    "html": "text/html",
    "htm": "text/html",
    "json": "application/json",
    "xml": "application/xml",
    "pdf": "application/pdf",
    "zip": "application/zip",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}


def get_content_type(filename: str) -> str:
    """
    Guess the MIME type from the extension of the filename.
    Unknown or missing extensions give application/octet-stream.
    """
    _, dot, ext = (filename or "").rpartition(".")
    if not dot or not ext:
        return DEFAULT_CONTENT_TYPE
    ext = ext.lower()
    if ext in INFER_MIME_TYPE:
        return INFER_MIME_TYPE[ext]
    guessed, _encoding = mimetypes.guess_type(f"file.{ext}", strict=False)
    return guessed or DEFAULT_CONTENT_TYPE
