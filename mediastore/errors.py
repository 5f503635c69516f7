"""Errors raised by the storage layer. The API maps them to HTTP status codes."""


class BlobNotFoundError(FileNotFoundError):
    """No object is stored under the requested id"""

    def __init__(self, file_id: str):
        super().__init__(f"File {file_id!r} not found")
        self.file_id = file_id


class SourceNotFoundError(FileNotFoundError):
    """A thumbnail was requested for a file that does not exist"""

    def __init__(self, file_id: str):
        super().__init__(f"Source file {file_id!r} for thumbnail not found")
        self.file_id = file_id


class StoreUnavailableError(ConnectionError):
    """The object store failed or refused an operation"""
