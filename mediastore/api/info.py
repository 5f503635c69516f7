"""API Endpoints for server information."""

from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter
from pydantic import BaseModel, Field

from mediastore.config import get_settings
from mediastore.connections import s3_enabled

app_info = APIRouter(tags=["informational"])


class InfoResponse(BaseModel):
    host: str = Field(description="The host this instance is served at")
    bucket: str = Field(description="The bucket files and thumbnails are stored in")
    s3_enabled: bool = Field(description="Whether the object store is configured")
    api_version: str = Field(description="The version of the mediastore API")


def _api_version() -> str:
    try:
        return version("mediastore")
    except PackageNotFoundError:
        return "unknown"


@app_info.get("/")
def info() -> InfoResponse:
    """Returns information about this mediastore instance."""
    settings = get_settings()
    return InfoResponse(
        host=settings.host,
        bucket=settings.bucket,
        s3_enabled=s3_enabled(),
        api_version=_api_version(),
    )
