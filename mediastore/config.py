"""
mediastore configuration

We read configuration from 2 sources, in order of precedence (higher is more priority)
- Environment variables
- A .env file, either in the current working directory or in a location specified
  by the MEDIASTORE_ENV_FILE environment variable
"""

import functools
from pathlib import Path
from typing import Annotated, Any

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "mediastore_"


class Settings(BaseSettings):
    env_file: Annotated[
        Path,
        Field(
            description="Location of a .env file (if used) relative to working directory",
        ),
    ] = Path(".env")
    host: Annotated[
        str,
        Field(
            description="Host this instance is served at",
        ),
    ] = "http://localhost:5000"

    s3_host: Annotated[
        str | None,
        Field(description="Endpoint of the S3 compatible object store, e.g. http://localhost:9000"),
    ] = None
    s3_access_key: Annotated[str | None, Field(description="Access key for the object store")] = None
    s3_secret_key: Annotated[str | None, Field(description="Secret key for the object store")] = None

    bucket: Annotated[
        str,
        Field(
            description="Bucket that holds uploaded files and their thumbnails (created if it does not exist)",
        ),
    ] = "mediastore"

    use_test_bucket: Annotated[
        bool,
        Field(
            description="Prefix the bucket name with 'test-' (used by the unit tests)",
        ),
    ] = False

    thumbnail_quality: Annotated[
        int,
        Field(description="JPEG quality used when encoding thumbnails", ge=1, le=95),
    ] = 85

    thumbnail_max_size: Annotated[
        int,
        Field(description="Largest width or height (in pixels) that can be requested for a thumbnail", gt=0),
    ] = 2000

    log_files_after_upload: Annotated[
        bool,
        Field(description="Log the keys of all stored objects after every batch upload (debugging only)"),
    ] = False

    @model_validator(mode="after")
    def strip_host(self: Any) -> "Settings":
        if self.s3_host:
            self.s3_host = self.s3_host.rstrip("/")
        return self

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)


@functools.lru_cache()
def get_settings() -> Settings:
    # Read the settings once to learn where the .env file lives, then load it without
    # overriding real environment variables and read the settings again
    temp = Settings()
    load_dotenv(temp.env_file, override=False)
    return Settings()


if __name__ == "__main__":
    # Echo the settings
    for k, v in get_settings().model_dump().items():
        print(f"{ENV_PREFIX.upper()}{k.upper()}={v}")
