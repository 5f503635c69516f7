"""
The S3 client shared by all requests.

It is opened once, in the FastAPI lifespan or around a CLI command (see mediastore_connections), and
closed at shutdown. Storage code gets it through s3(), which raises StoreUnavailableError when the
object store is not configured or not opened, so callers see the same error as for a failing store.
"""

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncGenerator

from aiobotocore.config import AioConfig
from aiobotocore.session import get_session
from types_aiobotocore_s3.client import S3Client

from mediastore.config import ENV_PREFIX, get_settings
from mediastore.errors import StoreUnavailableError

NOT_CONFIGURED = (
    f"Object store not configured, set {ENV_PREFIX.upper()}S3_HOST, "
    f"{ENV_PREFIX.upper()}S3_ACCESS_KEY and {ENV_PREFIX.upper()}S3_SECRET_KEY"
)


class ObjectStore:
    client: S3Client | None = None
    exit_stack: AsyncExitStack | None = None

    async def open(self) -> None:
        if not s3_enabled():
            logging.warning(NOT_CONFIGURED)
            return
        settings = get_settings()
        logging.info(f"Connecting with object store at {settings.s3_host}, bucket {settings.bucket}")
        client = get_session().create_client(
            service_name="s3",
            endpoint_url=settings.s3_host,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            config=AioConfig(signature_version="s3v4"),
        )
        # the aiobotocore client is an async context manager that owns the connection pool
        self.exit_stack = AsyncExitStack()
        self.client = await self.exit_stack.enter_async_context(client)

    async def close(self) -> None:
        if self.exit_stack is not None:
            await self.exit_stack.aclose()
        self.client = None
        self.exit_stack = None


OBJECT_STORE = ObjectStore()


@asynccontextmanager
async def mediastore_connections() -> AsyncGenerator[None, None]:
    """Open the object store connection for the duration of the block"""
    try:
        await OBJECT_STORE.open()
        yield
    finally:
        await OBJECT_STORE.close()


def s3() -> S3Client:
    if OBJECT_STORE.client is None:
        if not s3_enabled():
            raise StoreUnavailableError(NOT_CONFIGURED)
        raise StoreUnavailableError("Object store connection is not open")
    return OBJECT_STORE.client


def s3_enabled() -> bool:
    settings = get_settings()
    return all([settings.s3_host, settings.s3_access_key, settings.s3_secret_key])
