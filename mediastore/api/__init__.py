"""mediastore API: file storage with cached image thumbnails."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mediastore.api.files import app_files
from mediastore.api.info import app_info
from mediastore.connections import mediastore_connections
from mediastore.errors import BlobNotFoundError, SourceNotFoundError, StoreUnavailableError


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.info("Connecting to object store...")
    async with mediastore_connections():
        yield


app = FastAPI(
    title="mediastore",
    description=__doc__ if __doc__ else "",
    openapi_tags=[
        dict(name="informational", description="Information about this server"),
        dict(name="files", description="Endpoints to upload and download files and thumbnails"),
    ],
    lifespan=lifespan,
)
app.include_router(app_info)
app.include_router(app_files)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BlobNotFoundError)
@app.exception_handler(SourceNotFoundError)
async def not_found_exception_handler(request: Request, exc: FileNotFoundError):
    return JSONResponse(
        status_code=404,
        content={"message": str(exc)},
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_exception_handler(request: Request, exc: StoreUnavailableError):
    logging.error(f"Object store error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"message": "The object store is not available"},
    )


@app.exception_handler(ValueError)
async def value_error_exception_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=400,
        content={"message": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc) -> JSONResponse:
    return JSONResponse(
        status_code=422, content={"message": "There was an issue with the data you sent.", "fields_invalid": exc.errors()}
    )
