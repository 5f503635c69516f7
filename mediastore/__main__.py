"""
mediastore: file storage with cached image thumbnails
"""

import argparse
import asyncio
import inspect
import json
import logging
import os
import sys
from pathlib import Path

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from mediastore.config import ENV_PREFIX, get_settings
from mediastore.connections import NOT_CONFIGURED, mediastore_connections, s3_enabled
from mediastore.models import UploadedFile
from mediastore.objectstorage.files import add_files, list_files
from mediastore.objectstorage.thumbnails import get_thumbnail


def _require_s3():
    if not s3_enabled():
        logging.error(NOT_CONFIGURED)
        sys.exit(1)


def run(args):
    settings = get_settings()
    logging.info(f"Starting server at port {args.port}, debug={not args.nodebug}, bucket={settings.bucket}")
    if not s3_enabled():
        logging.warning("Warning: No object store is configured, all file requests will fail")
    logging.info(
        "To change server config, create an .env file and/or set environment parameters,\n"
        f"{' ' * 26}see mediastore/config.py for more information.\n"
        f"{' ' * 26}You can also run `python -m mediastore create-env` to create a template .env file\n"
    )
    log_config = "logging.yml" if Path("logging.yml").exists() else LOGGING_CONFIG
    uvicorn.run("mediastore.api:app", host="0.0.0.0", reload=not args.nodebug, port=int(args.port), log_config=log_config)


def base_env():
    return {
        "mediastore_s3_host": "http://localhost:9000",
        "mediastore_s3_access_key": "",
        "mediastore_s3_secret_key": "",
        "mediastore_bucket": get_settings().bucket,
    }


def create_env(args):
    if os.path.exists(".env"):
        print("*** File .env already exists, quitting ***")
        sys.exit(1)

    with open(".env", "w") as f:
        for key, val in base_env().items():
            f.write(f"{key}={val}\n")
    os.chmod(".env", 0o600)
    print("*** Created .env file, fill in the S3 keys ***")


def show_config(_args):
    settings = get_settings()
    for fieldname, fieldinfo in type(settings).model_fields.items():
        value = getattr(settings, fieldname)
        if fieldinfo.description:
            print(f"# {fieldinfo.description}")
        print(f"{ENV_PREFIX.upper()}{fieldname.upper()}={'' if value is None else value}\n")


async def upload(args):
    _require_s3()
    async with mediastore_connections():
        handles = [open(fn, "rb") for fn in args.files]
        try:
            uploads = [UploadedFile(f, os.path.getsize(fn), os.path.basename(fn)) for f, fn in zip(handles, args.files)]
            result = await add_files(uploads)
        finally:
            for f in handles:
                f.close()
    if result is None:
        print("(Nothing uploaded, all files were empty)")
        return
    for descriptor in result:
        print(json.dumps(descriptor.model_dump()))


async def list_stored_files(args):
    _require_s3()
    async with mediastore_connections():
        n = 0
        async for key in list_files(prefix=args.prefix):
            print(key)
            n += 1
    logging.info(f"{n} object(s) in bucket {get_settings().bucket}")


async def thumbnail(args):
    _require_s3()
    async with mediastore_connections():
        stream = await get_thumbnail(args.file_id, fill=args.fill, width=args.width, height=args.height)
        if stream is None:
            logging.error(f"File {args.file_id} is not an image that can be shown as thumbnail")
            sys.exit(1)
        data = await stream.read()
    Path(args.output).write_bytes(data)
    print(f"*** Written {len(data)} bytes to {args.output} ***")


def main():
    parser = argparse.ArgumentParser(description=__doc__, prog="python -m mediastore")

    subparsers = parser.add_subparsers(dest="action", title="action", help="Action to perform:", required=True)
    p = subparsers.add_parser("run", help="Run the backend API in development mode")
    p.add_argument(
        "--no-debug",
        action="store_true",
        dest="nodebug",
        help="Disable debug mode (no auto reload)",
    )
    p.add_argument("-p", "--port", help="Port", default=5000)
    p.set_defaults(func=run)

    p = subparsers.add_parser("create-env", help="Create a template .env file")
    p.set_defaults(func=create_env)

    p = subparsers.add_parser("config", help="Show the current mediastore settings")
    p.set_defaults(func=show_config)

    p = subparsers.add_parser("upload", help="Store one or more files and print their descriptors")
    p.add_argument("files", nargs="+", help="Files to upload")
    p.set_defaults(func=upload)

    p = subparsers.add_parser("list-files", help="List the keys of all stored objects, including thumbnails")
    p.add_argument("--prefix", default="", help="Only list keys starting with this prefix")
    p.set_defaults(func=list_stored_files)

    p = subparsers.add_parser("thumbnail", help="Create (or fetch) a thumbnail of a stored image")
    p.add_argument("file_id", help="The id of the stored image")
    p.add_argument("--fill", action="store_true", help="Crop the image to fill the whole box")
    p.add_argument("--width", type=int, help="Width in pixels")
    p.add_argument("--height", type=int, help="Height in pixels")
    p.add_argument("-o", "--output", required=True, help="File to write the JPEG thumbnail to")
    p.set_defaults(func=thumbnail)

    args = parser.parse_args()

    logging.basicConfig(format="[%(levelname)-7s:%(name)-15s] %(message)s", level=logging.INFO)
    for name in ("botocore", "aiobotocore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    if inspect.iscoroutinefunction(args.func):
        asyncio.run(args.func(args))
    else:
        args.func(args)


if __name__ == "__main__":
    main()
