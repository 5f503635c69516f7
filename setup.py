#!/usr/bin/env python

from setuptools import find_packages, setup

setup(
    name="mediastore",
    version="0.1.0",
    description="File storage API with cached image thumbnails on S3-compatible object storage",
    packages=find_packages(include=["mediastore", "mediastore.*"]),
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.10",
    keywords=["API", "S3", "thumbnails"],
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
        "Topic :: Multimedia :: Graphics",
    ],
    install_requires=[
        "fastapi",
        "python-multipart",
        "python-dotenv",
        "pydantic>=2",
        "pydantic-settings",
        "uvicorn",
        "aiobotocore",
        "types-aiobotocore-s3",
        "async-lru>=2",
        "pillow>=9.1",
        "python-ulid>=2",
    ],
    extras_require={
        "dev": [
            "pytest",
            "anyio",
            "httpx",
            "mypy",
            "flake8",
        ]
    },
    entry_points={"console_scripts": ["mediastore = mediastore.__main__:main"]},
)
