import io

import pytest
from httpx import AsyncClient
from PIL import Image

from mediastore.config import get_settings
from mediastore.connections import OBJECT_STORE


async def _upload(client: AsyncClient, *files: tuple[str, bytes], expected=201):
    res = await client.post("/files", files=[("files", (name, content)) for name, content in files])
    assert res.status_code == expected, res.text
    return res.json()


@pytest.mark.anyio
async def test_info(client: AsyncClient):
    res = await client.get("/")
    res.raise_for_status()
    assert res.json()["bucket"] == "mediastore"


@pytest.mark.anyio
async def test_upload_download(client: AsyncClient):
    result = await _upload(client, ("hello.txt", b"hello"), ("empty.txt", b""), ("data.csv", b"a,b\n1,2\n"))
    assert [(d["filename"], d["content_type"], d["size"]) for d in result] == [
        ("hello.txt", "text/plain", 5),
        ("data.csv", "text/csv", 8),
    ]

    id = result[0]["id"]
    res = await client.get(f"/files/{id}")
    res.raise_for_status()
    assert res.content == b"hello"
    assert res.headers["content-type"].startswith("text/plain")

    res = await client.get(f"/files/{id}/meta")
    res.raise_for_status()
    assert res.json() == result[0]


@pytest.mark.anyio
async def test_upload_only_empty(client: AsyncClient):
    res = await _upload(client, ("empty.txt", b""), expected=400)
    assert "no non-empty files" in res["detail"].lower()


@pytest.mark.anyio
async def test_not_found(client: AsyncClient):
    assert (await client.get("/files/nope")).status_code == 404
    assert (await client.get("/files/nope/meta")).status_code == 404
    res = await client.get("/files/nope/thumbnail", params=dict(width=100))
    assert res.status_code == 404
    assert "nope" in res.json()["message"]


@pytest.mark.anyio
async def test_thumbnail(client: AsyncClient, png_image):
    [d] = await _upload(client, ("image.png", png_image))
    url = f"/files/{d['id']}/thumbnail"
    res = await client.get(url, params=dict(fill=True, width=120, height=80))
    res.raise_for_status()
    assert res.headers["content-type"] == "image/jpeg"
    assert Image.open(io.BytesIO(res.content)).size == (120, 80)

    again = await client.get(url, params=dict(fill=True, width=120, height=80))
    assert again.content == res.content

    res = await client.get(url, params=dict(width=200))
    assert Image.open(io.BytesIO(res.content)).size == (200, 150)


@pytest.mark.anyio
async def test_thumbnail_errors(client: AsyncClient, png_image):
    [txt, img] = await _upload(client, ("hello.txt", b"hello"), ("image.png", png_image))
    res = await client.get(f"/files/{txt['id']}/thumbnail", params=dict(width=100))
    assert res.status_code == 415
    res = await client.get(f"/files/{img['id']}/thumbnail", params=dict(width=0))
    assert res.status_code == 400
    assert "positive" in res.json()["message"]
    res = await client.get(f"/files/{img['id']}/thumbnail", params=dict(width="wide"))
    assert res.status_code == 422


@pytest.mark.anyio
async def test_store_unavailable(client: AsyncClient, s3_client):
    s3_client.fail.add("PutObject")
    res = await client.post("/files", files=[("files", ("a.txt", b"abc"))])
    assert res.status_code == 503


@pytest.mark.anyio
async def test_store_not_configured(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(OBJECT_STORE, "client", None)
    monkeypatch.setattr(get_settings(), "s3_host", None)
    res = await client.post("/files", files=[("files", ("a.txt", b"abc"))])
    assert res.status_code == 503
    assert res.json()["message"] == "The object store is not available"
    assert (await client.get("/files/abc/meta")).status_code == 503


@pytest.mark.anyio
async def test_thumbnail_too_many_pixels(client: AsyncClient, png_image, monkeypatch):
    [d] = await _upload(client, ("image.png", png_image))
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    res = await client.get(f"/files/{d['id']}/thumbnail", params=dict(width=100))
    assert res.status_code == 400
    assert "pixels" in res.json()["message"]
