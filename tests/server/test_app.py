from pathlib import Path

from localbox.server.app import create_app
from localbox.server.config import ServerConfig
from tests.conftest import AiohttpClient


async def test_creates_storage_layout(
    aiohttp_client: AiohttpClient, tmp_path: Path
) -> None:
    storage = tmp_path / "fresh"
    await aiohttp_client(create_app(ServerConfig(storage_dir=str(storage))))

    assert sorted(p.name for p in storage.iterdir()) == [
        "archives",
        "audio",
        "documents",
        "images",
        "others",
        "tmp",
        "videos",
    ]


async def test_cors_headers(aiohttp_client: AiohttpClient) -> None:
    client = await aiohttp_client(create_app())

    resp = await client.get("/api/categories", headers={"Origin": "http://example"})

    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert "Location" in resp.headers["Access-Control-Expose-Headers"]


async def test_cors_preflight(aiohttp_client: AiohttpClient) -> None:
    client = await aiohttp_client(create_app())

    resp = await client.options(
        "/api/files/images/a.jpg",
        headers={
            "Origin": "http://example",
            "Access-Control-Request-Method": "PUT",
        },
    )

    assert resp.status == 204
    assert "PUT" in resp.headers["Access-Control-Allow-Methods"]
    assert "Upload-Offset" in resp.headers["Access-Control-Allow-Headers"]


async def test_cors_disabled(
    aiohttp_client: AiohttpClient, server_config: ServerConfig
) -> None:
    server_config.cors_origin = ""
    client = await aiohttp_client(create_app())

    resp = await client.get("/api/categories")

    assert "Access-Control-Allow-Origin" not in resp.headers


async def test_static_front_end(
    aiohttp_client: AiohttpClient, server_config: ServerConfig, tmp_path: Path
) -> None:
    static_dir = tmp_path / "public"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<html>LocalBox</html>")
    (static_dir / "app.js").write_text("console.log(1)")
    server_config.static_dir = str(static_dir)
    client = await aiohttp_client(create_app())

    resp = await client.get("/")
    assert resp.status == 200
    assert "LocalBox" in await resp.text()

    resp = await client.get("/app.js")
    assert resp.status == 200

    resp = await client.get("/api/categories")
    assert resp.status == 200


async def test_unknown_route(aiohttp_client: AiohttpClient) -> None:
    client = await aiohttp_client(create_app())

    resp = await client.get("/api/nothing-here")

    assert resp.status == 404
