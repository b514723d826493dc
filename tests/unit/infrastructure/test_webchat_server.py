"""Tests for the loopback webchat asset server."""

from __future__ import annotations

import inspect
import socket
from pathlib import Path

import aiohttp
import httpx
import pytest
from fastapi.testclient import TestClient

from courier.core.domain.config_schema import CourierConfig
from courier.core.domain.errors import ConfigError
from courier.infrastructure.webchat import server as webchat
from courier.infrastructure.webchat.server import (
    PACKAGED_ROOT,
    WebChatServer,
    content_type_for_ext,
    create_webchat_app,
    ensure_webchat_server_from_config,
    resolve_web_root,
    stop_webchat_server,
    webchat_server,
)


@pytest.fixture
def web_root(tmp_path: Path) -> Path:
    root = tmp_path / "assets"
    (root / "nested").mkdir(parents=True)
    (root / "index.html").write_text("<html>home</html>", encoding="utf-8")
    (root / "app.js").write_text("console.log(1)", encoding="utf-8")
    (root / "style.css").write_text("body{}", encoding="utf-8")
    (root / "blob.xyz").write_bytes(b"\x00\x01")
    (root / "nested" / "index.html").write_text("<html>nested</html>", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("top secret", encoding="utf-8")
    return root


def _loopback_client(app, host: str = "127.0.0.1") -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app, client=(host, 52000))
    return httpx.AsyncClient(transport=transport, base_url="http://127.0.0.1")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("ext", "expected"),
    [
        (".html", "text/html"),
        (".JS", "application/javascript"),
        (".css", "text/css"),
        (".json", "application/json"),
        (".map", "application/json"),
        (".svg", "image/svg+xml"),
        (".png", "image/png"),
        (".ico", "image/x-icon"),
        (".wasm", "application/octet-stream"),
    ],
)
def test_content_type_for_ext(ext, expected):
    assert content_type_for_ext(ext) == expected


class TestResolveWebRoot:
    def test_explicit_root(self, web_root):
        assert resolve_web_root(web_root) == web_root.resolve()

    def test_env_root(self, web_root, monkeypatch):
        monkeypatch.setenv("COURIER_WEBCHAT_ROOT", str(web_root))
        assert resolve_web_root() == web_root.resolve()

    def test_missing_candidates_fall_back_to_packaged_assets(self, tmp_path):
        assert resolve_web_root(tmp_path / "missing") == PACKAGED_ROOT.resolve()

    def test_nothing_found(self, tmp_path, monkeypatch):
        monkeypatch.setattr(webchat, "PACKAGED_ROOT", tmp_path / "also-missing")
        with pytest.raises(ConfigError, match="webchat assets not found"):
            resolve_web_root(tmp_path / "missing")


# ---------------------------------------------------------------------------
# ASGI app
# ---------------------------------------------------------------------------


def test_non_loopback_clients_are_rejected(web_root):
    client = TestClient(create_webchat_app(web_root))

    response = client.get("/")

    assert response.status_code == 403
    assert response.text == "loopback only"


@pytest.mark.asyncio
async def test_root_serves_index(web_root):
    async with _loopback_client(create_webchat_app(web_root)) as client:
        response = await client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert response.text == "<html>home</html>"


@pytest.mark.asyncio
async def test_ipv6_loopback_is_allowed(web_root):
    async with _loopback_client(create_webchat_app(web_root), host="::1") as client:
        response = await client.get("/")

    assert response.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("path", "body"),
    [
        ("/webchat", "<html>home</html>"),
        ("/webchat/", "<html>home</html>"),
        ("/webchat/nested/", "<html>nested</html>"),
    ],
)
async def test_webchat_prefix_serves_index(web_root, path, body):
    async with _loopback_client(create_webchat_app(web_root)) as client:
        response = await client.get(path)

    assert response.status_code == 200
    assert response.text == body


@pytest.mark.asyncio
async def test_assets_and_content_types(web_root):
    async with _loopback_client(create_webchat_app(web_root)) as client:
        js = await client.get("/webchat/app.js")
        css = await client.get("/style.css")
        blob = await client.get("/blob.xyz")

    assert js.headers["content-type"].startswith("application/javascript")
    assert css.headers["content-type"].startswith("text/css")
    assert blob.headers["content-type"] == "application/octet-stream"
    assert blob.content == b"\x00\x01"


@pytest.mark.asyncio
async def test_missing_file_is_404(web_root):
    async with _loopback_client(create_webchat_app(web_root)) as client:
        response = await client.get("/webchat/nope.js")

    assert response.status_code == 404
    assert response.text == "Not Found"


def test_paths_outside_root_are_404(web_root):
    response = webchat._serve_file(web_root.resolve(), "../secret.txt")
    assert response.status_code == 404


def test_file_route_is_synchronous(web_root):
    app = create_webchat_app(web_root)
    route = next(r for r in app.routes if getattr(r, "path", None) == "/{path:path}")

    assert not inspect.iscoroutinefunction(route.endpoint)


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_start_serve_stop(web_root):
    server = WebChatServer(root=web_root)

    state = await server.start(port=0)
    assert state is not None
    assert state.host == "127.0.0.1"
    assert state.port > 0
    assert state.url == f"http://127.0.0.1:{state.port}/"
    assert await server.start(port=0) is state

    async with aiohttp.ClientSession() as session:
        async with session.get(f"{state.url}webchat/app.js") as response:
            assert response.status == 200
            assert await response.text() == "console.log(1)"

    await server.stop()
    assert server.state is None
    await server.stop()


@pytest.mark.asyncio
async def test_bind_failure_returns_none(web_root):
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind(("127.0.0.1", 0))
    blocker.listen(1)
    try:
        server = WebChatServer(root=web_root)
        assert await server.start(port=blocker.getsockname()[1]) is None
        assert server.state is None
    finally:
        blocker.close()


@pytest.mark.asyncio
async def test_shared_server_context_manager(web_root):
    async with webchat_server(port=0, root=web_root) as state:
        assert state is not None
        assert webchat.get_webchat_server().state is state

    assert webchat.get_webchat_server().state is None


@pytest.mark.asyncio
async def test_ensure_from_config_disabled():
    config = CourierConfig.model_validate({"webchat": {"enabled": False}})
    assert await ensure_webchat_server_from_config(config) is None


@pytest.mark.asyncio
async def test_ensure_from_config_starts(web_root):
    config = CourierConfig.model_validate({"webchat": {"port": 0, "root": str(web_root)}})

    try:
        state = await ensure_webchat_server_from_config(config)
        assert state is not None
        assert state.root == web_root.resolve()
    finally:
        await stop_webchat_server()
