"""Loopback-only static server for the webchat assets.

Serves a fixed asset directory at ``/``, under ``/webchat/*`` and at
top-level paths, with a strict content-type map. Requests from non-loopback
peers get 403; missing files and paths escaping the asset root get 404.

The server is owned by a lazily created module-level instance. ``start`` is
idempotent, ``stop`` releases the listening socket, and ``webchat_server``
wraps both as an async context manager::

    async with webchat_server(port=0) as state:
        ...  # http://127.0.0.1:{state.port}/
"""

from __future__ import annotations

import asyncio
import os
import socket
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from courier.core.domain.config_schema import WEBCHAT_DEFAULT_PORT, CourierConfig
from courier.core.domain.errors import ConfigError

logger = structlog.get_logger(__name__)

LOOPBACK_HOST = "127.0.0.1"
WEBCHAT_ROOT_ENV_VAR = "COURIER_WEBCHAT_ROOT"
PACKAGED_ROOT = Path(__file__).parent / "static"

CONTENT_TYPES: dict[str, str] = {
    ".html": "text/html",
    ".js": "application/javascript",
    ".css": "text/css",
    ".json": "application/json",
    ".map": "application/json",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".ico": "image/x-icon",
}

_STARTUP_TIMEOUT_SECONDS = 5.0


def content_type_for_ext(ext: str) -> str:
    """Return the content type for a file extension (with leading dot)."""
    return CONTENT_TYPES.get(ext.lower(), "application/octet-stream")


def resolve_web_root(root: str | Path | None = None) -> Path:
    """Find the asset directory.

    Candidates, in order: ``root``, ``$COURIER_WEBCHAT_ROOT``, the assets
    shipped with the package.

    Raises:
        ConfigError: If no candidate directory exists.
    """
    candidates: list[Path] = []
    if root:
        candidates.append(Path(root))
    env_root = os.getenv(WEBCHAT_ROOT_ENV_VAR)
    if env_root:
        candidates.append(Path(env_root))
    candidates.append(PACKAGED_ROOT)

    for candidate in candidates:
        if candidate.is_dir():
            return candidate.resolve()

    tried = ", ".join(str(candidate) for candidate in candidates)
    raise ConfigError(f"webchat assets not found; tried: {tried}")


def _is_loopback(host: str) -> bool:
    return host.startswith("127.") or host == "::1"


def _not_found() -> Response:
    return PlainTextResponse("Not Found", status_code=404)


def _serve_file(root: Path, rel: str, media_type: str | None = None) -> Response:
    candidate = (root / rel).resolve()
    if not candidate.is_relative_to(root) or not candidate.is_file():
        return _not_found()
    return Response(
        content=candidate.read_bytes(),
        media_type=media_type or content_type_for_ext(candidate.suffix),
    )


def create_webchat_app(root: Path) -> FastAPI:
    """Build the ASGI app serving files from ``root``."""
    root = root.resolve()
    app = FastAPI(
        title="Courier WebChat",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # Plain def: FastAPI runs it in the threadpool, off the event loop.
    @app.get("/{path:path}")
    def serve(path: str, request: Request) -> Response:
        host = request.client.host if request.client else None
        if host and not _is_loopback(host):
            return PlainTextResponse("loopback only", status_code=403)

        url_path = "/" + path
        if url_path == "/webchat" or url_path.startswith("/webchat/"):
            rel = url_path[len("/webchat"):].lstrip("/")
            if not rel or rel.endswith("/"):
                rel = f"{rel}index.html"
            return _serve_file(root, rel)

        if url_path == "/":
            return _serve_file(root, "index.html", media_type="text/html")

        if path:
            return _serve_file(root, path)
        return _not_found()

    return app


@dataclass(frozen=True)
class WebChatServerState:
    """Address of a running webchat server."""

    host: str
    port: int
    root: Path

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"


class WebChatServer:
    """Owns one uvicorn server bound to a loopback socket."""

    def __init__(self, root: str | Path | None = None, host: str = LOOPBACK_HOST) -> None:
        self._root = root
        self._host = host
        self._state: WebChatServerState | None = None
        self._server: uvicorn.Server | None = None
        self._task: asyncio.Task[None] | None = None
        self._socket: socket.socket | None = None

    @property
    def state(self) -> WebChatServerState | None:
        return self._state

    async def start(self, port: int = WEBCHAT_DEFAULT_PORT) -> WebChatServerState | None:
        """Start serving, or return the running state.

        Returns:
            The server state, or None if the port could not be bound.

        Raises:
            ConfigError: If the asset directory cannot be found.
        """
        if self._state is not None:
            return self._state

        root = resolve_web_root(self._root)

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self._host, port))
        except OSError as exc:
            sock.close()
            logger.error(
                "webchat.bind_failed",
                host=self._host,
                port=port,
                error=str(exc),
                hint="continuing without webchat",
            )
            return None

        config = uvicorn.Config(
            create_webchat_app(root),
            log_level="warning",
            lifespan="off",
            access_log=False,
        )
        server = uvicorn.Server(config)
        task = asyncio.create_task(server.serve(sockets=[sock]))

        loop = asyncio.get_running_loop()
        deadline = loop.time() + _STARTUP_TIMEOUT_SECONDS
        while not server.started:
            if task.done() or loop.time() > deadline:
                server.should_exit = True
                await asyncio.gather(task, return_exceptions=True)
                sock.close()
                logger.error("webchat.start_failed", host=self._host, port=port)
                return None
            await asyncio.sleep(0.01)

        self._server = server
        self._task = task
        self._socket = sock
        self._state = WebChatServerState(host=self._host, port=sock.getsockname()[1], root=root)
        logger.info("webchat.started", url=self._state.url, root=str(root))
        return self._state

    async def stop(self) -> None:
        """Stop serving and release the socket. No-op when not running."""
        if self._state is None:
            return
        if self._server is not None:
            self._server.should_exit = True
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
        if self._socket is not None:
            self._socket.close()
        logger.info("webchat.stopped", port=self._state.port)
        self._server = None
        self._task = None
        self._socket = None
        self._state = None


_webchat_server: WebChatServer | None = None


def get_webchat_server(root: str | Path | None = None) -> WebChatServer:
    """Return the process-wide webchat server, creating it on first use.

    A different ``root`` replaces the instance only while it is stopped.
    """
    global _webchat_server
    if _webchat_server is None or (root is not None and _webchat_server.state is None):
        _webchat_server = WebChatServer(root=root)
    return _webchat_server


async def start_webchat_server(
    port: int = WEBCHAT_DEFAULT_PORT,
    root: str | Path | None = None,
) -> WebChatServerState | None:
    return await get_webchat_server(root).start(port)


async def stop_webchat_server() -> None:
    if _webchat_server is not None:
        await _webchat_server.stop()


@asynccontextmanager
async def webchat_server(
    port: int = WEBCHAT_DEFAULT_PORT,
    root: str | Path | None = None,
) -> AsyncIterator[WebChatServerState | None]:
    """Run the shared webchat server for the duration of the block."""
    state = await start_webchat_server(port, root)
    try:
        yield state
    finally:
        await stop_webchat_server()


async def ensure_webchat_server_from_config(config: CourierConfig) -> WebChatServerState | None:
    """Start the webchat server unless the configuration disables it."""
    if not config.webchat.enabled:
        return None
    try:
        return await start_webchat_server(config.webchat.port, config.webchat.root)
    except ConfigError as exc:
        logger.debug("webchat.start_error", error=str(exc))
        raise
