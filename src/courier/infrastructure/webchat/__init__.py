"""Loopback webchat asset server."""

from courier.infrastructure.webchat.server import (
    WebChatServer,
    WebChatServerState,
    create_webchat_app,
    ensure_webchat_server_from_config,
    get_webchat_server,
    start_webchat_server,
    stop_webchat_server,
    webchat_server,
)

__all__ = [
    "WebChatServer",
    "WebChatServerState",
    "create_webchat_app",
    "ensure_webchat_server_from_config",
    "get_webchat_server",
    "start_webchat_server",
    "stop_webchat_server",
    "webchat_server",
]
