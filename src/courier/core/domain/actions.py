"""Domain models for message actions.

Everything that flows into and out of the action runner: the request,
the threading context an agent is bound to, the gateway connection
descriptor, plugin tool results, and the tagged action results.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Mapping, Union

if TYPE_CHECKING:
    from courier.core.domain.config_schema import CourierConfig
    from courier.core.domain.outbound import MessagePollResult, MessageSendResult
    from courier.core.interfaces.outbound import OutboundSenderProtocol

SEND_ACTION = "send"
POLL_ACTION = "poll"
THREAD_CREATE_ACTION = "thread-create"
THREAD_REPLY_ACTION = "thread-reply"
STICKER_ACTION = "sticker"

# Known action names. Providers may accept others; the runner treats any
# non-send/poll name as a generic plugin action.
MESSAGE_ACTION_NAMES: tuple[str, ...] = (
    SEND_ACTION,
    POLL_ACTION,
    "react",
    "reactions",
    "read",
    "edit",
    "delete",
    "pin",
    "unpin",
    "list-pins",
    "permissions",
    THREAD_CREATE_ACTION,
    "thread-list",
    THREAD_REPLY_ACTION,
    "search",
    STICKER_ACTION,
    "member-info",
    "role-info",
    "emoji-list",
    "channel-info",
    "channel-list",
)

GatewayClientMode = Literal["cli", "backend", "ui", "webchat", "node", "probe", "test"]


@dataclass(frozen=True)
class ToolContext:
    """Conversation context the dispatching agent is bound to.

    Attributes:
        current_channel_id: Destination of the conversation that triggered
            the agent. Empty or None disables cross-context isolation.
        current_thread_ts: Thread identifier within that conversation.
        reply_to_mode: Provider threading hint ('off', 'first', 'all').
    """

    current_channel_id: str | None = None
    current_thread_ts: str | None = None
    reply_to_mode: str | None = None


@dataclass(frozen=True)
class GatewayDescriptor:
    """Connection info for delivering through a remote gateway.

    Opaque to the runner; forwarded to core delivery and plugins.

    Attributes:
        url: Gateway endpoint. Without it, delivery goes direct.
        token: Bearer token for the gateway.
        timeout_ms: Request timeout in milliseconds.
        client_name: Identifier of the calling client.
        client_display_name: Human-readable client name.
        mode: Client mode reported to the gateway.
    """

    client_name: str = "courier"
    mode: GatewayClientMode = "cli"
    url: str | None = None
    token: str | None = None
    timeout_ms: int | None = None
    client_display_name: str | None = None


@dataclass
class PluginToolResult:
    """Result returned by a provider plugin that handled an action.

    Attributes:
        content: Typed content blocks, e.g. ``{"type": "text", "text": "..."}``.
        details: Optional structured payload; preferred over content.
    """

    content: list[dict[str, Any]] = field(default_factory=list)
    details: Any = None

    @classmethod
    def json_result(cls, payload: Any) -> "PluginToolResult":
        """Build a result whose text block and details carry ``payload``."""
        return cls(
            content=[{"type": "text", "text": json.dumps(payload, default=str)}],
            details=payload,
        )


@dataclass
class MessageActionRequest:
    """Input for a single message action run.

    Attributes:
        config: Loaded Courier configuration.
        action: Action name (``send``, ``poll``, ``thread-reply`` ...).
        params: Free-form parameters. Copied before processing.
        default_account_id: Account used when ``accountId`` is absent.
        tool_context: Conversation the caller is bound to.
        gateway: Gateway connection info for core delivery.
        deps: Per-provider outbound sender overrides.
        dry_run: Explicit dry-run flag; overrides the ``dryRun`` param.
    """

    config: "CourierConfig"
    action: str
    params: Mapping[str, Any] = field(default_factory=dict)
    default_account_id: str | None = None
    tool_context: ToolContext | None = None
    gateway: GatewayDescriptor | None = None
    deps: "Mapping[str, OutboundSenderProtocol] | None" = None
    dry_run: bool | None = None


@dataclass(frozen=True)
class MessageActionContext:
    """Everything a provider plugin receives when asked to handle an action."""

    provider: str
    action: str
    config: "CourierConfig"
    params: dict[str, Any]
    dry_run: bool
    account_id: str | None = None
    gateway: GatewayDescriptor | None = None
    tool_context: ToolContext | None = None


@dataclass(frozen=True)
class SendActionResult:
    """Outcome of a ``send`` action."""

    provider: str
    to: str
    handled_by: Literal["plugin", "core"]
    payload: Any
    dry_run: bool
    action: str = SEND_ACTION
    tool_result: PluginToolResult | None = None
    send_result: "MessageSendResult | None" = None
    kind: Literal["send"] = "send"

    def to_dict(self) -> dict[str, Any]:
        return _result_dict(self, to=self.to)


@dataclass(frozen=True)
class PollActionResult:
    """Outcome of a ``poll`` action."""

    provider: str
    to: str
    handled_by: Literal["plugin", "core"]
    payload: Any
    dry_run: bool
    action: str = POLL_ACTION
    tool_result: PluginToolResult | None = None
    poll_result: "MessagePollResult | None" = None
    kind: Literal["poll"] = "poll"

    def to_dict(self) -> dict[str, Any]:
        return _result_dict(self, to=self.to)


@dataclass(frozen=True)
class GenericActionResult:
    """Outcome of any action other than ``send`` and ``poll``."""

    provider: str
    action: str
    handled_by: Literal["plugin", "dry-run"]
    payload: Any
    dry_run: bool
    tool_result: PluginToolResult | None = None
    kind: Literal["action"] = "action"

    def to_dict(self) -> dict[str, Any]:
        return _result_dict(self)


MessageActionResult = Union[SendActionResult, PollActionResult, GenericActionResult]


def _result_dict(result: MessageActionResult, **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "kind": result.kind,
        "provider": result.provider,
        "action": result.action,
        "handled_by": result.handled_by,
        "dry_run": result.dry_run,
        **extra,
        "payload": _jsonable(result.payload),
    }
    return data


def _jsonable(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return value
