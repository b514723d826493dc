"""Domain models for core message and poll delivery."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Mapping

from courier.core.domain.actions import GatewayDescriptor

if TYPE_CHECKING:
    from courier.core.domain.config_schema import CourierConfig
    from courier.core.interfaces.outbound import OutboundSenderProtocol

DeliveryVia = Literal["direct", "gateway"]


@dataclass(frozen=True)
class ReplyDirectives:
    """Directives extracted from outgoing message text.

    Attributes:
        text: Message text with all directive tags removed.
        reply_to_id: Message id from a ``[[reply_to:<id>]]`` tag.
        reply_to_current: Whether ``[[reply_to_current]]`` was present.
        media_url: First attached media reference, if any.
        media_urls: All ``MEDIA:`` references in order.
    """

    text: str
    reply_to_id: str | None = None
    reply_to_current: bool = False
    media_url: str | None = None
    media_urls: list[str] = field(default_factory=list)


@dataclass
class SendMessageRequest:
    """Parameters for a core message send."""

    config: "CourierConfig"
    to: str
    content: str
    provider: str | None = None
    media_url: str | None = None
    account_id: str | None = None
    reply_to: str | None = None
    gif_playback: bool = False
    dry_run: bool = False
    best_effort: bool | None = None
    deps: "Mapping[str, OutboundSenderProtocol] | None" = None
    gateway: GatewayDescriptor | None = None


@dataclass
class SendPollRequest:
    """Parameters for a core poll send."""

    config: "CourierConfig"
    to: str
    question: str
    options: list[str]
    max_selections: int = 1
    duration_hours: int | None = None
    provider: str | None = None
    account_id: str | None = None
    dry_run: bool = False
    deps: "Mapping[str, OutboundSenderProtocol] | None" = None
    gateway: GatewayDescriptor | None = None


@dataclass(frozen=True)
class MessageSendResult:
    """Outcome of a core message send.

    Attributes:
        provider: Provider the message was (or would have been) sent through.
        to: Destination as given by the caller.
        via: ``direct`` for provider senders, ``gateway`` for remote delivery.
        dry_run: True when nothing was transmitted.
        delivered: False when a best-effort send failed.
        media_url: Attached media reference.
        result: Raw transport response.
        error: Failure description for best-effort sends.
    """

    provider: str
    to: str
    via: DeliveryVia
    dry_run: bool = False
    delivered: bool = True
    media_url: str | None = None
    result: dict[str, Any] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "provider": self.provider,
            "to": self.to,
            "via": self.via,
            "dry_run": self.dry_run,
            "delivered": self.delivered,
        }
        if self.media_url:
            data["media_url"] = self.media_url
        if self.result is not None:
            data["result"] = self.result
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class MessagePollResult:
    """Outcome of a core poll send."""

    provider: str
    to: str
    via: DeliveryVia
    question: str
    options: list[str]
    max_selections: int
    duration_hours: int | None = None
    dry_run: bool = False
    result: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "provider": self.provider,
            "to": self.to,
            "via": self.via,
            "question": self.question,
            "options": list(self.options),
            "max_selections": self.max_selections,
            "dry_run": self.dry_run,
        }
        if self.duration_hours is not None:
            data["duration_hours"] = self.duration_hours
        if self.result is not None:
            data["result"] = self.result
        return data
