"""Protocol definitions for the collaborators of the message action runner.

Separates the concerns the runner delegates to:
- ProviderSelectorProtocol: mapping a provider hint to a provider id
- MessageActionDispatcherProtocol: handing an action to a provider plugin
- MessageDeliveryProtocol: the core send/poll implementation
- OutboundSenderProtocol: delivering to one provider's API
- TargetNormalizer / ReplyDirectiveParser: pure helper callables
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from courier.core.domain.actions import (
        MessageActionContext,
        PluginToolResult,
    )
    from courier.core.domain.config_schema import CourierConfig
    from courier.core.domain.outbound import (
        MessagePollResult,
        MessageSendResult,
        ReplyDirectives,
        SendMessageRequest,
        SendPollRequest,
    )

TargetNormalizer = Callable[[str, str], Optional[str]]
"""``(provider, raw_target) -> canonical form or None``."""

ReplyDirectiveParser = Callable[[str], "ReplyDirectives"]
"""``(raw_message) -> ReplyDirectives``."""


@dataclass(frozen=True)
class ProviderSelection:
    """Resolved provider plus how it was chosen.

    Attributes:
        provider: Canonical provider id (e.g. 'slack').
        configured: Enabled providers found in the configuration.
        source: 'explicit' (hint given), 'default' (config default) or
            'single' (only one provider configured).
    """

    provider: str
    configured: list[str] = field(default_factory=list)
    source: str = "explicit"


class ProviderSelectorProtocol(Protocol):
    """Resolve a provider hint into a concrete provider."""

    async def select(
        self, *, config: "CourierConfig", provider: str | None
    ) -> ProviderSelection:
        """Return the provider selection.

        Raises:
            ProviderSelectionError: If the hint cannot be resolved.
        """
        ...


class MessageActionDispatcherProtocol(Protocol):
    """Offer a message action to provider plugins."""

    async def dispatch(
        self, context: "MessageActionContext"
    ) -> "PluginToolResult | None":
        """Return the plugin's result, or None if no plugin claims the action."""
        ...


@runtime_checkable
class MessageActionPluginProtocol(Protocol):
    """A provider plugin able to execute message actions.

    ``actions`` lists the action names the plugin claims. Returning None from
    ``handle_action`` declines the action at runtime.
    """

    provider: str
    actions: frozenset[str]

    async def handle_action(
        self, context: "MessageActionContext"
    ) -> "PluginToolResult | None":
        ...


class MessageDeliveryProtocol(Protocol):
    """Core send and poll implementation used when no plugin claims an action."""

    async def send_message(self, request: "SendMessageRequest") -> "MessageSendResult":
        ...

    async def send_poll(self, request: "SendPollRequest") -> "MessagePollResult":
        ...


class OutboundSenderProtocol(Protocol):
    """Send a message to an external provider API.

    Each provider (Telegram, Slack, etc.) provides one implementation.
    Implementations must be async-safe. Poll support is optional and is
    detected by the presence of ``send_poll``.
    """

    @property
    def provider(self) -> str:
        """Provider identifier (e.g. 'telegram', 'slack')."""
        ...

    async def send(
        self,
        *,
        to: str,
        message: str,
        media_url: str | None = None,
        reply_to: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Deliver a message and return the provider's response payload.

        Raises:
            DeliveryError: If the provider API rejects the request.
        """
        ...


class PollSenderProtocol(OutboundSenderProtocol, Protocol):
    """Outbound sender that can also create native polls."""

    async def send_poll(
        self,
        *,
        to: str,
        question: str,
        options: list[str],
        max_selections: int = 1,
        duration_hours: int | None = None,
    ) -> dict[str, Any]:
        ...
