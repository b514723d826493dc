"""Communication infrastructure adapters.

- OutboundSenders: deliver messages to Telegram, Slack, etc.
- GatewayClient: deliver through a remote gateway
- SenderRegistry: auto-configure senders from config and environment
"""

from courier.infrastructure.communication.gateway_client import GatewayClient
from courier.infrastructure.communication.outbound_senders import (
    SlackOutboundSender,
    TelegramOutboundSender,
)
from courier.infrastructure.communication.sender_registry import (
    build_outbound_senders,
    close_outbound_senders,
)

__all__ = [
    "GatewayClient",
    "SlackOutboundSender",
    "TelegramOutboundSender",
    "build_outbound_senders",
    "close_outbound_senders",
]
