"""Courier - outbound message action dispatcher."""

from courier.application.action_runner import MessageActionRunner, run_message_action
from courier.core.domain.actions import (
    GatewayDescriptor,
    MessageActionRequest,
    ToolContext,
)
from courier.core.domain.config_schema import CourierConfig

__version__ = "0.1.0"

__all__ = [
    "CourierConfig",
    "GatewayDescriptor",
    "MessageActionRequest",
    "MessageActionRunner",
    "ToolContext",
    "__version__",
    "run_message_action",
]
