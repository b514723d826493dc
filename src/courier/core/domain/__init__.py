"""
Domain Models

This package contains the core domain models for Courier:
- Message action requests, contexts and tagged results
- Core delivery requests and outcomes
- Configuration schemas
- Error hierarchy
"""

from courier.core.domain.actions import (
    GatewayDescriptor,
    GenericActionResult,
    MessageActionContext,
    MessageActionRequest,
    MessageActionResult,
    PluginToolResult,
    PollActionResult,
    SendActionResult,
    ToolContext,
)
from courier.core.domain.config_schema import CourierConfig
from courier.core.domain.errors import (
    ConfigError,
    CourierError,
    CrossContextDeniedError,
    DeliveryError,
    InvalidParameterError,
    MissingParameterError,
    ProviderSelectionError,
    UnsupportedActionError,
)

__all__ = [
    "ConfigError",
    "CourierConfig",
    "CourierError",
    "CrossContextDeniedError",
    "DeliveryError",
    "GatewayDescriptor",
    "GenericActionResult",
    "InvalidParameterError",
    "MessageActionContext",
    "MessageActionRequest",
    "MessageActionResult",
    "MissingParameterError",
    "PluginToolResult",
    "PollActionResult",
    "ProviderSelectionError",
    "SendActionResult",
    "ToolContext",
    "UnsupportedActionError",
]
