"""Application services: action runner, guard, provider selection, delivery."""

from courier.application.action_runner import (
    MessageActionRunner,
    parse_buttons_param,
    run_message_action,
)
from courier.application.context_guard import (
    CONTEXT_GUARDED_ACTIONS,
    enforce_context_isolation,
)
from courier.application.outbound_delivery import OutboundDelivery
from courier.application.plugin_dispatch import MessageActionPluginRegistry
from courier.application.provider_selection import (
    ConfigProviderSelector,
    resolve_message_provider_selection,
)
from courier.application.tool_payload import extract_tool_payload

__all__ = [
    "CONTEXT_GUARDED_ACTIONS",
    "ConfigProviderSelector",
    "MessageActionPluginRegistry",
    "MessageActionRunner",
    "OutboundDelivery",
    "enforce_context_isolation",
    "extract_tool_payload",
    "parse_buttons_param",
    "resolve_message_provider_selection",
    "run_message_action",
]
