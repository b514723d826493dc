"""Protocol interfaces for Courier collaborators."""

from courier.core.interfaces.outbound import (
    MessageActionDispatcherProtocol,
    MessageActionPluginProtocol,
    MessageDeliveryProtocol,
    OutboundSenderProtocol,
    PollSenderProtocol,
    ProviderSelection,
    ProviderSelectorProtocol,
    ReplyDirectiveParser,
    TargetNormalizer,
)

__all__ = [
    "MessageActionDispatcherProtocol",
    "MessageActionPluginProtocol",
    "MessageDeliveryProtocol",
    "OutboundSenderProtocol",
    "PollSenderProtocol",
    "ProviderSelection",
    "ProviderSelectorProtocol",
    "ReplyDirectiveParser",
    "TargetNormalizer",
]
