"""Outbound sender registry builder.

Creates provider senders from the loaded configuration, falling back to
environment variables for tokens:
- ``TELEGRAM_BOT_TOKEN``: enables the Telegram sender
- ``SLACK_BOT_TOKEN``: enables the Slack sender
"""

from __future__ import annotations

import os
from typing import Mapping

import structlog

from courier.core.domain.config_schema import CourierConfig
from courier.core.interfaces.outbound import OutboundSenderProtocol
from courier.infrastructure.communication.outbound_senders import (
    SlackOutboundSender,
    TelegramOutboundSender,
)


def build_outbound_senders(
    config: CourierConfig,
    *,
    extra_senders: Mapping[str, OutboundSenderProtocol] | None = None,
) -> dict[str, OutboundSenderProtocol]:
    """Build the provider -> sender mapping.

    Args:
        config: Loaded configuration; disabled providers get no sender.
        extra_senders: Additional senders, taking precedence over built ones.

    Returns:
        Mapping of provider id to sender.
    """
    logger = structlog.get_logger()
    senders: dict[str, OutboundSenderProtocol] = dict(extra_senders or {})

    # --- Telegram ---
    telegram = config.provider_config("telegram")
    if "telegram" not in senders and (telegram is None or telegram.enabled):
        token = (telegram.bot_token if telegram else None) or os.getenv("TELEGRAM_BOT_TOKEN")
        if token:
            senders["telegram"] = TelegramOutboundSender(
                token, api_base=telegram.api_base if telegram else None
            )
            logger.info("senders.telegram.configured")

    # --- Slack ---
    slack = config.provider_config("slack")
    if "slack" not in senders and (slack is None or slack.enabled):
        token = (slack.bot_token if slack else None) or os.getenv("SLACK_BOT_TOKEN")
        if token:
            senders["slack"] = SlackOutboundSender(
                token, api_base=slack.api_base if slack else None
            )
            logger.info("senders.slack.configured")

    return senders


async def close_outbound_senders(senders: Mapping[str, OutboundSenderProtocol]) -> None:
    """Close every sender that holds network resources."""
    for sender in senders.values():
        close = getattr(sender, "close", None)
        if close is not None:
            await close()
