"""Cross-context isolation for agent-issued message actions.

An agent that was triggered from one conversation must not use a message
action to address a different one, whatever destination the action
parameters claim. Destinations are compared after provider-aware
normalization because the same conversation can be spelled several ways.
"""

from __future__ import annotations

from typing import Any, Mapping

import structlog

from courier.core.domain.actions import (
    POLL_ACTION,
    SEND_ACTION,
    STICKER_ACTION,
    THREAD_CREATE_ACTION,
    THREAD_REPLY_ACTION,
    ToolContext,
)
from courier.core.domain.errors import CrossContextDeniedError
from courier.core.interfaces.outbound import TargetNormalizer
from courier.core.utils.params import read_string_param
from courier.infrastructure.providers.targets import normalize_target_for_provider

logger = structlog.get_logger(__name__)

CONTEXT_GUARDED_ACTIONS: frozenset[str] = frozenset(
    {
        SEND_ACTION,
        POLL_ACTION,
        THREAD_CREATE_ACTION,
        THREAD_REPLY_ACTION,
        STICKER_ACTION,
    }
)

_THREAD_ACTIONS = frozenset({THREAD_CREATE_ACTION, THREAD_REPLY_ACTION})


def resolve_context_guard_target(action: str, params: Mapping[str, Any]) -> str | None:
    """Return the destination parameter the guard should check, if any.

    Thread actions address a channel first and fall back to ``to``; every
    other guarded action does the reverse.
    """
    if action not in CONTEXT_GUARDED_ACTIONS:
        return None
    if action in _THREAD_ACTIONS:
        return read_string_param(params, "channelId") or read_string_param(params, "to")
    return read_string_param(params, "to") or read_string_param(params, "channelId")


def enforce_context_isolation(
    *,
    provider: str,
    action: str,
    params: Mapping[str, Any],
    tool_context: ToolContext | None,
    normalize_target: TargetNormalizer = normalize_target_for_provider,
) -> None:
    """Reject actions whose destination differs from the bound conversation.

    Raises:
        CrossContextDeniedError: If the normalized destination differs from
            the normalized ``tool_context.current_channel_id``.
    """
    current = (tool_context.current_channel_id or "").strip() if tool_context else ""
    if not current:
        return
    if action not in CONTEXT_GUARDED_ACTIONS:
        return

    target = resolve_context_guard_target(action, params)
    if not target:
        return

    normalized_target = normalize_target(provider, target)
    if normalized_target is None:
        normalized_target = target.lower()
    normalized_current = normalize_target(provider, current)
    if normalized_current is None:
        normalized_current = current.lower()

    if not normalized_target or not normalized_current:
        # Nothing comparable on one side; allowed.
        logger.warning(
            "context_guard.unresolved",
            provider=provider,
            action=action,
            target=target,
            current=current,
        )
        return
    if normalized_target == normalized_current:
        return

    logger.warning(
        "context_guard.denied",
        provider=provider,
        action=action,
        target=target,
        current=current,
    )
    raise CrossContextDeniedError(
        action=action,
        target=target,
        current=current,
        provider=provider,
    )
