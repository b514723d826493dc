"""Provider-aware normalization of message targets.

Destinations reach Courier in many shapes: ``#C123``, ``channel:C123``,
``<#C123|general>``, a bare id, ``@username``, a phone number. The
normalizers here map each provider's spellings onto one canonical,
comparable form so that two spellings of the same conversation compare
equal. A normalizer returns None when it cannot make sense of the input.
"""

from __future__ import annotations

import re
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)

Normalizer = Callable[[str], Optional[str]]

_SLACK_MENTION_RE = re.compile(r"^<([#@!])([A-Za-z0-9]+)(?:\|[^>]*)?>$")
_DISCORD_MENTION_RE = re.compile(r"^<(#|@!?)(\d+)>$")
_PHONE_CHARS_RE = re.compile(r"[\s().-]")


def _strip_prefix(value: str, prefixes: tuple[str, ...]) -> str:
    lowered = value.lower()
    for prefix in prefixes:
        if lowered.startswith(prefix):
            return value[len(prefix):].strip()
    return value


def normalize_slack_target(raw: str) -> str | None:
    """Normalize a Slack channel or user reference.

    ``#C123``, ``channel:C123``, ``<#C123|general>`` and ``C123`` all map to
    ``channel:c123``; ``@U1``, ``user:U1`` and ``<@U1>`` map to ``user:u1``.
    """
    value = _strip_prefix(raw.strip(), ("slack:",))
    if not value:
        return None
    mention = _SLACK_MENTION_RE.match(value)
    if mention:
        kind = "channel" if mention.group(1) == "#" else "user"
        return f"{kind}:{mention.group(2).lower()}"
    lowered = value.lower()
    if lowered.startswith("channel:"):
        ident = value[len("channel:"):].strip().lstrip("#")
        return f"channel:{ident.lower()}" if ident else None
    if lowered.startswith("user:"):
        ident = value[len("user:"):].strip().lstrip("@")
        return f"user:{ident.lower()}" if ident else None
    if value.startswith("#"):
        ident = value[1:].strip()
        return f"channel:{ident.lower()}" if ident else None
    if value.startswith("@"):
        ident = value[1:].strip()
        return f"user:{ident.lower()}" if ident else None
    return f"channel:{lowered}"


def normalize_discord_target(raw: str) -> str | None:
    """Normalize a Discord channel or user reference."""
    value = _strip_prefix(raw.strip(), ("discord:",))
    if not value:
        return None
    mention = _DISCORD_MENTION_RE.match(value)
    if mention:
        kind = "channel" if mention.group(1) == "#" else "user"
        return f"{kind}:{mention.group(2)}"
    lowered = value.lower()
    for kind in ("channel", "user"):
        if lowered.startswith(f"{kind}:"):
            ident = value[len(kind) + 1:].strip().lstrip("#@")
            return f"{kind}:{ident.lower()}" if ident else None
    if value.startswith("#"):
        ident = value[1:].strip()
        return f"channel:{ident.lower()}" if ident else None
    if value.startswith("@"):
        ident = value[1:].strip()
        return f"user:{ident.lower()}" if ident else None
    return f"channel:{lowered}"


def normalize_telegram_target(raw: str) -> str | None:
    """Normalize a Telegram chat id or ``@username``."""
    value = _strip_prefix(raw.strip(), ("telegram:", "tg:"))
    value = _strip_prefix(value, ("group:", "chat:"))
    if not value:
        return None
    if value.startswith("@"):
        username = value[1:].strip()
        return f"@{username.lower()}" if username else None
    if re.fullmatch(r"-?\d+", value):
        return value
    return value.lower()


def _normalize_phone(value: str) -> str | None:
    digits = _PHONE_CHARS_RE.sub("", value)
    if digits.startswith("00"):
        digits = digits[2:]
    digits = digits.lstrip("+")
    if not digits.isdigit():
        return None
    return f"+{digits}"


def normalize_whatsapp_target(raw: str) -> str | None:
    """Normalize a WhatsApp phone number (E.164) or group JID."""
    value = _strip_prefix(raw.strip(), ("whatsapp:", "wa:"))
    if not value:
        return None
    lowered = value.lower()
    if lowered.endswith("@g.us"):
        return lowered
    if lowered.endswith("@s.whatsapp.net"):
        value = value.split("@", 1)[0]
    return _normalize_phone(value)


def normalize_signal_target(raw: str) -> str | None:
    """Normalize a Signal phone number or ``group:<id>`` reference."""
    value = _strip_prefix(raw.strip(), ("signal:",))
    if not value:
        return None
    if value.lower().startswith("group:"):
        ident = value[len("group:"):].strip()
        return f"group:{ident.lower()}" if ident else None
    if value.lower().startswith("username:") or value.startswith("@"):
        ident = _strip_prefix(value, ("username:",)).lstrip("@").strip()
        return f"username:{ident.lower()}" if ident else None
    return _normalize_phone(value)


_NORMALIZERS: dict[str, Normalizer] = {
    "slack": normalize_slack_target,
    "discord": normalize_discord_target,
    "telegram": normalize_telegram_target,
    "whatsapp": normalize_whatsapp_target,
    "signal": normalize_signal_target,
}


def register_target_normalizer(provider: str, normalizer: Normalizer) -> None:
    """Register or replace the normalizer for ``provider``."""
    _NORMALIZERS[provider.strip().lower()] = normalizer


def known_providers() -> list[str]:
    """Return providers with a registered target normalizer."""
    return sorted(_NORMALIZERS)


def normalize_target_for_provider(provider: str, raw: str) -> str | None:
    """Return the canonical form of ``raw`` for ``provider``, or None.

    None means the provider is unknown or the target is not recognisable;
    callers decide their own fallback.
    """
    if not raw or not raw.strip():
        return None
    normalizer = _NORMALIZERS.get((provider or "").strip().lower())
    if normalizer is None:
        return None
    normalized = normalizer(raw)
    if normalized is None:
        logger.debug("targets.unrecognised", provider=provider, target=raw)
    return normalized or None
