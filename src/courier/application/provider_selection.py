"""Message provider selection.

Maps the optional ``provider`` hint of a message action onto a concrete
provider id using the loaded configuration.
"""

from __future__ import annotations

import structlog

from courier.core.domain.config_schema import CourierConfig
from courier.core.domain.errors import ProviderSelectionError
from courier.core.interfaces.outbound import ProviderSelection
from courier.infrastructure.providers.targets import known_providers

logger = structlog.get_logger(__name__)

PROVIDER_ALIASES: dict[str, str] = {
    "tg": "telegram",
    "wa": "whatsapp",
}


def normalize_provider_id(hint: str | None) -> str | None:
    """Lowercase, trim and de-alias a provider hint."""
    if hint is None:
        return None
    value = hint.strip().lower()
    if not value:
        return None
    return PROVIDER_ALIASES.get(value, value)


async def resolve_message_provider_selection(
    *,
    config: CourierConfig,
    provider: str | None = None,
) -> ProviderSelection:
    """Resolve ``provider`` (a hint, possibly None) into a ProviderSelection.

    Resolution order:
    1. An explicit hint, which must name a known or configured provider.
    2. ``config.default_provider``.
    3. The only enabled provider in the configuration.

    Raises:
        ProviderSelectionError: If the hint is unknown, or no provider can
            be chosen unambiguously.
    """
    configured = config.enabled_providers()
    hint = normalize_provider_id(provider)

    if hint:
        if hint not in known_providers() and hint not in config.providers:
            raise ProviderSelectionError(
                f"Unknown provider: {provider}",
                details={"provider": provider, "configured": configured},
            )
        return ProviderSelection(provider=hint, configured=configured, source="explicit")

    if config.default_provider:
        return ProviderSelection(
            provider=normalize_provider_id(config.default_provider) or config.default_provider,
            configured=configured,
            source="default",
        )

    if len(configured) == 1:
        return ProviderSelection(provider=configured[0], configured=configured, source="single")

    if not configured:
        raise ProviderSelectionError("No message provider configured")

    raise ProviderSelectionError(
        "Provider is required when multiple providers are configured: "
        + ", ".join(configured),
        details={"configured": configured},
    )


class ConfigProviderSelector:
    """ProviderSelectorProtocol implementation backed by the configuration."""

    async def select(
        self, *, config: CourierConfig, provider: str | None
    ) -> ProviderSelection:
        selection = await resolve_message_provider_selection(config=config, provider=provider)
        logger.debug(
            "provider_selection.resolved",
            provider=selection.provider,
            source=selection.source,
        )
        return selection
