"""Core message and poll delivery.

Used by the action runner when no provider plugin claims a ``send`` or
``poll`` action. Delivery goes through a remote gateway when the request
carries a gateway URL, otherwise through the provider's outbound sender.
Dry runs build the same result without transmitting anything.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

import aiohttp
import structlog

from courier.application.provider_selection import resolve_message_provider_selection
from courier.core.domain.actions import GatewayDescriptor
from courier.core.domain.config_schema import CourierConfig
from courier.core.domain.errors import (
    ConfigError,
    DeliveryError,
    InvalidParameterError,
    UnsupportedActionError,
)
from courier.core.domain.outbound import (
    DeliveryVia,
    MessagePollResult,
    MessageSendResult,
    SendMessageRequest,
    SendPollRequest,
)
from courier.core.interfaces.outbound import OutboundSenderProtocol
from courier.infrastructure.communication.gateway_client import GatewayClient
from courier.infrastructure.communication.sender_registry import (
    build_outbound_senders,
    close_outbound_senders,
)

MAX_POLL_OPTIONS = 10

_TRANSPORT_ERRORS = (DeliveryError, aiohttp.ClientError, ConnectionError, TimeoutError)

SenderFactory = Callable[[CourierConfig], Mapping[str, OutboundSenderProtocol]]
GatewayClientFactory = Callable[[GatewayDescriptor], GatewayClient]


def normalize_poll_input(request: SendPollRequest) -> tuple[str, list[str], int, int | None]:
    """Validate poll fields and return (question, options, max_selections, hours).

    Raises:
        InvalidParameterError: If any field is out of range.
    """
    question = request.question.strip()
    if not question:
        raise InvalidParameterError("Poll question is required", param="pollQuestion")
    options = [option.strip() for option in request.options if option and option.strip()]
    if len(options) < 2:
        raise InvalidParameterError(
            "Poll requires at least 2 options", param="pollOption"
        )
    if len(options) > MAX_POLL_OPTIONS:
        raise InvalidParameterError(
            f"Poll supports at most {MAX_POLL_OPTIONS} options", param="pollOption"
        )
    max_selections = request.max_selections
    if max_selections < 1 or max_selections > len(options):
        raise InvalidParameterError(
            "maxSelections must be between 1 and the number of options",
            param="pollMulti",
        )
    hours = request.duration_hours
    if hours is not None and hours < 1:
        raise InvalidParameterError(
            "pollDurationHours must be at least 1", param="pollDurationHours"
        )
    return question, options, max_selections, hours


class OutboundDelivery:
    """MessageDeliveryProtocol implementation.

    Args:
        senders: Fixed provider -> sender mapping. When omitted, senders are
            built from the first request's configuration and reused.
        sender_factory: Builds senders from configuration.
        gateway_client_factory: Builds gateway clients from descriptors.
    """

    def __init__(
        self,
        *,
        senders: Mapping[str, OutboundSenderProtocol] | None = None,
        sender_factory: SenderFactory = build_outbound_senders,
        gateway_client_factory: GatewayClientFactory = GatewayClient,
    ) -> None:
        self._senders: dict[str, OutboundSenderProtocol] | None = (
            dict(senders) if senders is not None else None
        )
        self._sender_factory = sender_factory
        self._gateway_client_factory = gateway_client_factory
        self._logger = structlog.get_logger(__name__)

    async def close(self) -> None:
        if self._senders:
            await close_outbound_senders(self._senders)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def send_message(self, request: SendMessageRequest) -> MessageSendResult:
        provider = await self._provider_for(request.config, request.provider)
        via = _via(request.gateway)
        media_url = request.media_url or None

        if request.dry_run:
            self._logger.info(
                "delivery.send.dry_run", provider=provider, to=request.to, via=via
            )
            return MessageSendResult(
                provider=provider,
                to=request.to,
                via=via,
                dry_run=True,
                media_url=media_url,
            )

        try:
            if via == "gateway":
                client = self._gateway_client_factory(request.gateway)  # type: ignore[arg-type]
                response = await client.request(
                    "send",
                    _drop_none(
                        {
                            "provider": provider,
                            "to": request.to,
                            "message": request.content,
                            "mediaUrl": media_url,
                            "accountId": request.account_id,
                            "replyTo": request.reply_to,
                            "gifPlayback": request.gif_playback,
                        }
                    ),
                )
            else:
                sender = self._sender_for(provider, request.config, request.deps)
                response = await sender.send(
                    to=request.to,
                    message=request.content,
                    media_url=media_url,
                    reply_to=request.reply_to,
                    metadata=_drop_none(
                        {
                            "gif_playback": request.gif_playback,
                            "account_id": request.account_id,
                        }
                    ),
                )
        except _TRANSPORT_ERRORS as exc:
            if not request.best_effort:
                raise
            self._logger.warning(
                "delivery.send.best_effort_failed",
                provider=provider,
                to=request.to,
                error=str(exc),
            )
            return MessageSendResult(
                provider=provider,
                to=request.to,
                via=via,
                delivered=False,
                media_url=media_url,
                error=str(exc),
            )

        self._logger.info("delivery.send.delivered", provider=provider, to=request.to, via=via)
        return MessageSendResult(
            provider=provider,
            to=request.to,
            via=via,
            media_url=media_url,
            result=response,
        )

    # ------------------------------------------------------------------
    # Polls
    # ------------------------------------------------------------------

    async def send_poll(self, request: SendPollRequest) -> MessagePollResult:
        provider = await self._provider_for(request.config, request.provider)
        question, options, max_selections, hours = normalize_poll_input(request)
        via = _via(request.gateway)

        result_fields: dict[str, Any] = {
            "provider": provider,
            "to": request.to,
            "via": via,
            "question": question,
            "options": options,
            "max_selections": max_selections,
            "duration_hours": hours,
        }

        if request.dry_run:
            self._logger.info("delivery.poll.dry_run", provider=provider, to=request.to, via=via)
            return MessagePollResult(dry_run=True, **result_fields)

        if via == "gateway":
            client = self._gateway_client_factory(request.gateway)  # type: ignore[arg-type]
            response = await client.request(
                "poll",
                _drop_none(
                    {
                        "provider": provider,
                        "to": request.to,
                        "question": question,
                        "options": options,
                        "maxSelections": max_selections,
                        "durationHours": hours,
                        "accountId": request.account_id,
                    }
                ),
            )
        else:
            sender = self._sender_for(provider, request.config, request.deps)
            send_poll = getattr(sender, "send_poll", None)
            if send_poll is None:
                raise UnsupportedActionError(
                    f"Polls are not supported for provider {provider}.",
                    details={"provider": provider},
                )
            response = await send_poll(
                to=request.to,
                question=question,
                options=options,
                max_selections=max_selections,
                duration_hours=hours,
            )

        self._logger.info("delivery.poll.delivered", provider=provider, to=request.to, via=via)
        return MessagePollResult(result=response, **result_fields)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _provider_for(self, config: CourierConfig, provider: str | None) -> str:
        if provider:
            return provider
        selection = await resolve_message_provider_selection(config=config, provider=None)
        return selection.provider

    def _sender_for(
        self,
        provider: str,
        config: CourierConfig,
        deps: Mapping[str, OutboundSenderProtocol] | None,
    ) -> OutboundSenderProtocol:
        if deps and provider in deps:
            return deps[provider]
        if self._senders is None:
            self._senders = dict(self._sender_factory(config))
        sender = self._senders.get(provider)
        if sender is None:
            raise ConfigError(
                f"No outbound sender configured for provider {provider}",
                details={"provider": provider, "available": sorted(self._senders)},
            )
        return sender


def _via(gateway: GatewayDescriptor | None) -> DeliveryVia:
    return "gateway" if gateway is not None and gateway.url else "direct"


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}
