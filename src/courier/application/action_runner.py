"""Message action runner.

Single entry point for agent- and CLI-issued message actions. A run:

1. copies the parameters and decodes the ``buttons`` JSON parameter,
2. resolves the provider from the ``provider`` hint,
3. computes the effective dry-run flag,
4. enforces cross-context isolation,
5. executes the branch for the action kind:
   - ``send`` / ``poll``: provider plugin first (skipped on dry runs),
     then core delivery;
   - anything else: provider plugin only, or a synthetic dry-run result.

Usage::

    runner = MessageActionRunner(plugins=registry)
    result = await runner.run(
        MessageActionRequest(
            config=config,
            action="send",
            params={"provider": "slack", "to": "#C123", "message": "hi"},
            tool_context=ToolContext(current_channel_id="C123"),
        )
    )
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

import structlog

from courier.application.context_guard import enforce_context_isolation
from courier.application.outbound_delivery import OutboundDelivery
from courier.application.plugin_dispatch import MessageActionPluginRegistry
from courier.application.provider_selection import ConfigProviderSelector
from courier.application.tool_payload import extract_tool_payload
from courier.core.domain.actions import (
    POLL_ACTION,
    SEND_ACTION,
    GatewayDescriptor,
    GenericActionResult,
    MessageActionContext,
    MessageActionRequest,
    MessageActionResult,
    PollActionResult,
    SendActionResult,
)
from courier.core.domain.config_schema import CourierConfig
from courier.core.domain.errors import InvalidParameterError, UnsupportedActionError
from courier.core.domain.outbound import SendMessageRequest, SendPollRequest
from courier.core.interfaces.outbound import (
    MessageActionDispatcherProtocol,
    MessageDeliveryProtocol,
    ProviderSelectorProtocol,
    ReplyDirectiveParser,
    TargetNormalizer,
)
from courier.core.utils.params import (
    read_boolean_param,
    read_number_param,
    read_string_array_param,
    read_string_param,
)
from courier.core.utils.reply_directives import parse_reply_directives
from courier.infrastructure.providers.targets import normalize_target_for_provider

logger = structlog.get_logger(__name__)

Stage = Callable[[], Awaitable["MessageActionResult | None"]]


def parse_buttons_param(params: dict[str, Any]) -> None:
    """Decode a JSON ``buttons`` string in place.

    Blank strings remove the key; non-string values are left untouched.

    Raises:
        InvalidParameterError: If the string is not valid JSON.
    """
    raw = params.get("buttons")
    if not isinstance(raw, str):
        return
    text = raw.strip()
    if not text:
        del params["buttons"]
        return
    try:
        params["buttons"] = json.loads(text)
    except ValueError as exc:
        raise InvalidParameterError("--buttons must be valid JSON", param="buttons") from exc


async def first_claim(stages: Sequence[Stage]) -> MessageActionResult | None:
    """Run ``stages`` in order and return the first non-None result."""
    for stage in stages:
        result = await stage()
        if result is not None:
            return result
    return None


def _copy_gateway(gateway: GatewayDescriptor | None) -> GatewayDescriptor | None:
    if gateway is None:
        return None
    return GatewayDescriptor(
        url=gateway.url,
        token=gateway.token,
        timeout_ms=gateway.timeout_ms,
        client_name=gateway.client_name,
        client_display_name=gateway.client_display_name,
        mode=gateway.mode,
    )


def _configured_account_id(config: CourierConfig, provider: str) -> str | None:
    entry = config.provider_config(provider)
    return entry.default_account_id if entry is not None else None


@dataclass(frozen=True)
class _ActionRun:
    """Resolved state shared by the per-kind handlers of one run."""

    request: MessageActionRequest
    params: dict[str, Any]
    provider: str
    account_id: str | None
    dry_run: bool
    gateway: GatewayDescriptor | None

    @property
    def action(self) -> str:
        return self.request.action

    @property
    def config(self) -> CourierConfig:
        return self.request.config

    def plugin_context(self) -> MessageActionContext:
        return MessageActionContext(
            provider=self.provider,
            action=self.action,
            config=self.config,
            params=self.params,
            dry_run=self.dry_run,
            account_id=self.account_id,
            gateway=self.gateway,
            tool_context=self.request.tool_context,
        )


class MessageActionRunner:
    """Resolve, guard and route message actions.

    Args:
        provider_selector: Maps the ``provider`` hint to a provider.
        plugins: Provider plugin dispatcher.
        delivery: Core send/poll implementation.
        normalize_target: Provider-aware target normalizer for the guard.
        parse_directives: Reply directive parser applied to ``send`` text.
    """

    def __init__(
        self,
        *,
        provider_selector: ProviderSelectorProtocol | None = None,
        plugins: MessageActionDispatcherProtocol | None = None,
        delivery: MessageDeliveryProtocol | None = None,
        normalize_target: TargetNormalizer = normalize_target_for_provider,
        parse_directives: ReplyDirectiveParser = parse_reply_directives,
    ) -> None:
        self._provider_selector = provider_selector or ConfigProviderSelector()
        self._plugins = plugins if plugins is not None else MessageActionPluginRegistry()
        self._delivery = delivery if delivery is not None else OutboundDelivery()
        self._normalize_target = normalize_target
        self._parse_directives = parse_directives

    async def aclose(self) -> None:
        """Release transport resources held by the core delivery."""
        close = getattr(self._delivery, "close", None)
        if close is not None:
            await close()

    async def run(self, request: MessageActionRequest) -> MessageActionResult:
        """Execute one message action.

        Raises:
            MissingParameterError: A required parameter is absent.
            InvalidParameterError: Malformed ``buttons`` or too few poll options.
            CrossContextDeniedError: The destination is outside the bound context.
            UnsupportedActionError: No plugin claims a non-send/poll action.
        """
        params = dict(request.params)
        parse_buttons_param(params)

        selection = await self._provider_selector.select(
            config=request.config,
            provider=read_string_param(params, "provider"),
        )
        provider = selection.provider
        account_id = (
            read_string_param(params, "accountId")
            or request.default_account_id
            or _configured_account_id(request.config, provider)
        )
        if request.dry_run is not None:
            dry_run = bool(request.dry_run)
        else:
            dry_run = bool(read_boolean_param(params, "dryRun"))

        logger.info(
            "message_action.start",
            action=request.action,
            provider=provider,
            dry_run=dry_run,
        )

        enforce_context_isolation(
            provider=provider,
            action=request.action,
            params=params,
            tool_context=request.tool_context,
            normalize_target=self._normalize_target,
        )

        run = _ActionRun(
            request=request,
            params=params,
            provider=provider,
            account_id=account_id,
            dry_run=dry_run,
            gateway=_copy_gateway(request.gateway),
        )

        if request.action == SEND_ACTION:
            return await self._run_send(run)
        if request.action == POLL_ACTION:
            return await self._run_poll(run)
        return await self._run_generic(run)

    # ------------------------------------------------------------------
    # Per-kind handlers
    # ------------------------------------------------------------------

    async def _run_send(self, run: _ActionRun) -> SendActionResult:
        params = run.params
        to = read_string_param(params, "to", required=True)
        message = read_string_param(params, "message", required=True, allow_empty=True)

        directives = self._parse_directives(message or "")
        message = directives.text
        params["message"] = message
        if not params.get("replyTo") and directives.reply_to_id:
            params["replyTo"] = directives.reply_to_id
        if not params.get("media"):
            extracted = (directives.media_urls[0] if directives.media_urls else None) or (
                directives.media_url
            )
            if extracted:
                params["media"] = extracted

        media_url = read_string_param(params, "media", trim=False)
        reply_to = read_string_param(params, "replyTo")
        gif_playback = read_boolean_param(params, "gifPlayback") or False
        best_effort = read_boolean_param(params, "bestEffort")

        async def via_plugin() -> SendActionResult | None:
            handled = await self._dispatch_plugin(run)
            if handled is None:
                return None
            return SendActionResult(
                provider=run.provider,
                to=to,
                handled_by="plugin",
                payload=extract_tool_payload(handled),
                tool_result=handled,
                dry_run=run.dry_run,
            )

        async def via_core() -> SendActionResult:
            logger.info("message_action.core_delivery", action=SEND_ACTION, provider=run.provider)
            result = await self._delivery.send_message(
                SendMessageRequest(
                    config=run.config,
                    to=to,
                    content=message,
                    media_url=media_url or None,
                    provider=run.provider or None,
                    account_id=run.account_id,
                    reply_to=reply_to,
                    gif_playback=gif_playback,
                    dry_run=run.dry_run,
                    best_effort=best_effort,
                    deps=run.request.deps,
                    gateway=run.gateway,
                )
            )
            return SendActionResult(
                provider=run.provider,
                to=to,
                handled_by="core",
                payload=result,
                send_result=result,
                dry_run=run.dry_run,
            )

        stages: tuple[Stage, ...] = (via_core,) if run.dry_run else (via_plugin, via_core)
        return await first_claim(stages)  # type: ignore[return-value]

    async def _run_poll(self, run: _ActionRun) -> PollActionResult:
        params = run.params
        to = read_string_param(params, "to", required=True)
        question = read_string_param(params, "pollQuestion", required=True)
        options = read_string_array_param(params, "pollOption", required=True) or []
        if len(options) < 2:
            raise InvalidParameterError(
                "pollOption requires at least two values", param="pollOption"
            )
        allow_multiselect = read_boolean_param(params, "pollMulti") or False
        duration_hours = read_number_param(params, "pollDurationHours", integer=True)
        max_selections = max(2, len(options)) if allow_multiselect else 1

        async def via_plugin() -> PollActionResult | None:
            handled = await self._dispatch_plugin(run)
            if handled is None:
                return None
            return PollActionResult(
                provider=run.provider,
                to=to,
                handled_by="plugin",
                payload=extract_tool_payload(handled),
                tool_result=handled,
                dry_run=run.dry_run,
            )

        async def via_core() -> PollActionResult:
            logger.info("message_action.core_delivery", action=POLL_ACTION, provider=run.provider)
            result = await self._delivery.send_poll(
                SendPollRequest(
                    config=run.config,
                    to=to,
                    question=question or "",
                    options=options,
                    max_selections=max_selections,
                    duration_hours=int(duration_hours) if duration_hours is not None else None,
                    provider=run.provider,
                    account_id=run.account_id,
                    dry_run=run.dry_run,
                    gateway=run.gateway,
                    deps=run.request.deps,
                )
            )
            return PollActionResult(
                provider=run.provider,
                to=to,
                handled_by="core",
                payload=result,
                poll_result=result,
                dry_run=run.dry_run,
            )

        stages: tuple[Stage, ...] = (via_core,) if run.dry_run else (via_plugin, via_core)
        return await first_claim(stages)  # type: ignore[return-value]

    async def _run_generic(self, run: _ActionRun) -> GenericActionResult:
        if run.dry_run:
            logger.info("message_action.dry_run", action=run.action, provider=run.provider)
            return GenericActionResult(
                provider=run.provider,
                action=run.action,
                handled_by="dry-run",
                payload={
                    "ok": True,
                    "dryRun": True,
                    "provider": run.provider,
                    "action": run.action,
                },
                dry_run=True,
            )

        handled = await self._dispatch_plugin(run)
        if handled is None:
            raise UnsupportedActionError(
                f"Message action {run.action} not supported for provider {run.provider}.",
                details={"action": run.action, "provider": run.provider},
            )
        return GenericActionResult(
            provider=run.provider,
            action=run.action,
            handled_by="plugin",
            payload=extract_tool_payload(handled),
            tool_result=handled,
            dry_run=run.dry_run,
        )

    async def _dispatch_plugin(self, run: _ActionRun) -> Any:
        handled = await self._plugins.dispatch(run.plugin_context())
        if handled is None:
            return None
        logger.info("message_action.plugin_handled", action=run.action, provider=run.provider)
        return handled


async def run_message_action(
    request: MessageActionRequest,
    *,
    runner: MessageActionRunner | None = None,
) -> MessageActionResult:
    """Run one message action.

    Without an explicit ``runner`` a default one is built for this call,
    with plugins discovered from entry points, and closed afterwards.
    """
    if runner is not None:
        return await runner.run(request)

    plugins = MessageActionPluginRegistry()
    plugins.load_entry_points()
    owned = MessageActionRunner(plugins=plugins)
    try:
        return await owned.run(request)
    finally:
        await owned.aclose()
