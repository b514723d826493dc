"""Message action CLI commands.

Provides ``send``, ``poll`` and ``run`` (any other action) on top of the
message action runner, plus ``actions`` to list known action names.
"""

import asyncio
import json
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from courier.core.domain.actions import (
    MESSAGE_ACTION_NAMES,
    POLL_ACTION,
    SEND_ACTION,
    GatewayDescriptor,
    MessageActionRequest,
    MessageActionResult,
    ToolContext,
)
from courier.core.domain.errors import CourierError, error_payload

app = typer.Typer(help="Message actions")
console = Console()
err_console = Console(stderr=True)


def parse_param_pairs(pairs: Optional[List[str]]) -> dict[str, Any]:
    """Turn ``key=value`` strings into a params dict.

    Repeating a key collects its values into a list.

    Raises:
        typer.BadParameter: If an entry has no ``=``.
    """
    params: dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got {pair!r}", param_hint="--param")
        if key in params:
            existing = params[key]
            params[key] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            params[key] = value
    return params


def _gateway(
    url: Optional[str], token: Optional[str], timeout_ms: Optional[int]
) -> GatewayDescriptor | None:
    if not url:
        return None
    return GatewayDescriptor(
        url=url,
        token=token,
        timeout_ms=timeout_ms,
        client_name="courier-cli",
        mode="cli",
    )


def _execute(
    ctx: typer.Context,
    *,
    action: str,
    params: dict[str, Any],
    dry_run: bool,
    context_channel: Optional[str],
    gateway: GatewayDescriptor | None,
    as_json: bool,
) -> None:
    from courier.application.action_runner import run_message_action
    from courier.infrastructure.config_loader import load_config
    from courier.infrastructure.logging_config import configure_logging_from_config

    global_opts = ctx.obj or {}

    async def _run() -> MessageActionResult:
        config = load_config(global_opts.get("config_path"))
        configure_logging_from_config(
            config,
            level=global_opts.get("log_level"),
            json_output=global_opts.get("json_logs", False),
        )
        request = MessageActionRequest(
            config=config,
            action=action,
            params=params,
            tool_context=ToolContext(current_channel_id=context_channel)
            if context_channel
            else None,
            gateway=gateway,
            dry_run=True if dry_run else None,
        )
        return await run_message_action(request)

    try:
        result = asyncio.run(_run())
    except CourierError as exc:
        if as_json:
            typer.echo(json.dumps(error_payload(exc, extra={"action": action}), indent=2, default=str))
            raise typer.Exit(code=1) from exc
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, default=str))
        return
    _print_result(result)


def _print_result(result: MessageActionResult) -> None:
    data = result.to_dict()
    table = Table(title=f"Message action: {result.action}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    for key in ("provider", "to", "handled_by", "dry_run"):
        if key in data:
            table.add_row(key, str(data[key]))
    table.add_row("payload", json.dumps(data["payload"], default=str))
    console.print(table)


@app.command("send")
def send(
    ctx: typer.Context,
    to: str = typer.Option(..., "--to", "-t", help="Destination (channel, user, chat id)"),
    message: str = typer.Option("", "--message", "-m", help="Message text"),
    provider: Optional[str] = typer.Option(None, "--provider", help="Provider hint"),
    media: Optional[str] = typer.Option(None, "--media", help="Media URL or path"),
    reply_to: Optional[str] = typer.Option(None, "--reply-to", help="Message id to reply to"),
    buttons: Optional[str] = typer.Option(None, "--buttons", help="Interactive buttons as JSON"),
    gif_playback: bool = typer.Option(False, "--gif-playback", help="Send video as GIF"),
    best_effort: bool = typer.Option(False, "--best-effort", help="Do not fail on delivery errors"),
    param: Optional[List[str]] = typer.Option(None, "--param", help="Extra key=value parameter"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate without sending"),
    context_channel: Optional[str] = typer.Option(
        None, "--context-channel", help="Restrict delivery to this conversation"
    ),
    gateway_url: Optional[str] = typer.Option(None, "--gateway-url", help="Deliver via gateway"),
    gateway_token: Optional[str] = typer.Option(None, "--gateway-token", help="Gateway token"),
    timeout_ms: Optional[int] = typer.Option(None, "--timeout-ms", help="Gateway timeout"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Send a message."""
    params = parse_param_pairs(param)
    params.update({"to": to, "message": message})
    optional = {
        "provider": provider,
        "media": media,
        "replyTo": reply_to,
        "buttons": buttons,
    }
    params.update({key: value for key, value in optional.items() if value is not None})
    if gif_playback:
        params["gifPlayback"] = True
    if best_effort:
        params["bestEffort"] = True

    _execute(
        ctx,
        action=SEND_ACTION,
        params=params,
        dry_run=dry_run,
        context_channel=context_channel,
        gateway=_gateway(gateway_url, gateway_token, timeout_ms),
        as_json=as_json,
    )


@app.command("poll")
def poll(
    ctx: typer.Context,
    to: str = typer.Option(..., "--to", "-t", help="Destination"),
    question: str = typer.Option(..., "--question", "-q", help="Poll question"),
    option: Optional[List[str]] = typer.Option(None, "--option", "-o", help="Poll option (repeat)"),
    multi: bool = typer.Option(False, "--multi", help="Allow multiple answers"),
    duration_hours: Optional[int] = typer.Option(None, "--duration-hours", help="Poll duration"),
    provider: Optional[str] = typer.Option(None, "--provider", help="Provider hint"),
    param: Optional[List[str]] = typer.Option(None, "--param", help="Extra key=value parameter"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate without sending"),
    context_channel: Optional[str] = typer.Option(
        None, "--context-channel", help="Restrict delivery to this conversation"
    ),
    gateway_url: Optional[str] = typer.Option(None, "--gateway-url", help="Deliver via gateway"),
    gateway_token: Optional[str] = typer.Option(None, "--gateway-token", help="Gateway token"),
    timeout_ms: Optional[int] = typer.Option(None, "--timeout-ms", help="Gateway timeout"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Create a poll."""
    params = parse_param_pairs(param)
    params.update(
        {
            "to": to,
            "pollQuestion": question,
            "pollOption": list(option or []),
            "pollMulti": multi,
        }
    )
    if provider is not None:
        params["provider"] = provider
    if duration_hours is not None:
        params["pollDurationHours"] = duration_hours

    _execute(
        ctx,
        action=POLL_ACTION,
        params=params,
        dry_run=dry_run,
        context_channel=context_channel,
        gateway=_gateway(gateway_url, gateway_token, timeout_ms),
        as_json=as_json,
    )


@app.command("run")
def run(
    ctx: typer.Context,
    action: str = typer.Argument(..., help="Action name (e.g. thread-reply, react)"),
    provider: Optional[str] = typer.Option(None, "--provider", help="Provider hint"),
    param: Optional[List[str]] = typer.Option(None, "--param", "-p", help="key=value parameter"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate without executing"),
    context_channel: Optional[str] = typer.Option(
        None, "--context-channel", help="Restrict delivery to this conversation"
    ),
    gateway_url: Optional[str] = typer.Option(None, "--gateway-url", help="Deliver via gateway"),
    gateway_token: Optional[str] = typer.Option(None, "--gateway-token", help="Gateway token"),
    timeout_ms: Optional[int] = typer.Option(None, "--timeout-ms", help="Gateway timeout"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Run any message action with free-form parameters."""
    params = parse_param_pairs(param)
    if provider is not None:
        params["provider"] = provider

    _execute(
        ctx,
        action=action,
        params=params,
        dry_run=dry_run,
        context_channel=context_channel,
        gateway=_gateway(gateway_url, gateway_token, timeout_ms),
        as_json=as_json,
    )


@app.command("actions")
def actions() -> None:
    """List known message action names."""
    for name in MESSAGE_ACTION_NAMES:
        console.print(name)
