"""Courier CLI entry point."""

from typing import Optional

import typer
from rich.console import Console

from courier.api.cli.commands import config, message, webchat
from courier.infrastructure.logging_config import configure_logging

app = typer.Typer(
    name="courier",
    help="Courier - outbound message action dispatcher",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register command groups
app.add_typer(message.app, name="message", help="Send messages, polls and other actions")
app.add_typer(webchat.app, name="webchat", help="Loopback webchat asset server")
app.add_typer(config.app, name="config", help="Configuration management")


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None, "--config", "-c", help="Config file (default: $COURIER_CONFIG or .courier/config.yaml)"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", envvar="LOGLEVEL", help="Log level (default: config file, else WARNING)"
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines"),
):
    """Courier CLI."""
    configure_logging(log_level or "WARNING", json_output=json_logs)
    # Store global options in context for subcommands
    ctx.obj = {"config_path": config_path, "log_level": log_level, "json_logs": json_logs}


@app.command()
def version():
    """Show Courier version."""
    from courier import __version__

    console.print(f"[bold blue]Version:[/bold blue] [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
