"""Config command - Configuration management."""

import typer
from rich.console import Console
from rich.table import Table

from courier.core.domain.errors import CourierError
from courier.infrastructure.config_loader import load_config, resolve_config_path

app = typer.Typer(help="Configuration management")
console = Console()

_SECRET_FIELDS = ("bot_token", "app_token")


@app.command("show")
def show_config(
    ctx: typer.Context,
    reveal: bool = typer.Option(False, "--reveal", help="Show tokens in clear text"),
):
    """Show the effective configuration."""
    global_opts = ctx.obj or {}
    path, _ = resolve_config_path(global_opts.get("config_path"))

    try:
        config = load_config(global_opts.get("config_path"))
    except CourierError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc

    data = config.model_dump(mode="json", by_alias=True)
    if not reveal:
        for entry in data.get("providers", {}).values():
            for field in _SECRET_FIELDS:
                if entry.get(field):
                    entry[field] = "***"

    console.print(f"\n[bold]Path:[/bold] {path}\n")

    table = Table(title="Providers")
    table.add_column("Provider", style="cyan")
    table.add_column("Enabled", style="white")
    table.add_column("Default", style="green")
    for name, entry in config.providers.items():
        table.add_row(
            name,
            "yes" if entry.enabled else "no",
            "*" if name == config.default_provider else "",
        )
    console.print(table)
    console.print_json(data=data)
