"""Webchat command - serve the webchat assets on loopback."""

import asyncio
from typing import Optional

import typer
from rich.console import Console

from courier.core.domain.errors import CourierError

app = typer.Typer(help="Loopback webchat asset server")
console = Console()


@app.command("serve")
def serve(
    ctx: typer.Context,
    port: Optional[int] = typer.Option(None, "--port", help="Port (default from config, 18788)"),
    root: Optional[str] = typer.Option(None, "--root", help="Asset directory"),
) -> None:
    """Serve the webchat assets until interrupted."""
    from courier.infrastructure.config_loader import load_config
    from courier.infrastructure.logging_config import configure_logging_from_config
    from courier.infrastructure.webchat import webchat_server

    global_opts = ctx.obj or {}

    async def _serve() -> bool:
        config = load_config(global_opts.get("config_path"))
        configure_logging_from_config(
            config,
            level=global_opts.get("log_level"),
            json_output=global_opts.get("json_logs", False),
        )
        async with webchat_server(
            port=config.webchat.port if port is None else port,
            root=root or config.webchat.root,
        ) as state:
            if state is None:
                return False
            console.print(f"[green]WebChat serving[/green] {state.url} [dim]({state.root})[/dim]")
            console.print("[dim]Press Ctrl+C to stop[/dim]")
            await asyncio.Event().wait()
        return True

    try:
        started = asyncio.run(_serve())
    except KeyboardInterrupt:
        console.print("[yellow]Stopped[/yellow]")
        return
    except CourierError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc

    if not started:
        console.print("[red]WebChat server failed to bind[/red]")
        raise typer.Exit(1)
