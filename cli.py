"""
Command line interface for the notification relay.

Provides the `serve` command, which starts uvicorn on the requested
listen address.
"""

import logging

import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from letmeknow.settings import app_settings, split_addr
from uvicorn_filters import ExcludeMonitoringFilter

typer_app = typer.Typer(
    name="letmeknow",
    help="letmeknow - real-time notification relay",
    add_completion=False,
)
console = Console()


def _validate_addr(value: str) -> str:
    try:
        split_addr(value)
    except ValueError as ex:
        raise typer.BadParameter(str(ex)) from ex
    return value


@typer_app.command(name="serve")
def serve(
    addr: str = typer.Option(
        app_settings.ADDR,
        "--addr",
        help="http service address, e.g. :8080 or 127.0.0.1:9000",
        callback=_validate_addr,
    ),
    log_level: str = typer.Option(
        app_settings.LOG_LEVEL, "--log-level", help="Log level"
    ),
):
    """
    Start the relay server.

    Example:
        python cli.py serve --addr :8080
    """
    host, port = split_addr(addr)

    # The app is created in this process and reads the same settings
    app_settings.ADDR = addr
    app_settings.LOG_LEVEL = log_level.upper()

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]letmeknow[/bold cyan]\n"
            f"Listening on [green]{host}:{port}[/green], "
            f"websocket path [green]{app_settings.WS_PATH}[/green]",
            border_style="cyan",
        )
    )
    console.print()

    logging.getLogger().setLevel(log_level.upper())
    logging.getLogger("uvicorn.access").addFilter(ExcludeMonitoringFilter())

    uvicorn.run(
        "letmeknow:application",
        factory=True,
        host=host,
        port=port,
        log_level=log_level.lower(),
    )


@typer_app.command(name="settings")
def show_settings():
    """
    Display the effective settings (environment and .env applied).

    Example:
        python cli.py settings
    """
    table = Table("Setting", "Value", title="letmeknow settings", show_lines=True)

    for name, value in app_settings.model_dump().items():
        table.add_row(name, str(value))

    table.add_row("host (from ADDR)", app_settings.host)
    table.add_row("port (from ADDR)", str(app_settings.port))

    console.print()
    console.print(table)
    console.print()


def main():
    typer_app()


if __name__ == "__main__":
    main()
