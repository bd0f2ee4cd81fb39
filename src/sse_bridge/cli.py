"""
SSE Bridge CLI - Main entry point.

Usage:
    sse-bridge [--config Config.toml] [--debug]
"""
from pathlib import Path

import typer
import uvicorn

from .core.config import DEFAULT_CONFIG_FILENAME, ConfigError, Settings, load_settings

app = typer.Typer(
    name="sse-bridge",
    help="Relay a broker topic to Server-Sent Events clients.",
    add_completion=False,
)


def startup_banner(settings: Settings) -> str:
    """Broker summary and stream URL printed once before serving."""
    return (
        f"{settings.broker.summary()}\n"
        f"SSE endpoint created: {settings.sse.url}"
    )


@app.command()
def serve(
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILENAME),
        "--config",
        "-c",
        envvar="BRIDGE_CONFIG",
        help="Path to the TOML configuration file.",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
):
    """
    Subscribe to the configured topic and serve it as an SSE stream.
    """
    from .main import configure_logging, create_app

    try:
        settings = load_settings(config)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if debug:
        settings.debug = True
    configure_logging(settings.debug)

    typer.echo(startup_banner(settings))

    uvicorn.run(
        create_app(settings),
        host=str(settings.sse.ip),
        port=settings.sse.port,
        log_level="debug" if settings.debug else "info",
    )


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
