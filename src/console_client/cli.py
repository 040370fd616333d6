"""CLI entry point for console-client."""

from __future__ import annotations

import json
import logging
import signal
import sys
from types import FrameType

import typer
from pydantic import ValidationError

from console_client.config import ConsoleClientConfig
from console_client.errors import SetupError
from console_client.session import Session, Termination
from console_client.terminal import TerminalAdapter
from console_client.transport import UnixSocketTransport

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="console-client",
    help="Attach the terminal to a console server socket. Type Enter ~ . to detach.",
    add_completion=False,
)

# Signals that end the session through normal unwinding (terminal restored)
EXIT_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _exit_on_signal(signum: int, frame: FrameType | None) -> None:
    sys.exit(128 + signum)


def _install_signal_handlers() -> None:
    for signum in EXIT_SIGNALS:
        signal.signal(signum, _exit_on_signal)


def _report(session: Session) -> None:
    """Tell the user why the session ended, after the terminal is restored."""
    if session.termination is Termination.PEER_CLOSED:
        typer.echo("Connection closed", err=True)
    elif session.termination is Termination.IO_ERROR:
        typer.echo(f"Error: {session.error or 'console session failed'}", err=True)


@app.command()
def attach(
    socket_path: str | None = typer.Option(
        None,
        "--socket",
        "-s",
        help="Console server socket (default: from env/config). Prefix '@' for abstract sockets.",
    ),
    buffer_size: int | None = typer.Option(
        None, "--buffer-size", help="Maximum bytes moved per read.", min=1
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Attach to the console and forward until detach or disconnect."""
    setup_logging(verbose)

    try:
        config = ConsoleClientConfig.load(config_file)
    except (ValueError, ValidationError, json.JSONDecodeError) as e:
        typer.echo(f"Error: invalid configuration: {e}", err=True)
        raise typer.Exit(1)
    if socket_path:
        config.socket_path = socket_path
    if buffer_size:
        config.buffer_size = buffer_size

    try:
        transport = UnixSocketTransport.connect(config.socket_path)
    except SetupError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    session = Session(
        transport=transport,
        terminal=TerminalAdapter.from_stdio(),
        buffer_size=config.buffer_size,
    )

    _install_signal_handlers()
    try:
        termination = session.run()
    except SetupError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    _report(session)
    raise typer.Exit(termination.exit_code)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
