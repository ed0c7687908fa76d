"""CLI entry point for organizer-control."""

import asyncio
import logging
import os
import sys
from contextlib import contextmanager

import click
import uvicorn

from .config import get_executable_path, get_timeout, get_working_directory
from .core import InvalidRequest, OperationKind, OperationRequest
from .dispatcher import OperationDispatcher


@contextmanager
def _environ(overrides: dict[str, str]):
    """Temporarily set environment variables, restoring previous values."""
    saved = {name: os.environ.get(name) for name in overrides}
    os.environ.update(overrides)
    try:
        yield
    finally:
        for name, value in saved.items():
            if value is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = value


def _make_dispatcher() -> OperationDispatcher:
    return OperationDispatcher(
        executable=get_executable_path(),
        working_directory=get_working_directory(),
        timeout=get_timeout(),
    )


@click.group()
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging verbosity.",
)
def main(log_level: str):
    """Drive the FileOrganizer tool over HTTP or from the terminal."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--port", default=3000, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
@click.option("--executable", type=click.Path(), help="Path to the FileOrganizer executable.")
@click.option("--timeout", type=float, help="Per-operation timeout in seconds.")
def serve(port: int, host: str, executable: str | None, timeout: float | None):
    """Start the web interface."""
    overrides = {}
    if executable:
        overrides["ORGANIZER_TOOL_PATH"] = executable
    if timeout is not None:
        overrides["ORGANIZER_TIMEOUT"] = str(timeout)

    # The server builds its dispatcher from the environment, so options reach
    # it that way. They are rolled back once uvicorn returns.
    with _environ(overrides):
        tool = get_executable_path()
        if not tool.is_file():
            click.echo(f"FileOrganizer executable not found at: {tool}", err=True)
            click.echo("Build the tool first or pass --executable.", err=True)
            sys.exit(1)

        click.echo(f"Starting organizer-control on http://{host}:{port}")
        click.echo(f"Using tool: {tool}")
        uvicorn.run("organizer_control.server:app", host=host, port=port, reload=False)


@main.command("run")
@click.argument("kind", type=click.Choice([k.value for k in OperationKind]))
@click.argument("folder")
@click.option("--session", "session_id", help="Session to undo (undo only).")
def run_command(kind: str, folder: str, session_id: str | None):
    """Run a single operation and print its output."""
    request = OperationRequest(
        kind=OperationKind(kind), target_path=folder, session_id=session_id
    )
    try:
        result = asyncio.run(_make_dispatcher().dispatch(request))
    except InvalidRequest as e:
        raise click.UsageError(str(e))

    if result.output:
        click.echo(result.output.rstrip("\n"))
    if not result.success:
        click.echo(f"Error: {result.error_message}", err=True)
        sys.exit(1)


@main.command()
@click.argument("folder")
def sessions(folder: str):
    """List organize sessions for FOLDER, most recent first."""
    try:
        result, records = asyncio.run(_make_dispatcher().list_sessions(folder))
    except InvalidRequest as e:
        raise click.UsageError(str(e))

    if not result.success:
        click.echo(f"Error: {result.error_message}", err=True)
        if result.output:
            click.echo(result.output.rstrip("\n"), err=True)
        sys.exit(1)

    if not records:
        click.echo("No organization sessions found.")
        return
    for record in records:
        click.echo(f"{record.id}  {record.file_count} files moved")
