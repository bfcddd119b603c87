"""CLI: geothermal session export|import"""

from pathlib import Path

import click
from rich.console import Console

from geothermal.client import AsyncSteamClient

console = Console()


def _get_client() -> AsyncSteamClient:
    from geothermal.cli.main import _get_client
    return _get_client()


def _save_session(raw: str) -> None:
    from geothermal.cli.main import _save_session
    _save_session(raw)


def _run(coro):
    from geothermal.cli.main import _run
    return _run(coro)


@click.group()
def session():
    """Session cookie export / import."""


@session.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
def session_export(path: Path):
    """Write the saved session cookies to PATH."""
    client = _get_client()
    path.write_text(client.dump_session())
    _run(client.close())
    console.print(f"[green]Session exported to {path}[/green]")


@session.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def session_import(path: Path):
    """Replace the saved session with the cookies in PATH."""
    client = AsyncSteamClient(session=path.read_text())
    if client.session_id is None:
        console.print("[yellow]Warning: no sessionid cookie in that session.[/yellow]")
    _save_session(client.dump_session())
    _run(client.close())
    console.print(f"[green]Session imported from {path}[/green]")
