"""CLI: geothermal login|status|logout"""

import json
import platform
from typing import Optional
from urllib.parse import unquote

import click
from rich.console import Console

from geothermal.client import AsyncSteamClient
from geothermal.errors import LoginFailed

console = Console()


def _load_session() -> Optional[str]:
    from geothermal.cli.main import _load_session
    return _load_session()


def _save_session(raw: str) -> None:
    from geothermal.cli.main import _save_session
    _save_session(raw)


def _clear_session() -> None:
    from geothermal.cli.main import _clear_session
    _clear_session()


def _get_client() -> AsyncSteamClient:
    from geothermal.cli.main import _get_client
    return _get_client()


def _run(coro):
    from geothermal.cli.main import _run
    return _run(coro)


class ClickPrompter:
    """Prompter that reads from the terminal."""

    def __init__(self, username: Optional[str] = None):
        self._username = username

    def show(self, message: str) -> None:
        console.print(f"[yellow]{message}[/yellow]")

    def captcha(self, url: str) -> str:
        console.print(f"CAPTCHA: {url}")
        return click.prompt("CAPTCHA")

    def second_factor(self, email_domain: str) -> str:
        if email_domain:
            console.print(f"[dim]Code sent to an address at {email_domain}[/dim]")
        return click.prompt("SteamGuard code")

    def username(self) -> str:
        return self._username or click.prompt("Username")

    def password(self) -> str:
        return click.prompt("Password", hide_input=True)


@click.command("login")
@click.option("-u", "--username", default=None)
@click.option("--computer-name", default=platform.node(), help="Name SteamGuard records for this machine")
def login(username: Optional[str], computer_name: str):
    """Log in interactively and save the session."""

    async def _login():
        client = AsyncSteamClient()
        try:
            await client.interactive_login(ClickPrompter(username), computer_name=computer_name)
            _save_session(client.dump_session())
        finally:
            await client.close()
        console.print(f"[green]Logged in as {client.username}[/green]")

    try:
        _run(_login())
    except LoginFailed as e:
        console.print(f"[red]{e}[/red]")
        if e.server_message:
            console.print(f"[dim]{e.server_message}[/dim]")
        raise SystemExit(1)


@click.command("status")
def status():
    """Show the saved session."""
    raw = _load_session()
    if not raw:
        console.print("[yellow]Not logged in. Run `geothermal login`.[/yellow]")
        return
    cookies = json.loads(raw)
    login = next((c["value"] for c in cookies if c.get("name") == "steamLoginSecure"), None)
    who = unquote(login).split("||")[0] if login else "unknown account"
    console.print(f"[green]Session saved[/green] for {who} ({len(cookies)} cookies)")


@click.command("logout")
def logout():
    """Log out and clear the saved session."""

    async def _logout():
        client = _get_client()
        try:
            await client.logout()
        finally:
            await client.close()

    if _load_session():
        _run(_logout())
    _clear_session()
    console.print("[green]Logged out.[/green]")
