"""CLI: geothermal chat, send, echo, friends"""

import base64
import json

import click
from rich.console import Console
from rich.table import Table

from geothermal.client import AsyncSteamClient
from geothermal.models.chat import (
    LeftconversationMessage,
    PersonastateMessage,
    SaytextMessage,
    TypingMessage,
)

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


def _print_message(m, json_output: bool) -> None:
    if json_output:
        click.echo(json.dumps(m.model_dump()))
        return
    who = m.steamid_from
    if isinstance(m, SaytextMessage):
        label = "[cyan]You[/cyan]" if m.is_self else f"[green]{who}[/green]"
        console.print(f"{label}: {m.text}")
    elif isinstance(m, TypingMessage):
        console.print(f"[dim]{who} is typing...[/dim]")
    elif isinstance(m, PersonastateMessage):
        console.print(f"[dim]{who} ({m.persona_name}) is now state {m.persona_state}[/dim]")
    elif isinstance(m, LeftconversationMessage):
        console.print(f"[dim]{who} left the conversation[/dim]")


@click.command("chat")
@click.option("--json-output", "--json", is_flag=True)
def chat_cmd(json_output: bool):
    """Print incoming chat messages (Ctrl+C to exit)."""

    async def _chat():
        client = _get_client()
        try:
            with console.status("Connecting to chat..."):
                chat = await client.connect()
            if not json_output:
                console.print(f"[dim]Logged on as {chat.session.steamid}[/dim]")
            async for m in client.listen():
                _print_message(m, json_output)
        finally:
            _save_session(client.dump_session())
            await client.close()

    try:
        _run(_chat())
    except KeyboardInterrupt:
        pass


@click.command("send")
@click.argument("steamid", type=int)
@click.argument("text")
def send_cmd(steamid: int, text: str):
    """Send TEXT to the user STEAMID (64-bit, decimal)."""

    async def _send():
        client = _get_client()
        try:
            await client.connect()
            await client.say(steamid, text)
        finally:
            _save_session(client.dump_session())
            await client.close()

    _run(_send())
    console.print("[green]Sent.[/green]")


@click.command("echo")
@click.option("--base64", "encode", is_flag=True, help="Reply with the base64 of each message")
def echo_cmd(encode: bool):
    """Reply to every incoming message with its own text."""

    async def _echo():
        client = _get_client()
        try:
            await client.connect()
            async for m in client.listen():
                if not isinstance(m, SaytextMessage) or m.is_self:
                    continue
                reply = base64.b64encode(m.text.encode("utf-8")).decode("ascii") if encode else m.text
                await client.say(m.steamid_from, reply)
                console.print(f"[dim]echoed to {m.steamid_from}[/dim]")
        finally:
            _save_session(client.dump_session())
            await client.close()

    try:
        _run(_echo())
    except KeyboardInterrupt:
        pass


@click.command("friends")
@click.argument("user", default="my")
@click.option("--json-output", "--json", is_flag=True)
def friends_cmd(user: str, json_output: bool):
    """List friends of USER (profile path, default: yourself)."""

    async def _friends():
        client = _get_client()
        try:
            return await client.friends(user)
        finally:
            await client.close()

    ids = _run(_friends())
    if json_output:
        click.echo(json.dumps([str(i) for i in ids]))
        return
    table = Table(title=f"Friends ({len(ids)})")
    table.add_column("SteamID64", style="bold")
    table.add_column("Steam3")
    for i in ids:
        table.add_row(str(int(i)), i.steam3)
    console.print(table)
