"""
Geothermal CLI — `geothermal` command.

Commands:
  geothermal login              Interactive login (CAPTCHA / SteamGuard prompts)
  geothermal status|logout      Saved session
  geothermal session <cmd>      Export / import the session cookies
  geothermal friends [user]     Friends list
  geothermal chat               Print incoming chat messages
  geothermal send <id> <text>   Send one message
  geothermal echo               Reply to every message with its own text
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install geothermal[cli]")

from geothermal.client import AsyncSteamClient

console = Console()
SESSION_FILE = Path.home() / ".geothermal" / "session.json"


def _session_file() -> Path:
    ctx = click.get_current_context()
    return (ctx.find_root().obj or {}).get("session_file", SESSION_FILE)


def _load_session() -> Optional[str]:
    try:
        return _session_file().read_text()
    except FileNotFoundError:
        return None


def _save_session(raw: str) -> None:
    path = _session_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(raw)


def _clear_session() -> None:
    _session_file().unlink(missing_ok=True)


def _get_client() -> AsyncSteamClient:
    raw = _load_session()
    if not raw:
        console.print("[red]Not logged in. Run `geothermal login` first.[/red]")
        raise SystemExit(1)
    return AsyncSteamClient(session=raw)


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
@click.option("--session-file", type=click.Path(path_type=Path), default=None,
              help=f"Session cookie file (default {SESSION_FILE})")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx: click.Context, session_file: Optional[Path], verbose: bool):
    """Geothermal — Steam Community login and web chat."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    ctx.obj = {"session_file": session_file or SESSION_FILE}


# Register subcommands from separate modules
from geothermal.cli.auth import login, status, logout
from geothermal.cli.chat import chat_cmd, send_cmd, echo_cmd, friends_cmd
from geothermal.cli.sessions import session

main.add_command(login)
main.add_command(status)
main.add_command(logout)
main.add_command(session)
main.add_command(friends_cmd)
main.add_command(chat_cmd)
main.add_command(send_cmd)
main.add_command(echo_cmd)


if __name__ == "__main__":
    main()
