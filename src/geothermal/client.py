"""
AsyncSteamClient / SteamClient — main SDK clients.
"""

import asyncio
from typing import Any, AsyncGenerator, Callable, Optional

import httpx

from geothermal.auth import Auth
from geothermal.chat import Chat, MessageHandler
from geothermal.errors import ConnectionError
from geothermal.friends import friends
from geothermal.ids import SteamID
from geothermal.models.auth import LoginAttempt
from geothermal.models.chat import Message
from geothermal.prompts import Prompter
from geothermal.transport.cookies import dumps_session, loads_session
from geothermal.transport.http import DEFAULT_TIMEOUT_S, HttpClient


class AsyncSteamClient:
    """Async client (primary)."""

    def __init__(
        self,
        session: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.http = HttpClient(timeout=timeout, transport=transport)
        self.auth = Auth(self.http)
        self.username: Optional[str] = None
        self._chat: Optional[Chat] = None
        if session:
            self.load_session(session)

    @property
    def session_id(self) -> Optional[str]:
        return self.http.session_id

    @property
    def connected(self) -> bool:
        return self._chat is not None

    @property
    def chat(self) -> Chat:
        self._ensure_connected()
        return self._chat  # type: ignore[return-value]

    async def login(self, username: str, password: str, computer_name: str = "") -> LoginAttempt:
        attempt = await self.auth.login(username, password, computer_name=computer_name)
        self.username = username
        return attempt

    async def attempt(self, attempt: LoginAttempt) -> LoginAttempt:
        return await self.auth.attempt(attempt)

    async def interactive_login(self, prompter: Prompter, computer_name: str = "") -> LoginAttempt:
        """Ask ``prompter`` for credentials and every challenge until logged in."""
        username = prompter.username()
        password = prompter.password()
        attempt = await self.login(username, password, computer_name=computer_name)
        return await self.auth.complete(attempt, prompter)

    async def logout(self) -> None:
        await self.auth.logout()
        self._chat = None

    def dump_session(self) -> str:
        return dumps_session(self.http)

    def load_session(self, raw: str) -> None:
        loads_session(self.http, raw)

    async def friends(self, user: str = "my") -> list[SteamID]:
        return await friends(self.http, user)

    async def connect(self) -> Chat:
        """Log on to web chat. Requires a logged-in session."""
        if self._chat is None:
            self._chat = await Chat.open(self.http)
        return self._chat

    def disconnect(self) -> None:
        # the presence API has no logoff; the server expires the umqid
        self._chat = None

    async def poll(self) -> list[Message]:
        return await self.chat.poll()

    async def say(self, steamid: int, text: str) -> None:
        await self.chat.say(steamid, text)

    async def listen(self) -> AsyncGenerator[Message, None]:
        async for m in self.chat.listen():
            yield m

    def add_message_handler(self, handler: MessageHandler,
                            types: Optional[tuple[type, ...]] = None) -> Callable[[], None]:
        return self.chat.add_message_handler(handler, types)

    async def close(self) -> None:
        self._chat = None
        await self.http.close()

    def _ensure_connected(self) -> None:
        if self._chat is None:
            raise ConnectionError("Not connected. Call connect() first.")


class SteamClient:
    """Sync wrapper around AsyncSteamClient. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._async = AsyncSteamClient(**kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def auth(self) -> Auth:
        return self._async.auth

    @property
    def session_id(self) -> Optional[str]:
        return self._async.session_id

    @property
    def connected(self) -> bool:
        return self._async.connected

    def login(self, username: str, password: str, computer_name: str = "") -> LoginAttempt:
        return self._run(self._async.login(username, password, computer_name=computer_name))

    def attempt(self, attempt: LoginAttempt) -> LoginAttempt:
        return self._run(self._async.attempt(attempt))

    def interactive_login(self, prompter: Prompter, computer_name: str = "") -> LoginAttempt:
        return self._run(self._async.interactive_login(prompter, computer_name=computer_name))

    def logout(self) -> None:
        self._run(self._async.logout())

    def dump_session(self) -> str:
        return self._async.dump_session()

    def load_session(self, raw: str) -> None:
        self._async.load_session(raw)

    def friends(self, user: str = "my") -> list[SteamID]:
        return self._run(self._async.friends(user))

    def connect(self) -> Chat:
        return self._run(self._async.connect())

    def disconnect(self) -> None:
        self._async.disconnect()

    def poll(self) -> list[Message]:
        return self._run(self._async.poll())

    def say(self, steamid: int, text: str) -> None:
        self._run(self._async.say(steamid, text))

    def add_message_handler(self, handler: MessageHandler,
                            types: Optional[tuple[type, ...]] = None) -> Callable[[], None]:
        return self._async.add_message_handler(handler, types)

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
