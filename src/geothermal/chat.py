"""
Web chat over the ISteamWebUserPresenceOAuth long-poll API.

Lifecycle:
- Chat.open() scrapes the chat access token from the community chat page,
  then logs on to the presence API (umqid + initial message cursor)
- poll() holds for up to 35s and returns whatever arrived
- say() sends a text message; it never touches the poll counters

Only poll() advances ``message`` and ``pollid``. Callers sharing one Chat
between a poll loop and senders need no extra locking for that reason, but
must not run two polls at once.
"""

import logging
import re
from typing import Any, AsyncGenerator, Callable, Optional, Union

from pydantic import ValidationError

from geothermal.errors import ChatStatusError, DecodeError, NoAuthToken
from geothermal.models.chat import (
    MESSAGE_TYPES,
    STATUS_OK,
    Message,
    MessageType,
    PollResponse,
    PresenceLogonResponse,
    StatusResponse,
    UnrecognizedMessage,
)
from geothermal.transport.http import API_URL, COMMUNITY_URL, HttpClient

logger = logging.getLogger(__name__)

CHAT_PAGE_URL = COMMUNITY_URL + "/chat"
LOGON_URL = API_URL + "/ISteamWebUserPresenceOAuth/Logon/v0001/"
POLL_URL = API_URL + "/ISteamWebUserPresenceOAuth/Poll/v0001/"
MESSAGE_URL = API_URL + "/ISteamWebUserPresenceOAuth/Message/v0001/"

POLL_TIMEOUT_S = 35
POLL_IDLE_S = 0
# client deadline for a poll: the server hold plus slack
POLL_REQUEST_TIMEOUT_S = POLL_TIMEOUT_S + 15.0

# The page bootstraps its API client as CWebAPI(host, host, "<token>").
AUTH_TOKEN_RE = re.compile(r'CWebAPI\s*\(\s*(?:[^,]+,){2}\s*"([0-9a-f]{32})"\s*\)')

MessageHandler = Callable[[Message], None]


async def acquire_access_token(http: HttpClient) -> str:
    """Scrape the chat access token from the community chat page.

    A page without the token means either the markup changed or ``http`` is
    not logged in; both raise NoAuthToken.
    """
    page = await http.get_text(CHAT_PAGE_URL)
    match = AUTH_TOKEN_RE.search(page)
    if match is None:
        raise NoAuthToken()
    return match.group(1)


def decode_message(raw: Any) -> Union[Message, UnrecognizedMessage]:
    """Decode one poll entry by its type tag.

    Entries without a known string tag (not an object, tag missing, null or
    numeric) come back as UnrecognizedMessage. Only a known variant with a
    malformed body raises DecodeError.
    """
    tag = raw.get("type") if isinstance(raw, dict) else None
    cls = MESSAGE_TYPES.get(tag) if isinstance(tag, str) else None
    if cls is None:
        return UnrecognizedMessage(type=tag, raw=raw)

    try:
        if tag == MessageType.MY_SAYTEXT.value:
            return cls.model_validate({**raw, "is_self": True})
        return cls.model_validate({k: v for k, v in raw.items() if k != "is_self"})
    except ValidationError as e:
        raise DecodeError(f"malformed {tag} entry: {e}", {"entry": raw})


def _only(types: tuple[type, ...], handler: MessageHandler) -> MessageHandler:
    def filtered(m: Message) -> None:
        if isinstance(m, types):
            handler(m)
    return filtered


class ChatSession:
    """Server-side presence session state."""

    __slots__ = (
        "steamid", "umqid", "access_token", "message", "pollid",
        "timestamp", "utc_timestamp", "push", "unrecognized",
    )

    def __init__(self, steamid: int, umqid: str, access_token: str, message: int = 0,
                 timestamp: int = 0, utc_timestamp: int = 0, push: int = 0):
        self.steamid = steamid
        self.umqid = umqid
        self.access_token = access_token
        self.message = message
        self.pollid = 0
        self.timestamp = timestamp
        self.utc_timestamp = utc_timestamp
        self.push = push
        # entries with unknown type tags from the most recent poll
        self.unrecognized: list[UnrecognizedMessage] = []

    def __repr__(self) -> str:
        return f"ChatSession(steamid={self.steamid!r}, umqid={self.umqid!r}, message={self.message}, pollid={self.pollid})"


class Chat:
    def __init__(self, http: HttpClient, session: ChatSession):
        self._http = http
        self.session = session
        self._handlers: list[MessageHandler] = []

    @classmethod
    async def open(cls, http: HttpClient) -> "Chat":
        """Get an access token and log on to the presence API."""
        token = await acquire_access_token(http)
        raw = await http.post_form(LOGON_URL, {"access_token": token})
        try:
            rsp = PresenceLogonResponse.model_validate(raw)
        except ValidationError as e:
            raise DecodeError(f"unexpected logon response: {e}")
        if rsp.error != STATUS_OK:
            raise ChatStatusError(rsp.error)

        session = ChatSession(
            steamid=rsp.steamid,
            umqid=rsp.umqid,
            access_token=token,
            message=rsp.message,
            timestamp=rsp.timestamp,
            utc_timestamp=rsp.utc_timestamp,
            push=rsp.push,
        )
        logger.info("chat logon as %s (umqid %s)", session.steamid, session.umqid)
        return cls(http, session)

    def add_message_handler(self, handler: MessageHandler,
                            types: Optional[tuple[type, ...]] = None) -> Callable[[], None]:
        """Call ``handler`` for each message poll() returns, optionally only for ``types``.

        Returns a function that removes the handler.
        """
        if types is not None:
            handler = _only(types, handler)

        self._handlers.append(handler)

        def remove() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass
        return remove

    async def poll(self) -> list[Message]:
        """Long-poll once and return the decoded messages.

        Whatever the outcome after a decodable reply, ``pollid`` has advanced by
        one and ``message`` holds the server's ``messagelast``: the server has
        consumed those sequence numbers. A non-OK status (including "Timeout"
        when nothing arrived) raises ChatStatusError. A handler that raises is
        logged; the rest of the batch is still dispatched and returned.
        """
        s = self.session
        raw = await self._http.post_form(
            POLL_URL,
            {
                "umqid": s.umqid,
                "message": s.message,
                "pollid": s.pollid,
                "sectimeout": POLL_TIMEOUT_S,
                "secidletime": POLL_IDLE_S,
                "use_accountids": 1,
                "access_token": s.access_token,
            },
            timeout=POLL_REQUEST_TIMEOUT_S,
        )
        try:
            rsp = PollResponse.model_validate(raw)
        except ValidationError as e:
            raise DecodeError(f"unexpected poll response: {e}")

        s.pollid += 1
        if rsp.messagelast is not None:
            s.message = rsp.messagelast
        s.unrecognized = []

        if rsp.error != STATUS_OK:
            raise ChatStatusError(rsp.error)

        messages: list[Message] = []
        for entry in rsp.messages:
            m = decode_message(entry)
            if isinstance(m, UnrecognizedMessage):
                logger.warning("steam chat: invalid message type %r: %r", m.type, m.raw)
                s.unrecognized.append(m)
                continue
            messages.append(m)

        for m in messages:
            for handler in list(self._handlers):
                try:
                    handler(m)
                except Exception:
                    logger.exception("steam chat: message handler failed on %s", m.type)
        return messages

    async def listen(self) -> AsyncGenerator[Message, None]:
        """Poll forever, yielding messages. Empty polls ("Timeout") are skipped."""
        while True:
            try:
                batch = await self.poll()
            except ChatStatusError as e:
                if e.status == "Timeout":
                    continue
                raise
            for m in batch:
                yield m

    async def say(self, steamid: int, text: str) -> None:
        """Send ``text`` to the user ``steamid``."""
        s = self.session
        raw = await self._http.post_form(
            MESSAGE_URL,
            {
                "umqid": s.umqid,
                "access_token": s.access_token,
                "text": text,
                "type": MessageType.SAYTEXT.value,
                "steamid_dst": int(steamid),
            },
        )
        try:
            rsp = StatusResponse.model_validate(raw)
        except ValidationError as e:
            raise DecodeError(f"unexpected message response: {e}")
        if rsp.error != STATUS_OK:
            raise ChatStatusError(rsp.error)
