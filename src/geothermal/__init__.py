"""
geothermal — unofficial Steam Community client for Python.

Community login (RSA + CAPTCHA + SteamGuard) and web chat over the
presence long-poll API.
"""

from geothermal.client import SteamClient, AsyncSteamClient
from geothermal.auth import Auth
from geothermal.chat import Chat, ChatSession
from geothermal.errors import (
    GeothermalError,
    HttpStatusError,
    DecodeError,
    AuthError,
    KeyFetchFailed,
    EncryptionFailed,
    NoSessionToken,
    LoginFailed,
    ChatError,
    NoAuthToken,
    ChatStatusError,
    ConnectionError,
)
from geothermal.ids import SteamID, AccountType, Universe, pack, unpack, user_id, group_id
from geothermal.models.auth import LoginAttempt, LoginState
from geothermal.models.chat import (
    MessageType,
    SaytextMessage,
    TypingMessage,
    PersonastateMessage,
    LeftconversationMessage,
    UnrecognizedMessage,
)

__version__ = "0.1.0"
__all__ = [
    "SteamClient",
    "AsyncSteamClient",
    "Auth",
    "Chat",
    "ChatSession",
    "GeothermalError",
    "HttpStatusError",
    "DecodeError",
    "AuthError",
    "KeyFetchFailed",
    "EncryptionFailed",
    "NoSessionToken",
    "LoginFailed",
    "ChatError",
    "NoAuthToken",
    "ChatStatusError",
    "ConnectionError",
    "SteamID",
    "AccountType",
    "Universe",
    "pack",
    "unpack",
    "user_id",
    "group_id",
    "LoginAttempt",
    "LoginState",
    "MessageType",
    "SaytextMessage",
    "TypingMessage",
    "PersonastateMessage",
    "LeftconversationMessage",
    "UnrecognizedMessage",
]
