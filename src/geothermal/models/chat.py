"""
Web chat models — ISteamWebUserPresenceOAuth Logon / Poll / Message responses
and the decoded message variants.
"""

from enum import Enum
from typing import Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from geothermal.ids import SteamID, user_id

STATUS_OK = "OK"


class PresenceLogonResponse(BaseModel):
    steamid: int = 0
    error: str = ""
    umqid: str = ""
    timestamp: int = 0
    utc_timestamp: int = 0
    message: int = 0
    push: int = 0


class PollResponse(BaseModel):
    error: str = ""
    messages: list[Any] = Field(default_factory=list)
    # absent on "Timeout" replies
    messagelast: Optional[int] = None
    pollid: Optional[int] = None


class StatusResponse(BaseModel):
    error: str = ""


class MessageType(str, Enum):
    SAYTEXT = "saytext"
    MY_SAYTEXT = "my_saytext"  # echo of a message this account sent
    TYPING = "typing"
    PERSONASTATE = "personastate"
    LEFTCONVERSATION = "leftconversation"


class BaseMessage(BaseModel):
    """Fields every poll entry carries."""

    model_config = ConfigDict(frozen=True)

    type: str
    timestamp: int = 0
    utc_timestamp: int = 0
    accountid_from: int = 0

    @property
    def steamid_from(self) -> SteamID:
        return user_id(self.accountid_from)


class SaytextMessage(BaseMessage):
    text: str = ""
    is_self: bool = False


class TypingMessage(BaseMessage):
    pass


class PersonastateMessage(BaseMessage):
    persona_name: str = ""
    persona_state: int = 0


class LeftconversationMessage(BaseMessage):
    pass


Message = Union[SaytextMessage, TypingMessage, PersonastateMessage, LeftconversationMessage]

MESSAGE_TYPES: dict[str, type[BaseMessage]] = {
    MessageType.SAYTEXT.value: SaytextMessage,
    MessageType.MY_SAYTEXT.value: SaytextMessage,
    MessageType.TYPING.value: TypingMessage,
    MessageType.PERSONASTATE.value: PersonastateMessage,
    MessageType.LEFTCONVERSATION.value: LeftconversationMessage,
}


class UnrecognizedMessage(BaseModel):
    """A poll entry whose type tag is not one of MessageType (or is missing)."""

    model_config = ConfigDict(frozen=True)

    type: Any = None
    raw: Any = None
