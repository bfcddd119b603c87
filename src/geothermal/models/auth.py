"""
Login models — /login/getrsakey and /login/dologin responses, plus the
in-progress LoginAttempt state.
"""

import base64
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, PrivateAttr, field_validator

from geothermal.transport.http import COMMUNITY_URL

CAPTCHA_URL = COMMUNITY_URL + "/public/captcha.php"


class RSAKeyResponse(BaseModel):
    success: bool = False
    publickey_mod: str = ""
    publickey_exp: str = ""
    timestamp: str = ""


class TransferParameters(BaseModel):
    steamid: Optional[str] = None
    token: Optional[str] = None


class LoginResponse(BaseModel):
    success: bool = False
    login_complete: bool = False
    captcha_needed: bool = False
    captcha_gid: str = ""
    emailauth_needed: bool = False
    emaildomain: str = ""
    emailsteamid: str = ""
    message: str = ""
    transfer_parameters: Optional[TransferParameters] = None

    @field_validator("captcha_gid", "emailsteamid", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> str:
        # the server sends captcha_gid as -1 (a number) when no captcha is pending
        return "" if v is None else str(v)


class LoginState(str, Enum):
    KEY_FETCH = "key_fetch"
    ENCRYPT = "encrypt"
    SUBMITTED = "submitted"
    NEEDS_CAPTCHA = "needs_captcha"
    NEEDS_SECOND_FACTOR = "needs_second_factor"
    NEEDS_BOTH = "needs_both"
    COMPLETE = "complete"
    FAILED = "failed"


class LoginAttempt(BaseModel):
    """A complete or incomplete login.

    If ``complete`` is False more input is needed: when ``captcha`` is set, put
    the solution for the image at ``captcha_url`` in ``captcha_solution``; when
    ``second_factor`` is set, put the emailed SteamGuard code in
    ``second_factor_code``. Then call ``Auth.attempt`` again.
    """

    username: str
    complete: bool = False
    message: str = ""

    captcha: str = ""
    captcha_solution: str = ""

    second_factor: bool = False
    second_factor_code: str = ""
    email_domain: str = ""
    # SteamGuard records this computer under this name
    computer_name: str = ""

    failed: bool = False

    _encrypted_password: bytes = PrivateAttr(default=b"")
    _rsa_timestamp: str = PrivateAttr(default="")

    @classmethod
    def start(cls, username: str, encrypted_password: bytes, rsa_timestamp: str) -> "LoginAttempt":
        attempt = cls(username=username)
        attempt._encrypted_password = encrypted_password
        attempt._rsa_timestamp = rsa_timestamp
        return attempt

    @property
    def encrypted_password(self) -> bytes:
        return self._encrypted_password

    @property
    def rsa_timestamp(self) -> str:
        return self._rsa_timestamp

    @property
    def captcha_url(self) -> str:
        return f"{CAPTCHA_URL}?gid={self.captcha}"

    @property
    def needs_input(self) -> bool:
        return bool(self.captcha) or self.second_factor

    @property
    def state(self) -> LoginState:
        if self.complete:
            return LoginState.COMPLETE
        if self.failed:
            return LoginState.FAILED
        if self.captcha and self.second_factor:
            return LoginState.NEEDS_BOTH
        if self.captcha:
            return LoginState.NEEDS_CAPTCHA
        if self.second_factor:
            return LoginState.NEEDS_SECOND_FACTOR
        return LoginState.SUBMITTED

    def apply(self, rsp: LoginResponse) -> None:
        """Fold one dologin response into this attempt."""
        self.complete = rsp.login_complete
        if rsp.captcha_needed:
            if rsp.captcha_gid != self.captcha:
                self.captcha_solution = ""
            self.captcha = rsp.captcha_gid
        else:
            self.captcha = ""
            self.captcha_solution = ""
        self.second_factor = rsp.emailauth_needed
        self.email_domain = rsp.emaildomain
        self.message = rsp.message
        self.failed = not self.complete and not self.needs_input

    def form(self) -> dict[str, str]:
        return {
            "username": self.username,
            "password": base64.b64encode(self._encrypted_password).decode("ascii"),
            "emailauth": self.second_factor_code,
            "loginfriendlyname": self.computer_name,
            "captchaGID": self.captcha,
            "captcha_text": self.captcha_solution,
            "rsatimestamp": self._rsa_timestamp,
            "remember_login": "false",
        }
