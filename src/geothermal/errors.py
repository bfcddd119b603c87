"""
Geothermal error types.

Transport failures (httpx.TransportError and friends) are never wrapped and
reach the caller unchanged. Everything raised by the library itself derives
from GeothermalError and carries a stable ``code``.
"""

from typing import Any, Optional


class GeothermalError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class HttpStatusError(GeothermalError):
    def __init__(self, status_code: int, message: str):
        super().__init__("http_error", message, {"status_code": status_code})
        self.status_code = status_code


class DecodeError(GeothermalError):
    """A response body was not in the expected format."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("decode_error", message, details)


class AuthError(GeothermalError):
    def __init__(self, message: str, code: str = "auth_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class KeyFetchFailed(AuthError):
    def __init__(self, message: str = "getrsakey returned failure"):
        super().__init__(message, code="key_fetch_failed")


class EncryptionFailed(AuthError):
    def __init__(self, message: str):
        super().__init__(message, code="encryption_failed")


class NoSessionToken(AuthError):
    def __init__(self, message: str = "could not get sessionid, ensure logged in"):
        super().__init__(message, code="no_session_token")


class LoginFailed(AuthError):
    def __init__(self, message: str = "failure with no CAPTCHA or SteamGuard to complete, verify username & password",
                 server_message: str = ""):
        super().__init__(message, code="login_failed", details={"server_message": server_message})
        self.server_message = server_message


class ChatError(GeothermalError):
    def __init__(self, message: str, code: str = "chat_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class NoAuthToken(ChatError):
    def __init__(self):
        super().__init__(
            "steam chat: could not retrieve chat auth token, the format may have changed or you may not be logged in",
            code="no_auth_token",
        )


class ChatStatusError(ChatError):
    """The messaging API answered with an ``error`` field other than ``OK``."""

    def __init__(self, status: str):
        super().__init__(f"steam chat: {status}", code="chat_status", details={"status": status})
        self.status = status


class ConnectionError(GeothermalError):
    def __init__(self, message: str):
        super().__init__("connection_error", message)
