"""
Serialized session — the community cookies and nothing else.

The document is a bare JSON list of cookie records.
"""

from typing import Optional
from pydantic import BaseModel, TypeAdapter


class CookieRecord(BaseModel):
    name: str
    value: str
    domain: str
    path: str = "/"
    secure: bool = False
    http_only: bool = False
    expires: Optional[int] = None  # unix seconds; None for session cookies


SessionCookies = TypeAdapter(list[CookieRecord])
