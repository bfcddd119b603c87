"""
Session serialization: cookie jar <-> JSON list of cookie records.
"""

from http.cookiejar import Cookie

from pydantic import ValidationError

from geothermal.errors import DecodeError
from geothermal.models.session import CookieRecord, SessionCookies
from geothermal.transport.http import HttpClient, in_community_domain


def _http_only(c: Cookie) -> bool:
    # the jar keeps the server's spelling of nonstandard attributes
    return any(k.lower() == "httponly" for k in getattr(c, "_rest", {}))


def dump_cookies(http: HttpClient) -> list[CookieRecord]:
    """Cookies scoped to the community domain, in jar order."""
    records = []
    for c in http.cookies.jar:
        if not in_community_domain(c.domain) or c.value is None:
            continue
        records.append(CookieRecord(
            name=c.name,
            value=c.value,
            domain=c.domain,
            path=c.path or "/",
            secure=bool(c.secure),
            http_only=_http_only(c),
            expires=c.expires,
        ))
    return records


def load_cookies(http: HttpClient, records: list[CookieRecord]) -> None:
    """Seed the jar from previously dumped records. Out-of-scope domains are ignored."""
    jar = http.cookies.jar
    for r in records:
        if not in_community_domain(r.domain):
            continue
        jar.set_cookie(Cookie(
            version=0,
            name=r.name,
            value=r.value,
            port=None,
            port_specified=False,
            domain=r.domain,
            domain_specified=r.domain.startswith("."),
            domain_initial_dot=r.domain.startswith("."),
            path=r.path,
            path_specified=True,
            secure=r.secure,
            expires=r.expires,
            discard=r.expires is None,
            comment=None,
            comment_url=None,
            rest={"HttpOnly": None} if r.http_only else {},
        ))


def dumps_session(http: HttpClient) -> str:
    return SessionCookies.dump_json(dump_cookies(http), indent=2).decode()


def loads_session(http: HttpClient, raw: str) -> list[CookieRecord]:
    """Restore cookies from a JSON session document. Returns the parsed records."""
    try:
        records = SessionCookies.validate_json(raw)
    except ValidationError as e:
        raise DecodeError(f"invalid session document: {e}")
    load_cookies(http, records)
    return records
