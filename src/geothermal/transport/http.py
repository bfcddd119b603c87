"""
Cookie-bearing HTTP client shared by the auth and chat layers.

Every request goes through one httpx.AsyncClient so cookies set by the
community site (sessionid, steamLogin...) persist across calls.
"""

import logging
from typing import Any, Optional, Union
from urllib.parse import unquote, urlsplit

import httpx

from geothermal.errors import DecodeError, HttpStatusError, NoSessionToken

logger = logging.getLogger(__name__)

COMMUNITY_URL = "https://steamcommunity.com"
API_URL = "https://api.steampowered.com"

# Parsed once; the cookie scope for session serialization and the session token.
COMMUNITY_HOST = urlsplit(COMMUNITY_URL).hostname or "steamcommunity.com"

SESSION_COOKIE = "sessionid"
DEFAULT_TIMEOUT_S = 30.0
DEFAULT_USER_AGENT = "geothermal/0.1.0"


def in_community_domain(domain: str) -> bool:
    domain = domain.lstrip(".").lower()
    return domain == COMMUNITY_HOST or domain.endswith("." + COMMUNITY_HOST)


class HttpClient:
    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self._client = httpx.AsyncClient(
            headers={"User-Agent": user_agent},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    @property
    def session_id(self) -> Optional[str]:
        """The community session token, read from the cookie jar on every access."""
        for cookie in self._client.cookies.jar:
            if cookie.name == SESSION_COOKIE and in_community_domain(cookie.domain) and cookie.value is not None:
                return unquote(cookie.value)
        return None

    async def ensure_session_id(self) -> str:
        """Return the session token, fetching the community root once to get the cookie set if needed."""
        sid = self.session_id
        if sid is None:
            logger.debug("no %s cookie yet, priming from %s", SESSION_COOKIE, COMMUNITY_URL)
            await self.get(COMMUNITY_URL)
            sid = self.session_id
        if sid is None:
            raise NoSessionToken()
        return sid

    @staticmethod
    def _check(resp: httpx.Response) -> httpx.Response:
        if resp.status_code >= 400:
            raise HttpStatusError(resp.status_code, f"HTTP {resp.status_code}: {resp.text[:200]}")
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(f"invalid JSON from {resp.request.url}: {e}", {"body": resp.text[:200]})

    async def get(self, url: str, params: Optional[dict[str, str]] = None) -> httpx.Response:
        logger.debug("GET %s", url)
        return self._check(await self._client.get(url, params=params))

    async def get_text(self, url: str, params: Optional[dict[str, str]] = None) -> str:
        return (await self.get(url, params=params)).text

    async def post(
        self,
        url: str,
        data: dict[str, Union[str, int]],
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        logger.debug("POST %s", url)
        form = {k: str(v) for k, v in data.items()}
        if timeout is None:
            resp = await self._client.post(url, data=form)
        else:
            resp = await self._client.post(url, data=form, timeout=timeout)
        return self._check(resp)

    async def post_form(
        self,
        url: str,
        data: dict[str, Union[str, int]],
        timeout: Optional[float] = None,
    ) -> Any:
        """POST form-encoded ``data`` and decode the JSON reply."""
        return self._json(await self.post(url, data, timeout=timeout))

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
