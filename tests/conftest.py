"""Shared fakes: an in-process Steam served through httpx.MockTransport."""

from typing import Any, Callable, Union
from urllib.parse import parse_qsl

import httpx
import pytest

from geothermal.transport.http import HttpClient

Handler = Callable[[httpx.Request], httpx.Response]


def form(request: httpx.Request) -> dict[str, str]:
    return dict(parse_qsl(request.content.decode(), keep_blank_values=True))


def json_response(body: Any, cookies: tuple[str, ...] = ()) -> httpx.Response:
    return httpx.Response(200, json=body, headers=[("set-cookie", c) for c in cookies])


class FakeSteam:
    """Routes requests by method + URL (no query) to queued responses or handlers."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[Union[httpx.Response, Handler]]] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, url: str, *responses: Union[httpx.Response, Handler]) -> None:
        self.routes.setdefault((method, url), []).extend(responses)

    def calls(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if _key(r)[1] == url]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get(_key(request))
        if not queue:
            return httpx.Response(404, text=f"no route for {request.method} {request.url}")
        # the last entry answers every further call
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(item):
            return item(request)
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def _key(request: httpx.Request) -> tuple[str, str]:
    url = request.url
    return request.method, f"{url.scheme}://{url.host}{url.path}"


@pytest.fixture
def steam() -> FakeSteam:
    return FakeSteam()


@pytest.fixture
def http(steam: FakeSteam) -> HttpClient:
    return HttpClient(transport=steam.transport)
