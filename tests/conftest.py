"""
Shared pytest fixtures for the wikiclient tests.

No test touches the network: :class:`FakeWiki` replaces
``requests.Session.send`` on the client's session, records every prepared
request, and answers with real :class:`requests.Response` objects built by
:func:`make_response`.  The rest of the requests machinery (request
preparation, cookie attachment) runs for real.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Callable
from unittest.mock import patch
from urllib.parse import parse_qsl, urlsplit

import pytest
import requests

from wikiclient import Client, Maxlag

API_URL = "https://wiki.example.org/w/api.php"
USER_AGENT = "wikiclient test"


def no_sleep(seconds: float) -> None:
    """Stand-in for time.sleep; the maxlag tests must not wait."""


# ---------------------------------------------------------------------------
# Response builder
# ---------------------------------------------------------------------------

def make_response(
    body: str | bytes = "{}",
    status: int = 200,
    headers: dict | None = None,
    cookies: dict | None = None,
) -> requests.Response:
    """Build a real requests.Response with the given body, headers and cookies."""
    resp = requests.Response()
    resp.status_code = status
    resp._content = body.encode("utf-8") if isinstance(body, str) else body
    resp.encoding = "utf-8"
    resp.headers.update(headers or {})
    for name, value in (cookies or {}).items():
        resp.cookies.set(name, value)
    return resp


def lagged_response(retry_after: str = "1") -> requests.Response:
    """Response the server sends when replication lag exceeds maxlag."""
    return make_response(
        '{"error":{"code":"maxlag","info":"Waiting for db1: 7 seconds lagged"}}',
        headers={"X-Database-Lag": "7", "Retry-After": retry_after},
    )


# ---------------------------------------------------------------------------
# Fake server
# ---------------------------------------------------------------------------

@dataclass
class RecordedRequest:
    """One request as the server would have seen it."""

    method: str
    url: str
    raw: str                     # encoded query string (GET) or body (POST)
    params: dict[str, str]
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def cookie_header(self) -> str:
        return self.headers.get("Cookie", "")

    @classmethod
    def from_prepared(cls, prepared: requests.PreparedRequest) -> "RecordedRequest":
        if prepared.method == "GET":
            raw = urlsplit(prepared.url).query
        else:
            raw = prepared.body or ""
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
        return cls(
            method=prepared.method,
            url=prepared.url,
            raw=raw,
            params=dict(parse_qsl(raw, keep_blank_values=True)),
            headers=dict(prepared.headers),
        )


class FakeWiki:
    """
    Scripted stand-in for the remote API.

    Either set :attr:`handler` (called with each :class:`RecordedRequest`,
    returning a response or a body string) or queue responses in order with
    :meth:`reply`.
    """

    def __init__(self):
        self.handler: Callable[[RecordedRequest], requests.Response | str] | None = None
        self.queued: deque = deque()
        self.requests: list[RecordedRequest] = []

    def reply(self, *responses: requests.Response | str | Exception) -> None:
        self.queued.extend(responses)

    def send(self, prepared: requests.PreparedRequest, **kwargs) -> requests.Response:
        request = RecordedRequest.from_prepared(prepared)
        self.requests.append(request)

        if self.handler is not None:
            result = self.handler(request)
        elif self.queued:
            result = self.queued.popleft()
        else:
            raise AssertionError(f"unexpected request: {request.method} {request.raw}")

        if isinstance(result, Exception):
            raise result
        if isinstance(result, str):
            result = make_response(result)
        return result

    @property
    def last(self) -> RecordedRequest:
        return self.requests[-1]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def client() -> Client:
    """Client with maxlag off and a no-op sleep."""
    return Client(API_URL, USER_AGENT, maxlag=Maxlag(sleep=no_sleep))


@pytest.fixture
def wiki(client):
    """FakeWiki wired into ``client``'s session."""
    fake = FakeWiki()
    with patch.object(client.session, "send", side_effect=fake.send):
        yield fake
