"""
The API client: the single path every request takes.

Design notes:
- :meth:`Client.get` / :meth:`Client.post` copy the caller's parameters,
  add ``format``/``formatversion``/``assert``, and hand them to the maxlag
  retry loop, which encodes and sends them.  The caller's map is never
  modified.
- Errors and warnings found in a decoded response are raised as
  :class:`~wikiclient.errors.APIError` /
  :class:`~wikiclient.errors.APIWarnings`; the ``*_raw`` variants skip
  decoding and return the body bytes.
- Login negotiates its token in at most two POSTs.
"""

from __future__ import annotations

import logging
from http.cookiejar import Cookie
from typing import IO, Iterable
from urllib.parse import urlsplit

import requests

from . import pages
from .config import (
    CSRF_TOKEN,
    DEFAULT_FORMAT_VERSION,
    DEFAULT_USER_AGENT,
    LOGIN_TOKEN,
    REQUEST_TIMEOUT_SECONDS,
    RESPONSE_FORMAT,
    AssertLevel,
    ClientSettings,
)
from .errors import APIError, APIWarnings, ProtocolError
from .params import Values, encode_values
from .parser import (
    EditResult,
    LoginResult,
    decode_body,
    extract_api_errors,
    parse_edit,
    parse_login,
    parse_token,
)
from .query import Query
from .retry import Maxlag, call_with_maxlag
from .transport import send_request

log = logging.getLogger(__name__)


class Client:
    """
    Client for one wiki's API.

    Example::

        wiki = Client("https://wiki.example.com/w/api.php", "MyBot/1.0 (me@example.org)")
        resp = wiki.get(Values({"action": "query", "list": "recentchanges"}))

    Args:
        api_url: Full URL of the wiki's api.php.
        user_agent: Tool-specific user agent; the library's own identifier is
                    appended to it.
        session: Pre-configured :class:`requests.Session` (e.g. one with an
                 OAuth ``auth`` attached).  A new one is created if omitted.
        timeout: HTTP connect/read timeout in seconds.
        maxlag: Maxlag policy; off by default.
        assert_level: One of :class:`~wikiclient.config.AssertLevel`.
        format_version: ``formatversion`` sent with every request, or
                        ``None`` to omit it.
        debug: Optional text sink receiving a dump of every request and raw
               response.

    Raises:
        ValueError: The URL is not absolute, the user agent is blank, or the
                    assertion level is unknown.
    """

    def __init__(
        self,
        api_url: str,
        user_agent: str,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        maxlag: Maxlag | None = None,
        assert_level: str = AssertLevel.NONE,
        format_version: str | None = DEFAULT_FORMAT_VERSION,
        debug: IO[str] | None = None,
    ):
        parts = urlsplit(api_url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"API URL must be absolute, got '{api_url}'.")
        if not user_agent or not user_agent.strip():
            raise ValueError("user_agent parameter empty")
        if assert_level not in AssertLevel.ALL:
            raise ValueError(f"Unknown assertion level '{assert_level}'.")

        self.api_url = api_url
        self.user_agent = f"{user_agent} ({DEFAULT_USER_AGENT})"
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.maxlag = maxlag if maxlag is not None else Maxlag()
        self.assert_level = assert_level
        self.format_version = format_version
        self.debug = debug
        self.tokens: dict[str, str] = {}

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs) -> "Client":
        """Construct a client from :class:`~wikiclient.config.ClientSettings`."""
        maxlag = Maxlag(
            on=settings.maxlag_on,
            timeout=settings.maxlag_timeout,
            retries=settings.maxlag_retries,
        )
        return cls(
            settings.api_url,
            settings.user_agent,
            timeout=settings.timeout,
            maxlag=maxlag,
            assert_level=settings.assert_level,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"Client(api_url={self.api_url!r})"

    # -----------------------------------------------------------------------
    # Core request path
    # -----------------------------------------------------------------------

    def _with_defaults(self, params: Values | dict | None) -> Values:
        p = Values(params or {})
        p.set("format", RESPONSE_FORMAT)
        if self.format_version is not None:
            p.set("formatversion", self.format_version)
        if self.assert_level and p.get("assert") == "":
            p.set("assert", self.assert_level)
        return p

    def _call(self, params: Values | dict | None, post: bool) -> bytes:
        method = "POST" if post else "GET"

        def attempt(p: Values):
            return send_request(
                self.session,
                method,
                self.api_url,
                encode_values(p),
                self.user_agent,
                timeout=self.timeout,
                debug=self.debug,
            )

        outcome = call_with_maxlag(attempt, self._with_defaults(params), self.maxlag)
        return outcome.unwrap()

    def _call_json(self, params: Values | dict | None, post: bool) -> dict:
        resp = decode_body(self._call(params, post))
        failure = extract_api_errors(resp)
        if failure is not None:
            raise failure
        return resp

    def get(self, params: Values | dict | None) -> dict:
        """
        Perform a GET request and return the decoded response.

        Raises:
            TransportError: The HTTP round trip failed.
            APIBusyError: Maxlag is on and every attempt was lagged.
            APILaggedError: Maxlag is off and the server refused the request
                            for lag (the caller set ``maxlag`` itself).
            DecodeError: The response is not valid JSON.
            APIError: The API reported an error.
            APIWarnings: The API reported warnings (response on ``exc.response``).
        """
        return self._call_json(params, post=False)

    def post(self, params: Values | dict | None) -> dict:
        """Perform a POST request and return the decoded response; see :meth:`get`."""
        return self._call_json(params, post=True)

    def get_raw(self, params: Values | dict | None) -> bytes:
        """
        Perform a GET request and return the raw response body.

        Unlike :meth:`get`, API errors and warnings are not checked.
        """
        return self._call(params, post=False)

    def post_raw(self, params: Values | dict | None) -> bytes:
        """Perform a POST request and return the raw response body; see :meth:`get_raw`."""
        return self._call(params, post=True)

    def new_query(self, params: Values | dict | None = None) -> Query:
        """Start a continued ``action=query``; see :class:`~wikiclient.query.Query`."""
        return Query(self, params)

    # -----------------------------------------------------------------------
    # Session
    # -----------------------------------------------------------------------

    def _login_attempt(self, username: str, password: str, token: str | None = None) -> LoginResult:
        p = Values({"action": "login", "lgname": username, "lgpassword": password})
        if token is not None:
            p.set("lgtoken", token)

        try:
            resp = self.post(p)
        except APIWarnings as exc:
            # action=login is deprecated on newer servers and says so in a
            # warning; the login itself is still processed.
            log.warning("Login returned %s", exc)
            resp = exc.response
        return parse_login(resp)

    def login(self, username: str, password: str) -> LoginResult:
        """
        Log in with a username and password.

        If the server replies ``NeedToken``, the request is repeated once with
        the token it supplied.

        Returns:
            The decoded ``Success`` reply.

        Raises:
            APIError: The server rejected the login; ``code`` is its result
                      (e.g. ``'WrongPass'``, ``'NotExists'``).
            ProtocolError: The server asked for a token a second time.
        """
        reply = self._login_attempt(username, password)

        if reply.result == LoginResult.NEED_TOKEN:
            reply = self._login_attempt(username, password, token=reply.token)
            if reply.result == LoginResult.NEED_TOKEN:
                raise ProtocolError(
                    "server asked for a login token again after one was supplied"
                )

        if reply.result != LoginResult.SUCCESS:
            log.warning("Login as %s failed: %s", username, reply.result)
            raise APIError(reply.result, reply.reason or "")

        log.info("Logged in as %s", reply.username or username)
        return reply

    def logout(self) -> None:
        """
        Log out and clear the token cache.

        Does not check whether a user is actually logged in.
        """
        token = self.get_token(CSRF_TOKEN)
        self.post(Values({"action": "logout", "token": token}))
        self.tokens.clear()

    def get_token(self, token_name: str) -> str:
        """
        Return a token, fetching it from the API if it is not cached.

        ``token_name`` is the bare type (``'csrf'``), not ``'csrftoken'``.
        Login tokens are always fetched fresh and never cached.

        Raises:
            DecodeError: The response does not contain the token.
        """
        if token_name != LOGIN_TOKEN and token_name in self.tokens:
            return self.tokens[token_name]

        resp = self.get(Values({
            "action": "query",
            "meta": "tokens",
            "type": token_name,
            "continue": "",
        }))
        token = parse_token(resp, token_name)

        if token_name != LOGIN_TOKEN:
            self.tokens[token_name] = token
        return token

    def dump_cookies(self) -> list[Cookie]:
        """Export the cookies stored in the client."""
        return list(self.session.cookies)

    def load_cookies(self, cookies: Iterable[Cookie]) -> None:
        """Import cookies previously exported with :meth:`dump_cookies`."""
        for cookie in cookies:
            self.session.cookies.set_cookie(cookie)

    # -----------------------------------------------------------------------
    # Actions
    # -----------------------------------------------------------------------

    def edit(self, params: Values | dict) -> EditResult:
        """
        Perform an edit.

        ``action`` is set automatically, and so is ``token`` unless the caller
        supplied one.  Parameters are otherwise passed through unchecked; see
        https://www.mediawiki.org/wiki/API:Edit#Parameters

        Returns:
            :class:`~wikiclient.parser.EditResult`; ``result.changed`` is
            false when the edit succeeded but left the page unchanged.

        Raises:
            CaptchaError: The edit requires solving a CAPTCHA.
            UnrecognizedResponseError: The edit failed for another reason.
        """
        p = Values(params)
        if p.get("token") == "":
            p.set("token", self.get_token(CSRF_TOKEN))
        p.set("action", "edit")

        return parse_edit(self.post(p))

    def get_page_by_name(self, page_name: str) -> tuple[str, str]:
        """Return (content, timestamp) of a page's latest revision, by title."""
        return pages.get_page(self, page_name, is_name=True)

    def get_page_by_id(self, page_id: str) -> tuple[str, str]:
        """Return (content, timestamp) of a page's latest revision, by page ID."""
        return pages.get_page(self, page_id, is_name=False)

    def get_pages_by_name(self, *page_names: str) -> dict[str, pages.BriefRevision]:
        """Fetch several pages by title; results are keyed by the given titles."""
        return pages.get_pages(self, True, *page_names)

    def get_pages_by_id(self, *page_ids: str) -> dict[str, pages.BriefRevision]:
        """Fetch several pages by page ID; results are keyed by ID."""
        return pages.get_pages(self, False, *page_ids)
