"""
Request construction and single HTTP round trips.

Each call to :func:`send_request` performs exactly one GET or POST against
the API URL and classifies what came back as a :class:`CallOutcome`.  No
retrying happens here; see :mod:`wikiclient.retry`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import IO

import requests

from .config import (
    FORM_CONTENT_TYPE,
    LAG_HEADER,
    REQUEST_TIMEOUT_SECONDS,
    RETRY_AFTER_HEADER,
)
from .errors import APILaggedError, TransportError

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Outcome classification
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CallOutcome:
    """
    Result of one transport attempt.

    Exactly one of three kinds:

    - ``SUCCESS``: :attr:`body` holds the raw response bytes.
    - ``LAGGED``: the server refused because of replication lag;
      :attr:`message` holds the body text and :attr:`wait` the seconds the
      server asked us to wait.
    - ``FAILED``: :attr:`error` holds the :class:`TransportError`.
    """

    SUCCESS = "success"
    LAGGED = "lagged"
    FAILED = "failed"

    kind: str
    body: bytes = b""
    message: str = ""
    wait: int = 0
    error: TransportError | None = None

    @classmethod
    def success(cls, body: bytes) -> "CallOutcome":
        return cls(kind=cls.SUCCESS, body=body)

    @classmethod
    def lagged(cls, message: str, wait: int) -> "CallOutcome":
        return cls(kind=cls.LAGGED, message=message, wait=wait)

    @classmethod
    def failed(cls, error: TransportError) -> "CallOutcome":
        return cls(kind=cls.FAILED, error=error)

    @property
    def is_lagged(self) -> bool:
        return self.kind == self.LAGGED

    def unwrap(self) -> bytes:
        """
        Return the body of a successful outcome.

        Raises:
            TransportError: The outcome is ``FAILED``.
            APILaggedError: The outcome is ``LAGGED``; reached only when the
                            maxlag retry loop is off.
        """
        if self.kind == self.SUCCESS:
            return self.body
        if self.kind == self.FAILED:
            raise self.error
        raise APILaggedError(self.message.strip(), self.wait)


def parse_retry_after(value: str | None) -> int:
    """
    Parse a ``Retry-After`` header into whole seconds.

    Args:
        value: Raw header value, or ``None`` if the header is absent.

    Returns:
        The number of seconds, or 0 when the value is missing or not an
        integer.
    """
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


# ---------------------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------------------

def build_request(
    method: str,
    api_url: str,
    encoded: str,
    user_agent: str,
) -> requests.Request:
    """
    Construct a GET or POST request for the API.

    GET requests carry ``encoded`` in the query string; POST requests carry
    it as a form-encoded body.

    Args:
        method: ``'GET'`` or ``'POST'``.
        api_url: URL of the wiki's api.php.
        encoded: Parameters already encoded by :meth:`Values.encode`.
        user_agent: Value for the ``User-Agent`` header.

    Returns:
        An unprepared :class:`requests.Request`.

    Raises:
        ValueError: If ``method`` is neither GET nor POST.
    """
    headers = {"User-Agent": user_agent}

    if method == "GET":
        url = f"{api_url}?{encoded}" if encoded else api_url
        return requests.Request("GET", url, headers=headers)

    if method == "POST":
        headers["Content-Type"] = FORM_CONTENT_TYPE
        return requests.Request("POST", api_url, headers=headers, data=encoded)

    raise ValueError(f"Unsupported HTTP method '{method}'; expected GET or POST.")


def _dump(debug: IO[str], prepared: requests.PreparedRequest, response: requests.Response) -> None:
    body = prepared.body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    debug.write(f"{prepared.method} {prepared.url}\n")
    if body:
        debug.write(f"{body}\n")
    debug.write(f"--> HTTP {response.status_code}\n")
    debug.write(response.text)
    debug.write("\n\n")


# ---------------------------------------------------------------------------
# API call execution
# ---------------------------------------------------------------------------

def send_request(
    session: requests.Session,
    method: str,
    api_url: str,
    encoded: str,
    user_agent: str,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
    debug: IO[str] | None = None,
) -> CallOutcome:
    """
    Perform one HTTP round trip and classify the result.

    Cookies stored in ``session.cookies`` are attached to the request, and
    cookies set by the response are stored back into it before returning.

    Args:
        session: Session that owns the cookie store.
        method: ``'GET'`` or ``'POST'``.
        api_url: URL of the wiki's api.php.
        encoded: URL-encoded parameters.
        user_agent: Value for the ``User-Agent`` header.
        timeout: Connect/read timeout in seconds.
        debug: Optional text sink receiving a dump of request and response.

    Returns:
        A :class:`CallOutcome`; network failures are returned as ``FAILED``
        rather than raised.
    """
    prepared = session.prepare_request(
        build_request(method, api_url, encoded, user_agent)
    )
    log.debug("%s %s", method, prepared.url)

    start = time.monotonic()
    try:
        response = session.send(prepared, timeout=timeout)
        # Store any new cookies
        session.cookies.update(response.cookies)
        body = response.content
    except requests.RequestException as exc:
        log.warning("Error during %s to %s: %s", method, api_url, exc)
        error = TransportError(f"{method} {api_url} failed: {exc}")
        error.__cause__ = exc
        return CallOutcome.failed(error)
    latency = round(time.monotonic() - start, 3)

    log.debug("HTTP %s in %ss (%d bytes)", response.status_code, latency, len(body))
    if debug is not None:
        _dump(debug, prepared, response)

    if response.headers.get(LAG_HEADER):
        wait = parse_retry_after(response.headers.get(RETRY_AFTER_HEADER))
        return CallOutcome.lagged(body.decode("utf-8", errors="replace"), wait)

    return CallOutcome.success(body)
