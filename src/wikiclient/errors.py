"""
Exception hierarchy for wikiclient.

Every failure raised by the library derives from :class:`WikiClientError`.
The kinds never change on the way up: a :class:`DecodeError` stays a
:class:`DecodeError`, an :class:`APIError` stays an :class:`APIError`.

    WikiClientError
    ├── TransportError            network / DNS / IO failure
    ├── DecodeError               malformed JSON or response structure
    │   └── UnrecognizedResponseError
    ├── APIError                  server-reported error {code, info}
    ├── APIWarnings               server-reported warnings
    ├── CaptchaError              edit requires solving a CAPTCHA
    ├── APILaggedError            lag refusal with maxlag retries off
    ├── APIBusyError              maxlag retries exhausted
    ├── ProtocolError             server broke the expected exchange
    ├── PageNotFoundError         requested page does not exist
    └── NoArgsError               variadic call made without arguments
"""

from __future__ import annotations

from typing import NamedTuple


class WikiClientError(Exception):
    """Base class for all wikiclient errors."""


class TransportError(WikiClientError):
    """The HTTP round trip itself failed (DNS, connection, timeout, read)."""


class DecodeError(WikiClientError):
    """The response body was not valid JSON or lacked a required field."""


class UnrecognizedResponseError(DecodeError):
    """The response parsed, but its shape matched none of the known outcomes."""


class APIError(WikiClientError):
    """
    An ``error`` object returned by the API.

    Attributes:
        code: Machine-readable error code (e.g. ``'nouser'``).
        info: Human-readable description.
        response: Decoded response body the error was found in, if any.
    """

    def __init__(self, code: str, info: str, response: dict | None = None):
        super().__init__(f"{code}: {info}")
        self.code = code
        self.info = info
        self.response = response


class APIWarning(NamedTuple):
    """One warning: the module that raised it and its message."""

    module: str
    info: str


class APIWarnings(WikiClientError):
    """
    One or more warnings returned by the API.

    The request itself was processed, so :attr:`response` holds the full
    decoded body; callers that only care about the data may catch this and
    carry on with it.
    """

    def __init__(self, warnings: list[APIWarning], response: dict | None = None):
        self.warnings = list(warnings)
        self.response = response
        super().__init__(self._describe())

    def _describe(self) -> str:
        amount = len(self.warnings)
        head = "1 warning: " if amount == 1 else f"{amount} warnings: "
        return head + " ".join(f"[{w.module}: {w.info}]" for w in self.warnings)


class CaptchaError(WikiClientError):
    """
    The API requires a CAPTCHA to be solved before the edit is accepted.

    Image-style challenges carry a :attr:`url`; math-style challenges carry
    a :attr:`question`.  Exactly one of the two is set.
    """

    def __init__(
        self,
        type: str,
        mime: str,
        id: str,
        url: str | None = None,
        question: str | None = None,
    ):
        self.type = type
        self.mime = mime
        self.id = id
        self.url = url
        self.question = question
        where = f"question {question!r}" if question is not None else f"URL {url}"
        super().__init__(
            f"API requires solving a CAPTCHA of type {type} ({mime}) "
            f"with ID {id} at {where}"
        )


class APILaggedError(WikiClientError):
    """
    The server refused a request because of replication lag.

    Raised when the request carried ``maxlag`` but the client's maxlag
    retries are off, so nothing waited and retried.

    Attributes:
        message: The server's explanation (the response body).
        wait: Seconds the server asked the caller to wait (``Retry-After``).
    """

    def __init__(self, message: str, wait: int = 0):
        self.message = message
        self.wait = wait
        super().__init__(f"server is lagged (retry after {wait}s): {message}")


class APIBusyError(WikiClientError):
    """The server reported replication lag on every allowed attempt."""

    def __init__(self, retries: int):
        self.retries = retries
        super().__init__(
            f"the API is too busy; tried the request {retries} times unsuccessfully"
        )


class ProtocolError(WikiClientError):
    """The server replied in a way the exchange does not allow."""


class PageNotFoundError(WikiClientError):
    """A requested page does not exist."""


class NoArgsError(WikiClientError):
    """A call that takes a variable number of arguments received none."""
