"""
Response decoding, error/warning extraction, and typed result shapes.

No I/O occurs here; all functions are pure transformations of bytes/dicts
to support easy unit testing.  Responses are decoded into explicit shapes
(:class:`LoginResult`, :class:`EditResult`, continuation dicts) and every
missing or wrongly-typed required field raises
:class:`~wikiclient.errors.DecodeError`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from .errors import (
    APIError,
    APIWarning,
    APIWarnings,
    CaptchaError,
    DecodeError,
    UnrecognizedResponseError,
    WikiClientError,
)


# ---------------------------------------------------------------------------
# Body decoding
# ---------------------------------------------------------------------------

def decode_body(body: bytes | str) -> dict:
    """
    Parse a raw response body as a JSON object.

    Args:
        body: Raw bytes (or text) returned by the API.

    Returns:
        The decoded top-level object.

    Raises:
        DecodeError: The body is not JSON, or not a JSON object.
    """
    try:
        decoded = json.loads(body)
    except ValueError as exc:
        raise DecodeError(f"invalid JSON in API response: {exc}") from exc

    if not isinstance(decoded, dict):
        raise DecodeError(
            f"expected a JSON object in API response, got {type(decoded).__name__}"
        )
    return decoded


def _require_str(obj: dict, key: str, where: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise DecodeError(f"'{where}.{key}' missing or not a string in API response")
    return value


def _require_object(obj: dict, key: str, where: str = "") -> dict:
    value = obj.get(key)
    if not isinstance(value, dict):
        path = f"{where}.{key}" if where else key
        raise DecodeError(f"'{path}' missing or not an object in API response")
    return value


# ---------------------------------------------------------------------------
# Errors and warnings
# ---------------------------------------------------------------------------

def extract_warnings(warnings: object) -> list[APIWarning]:
    """
    Flatten a ``warnings`` object into (module, info) pairs.

    Each module maps to ``{"*": info}`` (formatversion 1) or
    ``{"warnings": info}`` (formatversion 2).  One info string may hold
    several warnings separated by newlines; each becomes its own entry.

    Raises:
        DecodeError: The object does not have the shape described above.
    """
    if not isinstance(warnings, dict):
        raise DecodeError("'warnings' object in API response is malformed")

    found: list[APIWarning] = []
    for module, entry in warnings.items():
        info = None
        if isinstance(entry, dict):
            info = entry.get("warnings", entry.get("*"))
        if not isinstance(info, str):
            raise DecodeError(
                f"'warnings.{module}' object in API response is malformed"
            )
        found.extend(APIWarning(module, line) for line in info.split("\n"))
    return found


def extract_api_errors(resp: dict) -> WikiClientError | None:
    """
    Find the failure reported in a decoded response, if any.

    An ``error`` object takes precedence; warnings are only inspected when
    there is no error.

    Args:
        resp: Decoded API response.

    Returns:
        An :class:`APIError`, an :class:`APIWarnings`, or ``None`` when the
        response reports neither.

    Raises:
        DecodeError: The ``error`` or ``warnings`` object is malformed.
    """
    if "error" in resp:
        error = resp["error"]
        if not isinstance(error, dict):
            raise DecodeError("'error' object in API response is malformed")
        code = _require_str(error, "code", "error")
        info = _require_str(error, "info", "error")
        return APIError(code, info, response=resp)

    if "warnings" in resp:
        return APIWarnings(extract_warnings(resp["warnings"]), response=resp)

    return None


# ---------------------------------------------------------------------------
# Continuation
# ---------------------------------------------------------------------------

def parse_continuation(resp: dict) -> dict[str, str] | None:
    """
    Return the ``continue`` object of a query response.

    Returns:
        The continuation parameters, or ``None`` when the response has no
        ``continue`` key (the query is complete).

    Raises:
        DecodeError: ``continue`` is not an object of string values.
    """
    if "continue" not in resp:
        return None

    cont = resp["continue"]
    if not isinstance(cont, dict):
        raise DecodeError("response processing error: 'continue' is not an object")
    for key, value in cont.items():
        if not isinstance(value, str):
            raise DecodeError(
                f"response processing error: 'continue.{key}' is not a string"
            )
    return dict(cont)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

def parse_token(resp: dict, token_name: str) -> str:
    """
    Extract ``query.tokens.<name>token`` from a ``meta=tokens`` response.

    Raises:
        DecodeError: The token is missing or not a string.
    """
    query = _require_object(resp, "query")
    tokens = _require_object(query, "tokens", "query")
    return _require_str(tokens, f"{token_name}token", "query.tokens")


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LoginResult:
    """Decoded ``login`` object of an ``action=login`` response."""

    SUCCESS = "Success"
    NEED_TOKEN = "NeedToken"

    result: str
    token: str | None = None
    reason: str | None = None
    username: str | None = None
    userid: int | None = None


def parse_login(resp: dict) -> LoginResult:
    """
    Decode the ``login`` object of a login response.

    Raises:
        DecodeError: ``login`` or ``login.result`` is missing or mistyped,
                     or a ``NeedToken`` reply carries no token.
    """
    login = _require_object(resp, "login")
    result = _require_str(login, "result", "login")

    token = login.get("token")
    if result == LoginResult.NEED_TOKEN and not isinstance(token, str):
        raise DecodeError("'login.token' missing from NeedToken response")

    reason = login.get("reason")
    return LoginResult(
        result=result,
        token=token,
        reason=reason if isinstance(reason, str) else None,
        username=login.get("lgusername"),
        userid=login.get("lguserid"),
    )


# ---------------------------------------------------------------------------
# Edit
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EditResult:
    """
    Decoded ``edit`` object of a successful ``action=edit`` response.

    :attr:`nochange` is true when the edit succeeded but left the page text
    identical; check :attr:`changed` to tell the two apart.
    """

    nochange: bool = False
    pageid: int | None = None
    title: str | None = None
    oldrevid: int | None = None
    newrevid: int | None = None
    newtimestamp: str | None = None
    raw: dict = field(default_factory=dict, repr=False)

    @property
    def changed(self) -> bool:
        return not self.nochange


def parse_captcha(captcha: dict) -> CaptchaError:
    """
    Build a :class:`CaptchaError` from an ``edit.captcha`` object.

    A ``question`` field marks a math-style challenge (reported without a
    URL); otherwise a ``url`` field marks an image-style challenge
    (reported without a question).

    Raises:
        DecodeError: The object has neither a question nor a URL.
    """
    common = {
        "type": str(captcha.get("type", "")),
        "mime": str(captcha.get("mime", "")),
        "id": str(captcha.get("id", "")),
    }
    if isinstance(captcha.get("question"), str):
        return CaptchaError(**common, question=captcha["question"])
    if isinstance(captcha.get("url"), str):
        return CaptchaError(**common, url=captcha["url"])
    raise DecodeError("'edit.captcha' has neither a question nor a url")


def parse_edit(resp: dict) -> EditResult:
    """
    Decode an ``action=edit`` response.

    Args:
        resp: Decoded API response (already checked for errors/warnings).

    Returns:
        :class:`EditResult` for a ``Success`` result.

    Raises:
        DecodeError: ``edit.result`` is missing or not a string.
        CaptchaError: The edit was refused pending a CAPTCHA.
        UnrecognizedResponseError: Any other non-``Success`` result.
    """
    edit = _require_object(resp, "edit")
    result = _require_str(edit, "result", "edit")

    if result != "Success":
        if isinstance(edit.get("captcha"), dict):
            raise parse_captcha(edit["captcha"])
        raise UnrecognizedResponseError(f"unrecognized edit response: {edit}")

    # formatversion=2 sends true; formatversion=1 sends an empty string
    nochange = "nochange" in edit and edit["nochange"] is not False
    return EditResult(
        nochange=nochange,
        pageid=edit.get("pageid"),
        title=edit.get("title"),
        oldrevid=edit.get("oldrevid"),
        newrevid=edit.get("newrevid"),
        newtimestamp=edit.get("newtimestamp"),
        raw=edit,
    )
