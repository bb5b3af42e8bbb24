"""
wikiclient — client library for the MediaWiki action API.

Module layout
-------------
config.py     — defaults, wire constants, token names, ClientSettings
params.py     — Values parameter map, token-last URL/multipart encoding
transport.py  — request construction, single HTTP round trip, CallOutcome
retry.py      — Maxlag policy and bounded retry loop
parser.py     — JSON decoding, error/warning extraction, typed results
errors.py     — exception hierarchy
client.py     — Client: get/post, login/logout, tokens, edit, cookies
query.py      — Query continuation iterator
pages.py      — page content fetching

Public interface
----------------
Create a client and make requests:
    wiki = Client(api_url, user_agent)
    wiki.get(Values({...}))
    wiki.post(Values({...}))

Iterate over a continued query:
    q = wiki.new_query(Values({...}))
    for resp in q: ...
    q.err

Session and actions:
    wiki.login(username, password)
    wiki.get_token(CSRF_TOKEN)
    wiki.edit(Values({...}))
"""

from .client import Client
from .config import (
    CSRF_TOKEN,
    LOGIN_TOKEN,
    PATROL_TOKEN,
    ROLLBACK_TOKEN,
    USER_RIGHTS_TOKEN,
    WATCH_TOKEN,
    AssertLevel,
    ClientSettings,
)
from .errors import (
    APIBusyError,
    APILaggedError,
    APIError,
    APIWarning,
    APIWarnings,
    CaptchaError,
    DecodeError,
    NoArgsError,
    PageNotFoundError,
    ProtocolError,
    TransportError,
    UnrecognizedResponseError,
    WikiClientError,
)
from .pages import BriefRevision
from .params import Values
from .parser import EditResult, LoginResult
from .query import Query, QueryState
from .retry import Maxlag

__all__ = [
    # Client
    "Client",
    "ClientSettings",
    "Maxlag",
    "AssertLevel",
    "Values",
    "Query",
    "QueryState",
    # Results
    "EditResult",
    "LoginResult",
    "BriefRevision",
    # Token names
    "CSRF_TOKEN",
    "LOGIN_TOKEN",
    "PATROL_TOKEN",
    "ROLLBACK_TOKEN",
    "USER_RIGHTS_TOKEN",
    "WATCH_TOKEN",
    # Errors
    "WikiClientError",
    "TransportError",
    "DecodeError",
    "UnrecognizedResponseError",
    "APIError",
    "APIWarning",
    "APIWarnings",
    "CaptchaError",
    "APIBusyError",
    "APILaggedError",
    "ProtocolError",
    "PageNotFoundError",
    "NoArgsError",
]
