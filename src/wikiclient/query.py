"""
Query continuation.

A :class:`Query` issues ``action=query`` requests and threads the server's
``continue`` object into each following request until the server stops
sending one.  Obtain one through :meth:`Client.new_query
<wikiclient.client.Client.new_query>`::

    q = client.new_query(Values({"list": "categorymembers", "cmtitle": "Category:Soap"}))
    while q.advance():
        handle(q.resp)
    if q.err is not None:
        ...  # handle the error

or, equivalently, ``for resp in q: ...`` followed by the same ``q.err`` check.

See https://www.mediawiki.org/wiki/API:Continue
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Iterator

from .errors import WikiClientError
from .params import Values
from .parser import parse_continuation

if TYPE_CHECKING:
    from .client import Client

log = logging.getLogger(__name__)


class QueryState(enum.Enum):
    NOT_STARTED = "not_started"
    HAS_MORE = "has_more"
    EXHAUSTED = "exhausted"
    ERRORED = "errored"


class Query:
    """
    Cursor over the pages of a continued query.

    The parameter map passed in is copied; the caller's map is never
    modified by the query.
    """

    def __init__(self, client: "Client", params: Values | dict | None = None):
        self._client = client
        self.params = Values(params or {})
        self.params.set("action", "query")
        self.params.set("continue", "")
        self.state = QueryState.NOT_STARTED
        self._resp: dict | None = None
        self._err: WikiClientError | None = None
        self.requests_made = 0

    @property
    def resp(self) -> dict | None:
        """The most recent successfully decoded response."""
        return self._resp

    @property
    def err(self) -> WikiClientError | None:
        """The first error encountered by :meth:`advance`, if any."""
        return self._err

    def advance(self) -> bool:
        """
        Retrieve the next set of results into :attr:`resp`.

        Returns:
            ``True`` if new results are available; ``False`` if all results
            have been retrieved or an error occurred (see :attr:`err`).
            Once ``False`` has been returned, every later call returns
            ``False`` without contacting the server.
        """
        if self.state in (QueryState.EXHAUSTED, QueryState.ERRORED):
            return False

        if self.state is QueryState.HAS_MORE:
            try:
                cont = parse_continuation(self._resp)
            except WikiClientError as exc:
                return self._fail(exc)
            if cont is None:
                log.debug("Query complete after %d requests", self.requests_made)
                self.state = QueryState.EXHAUSTED
                return False
            self.params.update(cont)

        return self._fetch()

    def _fetch(self) -> bool:
        self.requests_made += 1
        try:
            resp = self._client.get(self.params)
        except WikiClientError as exc:
            return self._fail(exc)
        self._resp = resp
        self.state = QueryState.HAS_MORE
        return True

    def _fail(self, exc: WikiClientError) -> bool:
        log.debug("Query stopped on error: %s", exc)
        self._err = exc
        self.state = QueryState.ERRORED
        return False

    def __iter__(self) -> Iterator[dict]:
        while self.advance():
            yield self._resp
