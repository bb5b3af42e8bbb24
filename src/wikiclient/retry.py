"""
Maxlag policy and the bounded retry loop around a transport attempt.

When maxlag is on, every request tells the server how much replication lag
we tolerate.  A server lagging further behind refuses the request and asks
us to come back after ``Retry-After`` seconds; we do so up to
``Maxlag.retries`` attempts in total, then give up with
:class:`~wikiclient.errors.APIBusyError`.

See https://www.mediawiki.org/wiki/Manual:Maxlag_parameter
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from .config import MAXLAG_ON, MAXLAG_RETRIES, MAXLAG_TIMEOUT
from .errors import APIBusyError
from .params import Values
from .transport import CallOutcome

log = logging.getLogger(__name__)


@dataclass
class Maxlag:
    """
    Maxlag configuration for a :class:`~wikiclient.client.Client`.

    Attributes:
        on: If true, requests carry the ``maxlag`` parameter and lagged
            replies are retried.
        timeout: The ``maxlag`` value sent to the server.
        retries: Total attempts before giving up (at least 1).
        sleep: Called with the number of seconds to wait between attempts.
               Replace it to avoid real waits, e.g. in tests.
    """

    on: bool = MAXLAG_ON
    timeout: str = MAXLAG_TIMEOUT
    retries: int = MAXLAG_RETRIES
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self):
        if self.retries < 1:
            raise ValueError(f"Maxlag.retries must be at least 1, got {self.retries}")


def with_maxlag(params: Values, maxlag: Maxlag) -> Values:
    """
    Return a copy of ``params`` carrying the ``maxlag`` parameter.

    A ``maxlag`` value set by the caller is left alone.
    """
    params = params.copy()
    if params.get("maxlag") == "":
        params.set("maxlag", maxlag.timeout)
    return params


def call_with_maxlag(
    attempt: Callable[[Values], CallOutcome],
    params: Values,
    maxlag: Maxlag,
) -> CallOutcome:
    """
    Run ``attempt`` until it returns something other than a lagged outcome.

    With maxlag off, ``attempt`` runs once with ``params`` unmodified.
    Successful and failed outcomes end the loop immediately; only lagged
    outcomes are retried.

    Args:
        attempt: Performs one round trip with the given parameters.
        params: Request parameters.
        maxlag: Policy supplying the timeout, attempt budget and sleep.

    Returns:
        The first non-lagged :class:`CallOutcome`.

    Raises:
        APIBusyError: Every one of ``maxlag.retries`` attempts was lagged.
    """
    if not maxlag.on:
        return attempt(params)

    for tries in range(maxlag.retries):
        outcome = attempt(with_maxlag(params, maxlag))
        if not outcome.is_lagged:
            return outcome

        # If there are no tries left, don't wait needlessly.
        if tries < maxlag.retries - 1:
            log.warning(
                "Database lag exceeds max lag (%s). Waiting %s seconds "
                "(attempt %d/%d).",
                outcome.message.strip(),
                outcome.wait,
                tries + 1,
                maxlag.retries,
            )
            maxlag.sleep(outcome.wait)

    log.warning("API still lagged after %d attempts; giving up.", maxlag.retries)
    raise APIBusyError(maxlag.retries)
