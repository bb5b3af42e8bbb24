"""
Client defaults, wire-format constants, and environment-driven settings.

All constants used across the request, retry, and parsing modules are
centralized here so that configuration is separated from logic.

ENVIRONMENT VARIABLES (read by :meth:`ClientSettings.from_env`):
    WIKICLIENT_API_URL         - full URL of the wiki's api.php (required)
    WIKICLIENT_USER_AGENT      - tool-specific user agent prefix (required)
    WIKICLIENT_TIMEOUT         - HTTP timeout in seconds (default 30)
    WIKICLIENT_MAXLAG          - maxlag value sent to the server; enables maxlag
    WIKICLIENT_MAXLAG_RETRIES  - attempts before giving up (default 3)
    WIKICLIENT_ASSERT          - 'user' or 'bot'
"""

from __future__ import annotations

import os
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Identification
# ---------------------------------------------------------------------------

# If you modify this package, please change the user agent.
DEFAULT_USER_AGENT = "wikiclient (https://pypi.org/project/wikiclient/)"

# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------

RESPONSE_FORMAT: str = "json"
# formatversion=2 gives native booleans and list-shaped page results.
DEFAULT_FORMAT_VERSION: str | None = "2"

# Appended after all other parameters when encoding a request, so that a
# truncated request fails instead of running without its token.
SEND_LAST_KEY: str = "token"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

REQUEST_TIMEOUT_SECONDS: float = 30  # HTTP connect/read timeout

# Headers set by the server when it refuses a request due to replication lag
LAG_HEADER = "X-Database-Lag"
RETRY_AFTER_HEADER = "Retry-After"

# ---------------------------------------------------------------------------
# Maxlag defaults
# ---------------------------------------------------------------------------

MAXLAG_ON: bool = False
MAXLAG_TIMEOUT: str = "5"   # seconds of lag the server may tolerate
MAXLAG_RETRIES: int = 3     # total attempts, not retries after the first

# ---------------------------------------------------------------------------
# Assertion levels
# ---------------------------------------------------------------------------


class AssertLevel:
    """Values for the ``assert`` request parameter."""

    NONE = ""
    USER = "user"
    BOT = "bot"

    ALL: frozenset[str] = frozenset({NONE, USER, BOT})


# ---------------------------------------------------------------------------
# Token names (for Client.get_token)
# ---------------------------------------------------------------------------

CSRF_TOKEN = "csrf"
DELETE_GLOBAL_ACCOUNT_TOKEN = "deleteglobalaccount"
PATROL_TOKEN = "patrol"
ROLLBACK_TOKEN = "rollback"
SET_GLOBAL_ACCOUNT_STATUS_TOKEN = "setglobalaccountstatus"
USER_RIGHTS_TOKEN = "userrights"
WATCH_TOKEN = "watch"
LOGIN_TOKEN = "login"


# ---------------------------------------------------------------------------
# Environment-driven settings
# ---------------------------------------------------------------------------

@dataclass
class ClientSettings:
    """Session-level settings used to construct a :class:`~wikiclient.client.Client`."""

    api_url: str
    user_agent: str
    timeout: float = REQUEST_TIMEOUT_SECONDS
    maxlag_on: bool = MAXLAG_ON
    maxlag_timeout: str = MAXLAG_TIMEOUT
    maxlag_retries: int = MAXLAG_RETRIES
    assert_level: str = AssertLevel.NONE

    @classmethod
    def from_env(cls) -> "ClientSettings":
        """
        Build settings from ``WIKICLIENT_*`` environment variables.

        Returns:
            Populated :class:`ClientSettings`.

        Raises:
            ValueError: If a required variable is unset, or a numeric or
                        assertion value cannot be interpreted.
        """
        api_url = os.getenv("WIKICLIENT_API_URL")
        if not api_url:
            raise ValueError(
                "API URL not found. Set the 'WIKICLIENT_API_URL' environment "
                "variable to the wiki's api.php URL."
            )
        user_agent = os.getenv("WIKICLIENT_USER_AGENT")
        if not user_agent or not user_agent.strip():
            raise ValueError(
                "User agent not found. Set the 'WIKICLIENT_USER_AGENT' "
                "environment variable (e.g. 'MyBot/1.0 (me@example.org)')."
            )

        settings = cls(api_url=api_url, user_agent=user_agent)

        timeout = os.getenv("WIKICLIENT_TIMEOUT")
        if timeout:
            settings.timeout = float(timeout)

        maxlag = os.getenv("WIKICLIENT_MAXLAG")
        if maxlag:
            settings.maxlag_on = True
            settings.maxlag_timeout = maxlag

        retries = os.getenv("WIKICLIENT_MAXLAG_RETRIES")
        if retries:
            settings.maxlag_retries = int(retries)
            if settings.maxlag_retries < 1:
                raise ValueError(
                    f"WIKICLIENT_MAXLAG_RETRIES must be at least 1, got {retries!r}"
                )

        assert_level = os.getenv("WIKICLIENT_ASSERT", AssertLevel.NONE)
        if assert_level not in AssertLevel.ALL:
            raise ValueError(
                f"Unknown WIKICLIENT_ASSERT value {assert_level!r}; "
                "expected 'user' or 'bot'."
            )
        settings.assert_level = assert_level

        return settings
