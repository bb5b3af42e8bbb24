"""
Request parameter map and its wire encodings.

The API does not repeat a key to send several values ("a=b&a=c"); it takes
one key whose values are separated by pipes ("a=b|c").  :class:`Values`
therefore maps each key to a single string and offers :meth:`Values.add`
/ :meth:`Values.add_range` to build pipe-joined values.

Encodings are sorted by key, with the exception of the ``token`` key, which
is always written last so that an action is not executed if the request
body is cut off before the token.
"""

from __future__ import annotations

from urllib.parse import quote_plus

from urllib3 import encode_multipart_formdata

from .config import SEND_LAST_KEY

MULTI_VALUE_SEPARATOR = "|"


class Values(dict):
    """
    Maps a string key to a single string value.

    Keys are case-sensitive.  Behaves like a ``dict`` otherwise, so literal
    construction works::

        Values({"action": "query", "list": "recentchanges"})
    """

    def get(self, key: str, default: str = "") -> str:
        """Return the value for ``key``, or the empty string if absent."""
        return super().get(key, default)

    def set(self, key: str, value: str) -> None:
        """Set ``key`` to ``value``, replacing any existing value."""
        self[key] = value

    def add(self, key: str, value: str) -> None:
        """Append ``value`` to ``key``, pipe-joined with any existing value."""
        if key in self:
            self[key] = MULTI_VALUE_SEPARATOR.join((self[key], value))
        else:
            self[key] = value

    def add_range(self, key: str, *values: str) -> None:
        """Append several values to ``key`` at once."""
        if key in self:
            self[key] = MULTI_VALUE_SEPARATOR.join((self[key], *values))
        else:
            self[key] = MULTI_VALUE_SEPARATOR.join(values)

    def remove(self, key: str) -> None:
        """Delete ``key``; absent keys are ignored."""
        self.pop(key, None)

    def copy(self) -> "Values":
        """Shallow copy that stays a :class:`Values`."""
        return Values(self)

    def sorted_keys(self) -> list[str]:
        """Keys in encoding order: ascending, with ``token`` moved to the end."""
        keys = sorted(k for k in self if k != SEND_LAST_KEY)
        if SEND_LAST_KEY in self:
            keys.append(SEND_LAST_KEY)
        return keys

    def encode(self) -> str:
        """
        Encode into URL-encoded form (``"bar=baz&foo=quux"``).

        Returns:
            The encoded string; the empty string for an empty map.
        """
        return "&".join(
            f"{quote_plus(key)}={quote_plus(str(self[key]))}"
            for key in self.sorted_keys()
        )

    def encode_multipart(self) -> tuple[bytes, str]:
        """
        Encode as ``multipart/form-data``, keeping the ``token`` field last.

        Fields with an empty value are omitted, except ``token``.

        Returns:
            Tuple of (body: bytes, content_type: str).
        """
        fields = [
            (key, str(self[key]))
            for key in self.sorted_keys()
            if self[key] != "" or key == SEND_LAST_KEY
        ]
        return encode_multipart_formdata(fields)


def encode_values(values: Values | None) -> str:
    """Encode ``values``; ``None`` encodes to the empty string."""
    if values is None:
        return ""
    return Values(values).encode()
