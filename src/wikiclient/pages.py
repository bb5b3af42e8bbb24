"""
Fetching page content and the timestamp of the latest revision.

Several pages are fetched with a single multi-title query.  Results are
keyed by the title or page ID exactly as the caller gave it, even when the
server normalized the title.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import (
    APIWarnings,
    DecodeError,
    NoArgsError,
    PageNotFoundError,
    WikiClientError,
)
from .params import Values
from .parser import decode_body, extract_api_errors

if TYPE_CHECKING:
    from .client import Client


@dataclass
class BriefRevision:
    """Basic information on the latest revision of one page."""

    content: str = ""
    timestamp: str = ""
    pageid: str = ""
    error: WikiClientError | None = None


def build_pages_params(are_names: bool, *ids_or_names: str) -> Values:
    """Parameters for a revisions query over ``ids_or_names``."""
    p = Values({
        "action": "query",
        "prop": "revisions",
        "rvprop": "content|timestamp",
        "rvslots": "main",
    })
    p.add_range("titles" if are_names else "pageids", *ids_or_names)
    return p


def handle_pages_response(resp: dict, are_names: bool = True) -> dict[str, BriefRevision]:
    """
    Map a decoded revisions query onto the caller's input names.

    Missing, special and invalid pages are reported through
    :attr:`BriefRevision.error` rather than raised.

    Args:
        resp: Decoded API response (``formatversion=1`` or ``2``).
        are_names: Whether the query asked for titles (results keyed by the
                   title as requested) or page IDs (keyed by ID).

    Returns:
        Dict of input name → :class:`BriefRevision`.

    Raises:
        DecodeError: The response lacks ``query.pages`` or a page lacks
                     revision content.
    """
    query = resp.get("query")
    if not isinstance(query, dict) or "pages" not in query:
        raise DecodeError("'query.pages' missing from API response")

    pages = query["pages"]
    if isinstance(pages, dict):  # formatversion=1 keys pages by ID
        pages = list(pages.values())

    # canonical -> inputted
    denormalized = {
        norm.get("to"): norm.get("from") for norm in query.get("normalized", [])
    }

    results: dict[str, BriefRevision] = {}
    for entry in pages:
        page = BriefRevision()

        # The invalid, missing and special flags are not mutually exclusive;
        # the first one present decides.
        if "invalid" in entry and entry["invalid"] is not False:
            page.error = WikiClientError(
                f"invalid title {entry.get('title')!r}: "
                f"{entry.get('invalidreason', 'no reason given')}"
            )
        elif "missing" in entry and entry["missing"] is not False:
            page.error = PageNotFoundError(
                f"wiki page not found: {entry.get('title', entry.get('pageid'))}"
            )
        elif "special" in entry and entry["special"] is not False:
            page.error = WikiClientError("special pages not supported for this query")
        else:
            try:
                rev = entry["revisions"][0]
                main = rev["slots"]["main"]
                page.content = main.get("content", main.get("*", ""))
                page.timestamp = rev["timestamp"]
            except (KeyError, IndexError, TypeError) as exc:
                raise DecodeError(
                    f"revision content missing for page {entry.get('title')!r}"
                ) from exc
            page.pageid = str(entry.get("pageid", ""))

        if are_names:
            title = entry.get("title", "")
            key = denormalized.get(title, title)
        else:
            key = str(entry.get("pageid", ""))
        results[key] = page

    return results


def get_pages(client: "Client", are_names: bool, *ids_or_names: str) -> dict[str, BriefRevision]:
    """
    Fetch several pages with one request.

    Raises:
        NoArgsError: No titles or IDs were given.
        APIError: The API returned an error.
        APIWarnings: The API returned warnings; the decoded pages are
                     attached as ``exc.pages`` since they may be incomplete
                     (e.g. when more pages were asked for than the limit).
    """
    if not ids_or_names:
        raise NoArgsError("no arguments passed")

    resp = decode_body(client.get_raw(build_pages_params(are_names, *ids_or_names)))
    failure = extract_api_errors(resp)
    if failure is not None and not isinstance(failure, APIWarnings):
        raise failure

    pages = handle_pages_response(resp, are_names)
    if failure is not None:
        failure.pages = pages
        raise failure
    return pages


def get_page(client: "Client", id_or_name: str, is_name: bool) -> tuple[str, str]:
    """
    Fetch one page's content and latest revision timestamp.

    Raises:
        PageNotFoundError: The page does not exist.
    """
    pages = get_pages(client, is_name, id_or_name)
    page = pages.get(id_or_name)
    if page is None:
        raise PageNotFoundError(f"wiki page not found: {id_or_name}")
    if page.error is not None:
        raise page.error
    return page.content, page.timestamp
