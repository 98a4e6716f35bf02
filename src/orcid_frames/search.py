"""Search the ORCID registry for researchers.

The search endpoints have answered with two shapes over time. The expanded
search returns ``expanded-result``, where each hit has flat name fields and
an ``orcid-id``. The older search returns ``result``, where each hit has an
``orcid-identifier`` with a ``path``. Both are handled, in that order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, NamedTuple

import pandas as pd
import requests

from orcid_frames.api import get_base_url, get_token
from orcid_frames.client import search_request
from orcid_frames.errors import OrcidError
from orcid_frames.models import SearchResult
from orcid_frames.parsers import to_frame
from orcid_frames.utils import safe_get, to_text

__all__ = [
    "MAXIMUM_ROWS",
    "SearchResults",
    "build_query",
    "parse_search_results",
    "search",
    "search_doi",
    "search_fields",
]

logger = logging.getLogger(__name__)

#: The most rows the ORCID search API returns in one page
MAXIMUM_ROWS = 1000

#: Keys that hold the list of hits, in the order they're tried
RESULT_KEYS = ("expanded-result", "result")


class SearchResults(NamedTuple):
    """A page of search results, with the total number of matches across all pages."""

    frame: pd.DataFrame
    total_matches: int


def empty_search_results() -> SearchResults:
    """Get search results with no rows and no matches."""
    return SearchResults(to_frame(SearchResult, []), 0)


def _count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    return 0


def _first_text(value: Any) -> str | None:
    """Get a string from a scalar, or the first non-null element of a list."""
    if isinstance(value, list):
        for element in value:
            if (text := to_text(element)) is not None:
                return text
        return None
    return to_text(value)


def _get_other_names(hit: dict[str, Any]) -> list[str]:
    value = hit.get("other-names")
    if value is None:
        value = hit.get("other-name")
    if not isinstance(value, list):
        value = [value]
    return [text for element in value if (text := to_text(element)) is not None]


def _parse_hit(hit: dict[str, Any]) -> SearchResult:
    orcid = to_text(safe_get(hit, "orcid-identifier", "path")) or to_text(hit.get("orcid-id"))
    return SearchResult(
        orcid=orcid,
        given_names=_first_text(hit.get("given-names")),
        family_name=_first_text(hit.get("family-names")),
        credit_name=_first_text(hit.get("credit-name")),
        other_names=_get_other_names(hit),
    )


def parse_search_results(data: Any) -> SearchResults:
    """Parse a response from the ORCID search API.

    :param data: The JSON returned by the API
    :returns: A table with the columns of :class:`SearchResult` and the
        total number of matches reported by the API in ``num-found``

    A nonzero ``num-found`` alongside no hits is accepted as is, since that's
    also what a page past the last hit looks like.
    """
    total_matches = _count(safe_get(data, "num-found"))
    hits = None
    for key in RESULT_KEYS:
        hits = safe_get(data, key)
        if isinstance(hits, list) and hits:
            break

    rows = []
    if isinstance(hits, list):
        for hit in hits:
            if not isinstance(hit, dict):
                logger.debug("skipping malformed search hit: %r", hit)
                continue
            rows.append(_parse_hit(hit))

    if not rows and total_matches:
        logger.debug("no hits in this page out of %d total matches", total_matches)

    return SearchResults(to_frame(SearchResult, rows), total_matches)


def search(
    query: str | None,
    rows: int = 10,
    start: int = 0,
    *,
    token: str | None = None,
    base_url: str | None = None,
    session: requests.Session | None = None,
) -> SearchResults:
    """Search ORCID with a Solr query.

    :param query: A query, e.g., ``family-name:Carberry AND given-names:Josiah``
    :param rows: The number of hits to return, between 1 and 1,000
    :param start: The offset of the first hit, for paging
    :param token: A bearer token. If none is given, it's looked up with
        :func:`orcid_frames.api.get_token`.
    :param base_url: The base URL of the API
    :param session: A session to reuse
    :returns: The hits and the total number of matches
    :raises ValueError: if ``rows`` or ``start`` is out of range
    """
    if not query:
        logger.warning("no query provided, returning empty results")
        return empty_search_results()
    if not 1 <= rows <= MAXIMUM_ROWS:
        raise ValueError(f"rows must be between 1 and {MAXIMUM_ROWS}, got {rows}")
    if start < 0:
        raise ValueError(f"start must be a non-negative integer, got {start}")

    data = search_request(
        query,
        rows=rows,
        start=start,
        token=get_token(token),
        base_url=get_base_url(base_url),
        session=session,
    )
    return parse_search_results(data)


def build_query(
    *,
    given_name: str | None = None,
    family_name: str | None = None,
    affiliation_org: str | None = None,
    email: str | None = None,
    keywords: str | Iterable[str] | None = None,
    digital_object_ids: str | None = None,
    other_name: str | None = None,
    credit_name: str | None = None,
) -> str | None:
    """Build a Solr query where all given fields have to match.

    Several keywords are combined so any one of them can match.

    >>> build_query(family_name="Carberry", keywords=["psychoceramics", "cracked pots"])
    'family-name:Carberry AND (keyword:psychoceramics OR keyword:cracked pots)'
    """
    pairs = [
        ("given-names", given_name),
        ("family-name", family_name),
        ("affiliation-org-name", affiliation_org),
        ("email", email),
        ("keyword", keywords),
        ("digital-object-ids", digital_object_ids),
        ("other-names", other_name),
        ("credit-name", credit_name),
    ]
    parts = []
    for field, value in pairs:
        if value is None:
            continue
        if isinstance(value, str):
            parts.append(f"{field}:{value}")
            continue
        terms = list(value)
        if len(terms) == 1:
            parts.append(f"{field}:{terms[0]}")
        elif terms:
            parts.append("(" + " OR ".join(f"{field}:{term}" for term in terms) + ")")
    if not parts:
        return None
    return " AND ".join(parts)


def search_fields(
    *,
    given_name: str | None = None,
    family_name: str | None = None,
    affiliation_org: str | None = None,
    email: str | None = None,
    keywords: str | Iterable[str] | None = None,
    digital_object_ids: str | None = None,
    other_name: str | None = None,
    credit_name: str | None = None,
    rows: int = 10,
    start: int = 0,
    token: str | None = None,
    base_url: str | None = None,
    session: requests.Session | None = None,
) -> SearchResults:
    """Search ORCID by fields, all of which have to match."""
    query = build_query(
        given_name=given_name,
        family_name=family_name,
        affiliation_org=affiliation_org,
        email=email,
        keywords=keywords,
        digital_object_ids=digital_object_ids,
        other_name=other_name,
        credit_name=credit_name,
    )
    if query is None:
        logger.warning("no search criteria provided, returning empty results")
        return empty_search_results()
    return search(query, rows=rows, start=start, token=token, base_url=base_url, session=session)


def _get_doi_query(doi: str, fuzzy: bool) -> str:
    if fuzzy and "*" not in doi:
        return f'digital-object-ids:"{doi}*"'
    return f'digital-object-ids:"{doi}"'


def search_doi(
    dois: str | Iterable[str],
    *,
    fuzzy: bool = False,
    rows: int = 10,
    token: str | None = None,
    base_url: str | None = None,
    session: requests.Session | None = None,
) -> SearchResults | dict[str, SearchResults]:
    """Find the researchers who claimed works with the given DOIs.

    :param dois: One DOI or several
    :param fuzzy: Should a wildcard be appended to each DOI?
    :returns: The results for a single DOI, or a dictionary from each DOI to
        its results. A failed search is logged and gets empty results.
    :raises ValueError: if no DOIs are given
    """
    doi_list = [dois] if isinstance(dois, str) else list(dois)
    if not doi_list:
        raise ValueError("at least one DOI must be provided")

    rv: dict[str, SearchResults] = {}
    for doi in doi_list:
        try:
            rv[doi] = search(
                _get_doi_query(doi, fuzzy),
                rows=rows,
                token=token,
                base_url=base_url,
                session=session,
            )
        except OrcidError as e:
            logger.warning("search failed for DOI %s: %s", doi, e)
            rv[doi] = empty_search_results()

    if len(doi_list) == 1:
        return rv[doi_list[0]]
    return rv
