"""Flatten the JSON returned by the ORCID API into tables.

ORCID groups most activities in two levels. A *group* collects the
*summaries* of one logical item (e.g., the same paper as reported by Crossref
and by a university's repository), and each summary is keyed by its type.
Each function here walks that structure with :func:`safe_get` and returns a
:class:`pandas.DataFrame` with a fixed set of columns, which are the fields of
the corresponding model in :mod:`orcid_frames.models`.

Anything unexpected about a single item (a missing key, a ``null``, a list
where a dictionary should be) means that item is skipped. It never means an
exception.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

import pandas as pd
from pydantic import BaseModel

from orcid_frames.models import (
    Address,
    Affiliation,
    Biography,
    Email,
    ExternalIdentifier,
    Funding,
    Keyword,
    OtherName,
    PeerReview,
    Person,
    ResearchResource,
    ResearcherUrl,
    Work,
    get_columns,
)
from orcid_frames.utils import date_to_iso, join_present, safe_get, to_text

__all__ = [
    "AFFILIATION_SUMMARY_KEYS",
    "FLATTENERS",
    "MODELS",
    "flatten",
    "get_empty_frame",
    "parse_activities",
    "parse_address",
    "parse_affiliations",
    "parse_bio",
    "parse_educations",
    "parse_email",
    "parse_employments",
    "parse_external_identifiers",
    "parse_funding",
    "parse_keywords",
    "parse_other_names",
    "parse_peer_reviews",
    "parse_person",
    "parse_research_resources",
    "parse_researcher_urls",
    "parse_works",
    "to_frame",
]

logger = logging.getLogger(__name__)

#: The keys under which an affiliation summary can appear, in the order they're tried
AFFILIATION_SUMMARY_KEYS: Sequence[str] = (
    "employment-summary",
    "education-summary",
    "distinction-summary",
    "invited-position-summary",
    "membership-summary",
    "qualification-summary",
    "service-summary",
)

Flattener = Callable[[Any, str], pd.DataFrame]


def to_frame(model: type[BaseModel], rows: Iterable[BaseModel]) -> pd.DataFrame:
    """Build a table whose columns are the fields of the model, even if there are no rows.

    Every column holds Python objects, so a missing value is always ``None``
    and an empty table has the same dtypes as a full one.
    """
    return pd.DataFrame(
        [row.model_dump() for row in rows], columns=get_columns(model), dtype=object
    )


def _iter_dicts(value: Any) -> Iterable[dict[str, Any]]:
    """Iterate over the dictionaries in a list, skipping anything else."""
    if not isinstance(value, list):
        return
    for element in value:
        if isinstance(element, dict):
            yield element
        elif element is not None:
            logger.debug("skipping unexpected list element: %r", element)


def _get_summary(item: dict[str, Any], keys: Sequence[str]) -> dict[str, Any] | None:
    for key in keys:
        summary = item.get(key)
        if isinstance(summary, dict):
            return summary
    return None


def _put_code(value: dict[str, Any]) -> str | None:
    return to_text(value.get("put-code"))


def parse_affiliations(
    data: Any, orcid: str, summary_keys: Sequence[str] = AFFILIATION_SUMMARY_KEYS
) -> pd.DataFrame:
    """Parse an ``affiliation-group`` response into a table of affiliations.

    :param data: A response from an affiliation endpoint, like ``employments``,
        ``educations``, ``distinctions``, ``invited-positions``, ``memberships``,
        ``qualifications``, or ``services``
    :param orcid: The ORCID identifier to put in each row
    :param summary_keys: The keys to try for each summary, in order. The first
        one that's present wins. Summaries with none of these keys are skipped.
    :returns: A table with the columns of :class:`Affiliation`
    """
    rows = []
    for group in _iter_dicts(safe_get(data, "affiliation-group")):
        for item in _iter_dicts(group.get("summaries")):
            summary = _get_summary(item, summary_keys)
            if summary is None:
                logger.debug("[%s] no summary in %s", orcid, sorted(item))
                continue
            rows.append(
                Affiliation(
                    orcid=orcid,
                    put_code=_put_code(summary),
                    organization=to_text(safe_get(summary, "organization", "name")),
                    department=to_text(summary.get("department-name")),
                    role=to_text(summary.get("role-title")),
                    start_date=date_to_iso(summary.get("start-date")),
                    end_date=date_to_iso(summary.get("end-date")),
                    city=to_text(safe_get(summary, "organization", "address", "city")),
                    region=to_text(safe_get(summary, "organization", "address", "region")),
                    country=to_text(safe_get(summary, "organization", "address", "country")),
                )
            )
    return to_frame(Affiliation, rows)


def parse_employments(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``employments`` endpoint."""
    return parse_affiliations(data, orcid, ["employment-summary"])


def parse_educations(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``educations`` endpoint."""
    return parse_affiliations(data, orcid, ["education-summary"])


def _get_doi(summary: dict[str, Any]) -> str | None:
    for external_id in _iter_dicts(safe_get(summary, "external-ids", "external-id")):
        if external_id.get("external-id-type") == "doi":
            return to_text(external_id.get("external-id-value"))
    return None


def parse_works(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``works`` endpoint.

    A group can hold several summaries of the same work, one per source.
    Only the first one is used so each work appears once.
    """
    rows = []
    for group in _iter_dicts(safe_get(data, "group")):
        summaries = group.get("work-summary")
        if not isinstance(summaries, list) or not summaries:
            continue
        summary = summaries[0]
        if not isinstance(summary, dict):
            logger.debug("[%s] skipping malformed work summary: %r", orcid, summary)
            continue
        rows.append(
            Work(
                orcid=orcid,
                put_code=_put_code(summary),
                title=to_text(safe_get(summary, "title", "title", "value")),
                type=to_text(summary.get("type")),
                publication_date=date_to_iso(summary.get("publication-date")),
                journal=to_text(safe_get(summary, "journal-title", "value")),
                doi=_get_doi(summary),
                url=to_text(safe_get(summary, "url", "value")),
            )
        )
    return to_frame(Work, rows)


def parse_funding(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``fundings`` endpoint."""
    rows = []
    for group in _iter_dicts(safe_get(data, "group")):
        for summary in _iter_dicts(group.get("funding-summary")):
            amount = summary.get("amount")
            if isinstance(amount, dict):
                value = to_text(amount.get("value"))
                currency = to_text(amount.get("currency-code"))
            else:
                value = currency = None
            rows.append(
                Funding(
                    orcid=orcid,
                    put_code=_put_code(summary),
                    title=to_text(safe_get(summary, "title", "title", "value")),
                    type=to_text(summary.get("type")),
                    organization=to_text(safe_get(summary, "organization", "name")),
                    start_date=date_to_iso(summary.get("start-date")),
                    end_date=date_to_iso(summary.get("end-date")),
                    amount=value,
                    currency=currency,
                )
            )
    return to_frame(Funding, rows)


def _iter_peer_review_summaries(group: dict[str, Any]) -> Iterable[dict[str, Any]]:
    # v3.0 nests summaries one more level, inside of peer-review-group
    yield from _iter_dicts(group.get("peer-review-summary"))
    for subgroup in _iter_dicts(group.get("peer-review-group")):
        yield from _iter_dicts(subgroup.get("peer-review-summary"))


def parse_peer_reviews(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``peer-reviews`` endpoint."""
    rows = [
        PeerReview(
            orcid=orcid,
            put_code=_put_code(summary),
            reviewer_role=to_text(summary.get("reviewer-role")),
            review_type=to_text(summary.get("review-type")),
            completion_date=date_to_iso(summary.get("completion-date")),
            organization=to_text(safe_get(summary, "convening-organization", "name")),
        )
        for group in _iter_dicts(safe_get(data, "group"))
        for summary in _iter_peer_review_summaries(group)
    ]
    return to_frame(PeerReview, rows)


def parse_research_resources(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``research-resources`` endpoint."""
    rows = []
    for group in _iter_dicts(safe_get(data, "group")):
        for summary in _iter_dicts(group.get("research-resource-summary")):
            start = summary.get("start-date") or safe_get(summary, "proposal", "start-date")
            end = summary.get("end-date") or safe_get(summary, "proposal", "end-date")
            rows.append(
                ResearchResource(
                    orcid=orcid,
                    put_code=_put_code(summary),
                    proposal_title=to_text(
                        safe_get(summary, "proposal", "title", "title", "value")
                    ),
                    start_date=date_to_iso(start),
                    end_date=date_to_iso(end),
                )
            )
    return to_frame(ResearchResource, rows)


def parse_person(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``person`` endpoint into exactly one row.

    Keywords and researcher URLs are joined with commas. Only the first
    address is used for the country.
    """
    keywords = join_present(
        keyword.get("content") for keyword in _iter_dicts(safe_get(data, "keywords", "keyword"))
    )
    researcher_urls = join_present(
        safe_get(url, "url", "value")
        for url in _iter_dicts(safe_get(data, "researcher-urls", "researcher-url"))
    )
    addresses = safe_get(data, "addresses", "address")
    country = None
    if isinstance(addresses, list) and addresses:
        country = to_text(safe_get(addresses[0], "country", "value"))
    row = Person(
        orcid=orcid,
        given_names=to_text(safe_get(data, "name", "given-names", "value")),
        family_name=to_text(safe_get(data, "name", "family-name", "value")),
        credit_name=to_text(safe_get(data, "name", "credit-name", "value")),
        biography=to_text(safe_get(data, "biography", "content")),
        keywords=keywords,
        researcher_urls=researcher_urls,
        country=country,
    )
    return to_frame(Person, [row])


def parse_bio(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``biography`` endpoint into exactly one row."""
    row = Biography(
        orcid=orcid,
        biography=to_text(safe_get(data, "content")),
        visibility=to_text(safe_get(data, "visibility")),
    )
    return to_frame(Biography, [row])


def parse_keywords(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``keywords`` endpoint."""
    rows = [
        Keyword(orcid=orcid, put_code=_put_code(keyword), keyword=to_text(keyword.get("content")))
        for keyword in _iter_dicts(safe_get(data, "keyword"))
    ]
    return to_frame(Keyword, rows)


def parse_researcher_urls(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``researcher-urls`` endpoint."""
    rows = [
        ResearcherUrl(
            orcid=orcid,
            put_code=_put_code(url),
            url_name=to_text(url.get("url-name")),
            url_value=to_text(safe_get(url, "url", "value")),
        )
        for url in _iter_dicts(safe_get(data, "researcher-url"))
    ]
    return to_frame(ResearcherUrl, rows)


def parse_external_identifiers(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``external-identifiers`` endpoint."""
    rows = [
        ExternalIdentifier(
            orcid=orcid,
            put_code=_put_code(external_id),
            external_id_type=to_text(external_id.get("external-id-type")),
            external_id_value=to_text(external_id.get("external-id-value")),
            external_id_url=to_text(safe_get(external_id, "external-id-url", "value")),
        )
        for external_id in _iter_dicts(safe_get(data, "external-identifier"))
    ]
    return to_frame(ExternalIdentifier, rows)


def parse_other_names(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``other-names`` endpoint."""
    rows = [
        OtherName(orcid=orcid, put_code=_put_code(name), other_name=to_text(name.get("content")))
        for name in _iter_dicts(safe_get(data, "other-name"))
    ]
    return to_frame(OtherName, rows)


def parse_address(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``address`` endpoint."""
    rows = [
        Address(
            orcid=orcid,
            put_code=_put_code(address),
            country=to_text(safe_get(address, "country", "value")),
        )
        for address in _iter_dicts(safe_get(data, "address"))
    ]
    return to_frame(Address, rows)


def parse_email(data: Any, orcid: str) -> pd.DataFrame:
    """Parse a response from the ``email`` endpoint."""
    rows = [
        Email(
            orcid=orcid,
            email=to_text(email.get("email")),
            verified=email.get("verified") is True,
            primary=email.get("primary") is True,
        )
        for email in _iter_dicts(safe_get(data, "email"))
    ]
    return to_frame(Email, rows)


#: Flatteners for each kind of entity, keyed by the API endpoint that returns it
FLATTENERS: dict[str, Flattener] = {
    "employments": parse_employments,
    "educations": parse_educations,
    "distinctions": parse_affiliations,
    "invited-positions": parse_affiliations,
    "memberships": parse_affiliations,
    "qualifications": parse_affiliations,
    "services": parse_affiliations,
    "research-resources": parse_research_resources,
    "works": parse_works,
    "fundings": parse_funding,
    "peer-reviews": parse_peer_reviews,
    "person": parse_person,
    "biography": parse_bio,
    "keywords": parse_keywords,
    "researcher-urls": parse_researcher_urls,
    "external-identifiers": parse_external_identifiers,
    "other-names": parse_other_names,
    "address": parse_address,
    "email": parse_email,
}


def flatten(kind: str, data: Any, orcid: str) -> pd.DataFrame:
    """Flatten the JSON for the given kind of entity into a table.

    :param kind: A key in :data:`FLATTENERS`, e.g., ``works``
    :param data: The JSON returned by the API
    :param orcid: The ORCID identifier to put in each row
    :returns: A table with the declared columns for the kind of entity
    :raises ValueError: if the kind of entity is unknown
    """
    flattener = FLATTENERS.get(kind)
    if flattener is None:
        raise ValueError(f"unknown entity kind: {kind}. Use one of: {', '.join(FLATTENERS)}")
    return flattener(data, orcid)


#: Keys in an ``activities`` response, mapped to the key in the result and the entity kind
ACTIVITY_SECTIONS: dict[str, tuple[str, str]] = {
    "distinctions": ("distinctions", "distinctions"),
    "educations": ("educations", "educations"),
    "employments": ("employments", "employments"),
    "invited-positions": ("invited_positions", "invited-positions"),
    "memberships": ("memberships", "memberships"),
    "qualifications": ("qualifications", "qualifications"),
    "services": ("services", "services"),
    "fundings": ("fundings", "fundings"),
    "peer-reviews": ("peer_reviews", "peer-reviews"),
    "research-resources": ("research_resources", "research-resources"),
    "works": ("works", "works"),
}


def parse_activities(data: Any, orcid: str) -> dict[str, pd.DataFrame]:
    """Parse a response from the ``activities`` endpoint into one table per section.

    A section that's missing from the response gets an empty table with its
    usual columns.
    """
    return {
        name: flatten(kind, safe_get(data, key), orcid)
        for key, (name, kind) in ACTIVITY_SECTIONS.items()
    }


#: The row model for each kind of entity
MODELS: dict[str, type[BaseModel]] = {
    "employments": Affiliation,
    "educations": Affiliation,
    "distinctions": Affiliation,
    "invited-positions": Affiliation,
    "memberships": Affiliation,
    "qualifications": Affiliation,
    "services": Affiliation,
    "research-resources": ResearchResource,
    "works": Work,
    "fundings": Funding,
    "peer-reviews": PeerReview,
    "person": Person,
    "biography": Biography,
    "keywords": Keyword,
    "researcher-urls": ResearcherUrl,
    "external-identifiers": ExternalIdentifier,
    "other-names": OtherName,
    "address": Address,
    "email": Email,
}


def get_empty_frame(kind: str) -> pd.DataFrame:
    """Get a table with no rows and the declared columns for the kind of entity."""
    return to_frame(MODELS[kind], [])
