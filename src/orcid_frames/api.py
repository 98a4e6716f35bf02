"""Get tables about researchers from the ORCID public API."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any, NamedTuple

import pandas as pd
import pystow
import requests
from tqdm.auto import tqdm

from orcid_frames.client import DEFAULT_BASE_URL, build_session, orcid_request
from orcid_frames.errors import InvalidIdentifierError, OrcidError
from orcid_frames.identifiers import normalize_orcid
from orcid_frames.parsers import flatten, get_empty_frame, parse_activities

__all__ = [
    "DEFAULT_SECTIONS",
    "GROUP_SECTIONS",
    "SECTIONS",
    "Section",
    "fetch_many",
    "fetch_record",
    "fetch_section",
    "get_activities",
    "get_address",
    "get_base_url",
    "get_bio",
    "get_distinctions",
    "get_educations",
    "get_email",
    "get_employments",
    "get_external_identifiers",
    "get_funding",
    "get_invited_positions",
    "get_keywords",
    "get_memberships",
    "get_other_names",
    "get_peer_reviews",
    "get_person",
    "get_qualifications",
    "get_research_resources",
    "get_researcher_urls",
    "get_section",
    "get_services",
    "get_token",
    "get_works",
]

logger = logging.getLogger(__name__)

#: The pystow module for configuration, so ``ORCID_TOKEN`` and ``ORCID_API_URL`` are read
CONFIG_MODULE = "orcid"


class Section(NamedTuple):
    """A section of an ORCID record."""

    #: The API endpoint, relative to the record
    endpoint: str
    #: The kind of entity, as a key in :data:`orcid_frames.parsers.FLATTENERS`
    kind: str


SECTIONS: dict[str, Section] = {
    "employments": Section("employments", "employments"),
    "educations": Section("educations", "educations"),
    "distinctions": Section("distinctions", "distinctions"),
    "invited-positions": Section("invited-positions", "invited-positions"),
    "memberships": Section("memberships", "memberships"),
    "qualifications": Section("qualifications", "qualifications"),
    "services": Section("services", "services"),
    "research-resources": Section("research-resources", "research-resources"),
    "works": Section("works", "works"),
    "funding": Section("fundings", "fundings"),
    "peer-reviews": Section("peer-reviews", "peer-reviews"),
    "person": Section("person", "person"),
    "bio": Section("biography", "biography"),
    "keywords": Section("keywords", "keywords"),
    "researcher-urls": Section("researcher-urls", "researcher-urls"),
    "external-identifiers": Section("external-identifiers", "external-identifiers"),
    "other-names": Section("other-names", "other-names"),
    "address": Section("address", "address"),
    "email": Section("email", "email"),
}

#: Sections with one row per item, which can be stacked across many records
GROUP_SECTIONS = [
    "employments",
    "educations",
    "distinctions",
    "invited-positions",
    "memberships",
    "qualifications",
    "services",
    "research-resources",
    "works",
    "funding",
    "peer-reviews",
]

DEFAULT_SECTIONS = ["employments", "educations", "works", "funding", "peer-reviews"]


def get_token(token: str | None = None) -> str | None:
    """Get a bearer token, falling back to the ``ORCID_TOKEN`` configuration.

    Note that the public API works without a token, and rejects any token
    that isn't valid for it.
    """
    if token:
        return token
    return pystow.get_config(CONFIG_MODULE, "token") or None


def get_base_url(base_url: str | None = None) -> str:
    """Get the API's base URL, falling back to the ``ORCID_API_URL`` configuration."""
    if base_url:
        return base_url
    return pystow.get_config(CONFIG_MODULE, "api_url") or DEFAULT_BASE_URL


def fetch_section(
    orcid: str,
    endpoint: str,
    *,
    token: str | None = None,
    base_url: str | None = None,
    session: requests.Session | None = None,
) -> Any:
    """Get the JSON for an endpoint of an ORCID record.

    :param orcid: An ORCID identifier, in any form accepted by
        :func:`orcid_frames.identifiers.normalize_orcid`
    :param endpoint: The API endpoint, e.g., ``works``
    :param token: A bearer token, defaults to the ``ORCID_TOKEN`` configuration
    :param base_url: The API's base URL, defaults to the ``ORCID_API_URL``
        configuration, then to the production API
    :param session: A session to reuse
    :returns: The decoded JSON
    """
    return orcid_request(
        endpoint,
        normalize_orcid(orcid),
        token=get_token(token),
        base_url=get_base_url(base_url),
        session=session,
    )


def get_section(
    orcid: str,
    section: str,
    *,
    token: str | None = None,
    base_url: str | None = None,
    session: requests.Session | None = None,
) -> pd.DataFrame:
    """Get a table for a section of an ORCID record.

    :param orcid: An ORCID identifier
    :param section: A key in :data:`SECTIONS`, e.g., ``works``
    :returns: A table with the declared columns for the section
    :raises ValueError: if the section is unknown
    """
    if section not in SECTIONS:
        raise ValueError(f"invalid section: '{section}'. Use one of: {', '.join(SECTIONS)}")
    orcid = normalize_orcid(orcid)
    endpoint, kind = SECTIONS[section]
    data = fetch_section(orcid, endpoint, token=token, base_url=base_url, session=session)
    return flatten(kind, data, orcid)


def get_employments(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of employments."""
    return get_section(orcid, "employments", **kwargs)


def get_educations(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of educations."""
    return get_section(orcid, "educations", **kwargs)


def get_distinctions(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of distinctions, like awards and honors."""
    return get_section(orcid, "distinctions", **kwargs)


def get_invited_positions(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of invited positions, like visiting appointments."""
    return get_section(orcid, "invited-positions", **kwargs)


def get_memberships(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of memberships in societies and other organizations."""
    return get_section(orcid, "memberships", **kwargs)


def get_qualifications(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of qualifications, like certifications."""
    return get_section(orcid, "qualifications", **kwargs)


def get_services(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of services, like committee work."""
    return get_section(orcid, "services", **kwargs)


def get_research_resources(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of research resources used."""
    return get_section(orcid, "research-resources", **kwargs)


def get_works(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of works, with one row per work even if several sources report it."""
    return get_section(orcid, "works", **kwargs)


def get_funding(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of grants and other funding."""
    return get_section(orcid, "funding", **kwargs)


def get_peer_reviews(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of peer reviews."""
    return get_section(orcid, "peer-reviews", **kwargs)


def get_person(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a single-row summary of a person."""
    return get_section(orcid, "person", **kwargs)


def get_bio(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a single-row table with the biography."""
    return get_section(orcid, "bio", **kwargs)


def get_keywords(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of keywords."""
    return get_section(orcid, "keywords", **kwargs)


def get_researcher_urls(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of websites."""
    return get_section(orcid, "researcher-urls", **kwargs)


def get_external_identifiers(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of identifiers in other databases, like Scopus."""
    return get_section(orcid, "external-identifiers", **kwargs)


def get_other_names(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of aliases."""
    return get_section(orcid, "other-names", **kwargs)


def get_address(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of addresses (i.e., countries)."""
    return get_section(orcid, "address", **kwargs)


def get_email(orcid: str, **kwargs: Any) -> pd.DataFrame:
    """Get a table of public email addresses."""
    return get_section(orcid, "email", **kwargs)


def get_activities(
    orcid: str,
    *,
    token: str | None = None,
    base_url: str | None = None,
    session: requests.Session | None = None,
) -> dict[str, pd.DataFrame]:
    """Get all activities in one request, as a table for each section."""
    orcid = normalize_orcid(orcid)
    data = fetch_section(orcid, "activities", token=token, base_url=base_url, session=session)
    return parse_activities(data, orcid)


def fetch_record(
    orcid: str,
    sections: Sequence[str] | None = None,
    *,
    token: str | None = None,
    base_url: str | None = None,
    session: requests.Session | None = None,
) -> dict[str, pd.DataFrame]:
    """Get several sections of an ORCID record.

    :param orcid: An ORCID identifier
    :param sections: Keys in :data:`SECTIONS`. Defaults to :data:`DEFAULT_SECTIONS`.
    :returns: A dictionary from each section (with underscores instead of
        dashes, e.g., ``peer_reviews``) to its table. A section that fails is
        logged and gets an empty table.
    :raises ValueError: if any section is unknown
    """
    if sections is None:
        sections = DEFAULT_SECTIONS
    invalid = [section for section in sections if section not in SECTIONS]
    if invalid:
        raise ValueError(
            f"invalid section(s): {', '.join(invalid)}. Use any of: {', '.join(SECTIONS)}"
        )
    orcid = normalize_orcid(orcid)

    if session is None:
        with build_session() as new_session:
            return fetch_record(
                orcid, sections, token=token, base_url=base_url, session=new_session
            )

    rv = {}
    for section in sections:
        key = section.replace("-", "_")
        try:
            rv[key] = get_section(orcid, section, token=token, base_url=base_url, session=session)
        except OrcidError as e:
            logger.warning("[%s] failed to fetch %s: %s", orcid, section, e)
            rv[key] = get_empty_frame(SECTIONS[section].kind)
    return rv


def _normalize_many(orcids: Iterable[str], fail_fast: bool) -> list[str]:
    rv = []
    for orcid in orcids:
        try:
            rv.append(normalize_orcid(orcid))
        except InvalidIdentifierError as e:
            if fail_fast:
                raise
            logger.warning("skipping invalid ORCID identifier %r: %s", orcid, e)
    return rv


def fetch_many(
    orcids: Iterable[str],
    section: str = "works",
    *,
    token: str | None = None,
    base_url: str | None = None,
    fail_fast: bool = False,
    progress: bool = True,
) -> pd.DataFrame:
    """Get a section for many ORCID records, stacked into one table.

    Records are fetched one after another. If one fails, it's logged and
    skipped, unless ``fail_fast`` is set.

    :param orcids: ORCID identifiers
    :param section: One of :data:`GROUP_SECTIONS`
    :param fail_fast: Should the first invalid identifier or failed request
        raise an exception?
    :param progress: Should a progress bar be shown?
    :returns: A table with the declared columns for the section
    :raises ValueError: if the section isn't in :data:`GROUP_SECTIONS`, or
        there are no valid identifiers
    """
    if section not in GROUP_SECTIONS:
        raise ValueError(
            f"invalid section: '{section}'. Use one of: {', '.join(GROUP_SECTIONS)}"
        )
    orcids = list(orcids)
    if not orcids:
        raise ValueError("no ORCID identifiers provided")
    orcids = _normalize_many(orcids, fail_fast=fail_fast)
    if not orcids:
        raise ValueError("no valid ORCID identifiers provided")

    frames = []
    with build_session() as session:
        for orcid in tqdm(
            orcids, unit="record", desc=f"Fetching {section}", disable=not progress, leave=False
        ):
            try:
                frame = get_section(
                    orcid, section, token=token, base_url=base_url, session=session
                )
            except OrcidError as e:
                if fail_fast:
                    raise
                logger.warning("[%s] failed to fetch %s: %s", orcid, section, e)
                continue
            if not frame.empty:
                frames.append(frame)

    if not frames:
        logger.warning("no %s retrieved for any of %d ORCID records", section, len(orcids))
        return get_empty_frame(SECTIONS[section].kind)
    return pd.concat(frames, ignore_index=True)
