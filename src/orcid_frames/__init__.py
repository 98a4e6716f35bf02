"""Get flat tables about researchers from the ORCID public API."""

from .api import (
    SECTIONS,
    fetch_many,
    fetch_record,
    fetch_section,
    get_activities,
    get_address,
    get_bio,
    get_distinctions,
    get_educations,
    get_email,
    get_employments,
    get_external_identifiers,
    get_funding,
    get_invited_positions,
    get_keywords,
    get_memberships,
    get_other_names,
    get_peer_reviews,
    get_person,
    get_qualifications,
    get_research_resources,
    get_researcher_urls,
    get_section,
    get_services,
    get_works,
)
from .client import ping
from .errors import (
    APIConnectionError,
    APIError,
    AuthenticationError,
    InvalidFormatError,
    InvalidIdentifierError,
    MalformedResponseError,
    NotFoundError,
    OrcidError,
    RateLimitError,
)
from .identifiers import normalize_orcid, validate_orcid
from .parsers import flatten
from .search import SearchResults, search, search_doi, search_fields

__all__ = [
    "SECTIONS",
    "APIConnectionError",
    "APIError",
    "AuthenticationError",
    "InvalidFormatError",
    "InvalidIdentifierError",
    "MalformedResponseError",
    "NotFoundError",
    "OrcidError",
    "RateLimitError",
    "SearchResults",
    "fetch_many",
    "fetch_record",
    "fetch_section",
    "flatten",
    "get_activities",
    "get_address",
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
    "get_works",
    "normalize_orcid",
    "ping",
    "search",
    "search_doi",
    "search_fields",
    "validate_orcid",
]
