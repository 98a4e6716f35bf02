"""Models for the rows of each table.

The fields of each model, in order, are the columns of its table. Every table
has all of its columns even when it has no rows.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

__all__ = [
    "Address",
    "Affiliation",
    "Biography",
    "Email",
    "ExternalIdentifier",
    "Funding",
    "Keyword",
    "OtherName",
    "PeerReview",
    "Person",
    "ResearchResource",
    "ResearcherUrl",
    "SearchResult",
    "Work",
    "get_columns",
]


class Row(BaseModel):
    """A row in a table about an ORCID record."""

    orcid: str = Field(..., title="ORCID identifier")


class SectionRow(Row):
    """A row that corresponds to one item in a section of an ORCID record."""

    put_code: str | None = Field(None, title="Put code", description="ORCID's ID for the item")


class Affiliation(SectionRow):
    """A model representing an employment, education, or other affiliation."""

    organization: str | None = None
    department: str | None = None
    role: str | None = None
    start_date: str | None = Field(None, title="Start date", description="ISO 8601 prefix")
    end_date: str | None = Field(None, title="End date", description="ISO 8601 prefix")
    city: str | None = None
    region: str | None = None
    country: str | None = None


class Work(SectionRow):
    """A model representing a creative work."""

    title: str | None = None
    type: str | None = None
    publication_date: str | None = Field(None, description="ISO 8601 prefix")
    journal: str | None = None
    doi: str | None = Field(None, title="Digital Object Identifier")
    url: str | None = None


class Funding(SectionRow):
    """A model representing a grant or other funding."""

    title: str | None = None
    type: str | None = None
    organization: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    amount: str | None = None
    currency: str | None = Field(None, description="ISO 4217 currency code")


class PeerReview(SectionRow):
    """A model representing a peer review."""

    reviewer_role: str | None = None
    review_type: str | None = None
    completion_date: str | None = None
    organization: str | None = Field(None, description="The convening organization")


class ResearchResource(SectionRow):
    """A model representing the use of a research resource."""

    proposal_title: str | None = None
    start_date: str | None = None
    end_date: str | None = None


class Person(Row):
    """A model summarizing a person, with exactly one row per record."""

    given_names: str | None = None
    family_name: str | None = None
    credit_name: str | None = None
    biography: str | None = None
    keywords: str | None = Field(None, description="Comma-separated keywords")
    researcher_urls: str | None = Field(None, description="Comma-separated URLs")
    country: str | None = Field(None, description="The country of the first address")


class Biography(Row):
    """A model representing a biography."""

    biography: str | None = None
    visibility: str | None = None


class Keyword(SectionRow):
    """A model representing a keyword."""

    keyword: str | None = None


class ResearcherUrl(SectionRow):
    """A model representing a researcher's website."""

    url_name: str | None = None
    url_value: str | None = None


class ExternalIdentifier(SectionRow):
    """A model representing a researcher's identifier in another database."""

    external_id_type: str | None = None
    external_id_value: str | None = None
    external_id_url: str | None = None


class OtherName(SectionRow):
    """A model representing an alias."""

    other_name: str | None = None


class Address(SectionRow):
    """A model representing an address."""

    country: str | None = None


class Email(Row):
    """A model representing a public email address."""

    email: str | None = None
    verified: bool = False
    primary: bool = False


class SearchResult(BaseModel):
    """A model representing a hit from the ORCID search API."""

    orcid: str | None = Field(None, title="ORCID identifier")
    given_names: str | None = None
    family_name: str | None = None
    credit_name: str | None = None
    other_names: list[str] = Field(default_factory=list)


def get_columns(model: type[BaseModel]) -> list[str]:
    """Get the columns of the table for a model."""
    return list(model.model_fields)
