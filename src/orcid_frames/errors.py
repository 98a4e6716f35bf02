"""Exceptions raised when talking to the ORCID API."""

from __future__ import annotations

__all__ = [
    "APIConnectionError",
    "APIError",
    "AuthenticationError",
    "HTTPStatusError",
    "InvalidFormatError",
    "InvalidIdentifierError",
    "MalformedResponseError",
    "NotFoundError",
    "OrcidError",
    "RateLimitError",
]


class OrcidError(Exception):
    """The base class for errors from the ORCID API."""


class APIConnectionError(OrcidError):
    """Raised when the ORCID API host could not be reached at all."""


class HTTPStatusError(OrcidError):
    """Raised when the ORCID API answers with an error status."""

    def __init__(self, message: str, status: int, description: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.description = description


class NotFoundError(HTTPStatusError):
    """Raised on a 404, i.e., the record or section does not exist."""


class AuthenticationError(HTTPStatusError):
    """Raised on a 401, i.e., the bearer token was rejected.

    The public API rejects any malformed token, including one given for what
    could have been an anonymous request.
    """


class RateLimitError(HTTPStatusError):
    """Raised on a 429."""


class APIError(HTTPStatusError):
    """Raised on any other status of 400 or above."""


class MalformedResponseError(OrcidError):
    """Raised when the response body could not be decoded as JSON."""


class InvalidIdentifierError(ValueError):
    """Raised when a string can not be turned into a canonical ORCID identifier."""


class InvalidFormatError(InvalidIdentifierError):
    """Raised when a string does not match the canonical ORCID pattern."""
