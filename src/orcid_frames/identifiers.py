"""Canonicalization and validation of ORCID identifiers.

The ORCID API accepts identifiers in three shapes, all of which are
normalized here before any request is built:

1. the canonical dashed form, e.g., ``0000-0002-1825-0097``
2. the bare form, e.g., ``0000000218250097``
3. the URL form, e.g., ``https://orcid.org/0000-0002-1825-0097``
"""

from __future__ import annotations

import re
from collections.abc import Collection

from orcid_frames.errors import InvalidFormatError, InvalidIdentifierError

__all__ = [
    "ORCID_PATTERN",
    "normalize_orcid",
    "validate_orcid",
]

#: The canonical form, where the last character is a checksum that can be X
ORCID_PATTERN = re.compile(r"^\d{4}-\d{4}-\d{4}-\d{3}[0-9X]$", re.ASCII)

URL_PREFIX = re.compile(r"^https?://(www\.)?orcid\.org/", re.IGNORECASE)
SEPARATORS = re.compile(r"[\s\-\u2010-\u2015]")
BARE = re.compile(r"^\d{15}[0-9X]$", re.ASCII)

EXAMPLE = "0000-0002-1825-0097"


def validate_orcid(value, fail_fast: bool = True) -> bool:
    """Check that a value is a single, canonically dashed ORCID identifier.

    :param value: The value to check
    :param fail_fast: If true, raise an exception for an invalid value.
        Otherwise, return false.
    :returns: If the value is a valid ORCID identifier
    :raises InvalidFormatError: if ``fail_fast`` and the value is invalid
    """
    if value is None or (isinstance(value, str | Collection) and not value):
        if fail_fast:
            raise InvalidFormatError("ORCID identifier can not be None or empty")
        return False

    if not isinstance(value, str):
        if fail_fast:
            if isinstance(value, Collection):
                raise InvalidFormatError(
                    f"expected a single ORCID identifier, got {len(value)}: {value!r}"
                )
            raise InvalidFormatError(
                f"ORCID identifier must be a string, got {type(value).__name__}"
            )
        return False

    if ORCID_PATTERN.fullmatch(value):
        return True
    if fail_fast:
        raise InvalidFormatError(
            f"invalid ORCID format: '{value}'. Expected XXXX-XXXX-XXXX-XXXX (e.g., {EXAMPLE})"
        )
    return False


def normalize_orcid(text: str) -> str:
    """Normalize an ORCID identifier to its canonical dashed form.

    :param text: An ORCID identifier, with or without dashes and with or
        without the ``https://orcid.org/`` prefix
    :returns: The canonical form, e.g., ``0000-0002-1825-0097``
    :raises InvalidIdentifierError: if the text can't be normalized

    >>> normalize_orcid("0000000218250097")
    '0000-0002-1825-0097'
    >>> normalize_orcid("https://orcid.org/0000-0002-1825-0097")
    '0000-0002-1825-0097'
    """
    if not isinstance(text, str):
        raise InvalidIdentifierError("normalize_orcid expects a single ORCID identifier")

    stripped = URL_PREFIX.sub("", text.strip()).rstrip("/")
    clean = SEPARATORS.sub("", stripped)

    if not BARE.fullmatch(clean):
        raise InvalidIdentifierError(
            f"invalid ORCID identifier: '{text}'. Expected 16 characters "
            f"(digits, with an optional trailing X)"
        )

    formatted = "-".join(clean[i : i + 4] for i in range(0, 16, 4))
    validate_orcid(formatted, fail_fast=True)
    return formatted
