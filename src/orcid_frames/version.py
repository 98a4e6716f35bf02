"""Version information for :mod:`orcid_frames`."""

__all__ = [
    "VERSION",
]

VERSION = "0.1.0"
