"""Exception hierarchy for ape-meta."""

from __future__ import annotations


class ApeMetaError(Exception):
    """Base class for all ape-meta errors."""

    pass


class UnsupportedContainerError(ApeMetaError):
    """File is not a Monkey's Audio container this decoder can handle.

    Callers should try another decoder rather than treat this as fatal.
    """

    pass


class ApeReadError(ApeMetaError):
    """The source could not be read far enough to decode it."""

    pass


class HeaderTooShortError(ApeReadError):
    """Fewer bytes than the fixed header window were available."""

    pass


class SourceReadError(ApeReadError):
    """Underlying I/O failure while reading a byte range."""

    pass


class TagHeaderError(ApeMetaError):
    """APEv2 tag signature found but its header is truncated."""

    pass
