"""Exception hierarchy for the claim decision pipeline."""

from __future__ import annotations


class ClaimCheckError(Exception):
    """Base class for all claimcheck errors."""


class ConfigError(ClaimCheckError, ValueError):
    """Invalid configuration detected at startup."""


class InputValidationError(ClaimCheckError):
    """A request is missing required fields or carries malformed ones."""


class ExtractionError(ClaimCheckError):
    """A single document could not be turned into text."""


class NoContentError(ClaimCheckError):
    """No document produced any indexable text."""

    def __init__(self, message: str = "No extractable text found in documents.") -> None:
        super().__init__(message)


class ProviderError(ClaimCheckError):
    """An embedding or generative backend call failed at the transport level."""


class DimensionMismatchError(ClaimCheckError):
    """Two vectors that must share a dimensionality do not."""
