"""Error taxonomy shared by the analysis pipeline, the maps/search gateways and the HTTP layer."""

from __future__ import annotations

from typing import Optional


class RentSightError(Exception):
    """Base class for every error raised by RentSight services."""


class ConfigurationError(RentSightError):
    """A required credential or setting is missing."""


class UpstreamError(RentSightError):
    """An external service answered with something we cannot use."""


class RateLimitedError(UpstreamError):
    """The upstream service answered HTTP 429."""


class UpstreamFormatError(UpstreamError):
    """Empty, non-JSON or otherwise malformed upstream body."""


class UpstreamStatusError(UpstreamError):
    def __init__(self, status_code: int, body_preview: str = "") -> None:
        self.status_code = status_code
        self.body_preview = body_preview
        message = f"API request failed: {status_code}."
        if body_preview:
            message += f" Response: {body_preview}"
        super().__init__(message)


class ExhaustedRetriesError(UpstreamError):
    def __init__(self, attempts: int, last_error: Optional[BaseException] = None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"Language model call failed after {attempts} attempts{detail}")


class ExtractionError(RentSightError):
    """The uploaded document could not be read."""


class EmptyDocumentError(ExtractionError):
    """The document was readable but contained no extractable text."""


class SummaryGenerationError(RentSightError):
    """One of the two final summarization calls failed."""


class AddressNotFoundError(RentSightError):
    """The geocoder returned no match for an address."""


class DuplicateUserError(RentSightError):
    """A user with the same username already exists."""
