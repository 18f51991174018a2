"""
Custom exceptions for the meeting intelligence pipeline.

Provider failures are recovered inside the research layer; generation
failures and deadline overruns are the only errors a caller of
``generate_report`` is expected to handle.
"""

from typing import Any, Dict, Optional


class MeetingIntelError(Exception):
    """Base exception for all meeting intelligence errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(MeetingIntelError):
    """Raised when there are configuration issues."""

    pass


class ValidationError(MeetingIntelError):
    """Research request failed validation."""

    pass


class DataAccessError(MeetingIntelError):
    """Base class for external data provider errors."""

    pass


class SearchProviderError(DataAccessError):
    """Web search provider related errors."""

    pass


class CRMError(DataAccessError):
    """CRM contact store related errors."""

    pass


class EnrichmentError(DataAccessError):
    """People enrichment provider related errors."""

    pass


class EnrichmentQuotaError(EnrichmentError):
    """Enrichment provider refused the call because the quota is exhausted."""

    pass


class ScrapeError(DataAccessError):
    """Webpage fetch or extraction failed."""

    pass


class ExternalServiceError(DataAccessError):
    """External service is unavailable or returning errors."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(f"{service}: {message}", **kwargs)
        self.service = service
        self.status_code = status_code


class TransientServiceError(ExternalServiceError):
    """External service failure worth retrying (throttling, 5xx, transport)."""

    pass


class GenerationError(MeetingIntelError):
    """The LLM could not produce a report draft."""

    pass


class GenerationTimeoutError(MeetingIntelError):
    """Report generation exceeded its overall deadline."""

    def __init__(self, message: str, deadline_seconds: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.deadline_seconds = deadline_seconds
