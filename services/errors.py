from __future__ import annotations

from typing import Optional


class EnrichmentError(RuntimeError):
    """Base class for failures raised by the enrichment and session layer."""


class ConfigurationError(EnrichmentError):
    """A required provider credential or setting is missing."""


class ValidationError(EnrichmentError):
    """Caller input is malformed (e.g. an unparseable profile URL)."""


class ProviderError(EnrichmentError):
    """An upstream provider answered with a non-2xx status."""

    def __init__(self, provider: str, status_code: int, body: str) -> None:
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(f"{provider} API error: {status_code} - {body}")


class LoginTimeoutError(EnrichmentError, TimeoutError):
    """The interactive login did not complete within the wait budget."""

    def __init__(self, waited_seconds: float, message: Optional[str] = None) -> None:
        self.waited_seconds = waited_seconds
        seconds = int(waited_seconds)
        window = f"{seconds // 60} minutes" if seconds >= 60 and seconds % 60 == 0 else f"{seconds} seconds"
        super().__init__(message or f"Login timeout. Please try again and complete login within {window}.")


class SessionInvalid(EnrichmentError):
    """No usable automation session exists when one is required."""


class SessionBusyError(EnrichmentError):
    """Another acquisition for the same session key is still running."""


class OperationCancelled(EnrichmentError):
    """A long-running wait was cancelled through its cancel event."""
