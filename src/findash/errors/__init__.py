"""Custom exception hierarchy for findash."""

from __future__ import annotations

from typing import Optional


class FinDashError(Exception):
    """Base class for all custom errors raised by findash."""


# --- 3-layer hierarchy ---

class DomainError(FinDashError):
    """Base class for domain-level errors."""


class InfrastructureError(FinDashError):
    """Base class for infrastructure-level errors."""


class ApplicationError(FinDashError):
    """Base class for application-level errors."""


# --- Domain errors ---

class InvalidRecordError(DomainError):
    """Raised when a server payload cannot be turned into a transaction."""


class QueryNormalizationError(DomainError):
    """Raised when a filter form value cannot be coerced to its query type."""


# --- Infrastructure errors ---

class LoadError(InfrastructureError):
    """Base class for failures talking to the remote transaction store.

    Callers surface every ``LoadError`` as a single ``error`` value; the
    subclasses only exist so logs and tests can tell them apart.
    """


class NetworkFailure(LoadError):
    """Raised when the request never produced an HTTP response."""


class ServerRejected(LoadError):
    """Raised when the server answered with a 4xx/5xx status."""

    def __init__(self, status: int, message: Optional[str] = None) -> None:
        self.status = status
        self.message = message or f"Request failed with status {status}"
        super().__init__(self.message)


# --- Application errors ---

class StaleResponse(ApplicationError):
    """Raised when a load completes after its filter was superseded.

    Stale responses are discarded silently and never shown to the user.
    """


class SettingsError(FinDashError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""
