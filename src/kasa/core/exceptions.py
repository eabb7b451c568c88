"""Custom exception classes for the matching engine.

Each exception maps to a specific error code defined in errors.py. Callers
(request handlers) translate ``http_status`` into their own response format.
"""

from typing import Any


class KasaError(Exception):
    """Base exception for all matching engine errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "AI_001")
        details: Additional context about the error (for logging)
        http_status: HTTP status code a caller should map this to
    """

    http_status_default = 500

    def __init__(
        self,
        error_code: str,
        details: dict[str, Any] | None = None,
        http_status: int | None = None,
    ):
        self.error_code = error_code
        self.details = details or {}
        self.http_status = http_status or self.http_status_default
        super().__init__(error_code)


class ProviderConfigurationError(KasaError):
    """Raised at construction time when no generation provider is configured.

    Maps to AI_001. Never retried.
    """

    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__("AI_001", details)


class ProviderError(KasaError):
    """Raised when a generation provider (or every provider) fails."""

    http_status_default = 502

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        super().__init__("AI_002", {"reason": message, **(details or {})})

    def __str__(self) -> str:
        return self.message


class ForbiddenError(KasaError):
    """Raised when a user tries to modify a system-owned or foreign resource."""

    http_status_default = 403

    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__("AUTH_001", details)


class InvalidCategoryError(KasaError):
    """Raised when a rule references a category the user cannot see."""

    http_status_default = 404

    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__("CAT_001", details)


class PeerNotFoundError(KasaError):
    """Raised when a manual transfer-peer target does not resolve."""

    http_status_default = 404

    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__("TRF_001", details)


class AiDisabledError(KasaError):
    """Raised when the AI pass is requested while the feature flag is off."""

    http_status_default = 503

    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__("AI_003", details)


class PairedWriteError(KasaError):
    """Raised when the commit of a two-sided write fails and was rolled back."""

    http_status_default = 500

    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__("DB_001", details)
