"""Exception hierarchy shared by the store, forms and analysis adapters."""

from __future__ import annotations


class WardrobeError(RuntimeError):
    """Base class for every error surfaced to the user."""


class ValidationError(WardrobeError):
    """Raised when a draft is missing a required field."""


class NotFoundError(WardrobeError):
    """Raised when a record lookup misses."""

    def __init__(self, kind: str, item_id: str) -> None:
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind.capitalize()} {item_id} was not found.")


class AnalysisError(WardrobeError):
    """Raised when photo auto-fill or background removal fails."""


class ConfigurationError(AnalysisError):
    """Raised before any network call when the provider is not configured."""


class ProviderError(AnalysisError):
    """Raised when the provider call fails or its reply cannot be parsed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class UnsupportedOperationError(AnalysisError):
    """Raised when the selected provider does not offer the requested feature."""


__all__ = [
    "AnalysisError",
    "ConfigurationError",
    "NotFoundError",
    "ProviderError",
    "UnsupportedOperationError",
    "ValidationError",
    "WardrobeError",
]
