"""
Errors raised by the quote engine.

Only two kinds exist. Both are non-retryable and are meant to propagate
to the caller unchanged.
"""
from typing import Any, Optional


class QuoteEngineError(Exception):
    """Base class for quote engine errors."""


class ConfigurationError(QuoteEngineError):
    """Pricing configuration is missing or inconsistent (unpriced category, bad tier, bad policy file)."""


class InvalidParameterError(QuoteEngineError, ValueError):
    """An enumerated request parameter is outside the recognized set."""

    def __init__(self, field: str, value: Any, allowed: Optional[list[str]] = None):
        self.field = field
        self.value = value
        self.allowed = allowed or []
        message = f"Invalid {field}: {value!r}"
        if self.allowed:
            message += f" (expected one of: {', '.join(self.allowed)})"
        super().__init__(message)
