from __future__ import annotations


class InvalidArgumentError(ValueError):
    """Raised when a breaker is called without an operation or a fallback."""
