"""Exception types raised by the reading core."""

from __future__ import annotations


class ReaderError(RuntimeError):
    """Base class for all reading-core errors."""


class ConfigurationError(ReaderError):
    """Raised when settings cannot be loaded or fail validation."""


class TokenValidationError(ReaderError):
    """Raised when a token payload is missing required fields."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class TranslationUnavailableError(ReaderError):
    """Raised when the translation backend produced no usable result."""


class IncompleteCanonicalPairError(ReaderError):
    """Raised when a canonical word pair is missing one side."""


class SessionClosedError(ReaderError):
    """Raised when an action is invoked on a torn-down reading session."""


__all__ = [
    "ConfigurationError",
    "IncompleteCanonicalPairError",
    "ReaderError",
    "SessionClosedError",
    "TokenValidationError",
    "TranslationUnavailableError",
]
