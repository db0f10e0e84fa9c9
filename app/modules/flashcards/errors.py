"""Error taxonomy for the generation pipeline and the flashcard library.

Each component raises only its own closed set of exceptions; the API layer
renders ``ServiceError`` subclasses using their ``status_code``.
"""

from __future__ import annotations

import enum
from typing import Any, Optional


class ProviderError(Exception):
    """Base class for failures of the structured-output provider client."""


class ConfigurationError(ProviderError):
    """The provider API key is not configured."""


class ProviderApiError(ProviderError):
    """The provider answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int, response_body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class NetworkError(ProviderError):
    """Transport failure: DNS, connect, read or the hard timeout."""


class InvalidResponseJsonError(ProviderError):
    """The provider reply (or its message content) is not parseable JSON."""


class SchemaValidationError(ProviderError):
    def __init__(self, issues: list[dict[str, Any]]):
        super().__init__(f"Schema validation failed: {len(issues)} issue(s)")
        self.issues = issues


class GenerationErrorCode(str, enum.Enum):
    AI_ERROR = "AI_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class FlashcardErrorCode(str, enum.Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"


class ServiceError(Exception):
    code: enum.Enum

    def __init__(
        self,
        code: enum.Enum,
        message: str,
        status_code: int,
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details


class GenerationServiceError(ServiceError):
    code: GenerationErrorCode


class FlashcardServiceError(ServiceError):
    code: FlashcardErrorCode


__all__ = [
    "ProviderError",
    "ConfigurationError",
    "ProviderApiError",
    "NetworkError",
    "InvalidResponseJsonError",
    "SchemaValidationError",
    "GenerationErrorCode",
    "FlashcardErrorCode",
    "ServiceError",
    "GenerationServiceError",
    "FlashcardServiceError",
]
