"""
Centralized exception hierarchy for location engine errors.

Provider adapters raise these; the resolvers translate them into explicit
provider results so nothing propagates to callers of the public operations.
"""


class LocationEngineError(Exception):
    """Base exception for all engine-specific errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(LocationEngineError):
    """Exception raised when required configuration is missing."""


class ExternalServiceError(LocationEngineError):
    """Exception raised when provider calls fail."""


class RateLimitError(ExternalServiceError):
    """Exception raised when a provider reports that its rate limit was hit."""

