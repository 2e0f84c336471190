class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a requested entity does not exist."""


class InvalidStateError(DomainError):
    """Raised when a queue item cannot make the requested transition."""


class SourceError(DomainError):
    """Base for failures talking to the biometric source API."""


class AuthenticationError(SourceError):
    """Raised when the source API rejects our credentials."""


class SourceUnavailableError(SourceError):
    """Raised on transport failures (timeouts, connection errors, HTTP 5xx)."""
