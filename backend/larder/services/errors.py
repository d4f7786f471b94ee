"""
Error taxonomy for list, pantry and plan operations.

Routers translate these into HTTP status codes; services raise them
before touching persisted state wherever possible.
"""


class LarderError(Exception):
    """Base class for domain errors."""
    pass


class ValidationError(LarderError):
    """Raised when list or plan input is malformed."""
    pass


class GenerationFailure(LarderError):
    """Raised when the AI collaborator fails or returns unusable output."""
    pass


class PersistenceConflict(LarderError):
    """Raised when a versioned write loses a race with another writer."""

    def __init__(self, message: str, attempts: int = 1):
        super().__init__(message)
        self.attempts = attempts


class AuthorizationError(LarderError):
    """Raised when a user mutates data they do not own."""
    pass


class NotFoundError(LarderError):
    """Raised when a referenced plan, list or product does not exist."""
    pass


class ServiceUnavailable(LarderError):
    """Raised when an external lookup fails and the caller can retry or fall back."""
    pass
