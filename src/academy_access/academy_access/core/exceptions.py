class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced role, request or subject does not exist."""


class ConflictError(DomainError):
    """Raised on duplicates and on deciding an already decided request."""


class ForbiddenError(DomainError):
    """Raised when a principal lacks the capability for an action."""


class UnavailableError(DomainError):
    """Raised when the backing store cannot be reached."""
