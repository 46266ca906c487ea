class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is a stable machine-readable reason shown to API clients.
    """

    code = "error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "invalid"


class ParseError(ValidationError):
    """Raised when a scanned payload is not a structurally valid token reference."""

    code = "parse_error"


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    code = "not_found"


class ExpiredError(DomainError):
    """Raised when a scan token is past its expiry."""

    code = "expired"


class InactiveError(DomainError):
    """Raised when a scan token was revoked or already used up."""

    code = "inactive"


class EventUnavailableError(DomainError):
    """Raised when the token's event is missing or not active."""

    code = "event_unavailable"


class ConflictError(DomainError):
    """Raised on overlapping leave ranges or a lost state race."""

    code = "conflict"


class UnavailableError(DomainError):
    """Raised when storage or a lock cannot be reached. Safe to retry."""

    code = "unavailable"
