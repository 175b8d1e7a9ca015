from typing import Optional, Dict, Any


class DomainError(Exception):
    """Base class for errors raised by the service layer.

    Domain errors carry no transport details; the HTTP status for each
    subclass is assigned in ``swapapi.core.exception_handlers``.
    """

    error_code = "DOMAIN_001"
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:  # Ensure str(e) returns the human message
        return self.message


class ValidationError(DomainError):
    """Malformed input: bad interval, missing or invalid field"""

    error_code = "VALIDATION_001"
    default_message = "Validation failed"


class AuthenticationError(DomainError):
    """Missing or invalid credential"""

    error_code = "AUTH_001"
    default_message = "Authentication failed"


class AuthorizationError(DomainError):
    """Insufficient role or acting on another user's resource"""

    error_code = "AUTH_002"
    default_message = "Access forbidden"


class NotFoundError(DomainError):
    """Referenced entity absent or not visible to the actor"""

    error_code = "NOT_FOUND_001"
    default_message = "Resource not found"


class ConflictError(DomainError):
    """Overlapping shift, duplicate subscription, illegal state transition"""

    error_code = "CONFLICT_001"
    default_message = "Resource conflict"


class InsufficientFundsError(DomainError):
    """Wallet balance below the amount to debit"""

    error_code = "BALANCE_001"
    default_message = "Insufficient wallet balance"


class InternalError(DomainError):
    """Storage or transaction failure; the message never carries internals"""

    error_code = "INTERNAL_001"
    default_message = "Internal server error"
