"""Custom exceptions for the commission negotiation service."""


class CommissionError(Exception):
    """Base exception for the commission negotiation service."""

    error_code = "commission_error"


class ValidationError(CommissionError):
    """Raised when request data fails validation."""

    error_code = "validation_error"


class InvalidPercentageError(ValidationError):
    """Raised when a percentage is outside its allowed range."""

    error_code = "invalid_percentage"


class NotFoundError(CommissionError):
    """Raised when a negotiation, service or order is not found."""

    error_code = "not_found"


class ConfigurationError(CommissionError):
    """Raised when configuration is invalid."""

    error_code = "configuration_error"


class AuthenticationError(CommissionError):
    """Raised when authentication fails."""

    error_code = "unauthenticated"


class ForbiddenError(CommissionError):
    """Raised when the actor's role or ownership does not allow the operation."""

    error_code = "forbidden"


class ConflictingOfferError(CommissionError):
    """Raised when an active negotiation already exists for the subject."""

    error_code = "conflicting_offer"


class AlreadyFinalizedError(CommissionError):
    """Raised when a terminal negotiation is mutated."""

    error_code = "already_finalized"


class NoCounterToRespondToError(CommissionError):
    """Raised when a manager responds before any admin counter exists."""

    error_code = "no_counter_to_respond_to"


class StaleStateError(CommissionError):
    """Raised when a concurrent write changed the negotiation first."""

    error_code = "stale_state"


class CommissionAlreadyPaidError(CommissionError):
    """Raised when an order whose commission was paid out is settled again."""

    error_code = "commission_already_paid"
