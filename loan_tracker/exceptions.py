"""Custom exception hierarchy for loan-tracker."""


class LoanTrackerError(Exception):
    """Base exception for all loan-tracker errors."""


class ValidationError(LoanTrackerError):
    """Raised when loan terms or payment input are malformed."""


class InvalidInputError(LoanTrackerError):
    """Raised when a date or amount cannot be parsed."""


class EntityNotFoundError(LoanTrackerError):
    """Raised when a referenced entity does not exist."""


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class InvalidEntityStateError(LoanTrackerError):
    """Raised when an entity is in an invalid state for the operation."""


class ConfigurationError(LoanTrackerError):
    """Raised when configuration is invalid or missing."""
