"""Custom exception hierarchy for savings-ledger."""


class LedgerError(Exception):
    """Base exception for all savings-ledger errors."""


class EntityNotFoundError(LedgerError):
    """Raised when a referenced entity does not exist."""


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class InvalidEntityStateError(LedgerError):
    """Raised when an entity is in an invalid state for the operation."""


class ValidationError(LedgerError):
    """Raised when an action carries invalid input."""


class InsufficientBalanceError(ValidationError):
    """Raised when an amount exceeds the client's available balance."""


class LoanOverpaymentError(ValidationError):
    """Raised when a loan payment exceeds what remains for its type."""


class DuplicateOrderError(ValidationError):
    """Raised when a tontine payout order is already assigned."""


class DuplicateMemberError(ValidationError):
    """Raised when a client is already a member of a tontine group."""


class PlanInUseError(InvalidEntityStateError):
    """Raised when deleting a plan that clients still reference."""


class ConfigurationError(LedgerError):
    """Raised when configuration is invalid or missing."""


class StorageError(LedgerError):
    """Raised when a snapshot cannot be read or written."""
