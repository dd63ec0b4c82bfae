"""Enumeration types for savings ledger entities."""

from enum import Enum


class LoanStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


class LoanPaymentType(str, Enum):
    PRINCIPAL = "principal"
    INTEREST = "interest"


class TransactionKind(str, Enum):
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"
    TRANSFER = "transfer"


class TontineInterval(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    TWO_WEEKS = "2-weeks"
    THREE_WEEKS = "3-weeks"
    MONTHLY = "monthly"
    TWO_MONTHS = "2-months"
    TRIMESTER = "trimester"
    SEMESTER = "semester"
    YEARLY = "yearly"
    CUSTOM = "custom"


class TontineStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


class ContributionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationCategory(str, Enum):
    SYSTEM = "system"
    SECURITY = "security"
    TRANSACTION = "transaction"
    USER = "user"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
