"""Savings ledger domain models."""

from savings_ledger.models.ledger.client import Client, Payment
from savings_ledger.models.ledger.enums import (
    ContributionStatus,
    LoanPaymentType,
    LoanStatus,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
    TontineInterval,
    TontineStatus,
    TransactionKind,
)
from savings_ledger.models.ledger.loan import Loan, LoanPayment
from savings_ledger.models.ledger.plan import Plan
from savings_ledger.models.ledger.tontine import (
    TontineContribution,
    TontineGroup,
    TontineMember,
)
from savings_ledger.models.ledger.transaction import Deposit, Transfer, Withdrawal

__all__ = [
    "Client",
    "ContributionStatus",
    "Deposit",
    "Loan",
    "LoanPayment",
    "LoanPaymentType",
    "LoanStatus",
    "NotificationCategory",
    "NotificationPriority",
    "NotificationType",
    "Payment",
    "Plan",
    "TontineContribution",
    "TontineGroup",
    "TontineInterval",
    "TontineMember",
    "TontineStatus",
    "TransactionKind",
    "Transfer",
    "Withdrawal",
]
