"""Loan models for the savings ledger."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from savings_ledger.models.ledger.enums import LoanPaymentType, LoanStatus


@dataclass
class LoanPayment:
    """Repayment applied to either the principal or the interest of a loan."""

    payment_id: str
    amount: Decimal
    date: datetime
    payment_type: LoanPaymentType


@dataclass
class Loan:
    """Loan granted to a client, with simple non-compounding interest."""

    loan_id: str
    principal: Decimal  # Amount borrowed
    interest_rate: Decimal  # Percentage over the life of the loan (e.g., 5 for 5%)
    start_date: date
    due_date: date
    status: LoanStatus = LoanStatus.PENDING
    payments: list[LoanPayment] = field(default_factory=list)
    note: str | None = None
