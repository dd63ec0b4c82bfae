"""Client and plan payment models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from savings_ledger.models.ledger.loan import Loan
from savings_ledger.models.ledger.transaction import Deposit, Withdrawal


@dataclass
class Payment:
    """One day of a client's plan schedule."""

    day: int  # 1-based
    amount: Decimal  # day * plan.base_amount
    paid: bool = False
    paid_date: datetime | None = None


@dataclass
class Client:
    """Savings club member and their ledger."""

    client_id: str
    name: str
    email: str
    phone: str
    start_date: datetime
    plan_id: str | None = None
    payments: list[Payment] = field(default_factory=list)
    withdrawals: list[Withdrawal] = field(default_factory=list)
    deposits: list[Deposit] = field(default_factory=list)
    loans: list[Loan] = field(default_factory=list)
    is_active: bool = True
