"""Ledger transaction models: deposits, withdrawals and transfers."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Deposit:
    """Money paid into a client's ledger outside the plan schedule."""

    transaction_id: str
    amount: Decimal
    date: datetime
    note: str | None = None

    # Reversal metadata; reversal is terminal
    reversed: bool = False
    reversal_date: datetime | None = None
    reversal_note: str | None = None


@dataclass
class Withdrawal:
    """Money taken out of a client's ledger."""

    transaction_id: str
    amount: Decimal
    date: datetime
    note: str | None = None

    reversed: bool = False
    reversal_date: datetime | None = None
    reversal_note: str | None = None


@dataclass
class Transfer:
    """Money moved from one client's ledger to another's.

    Stored once in the ledger state; each client sees it through the
    ``from_client_id`` / ``to_client_id`` references.
    """

    transaction_id: str
    amount: Decimal
    date: datetime
    from_client_id: str
    to_client_id: str
    note: str | None = None

    reversed: bool = False
    reversal_date: datetime | None = None
    reversal_note: str | None = None
