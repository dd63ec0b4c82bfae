"""Actions accepted by the ledger reducer.

Each state transition is one frozen dataclass; ``Action`` is the closed
union of all of them. Actions carry every timestamp they need so that the
reducer never reads the clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Union

from savings_ledger.models.base import AdminProfile, Notification
from savings_ledger.models.ledger import (
    Client,
    ContributionStatus,
    Deposit,
    Loan,
    LoanPayment,
    LoanStatus,
    Plan,
    TontineGroup,
    TransactionKind,
    Transfer,
    Withdrawal,
)

if TYPE_CHECKING:
    from savings_ledger.store.state import LedgerState


# Clients


@dataclass(frozen=True)
class AddClient:
    client: Client


@dataclass(frozen=True)
class UpdateClient:
    client: Client


@dataclass(frozen=True)
class DeleteClient:
    client_id: str


# Plan catalog


@dataclass(frozen=True)
class AddPlan:
    plan: Plan


@dataclass(frozen=True)
class UpdatePlan:
    plan: Plan


@dataclass(frozen=True)
class DeletePlan:
    plan_id: str


# Ledger entries


@dataclass(frozen=True)
class TogglePayment:
    client_id: str
    day: int
    paid: bool
    paid_at: datetime | None = None


@dataclass(frozen=True)
class AddWithdrawal:
    client_id: str
    withdrawal: Withdrawal


@dataclass(frozen=True)
class AddDeposit:
    client_id: str
    deposit: Deposit


@dataclass(frozen=True)
class AddTransfer:
    transfer: Transfer


@dataclass(frozen=True)
class ReverseTransaction:
    client_id: str
    transaction_id: str
    kind: TransactionKind
    note: str
    reversed_at: datetime


@dataclass(frozen=True)
class RenewClientPlan:
    client_id: str
    start_date: datetime


# Loans


@dataclass(frozen=True)
class AddLoan:
    client_id: str
    loan: Loan


@dataclass(frozen=True)
class DeleteLoan:
    client_id: str
    loan_id: str


@dataclass(frozen=True)
class UpdateLoanStatus:
    client_id: str
    loan_id: str
    status: LoanStatus


@dataclass(frozen=True)
class AddLoanPayment:
    client_id: str
    loan_id: str
    payment: LoanPayment


# Tontines


@dataclass(frozen=True)
class AddTontineGroup:
    group: TontineGroup


@dataclass(frozen=True)
class UpdateTontineGroup:
    group: TontineGroup


@dataclass(frozen=True)
class DeleteTontineGroup:
    group_id: str


@dataclass(frozen=True)
class AddTontineMember:
    group_id: str
    member_id: str
    client_id: str
    payout_order: int


@dataclass(frozen=True)
class UpdateTontineContribution:
    group_id: str
    member_id: str
    contribution_id: str
    status: ContributionStatus


# Administration


@dataclass(frozen=True)
class UpdateAdminProfile:
    profile: AdminProfile


@dataclass(frozen=True)
class AddNotification:
    notification: Notification


@dataclass(frozen=True)
class MarkNotificationRead:
    notification_id: str


@dataclass(frozen=True)
class ClearNotifications:
    pass


# Selection


@dataclass(frozen=True)
class SelectClient:
    client_id: str | None


@dataclass(frozen=True)
class SelectPlan:
    plan_id: str | None


@dataclass(frozen=True)
class SelectLoan:
    client_id: str | None
    loan_id: str | None


@dataclass(frozen=True)
class SelectTontineGroup:
    group_id: str | None


@dataclass(frozen=True)
class LoadSnapshot:
    """Replace the ledger data with a loaded snapshot."""

    snapshot: LedgerState


Action = Union[
    AddClient,
    UpdateClient,
    DeleteClient,
    AddPlan,
    UpdatePlan,
    DeletePlan,
    TogglePayment,
    AddWithdrawal,
    AddDeposit,
    AddTransfer,
    ReverseTransaction,
    RenewClientPlan,
    AddLoan,
    DeleteLoan,
    UpdateLoanStatus,
    AddLoanPayment,
    AddTontineGroup,
    UpdateTontineGroup,
    DeleteTontineGroup,
    AddTontineMember,
    UpdateTontineContribution,
    UpdateAdminProfile,
    AddNotification,
    MarkNotificationRead,
    ClearNotifications,
    SelectClient,
    SelectPlan,
    SelectLoan,
    SelectTontineGroup,
    LoadSnapshot,
]
