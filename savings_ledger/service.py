"""Validating facade over the ledger store.

``Ledger`` is what calling code talks to: it checks each action against the
current state, raises a typed error when a precondition fails and otherwise
hands the action to the store. The convenience methods build actions the
way an entry form would (fresh ids, current timestamps) and return the
created record.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

from savings_ledger import actions as act
from savings_ledger.config import LedgerConfig
from savings_ledger.engine import amortization, balance, rotation
from savings_ledger.exceptions import EntityNotFoundError, LedgerError
from savings_ledger.models.base import Notification
from savings_ledger.models.ledger import (
    Client,
    ContributionStatus,
    Deposit,
    Loan,
    LoanPayment,
    LoanPaymentType,
    LoanStatus,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
    Plan,
    TontineGroup,
    TontineInterval,
    TontineMember,
    TransactionKind,
    Transfer,
    Withdrawal,
)
from savings_ledger.store.ledger_store import LedgerStore
from savings_ledger.store.state import LedgerState
from savings_ledger.storage.json_file import JsonSnapshotStore
from savings_ledger.validation import check_invariants, validate_action

logger = logging.getLogger(__name__)

Amount = Decimal | int | str


def new_id() -> str:
    return uuid.uuid4().hex


def _money(amount: Amount) -> Decimal:
    return amount if isinstance(amount, Decimal) else Decimal(str(amount))


class Ledger:
    """Savings club ledger with precondition checks.

    Parameters
    ----------
    store : LedgerStore | None
        Store to operate on (a fresh one when omitted).
    clock : Callable[[], datetime]
        Source of timestamps for new records.
    """

    def __init__(
        self,
        store: LedgerStore | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store or LedgerStore()
        self.clock = clock

    @property
    def state(self) -> LedgerState:
        return self.store.state

    def dispatch(self, action: act.Action) -> LedgerState:
        """Validate an action, then apply it.

        Raises
        ------
        LedgerError
            If the action violates a precondition; the state is unchanged.
        """
        try:
            validate_action(self.state, action)
        except LedgerError as e:
            logger.warning("Rejected %s: %s", type(action).__name__, e)
            raise
        return self.store.dispatch(action)

    def get_client(self, client_id: str) -> Client:
        client = self.state.clients.get(client_id)
        if client is None:
            raise EntityNotFoundError(f"Client {client_id} not found")
        return client

    def get_loan(self, client_id: str, loan_id: str) -> Loan:
        loan = self.state.get_loan(client_id, loan_id)
        if loan is None:
            raise EntityNotFoundError(f"Loan {loan_id} not found for client {client_id}")
        return loan

    def get_group(self, group_id: str) -> TontineGroup:
        group = self.state.tontine_groups.get(group_id)
        if group is None:
            raise EntityNotFoundError(f"Tontine group {group_id} not found")
        return group

    # Plans

    def add_plan(
        self,
        name: str,
        base_amount: Amount,
        duration: int,
        admin_percentage: Amount = Decimal("10"),
        description: str | None = None,
    ) -> Plan:
        plan = Plan(
            plan_id=new_id(),
            name=name,
            base_amount=_money(base_amount),
            duration=duration,
            admin_percentage=_money(admin_percentage),
            description=description,
        )
        self.dispatch(act.AddPlan(plan))
        logger.info("Added plan %s (%s)", plan.name, plan.plan_id)
        return plan

    def delete_plan(self, plan_id: str) -> None:
        self.dispatch(act.DeletePlan(plan_id))
        logger.info("Deleted plan %s", plan_id)

    # Clients

    def add_client(
        self,
        name: str,
        email: str,
        phone: str,
        plan_id: str | None = None,
        client_id: str | None = None,
    ) -> Client:
        """Enroll a client, generating their schedule when a plan is given."""
        client = Client(
            client_id=client_id or new_id(),
            name=name,
            email=email,
            phone=phone,
            start_date=self.clock(),
            plan_id=plan_id,
        )
        self.dispatch(act.AddClient(client))
        logger.info("Added client %s on plan %s", client.client_id, plan_id)
        return self.state.clients[client.client_id]

    def update_client(self, client_id: str, **changes: Any) -> Client:
        """Change a client's details (name, email, phone, plan_id, is_active)."""
        allowed = {"name", "email", "phone", "plan_id", "is_active"}
        unknown = set(changes) - allowed
        if unknown:
            raise TypeError(f"Cannot update client fields: {sorted(unknown)}")

        client = replace(self.get_client(client_id), **changes)
        self.dispatch(act.UpdateClient(client))
        return self.state.clients[client_id]

    def delete_client(self, client_id: str) -> None:
        self.dispatch(act.DeleteClient(client_id))
        logger.info("Deleted client %s", client_id)

    def mark_payment(self, client_id: str, day: int, paid: bool = True) -> None:
        self.dispatch(
            act.TogglePayment(client_id, day, paid, self.clock() if paid else None)
        )

    def renew_plan(self, client_id: str, start_date: datetime | None = None) -> Client:
        """Restart a client's plan schedule; withdrawals are cleared."""
        self.dispatch(act.RenewClientPlan(client_id, start_date or self.clock()))
        logger.info("Renewed plan of client %s", client_id)
        return self.state.clients[client_id]

    def client_balance(self, client_id: str) -> balance.ClientBalance:
        client = self.get_client(client_id)
        return balance.client_balance(
            client, self.state.plans, self.state.get_client_transfers(client_id)
        )

    def available_balance(self, client_id: str) -> Decimal:
        client = self.get_client(client_id)
        return balance.available_balance(
            client, self.state.plans, self.state.get_client_transfers(client_id)
        )

    def portfolio(self) -> balance.PortfolioSummary:
        return balance.portfolio_summary(self.state.clients.values(), self.state.plans)

    # Money movements

    def deposit(self, client_id: str, amount: Amount, note: str | None = None) -> Deposit:
        deposit = Deposit(
            transaction_id=new_id(), amount=_money(amount), date=self.clock(), note=note
        )
        self.dispatch(act.AddDeposit(client_id, deposit))
        logger.info("Deposit of %s for client %s", deposit.amount, client_id)
        return deposit

    def withdraw(
        self, client_id: str, amount: Amount, note: str | None = None
    ) -> Withdrawal:
        withdrawal = Withdrawal(
            transaction_id=new_id(), amount=_money(amount), date=self.clock(), note=note
        )
        self.dispatch(act.AddWithdrawal(client_id, withdrawal))
        logger.info("Withdrawal of %s for client %s", withdrawal.amount, client_id)
        return withdrawal

    def transfer(
        self,
        from_client_id: str,
        to_client_id: str,
        amount: Amount,
        note: str | None = None,
    ) -> Transfer:
        transfer = Transfer(
            transaction_id=new_id(),
            amount=_money(amount),
            date=self.clock(),
            from_client_id=from_client_id,
            to_client_id=to_client_id,
            note=note,
        )
        self.dispatch(act.AddTransfer(transfer))
        logger.info(
            "Transfer of %s from %s to %s", transfer.amount, from_client_id, to_client_id
        )
        return transfer

    def reverse(
        self,
        client_id: str,
        transaction_id: str,
        kind: TransactionKind,
        note: str,
    ) -> None:
        """Reverse a deposit, withdrawal or transfer. Reversal is final."""
        self.dispatch(
            act.ReverseTransaction(client_id, transaction_id, kind, note, self.clock())
        )
        logger.info("Reversed %s %s for client %s", kind.value, transaction_id, client_id)

    # Loans

    def request_loan(
        self,
        client_id: str,
        amount: Amount,
        interest_rate: Amount,
        due_date: date,
        note: str | None = None,
    ) -> Loan:
        loan = Loan(
            loan_id=new_id(),
            principal=_money(amount),
            interest_rate=_money(interest_rate),
            start_date=self.clock().date(),
            due_date=due_date,
            note=note,
        )
        self.dispatch(act.AddLoan(client_id, loan))
        logger.info("Loan %s of %s requested for client %s", loan.loan_id, loan.principal, client_id)
        return loan

    def set_loan_status(self, client_id: str, loan_id: str, status: LoanStatus) -> Loan:
        self.dispatch(act.UpdateLoanStatus(client_id, loan_id, status))
        logger.info("Loan %s is now %s", loan_id, status.value)
        return self.get_loan(client_id, loan_id)

    def approve_loan(self, client_id: str, loan_id: str) -> Loan:
        return self.set_loan_status(client_id, loan_id, LoanStatus.APPROVED)

    def reject_loan(self, client_id: str, loan_id: str) -> Loan:
        return self.set_loan_status(client_id, loan_id, LoanStatus.REJECTED)

    def pay_loan(
        self,
        client_id: str,
        loan_id: str,
        amount: Amount,
        payment_type: LoanPaymentType,
    ) -> LoanPayment:
        """Record a repayment; the loan becomes paid once nothing remains."""
        payment = LoanPayment(
            payment_id=new_id(),
            amount=_money(amount),
            date=self.clock(),
            payment_type=payment_type,
        )
        self.dispatch(act.AddLoanPayment(client_id, loan_id, payment))
        if self.get_loan(client_id, loan_id).status == LoanStatus.PAID:
            logger.info("Loan %s fully repaid", loan_id)
        return payment

    def delete_loan(self, client_id: str, loan_id: str) -> None:
        loan = self.get_loan(client_id, loan_id)
        if loan.status == LoanStatus.APPROVED:
            summary = amortization.summarize(loan)
            logger.warning(
                "Deleting approved loan %s with %s still outstanding",
                loan_id,
                summary.remaining_total,
            )
        self.dispatch(act.DeleteLoan(client_id, loan_id))

    # Tontines

    def create_tontine(
        self,
        name: str,
        contribution_amount: Amount,
        member_count: int,
        interval: TontineInterval,
        start_date: date,
        custom_interval: int | None = None,
        description: str | None = None,
    ) -> TontineGroup:
        group = TontineGroup(
            group_id=new_id(),
            name=name,
            contribution_amount=_money(contribution_amount),
            member_count=member_count,
            interval=interval,
            start_date=start_date,
            custom_interval=custom_interval,
            description=description,
        )
        self.dispatch(act.AddTontineGroup(group))
        logger.info("Created tontine group %s with %d seats", group.group_id, member_count)
        return group

    def add_tontine_member(
        self, group_id: str, client_id: str, payout_order: int
    ) -> TontineMember:
        """Seat a client at a payout position.

        Raises
        ------
        DuplicateOrderError
            If the position is taken.
        DuplicateMemberError
            If the client already belongs to the group.
        """
        member_id = new_id()
        self.dispatch(act.AddTontineMember(group_id, member_id, client_id, payout_order))
        group = self.get_group(group_id)
        logger.info(
            "Client %s joined tontine %s at position %d (%d/%d, %s)",
            client_id,
            group_id,
            payout_order,
            len(group.members),
            group.member_count,
            group.status.value,
        )
        return rotation.find_member(group, member_id)

    def mark_contribution(
        self,
        group_id: str,
        member_id: str,
        contribution_id: str,
        status: ContributionStatus = ContributionStatus.PAID,
    ) -> TontineGroup:
        self.dispatch(
            act.UpdateTontineContribution(group_id, member_id, contribution_id, status)
        )
        return self.get_group(group_id)

    def delete_tontine(self, group_id: str) -> None:
        self.dispatch(act.DeleteTontineGroup(group_id))
        logger.info("Deleted tontine group %s", group_id)

    # Notifications

    def notify(
        self,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.INFO,
        category: NotificationCategory | None = None,
        priority: NotificationPriority | None = None,
        link: str | None = None,
    ) -> Notification:
        notification = Notification(
            notification_id=new_id(),
            title=title,
            message=message,
            notification_type=notification_type,
            date=self.clock(),
            link=link,
            category=category,
            priority=priority,
        )
        self.dispatch(act.AddNotification(notification))
        return notification


def open_ledger(
    config: LedgerConfig | None = None,
    tenant_id: str | None = None,
) -> Ledger:
    """Build a ledger backed by the tenant's JSON snapshot.

    The snapshot is loaded when present; with ``autosave`` enabled every
    committed transition is written back. A failed save is logged by the
    store and does not undo the transition.

    Parameters
    ----------
    config : LedgerConfig | None
        Configuration (read from the environment when omitted).
    tenant_id : str | None
        Tenant to open (``config.tenant_id`` when omitted).

    Returns
    -------
    Ledger
        Ready-to-use ledger.
    """
    config = config or LedgerConfig.from_env()
    tenant_id = tenant_id or config.tenant_id
    snapshots = JsonSnapshotStore(config.storage.data_dir, pretty=config.storage.pretty_json)

    store = LedgerStore()
    loaded = snapshots.load(tenant_id)
    if loaded is not None:
        for problem in check_invariants(loaded):
            logger.warning("Snapshot %s: %s", tenant_id, problem)
        store.dispatch(act.LoadSnapshot(loaded))

    if config.storage.autosave:
        store.subscribe(lambda state, _action: snapshots.save(state, tenant_id))

    logger.info("Opened ledger for tenant %s", tenant_id)
    return Ledger(store)
