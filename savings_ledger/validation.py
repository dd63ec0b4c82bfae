"""Precondition checks for ledger actions.

``validate_action`` raises a typed :class:`~savings_ledger.exceptions.LedgerError`
when an action must not be applied to the given state; the reducer itself
trusts its input.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Callable

from savings_ledger import actions as act
from savings_ledger.engine import amortization, balance, rotation
from savings_ledger.exceptions import (
    EntityNotFoundError,
    InsufficientBalanceError,
    InvalidEntityStateError,
    LoanOverpaymentError,
    PlanInUseError,
    ReferentialIntegrityError,
    ValidationError,
)
from savings_ledger.models.ledger import (
    Client,
    Loan,
    LoanStatus,
    Plan,
    TontineGroup,
    TontineInterval,
    TontineStatus,
    TransactionKind,
)
from savings_ledger.store.state import LedgerState

MAX_PLAN_DURATION = 90
MIN_TONTINE_MEMBERS = 2

# Fields the payment schedule of an enrolled client is derived from
PLAN_SCHEDULE_FIELDS = ("base_amount", "duration")
# Fields every member's contribution schedule is derived from
GROUP_SCHEDULE_FIELDS = (
    "contribution_amount",
    "member_count",
    "interval",
    "custom_interval",
    "start_date",
)

LOAN_TRANSITIONS = {
    LoanStatus.PENDING: {LoanStatus.APPROVED, LoanStatus.REJECTED},
    LoanStatus.APPROVED: {LoanStatus.PAID},
    LoanStatus.REJECTED: set(),
    LoanStatus.PAID: set(),
}


def _require_client(state: LedgerState, client_id: str) -> Client:
    client = state.clients.get(client_id)
    if client is None:
        raise EntityNotFoundError(f"Client {client_id} not found")
    return client


def _require_loan(state: LedgerState, client_id: str, loan_id: str) -> Loan:
    _require_client(state, client_id)
    loan = state.get_loan(client_id, loan_id)
    if loan is None:
        raise EntityNotFoundError(f"Loan {loan_id} not found for client {client_id}")
    return loan


def _require_group(state: LedgerState, group_id: str) -> TontineGroup:
    group = state.tontine_groups.get(group_id)
    if group is None:
        raise EntityNotFoundError(f"Tontine group {group_id} not found")
    return group


def _require_positive(amount: Decimal, what: str) -> None:
    if amount <= 0:
        raise ValidationError(f"{what} must be greater than 0")


def _require_text(value: str | None, what: str) -> None:
    if not value or not value.strip():
        raise ValidationError(f"{what} is required")


def _check_client_fields(state: LedgerState, client: Client) -> None:
    _require_text(client.name, "Name")
    _require_text(client.email, "Email")
    _require_text(client.phone, "Phone")
    if client.plan_id and client.plan_id not in state.plans:
        raise ReferentialIntegrityError(f"Plan {client.plan_id} not found")


def _check_plan_fields(plan: Plan) -> None:
    _require_text(plan.name, "Name")
    _require_positive(plan.base_amount, "Base amount")
    if not 1 <= plan.duration <= MAX_PLAN_DURATION:
        raise ValidationError(f"Duration must be between 1 and {MAX_PLAN_DURATION} days")
    if not 0 <= plan.admin_percentage <= 100:
        raise ValidationError("Admin percentage must be between 0 and 100")


def _check_group_fields(state: LedgerState, group: TontineGroup) -> None:
    _require_text(group.name, "Name")
    _require_positive(group.contribution_amount, "Contribution amount")
    if group.member_count < MIN_TONTINE_MEMBERS:
        raise ValidationError(f"A tontine needs at least {MIN_TONTINE_MEMBERS} members")
    if group.interval == TontineInterval.CUSTOM and (
        group.custom_interval is None or group.custom_interval <= 0
    ):
        raise ValidationError("Custom interval must be a positive number of days")
    if len(group.members) > group.member_count:
        raise ValidationError("Group has more members than member_count")

    orders = [m.payout_order for m in group.members]
    if len(set(orders)) != len(orders):
        raise ValidationError("Duplicate payout orders found")
    if any(not 1 <= order <= group.member_count for order in orders):
        raise ValidationError(f"Payout orders must be within 1..{group.member_count}")

    client_ids = [m.client_id for m in group.members]
    if len(set(client_ids)) != len(client_ids):
        raise ValidationError("Duplicate clients found")
    for client_id in client_ids:
        if client_id not in state.clients:
            raise ReferentialIntegrityError(f"Client {client_id} not found")


# Clients


def _validate_add_client(state: LedgerState, action: act.AddClient) -> None:
    _require_text(action.client.client_id, "Client id")
    if action.client.client_id in state.clients:
        raise ValidationError(f"Client {action.client.client_id} already exists")
    _check_client_fields(state, action.client)


def _validate_update_client(state: LedgerState, action: act.UpdateClient) -> None:
    _require_client(state, action.client.client_id)
    _check_client_fields(state, action.client)


def _validate_delete_client(state: LedgerState, action: act.DeleteClient) -> None:
    _require_client(state, action.client_id)


# Plan catalog


def _validate_add_plan(state: LedgerState, action: act.AddPlan) -> None:
    _require_text(action.plan.plan_id, "Plan id")
    if action.plan.plan_id in state.plans:
        raise ValidationError(f"Plan {action.plan.plan_id} already exists")
    _check_plan_fields(action.plan)


def _validate_update_plan(state: LedgerState, action: act.UpdatePlan) -> None:
    current = state.plans.get(action.plan.plan_id)
    if current is None:
        raise EntityNotFoundError(f"Plan {action.plan.plan_id} not found")
    _check_plan_fields(action.plan)

    changed = [
        name
        for name in PLAN_SCHEDULE_FIELDS
        if getattr(current, name) != getattr(action.plan, name)
    ]
    users = state.get_plan_clients(action.plan.plan_id)
    if changed and users:
        raise PlanInUseError(
            f"Cannot change {', '.join(changed)} of plan {action.plan.plan_id}: "
            f"used by {len(users)} client(s)"
        )


def _validate_delete_plan(state: LedgerState, action: act.DeletePlan) -> None:
    if action.plan_id not in state.plans:
        raise EntityNotFoundError(f"Plan {action.plan_id} not found")
    users = state.get_plan_clients(action.plan_id)
    if users:
        raise PlanInUseError(
            f"Plan {action.plan_id} is used by {len(users)} client(s)"
        )


# Ledger entries


def _validate_toggle_payment(state: LedgerState, action: act.TogglePayment) -> None:
    client = _require_client(state, action.client_id)
    if not any(p.day == action.day for p in client.payments):
        raise EntityNotFoundError(
            f"Day {action.day} is not in the schedule of client {action.client_id}"
        )


def _validate_add_withdrawal(state: LedgerState, action: act.AddWithdrawal) -> None:
    client = _require_client(state, action.client_id)
    withdrawal = action.withdrawal
    _require_positive(withdrawal.amount, "Amount")
    if any(w.transaction_id == withdrawal.transaction_id for w in client.withdrawals):
        raise ValidationError(f"Withdrawal {withdrawal.transaction_id} already exists")

    available = balance.available_balance(
        client, state.plans, state.get_client_transfers(client.client_id)
    )
    if withdrawal.amount > available:
        raise InsufficientBalanceError(
            f"Amount {withdrawal.amount} exceeds available balance {available}"
        )


def _validate_add_deposit(state: LedgerState, action: act.AddDeposit) -> None:
    client = _require_client(state, action.client_id)
    _require_positive(action.deposit.amount, "Amount")
    if any(d.transaction_id == action.deposit.transaction_id for d in client.deposits):
        raise ValidationError(f"Deposit {action.deposit.transaction_id} already exists")


def _validate_add_transfer(state: LedgerState, action: act.AddTransfer) -> None:
    transfer = action.transfer
    if transfer.from_client_id not in state.clients:
        raise ReferentialIntegrityError(f"Client {transfer.from_client_id} not found")
    if transfer.to_client_id not in state.clients:
        raise ReferentialIntegrityError(f"Client {transfer.to_client_id} not found")
    if transfer.from_client_id == transfer.to_client_id:
        raise ValidationError("A client cannot transfer to themselves")
    if not state.clients[transfer.to_client_id].is_active:
        raise InvalidEntityStateError(f"Client {transfer.to_client_id} is not active")
    _require_positive(transfer.amount, "Amount")
    if transfer.transaction_id in state.transfers:
        raise ValidationError(f"Transfer {transfer.transaction_id} already exists")

    sender = state.clients[transfer.from_client_id]
    available = balance.available_balance(
        sender, state.plans, state.get_client_transfers(sender.client_id)
    )
    if transfer.amount > available:
        raise InsufficientBalanceError(
            f"Amount {transfer.amount} exceeds available balance {available}"
        )


def _validate_reverse_transaction(
    state: LedgerState, action: act.ReverseTransaction
) -> None:
    client = _require_client(state, action.client_id)

    if action.kind == TransactionKind.TRANSFER:
        records = state.get_client_transfers(client.client_id)
    elif action.kind == TransactionKind.WITHDRAWAL:
        records = client.withdrawals
    else:
        records = client.deposits

    record = next((r for r in records if r.transaction_id == action.transaction_id), None)
    if record is None:
        raise EntityNotFoundError(
            f"{action.kind.value.capitalize()} {action.transaction_id} not found "
            f"for client {action.client_id}"
        )
    if record.reversed:
        raise InvalidEntityStateError(
            f"{action.kind.value.capitalize()} {action.transaction_id} is already reversed"
        )


def _validate_renew_client_plan(state: LedgerState, action: act.RenewClientPlan) -> None:
    _require_client(state, action.client_id)
    if state.get_client_plan(action.client_id) is None:
        raise InvalidEntityStateError(f"Client {action.client_id} has no plan to renew")


# Loans


def _validate_add_loan(state: LedgerState, action: act.AddLoan) -> None:
    client = _require_client(state, action.client_id)
    loan = action.loan
    _require_positive(loan.principal, "Loan amount")
    if loan.interest_rate < 0:
        raise ValidationError("Interest rate cannot be negative")
    if loan.due_date < loan.start_date:
        raise ValidationError("Due date cannot be before the start date")
    if any(l.loan_id == loan.loan_id for l in client.loans):
        raise ValidationError(f"Loan {loan.loan_id} already exists")


def _validate_delete_loan(state: LedgerState, action: act.DeleteLoan) -> None:
    _require_loan(state, action.client_id, action.loan_id)


def _validate_update_loan_status(state: LedgerState, action: act.UpdateLoanStatus) -> None:
    loan = _require_loan(state, action.client_id, action.loan_id)
    if action.status not in LOAN_TRANSITIONS[loan.status]:
        raise InvalidEntityStateError(
            f"Loan {loan.loan_id} cannot go from {loan.status.value} to {action.status.value}"
        )
    if action.status == LoanStatus.PAID and not amortization.is_fully_paid(loan):
        raise InvalidEntityStateError(f"Loan {loan.loan_id} is not fully repaid")


def _validate_add_loan_payment(state: LedgerState, action: act.AddLoanPayment) -> None:
    loan = _require_loan(state, action.client_id, action.loan_id)
    payment = action.payment
    if loan.status != LoanStatus.APPROVED:
        raise InvalidEntityStateError(
            f"Loan {loan.loan_id} is {loan.status.value}; only approved loans take payments"
        )
    _require_positive(payment.amount, "Amount")
    remaining = amortization.remaining_for(loan, payment.payment_type)
    if payment.amount > remaining:
        raise LoanOverpaymentError(
            f"Amount cannot exceed remaining {payment.payment_type.value} ({remaining})"
        )


# Tontines


def _validate_add_tontine_group(state: LedgerState, action: act.AddTontineGroup) -> None:
    _require_text(action.group.group_id, "Group id")
    if action.group.group_id in state.tontine_groups:
        raise ValidationError(f"Tontine group {action.group.group_id} already exists")
    _check_group_fields(state, action.group)


def _validate_update_tontine_group(
    state: LedgerState, action: act.UpdateTontineGroup
) -> None:
    current = _require_group(state, action.group.group_id)
    _check_group_fields(state, action.group)

    if current.members:
        changed = [
            name
            for name in GROUP_SCHEDULE_FIELDS
            if getattr(current, name) != getattr(action.group, name)
        ]
        if changed:
            raise InvalidEntityStateError(
                f"Cannot change {', '.join(changed)} of tontine group "
                f"{current.group_id}: it already has members"
            )
    for member in action.group.members:
        if len(member.contributions) != action.group.member_count:
            raise ValidationError(
                f"Member {member.member_id} has {len(member.contributions)} "
                f"contributions, expected {action.group.member_count}"
            )


def _validate_delete_tontine_group(
    state: LedgerState, action: act.DeleteTontineGroup
) -> None:
    _require_group(state, action.group_id)


def _validate_add_tontine_member(state: LedgerState, action: act.AddTontineMember) -> None:
    group = _require_group(state, action.group_id)
    if action.client_id not in state.clients:
        raise ReferentialIntegrityError(f"Client {action.client_id} not found")
    if rotation.find_member(group, action.member_id) is not None:
        raise ValidationError(f"Member {action.member_id} already exists")
    rotation.check_new_member(group, action.client_id, action.payout_order)


def _validate_update_tontine_contribution(
    state: LedgerState, action: act.UpdateTontineContribution
) -> None:
    group = _require_group(state, action.group_id)
    member = rotation.find_member(group, action.member_id)
    if member is None:
        raise EntityNotFoundError(f"Member {action.member_id} not found")
    if not any(c.contribution_id == action.contribution_id for c in member.contributions):
        raise EntityNotFoundError(f"Contribution {action.contribution_id} not found")
    if group.status != TontineStatus.ACTIVE:
        raise InvalidEntityStateError(
            f"Tontine group {group.group_id} is {group.status.value}; "
            "contributions are only recorded while it is active"
        )


# Administration and selection


def _validate_mark_notification_read(
    state: LedgerState, action: act.MarkNotificationRead
) -> None:
    if not any(n.notification_id == action.notification_id for n in state.notifications):
        raise EntityNotFoundError(f"Notification {action.notification_id} not found")


def _validate_select_client(state: LedgerState, action: act.SelectClient) -> None:
    if action.client_id is not None:
        _require_client(state, action.client_id)


def _validate_select_plan(state: LedgerState, action: act.SelectPlan) -> None:
    if action.plan_id is not None and action.plan_id not in state.plans:
        raise EntityNotFoundError(f"Plan {action.plan_id} not found")


def _validate_select_loan(state: LedgerState, action: act.SelectLoan) -> None:
    if action.client_id is not None and action.loan_id is not None:
        _require_loan(state, action.client_id, action.loan_id)


def _validate_select_tontine_group(
    state: LedgerState, action: act.SelectTontineGroup
) -> None:
    if action.group_id is not None:
        _require_group(state, action.group_id)


def _no_check(state: LedgerState, action: act.Action) -> None:
    return None


VALIDATORS: dict[type, Callable[[LedgerState, act.Action], None]] = {
    act.AddClient: _validate_add_client,
    act.UpdateClient: _validate_update_client,
    act.DeleteClient: _validate_delete_client,
    act.AddPlan: _validate_add_plan,
    act.UpdatePlan: _validate_update_plan,
    act.DeletePlan: _validate_delete_plan,
    act.TogglePayment: _validate_toggle_payment,
    act.AddWithdrawal: _validate_add_withdrawal,
    act.AddDeposit: _validate_add_deposit,
    act.AddTransfer: _validate_add_transfer,
    act.ReverseTransaction: _validate_reverse_transaction,
    act.RenewClientPlan: _validate_renew_client_plan,
    act.AddLoan: _validate_add_loan,
    act.DeleteLoan: _validate_delete_loan,
    act.UpdateLoanStatus: _validate_update_loan_status,
    act.AddLoanPayment: _validate_add_loan_payment,
    act.AddTontineGroup: _validate_add_tontine_group,
    act.UpdateTontineGroup: _validate_update_tontine_group,
    act.DeleteTontineGroup: _validate_delete_tontine_group,
    act.AddTontineMember: _validate_add_tontine_member,
    act.UpdateTontineContribution: _validate_update_tontine_contribution,
    act.UpdateAdminProfile: _no_check,
    act.AddNotification: _no_check,
    act.MarkNotificationRead: _validate_mark_notification_read,
    act.ClearNotifications: _no_check,
    act.SelectClient: _validate_select_client,
    act.SelectPlan: _validate_select_plan,
    act.SelectLoan: _validate_select_loan,
    act.SelectTontineGroup: _validate_select_tontine_group,
    act.LoadSnapshot: _no_check,
}


def validate_action(state: LedgerState, action: act.Action) -> None:
    """Check that an action may be applied to the state.

    Parameters
    ----------
    state : LedgerState
        State the action would be applied to.
    action : Action
        Action to check.

    Raises
    ------
    LedgerError
        The matching subclass for the first violated precondition.
    """
    validator = VALIDATORS.get(type(action))
    if validator is None:
        raise ValidationError(f"Unsupported action {type(action).__name__}")
    validator(state, action)


def check_invariants(state: LedgerState) -> list[str]:
    """List data-model invariants the state violates (empty when sound)."""
    problems = []

    for client in state.clients.values():
        plan = state.plans.get(client.plan_id) if client.plan_id else None
        if client.plan_id and plan is None:
            problems.append(f"Client {client.client_id} references unknown plan {client.plan_id}")
        elif plan is None and client.payments:
            problems.append(f"Client {client.client_id} has payments but no plan")
        elif plan is not None:
            if len(client.payments) != plan.duration:
                problems.append(
                    f"Client {client.client_id} has {len(client.payments)} payments, "
                    f"plan {plan.plan_id} lasts {plan.duration} days"
                )
            for payment in client.payments:
                if payment.amount != payment.day * plan.base_amount:
                    problems.append(
                        f"Client {client.client_id} day {payment.day} amount "
                        f"{payment.amount} does not match plan {plan.plan_id}"
                    )

        for loan in client.loans:
            summary = amortization.summarize(loan)
            if summary.remaining_principal < 0 or summary.remaining_interest < 0:
                problems.append(f"Loan {loan.loan_id} is overpaid")

    for group in state.tontine_groups.values():
        issues = rotation.validate_group(group)
        if group.status == TontineStatus.PENDING:
            # Pending groups are still filling up
            issues = [i for i in issues if not i.startswith("Member count")]
        problems.extend(f"Tontine group {group.group_id}: {issue}" for issue in issues)

    return problems
