"""Ledger reducer: the only code path that changes ledger state.

``reduce(state, action)`` is total and pure. It never validates; actions
that reference missing entities leave the state unchanged. Validation lives
in :mod:`savings_ledger.validation`.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable

from savings_ledger import actions as act
from savings_ledger.engine import amortization, rotation
from savings_ledger.engine.schedule import generate_payments
from savings_ledger.models.ledger import (
    Client,
    LoanStatus,
    TontineGroup,
    TransactionKind,
)
from savings_ledger.store.state import LedgerState

logger = logging.getLogger(__name__)


def _update_client(
    state: LedgerState,
    client_id: str,
    update: Callable[[Client], Client],
) -> LedgerState:
    client = state.clients.get(client_id)
    if client is None:
        return state
    return replace(state, clients={**state.clients, client_id: update(client)})


def _update_group(
    state: LedgerState,
    group_id: str,
    update: Callable[[TontineGroup], TontineGroup],
) -> LedgerState:
    group = state.tontine_groups.get(group_id)
    if group is None:
        return state
    return replace(
        state, tontine_groups={**state.tontine_groups, group_id: update(group)}
    )


def _reversed(record, action: act.ReverseTransaction):
    if record.transaction_id != action.transaction_id or record.reversed:
        return record
    return replace(
        record,
        reversed=True,
        reversal_date=action.reversed_at,
        reversal_note=action.note,
    )


# Clients


def _add_client(state: LedgerState, action: act.AddClient) -> LedgerState:
    plan = state.plans.get(action.client.plan_id) if action.client.plan_id else None
    client = replace(
        action.client,
        payments=generate_payments(plan) if plan else [],
        withdrawals=[],
        deposits=[],
        loans=[],
    )
    return replace(state, clients={**state.clients, client.client_id: client})


def _update_client_action(state: LedgerState, action: act.UpdateClient) -> LedgerState:
    existing = state.clients.get(action.client.client_id)
    if existing is None:
        return state

    payments = existing.payments
    if action.client.plan_id != existing.plan_id:
        plan = state.plans.get(action.client.plan_id) if action.client.plan_id else None
        if plan is not None:
            payments = generate_payments(plan)
        elif not action.client.plan_id:
            payments = []

    client = replace(
        action.client,
        payments=payments,
        withdrawals=existing.withdrawals,
        deposits=existing.deposits,
        loans=existing.loans,
    )
    return replace(state, clients={**state.clients, client.client_id: client})


def _delete_client(state: LedgerState, action: act.DeleteClient) -> LedgerState:
    if action.client_id not in state.clients:
        return state
    client = state.clients[action.client_id]
    clients = {k: v for k, v in state.clients.items() if k != action.client_id}

    current_loan_id = state.current_loan_id
    if any(loan.loan_id == current_loan_id for loan in client.loans):
        current_loan_id = None

    return replace(
        state,
        clients=clients,
        current_client_id=(
            None if state.current_client_id == action.client_id else state.current_client_id
        ),
        current_loan_id=current_loan_id,
    )


# Plan catalog


def _add_plan(state: LedgerState, action: act.AddPlan) -> LedgerState:
    return replace(state, plans={**state.plans, action.plan.plan_id: action.plan})


def _update_plan(state: LedgerState, action: act.UpdatePlan) -> LedgerState:
    if action.plan.plan_id not in state.plans:
        return state
    return replace(state, plans={**state.plans, action.plan.plan_id: action.plan})


def _delete_plan(state: LedgerState, action: act.DeletePlan) -> LedgerState:
    if action.plan_id not in state.plans:
        return state
    return replace(
        state,
        plans={k: v for k, v in state.plans.items() if k != action.plan_id},
        current_plan_id=(
            None if state.current_plan_id == action.plan_id else state.current_plan_id
        ),
    )


# Ledger entries


def _toggle_payment(state: LedgerState, action: act.TogglePayment) -> LedgerState:
    def update(client: Client) -> Client:
        payments = [
            replace(
                p,
                paid=action.paid,
                paid_date=action.paid_at if action.paid else None,
            )
            if p.day == action.day
            else p
            for p in client.payments
        ]
        return replace(client, payments=payments)

    return _update_client(state, action.client_id, update)


def _add_withdrawal(state: LedgerState, action: act.AddWithdrawal) -> LedgerState:
    return _update_client(
        state,
        action.client_id,
        lambda c: replace(c, withdrawals=[*c.withdrawals, action.withdrawal]),
    )


def _add_deposit(state: LedgerState, action: act.AddDeposit) -> LedgerState:
    return _update_client(
        state,
        action.client_id,
        lambda c: replace(c, deposits=[*c.deposits, action.deposit]),
    )


def _add_transfer(state: LedgerState, action: act.AddTransfer) -> LedgerState:
    transfer = action.transfer
    return replace(state, transfers={**state.transfers, transfer.transaction_id: transfer})


def _reverse_transaction(state: LedgerState, action: act.ReverseTransaction) -> LedgerState:
    if action.kind == TransactionKind.TRANSFER:
        transfer = state.transfers.get(action.transaction_id)
        if transfer is None:
            return state
        return replace(
            state,
            transfers={**state.transfers, transfer.transaction_id: _reversed(transfer, action)},
        )

    if action.kind == TransactionKind.WITHDRAWAL:
        return _update_client(
            state,
            action.client_id,
            lambda c: replace(c, withdrawals=[_reversed(w, action) for w in c.withdrawals]),
        )

    return _update_client(
        state,
        action.client_id,
        lambda c: replace(c, deposits=[_reversed(d, action) for d in c.deposits]),
    )


def _renew_client_plan(state: LedgerState, action: act.RenewClientPlan) -> LedgerState:
    def update(client: Client) -> Client:
        plan = state.plans.get(client.plan_id) if client.plan_id else None
        if plan is None:
            return client
        return replace(
            client,
            start_date=action.start_date,
            payments=generate_payments(plan),
            withdrawals=[],
            is_active=True,
        )

    return _update_client(state, action.client_id, update)


# Loans


def _add_loan(state: LedgerState, action: act.AddLoan) -> LedgerState:
    return _update_client(
        state,
        action.client_id,
        lambda c: replace(c, loans=[*c.loans, action.loan]),
    )


def _delete_loan(state: LedgerState, action: act.DeleteLoan) -> LedgerState:
    updated = _update_client(
        state,
        action.client_id,
        lambda c: replace(c, loans=[l for l in c.loans if l.loan_id != action.loan_id]),
    )
    if updated.current_loan_id == action.loan_id:
        updated = replace(updated, current_loan_id=None)
    return updated


def _update_loan_status(state: LedgerState, action: act.UpdateLoanStatus) -> LedgerState:
    return _update_client(
        state,
        action.client_id,
        lambda c: replace(
            c,
            loans=[
                replace(l, status=action.status) if l.loan_id == action.loan_id else l
                for l in c.loans
            ],
        ),
    )


def _add_loan_payment(state: LedgerState, action: act.AddLoanPayment) -> LedgerState:
    def pay(loan):
        loan = replace(loan, payments=[*loan.payments, action.payment])
        if loan.status == LoanStatus.APPROVED and amortization.is_fully_paid(loan):
            loan = replace(loan, status=LoanStatus.PAID)
        return loan

    return _update_client(
        state,
        action.client_id,
        lambda c: replace(
            c,
            loans=[pay(l) if l.loan_id == action.loan_id else l for l in c.loans],
        ),
    )


# Tontines


def _add_tontine_group(state: LedgerState, action: act.AddTontineGroup) -> LedgerState:
    group = action.group
    return replace(state, tontine_groups={**state.tontine_groups, group.group_id: group})


def _update_tontine_group(state: LedgerState, action: act.UpdateTontineGroup) -> LedgerState:
    return _update_group(state, action.group.group_id, lambda _: action.group)


def _delete_tontine_group(state: LedgerState, action: act.DeleteTontineGroup) -> LedgerState:
    if action.group_id not in state.tontine_groups:
        return state
    return replace(
        state,
        tontine_groups={
            k: v for k, v in state.tontine_groups.items() if k != action.group_id
        },
        current_tontine_group_id=(
            None
            if state.current_tontine_group_id == action.group_id
            else state.current_tontine_group_id
        ),
    )


def _add_tontine_member(state: LedgerState, action: act.AddTontineMember) -> LedgerState:
    return _update_group(
        state,
        action.group_id,
        lambda g: rotation.add_member(
            g, action.member_id, action.client_id, action.payout_order
        ),
    )


def _update_tontine_contribution(
    state: LedgerState, action: act.UpdateTontineContribution
) -> LedgerState:
    return _update_group(
        state,
        action.group_id,
        lambda g: rotation.set_contribution_status(
            g, action.member_id, action.contribution_id, action.status
        ),
    )


# Administration and selection


def _update_admin_profile(state: LedgerState, action: act.UpdateAdminProfile) -> LedgerState:
    return replace(state, admin_profile=action.profile)


def _add_notification(state: LedgerState, action: act.AddNotification) -> LedgerState:
    # Newest first
    return replace(state, notifications=[action.notification, *state.notifications])


def _mark_notification_read(
    state: LedgerState, action: act.MarkNotificationRead
) -> LedgerState:
    return replace(
        state,
        notifications=[
            replace(n, read=True) if n.notification_id == action.notification_id else n
            for n in state.notifications
        ],
    )


def _clear_notifications(state: LedgerState, action: act.ClearNotifications) -> LedgerState:
    return replace(state, notifications=[])


def _select_client(state: LedgerState, action: act.SelectClient) -> LedgerState:
    return replace(state, current_client_id=action.client_id)


def _select_plan(state: LedgerState, action: act.SelectPlan) -> LedgerState:
    return replace(state, current_plan_id=action.plan_id)


def _select_loan(state: LedgerState, action: act.SelectLoan) -> LedgerState:
    return replace(
        state,
        current_loan_id=action.loan_id,
        current_client_id=action.client_id if action.client_id in state.clients else None,
    )


def _select_tontine_group(state: LedgerState, action: act.SelectTontineGroup) -> LedgerState:
    return replace(state, current_tontine_group_id=action.group_id)


def _load_snapshot(state: LedgerState, action: act.LoadSnapshot) -> LedgerState:
    return replace(
        action.snapshot,
        current_client_id=None,
        current_plan_id=None,
        current_loan_id=None,
        current_tontine_group_id=None,
    )


HANDLERS: dict[type, Callable[[LedgerState, act.Action], LedgerState]] = {
    act.AddClient: _add_client,
    act.UpdateClient: _update_client_action,
    act.DeleteClient: _delete_client,
    act.AddPlan: _add_plan,
    act.UpdatePlan: _update_plan,
    act.DeletePlan: _delete_plan,
    act.TogglePayment: _toggle_payment,
    act.AddWithdrawal: _add_withdrawal,
    act.AddDeposit: _add_deposit,
    act.AddTransfer: _add_transfer,
    act.ReverseTransaction: _reverse_transaction,
    act.RenewClientPlan: _renew_client_plan,
    act.AddLoan: _add_loan,
    act.DeleteLoan: _delete_loan,
    act.UpdateLoanStatus: _update_loan_status,
    act.AddLoanPayment: _add_loan_payment,
    act.AddTontineGroup: _add_tontine_group,
    act.UpdateTontineGroup: _update_tontine_group,
    act.DeleteTontineGroup: _delete_tontine_group,
    act.AddTontineMember: _add_tontine_member,
    act.UpdateTontineContribution: _update_tontine_contribution,
    act.UpdateAdminProfile: _update_admin_profile,
    act.AddNotification: _add_notification,
    act.MarkNotificationRead: _mark_notification_read,
    act.ClearNotifications: _clear_notifications,
    act.SelectClient: _select_client,
    act.SelectPlan: _select_plan,
    act.SelectLoan: _select_loan,
    act.SelectTontineGroup: _select_tontine_group,
    act.LoadSnapshot: _load_snapshot,
}


def reduce(state: LedgerState, action: act.Action) -> LedgerState:
    """Apply one action and return the resulting state.

    Parameters
    ----------
    state : LedgerState
        Current state; never modified.
    action : Action
        Transition to apply.

    Returns
    -------
    LedgerState
        New state, or ``state`` itself when the action matches nothing.
    """
    handler = HANDLERS.get(type(action))
    if handler is None:
        logger.warning("Ignoring unknown action %s", type(action).__name__)
        return state
    return handler(state, action)
