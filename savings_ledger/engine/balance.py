"""Balance computations over a client's ledger.

Every function here is pure. Missing references (a client without a plan,
a plan id that is not in the catalog) degrade to neutral results instead of
raising, and reversed transactions never count towards an aggregate.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping

from savings_ledger.engine.schedule import plan_total
from savings_ledger.models.ledger import (
    Client,
    Deposit,
    Payment,
    Plan,
    Transfer,
    Withdrawal,
)

ZERO = Decimal("0")


@dataclass
class ClientBalance:
    """Computed balances of one client."""

    client_id: str
    total_expected: Decimal
    amount_paid: Decimal
    remaining_balance: Decimal
    total_deposits: Decimal
    total_withdrawals: Decimal
    net_transfers: Decimal
    available_balance: Decimal
    progress: Decimal
    plan_completed: bool


@dataclass
class PortfolioSummary:
    """Club-wide totals over every client."""

    total_clients: int
    active_savers: int
    completed_plans: int
    total_expected: Decimal
    total_paid: Decimal
    total_remaining: Decimal


def find_plan(client: Client, plans: Mapping[str, Plan]) -> Plan | None:
    """Resolve the client's plan in the catalog, if any."""
    if not client.plan_id:
        return None
    return plans.get(client.plan_id)


def total_expected(client: Client, plans: Mapping[str, Plan]) -> Decimal:
    """Sum of the client's whole schedule, 0 when no plan resolves."""
    plan = find_plan(client, plans)
    if plan is None:
        return ZERO
    return plan_total(plan)


def amount_paid(payments: Iterable[Payment]) -> Decimal:
    """Sum of the paid days of a schedule."""
    return sum((p.amount for p in payments if p.paid), ZERO)


def total_deposits(deposits: Iterable[Deposit]) -> Decimal:
    return sum((d.amount for d in deposits if not d.reversed), ZERO)


def total_withdrawals(withdrawals: Iterable[Withdrawal]) -> Decimal:
    return sum((w.amount for w in withdrawals if not w.reversed), ZERO)


def net_transfers(transfers: Iterable[Transfer], client_id: str) -> Decimal:
    """Signed transfer total for a client: outgoing subtract, incoming add."""
    total = ZERO
    for transfer in transfers:
        if transfer.reversed:
            continue
        if transfer.from_client_id == client_id:
            total -= transfer.amount
        elif transfer.to_client_id == client_id:
            total += transfer.amount
    return total


def available_balance(
    client: Client,
    plans: Mapping[str, Plan],
    transfers: Iterable[Transfer] = (),
) -> Decimal:
    """Money the client can draw on.

    ``amount_paid + total_deposits - total_withdrawals + net_transfers``.
    ``plans`` is accepted for symmetry with the other balance functions;
    the balance only depends on recorded money movements.
    """
    return (
        amount_paid(client.payments)
        + total_deposits(client.deposits)
        - total_withdrawals(client.withdrawals)
        + net_transfers(transfers, client.client_id)
    )


def remaining_balance(client: Client, plans: Mapping[str, Plan]) -> Decimal:
    """What the client still owes on the plan schedule."""
    return total_expected(client, plans) - amount_paid(client.payments)


def progress_percentage(client: Client, plans: Mapping[str, Plan]) -> Decimal:
    expected = total_expected(client, plans)
    if expected <= 0:
        return ZERO
    return amount_paid(client.payments) / expected * 100


def is_plan_completed(client: Client) -> bool:
    """True when the client has a plan and every scheduled day is paid."""
    if not client.plan_id:
        return False
    return all(payment.paid for payment in client.payments)


def is_active_saver(client: Client) -> bool:
    """Active client with a started, unfinished plan."""
    return (
        client.is_active
        and bool(client.plan_id)
        and any(payment.paid for payment in client.payments)
        and not is_plan_completed(client)
    )


def client_balance(
    client: Client,
    plans: Mapping[str, Plan],
    transfers: Iterable[Transfer] = (),
) -> ClientBalance:
    """Compute every balance figure of a client in one pass."""
    transfers = list(transfers)
    expected = total_expected(client, plans)
    paid = amount_paid(client.payments)
    deposits = total_deposits(client.deposits)
    withdrawals = total_withdrawals(client.withdrawals)
    net = net_transfers(transfers, client.client_id)

    return ClientBalance(
        client_id=client.client_id,
        total_expected=expected,
        amount_paid=paid,
        remaining_balance=expected - paid,
        total_deposits=deposits,
        total_withdrawals=withdrawals,
        net_transfers=net,
        available_balance=paid + deposits - withdrawals + net,
        progress=paid / expected * 100 if expected > 0 else ZERO,
        plan_completed=is_plan_completed(client),
    )


def portfolio_summary(
    clients: Iterable[Client],
    plans: Mapping[str, Plan],
) -> PortfolioSummary:
    """Aggregate plan figures over the whole client base."""
    clients = list(clients)
    expected = sum((total_expected(c, plans) for c in clients), ZERO)
    paid = sum((amount_paid(c.payments) for c in clients), ZERO)

    return PortfolioSummary(
        total_clients=len(clients),
        active_savers=sum(1 for c in clients if is_active_saver(c)),
        completed_plans=sum(1 for c in clients if is_plan_completed(c)),
        total_expected=expected,
        total_paid=paid,
        total_remaining=expected - paid,
    )
