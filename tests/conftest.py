"""Pytest configuration and fixtures."""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable

import pytest

from savings_ledger.actions import AddClient, AddPlan
from savings_ledger.models.ledger import Client, Loan, Plan, TontineGroup, TontineInterval
from savings_ledger.service import Ledger
from savings_ledger.store.state import LedgerState


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return datetime(2024, 3, 1, 9, 30)


@pytest.fixture
def small_plan() -> Plan:
    """Three-day plan: 5, 10 and 15."""
    return Plan(plan_id="plan-small", name="Small Plan", base_amount=Decimal("5"), duration=3)


@pytest.fixture
def make_client(now: datetime) -> Callable[..., Client]:
    """Factory for clients with sensible defaults."""

    def factory(client_id: str = "client-a", plan_id: str | None = None, **kwargs) -> Client:
        return Client(
            client_id=client_id,
            name=kwargs.pop("name", f"Client {client_id}"),
            email=kwargs.pop("email", f"{client_id}@example.com"),
            phone=kwargs.pop("phone", "555-0100"),
            start_date=kwargs.pop("start_date", now),
            plan_id=plan_id,
            **kwargs,
        )

    return factory


@pytest.fixture
def sample_loan() -> Loan:
    """Pending loan of 1000 at 5%."""
    return Loan(
        loan_id="loan-test-001",
        principal=Decimal("1000"),
        interest_rate=Decimal("5"),
        start_date=date(2024, 3, 1),
        due_date=date(2024, 9, 1),
    )


@pytest.fixture
def sample_group() -> TontineGroup:
    """Empty monthly group of three members."""
    return TontineGroup(
        group_id="group-test-001",
        name="Test Circle",
        contribution_amount=Decimal("100"),
        member_count=3,
        interval=TontineInterval.MONTHLY,
        start_date=date(2024, 1, 31),
    )


@pytest.fixture
def state() -> LedgerState:
    """Fresh ledger state with the default plans."""
    return LedgerState()


@pytest.fixture
def ledger(now: datetime, small_plan: Plan) -> Ledger:
    """Ledger with a fixed clock and the small plan in the catalog."""
    ledger = Ledger(clock=lambda: now)
    ledger.dispatch(AddPlan(small_plan))
    return ledger


@pytest.fixture
def funded_ledger(ledger: Ledger, make_client: Callable[..., Client]) -> Ledger:
    """Ledger with clients A (two paid days, balance 15) and B (no plan)."""
    ledger.dispatch(AddClient(make_client("client-a", plan_id="plan-small")))
    ledger.dispatch(AddClient(make_client("client-b")))
    ledger.mark_payment("client-a", 1)
    ledger.mark_payment("client-a", 2)
    return ledger
