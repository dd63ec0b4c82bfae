"""Aggregate ledger state."""

from dataclasses import dataclass, field
from decimal import Decimal

from savings_ledger.models.base import AdminProfile, Notification
from savings_ledger.models.ledger import (
    Client,
    Loan,
    Plan,
    TontineGroup,
    Transfer,
)


def default_plans() -> dict[str, Plan]:
    """Plan catalog every new ledger starts with."""
    plans = [
        Plan(
            plan_id="1",
            name="Basic Plan",
            base_amount=Decimal("3"),
            duration=90,
            admin_percentage=Decimal("10"),
            description="3 per day over 90 days",
        ),
        Plan(
            plan_id="2",
            name="Standard Plan",
            base_amount=Decimal("5"),
            duration=90,
            admin_percentage=Decimal("10"),
            description="5 per day over 90 days",
        ),
        Plan(
            plan_id="3",
            name="Premium Plan",
            base_amount=Decimal("10"),
            duration=90,
            admin_percentage=Decimal("10"),
            description="10 per day over 90 days",
        ),
    ]
    return {plan.plan_id: plan for plan in plans}


@dataclass
class LedgerState:
    """Snapshot of every entity the ledger owns.

    Transfers live in one collection keyed by id; a client's transfers are
    the ones whose ``from_client_id`` or ``to_client_id`` is that client.
    Instances are treated as immutable: the reducer always builds a new one.
    """

    # Primary entities
    clients: dict[str, Client] = field(default_factory=dict)
    plans: dict[str, Plan] = field(default_factory=default_plans)
    tontine_groups: dict[str, TontineGroup] = field(default_factory=dict)
    transfers: dict[str, Transfer] = field(default_factory=dict)

    # Administration
    admin_profile: AdminProfile = field(default_factory=AdminProfile)
    notifications: list[Notification] = field(default_factory=list)

    # Current selection
    current_client_id: str | None = None
    current_plan_id: str | None = None
    current_loan_id: str | None = None
    current_tontine_group_id: str | None = None

    # Query methods
    def get_client_transfers(self, client_id: str) -> list[Transfer]:
        """Get all transfers sent or received by a client."""
        return [
            t
            for t in self.transfers.values()
            if t.from_client_id == client_id or t.to_client_id == client_id
        ]

    def get_client_plan(self, client_id: str) -> Plan | None:
        """Get the plan a client is enrolled on, if it resolves."""
        client = self.clients.get(client_id)
        if client is None or not client.plan_id:
            return None
        return self.plans.get(client.plan_id)

    def get_loan(self, client_id: str, loan_id: str) -> Loan | None:
        client = self.clients.get(client_id)
        if client is None:
            return None
        for loan in client.loans:
            if loan.loan_id == loan_id:
                return loan
        return None

    def get_plan_clients(self, plan_id: str) -> list[Client]:
        """Get all clients enrolled on a plan."""
        return [c for c in self.clients.values() if c.plan_id == plan_id]

    def get_client_groups(self, client_id: str) -> list[TontineGroup]:
        """Get all tontine groups a client belongs to."""
        return [
            g
            for g in self.tontine_groups.values()
            if any(m.client_id == client_id for m in g.members)
        ]

    @property
    def current_client(self) -> Client | None:
        if self.current_client_id is None:
            return None
        return self.clients.get(self.current_client_id)

    @property
    def current_tontine_group(self) -> TontineGroup | None:
        if self.current_tontine_group_id is None:
            return None
        return self.tontine_groups.get(self.current_tontine_group_id)

    def summary(self) -> dict[str, int]:
        """Return summary counts of all entities."""
        return {
            "clients": len(self.clients),
            "plans": len(self.plans),
            "tontine_groups": len(self.tontine_groups),
            "transfers": len(self.transfers),
            "withdrawals": sum(len(c.withdrawals) for c in self.clients.values()),
            "deposits": sum(len(c.deposits) for c in self.clients.values()),
            "loans": sum(len(c.loans) for c in self.clients.values()),
            "notifications": len(self.notifications),
        }
