"""Savings club scenario: a populated ledger built through the facade."""

from __future__ import annotations

import logging
import random
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

from savings_ledger import actions as act
from savings_ledger.config import ScenarioConfig
from savings_ledger.engine import amortization, rotation
from savings_ledger.generators import ClientGenerator, LoanGenerator, TontineGroupGenerator
from savings_ledger.models.ledger import (
    Client,
    LoanPaymentType,
    LoanStatus,
    NotificationCategory,
    NotificationType,
    TransactionKind,
)
from savings_ledger.service import Ledger
from savings_ledger.storage.json_file import JsonSnapshotStore

logger = logging.getLogger(__name__)


class SavingsClubScenario:
    """Generate a savings club with realistic activity.

    This scenario creates:
    - Clients enrolled on the catalog plans, each with a run of paid days
    - Ad-hoc deposits, withdrawals within balance and transfers between clients
    - Loan requests, most approved and partly repaid, some rejected
    - One tontine group with its first rotation period funded

    Every record goes through :class:`~savings_ledger.service.Ledger`, so the
    result satisfies the same rules as manually entered data.
    """

    APPROVAL_RATE = 0.70
    REJECTION_RATE = 0.10
    FULL_REPAYMENT_RATE = 0.20
    REVERSAL_RATE = 0.10

    def __init__(
        self,
        num_clients: int = 20,
        seed: int | None = None,
        *,
        config: ScenarioConfig | None = None,
        now: datetime | None = None,
    ) -> None:
        """Initialize the savings club scenario.

        Parameters
        ----------
        num_clients : int
            Number of clients to generate.
        seed : int | None
            Random seed for reproducibility.
        config : ScenarioConfig | None
            Optional scenario configuration. If provided, overrides
            num_clients and supplies the activity rates.
        now : datetime | None
            Reference time for generated records (current time when omitted).
        """
        self.config = config or ScenarioConfig(num_clients=num_clients)
        self.num_clients = self.config.num_clients
        self.seed = seed
        self.now = (now or datetime.now()).replace(microsecond=0)

        if seed is not None:
            random.seed(seed)

        self.ledger = Ledger(clock=lambda: self.now)
        self._client_gen = ClientGenerator(seed=seed, locale=self.config.locale, now=self.now)
        self._loan_gen = LoanGenerator(seed=seed, locale=self.config.locale)
        self._tontine_gen = TontineGroupGenerator(seed=seed, locale=self.config.locale)

    def generate(self) -> Ledger:
        """Generate all data for the savings club.

        Returns
        -------
        Ledger
            Ledger holding the generated club.
        """
        logger.info(
            "Starting savings club scenario: %d clients over %d days",
            self.num_clients,
            self.config.activity_days,
        )

        plan_ids = sorted(self.ledger.state.plans)
        for client in self._client_gen.generate_batch(self.num_clients, plan_ids):
            self.ledger.dispatch(act.AddClient(client))
        logger.info("Generated %d clients", len(self.ledger.state.clients))

        for client_id in list(self.ledger.state.clients):
            self._pay_schedule(client_id)
            self._generate_movements(client_id)

        for client_id in list(self.ledger.state.clients):
            if random.random() < self.config.loan_rate:
                self._generate_loan(client_id)

        self._generate_tontine()

        summary = self.ledger.state.summary()
        self.ledger.notify(
            "Sample data generated",
            f"{summary['clients']} clients and {summary['loans']} loans created",
            NotificationType.SUCCESS,
            category=NotificationCategory.SYSTEM,
        )
        logger.info("Savings club scenario complete: %s", summary)
        return self.ledger

    def _pay_schedule(self, client_id: str) -> None:
        """Mark a leading run of schedule days as paid."""
        client = self.ledger.state.clients[client_id]
        days = min(self.config.activity_days, len(client.payments))
        paid_days = random.randint(0, days)
        for day in range(1, paid_days + 1):
            self.ledger.mark_payment(client_id, day)

    def _generate_movements(self, client_id: str) -> None:
        if random.random() < self.config.deposit_rate:
            self.ledger.deposit(client_id, Decimal(random.randint(1, 20) * 5), note="Cash deposit")

        if random.random() < self.config.withdrawal_rate:
            amount = self._affordable_amount(client_id)
            if amount is not None:
                withdrawal = self.ledger.withdraw(client_id, amount, note="Cash withdrawal")
                if random.random() < self.REVERSAL_RATE:
                    self.ledger.reverse(
                        client_id,
                        withdrawal.transaction_id,
                        TransactionKind.WITHDRAWAL,
                        "Entered by mistake",
                    )

        if random.random() < self.config.transfer_rate:
            recipients = [
                c for c in self.ledger.state.clients.values()
                if c.client_id != client_id and c.is_active
            ]
            amount = self._affordable_amount(client_id)
            if recipients and amount is not None:
                recipient = random.choice(recipients)
                self.ledger.transfer(client_id, recipient.client_id, amount, note="Transfer")

    def _affordable_amount(self, client_id: str) -> Decimal | None:
        """Whole amount up to half the client's available balance, if any."""
        ceiling = int(self.ledger.available_balance(client_id) // 2)
        if ceiling < 1:
            return None
        return Decimal(random.randint(1, ceiling))

    def _generate_loan(self, client_id: str) -> None:
        start = (self.now - timedelta(days=random.randint(0, self.config.activity_days))).date()
        loan = self._loan_gen.generate(start)
        self.ledger.dispatch(act.AddLoan(client_id, loan))

        roll = random.random()
        if roll < self.APPROVAL_RATE:
            self.ledger.approve_loan(client_id, loan.loan_id)
            self._repay_loan(client_id, loan.loan_id)
        elif roll < self.APPROVAL_RATE + self.REJECTION_RATE:
            self.ledger.reject_loan(client_id, loan.loan_id)

    def _repay_loan(self, client_id: str, loan_id: str) -> None:
        summary = amortization.summarize(self.ledger.get_loan(client_id, loan_id))

        if random.random() < self.FULL_REPAYMENT_RATE:
            self.ledger.pay_loan(
                client_id, loan_id, summary.remaining_principal, LoanPaymentType.PRINCIPAL
            )
            self.ledger.pay_loan(
                client_id, loan_id, summary.remaining_interest, LoanPaymentType.INTEREST
            )
            return

        principal = Decimal(random.randint(0, int(summary.remaining_principal) // 2))
        if principal > 0:
            self.ledger.pay_loan(client_id, loan_id, principal, LoanPaymentType.PRINCIPAL)

    def _generate_tontine(self) -> None:
        size = self.config.tontine_size
        clients = list(self.ledger.state.clients)
        if size < 2 or len(clients) < size:
            logger.info("Skipping tontine: %d clients for %d seats", len(clients), size)
            return

        group = self._tontine_gen.generate(size, self.now.date() - timedelta(days=7))
        self.ledger.dispatch(act.AddTontineGroup(group))

        orders = list(range(1, size + 1))
        random.shuffle(orders)
        members = [
            self.ledger.add_tontine_member(group.group_id, client_id, order)
            for client_id, order in zip(random.sample(clients, size), orders)
        ]

        # Everyone funds the first period, so position 1 is paid out
        for member in members:
            self.ledger.mark_contribution(group.group_id, member.member_id, f"{member.member_id}-1")

        logger.info(
            "Generated tontine %s with %d members",
            group.group_id,
            len(self.ledger.get_group(group.group_id).members),
        )

    def export(self, snapshots: JsonSnapshotStore, tenant_id: str = "default") -> None:
        """Write the generated ledger as a tenant snapshot.

        Parameters
        ----------
        snapshots : JsonSnapshotStore
            Snapshot storage to write to.
        tenant_id : str
            Tenant the snapshot belongs to.
        """
        path = snapshots.save(self.ledger.state, tenant_id)
        logger.info("Exported savings club to %s", path)

    def get_client_view(self, client_id: str) -> dict[str, Any] | None:
        """Get complete view of a single client.

        Parameters
        ----------
        client_id : str
            Client ID to retrieve.

        Returns
        -------
        dict[str, Any] | None
            Client, balances, loans and tontine groups, or None if not found.
        """
        state = self.ledger.state
        client: Client | None = state.clients.get(client_id)
        if client is None:
            return None

        return {
            "client": client,
            "plan": state.get_client_plan(client_id),
            "balance": self.ledger.client_balance(client_id),
            "transfers": state.get_client_transfers(client_id),
            "loans": [(loan, amortization.summarize(loan)) for loan in client.loans],
            "tontine_groups": state.get_client_groups(client_id),
        }

    def get_summary(self) -> dict[str, Any]:
        """Get summary statistics for the generated data.

        Returns
        -------
        dict[str, Any]
            Entity counts and portfolio totals.
        """
        state = self.ledger.state
        portfolio = self.ledger.portfolio()
        loans = [loan for c in state.clients.values() for loan in c.loans]

        return {
            **{f"total_{name}": count for name, count in state.summary().items()},
            "active_savers": portfolio.active_savers,
            "completed_plans": portfolio.completed_plans,
            "total_expected": portfolio.total_expected,
            "total_paid": portfolio.total_paid,
            "total_remaining": portfolio.total_remaining,
            "loans_by_status": {
                status.value: sum(1 for l in loans if l.status == status)
                for status in LoanStatus
            },
            "tontine_pot": sum(
                (rotation.total_contributions(g) for g in state.tontine_groups.values()),
                Decimal("0"),
            ),
        }
