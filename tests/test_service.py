"""Tests for the validating Ledger facade."""

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from savings_ledger.config import LedgerConfig, StorageConfig
from savings_ledger.exceptions import (
    EntityNotFoundError,
    InsufficientBalanceError,
    LoanOverpaymentError,
    PlanInUseError,
    StorageError,
)
from savings_ledger.models.ledger import (
    ContributionStatus,
    LoanPaymentType,
    LoanStatus,
    NotificationType,
    TontineInterval,
    TontineStatus,
    TransactionKind,
)
from savings_ledger.service import Ledger, open_ledger


class TestPlansAndClients:
    def test_add_plan(self, ledger: Ledger) -> None:
        plan = ledger.add_plan("Weekly", 2, 7, admin_percentage="5")

        assert ledger.state.plans[plan.plan_id] == plan
        assert plan.base_amount == Decimal("2")
        assert plan.admin_percentage == Decimal("5")

    def test_add_client_builds_schedule(self, ledger: Ledger, now: datetime) -> None:
        client = ledger.add_client("Ama", "ama@example.com", "555", plan_id="plan-small")

        assert client.start_date == now
        assert len(client.payments) == 3

    def test_small_plan_example(self, ledger: Ledger) -> None:
        client = ledger.add_client("Ama", "ama@example.com", "555", plan_id="plan-small")
        ledger.mark_payment(client.client_id, 1)
        ledger.mark_payment(client.client_id, 2)

        summary = ledger.client_balance(client.client_id)

        assert summary.total_expected == Decimal("30")
        assert summary.amount_paid == Decimal("15")
        assert summary.remaining_balance == Decimal("15")
        assert summary.plan_completed is False

    def test_update_client(self, funded_ledger: Ledger) -> None:
        client = funded_ledger.update_client("client-b", name="Kofi", plan_id="1")

        assert client.name == "Kofi"
        assert len(client.payments) == 90

    def test_update_client_rejects_unknown_fields(self, funded_ledger: Ledger) -> None:
        with pytest.raises(TypeError):
            funded_ledger.update_client("client-b", payments=[])

    def test_delete_plan_in_use(self, funded_ledger: Ledger) -> None:
        with pytest.raises(PlanInUseError):
            funded_ledger.delete_plan("plan-small")

        assert "plan-small" in funded_ledger.state.plans

    def test_renew_plan(self, funded_ledger: Ledger) -> None:
        client = funded_ledger.renew_plan("client-a", datetime(2024, 6, 1))

        assert client.start_date == datetime(2024, 6, 1)
        assert not any(p.paid for p in client.payments)

    def test_delete_client(self, funded_ledger: Ledger) -> None:
        funded_ledger.delete_client("client-b")

        with pytest.raises(EntityNotFoundError):
            funded_ledger.get_client("client-b")


class TestMoneyMovements:
    def test_deposit_and_withdraw(self, funded_ledger: Ledger) -> None:
        funded_ledger.deposit("client-a", "20.50")
        funded_ledger.withdraw("client-a", 10)

        assert funded_ledger.available_balance("client-a") == Decimal("25.50")

    def test_overdraft_rejected_and_logged(self, funded_ledger: Ledger, caplog) -> None:
        caplog.set_level(logging.WARNING)
        before = funded_ledger.state

        with pytest.raises(InsufficientBalanceError):
            funded_ledger.withdraw("client-a", 16)

        assert funded_ledger.state is before
        assert "Rejected AddWithdrawal" in caplog.text

    def test_transfer_reversal_example(self, funded_ledger: Ledger) -> None:
        funded_ledger.deposit("client-a", 50)
        a_before = funded_ledger.available_balance("client-a")
        b_before = funded_ledger.available_balance("client-b")

        transfer = funded_ledger.transfer("client-a", "client-b", 50)
        assert funded_ledger.client_balance("client-a").net_transfers == Decimal("-50")
        assert funded_ledger.client_balance("client-b").net_transfers == Decimal("50")

        funded_ledger.reverse("client-a", transfer.transaction_id, TransactionKind.TRANSFER, "Wrong payee")

        assert funded_ledger.client_balance("client-a").net_transfers == 0
        assert funded_ledger.client_balance("client-b").net_transfers == 0
        assert funded_ledger.available_balance("client-a") == a_before
        assert funded_ledger.available_balance("client-b") == b_before

    def test_portfolio(self, funded_ledger: Ledger) -> None:
        portfolio = funded_ledger.portfolio()

        assert portfolio.total_clients == 2
        assert portfolio.active_savers == 1
        assert portfolio.total_paid == Decimal("15")


class TestLoans:
    def _approved(self, ledger: Ledger) -> str:
        loan = ledger.request_loan("client-a", 1000, 5, date(2024, 9, 1))
        ledger.approve_loan("client-a", loan.loan_id)
        return loan.loan_id

    def test_request_loan(self, funded_ledger: Ledger, now: datetime) -> None:
        loan = funded_ledger.request_loan("client-a", 1000, 5, date(2024, 9, 1), note="Stock")

        assert loan.status == LoanStatus.PENDING
        assert loan.start_date == now.date()

    def test_full_repayment_example(self, funded_ledger: Ledger) -> None:
        loan_id = self._approved(funded_ledger)

        funded_ledger.pay_loan("client-a", loan_id, 1000, LoanPaymentType.PRINCIPAL)
        funded_ledger.pay_loan("client-a", loan_id, 50, LoanPaymentType.INTEREST)

        loan = funded_ledger.get_loan("client-a", loan_id)
        assert loan.status == LoanStatus.PAID

    def test_overpayment_rejected(self, funded_ledger: Ledger) -> None:
        loan_id = self._approved(funded_ledger)

        with pytest.raises(LoanOverpaymentError):
            funded_ledger.pay_loan("client-a", loan_id, 51, LoanPaymentType.INTEREST)

    def test_reject_loan(self, funded_ledger: Ledger) -> None:
        loan = funded_ledger.request_loan("client-a", 200, 10, date(2024, 6, 1))

        assert funded_ledger.reject_loan("client-a", loan.loan_id).status == LoanStatus.REJECTED

    def test_delete_approved_loan_warns(self, funded_ledger: Ledger, caplog) -> None:
        loan_id = self._approved(funded_ledger)
        caplog.set_level(logging.WARNING)

        funded_ledger.delete_loan("client-a", loan_id)

        assert "still outstanding" in caplog.text
        assert funded_ledger.state.clients["client-a"].loans == []


class TestTontines:
    def test_rotation(self, funded_ledger: Ledger) -> None:
        group = funded_ledger.create_tontine(
            "Duo", 25, 2, TontineInterval.WEEKLY, date(2024, 3, 4)
        )
        first = funded_ledger.add_tontine_member(group.group_id, "client-b", 1)
        second = funded_ledger.add_tontine_member(group.group_id, "client-a", 2)
        assert funded_ledger.get_group(group.group_id).status == TontineStatus.ACTIVE
        assert second.payout_date == date(2024, 3, 11)

        for period in (1, 2):
            for member in (first, second):
                state = funded_ledger.mark_contribution(
                    group.group_id, member.member_id, f"{member.member_id}-{period}"
                )

        assert state.status == TontineStatus.COMPLETED

    def test_mark_contribution_pending_again(self, funded_ledger: Ledger) -> None:
        group = funded_ledger.create_tontine("Duo", 25, 2, TontineInterval.DAILY, date(2024, 3, 4))
        member = funded_ledger.add_tontine_member(group.group_id, "client-b", 1)
        funded_ledger.add_tontine_member(group.group_id, "client-a", 2)
        contribution_id = f"{member.member_id}-1"

        funded_ledger.mark_contribution(group.group_id, member.member_id, contribution_id)
        updated = funded_ledger.mark_contribution(
            group.group_id, member.member_id, contribution_id, ContributionStatus.PENDING
        )

        assert updated.members[0].contributions[0].status == ContributionStatus.PENDING

    def test_delete_tontine(self, funded_ledger: Ledger) -> None:
        group = funded_ledger.create_tontine("Duo", 25, 2, TontineInterval.DAILY, date(2024, 3, 4))

        funded_ledger.delete_tontine(group.group_id)

        with pytest.raises(EntityNotFoundError):
            funded_ledger.get_group(group.group_id)


def test_notify(ledger: Ledger, now: datetime) -> None:
    notification = ledger.notify("Backup", "Snapshot written", NotificationType.SUCCESS)

    assert ledger.state.notifications == [notification]
    assert notification.date == now


class TestOpenLedger:
    def _config(self, tmp_path: Path, autosave: bool = True) -> LedgerConfig:
        return LedgerConfig(storage=StorageConfig(data_dir=tmp_path, autosave=autosave))

    def test_fresh_tenant(self, tmp_path: Path) -> None:
        ledger = open_ledger(self._config(tmp_path), tenant_id="club-1")

        assert ledger.state.clients == {}
        assert set(ledger.state.plans) == {"1", "2", "3"}

    def test_autosave_and_reload(self, tmp_path: Path) -> None:
        config = self._config(tmp_path)
        ledger = open_ledger(config, tenant_id="club-1")
        client = ledger.add_client("Ama", "ama@example.com", "555", plan_id="1")
        ledger.mark_payment(client.client_id, 1)

        assert (tmp_path / "ledger_club-1.json").exists()

        reopened = open_ledger(config, tenant_id="club-1")
        payments = reopened.state.clients[client.client_id].payments
        assert payments[0].paid is True
        assert payments[0].amount == Decimal("3")

    def test_without_autosave(self, tmp_path: Path) -> None:
        ledger = open_ledger(self._config(tmp_path, autosave=False), tenant_id="club-1")
        ledger.add_client("Ama", "ama@example.com", "555")

        assert not (tmp_path / "ledger_club-1.json").exists()

    def test_corrupt_snapshot(self, tmp_path: Path) -> None:
        (tmp_path / "ledger_club-1.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError):
            open_ledger(self._config(tmp_path), tenant_id="club-1")

    def test_snapshot_problems_are_logged(self, tmp_path: Path, caplog) -> None:
        config = self._config(tmp_path)
        ledger = open_ledger(config, tenant_id="club-1")
        ledger.add_client("Ama", "ama@example.com", "555", plan_id="1")

        path = tmp_path / "ledger_club-1.json"
        document = json.loads(path.read_text(encoding="utf-8"))
        document["clients"][0]["payments"] = document["clients"][0]["payments"][:5]
        path.write_text(json.dumps(document), encoding="utf-8")
        caplog.set_level(logging.WARNING)

        open_ledger(config, tenant_id="club-1")

        assert "has 5 payments" in caplog.text
