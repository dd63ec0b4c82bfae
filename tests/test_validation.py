"""Tests for action preconditions and state invariants."""

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, get_args

import pytest

from savings_ledger import actions as act
from savings_ledger.exceptions import (
    DuplicateMemberError,
    DuplicateOrderError,
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
    ContributionStatus,
    Deposit,
    Loan,
    LoanPayment,
    LoanPaymentType,
    LoanStatus,
    Plan,
    TontineGroup,
    TontineInterval,
    TontineStatus,
    TransactionKind,
    Transfer,
    Withdrawal,
)
from savings_ledger.store.reducer import reduce
from savings_ledger.store.state import LedgerState
from savings_ledger.validation import VALIDATORS, check_invariants, validate_action

WHEN = datetime(2024, 3, 2)


def _apply(state: LedgerState, *actions: act.Action) -> LedgerState:
    for action in actions:
        validate_action(state, action)
        state = reduce(state, action)
    return state


@pytest.fixture
def base(state: LedgerState, small_plan: Plan, make_client: Callable[..., Client]) -> LedgerState:
    """Client A on the small plan with days 1-2 paid (balance 15), client B without plan."""
    return _apply(
        state,
        act.AddPlan(small_plan),
        act.AddClient(make_client("client-a", plan_id="plan-small")),
        act.AddClient(make_client("client-b")),
        act.TogglePayment("client-a", 1, True, WHEN),
        act.TogglePayment("client-a", 2, True, WHEN),
    )


@pytest.fixture
def with_loan(base: LedgerState, sample_loan: Loan) -> LedgerState:
    """Base state with client A holding the approved 1000 at 5% loan."""
    return _apply(
        base,
        act.AddLoan("client-a", sample_loan),
        act.UpdateLoanStatus("client-a", sample_loan.loan_id, LoanStatus.APPROVED),
    )


def _loan_payment(amount: str, payment_type: LoanPaymentType) -> act.AddLoanPayment:
    payment = LoanPayment("lp-1", Decimal(amount), WHEN, payment_type)
    return act.AddLoanPayment("client-a", "loan-test-001", payment)


def test_every_action_has_a_validator() -> None:
    assert set(get_args(act.Action)) == set(VALIDATORS)


def test_unsupported_action(state: LedgerState) -> None:
    with pytest.raises(ValidationError, match="Unsupported"):
        validate_action(state, object())


class TestClientRules:
    def test_duplicate_client(self, base: LedgerState, make_client: Callable[..., Client]) -> None:
        with pytest.raises(ValidationError, match="already exists"):
            validate_action(base, act.AddClient(make_client("client-a")))

    def test_unknown_plan(self, base: LedgerState, make_client: Callable[..., Client]) -> None:
        with pytest.raises(ReferentialIntegrityError):
            validate_action(base, act.AddClient(make_client("client-x", plan_id="nope")))

    @pytest.mark.parametrize("field", ["name", "email", "phone"])
    def test_required_fields(
        self, base: LedgerState, make_client: Callable[..., Client], field: str
    ) -> None:
        client = make_client("client-x", **{field: "  "})

        with pytest.raises(ValidationError, match="required"):
            validate_action(base, act.AddClient(client))

    def test_update_unknown_client(
        self, base: LedgerState, make_client: Callable[..., Client]
    ) -> None:
        with pytest.raises(EntityNotFoundError):
            validate_action(base, act.UpdateClient(make_client("ghost")))

    def test_delete_unknown_client(self, base: LedgerState) -> None:
        with pytest.raises(EntityNotFoundError):
            validate_action(base, act.DeleteClient("ghost"))

    def test_toggle_unknown_day(self, base: LedgerState) -> None:
        with pytest.raises(EntityNotFoundError, match="Day 4"):
            validate_action(base, act.TogglePayment("client-a", 4, True, WHEN))

    def test_renew_without_plan(self, base: LedgerState) -> None:
        with pytest.raises(InvalidEntityStateError):
            validate_action(base, act.RenewClientPlan("client-b", WHEN))


class TestPlanRules:
    @pytest.mark.parametrize(
        "changes",
        [
            {"base_amount": Decimal("0")},
            {"duration": 0},
            {"duration": 91},
            {"admin_percentage": Decimal("101")},
            {"admin_percentage": Decimal("-1")},
            {"name": ""},
        ],
    )
    def test_plan_bounds(self, state: LedgerState, small_plan: Plan, changes: dict) -> None:
        with pytest.raises(ValidationError):
            validate_action(state, act.AddPlan(replace(small_plan, **changes)))

    def test_duplicate_plan(self, base: LedgerState, small_plan: Plan) -> None:
        with pytest.raises(ValidationError, match="already exists"):
            validate_action(base, act.AddPlan(small_plan))

    def test_update_unknown_plan(self, base: LedgerState, small_plan: Plan) -> None:
        with pytest.raises(EntityNotFoundError):
            validate_action(base, act.UpdatePlan(replace(small_plan, plan_id="nope")))

    def test_delete_plan_in_use(self, base: LedgerState) -> None:
        with pytest.raises(PlanInUseError):
            validate_action(base, act.DeletePlan("plan-small"))

    def test_delete_unused_plan(self, base: LedgerState) -> None:
        validate_action(base, act.DeletePlan("3"))

    def test_schedule_of_plan_in_use_is_frozen(self, base: LedgerState, small_plan: Plan) -> None:
        changed = replace(small_plan, duration=5, base_amount=Decimal("7"))

        with pytest.raises(PlanInUseError, match="base_amount, duration"):
            validate_action(base, act.UpdatePlan(changed))

    def test_rename_plan_in_use(self, base: LedgerState, small_plan: Plan) -> None:
        validate_action(
            base, act.UpdatePlan(replace(small_plan, name="Renamed", description="Short"))
        )

    def test_reshape_unused_plan(self, base: LedgerState) -> None:
        validate_action(base, act.UpdatePlan(replace(base.plans["3"], duration=10)))


class TestMovementRules:
    def test_non_positive_deposit(self, base: LedgerState) -> None:
        with pytest.raises(ValidationError, match="greater than 0"):
            validate_action(base, act.AddDeposit("client-a", Deposit("d1", Decimal("0"), WHEN)))

    def test_duplicate_deposit_id(self, base: LedgerState) -> None:
        state = _apply(base, act.AddDeposit("client-a", Deposit("d1", Decimal("5"), WHEN)))

        with pytest.raises(ValidationError, match="already exists"):
            validate_action(state, act.AddDeposit("client-a", Deposit("d1", Decimal("5"), WHEN)))

    def test_withdraw_available_balance(self, base: LedgerState) -> None:
        validate_action(
            base, act.AddWithdrawal("client-a", Withdrawal("w1", Decimal("15"), WHEN))
        )

    def test_withdraw_more_than_available(self, base: LedgerState) -> None:
        with pytest.raises(InsufficientBalanceError):
            validate_action(
                base, act.AddWithdrawal("client-a", Withdrawal("w1", Decimal("15.01"), WHEN))
            )

    def test_transfer_more_than_available(self, base: LedgerState) -> None:
        transfer = Transfer("t1", Decimal("16"), WHEN, "client-a", "client-b")

        with pytest.raises(InsufficientBalanceError):
            validate_action(base, act.AddTransfer(transfer))

    def test_self_transfer(self, base: LedgerState) -> None:
        transfer = Transfer("t1", Decimal("1"), WHEN, "client-a", "client-a")

        with pytest.raises(ValidationError, match="themselves"):
            validate_action(base, act.AddTransfer(transfer))

    def test_transfer_to_unknown_client(self, base: LedgerState) -> None:
        transfer = Transfer("t1", Decimal("1"), WHEN, "client-a", "ghost")

        with pytest.raises(ReferentialIntegrityError):
            validate_action(base, act.AddTransfer(transfer))

    def test_transfer_to_inactive_client(self, base: LedgerState) -> None:
        inactive = replace(base.clients["client-b"], is_active=False)
        state = _apply(base, act.UpdateClient(inactive))
        transfer = Transfer("t1", Decimal("1"), WHEN, "client-a", "client-b")

        with pytest.raises(InvalidEntityStateError):
            validate_action(state, act.AddTransfer(transfer))

    def test_received_transfer_counts_towards_balance(self, base: LedgerState) -> None:
        state = _apply(
            base,
            act.AddTransfer(Transfer("t1", Decimal("10"), WHEN, "client-a", "client-b")),
        )

        validate_action(
            state, act.AddWithdrawal("client-b", Withdrawal("w1", Decimal("10"), WHEN))
        )
        with pytest.raises(InsufficientBalanceError):
            validate_action(
                state, act.AddWithdrawal("client-a", Withdrawal("w1", Decimal("6"), WHEN))
            )

    def test_reverse_unknown_record(self, base: LedgerState) -> None:
        with pytest.raises(EntityNotFoundError):
            validate_action(
                base,
                act.ReverseTransaction("client-a", "nope", TransactionKind.DEPOSIT, "x", WHEN),
            )

    def test_reverse_twice(self, base: LedgerState) -> None:
        reverse = act.ReverseTransaction("client-a", "d1", TransactionKind.DEPOSIT, "x", WHEN)
        state = _apply(
            base,
            act.AddDeposit("client-a", Deposit("d1", Decimal("5"), WHEN)),
            reverse,
        )

        with pytest.raises(InvalidEntityStateError, match="already reversed"):
            validate_action(state, reverse)

    def test_receiver_can_reverse_transfer(self, base: LedgerState) -> None:
        state = _apply(
            base,
            act.AddTransfer(Transfer("t1", Decimal("5"), WHEN, "client-a", "client-b")),
        )

        validate_action(
            state,
            act.ReverseTransaction("client-b", "t1", TransactionKind.TRANSFER, "x", WHEN),
        )


class TestLoanRules:
    def test_invalid_loan_terms(self, base: LedgerState, sample_loan: Loan) -> None:
        with pytest.raises(ValidationError):
            validate_action(base, act.AddLoan("client-a", replace(sample_loan, principal=Decimal("0"))))
        with pytest.raises(ValidationError):
            validate_action(
                base, act.AddLoan("client-a", replace(sample_loan, interest_rate=Decimal("-1")))
            )
        with pytest.raises(ValidationError, match="Due date"):
            validate_action(
                base, act.AddLoan("client-a", replace(sample_loan, due_date=date(2024, 1, 1)))
            )

    def test_payment_on_pending_loan(self, base: LedgerState, sample_loan: Loan) -> None:
        state = _apply(base, act.AddLoan("client-a", sample_loan))

        with pytest.raises(InvalidEntityStateError, match="only approved"):
            validate_action(state, _loan_payment("10", LoanPaymentType.PRINCIPAL))

    def test_principal_overpayment(self, with_loan: LedgerState) -> None:
        with pytest.raises(LoanOverpaymentError):
            validate_action(with_loan, _loan_payment("1000.01", LoanPaymentType.PRINCIPAL))

    def test_interest_overpayment(self, with_loan: LedgerState) -> None:
        validate_action(with_loan, _loan_payment("50", LoanPaymentType.INTEREST))

        with pytest.raises(LoanOverpaymentError):
            validate_action(with_loan, _loan_payment("51", LoanPaymentType.INTEREST))

    @pytest.mark.parametrize(
        "current,target",
        [
            (LoanStatus.PENDING, LoanStatus.PAID),
            (LoanStatus.REJECTED, LoanStatus.APPROVED),
            (LoanStatus.APPROVED, LoanStatus.PENDING),
        ],
    )
    def test_illegal_transitions(
        self, base: LedgerState, sample_loan: Loan, current: LoanStatus, target: LoanStatus
    ) -> None:
        state = reduce(base, act.AddLoan("client-a", replace(sample_loan, status=current)))

        with pytest.raises(InvalidEntityStateError):
            validate_action(state, act.UpdateLoanStatus("client-a", "loan-test-001", target))

    def test_manual_paid_requires_full_repayment(self, with_loan: LedgerState) -> None:
        with pytest.raises(InvalidEntityStateError, match="not fully repaid"):
            validate_action(
                with_loan, act.UpdateLoanStatus("client-a", "loan-test-001", LoanStatus.PAID)
            )

    def test_unknown_loan(self, base: LedgerState) -> None:
        with pytest.raises(EntityNotFoundError):
            validate_action(base, act.DeleteLoan("client-a", "ghost"))


class TestTontineRules:
    def test_group_needs_two_members(self, base: LedgerState, sample_group: TontineGroup) -> None:
        with pytest.raises(ValidationError, match="at least 2"):
            validate_action(base, act.AddTontineGroup(replace(sample_group, member_count=1)))

    def test_custom_interval_required(self, base: LedgerState, sample_group: TontineGroup) -> None:
        group = replace(sample_group, interval=TontineInterval.CUSTOM, custom_interval=0)

        with pytest.raises(ValidationError, match="Custom interval"):
            validate_action(base, act.AddTontineGroup(group))

    def test_member_rules(self, base: LedgerState, sample_group: TontineGroup) -> None:
        state = _apply(
            base,
            act.AddTontineGroup(sample_group),
            act.AddTontineMember("group-test-001", "m1", "client-a", 1),
        )

        with pytest.raises(DuplicateOrderError):
            validate_action(state, act.AddTontineMember("group-test-001", "m2", "client-b", 1))
        with pytest.raises(DuplicateMemberError):
            validate_action(state, act.AddTontineMember("group-test-001", "m2", "client-a", 2))
        with pytest.raises(ReferentialIntegrityError):
            validate_action(state, act.AddTontineMember("group-test-001", "m2", "ghost", 2))
        with pytest.raises(ValidationError, match="already exists"):
            validate_action(state, act.AddTontineMember("group-test-001", "m1", "client-b", 2))

    def test_unknown_contribution(self, base: LedgerState, sample_group: TontineGroup) -> None:
        state = _apply(
            base,
            act.AddTontineGroup(sample_group),
            act.AddTontineMember("group-test-001", "m1", "client-a", 1),
        )

        with pytest.raises(EntityNotFoundError):
            validate_action(
                state,
                act.UpdateTontineContribution(
                    "group-test-001", "m1", "m1-9", ContributionStatus.PAID
                ),
            )


class TestTontineLifecycleRules:
    @pytest.fixture
    def two_seated(self, base: LedgerState, sample_group: TontineGroup) -> LedgerState:
        """Three-seat group with members m1 and m2, still pending."""
        return _apply(
            base,
            act.AddTontineGroup(sample_group),
            act.AddTontineMember("group-test-001", "m1", "client-a", 1),
            act.AddTontineMember("group-test-001", "m2", "client-b", 2),
        )

    @pytest.fixture
    def full(
        self, two_seated: LedgerState, make_client: Callable[..., Client]
    ) -> LedgerState:
        return _apply(
            two_seated,
            act.AddClient(make_client("client-c")),
            act.AddTontineMember("group-test-001", "m3", "client-c", 3),
        )

    def test_contribution_on_pending_group(self, two_seated: LedgerState) -> None:
        paid = act.UpdateTontineContribution("group-test-001", "m1", "m1-1", ContributionStatus.PAID)

        with pytest.raises(InvalidEntityStateError, match="pending"):
            validate_action(two_seated, paid)

    def test_contribution_on_active_group(self, full: LedgerState) -> None:
        assert full.tontine_groups["group-test-001"].status == TontineStatus.ACTIVE

        validate_action(
            full,
            act.UpdateTontineContribution("group-test-001", "m1", "m1-1", ContributionStatus.PAID),
        )

    def test_contribution_on_completed_group(self, full: LedgerState) -> None:
        completed = replace(full.tontine_groups["group-test-001"], status=TontineStatus.COMPLETED)
        state = reduce(full, act.UpdateTontineGroup(completed))

        with pytest.raises(InvalidEntityStateError, match="completed"):
            validate_action(
                state,
                act.UpdateTontineContribution(
                    "group-test-001", "m1", "m1-1", ContributionStatus.PENDING
                ),
            )

    @pytest.mark.parametrize(
        "changes",
        [
            {"member_count": 4},
            {"contribution_amount": Decimal("50")},
            {"interval": TontineInterval.WEEKLY},
            {"start_date": date(2024, 2, 1)},
        ],
    )
    def test_schedule_frozen_once_members_join(self, full: LedgerState, changes: dict) -> None:
        group = replace(full.tontine_groups["group-test-001"], **changes)

        with pytest.raises(InvalidEntityStateError, match="already has members"):
            validate_action(full, act.UpdateTontineGroup(group))

    def test_rename_group_with_members(self, full: LedgerState) -> None:
        group = replace(full.tontine_groups["group-test-001"], name="Renamed")

        validate_action(full, act.UpdateTontineGroup(group))

    def test_reshape_group_without_members(
        self, base: LedgerState, sample_group: TontineGroup
    ) -> None:
        state = _apply(base, act.AddTontineGroup(sample_group))

        validate_action(state, act.UpdateTontineGroup(replace(sample_group, member_count=4)))

    def test_member_schedule_must_match_group(self, two_seated: LedgerState) -> None:
        group = two_seated.tontine_groups["group-test-001"]
        member = replace(group.members[0], contributions=group.members[0].contributions[:1])
        broken = replace(group, members=[member, group.members[1]])

        with pytest.raises(ValidationError, match="has 1 contributions"):
            validate_action(two_seated, act.UpdateTontineGroup(broken))


class TestSelectionRules:
    def test_select_unknown(self, base: LedgerState) -> None:
        with pytest.raises(EntityNotFoundError):
            validate_action(base, act.SelectClient("ghost"))
        with pytest.raises(EntityNotFoundError):
            validate_action(base, act.SelectPlan("ghost"))
        with pytest.raises(EntityNotFoundError):
            validate_action(base, act.SelectTontineGroup("ghost"))
        with pytest.raises(EntityNotFoundError):
            validate_action(base, act.MarkNotificationRead("ghost"))

    def test_clear_selection(self, base: LedgerState) -> None:
        validate_action(base, act.SelectClient(None))
        validate_action(base, act.SelectLoan(None, None))


class TestCheckInvariants:
    def test_sound_state(self, base: LedgerState) -> None:
        assert check_invariants(base) == []

    def test_schedule_mismatch(self, base: LedgerState) -> None:
        client = base.clients["client-a"]
        broken = replace(client, payments=client.payments[:2])
        state = replace(base, clients={**base.clients, "client-a": broken})

        problems = check_invariants(state)

        assert any("has 2 payments" in p for p in problems)

    def test_dangling_plan(self, base: LedgerState) -> None:
        state = replace(base, plans={})

        assert any("unknown plan" in p for p in check_invariants(state))

    def test_pending_group_may_be_partial(
        self, base: LedgerState, sample_group: TontineGroup
    ) -> None:
        state = _apply(
            base,
            act.AddTontineGroup(sample_group),
            act.AddTontineMember("group-test-001", "m1", "client-a", 1),
        )

        assert check_invariants(state) == []
