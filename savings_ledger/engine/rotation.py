"""Tontine rotation rules.

A group of ``member_count`` members contributes for ``member_count`` periods.
In period ``n`` the whole cohort funds the member holding payout order
``n``; that member is paid out once every member's contribution for the
period is marked paid, and the group completes when everyone has been paid
out.

Functions returning a group never mutate their input.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from savings_ledger.exceptions import (
    DuplicateMemberError,
    DuplicateOrderError,
    ValidationError,
)
from savings_ledger.models.ledger import (
    ContributionStatus,
    TontineContribution,
    TontineGroup,
    TontineInterval,
    TontineMember,
    TontineStatus,
)

INTERVAL_STEPS = {
    TontineInterval.DAILY: relativedelta(days=1),
    TontineInterval.WEEKLY: relativedelta(weeks=1),
    TontineInterval.TWO_WEEKS: relativedelta(weeks=2),
    TontineInterval.THREE_WEEKS: relativedelta(weeks=3),
    TontineInterval.MONTHLY: relativedelta(months=1),
    TontineInterval.TWO_MONTHS: relativedelta(months=2),
    TontineInterval.TRIMESTER: relativedelta(months=3),
    TontineInterval.SEMESTER: relativedelta(months=6),
    TontineInterval.YEARLY: relativedelta(years=1),
}


def advance(
    current: date,
    interval: TontineInterval,
    custom_interval: int | None = None,
) -> date:
    """Move a date forward by one rotation period.

    Month-based intervals clamp to the end of shorter months
    (Jan 31 + 1 month is Feb 28/29).
    """
    if interval == TontineInterval.CUSTOM:
        return current + relativedelta(days=custom_interval or 1)
    return current + INTERVAL_STEPS[interval]


def period_dates(
    start_date: date,
    count: int,
    interval: TontineInterval,
    custom_interval: int | None = None,
) -> list[date]:
    """Due dates of ``count`` consecutive periods starting at ``start_date``."""
    dates = []
    current = start_date
    for _ in range(count):
        dates.append(current)
        current = advance(current, interval, custom_interval)
    return dates


def generate_schedule(
    start_date: date,
    amount: Decimal,
    member_count: int,
    interval: TontineInterval,
    custom_interval: int | None = None,
    id_prefix: str = "period",
) -> list[TontineContribution]:
    """Generate one contribution per period of the rotation.

    Parameters
    ----------
    start_date : date
        Due date of period 1.
    amount : Decimal
        Fixed contribution per period.
    member_count : int
        Number of periods (one per member).
    interval : TontineInterval
        Spacing between periods.
    custom_interval : int | None
        Days between periods when ``interval`` is CUSTOM.
    id_prefix : str
        Prefix of the contribution ids (``<prefix>-<period>``).

    Returns
    -------
    list[TontineContribution]
        Pending contributions numbered from 1.
    """
    dates = period_dates(start_date, member_count, interval, custom_interval)
    return [
        TontineContribution(
            contribution_id=f"{id_prefix}-{period}",
            amount=amount,
            due_date=due_date,
            period_number=period,
        )
        for period, due_date in enumerate(dates, start=1)
    ]


def payout_date(group: TontineGroup, payout_order: int) -> date:
    """Date of the period in which the given position is paid out."""
    dates = period_dates(
        group.start_date, payout_order, group.interval, group.custom_interval
    )
    return dates[-1]


def find_member(group: TontineGroup, member_id: str) -> TontineMember | None:
    for member in group.members:
        if member.member_id == member_id:
            return member
    return None


def check_new_member(group: TontineGroup, client_id: str, payout_order: int) -> None:
    """Reject a member that cannot join the group.

    Raises
    ------
    ValidationError
        If the group is full or the order is outside ``1..member_count``.
    DuplicateOrderError
        If another member already holds ``payout_order``.
    DuplicateMemberError
        If the client is already a member.
    """
    if len(group.members) >= group.member_count:
        raise ValidationError(f"Tontine group {group.group_id} is full")
    if not 1 <= payout_order <= group.member_count:
        raise ValidationError(
            f"Payout order {payout_order} is outside 1..{group.member_count}"
        )
    if any(m.payout_order == payout_order for m in group.members):
        raise DuplicateOrderError(f"Payout order {payout_order} is already assigned")
    if any(m.client_id == client_id for m in group.members):
        raise DuplicateMemberError(f"Client {client_id} is already a member")


def add_member(
    group: TontineGroup,
    member_id: str,
    client_id: str,
    payout_order: int,
) -> TontineGroup:
    """Return the group with a new member appended.

    The member gets the full ``member_count`` contribution schedule from the
    group's start date. The group turns active once it is full.
    """
    contributions = generate_schedule(
        group.start_date,
        group.contribution_amount,
        group.member_count,
        group.interval,
        group.custom_interval,
        id_prefix=member_id,
    )
    member = TontineMember(
        member_id=member_id,
        client_id=client_id,
        payout_order=payout_order,
        payout_date=contributions[payout_order - 1].due_date,
        contributions=contributions,
    )
    members = [*group.members, member]

    status = group.status
    if status == TontineStatus.PENDING and len(members) == group.member_count:
        status = TontineStatus.ACTIVE

    return replace(group, members=members, status=status)


def period_fully_paid(group: TontineGroup, period_number: int) -> bool:
    """True when every member has paid their contribution for the period."""
    return all(
        any(
            c.period_number == period_number and c.status == ContributionStatus.PAID
            for c in member.contributions
        )
        for member in group.members
    )


def set_contribution_status(
    group: TontineGroup,
    member_id: str,
    contribution_id: str,
    status: ContributionStatus,
) -> TontineGroup:
    """Mark one contribution and apply the payout and completion rules."""
    period_number = None
    members = []
    for member in group.members:
        if member.member_id != member_id:
            members.append(member)
            continue
        contributions = []
        for contribution in member.contributions:
            if contribution.contribution_id == contribution_id:
                period_number = contribution.period_number
                contribution = replace(contribution, status=status)
            contributions.append(contribution)
        members.append(replace(member, contributions=contributions))

    updated = replace(group, members=members)
    if period_number is None or not period_fully_paid(updated, period_number):
        return updated

    members = [
        replace(m, has_paid_out=True) if m.payout_order == period_number else m
        for m in updated.members
    ]
    status_after = group.status
    if members and all(m.has_paid_out for m in members):
        status_after = TontineStatus.COMPLETED

    return replace(updated, members=members, status=status_after)


def check_payout_eligibility(group: TontineGroup, member_id: str, today: date) -> bool:
    """Whether a member may collect the pot today.

    Advisory only: ``set_contribution_status`` pays members out as soon as
    their period is funded, regardless of the date.
    """
    member = find_member(group, member_id)
    if member is None or member.has_paid_out:
        return False
    if member.payout_date is None or today < member.payout_date:
        return False
    return period_fully_paid(group, member.payout_order)


def total_contributions(group: TontineGroup) -> Decimal:
    """Sum of all paid contributions in the group."""
    return sum(
        (
            c.amount
            for m in group.members
            for c in m.contributions
            if c.status == ContributionStatus.PAID
        ),
        Decimal("0"),
    )


def member_progress(member: TontineMember) -> Decimal:
    """Percentage of the member's contributions already paid."""
    if not member.contributions:
        return Decimal("0")
    paid = sum(1 for c in member.contributions if c.status == ContributionStatus.PAID)
    return Decimal(paid) / Decimal(len(member.contributions)) * 100


def validate_group(group: TontineGroup) -> list[str]:
    """List consistency problems of a group (empty when consistent)."""
    errors = []

    if len(group.members) != group.member_count:
        errors.append("Member count does not match the required number of members")

    orders = {m.payout_order for m in group.members}
    if len(orders) != len(group.members):
        errors.append("Duplicate payout orders found")

    clients = {m.client_id for m in group.members}
    if len(clients) != len(group.members):
        errors.append("Duplicate clients found")

    for member in group.members:
        if len(member.contributions) != group.member_count:
            errors.append(f"Invalid contribution count for member {member.member_id}")

    return errors
