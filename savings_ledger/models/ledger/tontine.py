"""Tontine (rotating savings group) models."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from savings_ledger.models.ledger.enums import (
    ContributionStatus,
    TontineInterval,
    TontineStatus,
)


@dataclass
class TontineContribution:
    """A member's contribution for one period of the rotation."""

    contribution_id: str
    amount: Decimal
    due_date: date
    period_number: int  # 1, 2, 3, ...
    status: ContributionStatus = ContributionStatus.PENDING


@dataclass
class TontineMember:
    """Client enrolled in a tontine at a fixed payout position."""

    member_id: str
    client_id: str
    payout_order: int  # 1..group.member_count
    payout_date: date | None = None
    has_paid_out: bool = False
    contributions: list[TontineContribution] = field(default_factory=list)


@dataclass
class TontineGroup:
    """Rotating savings group.

    Every member contributes ``contribution_amount`` each period; in period
    ``n`` the pot goes to the member whose ``payout_order`` is ``n``.
    """

    group_id: str
    name: str
    contribution_amount: Decimal
    member_count: int
    interval: TontineInterval
    start_date: date
    status: TontineStatus = TontineStatus.PENDING
    members: list[TontineMember] = field(default_factory=list)
    custom_interval: int | None = None  # Days, only for TontineInterval.CUSTOM
    description: str | None = None
