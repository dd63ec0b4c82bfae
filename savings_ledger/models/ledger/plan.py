"""Savings plan ("grill") model."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class Plan:
    """Savings-schedule template.

    A client enrolled on a plan owes ``day * base_amount`` on each day of
    the plan, so the daily amounts grow linearly over ``duration`` days.
    """

    plan_id: str
    name: str
    base_amount: Decimal  # Amount owed on day 1
    duration: int  # Days, 1..90
    admin_percentage: Decimal = Decimal("10")  # Share kept by the club, 0..100
    description: str | None = None
