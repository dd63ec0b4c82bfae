"""Payment schedule generation for savings plans."""

from decimal import Decimal

from savings_ledger.models.ledger import Payment, Plan


def generate_payments(plan: Plan) -> list[Payment]:
    """Build the full payment schedule for a plan.

    Parameters
    ----------
    plan : Plan
        Plan to expand.

    Returns
    -------
    list[Payment]
        One unpaid payment per day ``1..plan.duration`` with
        ``amount = day * plan.base_amount``.
    """
    return [
        Payment(day=day, amount=day * plan.base_amount)
        for day in range(1, plan.duration + 1)
    ]


def plan_total(plan: Plan) -> Decimal:
    """Sum of every scheduled amount of a plan."""
    return sum(
        (day * plan.base_amount for day in range(1, plan.duration + 1)),
        Decimal("0"),
    )


def admin_earnings(plan: Plan) -> Decimal:
    """Share of a completed plan kept by the club."""
    return plan_total(plan) * plan.admin_percentage / 100
