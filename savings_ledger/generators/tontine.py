"""Tontine group generator."""

from __future__ import annotations

import random
from datetime import date
from decimal import Decimal

from savings_ledger.generators.base import BaseGenerator
from savings_ledger.models.ledger import TontineGroup, TontineInterval


class TontineGroupGenerator(BaseGenerator):
    """Generate empty tontine groups waiting for members."""

    INTERVALS = [
        TontineInterval.WEEKLY,
        TontineInterval.TWO_WEEKS,
        TontineInterval.MONTHLY,
    ]
    INTERVAL_WEIGHTS = [0.40, 0.25, 0.35]

    CONTRIBUTION_AMOUNTS = [Decimal("20"), Decimal("50"), Decimal("100"), Decimal("200")]

    def generate(self, member_count: int, start_date: date) -> TontineGroup:
        """Generate a pending group.

        Parameters
        ----------
        member_count : int
            Number of seats (and periods) in the rotation.
        start_date : date
            Due date of the first period.

        Returns
        -------
        TontineGroup
            Group without members.
        """
        interval = random.choices(self.INTERVALS, weights=self.INTERVAL_WEIGHTS, k=1)[0]
        return TontineGroup(
            group_id=self.fake.uuid4(),
            name=f"{self.fake.last_name()} Circle",
            contribution_amount=random.choice(self.CONTRIBUTION_AMOUNTS),
            member_count=member_count,
            interval=interval,
            start_date=start_date,
            description=f"{interval.value.capitalize()} rotation of {member_count} members",
        )
