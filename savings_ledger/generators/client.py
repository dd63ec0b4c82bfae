"""Client generator for the savings club."""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Iterator, Sequence

from savings_ledger.generators.base import BaseGenerator
from savings_ledger.models.ledger import Client


class ClientGenerator(BaseGenerator):
    """Generate synthetic club members.

    Generated clients carry no ledger entries; the payment schedule is
    built when the client is added to a ledger.
    """

    # Enrollment within the last quarter
    MAX_ENROLLMENT_DAYS = 90

    def __init__(
        self,
        seed: int | None = None,
        locale: str = "en_US",
        now: datetime | None = None,
    ) -> None:
        super().__init__(seed, locale)
        self.now = now or datetime.now()

    def generate(self, plan_id: str | None = None) -> Client:
        """Generate a single client.

        Parameters
        ----------
        plan_id : str | None
            Plan to enroll the client on.

        Returns
        -------
        Client
            Generated client.
        """
        days_ago = random.randint(0, self.MAX_ENROLLMENT_DAYS)
        return Client(
            client_id=self.fake.uuid4(),
            name=self.fake.name(),
            email=self.fake.email(),
            phone=self.fake.phone_number(),
            start_date=(self.now - timedelta(days=days_ago)).replace(microsecond=0),
            plan_id=plan_id,
        )

    def generate_batch(
        self,
        count: int,
        plan_ids: Sequence[str] | None = None,
    ) -> Iterator[Client]:
        """Generate multiple clients.

        Parameters
        ----------
        count : int
            Number of clients to generate.
        plan_ids : Sequence[str] | None
            Plans to pick from at random; clients get no plan when omitted.

        Yields
        ------
        Client
            Generated clients.
        """
        for _ in range(count):
            plan_id = random.choice(plan_ids) if plan_ids else None
            yield self.generate(plan_id)
