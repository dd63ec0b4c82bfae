"""Loan generator for the savings club."""

from __future__ import annotations

import random
from datetime import date
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from savings_ledger.generators.base import BaseGenerator
from savings_ledger.models.ledger import Loan


class LoanGenerator(BaseGenerator):
    """Generate pending loan requests."""

    INTEREST_RATES = [Decimal("5"), Decimal("10"), Decimal("15"), Decimal("20")]
    INTEREST_WEIGHTS = [0.30, 0.40, 0.20, 0.10]

    # Principal range, whole currency units
    MIN_PRINCIPAL = 100
    MAX_PRINCIPAL = 2000

    TERM_MONTHS = (3, 12)

    PURPOSES = [
        "School fees",
        "Market stock",
        "Medical expenses",
        "Home repairs",
        "Farming inputs",
        "Equipment purchase",
    ]

    def generate(self, start_date: date) -> Loan:
        """Generate a loan request starting on ``start_date``."""
        # Round to the nearest 50 like a typical request
        principal = random.randint(self.MIN_PRINCIPAL // 50, self.MAX_PRINCIPAL // 50) * 50
        rate = random.choices(self.INTEREST_RATES, weights=self.INTEREST_WEIGHTS, k=1)[0]
        term = random.randint(*self.TERM_MONTHS)

        return Loan(
            loan_id=self.fake.uuid4(),
            principal=Decimal(principal),
            interest_rate=rate,
            start_date=start_date,
            due_date=start_date + relativedelta(months=term),
            note=random.choice(self.PURPOSES),
        )
