"""Scenarios for generating populated savings ledgers."""

from savings_ledger.scenarios.savings_club import SavingsClubScenario

__all__ = ["SavingsClubScenario"]
