"""Pure ledger computations: schedules, balances, loans and tontines."""

from savings_ledger.engine import amortization, balance, rotation, schedule

__all__ = ["amortization", "balance", "rotation", "schedule"]
