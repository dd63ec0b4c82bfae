"""Faker-backed generators for sample ledger data."""

from savings_ledger.generators.base import BaseGenerator
from savings_ledger.generators.client import ClientGenerator
from savings_ledger.generators.loan import LoanGenerator
from savings_ledger.generators.tontine import TontineGroupGenerator

__all__ = [
    "BaseGenerator",
    "ClientGenerator",
    "LoanGenerator",
    "TontineGroupGenerator",
]
