"""In-memory ledger state, reducer and store."""

from savings_ledger.store.ledger_store import LedgerStore
from savings_ledger.store.reducer import reduce
from savings_ledger.store.state import LedgerState, default_plans

__all__ = ["LedgerState", "LedgerStore", "default_plans", "reduce"]
