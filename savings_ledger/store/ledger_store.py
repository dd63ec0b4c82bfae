"""Explicit state container owning the ledger state."""

from __future__ import annotations

import logging
from typing import Callable

from savings_ledger.actions import Action
from savings_ledger.store.reducer import reduce
from savings_ledger.store.state import LedgerState

logger = logging.getLogger(__name__)

Listener = Callable[[LedgerState, Action], None]


class LedgerStore:
    """Hold the current ledger state and apply actions to it.

    Listeners run after each committed transition. They are notified in
    registration order; a failing listener is logged and never undoes the
    transition nor prevents the other listeners from running.

    Parameters
    ----------
    state : LedgerState | None
        Initial state (a fresh ledger with the default plans when omitted).
    """

    def __init__(self, state: LedgerState | None = None) -> None:
        self._state = state if state is not None else LedgerState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> LedgerState:
        return self._state

    def dispatch(self, action: Action) -> LedgerState:
        """Apply an action and notify listeners.

        Parameters
        ----------
        action : Action
            Transition to apply.

        Returns
        -------
        LedgerState
            The new current state.
        """
        previous = self._state
        self._state = reduce(previous, action)
        logger.debug("Dispatched %s", type(action).__name__)

        if self._state is not previous:
            self._notify(action)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, action: Action) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state, action)
            except Exception:
                logger.exception(
                    "Listener failed after %s; state change kept", type(action).__name__
                )
