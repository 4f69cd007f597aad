import threading
from typing import Dict, Optional, Tuple

from ..errors import StrategyAlreadyInitialized
from .models import StrategyState

Key = Tuple[str, str]


class StrategyStateStore:
    """In-memory StrategyState records, one per (trader, market).

    get() hands out copies so a pass that fails midway leaves the stored
    record untouched; only save() publishes a pass's result.
    """

    def __init__(self):
        self._states: Dict[Key, StrategyState] = {}
        self._locks: Dict[Key, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock(self, trader: str, market: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault((trader, market), threading.Lock())

    def get(self, trader: str, market: str) -> Optional[StrategyState]:
        state = self._states.get((trader, market))
        return state.copy() if state is not None else None

    def create(self, state: StrategyState) -> None:
        if state.key in self._states:
            raise StrategyAlreadyInitialized(f'strategy state exists for {state.key}')
        self._states[state.key] = state.copy()

    def save(self, state: StrategyState) -> None:
        self._states[state.key] = state.copy()
