"""Sparse Q-value store keyed by discretized state."""

import copy
from typing import Dict, List, Sequence

import numpy as np

from .types import Action, FuelState, StateKey, DEFAULT_ACTION


class QTable:
    """
    Mapping from (x, y, floor(fuel)) to per-action value estimates.

    Entries are created lazily with a value of 0 the first time they are
    read through ``get``. Nothing is ever evicted, so the table only grows
    over a training run.
    """

    def __init__(self):
        self._table: Dict[StateKey, Dict[Action, float]] = {}

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, state: FuelState) -> bool:
        return state.key() in self._table

    def get(self, state: FuelState, action: Action) -> float:
        """Get Q-value for state-action pair, materializing a 0 entry."""
        action_values = self._table.setdefault(state.key(), {})
        return action_values.setdefault(action, 0.0)

    def peek(self, state: FuelState, action: Action) -> float:
        """Get Q-value without creating an entry for unseen pairs."""
        return self._table.get(state.key(), {}).get(action, 0.0)

    def set(self, state: FuelState, action: Action, value: float) -> None:
        """Set Q-value for state-action pair."""
        self._table.setdefault(state.key(), {})[action] = float(value)

    def as_array(self, state: FuelState, actions: Sequence[Action],
                 materialize: bool = True) -> np.ndarray:
        """Return Q-values of the given actions as numpy array."""
        read = self.get if materialize else self.peek
        return np.array([read(state, action) for action in actions], dtype=float)

    def max_value(self, state: FuelState, actions: Sequence[Action]) -> float:
        """Maximum Q-value over the given actions, 0 when there are none."""
        if not actions:
            return 0.0
        return float(self.as_array(state, actions).max())

    def best_action(self, state: FuelState, actions: Sequence[Action],
                    materialize: bool = True) -> Action:
        """Action with the highest Q-value; the first one listed wins ties."""
        if not actions:
            return DEFAULT_ACTION
        values = self.as_array(state, actions, materialize=materialize)
        return actions[int(np.argmax(values))]

    def values_for(self, state: FuelState, actions: Sequence[Action]) -> Dict[Action, float]:
        """Q-values of the given actions keyed by action."""
        return {action: self.get(state, action) for action in actions}

    def snapshot(self) -> Dict[StateKey, Dict[Action, float]]:
        """Deep copy of the whole table."""
        return copy.deepcopy(self._table)

    def visited_states(self) -> List[StateKey]:
        return list(self._table.keys())

    def clear(self) -> None:
        """Reset all Q-values."""
        self._table.clear()
