"""Lifecycle of a navigation training run."""

from enum import Enum
from typing import Dict, Callable, FrozenSet, List, Optional

StateCallback = Callable[[Optional[Dict]], None]


class RLState(Enum):
    """Run lifecycle states; the value is the status text shown to users."""
    IDLE = "Ready - start training to learn a route"
    TRAINING = "Training agent with Q-Learning"
    STOPPING = "Stopping after the current step"
    TRAINED = "Training finished - optimal path available"
    ERROR = "Error occurred during training"


ALLOWED_TRANSITIONS: Dict[RLState, FrozenSet[RLState]] = {
    RLState.IDLE: frozenset({RLState.TRAINING}),
    RLState.TRAINING: frozenset({RLState.STOPPING, RLState.TRAINED, RLState.ERROR, RLState.IDLE}),
    RLState.STOPPING: frozenset({RLState.IDLE, RLState.TRAINED, RLState.ERROR}),
    RLState.TRAINED: frozenset({RLState.TRAINING, RLState.IDLE}),
    RLState.ERROR: frozenset({RLState.IDLE}),
}

# A run is in flight in these states; nothing may reconfigure the agent
ACTIVE_STATES = frozenset({RLState.TRAINING, RLState.STOPPING})
STARTABLE_STATES = frozenset({RLState.IDLE, RLState.TRAINED})


class RLStateMachine:
    """
    Guards a controller against overlapping training runs.

    Illegal moves are refused (``transition`` returns False) rather than
    raised, so UI handlers can call the helpers unconditionally. Several
    callbacks may listen on the same state; they run in registration order,
    exit callbacks of the old state before enter callbacks of the new one.
    """

    def __init__(self):
        self.current_state = RLState.IDLE
        self.history: List[RLState] = [RLState.IDLE]
        self._on_enter: Dict[RLState, List[StateCallback]] = {state: [] for state in RLState}
        self._on_exit: Dict[RLState, List[StateCallback]] = {state: [] for state in RLState}

    def on_state_enter(self, state: RLState, callback: StateCallback):
        self._on_enter[state].append(callback)

    def on_state_exit(self, state: RLState, callback: StateCallback):
        self._on_exit[state].append(callback)

    def can_transition(self, to_state: RLState) -> bool:
        return to_state in ALLOWED_TRANSITIONS[self.current_state]

    def transition(self, to_state: RLState, context: Optional[Dict] = None) -> bool:
        """Move to ``to_state`` if allowed, firing exit then enter callbacks."""
        if not self.can_transition(to_state):
            return False

        for callback in self._on_exit[self.current_state]:
            callback(context)
        self.current_state = to_state
        self.history.append(to_state)
        for callback in self._on_enter[to_state]:
            callback(context)
        return True

    def start_training(self, context: Optional[Dict] = None) -> bool:
        return self.transition(RLState.TRAINING, context)

    def request_stop(self, context: Optional[Dict] = None) -> bool:
        return self.transition(RLState.STOPPING, context)

    def finish(self, context: Optional[Dict] = None) -> bool:
        """The run completed and left a usable Q-table behind."""
        return self.transition(RLState.TRAINED, context)

    def reset_to_idle(self, context: Optional[Dict] = None) -> bool:
        return self.transition(RLState.IDLE, context)

    def fail_error(self, context: Optional[Dict] = None) -> bool:
        return self.transition(RLState.ERROR, context)

    def is_idle(self) -> bool:
        return self.current_state is RLState.IDLE

    def is_training(self) -> bool:
        return self.current_state is RLState.TRAINING

    def is_trained(self) -> bool:
        return self.current_state is RLState.TRAINED

    def is_error(self) -> bool:
        return self.current_state is RLState.ERROR

    def is_active(self) -> bool:
        return self.current_state in ACTIVE_STATES

    def can_start(self) -> bool:
        return self.current_state in STARTABLE_STATES

    def get_state_description(self) -> str:
        return self.current_state.value
