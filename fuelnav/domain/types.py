"""Core type definitions for the fuel-aware RL navigation engine."""

import math
from dataclasses import dataclass, field
from typing import Tuple, Literal, Dict, List, Callable

# Coordinate type for grid positions
Coord = Tuple[int, int]

# Actions the RL agent can take
Action = Literal["up", "down", "left", "right", "refuel"]

# Canonical enumeration order, also used to break ties between equal Q-values
ACTIONS: Tuple[Action, ...] = ("up", "down", "left", "right", "refuel")

MOVE_ACTIONS: Tuple[Action, ...] = ("up", "down", "left", "right")

# Returned by the policy when a state has no legal action at all
DEFAULT_ACTION: Action = "up"

ACTION_DELTAS: Dict[Action, Coord] = {
    "up": (0, -1),
    "down": (0, 1),
    "left": (-1, 0),
    "right": (1, 0),
}

# Discretized state key used by the Q-table: (x, y, floor(fuel))
StateKey = Tuple[int, int, int]


class ConfigurationError(ValueError):
    """Raised when an environment or hyperparameter set is invalid."""


class TrainingInProgressError(RuntimeError):
    """Raised when a second training run is started on a busy agent."""


@dataclass(frozen=True)
class FuelState:
    """Agent state: where it stands and how much fuel is left."""
    position: Coord
    fuel: float

    def key(self) -> StateKey:
        """Discretize the state so continuous fuel maps onto a finite table."""
        x, y = self.position
        return (x, y, math.floor(self.fuel))


@dataclass(frozen=True)
class Hyperparameters:
    """Configuration for the Q-learning run."""
    learning_rate: float = 0.15
    discount_factor: float = 0.99
    epsilon: float = 1.0  # Initial exploration probability
    epsilon_decay: float = 0.99  # Multiplicative, applied once per episode
    min_epsilon: float = 0.01
    episode_count: int = 200

    def __post_init__(self):
        for name in ("learning_rate", "discount_factor", "epsilon", "min_epsilon"):
            value = getattr(self, name)
            if not (0.0 <= value <= 1.0):
                raise ConfigurationError(f"{name} must be between 0.0 and 1.0, got {value}")
        if not (0.0 < self.epsilon_decay <= 1.0):
            raise ConfigurationError(f"epsilon_decay must be in (0.0, 1.0], got {self.epsilon_decay}")
        if not isinstance(self.episode_count, int) or self.episode_count < 0:
            raise ConfigurationError(f"episode_count must be a non-negative integer, got {self.episode_count}")


@dataclass(frozen=True)
class RewardConfig:
    """Reward constants used by the transition function."""
    reward_step: float = -1.0
    reward_refuel: float = -3.0
    reward_depleted: float = -200.0
    reward_goal: float = 200.0
    goal_fuel_bonus: float = 2.0  # Per unit of fuel left on arrival
    reward_progress: float = 5.0
    reward_retreat: float = -3.0


@dataclass
class TrainingProgress:
    """Snapshot pushed to the observer after every training step."""
    episode: int
    reward: float
    epsilon: float
    position: Coord
    fuel: float
    q_values: Dict[Action, float]

    def format_q_values(self) -> str:
        """Render Q-values as 'action: value' pairs for display."""
        return ", ".join(f"{action}: {value:.2f}" for action, value in self.q_values.items())


# Observer callback registered by the presentation layer
ProgressObserver = Callable[[TrainingProgress], None]


@dataclass
class Episode:
    """Represents a single training episode."""
    number: int
    steps: int
    total_reward: float
    reached_goal: bool
    out_of_fuel: bool
    epsilon_used: float
    elapsed_time: float = 0.0
    trace: List[Coord] = field(default_factory=list)


@dataclass
class TrainingResult:
    """Result of a training run."""
    episodes: List[Episode]
    total_episodes: int
    successful_episodes: int
    average_reward: float
    best_reward: float
    best_path: List[Coord]
    final_epsilon: float
    cancelled: bool = False

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        return self.successful_episodes / self.total_episodes if self.total_episodes > 0 else 0.0

    @property
    def depleted_episodes(self) -> int:
        """Number of episodes that ended with an empty tank."""
        return sum(1 for ep in self.episodes if ep.out_of_fuel)


@dataclass
class PathfindingResult:
    """Result of replaying the learned policy greedily."""
    path: List[Coord]
    reached_goal: bool = False
    steps_taken: int = 0
    refuel_count: int = 0
    final_fuel: float = 0.0
    refuel_recommended: bool = False

    @property
    def distance(self) -> int:
        """Number of moves along the path."""
        return max(0, len(self.path) - 1)

    @property
    def success(self) -> bool:
        """Whether the replay arrived at the goal."""
        return self.reached_goal and len(self.path) > 0


def manhattan_distance(a: Coord, b: Coord) -> int:
    """Calculate Manhattan distance between two positions."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def step_cap(grid_size: int) -> int:
    """Maximum number of steps per episode or greedy replay."""
    return 2 * grid_size * grid_size
