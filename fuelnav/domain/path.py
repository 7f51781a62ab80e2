"""Greedy path extraction from a learned Q-table and route utilities."""

from typing import TYPE_CHECKING, List

from .types import Coord, PathfindingResult, step_cap
from .qtable import QTable

if TYPE_CHECKING:
    from .qlearning import QLearningEnvironment

# Fuel must cover the remaining distance with this much headroom
REFUEL_SAFETY_MARGIN = 1.2


def needs_refuel(current_fuel: float, distance_to_goal: float) -> bool:
    """
    Fixed-margin heuristic: refuel unless the tank covers the distance plus 20%.

    This does not look at where stations actually are.
    """
    return current_fuel < distance_to_goal * REFUEL_SAFETY_MARGIN


def extract_optimal_path(env: "QLearningEnvironment", q_table: QTable) -> PathfindingResult:
    """
    Follow the highest-valued legal action from the start until the goal,
    a dead end, or the step cap.

    Q-values are read without materializing entries, so the table is left
    exactly as it was. Refuel stops change fuel but add no position.
    """
    grid = env.grid
    state = env.reset()
    path: List[Coord] = [state.position]
    refuel_count = 0
    max_steps = step_cap(grid.grid_size)
    actions_taken = 0

    for _ in range(max_steps):
        valid_actions = env.get_valid_actions(state)
        if not valid_actions:
            break

        # Always choose best action (no exploration)
        action = q_table.best_action(state, valid_actions, materialize=False)
        state, _ = env.step(state, action)
        actions_taken += 1

        if action == "refuel":
            refuel_count += 1
        else:
            path.append(state.position)

        if env.is_goal(state):
            break

    reached_goal = env.is_goal(state)
    distance = len(path) - 1

    return PathfindingResult(
        path=path,
        reached_goal=reached_goal,
        steps_taken=actions_taken,
        refuel_count=refuel_count,
        final_fuel=state.fuel,
        refuel_recommended=needs_refuel(grid.max_fuel, distance)
    )
