"""Layered reward function expressed as an ordered pipeline of rules.

Each rule inspects a transition and returns either ``("override", value)``,
which replaces the reward accumulated so far, ``("add", value)``, which is
added to it, or ``None`` when it does not apply. Rules run in order, so
fuel depletion is judged before goal arrival and shaping always comes last.
"""

from dataclasses import dataclass
from typing import Callable, Literal, Optional, Sequence, Tuple

from .types import Action, FuelState, Coord, RewardConfig, manhattan_distance

RuleKind = Literal["override", "add"]
RuleOutcome = Optional[Tuple[RuleKind, float]]


@dataclass(frozen=True)
class Transition:
    """One step of the agent, as seen by the reward rules."""
    state: FuelState
    action: Action
    next_state: FuelState
    goal: Coord


RewardRule = Callable[[Transition, RewardConfig], RuleOutcome]


def step_cost(t: Transition, cfg: RewardConfig) -> RuleOutcome:
    """Base cost of acting: refuelling costs more than an efficient step."""
    if t.action == "refuel":
        return "override", cfg.reward_refuel
    return "override", cfg.reward_step


def fuel_depletion(t: Transition, cfg: RewardConfig) -> RuleOutcome:
    """Stranding penalty."""
    if t.next_state.fuel <= 0:
        return "override", cfg.reward_depleted
    return None


def goal_arrival(t: Transition, cfg: RewardConfig) -> RuleOutcome:
    """Arriving dominates everything else; leftover fuel earns a bonus."""
    if t.next_state.position == t.goal:
        return "override", cfg.reward_goal + cfg.goal_fuel_bonus * t.next_state.fuel
    return None


def distance_shaping(t: Transition, cfg: RewardConfig) -> RuleOutcome:
    """Reward closing in on the goal, punish drifting away (refuel exempt)."""
    before = manhattan_distance(t.state.position, t.goal)
    after = manhattan_distance(t.next_state.position, t.goal)
    if after < before:
        return "add", cfg.reward_progress
    if after > before and t.action != "refuel":
        return "add", cfg.reward_retreat
    return None


REWARD_PIPELINE: Tuple[RewardRule, ...] = (
    step_cost,
    fuel_depletion,
    goal_arrival,
    distance_shaping,
)


def compute_reward(transition: Transition, config: RewardConfig,
                   rules: Sequence[RewardRule] = REWARD_PIPELINE) -> float:
    """Fold the rules over a transition in order."""
    reward = 0.0
    for rule in rules:
        outcome = rule(transition, config)
        if outcome is None:
            continue
        kind, value = outcome
        if kind == "override":
            reward = value
        else:
            reward += value
    return reward
