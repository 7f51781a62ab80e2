"""Immutable grid world: bounds, obstacles, fuel stations and legal actions."""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List

from .types import (
    Coord, Action, FuelState, ConfigurationError, ACTION_DELTAS, MOVE_ACTIONS,
    manhattan_distance
)


@dataclass(frozen=True)
class GridEnvironment:
    """Square grid the agent navigates, validated on construction."""
    grid_size: int
    start: Coord
    goal: Coord
    obstacles: FrozenSet[Coord] = field(default_factory=frozenset)
    fuel_stations: FrozenSet[Coord] = field(default_factory=frozenset)
    max_fuel: float = 100.0

    def __post_init__(self):
        if not isinstance(self.grid_size, int) or self.grid_size <= 0:
            raise ConfigurationError(f"Grid size must be a positive integer, got {self.grid_size}")
        if self.max_fuel <= 0:
            raise ConfigurationError(f"Fuel capacity must be positive, got {self.max_fuel}")

        # Normalize coordinates so lists of lists from JSON compare correctly
        object.__setattr__(self, "start", _as_coord(self.start))
        object.__setattr__(self, "goal", _as_coord(self.goal))
        object.__setattr__(self, "obstacles", frozenset(_as_coord(c) for c in self.obstacles))
        object.__setattr__(self, "fuel_stations", frozenset(_as_coord(c) for c in self.fuel_stations))

        for name, coord in (("Start", self.start), ("Goal", self.goal)):
            if not self.in_bounds(coord):
                raise ConfigurationError(f"{name} position {coord} is out of bounds")
            if coord in self.obstacles:
                raise ConfigurationError(f"{name} position {coord} is on an obstacle")
        if self.start == self.goal:
            raise ConfigurationError("Start and goal positions cannot be the same")

        for coord in self.obstacles:
            if not self.in_bounds(coord):
                raise ConfigurationError(f"Obstacle {coord} is out of bounds")
        for coord in self.fuel_stations:
            if not self.in_bounds(coord):
                raise ConfigurationError(f"Fuel station {coord} is out of bounds")

        overlap = self.obstacles & self.fuel_stations
        if overlap:
            raise ConfigurationError(f"Cells cannot be both obstacle and fuel station: {sorted(overlap)}")

    @classmethod
    def create(cls, grid_size: int, start: Coord, goal: Coord,
               obstacles: Iterable[Coord] = (), fuel_stations: Iterable[Coord] = (),
               max_fuel: float = 100.0) -> "GridEnvironment":
        """
        Build an environment from plain sequences.

        Unlike the constructor, this rejects fuel stations listed more than
        once, which a frozenset would otherwise silently merge.

        Raises:
            ConfigurationError: If the configuration is contradictory
        """
        stations = [_as_coord(c) for c in fuel_stations]
        if len(set(stations)) != len(stations):
            raise ConfigurationError("Fuel stations must not overlap each other")
        return cls(
            grid_size=grid_size,
            start=start,
            goal=goal,
            obstacles=frozenset(_as_coord(c) for c in obstacles),
            fuel_stations=frozenset(stations),
            max_fuel=max_fuel
        )

    def in_bounds(self, pos: Coord) -> bool:
        """Check if coordinate is within grid bounds."""
        x, y = pos
        return 0 <= x < self.grid_size and 0 <= y < self.grid_size

    def is_obstacle(self, pos: Coord) -> bool:
        return pos in self.obstacles

    def is_fuel_station(self, pos: Coord) -> bool:
        return pos in self.fuel_stations

    def is_traversable(self, pos: Coord) -> bool:
        """Check if the agent may stand on this cell."""
        return self.in_bounds(pos) and not self.is_obstacle(pos)

    def distance_to_goal(self, pos: Coord) -> int:
        return manhattan_distance(pos, self.goal)

    def initial_state(self) -> FuelState:
        """State every episode and replay starts from."""
        return FuelState(position=self.start, fuel=self.max_fuel)

    def legal_actions(self, state: FuelState) -> List[Action]:
        """
        Get the actions available in a state, in canonical order.

        Moves ignore fuel: running dry is punished by the reward, not
        forbidden, so the agent can learn to avoid it. Refuel requires
        standing on a station with a tank that is not already full.
        An empty list is possible only for a cell boxed in by obstacles.
        """
        x, y = state.position
        actions: List[Action] = []
        for action in MOVE_ACTIONS:
            dx, dy = ACTION_DELTAS[action]
            if self.is_traversable((x + dx, y + dy)):
                actions.append(action)

        if self.is_fuel_station(state.position) and state.fuel < self.max_fuel:
            actions.append("refuel")

        return actions


def _as_coord(value) -> Coord:
    x, y = value
    return (int(x), int(y))
