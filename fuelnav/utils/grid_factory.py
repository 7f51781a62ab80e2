"""Environment factory for building preset and randomized fuel grids."""

from typing import Optional, List, Set

from ..domain.types import Coord, ConfigurationError
from ..domain.environment import GridEnvironment
from .rng import SeededRNG

PRESETS = ("navigation", "empty", "sparse", "dense")

# Fixed layout of the interactive navigation page
NAVIGATION_GRID_SIZE = 16
NAVIGATION_OBSTACLES: List[Coord] = [
    (2, 2), (2, 3), (3, 2),
    (5, 5), (5, 6), (6, 5),
    (8, 3), (9, 3), (8, 4),
    (1, 8), (2, 8), (1, 9),
    (7, 9), (7, 10), (8, 9),
    (11, 11), (12, 11), (11, 12),
    (14, 7), (13, 7), (14, 8),
    (4, 13), (5, 13), (4, 14),
]
NAVIGATION_FUEL_STATIONS: List[Coord] = [
    (3, 6), (8, 7), (5, 2), (9, 10), (12, 4), (6, 12), (13, 13),
]


def create_navigation_environment(max_fuel: float = 100.0) -> GridEnvironment:
    """16x16 city layout with clustered obstacles and seven fuel stations."""
    return GridEnvironment.create(
        grid_size=NAVIGATION_GRID_SIZE,
        start=(0, 0),
        goal=(NAVIGATION_GRID_SIZE - 1, NAVIGATION_GRID_SIZE - 1),
        obstacles=NAVIGATION_OBSTACLES,
        fuel_stations=NAVIGATION_FUEL_STATIONS,
        max_fuel=max_fuel
    )


def create_empty_environment(grid_size: int, max_fuel: float = 100.0,
                             start: Optional[Coord] = None,
                             goal: Optional[Coord] = None) -> GridEnvironment:
    """
    Create an obstacle-free grid with no fuel stations.

    Start defaults to the top-left corner and goal to the bottom-right one.

    Raises:
        ConfigurationError: If grid_size <= 1 or the positions are invalid
    """
    if grid_size <= 1:
        raise ConfigurationError(f"Grid size must be at least 2 to hold start and goal, got {grid_size}")
    return GridEnvironment.create(
        grid_size=grid_size,
        start=start if start is not None else (0, 0),
        goal=goal if goal is not None else (grid_size - 1, grid_size - 1),
        max_fuel=max_fuel
    )


def random_free_cells(grid_size: int, count: int, exclude: Set[Coord],
                      rng: SeededRNG) -> List[Coord]:
    """
    Pick distinct cells not in ``exclude``.

    Args:
        grid_size: Grid side length
        count: Number of cells wanted (clamped to what is available)
        exclude: Cells that must not be chosen
        rng: Random number generator to use
    """
    free = [(x, y) for y in range(grid_size) for x in range(grid_size) if (x, y) not in exclude]
    count = min(count, len(free))
    return rng.sample(free, count)


def generate_random_environment(grid_size: int, obstacle_density: float = 0.15,
                                station_count: int = 3, max_fuel: Optional[float] = None,
                                seed: Optional[int] = None) -> GridEnvironment:
    """
    Generate a grid with random obstacles and fuel stations.

    Start is the top-left corner and goal the bottom-right one; both stay
    clear. Obstacles are scattered without any connectivity guarantee, so
    some layouts are unsolvable; the learner copes by never reaching the
    goal rather than failing.

    Args:
        grid_size: Grid side length
        obstacle_density: Fraction of cells to turn into obstacles (0.0 to 1.0)
        station_count: Number of fuel stations to place
        max_fuel: Tank capacity, defaults to twice the grid size
        seed: Random seed for reproducibility

    Raises:
        ConfigurationError: If the density is outside [0, 1] or the grid is too small
    """
    if not (0.0 <= obstacle_density <= 1.0):
        raise ConfigurationError(f"Density must be between 0.0 and 1.0, got {obstacle_density}")
    if grid_size <= 1:
        raise ConfigurationError(f"Grid size must be at least 2 to hold start and goal, got {grid_size}")

    rng = SeededRNG(seed)
    start: Coord = (0, 0)
    goal: Coord = (grid_size - 1, grid_size - 1)
    reserved = {start, goal}

    num_obstacles = int(grid_size * grid_size * obstacle_density)
    obstacles = random_free_cells(grid_size, num_obstacles, reserved, rng)
    stations = random_free_cells(grid_size, station_count, reserved | set(obstacles), rng)

    return GridEnvironment.create(
        grid_size=grid_size,
        start=start,
        goal=goal,
        obstacles=obstacles,
        fuel_stations=stations,
        max_fuel=max_fuel if max_fuel is not None else float(2 * grid_size)
    )


def create_preset_environment(preset: str, grid_size: int = NAVIGATION_GRID_SIZE,
                              max_fuel: Optional[float] = None,
                              seed: Optional[int] = None) -> GridEnvironment:
    """
    Create a preset environment.

    Args:
        preset: Preset name ("navigation", "empty", "sparse", "dense")
        grid_size: Grid side length (ignored by "navigation")
        max_fuel: Tank capacity, preset-specific default when None
        seed: Random seed for the randomized presets

    Raises:
        ConfigurationError: If the preset is unknown
    """
    if preset == "navigation":
        return create_navigation_environment(max_fuel if max_fuel is not None else 100.0)
    if preset == "empty":
        return create_empty_environment(grid_size, max_fuel if max_fuel is not None else 100.0)
    if preset == "sparse":
        return generate_random_environment(grid_size, 0.15, station_count=3, max_fuel=max_fuel, seed=seed)
    if preset == "dense":
        return generate_random_environment(grid_size, 0.30, station_count=5, max_fuel=max_fuel, seed=seed)
    raise ConfigurationError(f"Unknown preset: {preset}")
