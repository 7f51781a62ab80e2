import dataclasses

import pytest

from fuelnav.domain.environment import GridEnvironment
from fuelnav.domain.types import ConfigurationError, FuelState, ACTION_DELTAS


@pytest.mark.parametrize("kwargs", [
    dict(grid_size=0, start=(0, 0), goal=(0, 0)),
    dict(grid_size=-3, start=(0, 0), goal=(1, 1)),
    dict(grid_size=4, start=(4, 0), goal=(1, 1)),
    dict(grid_size=4, start=(0, 0), goal=(1, -1)),
    dict(grid_size=4, start=(0, 0), goal=(0, 0)),
    dict(grid_size=4, start=(0, 0), goal=(3, 3), obstacles=[(0, 0)]),
    dict(grid_size=4, start=(0, 0), goal=(3, 3), obstacles=[(3, 3)]),
    dict(grid_size=4, start=(0, 0), goal=(3, 3), obstacles=[(5, 5)]),
    dict(grid_size=4, start=(0, 0), goal=(3, 3), fuel_stations=[(9, 0)]),
    dict(grid_size=4, start=(0, 0), goal=(3, 3), obstacles=[(1, 1)], fuel_stations=[(1, 1)]),
    dict(grid_size=4, start=(0, 0), goal=(3, 3), fuel_stations=[(2, 1), (2, 1)]),
    dict(grid_size=4, start=(0, 0), goal=(3, 3), max_fuel=0),
])
def test_invalid_configurations_are_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        GridEnvironment.create(**kwargs)


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        GridEnvironment(grid_size=3, start=(0, 0), goal=(5, 5))


def test_queries():
    env = GridEnvironment.create(grid_size=3, start=(0, 0), goal=(2, 2),
                                 obstacles=[(1, 1)], fuel_stations=[(0, 2)], max_fuel=10)
    assert env.is_obstacle((1, 1))
    assert not env.is_obstacle((0, 1))
    assert env.is_fuel_station((0, 2))
    assert env.in_bounds((2, 2))
    assert not env.in_bounds((3, 0))
    assert not env.is_traversable((1, 1))
    assert env.distance_to_goal((0, 0)) == 4
    assert env.initial_state() == FuelState((0, 0), 10)


def test_coordinates_from_lists_are_normalized():
    env = GridEnvironment.create(grid_size=3, start=[0, 0], goal=[2, 2], obstacles=[[1, 0]])
    assert env.start == (0, 0)
    assert env.is_obstacle((1, 0))


def test_corner_actions(open_grid):
    actions = open_grid.legal_actions(FuelState((0, 0), 50))
    assert actions == ["down", "right"]


def test_legal_actions_never_enter_obstacles_or_leave_grid():
    obstacles = [(1, 0), (0, 2), (2, 2), (3, 1)]
    env = GridEnvironment.create(grid_size=4, start=(0, 0), goal=(3, 3), obstacles=obstacles,
                                 fuel_stations=[(1, 1)], max_fuel=5)
    for y in range(4):
        for x in range(4):
            if env.is_obstacle((x, y)):
                continue
            for action in env.legal_actions(FuelState((x, y), 2)):
                if action == "refuel":
                    continue
                dx, dy = ACTION_DELTAS[action]
                target = (x + dx, y + dy)
                assert env.in_bounds(target)
                assert not env.is_obstacle(target)


def test_moves_stay_legal_with_empty_tank(open_grid):
    actions = open_grid.legal_actions(FuelState((2, 2), 0))
    assert actions == ["up", "down", "left", "right"]


def test_refuel_only_on_station_below_capacity():
    env = GridEnvironment.create(grid_size=3, start=(0, 0), goal=(2, 2),
                                 fuel_stations=[(1, 1)], max_fuel=10)
    assert "refuel" in env.legal_actions(FuelState((1, 1), 9.5))
    assert "refuel" not in env.legal_actions(FuelState((1, 1), 10))
    assert "refuel" not in env.legal_actions(FuelState((1, 0), 1))
    assert env.legal_actions(FuelState((1, 1), 3))[-1] == "refuel"


def test_boxed_in_cell_has_no_legal_actions():
    env = GridEnvironment.create(grid_size=3, start=(0, 0), goal=(2, 2), obstacles=[(1, 0), (0, 1)])
    assert env.legal_actions(env.initial_state()) == []


def test_environment_is_immutable(open_grid):
    with pytest.raises(dataclasses.FrozenInstanceError):
        open_grid.grid_size = 10
