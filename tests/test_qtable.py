from fuelnav.domain.qtable import QTable
from fuelnav.domain.types import FuelState, DEFAULT_ACTION


def test_get_defaults_to_zero_and_materializes():
    table = QTable()
    state = FuelState((1, 2), 7.0)
    assert len(table) == 0
    assert table.get(state, "up") == 0.0
    assert len(table) == 1
    assert state in table


def test_peek_does_not_materialize():
    table = QTable()
    state = FuelState((1, 2), 7.0)
    assert table.peek(state, "left") == 0.0
    assert len(table) == 0


def test_fuel_is_floored_into_the_key():
    table = QTable()
    table.set(FuelState((3, 3), 4.9), "right", 1.5)
    assert table.get(FuelState((3, 3), 4.0), "right") == 1.5
    assert table.peek(FuelState((3, 3), 5.0), "right") == 0.0
    assert table.visited_states() == [(3, 3, 4)]


def test_best_action_prefers_first_on_ties():
    table = QTable()
    state = FuelState((0, 0), 10)
    assert table.best_action(state, ["down", "right"]) == "down"
    table.set(state, "right", 2.0)
    assert table.best_action(state, ["down", "right"]) == "right"
    table.set(state, "down", 2.0)
    assert table.best_action(state, ["down", "right"]) == "down"


def test_best_action_without_actions_falls_back():
    assert QTable().best_action(FuelState((0, 0), 1), []) == DEFAULT_ACTION


def test_max_value():
    table = QTable()
    state = FuelState((0, 0), 10)
    assert table.max_value(state, []) == 0.0
    table.set(state, "up", -4.0)
    table.set(state, "left", -1.0)
    assert table.max_value(state, ["up", "left"]) == -1.0


def test_snapshot_is_independent_copy():
    table = QTable()
    state = FuelState((0, 0), 10)
    table.set(state, "up", 1.0)
    snap = table.snapshot()
    table.set(state, "up", 2.0)
    assert snap == {(0, 0, 10): {"up": 1.0}}


def test_clear():
    table = QTable()
    table.set(FuelState((0, 0), 1), "up", 1.0)
    table.clear()
    assert len(table) == 0
