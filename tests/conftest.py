import pytest

from fuelnav.domain.environment import GridEnvironment


@pytest.fixture
def open_grid():
    """5x5 grid, no obstacles or stations, plenty of fuel."""
    return GridEnvironment.create(grid_size=5, start=(0, 0), goal=(4, 4), max_fuel=100)


@pytest.fixture
def corridor_grid():
    """Single-row corridor whose only fuel station sits halfway to the goal.

    The tank (3) is smaller than the direct distance (4), so the agent has
    to stop at (2, 0) to make it.
    """
    obstacles = [(x, y) for y in range(1, 5) for x in range(5)]
    return GridEnvironment.create(
        grid_size=5, start=(0, 0), goal=(4, 0),
        obstacles=obstacles, fuel_stations=[(2, 0)], max_fuel=3
    )


@pytest.fixture
def qapp():
    """Qt core application for controller tests (no display needed)."""
    qt_core = pytest.importorskip("PySide6.QtCore")
    app = qt_core.QCoreApplication.instance() or qt_core.QCoreApplication([])
    yield app
