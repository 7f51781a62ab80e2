import pytest

pytest.importorskip("PySide6")

from fuelnav.app.controller import NavigationController
from fuelnav.app.fsm import RLState
from fuelnav.domain.environment import GridEnvironment
from fuelnav.domain.types import Hyperparameters


@pytest.fixture
def controller(qapp, open_grid):
    ctrl = NavigationController(open_grid, Hyperparameters(episode_count=20), seed=3, step_delay_ms=0)
    yield ctrl
    ctrl.cleanup()


def test_defaults_to_navigation_grid(qapp):
    ctrl = NavigationController(step_delay_ms=0)
    assert ctrl.environment.grid_size == 16
    assert len(ctrl.environment.fuel_stations) == 7
    assert ctrl.current_state == RLState.IDLE


def test_synchronous_training_streams_signals(controller):
    states, progress, episodes, results = [], [], [], []
    controller.state_changed.connect(states.append)
    controller.training_progress.connect(progress.append)
    controller.episode_completed.connect(episodes.append)
    controller.training_completed.connect(results.append)

    assert controller.start_training(threaded=False)

    assert states == [RLState.TRAINING, RLState.TRAINED]
    assert len(results) == 1
    assert results[0].total_episodes == 20
    assert len(progress) == sum(ep.steps for ep in results[0].episodes)
    assert len(episodes) == 20
    assert controller.current_state == RLState.TRAINED


def test_find_path_after_training(controller):
    found = []
    controller.path_found.connect(found.append)
    controller.start_training(threaded=False)

    result = controller.find_path()

    assert found == [result]
    assert result.path[0] == (0, 0)
    stats = controller.get_statistics()
    assert stats["episodes_completed"] == 20
    assert stats["path_length"] == result.distance


def test_stop_from_progress_handler_cancels_run(controller):
    results = []

    def on_progress(progress):
        controller.stop_training()

    controller.training_progress.connect(on_progress)
    controller.training_completed.connect(results.append)
    controller.start_training(threaded=False)

    assert results[0].cancelled
    assert results[0].total_episodes == 0
    assert controller.current_state == RLState.IDLE


def test_cannot_reconfigure_or_restart_while_training(controller, open_grid):
    attempts = []

    def on_progress(progress):
        if not attempts:
            attempts.append(controller.start_training(threaded=False))
            attempts.append(controller.configure(params=Hyperparameters(episode_count=1)))
            attempts.append(controller.find_path())

    controller.training_progress.connect(on_progress)
    controller.start_training(threaded=False)

    assert attempts == [False, False, None]


def test_configure_replaces_agent(controller):
    controller.start_training(threaded=False)
    old_agent = controller.agent
    other = GridEnvironment.create(grid_size=4, start=(0, 0), goal=(3, 0), max_fuel=10)

    assert controller.configure(environment=other)

    assert controller.agent is not old_agent
    assert controller.environment is other
    assert controller.current_state == RLState.IDLE
    assert len(controller.agent.q_table) == 0


def test_reset_algorithm(controller):
    controller.start_training(threaded=False)
    assert controller.reset_algorithm()
    assert controller.agent.episodes_completed == 0
    assert controller.current_state == RLState.IDLE


def test_background_training_thread(qapp, controller):
    results = []
    controller.training_completed.connect(results.append)

    assert controller.start_training()
    assert controller.wait_for_training(30000)
    for _ in range(5):
        qapp.processEvents()

    assert len(results) == 1
    assert controller.current_state == RLState.TRAINED


def test_stop_right_after_threaded_start(qapp, open_grid):
    # Long enough that the stop always lands before the run could finish
    ctrl = NavigationController(open_grid, Hyperparameters(episode_count=200), seed=3, step_delay_ms=5)
    results = []
    ctrl.training_completed.connect(results.append)
    try:
        assert ctrl.start_training()
        assert ctrl.stop_training(timeout_ms=5000)
        assert ctrl.current_state == RLState.STOPPING
        for _ in range(5):
            qapp.processEvents()

        assert len(results) == 1
        assert results[0].cancelled
        assert results[0].total_episodes < 200
        assert ctrl.current_state == RLState.IDLE
    finally:
        ctrl.cleanup()


def test_stale_cancel_does_not_abort_next_run(controller):
    controller.start_training(threaded=False)
    controller.agent.cancel()

    assert controller.start_training(threaded=False)

    assert not controller.last_result.cancelled
    assert controller.agent.episodes_completed == 40
    assert controller.current_state == RLState.TRAINED


def test_stop_when_idle_returns_false(controller):
    assert not controller.stop_training()
