"""Application controller connecting a presentation layer to the learning engine."""

from typing import Optional
from PySide6.QtCore import QObject, Signal, Slot, QThread, Qt

from ..domain.types import (
    Hyperparameters, RewardConfig, Episode, TrainingProgress, TrainingResult,
    PathfindingResult, TrainingInProgressError
)
from ..domain.environment import GridEnvironment
from ..domain.qlearning import QLearningAgent
from ..utils.grid_factory import create_navigation_environment
from ..utils.rng import SeededRNG
from .fsm import RLStateMachine, RLState


class TrainingWorker(QObject):
    """Worker that runs one training run, usually on its own thread."""

    step_progress = Signal(object)  # TrainingProgress (throttled)
    episode_completed = Signal(object)  # Episode (throttled)
    training_finished = Signal(object)  # TrainingResult
    error_occurred = Signal(str)
    finished = Signal()

    def __init__(self, agent: QLearningAgent, progress_interval: int = 1):
        super().__init__()
        self.agent = agent
        self.progress_interval = max(1, progress_interval)
        # Update the UI roughly 100 times per run at most
        self.episode_update_interval = max(1, agent.params.episode_count // 100)
        self._steps_seen = 0

    def stop(self):
        """Stop training at the next step boundary, even if run() has not started yet."""
        self.agent.cancel()

    def _on_step(self, progress: TrainingProgress):
        self._steps_seen += 1
        if self._steps_seen % self.progress_interval == 0:
            self.step_progress.emit(progress)

    def _on_episode(self, episode: Episode):
        total = self.agent.params.episode_count
        if (episode.number + 1) % self.episode_update_interval == 0 or episode.number == total - 1:
            self.episode_completed.emit(episode)

    @Slot()
    def run(self):
        """Train the agent and report the outcome through signals."""
        try:
            self.agent.train(observer=self._on_step, on_episode=self._on_episode)
            self.training_finished.emit(self.agent.summary())
        except Exception as e:
            self.error_occurred.emit(str(e))
        finally:
            self.finished.emit()


class NavigationController(QObject):
    """
    Controller that owns the agent and exposes training to a UI.

    Only one training run may be active at a time; the state machine
    rejects a second start until the first one has finished or stopped.

    Signals:
        state_changed: Emitted when the RL state changes
        training_progress: Emitted with a TrainingProgress after training steps
        episode_completed: Emitted when a training episode is completed
        training_completed: Emitted with the TrainingResult when training ends
        path_found: Emitted with the PathfindingResult of a greedy replay
        error_occurred: Emitted when an error occurs
    """

    # Qt Signals
    state_changed = Signal(object)  # RLState
    training_progress = Signal(object)  # TrainingProgress
    episode_completed = Signal(object)  # Episode
    training_completed = Signal(object)  # TrainingResult
    path_found = Signal(object)  # PathfindingResult
    error_occurred = Signal(str)  # Error message

    def __init__(self, environment: Optional[GridEnvironment] = None,
                 params: Optional[Hyperparameters] = None,
                 rewards: Optional[RewardConfig] = None,
                 seed: Optional[int] = None, step_delay_ms: int = 10,
                 progress_interval: int = 1):
        super().__init__()

        self._environment = environment or create_navigation_environment()
        self._params = params or Hyperparameters()
        self._rewards = rewards or RewardConfig()
        self._seed = seed
        self._step_delay_ms = step_delay_ms
        self._progress_interval = progress_interval
        self._agent = self._build_agent()
        self._state_machine = RLStateMachine()
        self._last_result: Optional[TrainingResult] = None
        self._last_path: Optional[PathfindingResult] = None

        # Training worker thread
        self._training_thread: Optional[QThread] = None
        self._training_worker: Optional[TrainingWorker] = None

        self._setup_state_callbacks()

    def _build_agent(self) -> QLearningAgent:
        return QLearningAgent(
            self._environment, self._params, self._rewards,
            rng=SeededRNG(self._seed), step_delay_ms=self._step_delay_ms
        )

    def _setup_state_callbacks(self):
        """Setup callbacks for state machine transitions."""
        for state in RLState:
            self._state_machine.on_state_enter(state, self._make_enter_callback(state))

    def _make_enter_callback(self, state: RLState):
        def on_enter(context):
            self.state_changed.emit(state)
        return on_enter

    # Properties

    @property
    def environment(self) -> GridEnvironment:
        return self._environment

    @property
    def params(self) -> Hyperparameters:
        return self._params

    @property
    def agent(self) -> QLearningAgent:
        return self._agent

    @property
    def current_state(self) -> RLState:
        """Get the current RL state."""
        return self._state_machine.current_state

    @property
    def last_result(self) -> Optional[TrainingResult]:
        return self._last_result

    # Configuration

    def configure(self, environment: Optional[GridEnvironment] = None,
                  params: Optional[Hyperparameters] = None) -> bool:
        """Swap in a new grid and/or hyperparameters; discards learned values."""
        if self._state_machine.is_active():
            return False

        if environment is not None:
            self._environment = environment
        if params is not None:
            self._params = params

        self._agent = self._build_agent()
        self._last_result = None
        self._last_path = None
        if not self._state_machine.is_idle():
            self._state_machine.reset_to_idle()
        return True

    # Training control

    def can_start_training(self) -> bool:
        """Check if training can be started."""
        return self._state_machine.can_start() and not self._agent.is_training

    def start_training(self, threaded: bool = True) -> bool:
        """
        Start a training run.

        With ``threaded=False`` the run happens in the calling thread and
        this method returns once it is over.
        """
        if not self.can_start_training():
            return False

        self._cleanup_training_thread()
        self._agent.clear_cancel()
        self._last_path = None
        self._training_worker = TrainingWorker(self._agent, self._progress_interval)

        # Connect signals
        self._training_worker.step_progress.connect(self._on_step_progress)
        self._training_worker.episode_completed.connect(self._on_episode_completed)
        self._training_worker.training_finished.connect(self._on_training_finished)
        self._training_worker.error_occurred.connect(self._on_training_error)

        self._state_machine.start_training()

        if not threaded:
            self._training_worker.run()
            self._training_worker = None
            return True

        try:
            self._training_thread = QThread()
            self._training_thread.setObjectName("RL-TrainingThread")
            self._training_worker.moveToThread(self._training_thread)
            self._training_thread.started.connect(self._training_worker.run)
            # quit() is thread-safe, so stop the event loop straight from the worker thread
            self._training_worker.finished.connect(self._training_thread.quit, Qt.ConnectionType.DirectConnection)
            self._training_thread.start()
            return True
        except Exception as e:
            self._training_thread = None
            self._training_worker = None
            self._state_machine.fail_error()
            self.error_occurred.emit(f"Failed to start background training: {str(e)}")
            return False

    def stop_training(self, timeout_ms: int = 2000) -> bool:
        """
        Ask the running training to stop and wait for its thread.

        Returns False if nothing was training or the thread is still running
        after ``timeout_ms``. The move back to IDLE happens when the worker's
        result is delivered.
        """
        if not self._state_machine.is_training():
            return False

        self._state_machine.request_stop()
        self._agent.cancel()
        if self._training_thread and self._training_thread.isRunning():
            return self._training_thread.wait(timeout_ms)
        return True

    def wait_for_training(self, timeout_ms: int = 30000) -> bool:
        """Block until the background thread is done. Queued signals still need an event loop."""
        if self._training_thread is None:
            return True
        return self._training_thread.wait(timeout_ms)

    def find_path(self) -> Optional[PathfindingResult]:
        """Replay the learned policy greedily; unavailable during training."""
        if self._state_machine.is_active():
            return None
        result = self._agent.find_path()
        self._last_path = result
        self.path_found.emit(result)
        return result

    def reset_algorithm(self) -> bool:
        """Forget everything learned."""
        if self._state_machine.is_active():
            return False
        try:
            self._agent.reset()
        except TrainingInProgressError as e:
            self.error_occurred.emit(str(e))
            return False
        self._last_result = None
        self._last_path = None
        if not self._state_machine.is_idle():
            self._state_machine.reset_to_idle()
        return True

    # Training callbacks

    def _on_step_progress(self, progress: TrainingProgress):
        self.training_progress.emit(progress)

    def _on_episode_completed(self, episode: Episode):
        self.episode_completed.emit(episode)

    def _on_training_finished(self, result: TrainingResult):
        """Called when training is finished."""
        self._last_result = result
        if result.cancelled:
            self._state_machine.reset_to_idle()
        else:
            self._state_machine.finish()
        self.training_completed.emit(result)

    def _on_training_error(self, error_message: str):
        """Called when training error occurs."""
        self._state_machine.fail_error()
        self.error_occurred.emit(f"Training error: {error_message}")

    def _cleanup_training_thread(self):
        """Stop and release the training thread, if any."""
        if self._training_worker:
            try:
                self._training_worker.blockSignals(True)
            except RuntimeError:
                pass  # Worker already deleted
        if self._training_thread:
            try:
                if self._training_thread.isRunning():
                    # Only cancel a live run; a stale request would abort the next one
                    if self._training_worker:
                        self._training_worker.stop()
                    self._training_thread.quit()
                    if not self._training_thread.wait(1000):
                        print("Warning: training thread did not stop within 1s")
                self._training_thread.deleteLater()
            except RuntimeError:
                pass  # Thread already deleted
            self._training_thread = None
        if self._training_worker:
            try:
                self._training_worker.deleteLater()
            except RuntimeError:
                pass
            self._training_worker = None

    def cleanup(self):
        """Clean up all resources before application shutdown."""
        if self._state_machine.is_active():
            self._agent.cancel()
        self._cleanup_training_thread()

    def get_statistics(self) -> dict:
        """Get current RL statistics."""
        result = self._last_result or self._agent.summary()
        stats = {
            "state": self._state_machine.get_state_description(),
            "episodes_completed": self._agent.episodes_completed,
            "success_rate": result.success_rate,
            "average_reward": result.average_reward,
            "best_reward": result.best_reward,
            "epsilon": self._agent.epsilon,
            "states_learned": len(self._agent.q_table),
        }
        if self._last_path is not None:
            stats["path_length"] = self._last_path.distance
            stats["refuel_recommended"] = self._last_path.refuel_recommended
        return stats
