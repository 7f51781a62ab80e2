"""Q-Learning algorithm implementation for fuel-aware navigation."""

import time
from typing import Optional, List, Tuple, Callable

from .types import (
    Coord, Action, FuelState, Hyperparameters, RewardConfig, Episode,
    TrainingProgress, TrainingResult, PathfindingResult, ProgressObserver,
    TrainingInProgressError, ACTION_DELTAS, DEFAULT_ACTION, step_cap
)
from .environment import GridEnvironment
from .qtable import QTable
from .rewards import Transition, compute_reward
from .path import extract_optimal_path, needs_refuel
from ..utils.rng import SeededRNG


class QLearningEnvironment:
    """Transition function on top of an immutable grid."""

    def __init__(self, grid: GridEnvironment, rewards: Optional[RewardConfig] = None):
        self.grid = grid
        self.rewards = rewards or RewardConfig()

    def reset(self) -> FuelState:
        """Initial state of an episode: at the start with a full tank."""
        return self.grid.initial_state()

    def get_valid_actions(self, state: FuelState) -> List[Action]:
        return self.grid.legal_actions(state)

    def step(self, state: FuelState, action: Action) -> Tuple[FuelState, float]:
        """
        Execute action and return (next_state, reward).

        Moves shift the position by one cell and burn one unit of fuel;
        refuel fills the tank in place.
        """
        if action == "refuel":
            next_state = FuelState(position=state.position, fuel=self.grid.max_fuel)
        else:
            dx, dy = ACTION_DELTAS[action]
            x, y = state.position
            next_state = FuelState(position=(x + dx, y + dy), fuel=state.fuel - 1)

        transition = Transition(state=state, action=action, next_state=next_state, goal=self.grid.goal)
        return next_state, compute_reward(transition, self.rewards)

    def is_goal(self, state: FuelState) -> bool:
        return state.position == self.grid.goal

    def is_terminal(self, state: FuelState) -> bool:
        """Episode ends at the goal or with an empty tank."""
        return self.is_goal(state) or state.fuel <= 0


class QLearningAgent:
    """
    Tabular Q-learning agent for navigating a grid with limited fuel.

    The agent owns its Q-table, its running epsilon and the best episode
    trace seen so far. Hyperparameters and the environment are read-only.
    """

    def __init__(self, environment: GridEnvironment, params: Optional[Hyperparameters] = None,
                 rewards: Optional[RewardConfig] = None, rng: Optional[SeededRNG] = None,
                 step_delay_ms: int = 0):
        self.environment = environment
        self.params = params or Hyperparameters()
        self.env = QLearningEnvironment(environment, rewards)
        self.rng = rng or SeededRNG()
        self.step_delay_ms = step_delay_ms
        self.q_table = QTable()

        self.epsilon = self.params.epsilon
        self.episodes_completed = 0
        self.training_history: List[Episode] = []
        self.best_reward = float("-inf")
        self.best_path: List[Coord] = [environment.start]

        self._training = False
        self._cancel_requested = False
        self._cancelled = False

    def reset(self):
        """Forget everything learned and restore the initial epsilon."""
        if self._training:
            raise TrainingInProgressError("Cannot reset while training is running")
        self.q_table.clear()
        self.epsilon = self.params.epsilon
        self.episodes_completed = 0
        self.training_history.clear()
        self.best_reward = float("-inf")
        self.best_path = [self.environment.start]
        self._cancelled = False
        self._cancel_requested = False

    @property
    def is_training(self) -> bool:
        return self._training

    def cancel(self):
        """
        Ask training to stop at the next step boundary.

        A request made before ``train()`` starts is kept, so that run ends
        at once. The request is cleared when a run ends or on ``reset()``.
        """
        self._cancel_requested = True

    def clear_cancel(self):
        """Drop a pending cancel request that no run has consumed."""
        if not self._training:
            self._cancel_requested = False

    # Policy

    def select_action(self, state: FuelState, valid_actions: List[Action]) -> Action:
        """Epsilon-greedy: explore uniformly, otherwise take the best-valued action."""
        if not valid_actions:
            return DEFAULT_ACTION

        if self.rng.random() < self.epsilon:
            return self.rng.choice(valid_actions)
        return self.q_table.best_action(state, valid_actions)

    def update_q_value(self, state: FuelState, action: Action, reward: float, next_state: FuelState):
        """Update Q-value using Q-learning update rule."""
        current_q = self.q_table.get(state, action)
        next_q_max = self.q_table.max_value(next_state, self.env.get_valid_actions(next_state))

        target = reward + self.params.discount_factor * next_q_max
        new_q = current_q + self.params.learning_rate * (target - current_q)

        self.q_table.set(state, action, new_q)

    def decay_epsilon(self):
        """Decay epsilon for less exploration over time."""
        self.epsilon = max(self.params.min_epsilon,
                           self.epsilon * self.params.epsilon_decay)

    # Training

    def train_episode(self, episode_number: int,
                      observer: Optional[ProgressObserver] = None) -> Optional[Episode]:
        """Train for one episode. Returns None if cancelled part-way."""
        episode_start_time = time.time()

        state = self.env.reset()
        trace: List[Coord] = [state.position]
        episode_reward = 0.0
        epsilon_used = self.epsilon
        max_steps = step_cap(self.environment.grid_size)
        steps = 0

        while steps < max_steps:
            valid_actions = self.env.get_valid_actions(state)
            action = self.select_action(state, valid_actions)

            next_state, reward = self.env.step(state, action)
            self.update_q_value(state, action, reward, next_state)

            episode_reward += reward
            state = next_state
            trace.append(state.position)
            steps += 1

            if observer is not None:
                observer(TrainingProgress(
                    episode=episode_number,
                    reward=episode_reward,
                    epsilon=self.epsilon,
                    position=state.position,
                    fuel=state.fuel,
                    q_values=self.q_table.values_for(state, self.env.get_valid_actions(state))
                ))

            if self.env.is_terminal(state):
                break

            if self.step_delay_ms > 0:
                time.sleep(self.step_delay_ms / 1000.0)

            if self._cancel_requested:
                return None

        return Episode(
            number=episode_number,
            steps=steps,
            total_reward=episode_reward,
            reached_goal=self.env.is_goal(state),
            out_of_fuel=state.fuel <= 0,
            epsilon_used=epsilon_used,
            elapsed_time=time.time() - episode_start_time,
            trace=trace
        )

    def train(self, observer: Optional[ProgressObserver] = None,
              on_episode: Optional[Callable[[Episode], None]] = None,
              verbose: bool = False, log_interval: int = 50) -> List[Coord]:
        """
        Run ``params.episode_count`` episodes and return the best trace.

        The Q-table and epsilon carry over between calls; the best trace is
        tracked per call. The returned trace always contains at least the
        start position.

        Raises:
            TrainingInProgressError: If this agent is already training
        """
        if self._training:
            raise TrainingInProgressError("A training run is already in progress on this agent")

        self._training = True
        self._cancelled = False
        self.best_reward = float("-inf")
        self.best_path = [self.environment.start]

        try:
            for episode_num in range(self.params.episode_count):
                if self._cancel_requested:
                    self._cancelled = True
                    break

                episode = self.train_episode(episode_num, observer)
                if episode is None:
                    self._cancelled = True
                    break

                self.training_history.append(episode)
                self.episodes_completed += 1

                # Running maximum: only the best trace is retained
                if episode.total_reward > self.best_reward:
                    self.best_reward = episode.total_reward
                    self.best_path = list(episode.trace)

                self.decay_epsilon()

                if on_episode is not None:
                    on_episode(episode)

                if verbose and log_interval > 0 and (episode_num + 1) % log_interval == 0:
                    recent_episodes = self.training_history[-log_interval:]
                    recent_success = sum(1 for ep in recent_episodes if ep.reached_goal)
                    print(f"Episode {episode_num + 1}: Success rate: {recent_success / len(recent_episodes):.1%}, "
                          f"Best reward: {self.best_reward:.1f}, Epsilon: {self.epsilon:.3f}")

            if verbose and self._cancelled:
                print(f"Training cancelled after {self.episodes_completed} episodes")
        finally:
            self._training = False
            self._cancel_requested = False

        return list(self.best_path)

    def summary(self) -> TrainingResult:
        """Summarize every episode recorded since the last reset."""
        episodes = list(self.training_history)
        successful = sum(1 for ep in episodes if ep.reached_goal)
        average_reward = sum(ep.total_reward for ep in episodes) / len(episodes) if episodes else 0.0

        return TrainingResult(
            episodes=episodes,
            total_episodes=len(episodes),
            successful_episodes=successful,
            average_reward=average_reward,
            best_reward=self.best_reward,
            best_path=list(self.best_path),
            final_epsilon=self.epsilon,
            cancelled=self._cancelled
        )

    # Learned policy

    def find_path(self) -> PathfindingResult:
        """Replay the learned Q-values greedily without learning."""
        return extract_optimal_path(self.env, self.q_table)

    def get_optimal_path(self) -> List[Coord]:
        """Greedy route from start, excluding refuel stops."""
        return self.find_path().path

    def needs_refuel(self, current_fuel: float, distance_to_goal: float) -> bool:
        return needs_refuel(current_fuel, distance_to_goal)
