"""Command-line entry point: train an agent on a fuel grid and report the route."""

import argparse
import sys
from typing import List, Optional

from .domain.types import Hyperparameters, ConfigurationError, TrainingProgress
from .domain.qlearning import QLearningAgent
from .utils.grid_factory import PRESETS, create_preset_environment
from .utils.grid_serialization import GridData, load_grid, save_grid
from .utils.rng import SeededRNG


def build_parser() -> argparse.ArgumentParser:
    defaults = Hyperparameters()
    parser = argparse.ArgumentParser(prog="fuelnav", description="Fuel-aware Q-learning navigation")
    parser.add_argument("--grid", type=str, help="Path to a saved grid configuration (JSON)")
    parser.add_argument("--preset", choices=PRESETS, default="navigation", help="Grid preset when no file is given")
    parser.add_argument("--size", type=int, default=16, help="Grid size for generated presets")
    parser.add_argument("--max-fuel", type=float, help="Tank capacity for generated presets")
    parser.add_argument("--episodes", type=int, default=defaults.episode_count, help="Number of episodes to train")
    parser.add_argument("--learning-rate", type=float, default=defaults.learning_rate)
    parser.add_argument("--discount", type=float, default=defaults.discount_factor)
    parser.add_argument("--epsilon", type=float, default=defaults.epsilon)
    parser.add_argument("--epsilon-decay", type=float, default=defaults.epsilon_decay)
    parser.add_argument("--min-epsilon", type=float, default=defaults.min_epsilon)
    parser.add_argument("--seed", type=int, help="Random seed for reproducible runs")
    parser.add_argument("--step-delay", type=int, default=0, help="Milliseconds to pause after each step")
    parser.add_argument("--log-interval", type=int, default=50, help="Episodes between progress lines (0 disables)")
    parser.add_argument("--watch", action="store_true", help="Print every training step")
    parser.add_argument("--save-grid", type=str, help="Write the grid configuration used to this JSON file")
    return parser


def print_step(progress: TrainingProgress):
    x, y = progress.position
    print(f"  ep {progress.episode:4d} | pos ({x:2d},{y:2d}) | fuel {progress.fuel:6.1f} | "
          f"reward {progress.reward:8.1f} | eps {progress.epsilon:.3f} | {progress.format_q_values()}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    print("🧠 Fuel-aware RL Navigation")
    print("=" * 50)

    try:
        if args.grid:
            print(f"📁 Loading grid from: {args.grid}")
            grid_data = load_grid(args.grid)
            environment = grid_data.environment
            name = grid_data.name or args.grid
        else:
            environment = create_preset_environment(args.preset, args.size, args.max_fuel, seed=args.seed)
            name = f"{args.preset} {environment.grid_size}x{environment.grid_size}"

        params = Hyperparameters(
            learning_rate=args.learning_rate,
            discount_factor=args.discount,
            epsilon=args.epsilon,
            epsilon_decay=args.epsilon_decay,
            min_epsilon=args.min_epsilon,
            episode_count=args.episodes
        )
    except ConfigurationError as e:
        print(f"❌ Invalid configuration: {e}")
        return 1
    except OSError as e:
        print(f"❌ Could not read grid file: {e}")
        return 1

    if args.save_grid:
        save_grid(GridData(environment, name=name), args.save_grid)
        print(f"💾 Grid saved to: {args.save_grid}")

    print(f"🏷️  Grid: {name}")
    print(f"🎯 Start: {environment.start} → Goal: {environment.goal}")
    print(f"⛽ Max fuel: {environment.max_fuel:g}, stations: {len(environment.fuel_stations)}, "
          f"obstacles: {len(environment.obstacles)}")

    agent = QLearningAgent(environment, params, rng=SeededRNG(args.seed), step_delay_ms=args.step_delay)

    print(f"\n🚀 Training for {params.episode_count} episodes...")
    try:
        best_trace = agent.train(
            observer=print_step if args.watch else None,
            verbose=args.log_interval > 0,
            log_interval=args.log_interval
        )
    except KeyboardInterrupt:
        print("\n⏹️  Training interrupted by user")
        return 1

    result = agent.summary()
    print("\n🎉 Training completed!")
    print(f"   Total episodes: {result.total_episodes}")
    print(f"   Successful episodes: {result.successful_episodes}")
    print(f"   Success rate: {result.success_rate:.1%}")
    print(f"   Ran out of fuel: {result.depleted_episodes}")
    print(f"   Average reward: {result.average_reward:.2f}")
    print(f"   Best reward: {result.best_reward:.2f} ({len(best_trace) - 1} steps)")
    print(f"   Final epsilon: {result.final_epsilon:.3f}")

    print("\n🧪 Following learned policy...")
    path_result = agent.find_path()
    if path_result.success:
        print(f"✅ Path found! Length: {path_result.distance} steps, refuel stops: {path_result.refuel_count}")
    else:
        print(f"❌ Learned policy did not reach the goal ({path_result.distance} steps taken)")
    print(" → ".join(f"({x},{y})" for x, y in path_result.path))

    if path_result.refuel_recommended:
        print("⛽ Refueling recommended for this journey")
    else:
        print("🛣️  Direct route possible")

    return 0


if __name__ == "__main__":
    sys.exit(main())
