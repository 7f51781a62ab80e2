"""
Grid configuration serialization for saving and loading environments.
Only the world layout is stored; learned Q-values are never written.
"""

import json
import os
from datetime import datetime
from typing import Dict, Any

from ..domain.types import ConfigurationError
from ..domain.environment import GridEnvironment

FORMAT_VERSION = "1.0"


class GridData:
    """Container for grid configuration with metadata."""

    def __init__(self, environment: GridEnvironment, name: str = "", description: str = ""):
        self.environment = environment
        self.name = name
        self.description = description
        self.created_at = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert grid data to dictionary for serialization."""
        env = self.environment
        return {
            'grid_size': env.grid_size,
            'start': list(env.start),
            'goal': list(env.goal),
            'obstacles': [list(c) for c in sorted(env.obstacles)],
            'fuel_stations': [list(c) for c in sorted(env.fuel_stations)],
            'max_fuel': env.max_fuel,
            'name': self.name,
            'description': self.description,
            'created_at': self.created_at,
            'version': FORMAT_VERSION
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GridData':
        """
        Create grid data from dictionary.

        Raises:
            ConfigurationError: If required keys are missing or malformed
        """
        try:
            environment = GridEnvironment.create(
                grid_size=data['grid_size'],
                start=tuple(data['start']),
                goal=tuple(data['goal']),
                obstacles=[tuple(c) for c in data.get('obstacles', [])],
                fuel_stations=[tuple(c) for c in data.get('fuel_stations', [])],
                max_fuel=data.get('max_fuel', 100.0)
            )
        except ConfigurationError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Malformed grid configuration: {e}") from e

        grid = cls(environment, name=data.get('name', ''), description=data.get('description', ''))
        grid.created_at = data.get('created_at', grid.created_at)
        return grid


def save_grid(grid_data: GridData, filepath: str) -> None:
    """Save grid data to a JSON file, creating parent directories."""
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filepath, 'w') as f:
        json.dump(grid_data.to_dict(), f, indent=2)


def load_grid(filepath: str) -> GridData:
    """
    Load grid data from a JSON file.

    Raises:
        ConfigurationError: If the file is not valid JSON or not a valid grid
        OSError: If the file cannot be read
    """
    with open(filepath, 'r') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Grid file {filepath} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Grid file {filepath} must contain a JSON object")
    return GridData.from_dict(data)
