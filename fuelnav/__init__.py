"""Fuel-aware RL navigation - a Q-learning agent that plans routes with refuel stops.

This package implements a tabular Q-Learning agent that learns to cross a grid
while managing a depleting fuel tank, and extracts the learned route afterwards.
"""

__version__ = "1.0.0"
__author__ = "RL Navigation Demo"
