"""Utility functions for the Warsim engine."""

from warsim.utils.rng import (
    RandomSource,
    ScriptedRandomSource,
    SeededRandomSource,
    generate_seed,
)

__all__ = [
    "RandomSource",
    "ScriptedRandomSource",
    "SeededRandomSource",
    "generate_seed",
]
