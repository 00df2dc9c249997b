"""Domain model and rules for Warsim.

This package holds everything needed to resolve a turn purely in memory:

* Dataclasses describing every entity (see :mod:`models`).
* Dice notation parsing and evaluation (see :mod:`dice`).
* Combat rules for armies and settlements (see :mod:`combat`).
* Turn orchestration (see :mod:`turn`).
* Scenario builders for fresh worlds (see :mod:`scenarios`).

Persistence and presentation live outside this package.
"""

from . import combat, dice, enums, events, models, scenarios, turn

__all__ = [
    "combat",
    "dice",
    "enums",
    "events",
    "models",
    "scenarios",
    "turn",
]
