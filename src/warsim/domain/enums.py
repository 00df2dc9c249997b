"""Enumerations for the Warsim domain."""

from __future__ import annotations

from enum import StrEnum


class FortificationType(StrEnum):
    """Fortification categories; at most one of each counts towards armor class."""

    WALL = "wall"
    WALL_ADDON = "wall_addon"
    GARRISON = "garrison"
    OUTER_WALL = "outer_wall"


class EventKind(StrEnum):
    """Discrete narrative events emitted while resolving a turn."""

    MOVED = "moved"
    HIT = "hit"
    MISSED = "missed"
    DESTROYED = "destroyed"
    OCCUPIED = "occupied"
    LIBERATED = "liberated"
    PASSIVE = "passive"


class EntityKind(StrEnum):
    """Kinds of entity that appear as attacker or target of an event."""

    ARMY = "army"
    SETTLEMENT = "settlement"
