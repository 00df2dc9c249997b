"""Narrative events emitted by the combat resolver.

The resolver hands each event to an ``EventSink`` exactly once, in the order
the events happen. Sinks decide how to present them; the resolver itself never
formats markup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from warsim.domain.enums import EntityKind, EventKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CombatEvent:
    """Single narrated occurrence within a turn.

    ``actor`` and ``target`` are entity names; ``actor_kind`` and
    ``target_kind`` say whether each is an army or a settlement.
    """

    kind: EventKind
    turn_id: int
    actor: str
    actor_kind: EntityKind = EntityKind.ARMY
    target: str | None = None
    target_kind: EntityKind | None = None
    origin: str | None = None
    destination: str | None = None
    armor_class: int | None = None
    attack_roll: int | None = None
    damage: int | None = None
    allegiance: str | None = None

    @property
    def attacker_label(self) -> str:
        return f"{self.actor_kind.capitalize()} {self.actor}"

    @property
    def target_label(self) -> str:
        return f"{self.target_kind} {self.target}"

    def describe(self) -> str:
        """Plain-text narrative line for this event."""

        match self.kind:
            case EventKind.MOVED:
                return f"Army {self.actor} is travelling from {self.origin} to {self.destination}."
            case EventKind.HIT:
                return (
                    f"{self.attacker_label} attacks {self.target_label} (AC: {self.armor_class}) "
                    f"with a {self.attack_roll} attack roll and {self.damage} damage!"
                )
            case EventKind.MISSED:
                return (
                    f"{self.attacker_label} misses {self.target_label} (AC: {self.armor_class}) "
                    f"with a(n) {self.attack_roll} attack roll!"
                )
            case EventKind.DESTROYED:
                return f"{self.attacker_label} has destroyed {self.target_label}!"
            case EventKind.OCCUPIED:
                return f"Settlement {self.target} has been occupied by army {self.actor}!"
            case EventKind.LIBERATED:
                return f"Settlement {self.target} has been liberated by army {self.actor}!"
            case EventKind.PASSIVE:
                return f"Settlement {self.actor} is occupied and gets no action."
        return f"{self.kind}: {self.actor}"


class EventSink(Protocol):
    """Receiver of narrative events."""

    def record(self, event: CombatEvent) -> None: ...


@runtime_checkable
class TurnAwareSink(Protocol):
    """Sink that also wants to know when a new turn starts."""

    def record(self, event: CombatEvent) -> None: ...

    def begin_turn(self, turn_id: int) -> None: ...


class NullSink:
    """Discards every event."""

    def record(self, event: CombatEvent) -> None:
        return None


@dataclass(slots=True)
class EventLog:
    """Collects events in memory and logs each narrative line."""

    events: list[CombatEvent] = field(default_factory=list)

    def record(self, event: CombatEvent) -> None:
        self.events.append(event)
        logger.info("turn %d: %s", event.turn_id, event.describe())

    def of_kind(self, kind: EventKind) -> list[CombatEvent]:
        return [event for event in self.events if event.kind == kind]

    def lines(self) -> list[str]:
        return [event.describe() for event in self.events]


class SinkGroup:
    """Forwards every event to several sinks, in order."""

    def __init__(self, *sinks: EventSink) -> None:
        self.sinks = sinks

    def begin_turn(self, turn_id: int) -> None:
        for sink in self.sinks:
            if isinstance(sink, TurnAwareSink):
                sink.begin_turn(turn_id)

    def record(self, event: CombatEvent) -> None:
        for sink in self.sinks:
            sink.record(event)
