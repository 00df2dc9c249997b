"""Dataclasses describing every Warsim entity.

The rules layer operates purely on these in-memory types. Persistence
adapters (see :mod:`warsim.repository`) translate them to and from JSON
through pydantic, so the domain never touches storage directly.

Entities are keyed by name: ``World.armies["First Host"].name`` is
``"First Host"``. Allegiances are weak references into ``World.actors``.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import assert_never

from warsim.domain.dice import DiceExpression, RollSpec, parse_spec, roll_spec
from warsim.domain.enums import FortificationType
from warsim.utils.rng import RandomSource

# Every settlement attack starts from this die before fortification bonuses.
BASE_ATTACK_DIE = DiceExpression(count=1, faces=20)


class InvariantViolation(RuntimeError):
    """Raised when the world model is incoherent and a turn cannot proceed."""


def document_id(name: str) -> str:
    """Return the slug used for file names and HTML anchors."""

    return name.strip().lower().replace(" ", "_")


@dataclass(slots=True)
class HealthTracker:
    """Hit points of an army or settlement.

    ``current`` is allowed to drop below zero; anything ``<= 0`` means the
    owner has been overcome.
    """

    current: int
    maximum: int

    def damage(self, amount: int) -> None:
        self.current -= amount

    @property
    def is_depleted(self) -> bool:
        return self.current <= 0


@dataclass(frozen=True, slots=True)
class Fortification:
    """Defensive structure attached to a settlement."""

    name: str
    type: FortificationType
    defense_modifier: int = 0
    attack_modifier: int = 0


@dataclass(slots=True)
class Army:
    """Field army travelling between settlements."""

    name: str
    hp: HealthTracker
    armor_class: int
    attack_roll: RollSpec
    damage_roll: RollSpec
    location: str
    destination: str
    allegiance: str
    destroyed: bool = False

    @property
    def is_moving(self) -> bool:
        return not self.destroyed and self.destination != self.location

    @property
    def is_ready(self) -> bool:
        return not self.destroyed and self.destination == self.location

    def roll_attack(self, source: RandomSource) -> int:
        return roll_spec(self.attack_roll, source)

    def roll_damage(self, source: RandomSource) -> int:
        return roll_spec(self.damage_roll, source)


def _dedup_key(kind: FortificationType) -> FortificationType:
    match kind:
        case (
            FortificationType.WALL
            | FortificationType.WALL_ADDON
            | FortificationType.GARRISON
            | FortificationType.OUTER_WALL
        ):
            return kind
        case _:
            assert_never(kind)


@dataclass(slots=True)
class Settlement:
    """Fortified settlement that armies besiege and occupy."""

    name: str
    hp: HealthTracker
    damage_roll: RollSpec
    allegiance: str
    has_war_guard: bool = False
    fortifications: list[Fortification] = field(default_factory=list)
    occupied: bool = False
    population: int = 0

    def armor_class(self) -> int:
        """Sum defense modifiers, counting only the first fortification of each type."""

        seen: set[FortificationType] = set()
        total = 0
        for fortification in self.fortifications:
            key = _dedup_key(fortification.type)
            if key in seen:
                continue
            seen.add(key)
            total += fortification.defense_modifier
        return total

    def attack_modifier(self) -> int:
        return sum(fortification.attack_modifier for fortification in self.fortifications)

    def attack_notation(self) -> str:
        """Effective attack roll as dice notation, e.g. ``1d20+3``."""

        return str(
            DiceExpression(
                count=BASE_ATTACK_DIE.count,
                faces=BASE_ATTACK_DIE.faces,
                modifier=self.attack_modifier(),
            )
        )

    def roll_damage(self, source: RandomSource) -> int:
        return roll_spec(self.damage_roll, source)

    def roll_attack(self, source: RandomSource) -> tuple[int, int]:
        """Roll the base die plus fortification bonuses, then the damage.

        Returns:
            Tuple of (attack_total, damage)
        """
        attack = BASE_ATTACK_DIE.roll(source) + self.attack_modifier()
        damage = self.roll_damage(source)
        return attack, damage


@dataclass(slots=True)
class Actor:
    """Faction owning armies and settlements."""

    name: str


@dataclass(slots=True)
class World:
    """Root aggregate holding every entity of a simulation."""

    name: str
    turn_id: int = 0
    settlements: dict[str, Settlement] = field(default_factory=dict)
    armies: dict[str, Army] = field(default_factory=dict)
    actors: dict[str, Actor] = field(default_factory=dict)

    def add_actor(self, actor: Actor) -> Actor:
        self.actors[actor.name] = actor
        return actor

    def add_settlement(self, settlement: Settlement) -> Settlement:
        self.settlements[settlement.name] = settlement
        return settlement

    def add_army(self, army: Army) -> Army:
        self.armies[army.name] = army
        return army

    def sorted_actors(self) -> list[Actor]:
        return [self.actors[name] for name in sorted(self.actors)]

    def sorted_armies(self) -> list[Army]:
        return [self.armies[name] for name in sorted(self.armies)]

    def sorted_settlements(self) -> list[Settlement]:
        return [self.settlements[name] for name in sorted(self.settlements)]

    def armies_at(self, location: str) -> list[Army]:
        """Armies at a location in name order, destroyed ones included."""

        return [army for army in self.sorted_armies() if army.location == location]

    def armies_by_actor(self) -> dict[str, list[Army]]:
        grouped: dict[str, list[Army]] = defaultdict(list)
        for army in self.sorted_armies():
            grouped[army.allegiance].append(army)
        return dict(grouped)

    def settlements_by_actor(self) -> dict[str, list[Settlement]]:
        grouped: dict[str, list[Settlement]] = defaultdict(list)
        for settlement in self.sorted_settlements():
            grouped[settlement.allegiance].append(settlement)
        return dict(grouped)

    def actor(self, name: str) -> Actor:
        try:
            return self.actors[name]
        except KeyError:
            raise InvariantViolation(f"Unknown actor {name!r}.") from None

    def settlement_at(self, location: str, *, army: Army | None = None) -> Settlement:
        try:
            return self.settlements[location]
        except KeyError:
            reporter = f" that army {army.name} reports being in" if army else ""
            raise InvariantViolation(f"Unable to find location {location!r}{reporter}.") from None

    def validate(self) -> None:
        """Check the cross-entity invariants of a loaded or seeded world.

        Raises:
            InvariantViolation: If keys, allegiances or counters are inconsistent
            InvalidExpression: If any stored roll spec is malformed
        """
        if self.turn_id < 0:
            raise InvariantViolation(f"turn_id must be non-negative, got {self.turn_id}")

        for collection in (self.actors, self.settlements, self.armies):
            for key, entity in collection.items():
                if key != entity.name:
                    raise InvariantViolation(f"Entity {entity.name!r} is stored under key {key!r}.")

        for settlement in self.settlements.values():
            self.actor(settlement.allegiance)
            if settlement.population < 0:
                raise InvariantViolation(
                    f"Settlement {settlement.name} has negative population {settlement.population}."
                )
            if settlement.hp.maximum < 0:
                raise InvariantViolation(f"Settlement {settlement.name} has negative maximum HP.")
            parse_spec(settlement.damage_roll)

        for army in self.armies.values():
            self.actor(army.allegiance)
            if army.hp.maximum < 0:
                raise InvariantViolation(f"Army {army.name} has negative maximum HP.")
            parse_spec(army.attack_roll)
            parse_spec(army.damage_roll)
