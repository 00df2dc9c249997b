"""Scenario builders producing freshly seeded worlds."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from itertools import cycle

from warsim.domain.enums import FortificationType
from warsim.domain.models import Actor, Army, Fortification, HealthTracker, Settlement, World

WOODEN_WALLS = Fortification(
    name="Wooden Walls",
    type=FortificationType.WALL,
    defense_modifier=10,
    attack_modifier=1,
)

STONE_WALLS = Fortification(
    name="Stone Walls",
    type=FortificationType.WALL,
    defense_modifier=15,
    attack_modifier=3,
)

AUNDAIR_SETTLEMENTS = ("Morningcrest", "Fort Light", "Rellekor", "Tellyn")

AUNDAIR_ARMIES = (
    "First Cog",
    "Second Cog",
    "Third Cog",
    "Fourth Cog",
    "Fifth Cog",
    "First Gear",
    "Second Gear",
    "First Chain",
    "Second Chain",
    "The Cinch",
    "The Hammer",
    "The Blade",
)

THRANE_SETTLEMENTS = (
    "Daskaran",
    "Thaliost",
    "Silvercliff Castle",
    "Auxylgard",
    "Flamekeep",
    "Danthaven",
    "Athandra",
    "Traelyn",
    "Avaroth",
    "Sharavacion",
    "Shadukar",
    "Olath",
    "Angwar Keep",
    "Aelyndar",
    "Valiron",
    "Siyar",
    "Sigilstar",
    "Lessyk",
    "Nathyrr",
    "The Thornwood",
    "Arythawn Keep",
)

THRANE_ARMIES = (
    "First Host",
    "Second Host",
    "Third Host",
    "Fourth Host",
    "Fifth Host",
    "Sixth Host",
    "First Surgeons",
    "Second Surgeons",
    "Lightbringers",
    "Demon's Bane",
    "Truthspeakers",
)


def _settlements(
    world: World,
    names: Sequence[str],
    *,
    allegiance: str,
    occupied: bool,
    damage_roll: str,
) -> None:
    for name in names:
        world.add_settlement(
            Settlement(
                name=name,
                hp=HealthTracker(current=100, maximum=100),
                damage_roll=[damage_roll],
                allegiance=allegiance,
                has_war_guard=True,
                fortifications=[WOODEN_WALLS],
                occupied=occupied,
            )
        )


def _armies(world: World, names: Sequence[str], *, allegiance: str, garrisons: Sequence[str]) -> None:
    """Station armies round robin across their faction's settlements."""

    for name, home in zip(names, cycle(garrisons)):
        world.add_army(
            Army(
                name=name,
                hp=HealthTracker(current=100, maximum=100),
                armor_class=19,
                attack_roll=["d20"],
                damage_roll=["d8"],
                location=home,
                destination=home,
                allegiance=allegiance,
            )
        )


def empty_world(name: str) -> World:
    return World(name=name)


def siege_of_thrane(name: str = "Siege of Thrane") -> World:
    """Aundair holds four occupied settlements inside Thrane's territory."""

    world = World(name=name)
    world.add_actor(Actor(name="Aundair"))
    world.add_actor(Actor(name="Thrane"))

    _settlements(
        world, AUNDAIR_SETTLEMENTS, allegiance="Aundair", occupied=True, damage_roll="d20"
    )
    _settlements(
        world, THRANE_SETTLEMENTS, allegiance="Thrane", occupied=False, damage_roll="d4"
    )
    _armies(world, AUNDAIR_ARMIES, allegiance="Aundair", garrisons=AUNDAIR_SETTLEMENTS)
    _armies(world, THRANE_ARMIES, allegiance="Thrane", garrisons=THRANE_SETTLEMENTS)

    world.validate()
    return world


SCENARIOS: dict[str, Callable[[str], World]] = {
    "empty": empty_world,
    "siege_of_thrane": siege_of_thrane,
}


def build_scenario(key: str, name: str) -> World:
    """Build the scenario registered under ``key``.

    Raises:
        KeyError: If no scenario is registered under ``key``
    """
    try:
        builder = SCENARIOS[key]
    except KeyError:
        raise KeyError(f"unknown scenario {key!r}; choose from {sorted(SCENARIOS)}") from None
    return builder(name)
