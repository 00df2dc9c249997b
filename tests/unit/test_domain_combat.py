"""Tests for army and settlement combat steps."""

from __future__ import annotations

import pytest

from warsim.domain import combat
from warsim.domain import models as dm
from warsim.domain.dice import InvalidExpression
from warsim.domain.enums import EntityKind, EventKind, FortificationType
from warsim.domain.events import EventLog
from warsim.utils.rng import ScriptedRandomSource, SeededRandomSource

SURE_HIT = ["1d20+100"]
SURE_MISS = ["1d1-10"]


def _world(*actors: str) -> dm.World:
    world = dm.World(name="Test", turn_id=1)
    for name in actors or ("Aundair", "Thrane"):
        world.add_actor(dm.Actor(name=name))
    return world


def _settlement(
    world: dm.World,
    name: str = "Flamekeep",
    *,
    allegiance: str = "Thrane",
    hp: int = 100,
    occupied: bool = False,
    has_war_guard: bool = True,
    damage_roll: list[str] | None = None,
    fortifications: list[dm.Fortification] | None = None,
) -> dm.Settlement:
    return world.add_settlement(
        dm.Settlement(
            name=name,
            hp=dm.HealthTracker(current=hp, maximum=max(hp, 1)),
            damage_roll=damage_roll or ["d4"],
            allegiance=allegiance,
            has_war_guard=has_war_guard,
            fortifications=fortifications or [],
            occupied=occupied,
        )
    )


def _army(
    world: dm.World,
    name: str,
    *,
    allegiance: str = "Aundair",
    location: str = "Flamekeep",
    destination: str | None = None,
    hp: int = 100,
    armor_class: int = 19,
    attack_roll: list[str] | None = None,
    damage_roll: list[str] | None = None,
) -> dm.Army:
    return world.add_army(
        dm.Army(
            name=name,
            hp=dm.HealthTracker(current=hp, maximum=hp),
            armor_class=armor_class,
            attack_roll=attack_roll or ["d20"],
            damage_roll=damage_roll or ["d8"],
            location=location,
            destination=destination if destination is not None else location,
            allegiance=allegiance,
        )
    )


class TestArmyStep:
    """Tests for step_armies."""

    def test_guaranteed_hit_occupies_weak_settlement(self):
        world = _world()
        settlement = _settlement(world, hp=1)
        _army(world, "First Cog", attack_roll=SURE_HIT, damage_roll=["1d1"])
        log = EventLog()

        active = combat.step_armies(world, SeededRandomSource("occupy"), log)

        assert active
        assert settlement.hp.current <= 0
        assert settlement.occupied
        assert settlement.allegiance == "Aundair"
        assert [event.kind for event in log.events] == [EventKind.HIT, EventKind.OCCUPIED]
        assert log.events[0].armor_class == 0

    def test_occupied_settlement_is_liberated(self):
        world = _world()
        settlement = _settlement(world, hp=1, allegiance="Aundair", occupied=True)
        _army(world, "First Host", allegiance="Thrane", attack_roll=SURE_HIT, damage_roll=["1d1"])
        log = EventLog()

        combat.step_armies(world, SeededRandomSource("liberate"), log)

        assert not settlement.occupied
        assert settlement.allegiance == "Thrane"
        assert log.of_kind(EventKind.LIBERATED)[0].target == "Flamekeep"

    def test_non_lethal_hit_keeps_allegiance(self):
        world = _world()
        settlement = _settlement(world, hp=10)
        _army(world, "First Cog", attack_roll=SURE_HIT, damage_roll=["1d1+2"])

        combat.step_armies(world, SeededRandomSource("graze"))

        assert settlement.hp.current == 7
        assert not settlement.occupied
        assert settlement.allegiance == "Thrane"

    def test_attack_against_settlement_uses_deduplicated_armor_class(self):
        world = _world()
        _settlement(
            world,
            fortifications=[
                dm.Fortification("Wooden Walls", FortificationType.WALL, 10, 1),
                dm.Fortification("Stone Walls", FortificationType.WALL, 15, 3),
            ],
        )
        _army(world, "First Cog", attack_roll=["1d1+9"])
        log = EventLog()

        combat.step_armies(world, SeededRandomSource("walls"), log)

        (event,) = log.events
        assert event.kind == EventKind.HIT
        assert event.armor_class == 10
        assert event.attack_roll == 10

    def test_moving_army_does_not_attack(self):
        world = _world()
        target = _settlement(world, "Thaliost", hp=1)
        _settlement(world, "Fort Light", allegiance="Aundair")
        army = _army(
            world,
            "First Cog",
            location="Fort Light",
            destination="Thaliost",
            attack_roll=SURE_HIT,
            damage_roll=["1d1"],
        )
        log = EventLog()

        active = combat.step_armies(world, ScriptedRandomSource([]), log)

        assert active
        assert army.location == "Thaliost"
        assert target.hp.current == 1
        assert not target.occupied
        (event,) = log.events
        assert event.kind == EventKind.MOVED
        assert (event.origin, event.destination) == ("Fort Light", "Thaliost")

    def test_moving_army_ignores_enemy_army_at_destination(self):
        world = _world()
        _settlement(world, "Thaliost")
        defender = _army(world, "First Host", allegiance="Thrane", location="Thaliost")
        _army(
            world,
            "First Cog",
            location="Fort Light",
            destination="Thaliost",
            attack_roll=SURE_HIT,
        )
        defender.attack_roll = SURE_MISS
        log = EventLog()

        combat.step_armies(world, SeededRandomSource("arrive"), log)

        # Only the defender, already in place, gets to swing.
        attacks = [event for event in log.events if event.kind in (EventKind.HIT, EventKind.MISSED)]
        assert [event.actor for event in attacks] == ["First Host"]
        assert world.armies["First Cog"].hp.current == 100

    def test_co_located_enemies_fight_each_other_not_the_settlement(self):
        world = _world()
        settlement = _settlement(world, hp=50)
        _army(world, "First Cog", allegiance="Aundair")
        _army(world, "First Host", allegiance="Thrane")
        log = EventLog()

        active = combat.step_armies(world, SeededRandomSource("melee"), log)

        assert active
        attacks = [event for event in log.events if event.kind in (EventKind.HIT, EventKind.MISSED)]
        assert [(event.actor, event.target) for event in attacks] == [
            ("First Cog", "First Host"),
            ("First Host", "First Cog"),
        ]
        assert all(event.target_kind == EntityKind.ARMY for event in attacks)
        assert settlement.hp.current == 50

    def test_first_enemy_is_chosen_by_name(self):
        world = _world()
        _settlement(world)
        _army(world, "First Cog", attack_roll=SURE_HIT)
        zealots = _army(world, "Zealots", allegiance="Thrane", attack_roll=SURE_MISS)
        acolytes = _army(world, "Acolytes", allegiance="Thrane", attack_roll=SURE_MISS)
        log = EventLog()

        combat.step_armies(world, SeededRandomSource("first"), log)

        cog_attacks = [event for event in log.events if event.actor == "First Cog"]
        assert [event.target for event in cog_attacks] == ["Acolytes"]
        assert acolytes.hp.current < 100
        assert zealots.hp.current == 100

    def test_attack_meeting_armor_class_hits(self):
        world = _world()
        _settlement(world)
        target = _army(world, "First Host", allegiance="Thrane", armor_class=19, attack_roll=SURE_MISS)
        _army(world, "First Cog", attack_roll=["1d1+18"], damage_roll=["1d1"])
        log = EventLog()

        combat.step_armies(world, ScriptedRandomSource([0, 0, 0]), log)

        assert log.events[0].kind == EventKind.HIT
        assert target.hp.current == 99

    def test_attack_below_armor_class_misses(self):
        world = _world()
        _settlement(world)
        target = _army(world, "First Host", allegiance="Thrane", armor_class=20, attack_roll=SURE_MISS)
        _army(world, "First Cog", attack_roll=["1d1+18"])
        log = EventLog()

        combat.step_armies(world, ScriptedRandomSource([0, 0]), log)

        assert log.events[0].kind == EventKind.MISSED
        assert log.events[0].attack_roll == 19
        assert target.hp.current == 100

    def test_lethal_hit_destroys_defender_and_silences_it(self):
        world = _world()
        _settlement(world)
        attacker = _army(world, "Anvil", attack_roll=SURE_HIT, damage_roll=["1d1+10"])
        defender = _army(world, "Bastion", allegiance="Thrane", hp=5, attack_roll=SURE_HIT)
        log = EventLog()

        combat.step_armies(world, SeededRandomSource("crush"), log)

        assert defender.destroyed
        assert defender.hp.current == -6
        assert not attacker.destroyed
        assert attacker.hp.current == 100
        assert [event.kind for event in log.events] == [EventKind.HIT, EventKind.DESTROYED]
        assert log.events[1].target == "Bastion"

    def test_destroyed_enemy_is_ignored(self):
        world = _world()
        settlement = _settlement(world, hp=10)
        wreck = _army(world, "Bastion", allegiance="Thrane")
        wreck.destroyed = True
        _army(world, "Anvil", attack_roll=SURE_HIT, damage_roll=["1d1"])
        log = EventLog()

        combat.step_armies(world, SeededRandomSource("ruins"), log)

        assert settlement.hp.current == 9
        assert log.events[0].target_kind == EntityKind.SETTLEMENT

    def test_destroyed_armies_neither_move_nor_attack(self):
        world = _world()
        _settlement(world)
        army = _army(world, "Anvil", destination="Thaliost")
        army.destroyed = True

        assert not combat.step_armies(world, ScriptedRandomSource([]))
        assert army.location == "Flamekeep"

    def test_friendly_settlement_is_left_alone(self):
        world = _world()
        settlement = _settlement(world, allegiance="Aundair")
        _army(world, "First Cog", attack_roll=SURE_HIT)
        log = EventLog()

        assert not combat.step_armies(world, ScriptedRandomSource([]), log)
        assert settlement.hp.current == 100
        assert log.events == []

    def test_missed_settlement_attack_counts_as_activity(self):
        world = _world()
        settlement = _settlement(world)
        _army(world, "First Cog", attack_roll=SURE_MISS)
        log = EventLog()

        assert combat.step_armies(world, ScriptedRandomSource([0]), log)
        assert settlement.hp.current == 100
        assert log.events[0].kind == EventKind.MISSED

    def test_missing_settlement_is_fatal(self):
        world = _world()
        _army(world, "First Cog", location="Nowhere")

        with pytest.raises(dm.InvariantViolation, match="Nowhere"):
            combat.step_armies(world, ScriptedRandomSource([]))

    def test_unknown_faction_cannot_take_a_settlement(self):
        world = _world("Thrane")
        _settlement(world, hp=1)
        _army(world, "Raiders", allegiance="Karrnath", attack_roll=SURE_HIT, damage_roll=["1d1"])

        with pytest.raises(dm.InvariantViolation, match="Karrnath"):
            combat.step_armies(world, SeededRandomSource("raid"))

    def test_unknown_faction_leaves_settlement_untouched(self):
        world = _world("Thrane")
        settlement = _settlement(world, hp=1)
        _army(world, "Raiders", allegiance="Karrnath", attack_roll=SURE_HIT, damage_roll=["1d1"])

        with pytest.raises(dm.InvariantViolation):
            combat.step_armies(world, SeededRandomSource("raid"))

        assert settlement.hp.current == 1
        assert settlement.allegiance == "Thrane"
        assert not settlement.occupied

    def test_bad_dice_abort_the_step_after_earlier_attacks(self):
        world = _world()
        settlement = _settlement(world)
        _army(world, "Anvil", attack_roll=SURE_HIT, damage_roll=["1d1"])
        _army(world, "Broken", attack_roll=["1d0"])

        with pytest.raises(InvalidExpression):
            combat.step_armies(world, SeededRandomSource("broken"))
        assert settlement.hp.current == 99


class TestSettlementStep:
    """Tests for step_settlements."""

    def test_war_guard_strikes_first_hostile_army(self):
        world = _world()
        _settlement(world, damage_roll=["d4"])
        first = _army(world, "Alpha")
        second = _army(world, "Beta")
        log = EventLog()

        # d20 draw 19 -> 20 >= AC 19; d4 draw 3 -> 4 damage.
        active = combat.step_settlements(world, ScriptedRandomSource([19, 3]), log)

        assert active
        assert first.hp.current == 96
        assert second.hp.current == 100
        (event,) = log.events
        assert event.kind == EventKind.HIT
        assert event.actor_kind == EntityKind.SETTLEMENT
        assert (event.actor, event.target, event.damage) == ("Flamekeep", "Alpha", 4)

    def test_fortification_attack_bonus_applies(self):
        world = _world()
        _settlement(
            world,
            fortifications=[
                dm.Fortification("Wooden Walls", FortificationType.WALL, 10, 1),
                dm.Fortification("Stone Walls", FortificationType.WALL, 15, 3),
            ],
        )
        army = _army(world, "Alpha", armor_class=19)
        log = EventLog()

        # d20 draw 14 -> 15, +4 from both walls meets AC 19.
        combat.step_settlements(world, ScriptedRandomSource([14, 0]), log)

        assert log.events[0].kind == EventKind.HIT
        assert log.events[0].attack_roll == 19
        assert army.hp.current == 99

    def test_miss_leaves_army_untouched(self):
        world = _world()
        _settlement(world)
        army = _army(world, "Alpha")
        log = EventLog()

        assert combat.step_settlements(world, ScriptedRandomSource([0, 0]), log)
        assert army.hp.current == 100
        assert log.events[0].kind == EventKind.MISSED

    def test_lethal_retaliation_destroys_army(self):
        world = _world()
        _settlement(world, damage_roll=["1d1+50"])
        army = _army(world, "Alpha", hp=10, armor_class=0)
        log = EventLog()

        combat.step_settlements(world, SeededRandomSource("rout"), log)

        assert army.destroyed
        assert [event.kind for event in log.events] == [EventKind.HIT, EventKind.DESTROYED]

    def test_occupied_settlement_is_passive(self):
        world = _world()
        _settlement(world, occupied=True, damage_roll=["1d1+50"])
        army = _army(world, "Alpha", armor_class=0)
        log = EventLog()

        assert not combat.step_settlements(world, SeededRandomSource("passive"), log)
        assert army.hp.current == 100
        assert [event.kind for event in log.events] == [EventKind.PASSIVE]

    def test_settlement_without_war_guard_never_attacks(self):
        world = _world()
        _settlement(world, has_war_guard=False, damage_roll=["1d1+50"])
        army = _army(world, "Alpha", armor_class=0)
        log = EventLog()

        assert not combat.step_settlements(world, SeededRandomSource("unguarded"), log)
        assert army.hp.current == 100
        assert log.events == []

    def test_friendly_and_destroyed_armies_are_skipped(self):
        world = _world()
        _settlement(world)
        _army(world, "Alpha", allegiance="Thrane")
        wreck = _army(world, "Beta")
        wreck.destroyed = True

        assert not combat.step_settlements(world, ScriptedRandomSource([]))

    def test_bad_damage_roll_propagates(self):
        world = _world()
        _settlement(world, damage_roll=["d0"])
        _army(world, "Alpha")

        with pytest.raises(InvalidExpression):
            combat.step_settlements(world, SeededRandomSource("bad"))
