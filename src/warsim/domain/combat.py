"""Army and settlement combat rules.

A turn is resolved in two steps. ``step_armies`` moves armies towards their
destinations and lets stationary ("ready") armies attack; ``step_settlements``
then lets war-guarded, unoccupied settlements strike back at one hostile army
each. Both return whether any activity (movement, hit or miss) happened.

Every selection walks entities in name order so that a seeded random source
always reproduces the same sequence of events.
"""

from __future__ import annotations

import logging

from warsim.domain.enums import EntityKind, EventKind
from warsim.domain.events import CombatEvent, EventSink, NullSink
from warsim.domain.models import Army, InvariantViolation, Settlement, World
from warsim.utils.rng import RandomSource

logger = logging.getLogger(__name__)

__all__ = [
    "InvariantViolation",
    "attack_army",
    "attack_settlement",
    "attack_succeeds",
    "find_enemy_army",
    "settlement_retaliates",
    "step_armies",
    "step_settlements",
]


def attack_succeeds(attack_roll: int, armor_class: int) -> bool:
    """An attack lands when the roll meets or beats the armor class."""

    return attack_roll >= armor_class


def find_enemy_army(world: World, army: Army) -> Army | None:
    """First non-destroyed army sharing ``army``'s location under another banner."""

    for other in world.armies_at(army.location):
        if other.destroyed or other.allegiance == army.allegiance:
            continue
        return other
    return None


def _attack_event(
    world: World,
    *,
    hit: bool,
    actor: str,
    actor_kind: EntityKind,
    target: str,
    target_kind: EntityKind,
    armor_class: int,
    attack_roll: int,
    damage: int | None = None,
) -> CombatEvent:
    return CombatEvent(
        kind=EventKind.HIT if hit else EventKind.MISSED,
        turn_id=world.turn_id,
        actor=actor,
        actor_kind=actor_kind,
        target=target,
        target_kind=target_kind,
        armor_class=armor_class,
        attack_roll=attack_roll,
        damage=damage,
    )


def _damage_army(
    world: World,
    target: Army,
    damage: int,
    sink: EventSink,
    *,
    actor: str,
    actor_kind: EntityKind,
) -> None:
    target.hp.damage(damage)
    if target.hp.is_depleted:
        target.destroyed = True
        sink.record(
            CombatEvent(
                kind=EventKind.DESTROYED,
                turn_id=world.turn_id,
                actor=actor,
                actor_kind=actor_kind,
                target=target.name,
                target_kind=EntityKind.ARMY,
            )
        )


def attack_army(
    world: World,
    attacker: Army,
    target: Army,
    source: RandomSource,
    sink: EventSink,
) -> bool:
    """Resolve one army-on-army attack. Returns True on a hit.

    The defender does not strike back; it acts on its own turn.
    """

    attack_roll = attacker.roll_attack(source)
    hit = attack_succeeds(attack_roll, target.armor_class)
    damage = attacker.roll_damage(source) if hit else None
    sink.record(
        _attack_event(
            world,
            hit=hit,
            actor=attacker.name,
            actor_kind=EntityKind.ARMY,
            target=target.name,
            target_kind=EntityKind.ARMY,
            armor_class=target.armor_class,
            attack_roll=attack_roll,
            damage=damage,
        )
    )
    if damage is not None:
        _damage_army(world, target, damage, sink, actor=attacker.name, actor_kind=EntityKind.ARMY)
    return hit


def attack_settlement(
    world: World,
    attacker: Army,
    target: Settlement,
    source: RandomSource,
    sink: EventSink,
) -> bool:
    """Resolve one army-on-settlement attack. Returns True on a hit.

    A settlement whose hit points are exhausted changes hands: an occupied
    settlement is liberated, a free one becomes occupied. Either way it now
    owes allegiance to the attacker.

    Raises:
        InvariantViolation: If the attacker's allegiance names no known actor
    """

    armor_class = target.armor_class()
    attack_roll = attacker.roll_attack(source)
    hit = attack_succeeds(attack_roll, armor_class)
    damage = attacker.roll_damage(source) if hit else None
    sink.record(
        _attack_event(
            world,
            hit=hit,
            actor=attacker.name,
            actor_kind=EntityKind.ARMY,
            target=target.name,
            target_kind=EntityKind.SETTLEMENT,
            armor_class=armor_class,
            attack_roll=attack_roll,
            damage=damage,
        )
    )
    if damage is None:
        return False

    conqueror = None
    if target.hp.current - damage <= 0:
        # An unknown faction must leave the settlement untouched.
        conqueror = world.actor(attacker.allegiance)

    target.hp.damage(damage)
    if conqueror is not None:
        new_allegiance = conqueror.name
        kind = EventKind.LIBERATED if target.occupied else EventKind.OCCUPIED
        target.occupied = not target.occupied
        target.allegiance = new_allegiance
        logger.debug("settlement %s %s by %s", target.name, kind, new_allegiance)
        sink.record(
            CombatEvent(
                kind=kind,
                turn_id=world.turn_id,
                actor=attacker.name,
                target=target.name,
                target_kind=EntityKind.SETTLEMENT,
                allegiance=new_allegiance,
            )
        )
    return True


def settlement_retaliates(
    world: World,
    settlement: Settlement,
    target: Army,
    source: RandomSource,
    sink: EventSink,
) -> bool:
    """Resolve one settlement-on-army attack. Returns True on a hit."""

    attack_roll, damage = settlement.roll_attack(source)
    hit = attack_succeeds(attack_roll, target.armor_class)
    sink.record(
        _attack_event(
            world,
            hit=hit,
            actor=settlement.name,
            actor_kind=EntityKind.SETTLEMENT,
            target=target.name,
            target_kind=EntityKind.ARMY,
            armor_class=target.armor_class,
            attack_roll=attack_roll,
            damage=damage if hit else None,
        )
    )
    if hit:
        _damage_army(
            world, target, damage, sink, actor=settlement.name, actor_kind=EntityKind.SETTLEMENT
        )
    return hit


def step_armies(world: World, source: RandomSource, sink: EventSink | None = None) -> bool:
    """Move armies, then let every ready army attack once.

    An army that moves this turn does not fight this turn.

    Raises:
        InvariantViolation: If a ready army stands where no settlement exists
        InvalidExpression: If an army's roll spec is malformed
    """

    sink = sink or NullSink()
    activity_observed = False
    ready: list[Army] = []

    for army in world.sorted_armies():
        if army.destroyed:
            continue
        if army.is_moving:
            sink.record(
                CombatEvent(
                    kind=EventKind.MOVED,
                    turn_id=world.turn_id,
                    actor=army.name,
                    origin=army.location,
                    destination=army.destination,
                )
            )
            army.location = army.destination
            activity_observed = True
        else:
            ready.append(army)

    for army in ready:
        # Fell to an earlier attacker during this step.
        if army.destroyed:
            continue

        enemy = find_enemy_army(world, army)
        if enemy is not None:
            attack_army(world, army, enemy, source, sink)
            activity_observed = True
            continue

        settlement = world.settlement_at(army.location, army=army)
        if settlement.allegiance == army.allegiance:
            # Friendly settlement; nothing to do yet.
            continue

        attack_settlement(world, army, settlement, source, sink)
        activity_observed = True

    return activity_observed


def step_settlements(world: World, source: RandomSource, sink: EventSink | None = None) -> bool:
    """Let each unoccupied, war-guarded settlement attack one hostile army.

    Raises:
        InvalidExpression: If a settlement's damage roll is malformed
    """

    sink = sink or NullSink()
    activity_observed = False

    for settlement in world.sorted_settlements():
        if not settlement.has_war_guard:
            continue

        if settlement.occupied:
            sink.record(
                CombatEvent(
                    kind=EventKind.PASSIVE,
                    turn_id=world.turn_id,
                    actor=settlement.name,
                    actor_kind=EntityKind.SETTLEMENT,
                )
            )
            continue

        for army in world.armies_at(settlement.name):
            if army.destroyed or army.allegiance == settlement.allegiance:
                continue
            settlement_retaliates(world, settlement, army, source, sink)
            activity_observed = True
            break

    return activity_observed
