"""Turn orchestration for Warsim worlds."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from warsim.domain import combat
from warsim.domain.dice import InvalidExpression
from warsim.domain.events import EventSink, NullSink, TurnAwareSink
from warsim.domain.models import World
from warsim.utils.rng import RandomSource

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TurnOutcome:
    """Summary of a resolved turn."""

    turn_id: int
    armies_active: bool = False
    settlements_active: bool = False
    failures: list[str] = field(default_factory=list)

    @property
    def active(self) -> bool:
        return self.armies_active or self.settlements_active

    @property
    def failed(self) -> bool:
        return bool(self.failures)


class TurnEngine:
    """Advance a world one turn at a time.

    Each turn runs the army phase and then the settlement phase. A malformed
    dice expression aborts only the phase that rolled it and is reported in
    ``TurnOutcome.failures``; an ``InvariantViolation`` aborts the turn and
    propagates.
    """

    def __init__(self, world: World, source: RandomSource) -> None:
        self.world = world
        self.source = source

    def run_turn(self, sink: EventSink | None = None) -> TurnOutcome:
        """Increment the turn counter and resolve one full turn."""

        sink = sink or NullSink()
        self.world.turn_id += 1
        outcome = TurnOutcome(turn_id=self.world.turn_id)
        if isinstance(sink, TurnAwareSink):
            sink.begin_turn(outcome.turn_id)

        logger.debug("turn %d: army phase", outcome.turn_id)
        try:
            outcome.armies_active = combat.step_armies(self.world, self.source, sink)
        except InvalidExpression as exc:
            logger.error("turn %d: army phase aborted: %s", outcome.turn_id, exc)
            outcome.failures.append(f"army phase: {exc}")

        logger.debug("turn %d: settlement phase", outcome.turn_id)
        try:
            outcome.settlements_active = combat.step_settlements(self.world, self.source, sink)
        except InvalidExpression as exc:
            logger.error("turn %d: settlement phase aborted: %s", outcome.turn_id, exc)
            outcome.failures.append(f"settlement phase: {exc}")

        logger.info(
            "turn %d resolved (armies active: %s, settlements active: %s)",
            outcome.turn_id,
            outcome.armies_active,
            outcome.settlements_active,
        )
        return outcome

    def run(self, max_turns: int, sink: EventSink | None = None) -> list[TurnOutcome]:
        """Run turns until one is quiet, one fails, or ``max_turns`` is reached."""

        if max_turns < 1:
            raise ValueError(f"max_turns must be positive, got {max_turns}")

        outcomes: list[TurnOutcome] = []
        for _ in range(max_turns):
            outcome = self.run_turn(sink)
            outcomes.append(outcome)
            if outcome.failed or not outcome.active:
                break
        return outcomes
