"""Command line entrypoint for running Warsim turns."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from warsim.config import Settings, get_settings
from warsim.domain.dice import InvalidExpression
from warsim.domain.events import EventLog, SinkGroup
from warsim.domain.models import InvariantViolation, World
from warsim.domain.scenarios import SCENARIOS, build_scenario
from warsim.domain.turn import TurnEngine
from warsim.render import HtmlTurnReport
from warsim.repository import JsonWorldRepository, SimulationState
from warsim.utils.rng import RandomSource, SeededRandomSource, generate_seed

logger = logging.getLogger(__name__)


def _source_for(world: World, settings: Settings) -> RandomSource:
    if settings.rng_seed is None:
        return SeededRandomSource()
    return SeededRandomSource(generate_seed(world.name, world.turn_id + 1, settings.rng_seed))


def _load_current(
    repository: JsonWorldRepository, settings: Settings
) -> tuple[SimulationState, World] | None:
    """Load the state file and the snapshot it points at, logging any failure."""

    try:
        state = repository.load_state()
    except FileNotFoundError:
        logger.error("no simulation in %s; run `warsim init` first", settings.state_dir)
        return None
    except ValidationError as exc:
        logger.error("state file %s is corrupt: %s", repository.state_path, exc)
        return None

    try:
        world = repository.load(state.name, state.step)
    except FileNotFoundError:
        logger.error("no snapshot of world %s at step %d", state.name, state.step)
        return None
    except (ValidationError, InvariantViolation, InvalidExpression) as exc:
        logger.error("world %s step %d is invalid: %s", state.name, state.step, exc)
        return None
    return state, world


def cmd_init(args: argparse.Namespace, settings: Settings) -> int:
    repository = JsonWorldRepository(settings.state_dir)
    if repository.state_path.exists() and not args.force:
        logger.error("state file %s already exists; use --force to replace it", repository.state_path)
        return 1

    try:
        world = build_scenario(args.scenario, args.name)
    except (InvariantViolation, InvalidExpression) as exc:
        logger.error("scenario %s is invalid: %s", args.scenario, exc)
        return 1

    path = repository.save(world)
    repository.save_state(SimulationState(name=world.name, step=world.turn_id))
    logger.info("created world %s from scenario %s at %s", world.name, args.scenario, path)
    return 0


def cmd_turn(args: argparse.Namespace, settings: Settings) -> int:
    repository = JsonWorldRepository(settings.state_dir)
    loaded = _load_current(repository, settings)
    if loaded is None:
        return 1
    state, world = loaded
    logger.info("loaded world %s at step %d", world.name, state.step)

    turns = args.turns or settings.max_turns
    engine = TurnEngine(world, _source_for(world, settings))
    report = HtmlTurnReport()
    sink = SinkGroup(EventLog(), report)

    for _ in range(turns):
        try:
            outcome = engine.run_turn(sink)
        except InvariantViolation as exc:
            logger.error("turn %d aborted, world not saved: %s", world.turn_id, exc)
            return 1
        if outcome.failed:
            logger.error(
                "turn %d failed, world not saved: %s", outcome.turn_id, "; ".join(outcome.failures)
            )
            return 1

        repository.save(world)
        state.step = world.turn_id
        repository.save_state(state)

        if not outcome.active:
            logger.info("world is quiet after turn %d", outcome.turn_id)
            break

    render_path = args.render or settings.render_path
    report.write(render_path, world)
    logger.info("rendered %s", render_path)
    return 0


def cmd_status(args: argparse.Namespace, settings: Settings) -> int:
    repository = JsonWorldRepository(settings.state_dir)
    loaded = _load_current(repository, settings)
    if loaded is None:
        return 1
    _, world = loaded

    settlements = world.settlements_by_actor()
    armies = world.armies_by_actor()
    print(f"{world.name}: turn {world.turn_id}")
    for actor in world.sorted_actors():
        held = settlements.get(actor.name, [])
        fielded = [army for army in armies.get(actor.name, []) if not army.destroyed]
        print(f"  {actor.name}: {len(held)} settlements, {len(fielded)} armies in the field")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="warsim", description="Run Warsim siege turns")
    parser.add_argument("--state-dir", type=Path, help="Directory holding world snapshots")
    parser.add_argument("--seed", help="Seed phrase for reproducible dice")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Create a new simulation")
    init.add_argument("--name", default="Siege of Thrane", help="World name")
    init.add_argument(
        "--scenario",
        default="siege_of_thrane",
        choices=sorted(SCENARIOS),
        help="Scenario used to seed the world",
    )
    init.add_argument("--force", action="store_true", help="Replace an existing simulation")
    init.set_defaults(handler=cmd_init)

    turn = subparsers.add_parser("turn", help="Resolve one or more turns")
    turn.add_argument("--turns", type=int, help="Maximum number of turns to resolve")
    turn.add_argument("--render", type=Path, help="Where to write the HTML report")
    turn.set_defaults(handler=cmd_turn)

    status = subparsers.add_parser("status", help="Summarize the current world")
    status.set_defaults(handler=cmd_status)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    overrides: dict[str, object] = {}
    if args.state_dir is not None:
        overrides["state_dir"] = args.state_dir
    if args.seed is not None:
        overrides["rng_seed"] = args.seed
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if overrides:
        settings = settings.model_copy(update=overrides)

    if getattr(args, "turns", None) is not None and args.turns < 1:
        parser.error("--turns must be positive")

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.handler(args, settings)
