"""JSON-based repository for Warsim worlds."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field, TypeAdapter

from warsim.domain import models as dm

logger = logging.getLogger(__name__)

STATE_FILENAME = "simulation.json"


class SimulationState(BaseModel):
    """Pointer to the world snapshot a simulation last committed."""

    name: str
    step: int = Field(default=0, ge=0)


class JsonWorldRepository:
    """Persist world snapshots as JSON files, one per turn."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._adapter: TypeAdapter[dm.World] = TypeAdapter(dm.World)

    def _path_for(self, name: str, turn_id: int) -> Path:
        return self.base_path / f"{dm.document_id(name)}.{int(turn_id)}.json"

    @property
    def state_path(self) -> Path:
        return self.base_path / STATE_FILENAME

    def save(self, world: dm.World) -> Path:
        """Serialize a world to disk under its current turn and return the path."""

        path = self._path_for(world.name, world.turn_id)
        payload = self._adapter.dump_json(world, indent=2)
        path.write_bytes(payload)
        logger.debug("saved world %s turn %d to %s", world.name, world.turn_id, path)
        return path

    def load(self, name: str, turn_id: int) -> dm.World:
        """Load and validate a previously saved snapshot.

        Raises:
            FileNotFoundError: If no snapshot exists for that turn
            InvariantViolation: If the snapshot breaks a world invariant
        """

        path = self._path_for(name, turn_id)
        world = self._adapter.validate_json(path.read_bytes())
        world.validate()
        return world

    def list_turns(self, name: str) -> list[int]:
        """Return every persisted turn of a world in ascending order."""

        turns: list[int] = []
        prefix = f"{dm.document_id(name)}."
        suffix = ".json"
        for path in self.base_path.glob(f"{prefix}*{suffix}"):
            raw = path.name[len(prefix) : -len(suffix)]
            try:
                turns.append(int(raw))
            except ValueError:  # pragma: no cover - ignored malformed file
                continue
        return sorted(turns)

    def latest(self, name: str) -> dm.World:
        """Load the snapshot with the highest turn number."""

        turns = self.list_turns(name)
        if not turns:
            raise FileNotFoundError(f"no snapshots for world {name!r} in {self.base_path}")
        return self.load(name, turns[-1])

    def delete(self, name: str, turn_id: int) -> None:
        """Remove a snapshot if it exists."""

        path = self._path_for(name, turn_id)
        if path.exists():
            path.unlink()

    def load_state(self) -> SimulationState:
        """Read the simulation state file.

        Raises:
            FileNotFoundError: If the state file has not been written yet
        """

        return SimulationState.model_validate_json(self.state_path.read_bytes())

    def save_state(self, state: SimulationState) -> Path:
        self.state_path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        return self.state_path
