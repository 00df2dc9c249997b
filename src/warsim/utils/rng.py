"""Randomness sources for Warsim.

Every roll in the simulation draws from an explicit ``RandomSource`` passed
down by the caller. There is no module-level generator to reseed: a turn that
is run twice with sources built from the same seed produces the same events.

Examples:
    >>> seed = generate_seed("Siege of Thrane", 3, "alpha")
    >>> seed
    'siege_of_thrane:3:alpha'
    >>> source = SeededRandomSource(seed)
    >>> source.next_int() >= 0
    True
"""

from __future__ import annotations

import hashlib
import random
from collections.abc import Iterable
from typing import Protocol

# Width of the non-negative integers handed out by the standard sources.
DRAW_BITS = 63


class RandomSource(Protocol):
    """Capability producing non-negative random integers."""

    def next_int(self) -> int:
        """Return a non-negative integer."""
        ...


def generate_seed(world_name: str, turn_id: int, context: str) -> str:
    """Generate a deterministic seed from simulation state.

    Format: "world_slug:turn_id:context"

    Args:
        world_name: Name of the simulated world
        turn_id: Turn the seed is used for
        context: Free-form discriminator (e.g. a campaign-wide seed phrase)

    Returns:
        Seed string usable with ``SeededRandomSource``

    Raises:
        ValueError: If turn_id is negative
    """
    if turn_id < 0:
        raise ValueError(f"turn_id must be non-negative, got {turn_id}")

    slug = world_name.strip().lower().replace(" ", "_")
    return f"{slug}:{turn_id}:{context}"


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random().

    Args:
        seed: Seed string

    Returns:
        64-bit integer derived from SHA-256(seed)
    """
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False)


class SeededRandomSource:
    """Deterministic source backed by ``random.Random``.

    String seeds are hashed so that equal strings give equal streams across
    interpreter runs. ``None`` seeds from operating system entropy.
    """

    def __init__(self, seed: str | int | None = None) -> None:
        self.seed = seed
        if isinstance(seed, str):
            self._random = random.Random(_seed_to_int(seed))
        else:
            self._random = random.Random(seed)

    def next_int(self) -> int:
        return self._random.getrandbits(DRAW_BITS)


class ScriptedRandomSource:
    """Replays a fixed sequence of draws, for tests and replays.

    Raises ``LookupError`` once the script is exhausted.
    """

    def __init__(self, draws: Iterable[int]) -> None:
        self._draws = list(draws)
        self._position = 0
        for draw in self._draws:
            if draw < 0:
                raise ValueError(f"scripted draws must be non-negative, got {draw}")

    @property
    def remaining(self) -> int:
        return len(self._draws) - self._position

    def next_int(self) -> int:
        if self._position >= len(self._draws):
            raise LookupError("scripted random source exhausted")
        draw = self._draws[self._position]
        self._position += 1
        return draw
