"""Dice notation parsing and evaluation.

Notation is ``[count]d<faces>[+modifier|-modifier]``, e.g. ``d20``, ``3d6``,
``2d8+1``. The modifier is applied to every die rolled, so ``2d8+1`` is two
draws of ``d8 + 1``, ranging from 4 to 18.

Examples:
    >>> from warsim.utils.rng import ScriptedRandomSource
    >>> expression = DiceExpression.parse("2d8+1")
    >>> (expression.minimum, expression.maximum)
    (4, 18)
    >>> expression.roll(ScriptedRandomSource([0, 7]))
    11
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from warsim.utils.rng import RandomSource

RollSpec = list[str]
"""Ordered dice notations whose results are summed."""

_INTEGER = re.compile(r"[0-9]+")

# Upper bound on dice per expression; each die costs one draw.
MAX_DICE = 10_000


class InvalidExpression(ValueError):
    """Raised when dice notation cannot be parsed or evaluated."""


def _parse_integer(text: str, notation: str, part: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise InvalidExpression(f"{notation!r} is not a valid roll: {part} {text!r} is not an integer")
    return int(text)


def _parse_faces_and_modifier(text: str, notation: str) -> tuple[int, int]:
    """Split ``F``, ``F+M`` or ``F-M`` into (faces, signed modifier)."""

    # Additive modifiers take precedence over subtractive ones.
    for separator, sign in (("+", 1), ("-", -1)):
        if separator in text:
            parts = text.split(separator)
            if len(parts) != 2:
                raise InvalidExpression(
                    f"{notation!r} is not a valid roll: expected two values around "
                    f"{separator!r} but got {parts}"
                )
            faces = _parse_integer(parts[0], notation, "faces")
            modifier = _parse_integer(parts[1], notation, "modifier")
            return faces, sign * modifier

    return _parse_integer(text, notation, "faces"), 0


@dataclass(frozen=True, slots=True)
class DiceExpression:
    """A parsed ``NdF+M`` expression."""

    count: int
    faces: int
    modifier: int = 0

    def __post_init__(self) -> None:
        if self.count < 0:
            raise InvalidExpression(f"dice count must be non-negative, got {self.count}")
        if self.count > MAX_DICE:
            raise InvalidExpression(f"dice count must be at most {MAX_DICE}, got {self.count}")
        if self.faces <= 0:
            raise InvalidExpression(f"dice faces must be positive, got {self.faces}")

    @classmethod
    def parse(cls, notation: str) -> DiceExpression:
        """Parse dice notation.

        An empty count prefix means a single die.

        Raises:
            InvalidExpression: If the notation is malformed or has no faces
        """
        text = notation.strip().lower()
        parts = text.split("d")
        if len(parts) != 2:
            raise InvalidExpression(f"{notation!r} is not a valid roll")

        count_text, faces_text = parts
        count = _parse_integer(count_text, notation, "count") if count_text else 1
        faces, modifier = _parse_faces_and_modifier(faces_text, notation)
        return cls(count=count, faces=faces, modifier=modifier)

    @property
    def minimum(self) -> int:
        return self.count * (1 + self.modifier)

    @property
    def maximum(self) -> int:
        return self.count * (self.faces + self.modifier)

    def roll(self, source: RandomSource) -> int:
        """Roll every die, adding the modifier to each draw."""

        total = 0
        for _ in range(self.count):
            total += source.next_int() % self.faces + 1 + self.modifier
        return total

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"{self.count}d{self.faces}+{self.modifier}"
        if self.modifier < 0:
            return f"{self.count}d{self.faces}-{-self.modifier}"
        return f"{self.count}d{self.faces}"


def parse_spec(spec: Sequence[str]) -> list[DiceExpression]:
    """Parse every notation of a roll spec, failing on the first bad one."""

    return [DiceExpression.parse(notation) for notation in spec]


def roll_notation(notation: str, source: RandomSource) -> int:
    """Parse and roll a single notation."""

    return DiceExpression.parse(notation).roll(source)


def roll_spec(spec: Sequence[str], source: RandomSource) -> int:
    """Roll a composite spec, summing each expression.

    Expressions are parsed and rolled in order. The first invalid expression
    raises and no partial sum is returned.
    """

    total = 0
    for notation in spec:
        total += roll_notation(notation, source)
    return total


def format_spec(spec: Sequence[str]) -> str:
    """Render a roll spec for narration, e.g. ``d20 + d4``."""

    return " + ".join(notation.strip().lower() for notation in spec) or "0"
