"""HTML turn reports.

``HtmlTurnReport`` is an event sink: hand it to ``TurnEngine.run_turn`` and
it keeps the narrative lines of every turn it sees. ``render`` then combines
those combat logs with a snapshot of the world into a single HTML page.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from warsim.domain.dice import format_spec
from warsim.domain.events import CombatEvent
from warsim.domain.models import World, document_id

_TEMPLATES_DIR = Path(__file__).parent / "templates"
_REPORT_TEMPLATE = "report.html.j2"

_jinja_env: Environment | None = None


def _get_jinja() -> Environment:
    global _jinja_env
    if _jinja_env is None:
        _jinja_env = Environment(
            loader=FileSystemLoader(str(_TEMPLATES_DIR)),
            autoescape=select_autoescape(["html", "j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        _jinja_env.filters["anchor"] = document_id
        _jinja_env.filters["spec"] = format_spec
    return _jinja_env


@dataclass(slots=True)
class TurnLog:
    """Narrative lines recorded during a single turn."""

    turn_id: int
    lines: list[str] = field(default_factory=list)


@dataclass(slots=True)
class HtmlTurnReport:
    """Event sink that renders combat logs and world state as HTML."""

    turns: list[TurnLog] = field(default_factory=list)

    def begin_turn(self, turn_id: int) -> None:
        self.turns.append(TurnLog(turn_id=turn_id))

    def record(self, event: CombatEvent) -> None:
        if not self.turns or self.turns[-1].turn_id != event.turn_id:
            self.begin_turn(event.turn_id)
        self.turns[-1].lines.append(event.describe())

    def render(self, world: World) -> str:
        template = _get_jinja().get_template(_REPORT_TEMPLATE)
        return template.render(
            turns=self.turns,
            world=world,
            actors=world.sorted_actors(),
            settlements=world.sorted_settlements(),
            armies=world.sorted_armies(),
            settlements_by_actor=world.settlements_by_actor(),
            armies_by_actor=world.armies_by_actor(),
        )

    def write(self, path: Path, world: World) -> Path:
        """Render the report and write it to ``path``."""

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(world), encoding="utf-8")
        return path
