"""World master — marks zones dangerous for a while and narrates the world.

Dangers are deterministic (WORLD_MASTER RNG domain). An optional narrator
callable may supply a line of narration each call; ``None`` or a failure
just means no narration this time.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Callable

from oasis.core.enums import Domain, Zone
from oasis.core.grid import ZONE_NAMES

if TYPE_CHECKING:
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)

DANGER_CHANCE = 0.25
DANGER_DURATION = 100      # ticks
DANGER_ENERGY_COST = 5

DANGER_ZONES: tuple[Zone, ...] = (
    Zone.GRASS, Zone.FOREST, Zone.ROCKY, Zone.SAND, Zone.SWAMP, Zone.CAVE, Zone.COAST, Zone.PATH,
)

# zone -> (danger type, description)
DANGER_KINDS: dict[Zone, tuple[str, str]] = {
    Zone.GRASS: ("stampede", "A stampede thunders across the grasslands"),
    Zone.FOREST: ("wildfire", "Smoke rises as a wildfire creeps through the forest"),
    Zone.ROCKY: ("rockslide", "Loose boulders tumble down the rocky slopes"),
    Zone.SAND: ("sandstorm", "A sandstorm whips across the shore"),
    Zone.SWAMP: ("miasma", "A choking miasma settles over the swamp"),
    Zone.CAVE: ("cave_in", "The cave ceiling groans and sheds stone"),
    Zone.COAST: ("riptide", "Treacherous riptides pull at the coastline"),
    Zone.PATH: ("bandits", "Shadowy figures lurk along the path"),
}

Narrator = Callable[[dict[str, Any]], "str | None"]


@dataclass(slots=True)
class Danger:
    id: str
    zone: str
    type: str
    description: str
    started_tick: int
    expires_tick: int
    energy_cost: int = DANGER_ENERGY_COST

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "zone": self.zone,
            "type": self.type,
            "description": self.description,
            "expiresTick": self.expires_tick,
            "energyCost": self.energy_cost,
        }


class DangerMaster:
    FILE = "world-master.json"

    def __init__(self, ctx: SimContext, narrator: Narrator | None = None) -> None:
        self._ctx = ctx
        self._narrator = narrator
        self._dangers: list[Danger] = []
        self._last_narrative: str | None = None
        self._calls = 0

    # -- persistence --

    def load(self) -> None:
        raw = self._ctx.store.load(self.FILE, {})
        dangers = []
        for entry in raw.get("dangers") or []:
            try:
                dangers.append(Danger(**entry))
            except TypeError as exc:
                logger.warning("Dropping unreadable danger: %s", exc)
        self._dangers = dangers
        self._last_narrative = raw.get("lastNarrative")
        self._calls = int(raw.get("calls", 0))

    def save(self) -> None:
        self._ctx.store.save(self.FILE, {
            "dangers": [asdict(d) for d in self._dangers],
            "lastNarrative": self._last_narrative,
            "calls": self._calls,
        })

    # -- queries --

    @property
    def last_narrative(self) -> str | None:
        return self._last_narrative

    def active(self) -> list[Danger]:
        return [d for d in self._dangers if d.expires_tick > self._ctx.tick]

    def dangers_for(self, zone: Zone) -> list[dict[str, Any]]:
        return [d.to_wire() for d in self.active() if d.zone == zone.value]

    # -- tick --

    def tick(self) -> None:
        ctx = self._ctx
        self._calls += 1
        self._expire()

        if ctx.roll(Domain.WORLD_MASTER, "danger", 0) < DANGER_CHANCE:
            zone = DANGER_ZONES[int(ctx.roll(Domain.WORLD_MASTER, "danger", 1) * len(DANGER_ZONES))]
            self.declare(zone)

        self._narrate()

    def declare(self, zone: Zone, duration: int = DANGER_DURATION) -> Danger:
        """Mark ``zone`` dangerous, replacing any danger already there."""
        ctx = self._ctx
        kind, description = DANGER_KINDS[zone]
        danger = Danger(
            id=f"danger_{ctx.tick}_{zone.value}",
            zone=zone.value,
            type=kind,
            description=description,
            started_tick=ctx.tick,
            expires_tick=ctx.tick + duration,
        )
        self._dangers = [d for d in self._dangers if d.zone != zone.value]
        self._dangers.append(danger)
        logger.info("Danger in %s: %s (until tick %d)", zone.value, kind, danger.expires_tick)
        ctx.add_news("danger", f"{description} ({ZONE_NAMES[zone]})")
        ctx.emit({"type": "zoneDanger", "danger": danger.to_wire()})
        ctx.emit({"type": "worldEvent", "event": kind, "zone": zone.value, "description": description})
        return danger

    def _expire(self) -> None:
        tick = self._ctx.tick
        expired = [d for d in self._dangers if d.expires_tick <= tick]
        if not expired:
            return
        self._dangers = [d for d in self._dangers if d.expires_tick > tick]
        for danger in expired:
            self._ctx.emit({"type": "consequenceEnd", "consequenceType": danger.type, "zones": [danger.zone]})
            self._ctx.add_news("consequence_end", f"The {danger.type.replace('_', ' ')} in the {danger.zone} has ended.")

    def _narrate(self) -> None:
        if self._narrator is None:
            return
        state = {
            "tick": self._ctx.tick,
            "gameTime": self._ctx.game_time().to_dict(),
            "agents": len(self._ctx.agents.alive()),
            "dangers": [d.to_wire() for d in self.active()],
        }
        try:
            line = self._narrator(state)
        except Exception:
            logger.exception("Narrator failed; skipping narration")
            return
        if not line:
            return
        self._last_narrative = line
        self._ctx.add_news("narrative", line)
        self._ctx.emit({"type": "narrative", "message": line})
