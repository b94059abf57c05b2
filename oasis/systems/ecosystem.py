"""Per-zone resource abundance.

Every gather draws a zone down; every tick lets it recover. Rain speeds
recovery, a heatwave slows it. A zone below ``EXHAUSTED_BELOW`` yields
nothing until it recovers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from oasis.core.enums import WeatherKind, Zone
from oasis.core.resources import TERRAIN_RESOURCES

if TYPE_CHECKING:
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)

HARVEST_DEPLETION = 0.01
REGEN_PER_TICK = 0.002
EXHAUSTED_BELOW = 0.1

# weather -> regeneration multiplier
WEATHER_REGEN: dict[WeatherKind, float] = {
    WeatherKind.RAIN: 1.5,
    WeatherKind.STORM: 1.2,
    WeatherKind.HEATWAVE: 0.5,
}


class ZoneEcosystem:
    FILE = "ecosystem.json"

    def __init__(self, ctx: SimContext) -> None:
        self._ctx = ctx
        self._abundance: dict[Zone, float] = {
            zone: 1.0 for zone, table in TERRAIN_RESOURCES.items() if table.resources
        }

    def load(self) -> None:
        raw = self._ctx.store.load(self.FILE, {})
        for key, value in raw.items():
            try:
                self._abundance[Zone(key)] = max(0.0, min(1.0, float(value)))
            except (TypeError, ValueError):
                logger.warning("Ignoring ecosystem entry %r", key)

    def save(self) -> None:
        self._ctx.store.save(self.FILE, self.snapshot())

    def tick(self) -> None:
        weather = self._ctx.current_weather()
        regen = REGEN_PER_TICK * WEATHER_REGEN.get(weather, 1.0) * self._ctx.config.rate_scale
        for zone, value in self._abundance.items():
            if value < 1.0:
                self._abundance[zone] = min(1.0, round(value + regen, 4))

    def record_harvest(self, zone: Zone) -> None:
        if zone not in self._abundance:
            return
        before = self._abundance[zone]
        after = max(0.0, round(before - HARVEST_DEPLETION, 4))
        self._abundance[zone] = after
        if before >= EXHAUSTED_BELOW > after:
            self._ctx.add_news("ecosystem", f"The {zone.value} has been picked clean")
            self._ctx.emit({"type": "zoneExhausted", "zone": zone.value})

    def abundance(self, zone: Zone) -> float:
        return self._abundance.get(zone, 0.0)

    def exhausted(self, zone: Zone) -> bool:
        return zone in self._abundance and self._abundance[zone] < EXHAUSTED_BELOW

    def snapshot(self) -> dict[str, Any]:
        return {zone.value: round(value, 4) for zone, value in self._abundance.items()}
