"""Atmosphere-driven weather.

Moisture, pressure, wind and temperature drift toward seasonal targets;
the weather kind is derived from that state rather than drawn from a list.
All noise comes from the WEATHER RNG domain so a replay sees the same sky.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from oasis.core.enums import Domain, WeatherKind, Zone

if TYPE_CHECKING:
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)

UPDATE_INTERVAL = 12       # ticks (two game hours)
SEASON_LENGTH_DAYS = 30
SEASONS = ("spring", "summer", "autumn", "winter")


@dataclass(frozen=True, slots=True)
class SeasonProfile:
    base_temp: float
    moisture_tendency: float
    pressure_variability: float
    wind_base: float


SEASON_PROFILES: dict[str, SeasonProfile] = {
    "spring": SeasonProfile(15, 0.6, 0.5, 8),
    "summer": SeasonProfile(30, 0.3, 0.3, 6),
    "autumn": SeasonProfile(12, 0.5, 0.7, 12),
    "winter": SeasonProfile(-2, 0.4, 0.4, 10),
}

# zone -> temperature offset in °C
MICROCLIMATE_OFFSETS: dict[Zone, float] = {
    Zone.CAVE: -8,
    Zone.SAND: 3,
    Zone.ROCKY: -3,
    Zone.FOREST: -1,
    Zone.PATH: 1,
    Zone.COAST: 2,
    Zone.SWAMP: 1,
    Zone.WATER: -2,
    Zone.RIVER: -2,
}

WEATHER_NAMES: dict[WeatherKind, str] = {
    WeatherKind.CLEAR: "Clear",
    WeatherKind.CLOUDY: "Cloudy",
    WeatherKind.RAIN: "Rain",
    WeatherKind.STORM: "Storm",
    WeatherKind.SNOW: "Snow",
    WeatherKind.FOG: "Fog",
    WeatherKind.HEATWAVE: "Heat Wave",
}


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(slots=True)
class Atmosphere:
    moisture: float = 40.0
    pressure: float = 1013.0
    wind_speed: float = 8.0
    temperature: float = 18.0
    wind_direction: float = 180.0
    pressure_phase: float = 0.0
    moisture_phase: float = 0.0
    current: str = WeatherKind.CLEAR.value
    updates: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Atmosphere:
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)


def derive_weather(atmo: Atmosphere) -> WeatherKind:
    """First matching rule wins."""
    if atmo.moisture > 65 and atmo.pressure < 990 and atmo.wind_speed > 20:
        return WeatherKind.STORM
    if atmo.temperature < 2 and atmo.moisture > 35:
        return WeatherKind.SNOW
    if atmo.moisture > 55 and atmo.pressure < 1010:
        return WeatherKind.RAIN
    if atmo.moisture > 50 and atmo.wind_speed < 8 and 0 < atmo.temperature < 25:
        return WeatherKind.FOG
    if atmo.temperature > 35 and atmo.moisture < 25:
        return WeatherKind.HEATWAVE
    if atmo.moisture > 40 and atmo.pressure < 1020:
        return WeatherKind.CLOUDY
    return WeatherKind.CLEAR


def season_for_day(day: int) -> str:
    return SEASONS[((day - 1) % (SEASON_LENGTH_DAYS * 4)) // SEASON_LENGTH_DAYS]


class WeatherModel:
    """Global atmosphere stepped every ``UPDATE_INTERVAL`` ticks."""

    FILE = "world-weather.json"

    def __init__(self, ctx: SimContext) -> None:
        self._ctx = ctx
        self._atmo = Atmosphere(
            pressure_phase=ctx.roll(Domain.WEATHER, "init", 0) * 2 * math.pi,
            moisture_phase=ctx.roll(Domain.WEATHER, "init", 1) * 2 * math.pi,
        )

    @property
    def atmosphere(self) -> Atmosphere:
        return self._atmo

    def load(self) -> None:
        data = self._ctx.store.load(self.FILE, None)
        if data:
            self._atmo = Atmosphere.from_dict(data)

    def save(self) -> None:
        self._ctx.store.save(self.FILE, asdict(self._atmo))

    def current(self) -> WeatherKind:
        return WeatherKind(self._atmo.current)

    def temperature(self) -> float:
        return round(self._atmo.temperature, 1)

    def zone_temperature(self, zone: Zone) -> float:
        return round(self._atmo.temperature + MICROCLIMATE_OFFSETS.get(zone, 0), 1)

    def season(self) -> str:
        return season_for_day(self._ctx.game_time().day)

    def tick(self) -> None:
        if self._ctx.tick % UPDATE_INTERVAL != 0:
            return
        self.step()

    def step(self) -> WeatherKind:
        """Advance the atmosphere once and announce a change of weather."""
        ctx = self._ctx
        atmo = self._atmo
        profile = SEASON_PROFILES[self.season()]
        hour = ctx.game_time().hour
        atmo.updates += 1

        def noise(salt: int) -> float:
            return ctx.roll(Domain.WEATHER, "atmosphere", salt) - 0.5

        atmo.pressure_phase += 0.05 + (noise(0) + 0.5) * 0.03
        atmo.moisture_phase += 0.04 + (noise(1) + 0.5) * 0.02

        pressure_target = 1013 + math.sin(atmo.pressure_phase) * 30 * profile.pressure_variability
        delta = (pressure_target - atmo.pressure) * 0.15 + noise(2) * 4
        atmo.pressure = _clamp(atmo.pressure + delta, 950, 1050)

        diurnal = math.sin((hour - 6) / 24 * math.pi * 2) * 8
        damping = 0.5 if atmo.moisture > 60 else 1.0
        delta = (profile.base_temp + diurnal - atmo.temperature) * 0.12 * damping + noise(3) * 1.5
        atmo.temperature = _clamp(atmo.temperature + delta, -10, 45)

        pressure_pull = (1013 - atmo.pressure) * 0.15
        delta = (profile.moisture_tendency * 100 + pressure_pull - atmo.moisture) * 0.08 + noise(4) * 3
        if atmo.current in (WeatherKind.RAIN.value, WeatherKind.STORM.value):
            atmo.moisture = max(0.0, atmo.moisture - 2)
        elif atmo.current == WeatherKind.SNOW.value:
            atmo.moisture = max(0.0, atmo.moisture - 1)
        atmo.moisture = _clamp(atmo.moisture + delta, 0, 100)

        gradient = abs(1013 - atmo.pressure) / 50
        delta = (profile.wind_base + gradient * 15 - atmo.wind_speed) * 0.1 + noise(5) * 3
        atmo.wind_speed = _clamp(atmo.wind_speed + delta, 0, 60)
        atmo.wind_direction = (atmo.wind_direction + noise(6) * 15 + 360) % 360

        old = atmo.current
        new = derive_weather(atmo)
        atmo.current = new.value
        if new.value != old:
            name = WEATHER_NAMES[new]
            logger.info("Weather changed %s -> %s", old, new.value)
            ctx.emit({"type": "weatherChange", "weather": new.value, "name": name})
            ctx.add_news("weather", f"Weather changed to {name}")
        return new

    def forecast(self) -> str:
        atmo = self._atmo
        if atmo.moisture > 60 and atmo.pressure < 1000:
            return "Storm approaching"
        if atmo.moisture > 50 and atmo.pressure < 1010:
            return "Rain likely"
        if atmo.temperature < 3 and atmo.moisture > 30:
            return "Snow possible"
        if atmo.moisture > 45 and atmo.wind_speed < 6:
            return "Fog may form"
        if atmo.temperature > 32 and atmo.moisture < 30:
            return "Heat building"
        if atmo.pressure > 1020 and atmo.moisture < 35:
            return "Clear skies expected"
        return "Stable conditions"

    def snapshot(self) -> dict[str, Any]:
        atmo = self._atmo
        kind = self.current()
        return {
            "weather": kind.value,
            "name": WEATHER_NAMES[kind],
            "season": self.season(),
            "forecast": self.forecast(),
            "atmosphere": {
                "moisture": round(atmo.moisture, 1),
                "pressure": round(atmo.pressure, 1),
                "windSpeed": round(atmo.wind_speed, 1),
                "temperature": round(atmo.temperature, 1),
                "windDirection": round(atmo.wind_direction),
            },
        }
