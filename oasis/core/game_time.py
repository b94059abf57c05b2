"""Tick → in-world clock. One tick is ten game minutes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DAY_START_HOUR = 6
NIGHT_START_HOUR = 20


@dataclass(frozen=True, slots=True)
class GameTime:
    tick: int
    total_minutes: int
    hour: int
    minute: int
    day: int

    @property
    def period(self) -> str:
        return "day" if DAY_START_HOUR <= self.hour < NIGHT_START_HOUR else "night"

    @property
    def is_night(self) -> bool:
        return self.period == "night"

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick": self.tick,
            "hour": self.hour,
            "minute": self.minute,
            "day": self.day,
            "period": self.period,
            "totalMinutes": self.total_minutes,
        }


def game_time(tick: int, minutes_per_tick: int = 10) -> GameTime:
    total = tick * minutes_per_tick
    return GameTime(
        tick=tick,
        total_minutes=total,
        hour=(total // 60) % 24,
        minute=total % 60,
        day=total // 1440 + 1,
    )
