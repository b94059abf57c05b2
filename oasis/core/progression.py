"""XP → level → title ladder."""

from __future__ import annotations

from bisect import bisect_right
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from oasis.core.models import Agent

LEVEL_THRESHOLDS: tuple[int, ...] = (0, 100, 300, 600, 1000, 1500, 2100, 2800, 3600, 4500, 5500)

TITLES: dict[int, str] = {
    1: "Hatchling",
    5: "Wanderer",
    10: "Crafter",
    15: "Explorer",
    20: "Builder",
    30: "Master",
    50: "Legend",
    100: "Mythic",
}
_TITLE_LEVELS = sorted(TITLES)


def level_for_xp(xp: int) -> int:
    """1 + the largest threshold index with ``xp >= threshold``."""
    return max(1, bisect_right(LEVEL_THRESHOLDS, xp))


def title_for_level(level: int) -> str:
    idx = bisect_right(_TITLE_LEVELS, level) - 1
    return TITLES[_TITLE_LEVELS[max(0, idx)]]


def apply_xp(agent: Agent, amount: int) -> int | None:
    """Add XP and recompute level/title. Returns the new level on level-up, else None."""
    if amount <= 0:
        return None
    stats = agent.stats
    old_level = stats.level
    stats.xp += amount
    stats.level = level_for_xp(stats.xp)
    stats.title = title_for_level(stats.level)
    return stats.level if stats.level > old_level else None
