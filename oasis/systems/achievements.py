"""Achievements and titles.

Counters are fed by ``record``; derived stats (knowledge, teaching, days
alive, grandmastery) are read fresh on every ``check``. Titles persist on
the agent across death.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from oasis.systems.proficiency import DOMAINS, GRANDMASTER_LEVEL

if TYPE_CHECKING:
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Achievement:
    id: str
    title: str
    category: str
    description: str
    stat: str
    threshold: int

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "title": self.title, "category": self.category, "description": self.description}


ACHIEVEMENTS: tuple[Achievement, ...] = (
    Achievement("pioneer", "Pioneer", "exploration", "First to discover a wilderness tile", "discovered_tiles", 1),
    Achievement("master_crafter", "Master Crafter", "crafting", "Create 50+ unique items", "unique_items_crafted", 50),
    Achievement("scholar", "Scholar", "knowledge", "Learn 20+ recipes or secrets", "knowledge_count", 20),
    Achievement("teacher", "Teacher", "social", "Teach 10+ students", "teach_count", 10),
    Achievement("merchant_prince", "Merchant Prince", "economy", "Earn 1000+ coins from trades", "trade_earnings", 1000),
    Achievement("survivor", "Survivor", "survival", "Survive 30+ game days", "days_alive", 30),
    Achievement("explorer", "Explorer", "exploration", "Discover 20+ tiles", "discovered_tiles", 20),
    Achievement("architect", "Architect", "building", "Complete 3+ building projects", "projects_completed", 3),
    Achievement("grandmaster", "Grandmaster", "mastery", "Reach highest proficiency in any domain", "is_grandmaster", 1),
)


def _blank() -> dict[str, Any]:
    return {
        "stats": {"discovered_tiles": 0, "unique_items_crafted": 0, "trade_earnings": 0, "projects_completed": 0},
        "earned": [],
        "crafted_names": [],
    }


class AchievementTracker:
    FILE = "achievements.json"

    def __init__(self, ctx: SimContext) -> None:
        self._ctx = ctx
        self._data: dict[str, dict[str, Any]] = {}

    def load(self) -> None:
        self._data = dict(self._ctx.store.load(self.FILE, {}))

    def save(self) -> None:
        self._ctx.store.save(self.FILE, self._data)

    def _ensure(self, agent_id: str) -> dict[str, Any]:
        data = self._data.get(agent_id)
        if data is None:
            data = self._data[agent_id] = _blank()
        for key, value in _blank()["stats"].items():
            data["stats"].setdefault(key, value)
        return data

    def record(self, agent: Agent, event: str, detail: Any = None) -> None:
        data = self._ensure(agent.id)
        stats = data["stats"]
        match event:
            case "craft":
                if detail and detail not in data["crafted_names"]:
                    data["crafted_names"].append(detail)
                    stats["unique_items_crafted"] = len(data["crafted_names"])
            case "discover_tile":
                stats["discovered_tiles"] += 1
            case "trade_earn":
                stats["trade_earnings"] += int(detail or 0)
            case "project_complete":
                stats["projects_completed"] += 1
            case _:
                logger.debug("Ignoring unknown achievement event %r", event)

    def stats(self, agent: Agent) -> dict[str, int]:
        ctx = self._ctx
        out = dict(self._ensure(agent.id)["stats"])
        k = ctx.knowledge.get(agent.id)
        out["knowledge_count"] = ctx.knowledge.knowledge_count(agent.id)
        out["teach_count"] = k.teach_count if k else 0
        out["days_alive"] = max(0, ctx.tick - agent.ticks_born) // ctx.config.ticks_per_game_day
        grandmaster = 0
        if ctx.proficiency is not None:
            grandmaster = int(any(ctx.proficiency.level(agent, d) >= GRANDMASTER_LEVEL for d in DOMAINS))
        out["is_grandmaster"] = grandmaster
        return out

    def check(self, agent: Agent) -> list[dict[str, Any]]:
        """Unlock every achievement whose threshold is now met. Returns the new ones."""
        data = self._ensure(agent.id)
        stats = self.stats(agent)
        unlocked = []
        for achievement in ACHIEVEMENTS:
            if achievement.id in data["earned"] or stats.get(achievement.stat, 0) < achievement.threshold:
                continue
            data["earned"].append(achievement.id)
            agent.titles.add(achievement.title)
            unlocked.append(achievement.to_dict())
            logger.info("%s earned %s", agent.name, achievement.title)
            self._ctx.add_news(
                "achievement",
                f'{agent.name} earned the title "{achievement.title}": {achievement.description}!',
                agent,
            )
            self._ctx.emit({
                "type": "achievementUnlocked",
                "agentId": agent.id,
                "agentName": agent.name,
                "achievement": achievement.to_dict(),
            })
        return unlocked

    def progress(self, agent: Agent) -> list[dict[str, Any]]:
        earned = self._ensure(agent.id)["earned"]
        stats = self.stats(agent)
        return [
            {
                **a.to_dict(),
                "current": stats.get(a.stat, 0),
                "needed": a.threshold,
                "earned": a.id in earned,
            }
            for a in ACHIEVEMENTS
        ]
