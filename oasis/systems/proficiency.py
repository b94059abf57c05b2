"""Domain proficiency: eight crafts levelled by what agents actually do."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from oasis.core.enums import Zone

if TYPE_CHECKING:
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)

DOMAINS: tuple[str, ...] = (
    "metalwork", "herbalism", "mining", "woodcraft", "scholarship", "commerce", "exploration", "cooking",
)

DOMAIN_NAMES: dict[str, str] = {
    "metalwork": "Metalworker",
    "herbalism": "Herbalist",
    "mining": "Miner",
    "woodcraft": "Woodcrafter",
    "scholarship": "Scholar",
    "commerce": "Merchant",
    "exploration": "Explorer",
    "cooking": "Cook",
}

MAX_LEVEL = 50
GRANDMASTER_LEVEL = 30


def _build_thresholds() -> tuple[int, ...]:
    thresholds = [0]
    gap = 50
    for _ in range(MAX_LEVEL):
        thresholds.append(thresholds[-1] + gap)
        gap += 50
    return tuple(thresholds)


# 0, 50, 150, 300, 500, ...
LEVEL_THRESHOLDS = _build_thresholds()

WOOD_ITEMS = frozenset({"wood", "driftwood", "resin", "reeds"})
PLANT_ITEMS = frozenset({"herbs", "berries", "flowers", "fiber", "mushrooms", "seaweed", "peat"})
MINERAL_ITEMS = frozenset({"stone", "ore", "crystals", "flint", "gems", "salt"})

Rule = tuple[str, int, Callable[[Zone, "str | None"], bool]]


def _always(zone: Zone, item: str | None) -> bool:
    return True


# action -> [(domain, xp, condition)]
ACTION_DOMAIN_MAP: dict[str, list[Rule]] = {
    "gather": [
        ("mining", 10, lambda z, i: z is Zone.CAVE),
        ("mining", 3, lambda z, i: z is Zone.ROCKY and i in MINERAL_ITEMS),
        ("herbalism", 10, lambda z, i: z in (Zone.GRASS, Zone.SWAMP)),
        ("herbalism", 3, lambda z, i: z not in (Zone.GRASS, Zone.SWAMP) and i in PLANT_ITEMS),
        ("woodcraft", 10, lambda z, i: i in WOOD_ITEMS),
        ("scholarship", 10, lambda z, i: z is Zone.FOREST),
    ],
    "craft": [
        ("metalwork", 10, lambda z, i: i in MINERAL_ITEMS),
        ("woodcraft", 10, lambda z, i: i in WOOD_ITEMS),
        ("metalwork", 3, lambda z, i: i not in MINERAL_ITEMS and z is Zone.ROCKY),
        ("herbalism", 10, lambda z, i: i in PLANT_ITEMS),
    ],
    "cook": [("cooking", 10, _always)],
    "experiment": [
        ("scholarship", 10, _always),
        ("metalwork", 3, lambda z, i: i in MINERAL_ITEMS),
        ("herbalism", 3, lambda z, i: i in PLANT_ITEMS),
    ],
    "explore": [("exploration", 10, _always)],
    "move": [("exploration", 3, _always)],
    "trade": [("commerce", 10, _always)],
    "chat": [("scholarship", 3, _always)],
    "build": [("woodcraft", 10, _always), ("exploration", 3, _always)],
}


def level_for_xp(xp: int) -> int:
    for level in range(len(LEVEL_THRESHOLDS) - 1, -1, -1):
        if xp >= LEVEL_THRESHOLDS[level]:
            return min(level, MAX_LEVEL)
    return 0


def title_for(domain: str, level: int) -> str:
    name = DOMAIN_NAMES.get(domain, domain)
    if level >= GRANDMASTER_LEVEL:
        return f"{name} Grandmaster"
    if level >= 20:
        return f"{name} Master"
    if level >= 10:
        return f"{name} Journeyman"
    if level >= 5:
        return f"{name} Apprentice"
    if level >= 1:
        return f"Novice {name}"
    return ""


class ProficiencyTracker:
    """Per-agent ``{domain: {xp, level}}``, mirrored into ``agent.proficiencies``."""

    FILE = "proficiency.json"

    def __init__(self, ctx: SimContext) -> None:
        self._ctx = ctx
        self._data: dict[str, dict[str, dict[str, int]]] = {}

    def load(self) -> None:
        self._data = dict(self._ctx.store.load(self.FILE, {}))

    def save(self) -> None:
        self._ctx.store.save(self.FILE, self._data)

    def _ensure(self, agent_id: str) -> dict[str, dict[str, int]]:
        data = self._data.setdefault(agent_id, {})
        for domain in DOMAINS:
            data.setdefault(domain, {"xp": 0, "level": 0})
        return data

    def level(self, agent: Agent, domain: str) -> int:
        return self._ensure(agent.id).get(domain, {}).get("level", 0)

    def add_xp(self, agent: Agent, domain: str, amount: int) -> bool:
        """Returns True when the domain level went up."""
        if domain not in DOMAINS or amount <= 0:
            return False
        entry = self._ensure(agent.id)[domain]
        old = entry["level"]
        entry["xp"] += amount
        entry["level"] = level_for_xp(entry["xp"])
        agent.proficiencies[domain] = entry["level"]
        if entry["level"] <= old:
            return False
        title = title_for(domain, entry["level"])
        self._ctx.emit({
            "type": "proficiencyLevelUp",
            "agentId": agent.id,
            "domain": domain,
            "level": entry["level"],
            "title": title,
        })
        if entry["level"] >= GRANDMASTER_LEVEL > old:
            self._ctx.add_news("proficiency", f"{agent.name} became a {title}!", agent)
        return True

    def on_action(self, agent: Agent, action: str, zone: Zone, item: str | None = None) -> None:
        """Apply every matching rule for ``action``; gathers with no match fall back to mining +3."""
        matched = False
        for domain, xp, condition in ACTION_DOMAIN_MAP.get(action, ()):
            if condition(zone, item):
                self.add_xp(agent, domain, xp)
                matched = True
        if action == "gather" and not matched:
            self.add_xp(agent, "mining", 3)

    def summary(self, agent: Agent) -> dict[str, Any]:
        data = self._ensure(agent.id)
        return {
            domain: {"level": d["level"], "xp": d["xp"], "title": title_for(domain, d["level"])}
            for domain, d in data.items()
        }
