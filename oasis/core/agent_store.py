"""Insertion-ordered collection of agents with JSON snapshot persistence."""

from __future__ import annotations

import logging
import math
import uuid
from typing import TYPE_CHECKING, Any, Iterator

from oasis.core.enums import Domain
from oasis.core.models import Agent

if TYPE_CHECKING:
    from oasis.config import SimulationConfig
    from oasis.core.grid import TileGrid
    from oasis.core.mind import Mind
    from oasis.systems.rng import DeterministicRNG
    from oasis.utils.persistence import JsonStore

logger = logging.getLogger(__name__)


def mind_summary(mind: Mind | None) -> dict[str, Any] | None:
    if mind is None:
        return None
    intent = mind.intent
    return {
        "action": mind.current_action,
        "mood": mind.mood,
        "intent": {"action": intent.action.value, "reason": intent.reason} if intent else None,
        "path": [list(p) for p in mind.path_this_tick] if mind.path_this_tick else None,
    }


class AgentStore:
    """Agents keyed by id, iterated in insertion order."""

    FILE = "agents.json"

    __slots__ = ("_store", "_agents")

    def __init__(self, store: JsonStore) -> None:
        self._store = store
        self._agents: dict[str, Agent] = {}

    # -- collection protocol --

    def __iter__(self) -> Iterator[Agent]:
        return iter(list(self._agents.values()))

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def get(self, agent_id: str) -> Agent | None:
        return self._agents.get(agent_id)

    def add(self, agent: Agent) -> Agent:
        self._agents[agent.id] = agent
        return agent

    def alive(self) -> list[Agent]:
        return [a for a in self._agents.values() if a.alive]

    # -- spawning --

    def spawn(
        self,
        grid: TileGrid,
        rng: DeterministicRNG,
        config: SimulationConfig,
        name: str | None,
        tick: int,
    ) -> Agent:
        """Place a new agent near the spawn point, retrying random offsets until walkable."""
        agent_id = str(uuid.uuid4())
        key = rng.entity_key(agent_id)
        sx, sy = grid.spawn_point
        spread = config.spawn_spread
        x, y = sx, sy
        for attempt in range(config.spawn_attempts):
            cx = sx + math.floor(rng.next_float(Domain.SPAWN, key, tick, attempt * 2) * spread * 2 - spread)
            cy = sy + math.floor(rng.next_float(Domain.SPAWN, key, tick, attempt * 2 + 1) * spread * 2 - spread)
            if grid.is_walkable(cx, cy):
                x, y = cx, cy
                break

        agent = Agent(
            id=agent_id,
            name=name or f"Wanderer-{agent_id[:4]}",
            tile_x=x,
            tile_y=y,
            ticks_born=tick,
        )
        grid.migrate_agent_position(agent)
        self.add(agent)
        logger.info("Spawned %s at (%d, %d) in %s", agent.name, agent.tile_x, agent.tile_y, agent.zone.value)
        return agent

    # -- persistence --

    def load(self, grid: TileGrid) -> None:
        raw = self._store.load(self.FILE, {})
        for agent_id, data in raw.items():
            try:
                agent = Agent.from_dict({"id": agent_id, **data})
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Dropping unreadable agent %s: %s", agent_id, exc)
                continue
            grid.migrate_agent_position(agent)
            self._agents[agent_id] = agent
        logger.info("Loaded %d agents", len(self._agents))

    def save(self) -> None:
        self._store.save(self.FILE, self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        return {agent_id: agent.to_dict() for agent_id, agent in self._agents.items()}

    # -- wire shapes --

    @staticmethod
    def serialize(agent: Agent, mind: Mind | None = None) -> dict[str, Any]:
        out = agent.to_dict()
        out["x"] = agent.tile_x
        out["y"] = agent.tile_y
        summary = mind_summary(mind)
        if summary is not None:
            out["mind"] = summary
        return out

    @staticmethod
    def delta(agent: Agent, mind: Mind | None = None) -> dict[str, Any]:
        return {
            "id": agent.id,
            "name": agent.name,
            "tileX": agent.tile_x,
            "tileY": agent.tile_y,
            "hp": agent.hp,
            "energy": agent.energy,
            "alive": agent.alive,
            "mind": mind_summary(mind),
        }
