"""SimContext — the explicit bundle every subsystem receives.

One context owns the grid, the stores, the news feed, the broadcast bus
and every optional participant. Subsystems never reach for globals; they
are handed the context and read what they need from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from oasis.core.agent_store import AgentStore
from oasis.core.game_time import GameTime, game_time
from oasis.core.grid import ZONE_NAMES, TileGrid
from oasis.core.knowledge import KnowledgeStore
from oasis.core.mind import MindStore
from oasis.core.news import NewsFeed
from oasis.core.progression import apply_xp
from oasis.core.resources import ResourceOracle
from oasis.core.world_asset import WorldAsset, fallback_asset
from oasis.systems.participants import Persistent
from oasis.systems.rng import DeterministicRNG
from oasis.utils.broadcast import BroadcastBus
from oasis.utils.persistence import JsonStore

if TYPE_CHECKING:
    from oasis.config import SimulationConfig
    from oasis.core.enums import Domain, WeatherKind
    from oasis.core.models import Agent
    from oasis.systems.participants import (
        Achievements, CollectiveProjects, Cooking, Ecosystem, Encounters,
        Experiments, NpcSocial, Proficiency, WeatherSystem, WorldMaster,
    )

logger = logging.getLogger(__name__)

TICK_FILE = "tick.json"


@dataclass(slots=True)
class SimContext:
    config: SimulationConfig
    grid: TileGrid
    rng: DeterministicRNG
    store: JsonStore
    oracle: ResourceOracle
    news: NewsFeed
    bus: BroadcastBus
    agents: AgentStore
    minds: MindStore
    knowledge: KnowledgeStore = field(init=False)

    # Optional participants; a None slot skips its step.
    weather: WeatherSystem | None = None
    ecosystem: Ecosystem | None = None
    world_master: WorldMaster | None = None
    projects: CollectiveProjects | None = None
    achievements: Achievements | None = None
    proficiency: Proficiency | None = None
    cooking: Cooking | None = None
    experiments: Experiments | None = None
    encounters: Encounters | None = None
    npc_social: NpcSocial | None = None

    tick: int = 0

    def __post_init__(self) -> None:
        self.knowledge = KnowledgeStore(self)

    # -- clock --

    def game_time(self) -> GameTime:
        return game_time(self.tick, self.config.game_minutes_per_tick)

    @property
    def now_minutes(self) -> int:
        return self.tick * self.config.game_minutes_per_tick

    # -- randomness --

    def roll(self, domain: Domain, key: str, salt: int = 0) -> float:
        """Deterministic float in [0, 1) for (domain, key) on the current tick."""
        return self.rng.next_float(domain, self.rng.entity_key(key), self.tick, salt)

    # -- outputs --

    def emit(self, message: dict[str, Any]) -> None:
        self.bus.emit(message)

    def add_news(self, type: str, message: str, agent: Agent | None = None) -> None:
        if agent is None:
            self.news.add(type, message, tick=self.tick)
            return
        self.news.add(type, message, agent.id, agent.name, agent.zone.value, self.tick)

    def award_xp(self, agent: Agent, amount: int) -> int | None:
        """Non-negative XP; a level increase is announced exactly once."""
        new_level = apply_xp(agent, amount)
        if new_level is not None:
            self.emit({
                "type": "level_up",
                "agentId": agent.id,
                "name": agent.name,
                "level": new_level,
                "title": agent.stats.title,
            })
            self.add_news("level_up", f"{agent.name} reached level {new_level} ({agent.stats.title})", agent)
            logger.info("%s reached level %d", agent.name, new_level)
        return new_level

    def current_weather(self) -> WeatherKind | None:
        return self.weather.current() if self.weather is not None else None

    # -- agents --

    def spawn_agent(self, name: str | None = None) -> Agent:
        agent = self.agents.spawn(self.grid, self.rng, self.config, name, self.tick)
        self.minds.ensure_mind(agent.id, agent.name)
        self.add_news("spawn", f"{agent.name} has arrived in The Oasis at {ZONE_NAMES[agent.zone]}", agent)
        self.emit({"type": "agent_spawn", "agent": AgentStore.serialize(agent, self.minds.get(agent.id))})
        return agent

    # -- persistence --

    def participants(self) -> list[Any]:
        slots = (
            self.weather, self.ecosystem, self.world_master, self.projects, self.achievements,
            self.proficiency, self.cooking, self.experiments, self.encounters, self.npc_social,
        )
        return [p for p in slots if p is not None]

    def load_all(self) -> None:
        self.agents.load(self.grid)
        self.minds.load()
        self.knowledge.load()
        for participant in self.participants():
            if isinstance(participant, Persistent):
                participant.load()
        self.tick = int(self.store.load(TICK_FILE, {}).get("tick", 0))
        logger.info("Restored world at tick %d", self.tick)

    def persist_all(self) -> None:
        self.agents.save()
        self.minds.flush()
        self.knowledge.save()
        for participant in self.participants():
            if isinstance(participant, Persistent):
                participant.save()
        self.store.save(TICK_FILE, {"tick": self.tick})


def load_grid(config: SimulationConfig) -> TileGrid:
    if config.world_file:
        asset = WorldAsset.load(config.world_file)
    else:
        asset = fallback_asset(config.fallback_width, config.fallback_height, config.world_seed)
    return TileGrid.from_asset(asset)


def build_context(
    config: SimulationConfig,
    grid: TileGrid | None = None,
    *,
    rng: DeterministicRNG | None = None,
    with_participants: bool = True,
) -> SimContext:
    """Wire stores and (optionally) the built-in participants around one grid."""
    grid = grid or load_grid(config)
    store = JsonStore(config.data_dir)
    ctx = SimContext(
        config=config,
        grid=grid,
        rng=rng or DeterministicRNG(config.world_seed),
        store=store,
        oracle=ResourceOracle(grid),
        news=NewsFeed(config.news_capacity),
        bus=BroadcastBus(),
        agents=AgentStore(store),
        minds=MindStore(store, debounce_s=config.mind_save_debounce_s),
    )
    if with_participants:
        attach_participants(ctx)
    return ctx


def attach_participants(ctx: SimContext) -> None:
    from oasis.systems.achievements import AchievementTracker
    from oasis.systems.cooking import Kitchen
    from oasis.systems.ecosystem import ZoneEcosystem
    from oasis.systems.encounters import EncounterTable
    from oasis.systems.experiments import ExperimentLab
    from oasis.systems.npc_social import TradeBroker
    from oasis.systems.proficiency import ProficiencyTracker
    from oasis.systems.projects import ProjectBoard
    from oasis.systems.weather import WeatherModel
    from oasis.systems.world_master import DangerMaster

    ctx.weather = WeatherModel(ctx)
    ctx.ecosystem = ZoneEcosystem(ctx)
    ctx.world_master = DangerMaster(ctx)
    ctx.projects = ProjectBoard(ctx)
    ctx.achievements = AchievementTracker(ctx)
    ctx.proficiency = ProficiencyTracker(ctx)
    ctx.cooking = Kitchen(ctx)
    ctx.experiments = ExperimentLab(ctx)
    ctx.encounters = EncounterTable(ctx)
    ctx.npc_social = TradeBroker(ctx)
