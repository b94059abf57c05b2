"""Body temperature, passive recovery, starvation and death."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from oasis.core.enums import WeatherKind, Zone

if TYPE_CHECKING:
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)

ZONE_TEMPS: dict[Zone, float] = {
    Zone.CAVE: 5,
    Zone.SAND: 35,
    Zone.GRASS: 22,
    Zone.ROCKY: 15,
    Zone.FOREST: 20,
    Zone.PATH: 22,
    Zone.COAST: 25,
    Zone.SWAMP: 18,
    Zone.RIVER: 16,
}
DEFAULT_ZONE_TEMP = 22

WEATHER_TEMP_MOD: dict[WeatherKind, float] = {
    WeatherKind.CLEAR: 3,
    WeatherKind.CLOUDY: -2,
    WeatherKind.RAIN: -5,
    WeatherKind.STORM: -8,
    WeatherKind.FOG: -3,
    WeatherKind.SNOW: -12,
    WeatherKind.HEATWAVE: 8,
}

REGEN_PER_GAME_HOUR = 1
GRASS_REGEN_PER_GAME_HOUR = 3
STARVATION_HP_PER_TICK = 0.5
RESURRECT_HP = 50.0
RESURRECT_ENERGY = 50.0


def zone_temperature(ctx: SimContext, zone: Zone) -> float:
    base = ZONE_TEMPS.get(zone, DEFAULT_ZONE_TEMP)
    weather = ctx.current_weather()
    return base + (WEATHER_TEMP_MOD.get(weather, 0) if weather is not None else 0)


def survival_update(ctx: SimContext, agent: Agent) -> None:
    """Per-tick bodily upkeep for one live agent."""
    if not agent.alive:
        return
    agent.temperature = zone_temperature(ctx, agent.zone)

    ticks_per_hour = max(1, 60 // ctx.config.game_minutes_per_tick)
    if ctx.tick % ticks_per_hour == 0:
        regen = GRASS_REGEN_PER_GAME_HOUR if agent.zone is Zone.GRASS else REGEN_PER_GAME_HOUR
        agent.energy = min(100.0, agent.energy + regen)

    if agent.hunger >= 100 and agent.energy <= 0:
        agent.hp = max(0.0, agent.hp - STARVATION_HP_PER_TICK * ctx.config.rate_scale)

    if agent.hp <= 0:
        kill(ctx, agent, "starvation" if agent.hunger >= 100 else "exhaustion")


def kill(ctx: SimContext, agent: Agent, cause: str) -> None:
    """Mark the agent dead. Knowledge is lost; titles are kept."""
    if not agent.alive:
        return
    agent.alive = False
    agent.hp = 0.0
    mind = ctx.minds.get(agent.id)
    if mind is not None:
        mind.intent = None
        mind.current_action = "dead"
        mind.path_this_tick = None
        ctx.minds.schedule_save()
    ctx.knowledge.wipe(agent.id)
    logger.info("%s died of %s", agent.name, cause)
    ctx.add_news("death", f"{agent.name} has perished from {cause}", agent)
    ctx.emit({"type": "agent_death", "agentId": agent.id, "name": agent.name, "cause": cause})


def resurrect(ctx: SimContext, agent: Agent) -> Agent:
    agent.alive = True
    agent.hp = RESURRECT_HP
    agent.energy = RESURRECT_ENERGY
    agent.hunger = 0.0
    ctx.grid.migrate_agent_position(agent)
    mind = ctx.minds.ensure_mind(agent.id, agent.name)
    mind.current_action = "idle"
    ctx.minds.schedule_save()
    logger.info("%s was resurrected", agent.name)
    ctx.add_news("resurrect", f"{agent.name} has returned to The Oasis", agent)
    ctx.emit({"type": "agent_resurrect", "agentId": agent.id, "name": agent.name})
    return agent
