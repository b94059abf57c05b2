"""Live agent state: status, agents, spawning, news and weather."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from oasis.api.dependencies import get_engine_manager, require_agent
from oasis.api.engine_manager import EngineManager
from oasis.api.schemas import SpawnManyRequest, SpawnRequest, StatusResponse, WalkRequest
from oasis.core.agent_store import AgentStore
from oasis.core.errors import Conflict, InvalidInput
from oasis.systems.survival import resurrect

router = APIRouter()


@router.get("/status", response_model=StatusResponse)
def status(manager: EngineManager = Depends(get_engine_manager)) -> StatusResponse:
    with manager.lock:
        ctx = manager.ctx
        return StatusResponse(
            tick=ctx.tick,
            game_time=ctx.game_time().to_dict(),
            agents=len(ctx.agents),
            alive=len(ctx.agents.alive()),
            world=f"{ctx.grid.width}x{ctx.grid.height}",
            weather=ctx.weather.snapshot() if ctx.weather is not None else None,
            uptime=round(manager.uptime, 1),
            running=manager.running,
            paused=manager.paused,
            observers=ctx.bus.observer_count,
        )


@router.get("/agents")
def list_agents(manager: EngineManager = Depends(get_engine_manager)) -> list[dict]:
    with manager.lock:
        ctx = manager.ctx
        return [AgentStore.serialize(a, ctx.minds.get(a.id)) for a in ctx.agents]


@router.get("/agents/{agent_id}")
def get_agent(agent_id: str, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        agent = require_agent(ctx, agent_id)
        tile = ctx.grid.get_tile(agent.tile_x, agent.tile_y)
        nearby = [
            {"id": a.id, "name": a.name, "x": a.tile_x, "y": a.tile_y}
            for a in ctx.grid.get_agents_nearby(ctx.agents, agent.tile_x, agent.tile_y, ctx.config.nearby_radius)
            if a.id != agent.id
        ]
        return {
            "agent": AgentStore.serialize(agent, ctx.minds.get(agent.id)),
            "tile": tile.to_dict() if tile else None,
            "resources": ctx.oracle.tile_resources(agent.tile_x, agent.tile_y),
            "nearby": nearby,
        }


@router.post("/spawn")
def spawn(body: SpawnRequest | None = None, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        agent = ctx.spawn_agent(body.name if body else None)
        return AgentStore.serialize(agent, ctx.minds.get(agent.id))


@router.post("/spawn-many")
def spawn_many(body: SpawnManyRequest, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    limit = manager.config.max_spawn_many
    if body.count > limit:
        raise InvalidInput(f"count must be between 1 and {limit}")
    with manager.lock:
        ctx = manager.ctx
        agents = [ctx.spawn_agent(f"{body.prefix}-{i + 1}") for i in range(body.count)]
        return {
            "spawned": len(agents),
            "agents": [AgentStore.serialize(a, ctx.minds.get(a.id)) for a in agents],
        }


@router.post("/agents/{agent_id}/walk")
def walk(agent_id: str, body: WalkRequest, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        agent = require_agent(ctx, agent_id)
        if not agent.alive:
            raise Conflict("Agent is dead")
        result = ctx.grid.walk_agent(agent, body.direction)
        if not result.ok:
            raise InvalidInput(result.error)
        ctx.emit({"type": "tick", "tick": ctx.tick, "agents": [AgentStore.delta(agent, ctx.minds.get(agent.id))]})
        return result.to_dict()


@router.post("/agents/{agent_id}/resurrect")
def resurrect_agent(agent_id: str, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        agent = require_agent(ctx, agent_id)
        if agent.alive:
            raise Conflict("Agent is already alive")
        resurrect(ctx, agent)
        return AgentStore.serialize(agent, ctx.minds.get(agent.id))


@router.get("/news")
def news(
    limit: int = Query(50, ge=1, le=200, description="Number of newest items"),
    manager: EngineManager = Depends(get_engine_manager),
) -> list[dict]:
    return [item.to_dict() for item in manager.ctx.news.latest(limit)]


@router.get("/weather")
def weather(manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        if ctx.weather is None:
            return {"weather": None}
        return ctx.weather.snapshot()
