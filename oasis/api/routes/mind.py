"""An agent's inner life: mind, goals, memories and progression."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from oasis.api.dependencies import get_engine_manager, require_agent
from oasis.api.engine_manager import EngineManager

router = APIRouter()

RECENT_MEMORIES = 10


@router.get("/agents/{agent_id}/mind")
def mind(agent_id: str, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        agent = require_agent(ctx, agent_id)
        m = ctx.minds.ensure_mind(agent.id, agent.name)
        return {
            "agentId": agent.id,
            "name": agent.name,
            "personality": m.personality.to_dict(),
            "mood": m.mood,
            "currentAction": m.current_action,
            "intent": m.intent.to_dict() if m.intent else None,
            "goals": [g.to_dict() for g in m.goals],
            "memories": [e.to_dict() for e in m.memory.short[-RECENT_MEMORIES:]],
            "lessons": list(m.memory.lessons),
            "relationships": {k: r.to_dict() for k, r in m.relationships.items()},
            "journal": list(m.journal),
        }


@router.get("/agents/{agent_id}/progress")
def progress(agent_id: str, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        agent = require_agent(ctx, agent_id)
        return {
            "level": agent.stats.level,
            "xp": agent.stats.xp,
            "title": agent.stats.title,
            "achievements": ctx.achievements.progress(agent) if ctx.achievements else [],
            "proficiency": ctx.proficiency.summary(agent) if ctx.proficiency else {},
        }
