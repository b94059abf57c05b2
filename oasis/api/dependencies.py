"""FastAPI dependency injection — provides the EngineManager singleton."""

from __future__ import annotations

from typing import TYPE_CHECKING

from oasis.api.engine_manager import EngineManager
from oasis.core.errors import NotFound

if TYPE_CHECKING:
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

_engine_manager: EngineManager | None = None


def set_engine_manager(manager: EngineManager | None) -> None:
    global _engine_manager
    _engine_manager = manager


def get_engine_manager() -> EngineManager:
    if _engine_manager is None:
        raise RuntimeError("EngineManager not initialized — server not started correctly.")
    return _engine_manager


def require_agent(ctx: SimContext, agent_id: str) -> Agent:
    agent = ctx.agents.get(agent_id)
    if agent is None:
        raise NotFound("Agent not found")
    return agent
