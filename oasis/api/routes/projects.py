"""Collective building projects."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from oasis.api.dependencies import get_engine_manager, require_agent
from oasis.api.engine_manager import EngineManager
from oasis.api.schemas import ContributeRequest, ProposeProjectRequest

router = APIRouter()


def _board(manager: EngineManager):
    board = manager.ctx.projects
    if board is None:
        raise HTTPException(status_code=404, detail="Projects are disabled")
    return board


@router.get("/projects")
def list_projects(manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        if manager.ctx.projects is None:
            return {"projects": []}
        return {"projects": manager.ctx.projects.all()}


@router.post("/agents/{agent_id}/projects")
def propose(agent_id: str, body: ProposeProjectRequest, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        board = _board(manager)
        agent = require_agent(manager.ctx, agent_id)
        project = board.propose(agent, body.project_type, body.zone)
        return {"ok": True, "project": project.to_dict()}


@router.post("/agents/{agent_id}/projects/{project_id}/contribute")
def contribute(
    agent_id: str,
    project_id: str,
    body: ContributeRequest,
    manager: EngineManager = Depends(get_engine_manager),
) -> dict:
    with manager.lock:
        board = _board(manager)
        agent = require_agent(manager.ctx, agent_id)
        return board.contribute(agent, project_id, body.material, body.quantity)
