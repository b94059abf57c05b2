"""Knowledge transfer: teaching, scrolls and the forest library."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from oasis.api.dependencies import get_engine_manager, require_agent
from oasis.api.engine_manager import EngineManager
from oasis.api.schemas import InscribeRequest, ReadScrollRequest, TeachRequest, WriteBookRequest

router = APIRouter()


@router.get("/agents/{agent_id}/knowledge")
def knowledge(agent_id: str, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        agent = require_agent(ctx, agent_id)
        return ctx.knowledge.summary(agent.id)


@router.post("/agents/{agent_id}/teach")
def teach(agent_id: str, body: TeachRequest, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        teacher = require_agent(ctx, agent_id)
        return ctx.knowledge.teach(teacher, body.student_id, body.knowledge_type, body.knowledge_key)


@router.post("/agents/{agent_id}/inscribe")
def inscribe(agent_id: str, body: InscribeRequest, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        agent = require_agent(ctx, agent_id)
        return ctx.knowledge.inscribe(agent, body.knowledge_type, body.knowledge_key)


@router.post("/agents/{agent_id}/read-scroll")
def read_scroll(agent_id: str, body: ReadScrollRequest, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        agent = require_agent(ctx, agent_id)
        return ctx.knowledge.read_scroll(agent, body.scroll_id)


@router.get("/library")
def library(manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        books = manager.ctx.knowledge.books
    return {"books": books, "count": len(books)}


@router.post("/agents/{agent_id}/books")
def write_book(agent_id: str, body: WriteBookRequest, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        agent = require_agent(ctx, agent_id)
        return ctx.knowledge.write_book(agent, body.title, body.knowledge_type, body.content)


@router.post("/agents/{agent_id}/books/{book_id}/read")
def read_book(agent_id: str, book_id: str, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    with manager.lock:
        ctx = manager.ctx
        agent = require_agent(ctx, agent_id)
        return ctx.knowledge.read_book(agent, book_id)
