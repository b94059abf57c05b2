"""API route modules, mounted under ``/api``."""

from fastapi import APIRouter

from oasis.api.routes.control import router as control_router
from oasis.api.routes.knowledge import router as knowledge_router
from oasis.api.routes.mind import router as mind_router
from oasis.api.routes.projects import router as projects_router
from oasis.api.routes.state import router as state_router
from oasis.api.routes.world import router as world_router

api_router = APIRouter(prefix="/api")
api_router.include_router(state_router, tags=["State"])
api_router.include_router(world_router, tags=["World"])
api_router.include_router(mind_router, tags=["Mind"])
api_router.include_router(knowledge_router, tags=["Knowledge"])
api_router.include_router(projects_router, tags=["Projects"])
api_router.include_router(control_router, tags=["Control"])

__all__ = ["api_router"]
