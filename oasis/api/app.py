"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from oasis.api.dependencies import set_engine_manager
from oasis.api.engine_manager import EngineManager
from oasis.api.routes import api_router
from oasis.api.routes.world import MAX_AREA_RADIUS, area_tiles
from oasis.config import SimulationConfig
from oasis.core.agent_store import AgentStore
from oasis.core.errors import OasisError
from oasis.utils.broadcast import Observer
from oasis.utils.logging import setup_logging

logger = logging.getLogger(__name__)

INIT_NEWS = 20
DEFAULT_AREA_RADIUS = 10


def create_app(config: SimulationConfig | None = None, *, autostart: bool = True) -> FastAPI:
    """Build and return the fully-configured FastAPI application.

    ``autostart=False`` builds the world but leaves the engine thread
    stopped; ticks then only advance through ``/api/control/step``.
    """
    if config is None:
        config = SimulationConfig()

    _config = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(_config.log_level)
        manager = EngineManager(_config)
        app.state.manager = manager
        set_engine_manager(manager)
        if autostart:
            manager.start()
        logger.info("API server started — simulation %s.", "running" if autostart else "idle")
        yield
        manager.stop()
        set_engine_manager(None)
        logger.info("API server shutting down.")

    app = FastAPI(
        title="The Oasis",
        description=(
            "Autonomous agents surviving, learning and building on a tile world.\n\n"
            "## API Groups\n\n"
            "- **State** — status, agents, spawning, news, weather\n"
            "- **World** — static grid data: tiles and area scans\n"
            "- **Mind** — an agent's personality, memories and progression\n"
            "- **Knowledge** — teaching, scrolls and the library\n"
            "- **Projects** — collective building projects\n"
            "- **Control** — simulation lifecycle\n"
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS: allow any origin in dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(OasisError)
    async def oasis_error_handler(request: Request, exc: OasisError) -> JSONResponse:
        return JSONResponse(status_code=exc.status, content={"error": str(exc)})

    app.include_router(api_router)

    @app.websocket("/ws")
    async def observe(websocket: WebSocket) -> None:
        manager: EngineManager = websocket.app.state.manager
        await websocket.accept()
        observer = manager.ctx.bus.subscribe(asyncio.get_running_loop())
        try:
            await websocket.send_json(await run_in_threadpool(_init_message, manager))
            sender = asyncio.create_task(_pump(websocket, observer))
            receiver = asyncio.create_task(_serve_requests(websocket, manager))
            done, pending = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
            for task in done:
                exc = task.exception()
                if exc is not None and not isinstance(exc, WebSocketDisconnect):
                    raise exc
        except WebSocketDisconnect:
            pass
        finally:
            manager.ctx.bus.unsubscribe(observer)

    return app


# ---------------------------------------------------------------------------
# WebSocket helpers
# ---------------------------------------------------------------------------

def _init_message(manager: EngineManager) -> dict[str, Any]:
    with manager.lock:
        ctx = manager.ctx
        return {
            "type": "init",
            "tick": ctx.tick,
            "gameTime": ctx.game_time().to_dict(),
            "world": ctx.grid.world_info(),
            "agents": [AgentStore.serialize(a, ctx.minds.get(a.id)) for a in ctx.agents],
            "news": [n.to_dict() for n in ctx.news.latest(INIT_NEWS)],
        }


def _area_message(manager: EngineManager, x: int, y: int, radius: int) -> dict[str, Any]:
    with manager.lock:
        tiles = area_tiles(manager.ctx, x, y, radius)
    return {"type": "area", "x": x, "y": y, "radius": radius, "tiles": tiles}


async def _pump(websocket: WebSocket, observer: Observer) -> None:
    while True:
        message = await observer.queue.get()
        await websocket.send_json(message)


async def _serve_requests(websocket: WebSocket, manager: EngineManager) -> None:
    while True:
        request = await websocket.receive_json()
        if not isinstance(request, dict) or request.get("type") != "get_area":
            continue
        try:
            x, y = int(request["x"]), int(request["y"])
            radius = int(request.get("radius", DEFAULT_AREA_RADIUS))
        except (KeyError, TypeError, ValueError):
            await websocket.send_json({"type": "error", "error": "get_area needs integer x and y"})
            continue
        radius = max(0, min(radius, MAX_AREA_RADIUS))
        await websocket.send_json(await run_in_threadpool(_area_message, manager, x, y, radius))
