"""Static grid data: world info, single tiles and area scans."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, HTTPException

from oasis.api.dependencies import get_engine_manager
from oasis.api.engine_manager import EngineManager

if TYPE_CHECKING:
    from oasis.engine.context import SimContext

router = APIRouter()

MAX_AREA_RADIUS = 20


def area_tiles(ctx: SimContext, x: int, y: int, radius: int) -> list[dict[str, Any]]:
    """Tiles inside the Euclidean disc, each with its resource table."""
    out = []
    for tile in ctx.grid.get_tiles_in_radius(x, y, radius):
        data = tile.to_dict()
        data["resources"] = ctx.oracle.tile_resources(tile.x, tile.y)
        out.append(data)
    return out


@router.get("/world")
def world_info(manager: EngineManager = Depends(get_engine_manager)) -> dict:
    return manager.ctx.grid.world_info()


@router.get("/world/tile/{x}/{y}")
def tile(x: int, y: int, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    ctx = manager.ctx
    found = ctx.grid.get_tile(x, y)
    if found is None:
        raise HTTPException(status_code=404, detail="Tile out of bounds")
    data = found.to_dict()
    data["resources"] = ctx.oracle.tile_resources(x, y)
    return data


@router.get("/world/area/{x}/{y}/{r}")
def area(x: int, y: int, r: int, manager: EngineManager = Depends(get_engine_manager)) -> dict:
    if r < 0 or r > MAX_AREA_RADIUS:
        raise HTTPException(status_code=400, detail=f"Radius must be between 0 and {MAX_AREA_RADIUS}")
    return {"x": x, "y": y, "radius": r, "tiles": area_tiles(manager.ctx, x, y, r)}
