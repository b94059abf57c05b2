"""Greedy single-step movement toward an intent target.

No search: each tick the agent tries the diagonal toward the target, then
the two cardinals. When none of them is walkable the agent is stuck and the
brain abandons its intent.

Usage:
    executor = PathExecutor(grid, move_energy_floor=5)
    outcome = executor.move_toward(agent, mind, tx, ty)
"""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from oasis.core.grid import TileGrid
    from oasis.core.mind import Mind
    from oasis.core.models import Agent


class StepOutcome(str, Enum):
    MOVED = "moved"
    ARRIVED = "arrived"
    NO_BUDGET = "no_budget"
    STUCK = "stuck"


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def step_candidates(ax: int, ay: int, tx: int, ty: int) -> list[tuple[int, int]]:
    """Diagonal first (when both axes differ), then the cardinals."""
    dx, dy = _sign(tx - ax), _sign(ty - ay)
    out = []
    if dx and dy:
        out.append((dx, dy))
    if dx:
        out.append((dx, 0))
    if dy:
        out.append((0, dy))
    return out


class PathExecutor:
    __slots__ = ("_grid", "_floor")

    def __init__(self, grid: TileGrid, move_energy_floor: float = 5.0) -> None:
        self._grid = grid
        self._floor = move_energy_floor

    def budget(self, agent: Agent) -> int:
        return 1 if agent.energy > self._floor else 0

    def step_toward(self, agent: Agent, mind: Mind, tx: int, ty: int) -> bool:
        grid = self._grid
        for mx, my in step_candidates(agent.tile_x, agent.tile_y, tx, ty):
            nx, ny = agent.tile_x + mx, agent.tile_y + my
            if not grid.is_walkable(nx, ny):
                continue
            zone = grid.get_zone(nx, ny)
            if not math.isfinite(grid.terrain_cost(zone)):
                continue
            agent.tile_x, agent.tile_y, agent.zone = nx, ny, zone
            visited = mind.memory.visited
            visited[zone.value] = visited.get(zone.value, 0) + 1
            return True
        return False

    def move_toward(self, agent: Agent, mind: Mind, tx: int, ty: int) -> StepOutcome:
        """Spend this tick's movement budget; records the path in ``mind.path_this_tick``."""
        if agent.tile_x == tx and agent.tile_y == ty:
            return StepOutcome.ARRIVED
        path: list[tuple[int, int]] = []
        for _ in range(self.budget(agent)):
            if agent.tile_x == tx and agent.tile_y == ty:
                break
            if not self.step_toward(agent, mind, tx, ty):
                break
            path.append((agent.tile_x, agent.tile_y))
        mind.path_this_tick = path or None
        if path:
            return StepOutcome.MOVED
        return StepOutcome.NO_BUDGET if self.budget(agent) == 0 else StepOutcome.STUCK
