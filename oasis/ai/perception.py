"""Perception — what an agent can see from its tile this tick.

Perception is read-only: it never writes to the mind, and the brain calls
it at most once per agent per tick. Distances are Chebyshev.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from oasis.core.grid import chebyshev

if TYPE_CHECKING:
    from oasis.core.enums import Zone
    from oasis.core.mind import Mind
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

UNKNOWN_ZONE_VISITS = 3


@dataclass(slots=True)
class SeenResource:
    x: int
    y: int
    resource: str
    source: str
    distance: int


@dataclass(slots=True)
class SeenAgent:
    agent: Agent
    distance: int
    relationship: int


@dataclass(slots=True)
class SeenZone:
    x: int
    y: int
    zone: Zone
    distance: int


@dataclass(slots=True)
class SeenDanger:
    x: int
    y: int
    danger: dict[str, Any]
    distance: int


@dataclass(slots=True)
class SeenProject:
    x: int
    y: int
    project: Any
    distance: int


@dataclass(slots=True)
class Visible:
    resources: list[SeenResource] = field(default_factory=list)
    agents: list[SeenAgent] = field(default_factory=list)
    unknown_zones: list[SeenZone] = field(default_factory=list)
    dangers: list[SeenDanger] = field(default_factory=list)
    projects: list[SeenProject] = field(default_factory=list)


def perceive(ctx: SimContext, agent: Agent, mind: Mind, vision_range: int | None = None) -> Visible:
    """Scan the (2R+1)² box around *agent*, clipped to the grid."""
    grid = ctx.grid
    oracle = ctx.oracle
    r = ctx.config.vision_range if vision_range is None else vision_range
    ax, ay = agent.tile_x, agent.tile_y
    visible = Visible()

    min_x, max_x = max(0, ax - r), min(grid.width - 1, ax + r)
    min_y, max_y = max(0, ay - r), min(grid.height - 1, ay + r)
    seen_zones: set[Zone] = set()
    visited = mind.memory.visited

    for x in range(min_x, max_x + 1):
        for y in range(min_y, max_y + 1):
            d = chebyshev(ax, ay, x, y)
            table = oracle.table_at(x, y)
            zone = grid.get_zone(x, y)
            if table is not None:
                visible.resources.append(SeenResource(x, y, table.resources[0], zone.value, d))
            if zone not in seen_zones:
                seen_zones.add(zone)
                if visited.get(zone.value, 0) < UNKNOWN_ZONE_VISITS:
                    visible.unknown_zones.append(SeenZone(x, y, zone, d))

    for other in ctx.agents:
        if other.id == agent.id or not other.alive:
            continue
        d = chebyshev(ax, ay, other.tile_x, other.tile_y)
        if d <= r:
            visible.agents.append(SeenAgent(other, d, mind.relationship_score(other.id)))

    # Dangers and projects are zone-wide; they sit on the observer's own tile.
    if ctx.world_master is not None:
        for danger in ctx.world_master.dangers_for(agent.zone):
            visible.dangers.append(SeenDanger(ax, ay, danger, 0))

    if ctx.projects is not None:
        for project in ctx.projects.in_zone(agent.zone):
            visible.projects.append(SeenProject(ax, ay, project, 0))

    return visible
