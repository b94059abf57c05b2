"""Gather — roll one resource from the target tile into the inventory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from oasis.core.enums import Domain

if TYPE_CHECKING:
    from oasis.actions.base import ActionContext

logger = logging.getLogger(__name__)

GATHER_XP = 2


def execute_gather(ac: ActionContext) -> None:
    ctx, agent, mind = ac.ctx, ac.agent, ac.mind
    intent = mind.intent
    gx, gy = agent.tile_x, agent.tile_y
    if intent is not None and intent.gather_x is not None:
        gx, gy = intent.gather_x, intent.gather_y

    source_zone = ctx.grid.get_zone(gx, gy)
    if ctx.ecosystem is not None and ctx.ecosystem.exhausted(source_zone):
        ac.remember(f"Found nothing to gather, the {source_zone.value} is picked clean")
        return

    resource = ctx.oracle.roll_resource(gx, gy, ac.roll(Domain.RESOURCE))
    if resource is None:
        return
    if not agent.stack_item(resource, ctx.config.inventory_cap):
        logger.debug("%s has no room for %s", agent.name, resource)
        ac.spend()
        return

    gathered = mind.memory.gathered
    gathered[resource] = gathered.get(resource, 0) + 1
    ctx.award_xp(agent, GATHER_XP)
    ac.on_action("gather", resource)
    ctx.knowledge.track_zone_action(agent, agent.zone, "gather")
    if ctx.ecosystem is not None:
        ctx.ecosystem.record_harvest(source_zone)
    ac.remember(f"Gathered {resource} in the {agent.zone.value}")
    ac.spend()
