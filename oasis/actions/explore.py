"""Explore — arrive somewhere new and take note of it."""

from __future__ import annotations

from typing import TYPE_CHECKING

from oasis.core.enums import Domain

if TYPE_CHECKING:
    from oasis.actions.base import ActionContext

EXPLORE_XP = 3
LORE_CHANCE = 0.1


def execute_explore(ac: ActionContext) -> None:
    ctx, agent = ac.ctx, ac.agent
    ctx.award_xp(agent, EXPLORE_XP)
    ac.on_action("explore")
    ctx.knowledge.track_zone_action(agent, agent.zone, "visit")
    if ac.roll(Domain.LORE) < LORE_CHANCE:
        ctx.knowledge.grant_random_lore(agent, salt=1)
    if ctx.achievements is not None:
        ctx.achievements.record(agent, "discover_tile")
    ac.remember(f"Explored new ground in the {agent.zone.value}")
    ac.spend()
