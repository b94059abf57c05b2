"""Fight and build — actions resolved by the encounter table and the project board."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from oasis.core.errors import OasisError

if TYPE_CHECKING:
    from oasis.actions.base import ActionContext

logger = logging.getLogger(__name__)

FIGHT_XP = 8
BUILD_XP = 5


def execute_fight(ac: ActionContext) -> None:
    ctx, agent = ac.ctx, ac.agent
    if ctx.encounters is None:
        return
    zone = agent.zone.value
    encounter = ctx.encounters.check(agent)
    if encounter is None:
        ac.remember(f"Searched for a challenge in {zone} but found nothing")
        return

    result = ctx.encounters.resolve(agent, encounter)
    kind = encounter["type"]
    effects = ", ".join(result["effects"])
    if result["survived"]:
        ctx.award_xp(agent, FIGHT_XP)
        ac.remember(f"Fought a {kind} and survived! {effects}")
    else:
        ac.remember(f"Was defeated by a {kind}... {effects}")
    verb = "defeated" if result["survived"] else "was bested by"
    ctx.add_news("fight", f"{agent.name} {verb} a {kind} in {zone}", agent)
    ctx.emit({
        "type": "fight",
        "agentId": agent.id,
        "agentName": agent.name,
        "encounter": kind,
        "survived": result["survived"],
        "zone": zone,
    })
    ac.spend()


def execute_build(ac: ActionContext) -> None:
    ctx, agent = ac.ctx, ac.agent
    if ctx.projects is None:
        return
    projects = ctx.projects.in_zone(agent.zone)
    if projects:
        project = projects[0]
        for material, left in project.remaining().items():
            held = agent.find_item(material)
            if held is None:
                continue
            quantity = min(held.quantity, left)
            try:
                ctx.projects.contribute(agent, project.id, material, quantity)
            except OasisError as exc:
                logger.debug("%s could not contribute to %s: %s", agent.name, project.name, exc)
                break
            ctx.award_xp(agent, BUILD_XP)
            ac.remember(f"Contributed {quantity}x {material} to {project.name}")
            ctx.add_news("build", f"{agent.name} contributed {quantity}x {material} to {project.name}", agent)
            ctx.emit({
                "type": "build",
                "agentId": agent.id,
                "agentName": agent.name,
                "projectId": project.id,
                "projectName": project.name,
                "material": material,
                "quantity": quantity,
            })
            break
    ac.on_action("build")
    ac.spend()
