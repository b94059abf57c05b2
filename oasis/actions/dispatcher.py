"""Action dispatch — one executor per ActionKind."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from oasis.actions.base import ActionContext
from oasis.actions.craft import execute_craft, execute_experiment
from oasis.actions.explore import execute_explore
from oasis.actions.external import execute_build, execute_fight
from oasis.actions.gather import execute_gather
from oasis.actions.rest import execute_eat, execute_rest
from oasis.actions.social import execute_chat, execute_gift
from oasis.core.enums import ActionKind

if TYPE_CHECKING:
    from oasis.core.mind import Mind
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

Executor = Callable[[ActionContext], None]

EXECUTORS: dict[ActionKind, Executor] = {
    ActionKind.GATHER: execute_gather,
    ActionKind.REST: execute_rest,
    ActionKind.EXPLORE: execute_explore,
    ActionKind.CHAT: execute_chat,
    ActionKind.GIFT: execute_gift,
    ActionKind.CRAFT: execute_craft,
    ActionKind.EXPERIMENT: execute_experiment,
    ActionKind.EAT: execute_eat,
    ActionKind.FIGHT: execute_fight,
    ActionKind.BUILD: execute_build,
}


def execute(ctx: SimContext, agent: Agent, mind: Mind, action: ActionKind) -> None:
    """Run *action* for *agent* on its current tile."""
    mind.current_action = action.value
    EXECUTORS[action](ActionContext(ctx, agent, mind, action))
