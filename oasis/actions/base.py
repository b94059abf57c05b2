"""Action context — the bundle an executor works on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from oasis.core.enums import ActionKind
from oasis.core.grid import chebyshev

if TYPE_CHECKING:
    from oasis.core.enums import Domain
    from oasis.core.mind import Mind
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

# Energy spent per executed action. Rest and eat restore energy in their executors instead.
ACTION_ENERGY: dict[ActionKind, float] = {
    ActionKind.GATHER: 1.5,
    ActionKind.CRAFT: 2,
    ActionKind.EXPLORE: 0.5,
    ActionKind.CHAT: 0.3,
    ActionKind.GIFT: 0.3,
    ActionKind.EXPERIMENT: 3,
    ActionKind.FIGHT: 2,
    ActionKind.BUILD: 3,
}

MAX_NEIGHBOURS = 8


@dataclass(slots=True)
class ActionContext:
    """One agent executing one action on the current tick."""

    ctx: SimContext
    agent: Agent
    mind: Mind
    action: ActionKind

    def roll(self, domain: Domain, salt: int = 0) -> float:
        return self.ctx.roll(domain, self.agent.id, salt)

    def pick(self, domain: Domain, pool: list, salt: int = 0):
        return pool[min(len(pool) - 1, int(self.roll(domain, salt) * len(pool)))]

    def remember(self, text: str) -> None:
        self.mind.remember(self.ctx.tick, text)
        self.ctx.minds.schedule_save()

    def spend(self) -> None:
        self.agent.spend_energy(ACTION_ENERGY.get(self.action, 0))

    def nearby(self, radius: int) -> list[Agent]:
        """Other live agents within Chebyshev *radius*, at most eight."""
        agent = self.agent
        out = []
        for other in self.ctx.agents:
            if other.id == agent.id or not other.alive:
                continue
            if chebyshev(agent.tile_x, agent.tile_y, other.tile_x, other.tile_y) <= radius:
                out.append(other)
                if len(out) == MAX_NEIGHBOURS:
                    break
        return out

    def on_action(self, name: str, item: str | None = None) -> None:
        if self.ctx.proficiency is not None:
            self.ctx.proficiency.on_action(self.agent, name, self.agent.zone, item)
