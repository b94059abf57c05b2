"""Agent-to-agent trading of surplus items."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from oasis.core.enums import Domain

if TYPE_CHECKING:
    from oasis.core.models import Agent, Item
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)

PRICE_RANGE = (8, 22)
TRADE_RELATIONSHIP = 2


class TradeBroker:
    """Sells one surplus unit to a neighbour, or barters when the buyer is broke."""

    def __init__(self, ctx: SimContext) -> None:
        self._ctx = ctx

    def _pick(self, items: list[Item], agent_id: str, salt: int) -> Item | None:
        if not items:
            return None
        return items[int(self._ctx.roll(Domain.TRADE, agent_id, salt) * len(items))]

    def trade(self, agent: Agent, other: Agent) -> dict[str, Any] | None:
        ctx = self._ctx
        cap = ctx.config.inventory_cap
        if agent.id == other.id or not other.alive:
            return None
        item = self._pick([i for i in agent.inventory if i.quantity > 1], agent.id, 0)
        if item is None:
            return None

        lo, hi = PRICE_RANGE
        price = lo + int(ctx.roll(Domain.TRADE, agent.id, 1) * (hi - lo + 1))
        if other.coins >= price:
            if not other.stack_item(item.name, cap, template=item):
                return None
            agent.take_one(item)
            other.coins -= price
            agent.coins += price
            result = {"kind": "sale", "seller": agent.name, "buyer": other.name, "item": item.name, "price": price}
            message = f"{agent.name} sold {item.name} to {other.name} for {price} coins"
            if ctx.achievements is not None:
                ctx.achievements.record(agent, "trade_earn", price)
        else:
            offer = self._pick(
                [i for i in other.inventory if i.quantity > 1 and i.name != item.name],
                other.id, 2,
            )
            if offer is None:
                return None
            if not other.stack_item(item.name, cap, template=item):
                return None
            if not agent.stack_item(offer.name, cap, template=offer):
                other.take_one(other.find_item(item.name))
                return None
            agent.take_one(item)
            other.take_one(offer)
            result = {"kind": "barter", "seller": agent.name, "buyer": other.name, "item": item.name, "received": offer.name}
            message = f"{agent.name} traded {item.name} to {other.name} for {offer.name}"

        relationship_cap = ctx.config.relationship_cap
        agent.bump_relationship(other.id, TRADE_RELATIONSHIP, relationship_cap)
        other.bump_relationship(agent.id, TRADE_RELATIONSHIP, relationship_cap)
        ctx.knowledge.track_zone_action(agent, agent.zone, "trade")
        if ctx.proficiency is not None:
            ctx.proficiency.on_action(agent, "trade", agent.zone)
        ctx.add_news("npc_trade", message, agent)
        ctx.emit({"type": "npcTrade", **result})
        logger.debug(message)
        return result
