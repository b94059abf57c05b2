"""Chat and gift — the two actions aimed at a neighbour."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from oasis.core.enums import Domain, KnowledgeType
from oasis.core.errors import OasisError

if TYPE_CHECKING:
    from oasis.actions.base import ActionContext
    from oasis.core.models import Agent, Item

logger = logging.getLogger(__name__)

CHAT_RELATIONSHIP = 1
CHAT_TEACH_CHANCE = 0.15
CHAT_TRADE_CHANCE = 0.2

GIFT_GIVER_RELATIONSHIP = 8
GIFT_RECEIVER_RELATIONSHIP = 10
GIFT_XP = 3


def _bond(ac: ActionContext, other: Agent, giver_delta: int, receiver_delta: int) -> None:
    """Bump both sides, on the agents and on their minds."""
    ctx, agent = ac.ctx, ac.agent
    cap = ctx.config.relationship_cap
    agent.bump_relationship(other.id, giver_delta, cap)
    other.bump_relationship(agent.id, receiver_delta, cap)
    ac.mind.bump_relationship(other.id, other.name, giver_delta, cap)
    ctx.minds.ensure_mind(other.id, other.name).bump_relationship(agent.id, agent.name, receiver_delta, cap)
    ctx.minds.schedule_save()


def execute_chat(ac: ActionContext) -> None:
    ctx, agent = ac.ctx, ac.agent
    nearby = ac.nearby(ctx.config.chat_radius)
    if not nearby:
        return
    other = ac.pick(Domain.CHAT, nearby)
    _bond(ac, other, CHAT_RELATIONSHIP, CHAT_RELATIONSHIP)

    if ac.roll(Domain.LORE, 2) < CHAT_TEACH_CHANCE:
        try:
            ctx.knowledge.teach(agent, other.id, KnowledgeType.LORE, None)
        except OasisError as exc:
            logger.debug("%s could not teach %s: %s", agent.name, other.name, exc)

    if ctx.npc_social is not None and ac.roll(Domain.TRADE, 10) < CHAT_TRADE_CHANCE:
        ctx.npc_social.trade(agent, other)

    ac.on_action("chat")
    ac.remember(f"Chatted with {other.name}")
    ctx.add_news("chat", f"{agent.name} and {other.name} had a conversation", agent)
    ctx.emit({
        "type": "chat",
        "agentId": agent.id,
        "agentName": agent.name,
        "otherId": other.id,
        "otherName": other.name,
        "zone": agent.zone.value,
    })
    ac.spend()


def hand_over(item: Item, giver: Agent, receiver: Agent, cap: int) -> bool:
    """Move one unit of *item*. False (and nothing moved) when the receiver has no room."""
    if item.is_stackable:
        if not receiver.stack_item(item.name, cap, template=item):
            return False
    else:
        if len(receiver.inventory) >= cap:
            return False
        receiver.inventory.append(item.split_off() if item.quantity > 1 else item)
    giver.take_one(item)
    return True


def execute_gift(ac: ActionContext) -> None:
    ctx, agent = ac.ctx, ac.agent
    nearby = ac.nearby(ctx.config.chat_radius)
    if not nearby or not agent.inventory:
        return
    other = ac.pick(Domain.GIFT, nearby)
    dupes = [i for i in agent.inventory if i.quantity > 1]
    item = ac.pick(Domain.GIFT, dupes or agent.inventory, salt=1)
    if not hand_over(item, agent, other, ctx.config.inventory_cap):
        ac.remember(f"Wanted to give {item.name} to {other.name} but their pack was full")
        return

    _bond(ac, other, GIFT_GIVER_RELATIONSHIP, GIFT_RECEIVER_RELATIONSHIP)
    ctx.award_xp(agent, GIFT_XP)
    ac.remember(f"Gave {item.name} to {other.name}")
    ctx.add_news("gift", f"{agent.name} gave {item.name} to {other.name}", agent)
    ctx.emit({
        "type": "gift",
        "agentId": agent.id,
        "agentName": agent.name,
        "otherId": other.id,
        "otherName": other.name,
        "item": item.name,
        "zone": agent.zone.value,
    })
    ac.spend()
