"""Built-in IntentScorer implementations.

Each class is a self-contained scoring unit that returns candidates with
their base score (trait bias included). Time, weather and temperament
modifiers are applied afterwards by the IntentEvaluator. To add a new
intent:
  1. Create a new IntentScorer subclass here (or in a separate file).
  2. Register it in ``registry.py``.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from oasis.ai.intents.base import IntentCandidate, IntentScorer
from oasis.core.enums import ActionKind, Direction
from oasis.core.grid import chebyshev, js_round
from oasis.core.resources import is_food_resource

if TYPE_CHECKING:
    from oasis.ai.intents.base import ScoringContext
    from oasis.core.models import Agent

# Retarget order for resources on non-walkable tiles.
NEIGHBOUR_ORDER: tuple[tuple[int, int], ...] = (
    (-1, 0), (1, 0), (0, -1), (0, 1), (-1, -1), (-1, 1), (1, -1), (1, 1),
)

FLEE_DIRECTIONS: tuple[tuple[int, int], ...] = tuple(d.delta for d in Direction)

WANDER_ZONE_LIMIT = 20
FLEE_DISTANCE = 8


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def has_food(agent: Agent) -> bool:
    return any(is_food_resource(i.name) for i in agent.inventory)


def _gather_target(sc: ScoringContext, x: int, y: int) -> tuple[int, int]:
    """The resource tile itself, or its walkable neighbour nearest the agent."""
    grid = sc.ctx.grid
    if grid.is_walkable(x, y):
        return x, y
    agent = sc.agent
    best, target = math.inf, (x, y)
    for dx, dy in NEIGHBOUR_ORDER:
        nx, ny = x + dx, y + dy
        if grid.is_walkable(nx, ny):
            d = chebyshev(agent.tile_x, agent.tile_y, nx, ny)
            if d < best:
                best, target = d, (nx, ny)
    return target


def _here(sc: ScoringContext, action: ActionKind, score: float, reason: str) -> IntentCandidate:
    return IntentCandidate(action, score, sc.agent.tile_x, sc.agent.tile_y, reason)


# ---------------------------------------------------------------------------
# Gather: one candidate per visible resource tile
# ---------------------------------------------------------------------------

class GatherIntent(IntentScorer):

    @property
    def name(self) -> str:
        return "gather"

    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        agent = sc.agent
        base = 20 + sc.trait("gather")
        out = []
        for res in sc.visible.resources:
            score = base
            if is_food_resource(res.resource):
                if agent.hunger > 50:
                    score += 40
                if agent.hunger > 70:
                    score += 20
            score -= res.distance * 2
            tx, ty = _gather_target(sc, res.x, res.y)
            source = res.source.replace("_", " ")
            out.append(IntentCandidate(
                ActionKind.GATHER, score, tx, ty,
                f"Gather {res.resource} from {source}",
                gather_x=res.x, gather_y=res.y,
            ))
        return out


# ---------------------------------------------------------------------------
# Social: chat with anyone visible, gift to friends
# ---------------------------------------------------------------------------

class ChatIntent(IntentScorer):

    @property
    def name(self) -> str:
        return "chat"

    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        base = 15 + sc.trait("chat")
        out = []
        for seen in sc.visible.agents:
            score = base
            if seen.relationship >= 10:
                score += 20
            if seen.relationship <= -5:
                score -= 30
            score -= seen.distance * 2
            other = seen.agent
            out.append(IntentCandidate(
                ActionKind.CHAT, score, other.tile_x, other.tile_y, f"Talk to {other.name}",
            ))
        return out


class GiftIntent(IntentScorer):

    @property
    def name(self) -> str:
        return "gift"

    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        if not sc.agent.inventory:
            return []
        base = 10 + sc.trait("gift")
        out = []
        for seen in sc.visible.agents:
            if seen.relationship < 5:
                continue
            other = seen.agent
            score = base + seen.relationship - seen.distance * 2
            out.append(IntentCandidate(
                ActionKind.GIFT, score, other.tile_x, other.tile_y, f"Gift to {other.name}",
            ))
        return out


# ---------------------------------------------------------------------------
# Explore: unknown zones in sight, or a random far target
# ---------------------------------------------------------------------------

class ExploreIntent(IntentScorer):

    @property
    def name(self) -> str:
        return "explore"

    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        base = 15 + sc.trait("explore")
        return [
            IntentCandidate(ActionKind.EXPLORE, base - z.distance, z.x, z.y, f"Explore {z.zone.value}")
            for z in sc.visible.unknown_zones
        ]


class WanderIntent(IntentScorer):
    """A polar jump of 10-29 tiles when nothing new is in sight."""

    @property
    def name(self) -> str:
        return "wander"

    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        if sc.visible.unknown_zones or len(sc.mind.memory.visited) >= WANDER_ZONE_LIMIT:
            return []
        agent = sc.agent
        angle = sc.roll(0) * math.pi * 2
        reach = 10 + math.floor(sc.roll(1) * 20)
        tx, ty = sc.clamp(
            agent.tile_x + js_round(math.cos(angle) * reach),
            agent.tile_y + js_round(math.sin(angle) * reach),
        )
        return [IntentCandidate(
            ActionKind.EXPLORE, 10 + sc.trait("explore"), tx, ty, "Wander to new territory",
        )]


# ---------------------------------------------------------------------------
# Self-care: rest and eat
# ---------------------------------------------------------------------------

class RestIntent(IntentScorer):

    @property
    def name(self) -> str:
        return "rest"

    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        energy = sc.agent.energy
        if energy < 30:
            return [_here(sc, ActionKind.REST, 60 + (30 - energy), "Need rest")]
        if energy < 50:
            return [_here(sc, ActionKind.REST, 20 + sc.trait("rest"), "Feeling tired")]
        return []


class EatIntent(IntentScorer):

    @property
    def name(self) -> str:
        return "eat"

    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        agent = sc.agent
        if agent.hunger <= 40 or not has_food(agent):
            return []
        return [_here(sc, ActionKind.EAT, 50 + agent.hunger, "Eating")]


# ---------------------------------------------------------------------------
# Making: craft and experiment
# ---------------------------------------------------------------------------

class CraftIntent(IntentScorer):

    @property
    def name(self) -> str:
        return "craft"

    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        count = len(sc.agent.inventory)
        if count < 2:
            return []
        score = 15 + sc.trait("craft")
        if count > 15:
            score += 20
        return [_here(sc, ActionKind.CRAFT, score, "Craft something")]


class ExperimentIntent(IntentScorer):

    @property
    def name(self) -> str:
        return "experiment"

    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        if sc.ctx.experiments is None or len(sc.agent.inventory) < 2:
            return []
        return [_here(sc, ActionKind.EXPERIMENT, 10 + sc.trait("experiment"), "Experiment with materials")]


# ---------------------------------------------------------------------------
# External: build, fight, flee
# ---------------------------------------------------------------------------

class BuildIntent(IntentScorer):

    @property
    def name(self) -> str:
        return "build"

    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        agent = sc.agent
        base = 20 + sc.trait("build")
        out = []
        for seen in sc.visible.projects:
            project = seen.project
            can_contribute = any(agent.find_item(m) is not None for m in project.remaining())
            score = base + (25 if can_contribute else -15) - seen.distance * 2
            out.append(IntentCandidate(ActionKind.BUILD, score, seen.x, seen.y, f"Build {project.name}"))
        return out


class FightIntent(IntentScorer):
    MIN_SCORE = 10

    @property
    def name(self) -> str:
        return "fight"

    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        if sc.ctx.encounters is None:
            return []
        score = 5 + sc.trait("fight")
        if sc.agent.energy > 60:
            score += 10
        if score <= self.MIN_SCORE:
            return []
        return [_here(sc, ActionKind.FIGHT, score, "Seek a challenge")]


class FleeIntent(IntentScorer):
    """An explore intent 8 tiles away from each visible danger."""

    @property
    def name(self) -> str:
        return "flee"

    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        agent, mind = sc.agent, sc.mind
        out = []
        for i, seen in enumerate(sc.visible.dangers):
            score = 50
            if mind.has_trait("cautious"):
                score += 30
            if mind.has_trait("bold"):
                score -= 20
            dx, dy = _sign(agent.tile_x - seen.x), _sign(agent.tile_y - seen.y)
            if dx == 0 and dy == 0:
                # zone-wide danger on our own tile: pick a compass heading
                dx, dy = FLEE_DIRECTIONS[int(sc.roll(10 + i) * len(FLEE_DIRECTIONS))]
            tx, ty = sc.clamp(agent.tile_x + dx * FLEE_DISTANCE, agent.tile_y + dy * FLEE_DISTANCE)
            out.append(IntentCandidate(ActionKind.EXPLORE, score, tx, ty, "Fleeing danger!"))
        return out
