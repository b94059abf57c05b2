"""Base classes for the intent scoring plugin system.

IntentScorer    — Abstract base class; subclass and implement `candidates()`.
IntentCandidate — A scored (action, target, reason) ready for selection.
IntentEvaluator — Runs registered scorers, applies time/weather and
                  temperament modifiers, sorts, selects.
INTENT_REGISTRY — Module-level list where scorers are registered.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from oasis.core.enums import ActionKind, Domain, WeatherKind

if TYPE_CHECKING:
    from oasis.ai.perception import Visible
    from oasis.core.mind import Mind
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class IntentCandidate:
    """A scored intent ready for selection."""
    action: ActionKind
    score: float
    target_x: int
    target_y: int
    reason: str
    gather_x: int | None = None
    gather_y: int | None = None


@dataclass(slots=True)
class ScoringContext:
    """Everything a scorer may read. Scorers never mutate it."""
    ctx: SimContext
    agent: Agent
    mind: Mind
    visible: Visible
    is_night: bool = False
    weather: WeatherKind | None = None

    def trait(self, action: str) -> int:
        return self.mind.personality.trait_bonus(action)

    def roll(self, salt: int = 0) -> float:
        return self.ctx.roll(Domain.WANDER, self.agent.id, salt)

    def clamp(self, x: int, y: int) -> tuple[int, int]:
        grid = self.ctx.grid
        return max(0, min(grid.width - 1, x)), max(0, min(grid.height - 1, y))


# ---------------------------------------------------------------------------
# Abstract scorer
# ---------------------------------------------------------------------------

class IntentScorer(ABC):
    """Base class for all intent scorers.

    Subclass this and implement:
      - name:            unique scorer identifier string
      - candidates(sc):  zero or more IntentCandidate with their base score
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique scorer identifier (e.g. 'gather', 'flee')."""

    @abstractmethod
    def candidates(self, sc: ScoringContext) -> list[IntentCandidate]:
        """Build this scorer's candidates with base scores (modifiers come later)."""


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

INTENT_REGISTRY: list[IntentScorer] = []


def register_intent(scorer: IntentScorer) -> IntentScorer:
    """Register an IntentScorer instance in the global registry."""
    INTENT_REGISTRY.append(scorer)
    return scorer


# ---------------------------------------------------------------------------
# Modifiers
# ---------------------------------------------------------------------------

NIGHT_MODIFIERS: dict[ActionKind, float] = {
    ActionKind.REST: 40,
    ActionKind.EXPLORE: -20,
    ActionKind.GATHER: -10,
}

WEATHER_MODIFIERS: dict[WeatherKind, dict[ActionKind, float]] = {
    WeatherKind.STORM: {
        ActionKind.REST: 30,
        ActionKind.EXPLORE: -15,
        ActionKind.GATHER: -15,
        ActionKind.BUILD: -15,
    },
    WeatherKind.RAIN: {ActionKind.REST: 10, ActionKind.CRAFT: 10, ActionKind.GATHER: -8},
    WeatherKind.CLEAR: {ActionKind.EXPLORE: 12, ActionKind.GATHER: 8},
    WeatherKind.HEATWAVE: {ActionKind.REST: 20, ActionKind.EXPLORE: -10},
    WeatherKind.FOG: {ActionKind.EXPLORE: 10},
}

TEMPERAMENT_MODIFIERS: dict[str, dict[ActionKind, float]] = {
    "restless": {ActionKind.EXPLORE: 10},
    "methodical": {ActionKind.CRAFT: 8, ActionKind.GATHER: 8},
    "impulsive": {ActionKind.EXPLORE: 10, ActionKind.EXPERIMENT: 10},
    "calm": {ActionKind.REST: 5, ActionKind.CHAT: 5},
}


def modifier_for(sc: ScoringContext, action: ActionKind) -> float:
    total = 0.0
    if sc.is_night:
        total += NIGHT_MODIFIERS.get(action, 0)
    if sc.weather is not None:
        total += WEATHER_MODIFIERS.get(sc.weather, {}).get(action, 0)
    total += TEMPERAMENT_MODIFIERS.get(sc.mind.personality.temperament, {}).get(action, 0)
    return total


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------

class IntentEvaluator:
    """Scores all registered intents and selects one via weighted random.

    Usage::

        evaluator = IntentEvaluator()
        scored = evaluator.evaluate(sc)
        chosen = evaluator.select(scored, rng_value)
    """

    def evaluate(self, sc: ScoringContext) -> list[IntentCandidate]:
        """All candidates with modifiers applied, clamped to >= 0, sorted descending."""
        scored: list[IntentCandidate] = []
        for scorer in INTENT_REGISTRY:
            scored.extend(scorer.candidates(sc))
        for c in scored:
            c.score = max(0.0, c.score + modifier_for(sc, c.action))
        # stable: equal scores keep registry order
        scored.sort(key=lambda c: c.score, reverse=True)
        return scored

    @staticmethod
    def select(
        scored: list[IntentCandidate],
        rng_value: float,
        top_n: int = 5,
    ) -> IntentCandidate | None:
        """Sample proportionally to score among the top N positive candidates.

        Args:
            scored: Sorted list of IntentCandidate (descending).
            rng_value: Random float [0, 1) for selection.
            top_n: How many top candidates to consider.

        Returns:
            Selected IntentCandidate, or None when nothing scores above zero.
        """
        top = [c for c in scored[:top_n] if c.score > 0]
        if not top:
            return None

        remaining = rng_value * sum(c.score for c in top)
        for c in top:
            remaining -= c.score
            if remaining <= 0:
                return c
        return top[0]
