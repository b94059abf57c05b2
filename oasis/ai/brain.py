"""AgentBrain — one agent's cognition for one tick.

Intent-first loop:
  1. An agent with a live intent keeps working on it: execute on arrival
     (Chebyshev distance <= 1), otherwise take one step toward the target.
  2. An agent without an intent perceives, scores candidates, commits to
     one, and either executes at once or starts walking.

Intents end when the action runs (rest repeats until energy recovers),
when they outlive ``max_ticks``, or when the agent gets stuck.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from oasis.actions.dispatcher import execute
from oasis.actions.rest import REST_UNTIL
from oasis.ai.intents import IntentEvaluator, ScoringContext
from oasis.ai.movement import PathExecutor, StepOutcome
from oasis.ai.perception import perceive
from oasis.core.enums import ActionKind, Domain, WeatherKind
from oasis.core.grid import chebyshev
from oasis.core.mind import Goal, Intent

if TYPE_CHECKING:
    from oasis.ai.intents import IntentCandidate
    from oasis.core.mind import Mind
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)

MAX_OPEN_GOALS = 3
ENCOUNTER_CHANCE = 0.05
ENCOUNTER_XP = 5
LORE_CHANCE = 0.02
DANGER_ENERGY_FACTOR = 0.1

POSITIVE_MARKERS = ("Gathered", "Chatted", "Explored")
NEGATIVE_MARKERS = ("failed", "lost", "hurt")
MOOD_WINDOW = 10


# ---------------------------------------------------------------------------
# Goals and mood
# ---------------------------------------------------------------------------

def generate_goals(agent: Agent, mind: Mind) -> None:
    """Top up open goals; never more than three open at once."""
    if sum(1 for g in mind.goals if not g.done) >= MAX_OPEN_GOALS:
        return
    if len(mind.memory.visited) < 5 and mind.has_trait("curious"):
        mind.goals.append(Goal("explore", "Discover new biomes"))
    if len(agent.inventory) < 5:
        mind.goals.append(Goal("gather", "Stock up on supplies"))
    if mind.has_trait("social") and len(mind.relationships) < 3:
        mind.goals.append(Goal("socialize", "Make new friends"))


def update_mood(agent: Agent, mind: Mind) -> str:
    recent = mind.memory.short[-MOOD_WINDOW:]
    positive = sum(1 for e in recent if any(m in e.text for m in POSITIVE_MARKERS))
    negative = sum(1 for e in recent if any(m in e.text for m in NEGATIVE_MARKERS))

    if agent.energy < 20:
        mood = "tired"
    elif agent.hunger > 70:
        mood = "anxious"
    elif positive > 5:
        mood = "happy"
    elif negative > 3:
        mood = "frustrated"
    elif positive > 2:
        mood = "excited"
    else:
        mood = "neutral"
    mind.mood = mood
    return mood


# ---------------------------------------------------------------------------
# Brain
# ---------------------------------------------------------------------------

class AgentBrain:
    """Runs perception, scoring, movement and dispatch for one agent per call."""

    __slots__ = ("_ctx", "_evaluator", "_paths")

    def __init__(self, ctx: SimContext) -> None:
        self._ctx = ctx
        self._evaluator = IntentEvaluator()
        self._paths = PathExecutor(ctx.grid, ctx.config.move_energy_floor)

    @property
    def paths(self) -> PathExecutor:
        return self._paths

    def tick_agent(self, agent: Agent) -> None:
        if not agent.alive:
            return
        ctx = self._ctx
        mind = ctx.minds.ensure_mind(agent.id, agent.name)
        mind.path_this_tick = None

        generate_goals(agent, mind)
        self._environment(agent)

        if mind.intent is not None and mind.intent.expired(ctx.tick):
            logger.debug("%s abandoned %s (expired)", agent.name, mind.intent.action.value)
            mind.intent = None

        if mind.intent is not None:
            self._pursue(agent, mind)

        if mind.intent is None:
            self._decide(agent, mind)

        self._random_encounter(agent, mind)
        if ctx.roll(Domain.LORE, agent.id, 3) < LORE_CHANCE:
            ctx.knowledge.grant_random_lore(agent, salt=4)

        update_mood(agent, mind)
        self._passive(agent)
        ctx.minds.schedule_save()

    # -- decision --

    def choose(self, agent: Agent, mind: Mind) -> IntentCandidate | None:
        ctx = self._ctx
        sc = ScoringContext(
            ctx=ctx,
            agent=agent,
            mind=mind,
            visible=perceive(ctx, agent, mind),
            is_night=ctx.game_time().is_night,
            weather=ctx.current_weather(),
        )
        scored = self._evaluator.evaluate(sc)
        return self._evaluator.select(scored, ctx.roll(Domain.INTENT, agent.id), ctx.config.top_intents)

    def _decide(self, agent: Agent, mind: Mind) -> None:
        ctx = self._ctx
        chosen = self.choose(agent, mind)
        if chosen is None:
            mind.current_action = "idle"
            return
        mind.intent = Intent(
            action=chosen.action,
            target_x=chosen.target_x,
            target_y=chosen.target_y,
            reason=chosen.reason,
            started_tick=ctx.tick,
            max_ticks=ctx.config.intent_max_ticks,
            gather_x=chosen.gather_x,
            gather_y=chosen.gather_y,
        )
        if chebyshev(agent.tile_x, agent.tile_y, chosen.target_x, chosen.target_y) <= 1:
            self._act(agent, mind)
        else:
            mind.current_action = "move"
            if self._paths.move_toward(agent, mind, chosen.target_x, chosen.target_y) is StepOutcome.STUCK:
                logger.debug("%s stuck on the way to (%d, %d)", agent.name, chosen.target_x, chosen.target_y)
                mind.intent = None

    def _pursue(self, agent: Agent, mind: Mind) -> None:
        intent = mind.intent
        if chebyshev(agent.tile_x, agent.tile_y, intent.target_x, intent.target_y) <= 1:
            self._act(agent, mind)
            return
        mind.current_action = "move"
        if self._paths.move_toward(agent, mind, intent.target_x, intent.target_y) is StepOutcome.STUCK:
            logger.debug("%s stuck on the way to (%d, %d)", agent.name, intent.target_x, intent.target_y)
            mind.intent = None

    def _act(self, agent: Agent, mind: Mind) -> None:
        action = mind.intent.action
        execute(self._ctx, agent, mind, action)
        if action is ActionKind.REST and agent.energy < REST_UNTIL:
            return
        mind.intent = None

    # -- ambient effects --

    def _environment(self, agent: Agent) -> None:
        ctx = self._ctx
        weather = ctx.current_weather()
        if weather is WeatherKind.STORM:
            agent.spend_energy(1.5)
        elif weather is WeatherKind.HEATWAVE:
            agent.hunger = min(100.0, agent.hunger + 0.5)
            agent.spend_energy(0.5)
        elif weather is WeatherKind.SNOW and ctx.weather.temperature() < 0:
            agent.spend_energy(1)
        elif weather is WeatherKind.RAIN:
            agent.spend_energy(0.3)

        if ctx.world_master is not None:
            cost = sum(d.get("energyCost", 0) for d in ctx.world_master.dangers_for(agent.zone))
            if cost > 0:
                agent.spend_energy(cost * DANGER_ENERGY_FACTOR)

    def _random_encounter(self, agent: Agent, mind: Mind) -> None:
        ctx = self._ctx
        if ctx.encounters is None or ctx.roll(Domain.ENCOUNTER, agent.id, 9) >= ENCOUNTER_CHANCE:
            return
        encounter = ctx.encounters.check(agent)
        if encounter is None:
            return
        result = ctx.encounters.resolve(agent, encounter)
        if result["survived"]:
            ctx.award_xp(agent, ENCOUNTER_XP)
            mind.remember(ctx.tick, f"Encountered a {encounter['type']} and survived")
        else:
            mind.remember(ctx.tick, f"Was caught off guard by a {encounter['type']}")

    def _passive(self, agent: Agent) -> None:
        config = self._ctx.config
        agent.hunger = min(100.0, agent.hunger + config.hunger_per_tick * config.rate_scale)
        if agent.hunger >= 100:
            agent.spend_energy(config.starving_energy_loss * config.rate_scale)
