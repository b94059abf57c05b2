"""WorldLoop — the authoritative tick driver.

Per tick, in strict order:
  1. Advance the tick counter
  2. Weather, then ecosystem
  3. Every live agent in insertion order: migrate position, cognition,
     survival, decay (items and scrolls), achievements
  4. Periodic participants: world master, projects, knowledge decay
  5. Broadcast: full snapshot every few ticks, otherwise a position delta
  6. Persistence, then the heartbeat log line
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from oasis.ai.brain import AgentBrain
from oasis.core.agent_store import AgentStore
from oasis.systems.decay import decay_inventory
from oasis.systems.survival import survival_update

if TYPE_CHECKING:
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)


class WorldLoop:
    """The heartbeat of the simulation.

    Single-threaded mutation of the context. One agent's failure is logged
    and skipped; it never halts the tick.
    """

    __slots__ = ("_ctx", "_brain")

    def __init__(self, ctx: SimContext, brain: AgentBrain | None = None) -> None:
        self._ctx = ctx
        self._brain = brain or AgentBrain(ctx)

    @property
    def ctx(self) -> SimContext:
        return self._ctx

    @property
    def brain(self) -> AgentBrain:
        return self._brain

    def tick_once(self) -> bool:
        """Execute a single tick. Returns False once ``max_ticks`` is reached."""
        config = self._ctx.config
        if config.max_ticks and self._ctx.tick >= config.max_ticks:
            logger.info("Tick %d: Max ticks reached.", self._ctx.tick)
            return False
        self._step()
        return True

    def run(self, ticks: int) -> None:
        """Headless run of *ticks* ticks."""
        logger.info("=== Simulation started (seed=%d, tick=%d) ===", self._ctx.config.world_seed, self._ctx.tick)
        for _ in range(ticks):
            if not self.tick_once():
                break
        logger.info("=== Simulation paused at tick %d ===", self._ctx.tick)

    # ------------------------------------------------------------------
    # Tick phases
    # ------------------------------------------------------------------

    def _step(self) -> None:
        ctx = self._ctx
        config = ctx.config
        ctx.tick += 1
        tick = ctx.tick

        self._run_participant("weather", ctx.weather)
        self._run_participant("ecosystem", ctx.ecosystem)

        for agent in ctx.agents:
            if not agent.alive:
                continue
            try:
                self._tick_agent(agent)
            except Exception:
                logger.exception("Agent %s (%s) failed at tick %d", agent.name, agent.id, tick)

        if tick % config.world_master_interval == 0:
            self._run_participant("world master", ctx.world_master)
        if tick % config.projects_interval == 0:
            self._run_participant("projects", ctx.projects)
        if tick % config.knowledge_decay_interval == 0:
            forgotten = ctx.knowledge.tick_decay()
            if forgotten:
                logger.debug("Tick %d: %d knowledge rows forgotten", tick, forgotten)

        self._broadcast()

        if tick % config.persist_interval == 0:
            ctx.persist_all()
            logger.debug("Tick %d: world persisted", tick)
        else:
            ctx.minds.maybe_flush()

        if tick % config.heartbeat_interval == 0:
            self._heartbeat()

    def _tick_agent(self, agent: Agent) -> None:
        ctx = self._ctx
        ctx.grid.migrate_agent_position(agent)
        self._brain.tick_agent(agent)
        survival_update(ctx, agent)
        if not agent.alive:
            return
        decay_inventory(ctx, agent)
        ctx.knowledge.tick_scroll_damage(agent)
        if ctx.achievements is not None:
            ctx.achievements.check(agent)

    def _run_participant(self, label: str, participant: Any) -> None:
        if participant is None:
            return
        try:
            participant.tick()
        except Exception:
            logger.exception("Participant %s failed at tick %d", label, self._ctx.tick)

    # ------------------------------------------------------------------
    # Broadcast
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Full ``tick`` message: every agent, serialized."""
        ctx = self._ctx
        return {
            "type": "tick",
            "tick": ctx.tick,
            "gameTime": ctx.game_time().to_dict(),
            "weather": ctx.weather.snapshot() if ctx.weather is not None else None,
            "agents": [AgentStore.serialize(a, ctx.minds.get(a.id)) for a in ctx.agents],
        }

    def delta(self) -> dict[str, Any]:
        ctx = self._ctx
        return {
            "type": "tick",
            "tick": ctx.tick,
            "agents": [AgentStore.delta(a, ctx.minds.get(a.id)) for a in ctx.agents],
        }

    def _broadcast(self) -> None:
        ctx = self._ctx
        if ctx.tick % ctx.config.full_broadcast_interval == 0:
            ctx.emit(self.snapshot())
        elif ctx.bus.observer_count > 0:
            ctx.emit(self.delta())

    def _heartbeat(self) -> None:
        ctx = self._ctx
        gt = ctx.game_time()
        logger.info(
            "Tick %d | day %d %02d:%02d (%s) | agents %d alive / %d | observers %d",
            ctx.tick, gt.day, gt.hour, gt.minute, gt.period,
            len(ctx.agents.alive()), len(ctx.agents), ctx.bus.observer_count,
        )
