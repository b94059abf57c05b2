"""EngineManager — runs the WorldLoop on a background thread.

The engine thread is the only mutator of the simulation context. HTTP
handlers that read or change world state hold ``manager.lock`` for the
duration of the request, so they never interleave with a tick.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

from oasis.engine.context import SimContext, build_context
from oasis.engine.world_loop import WorldLoop

if TYPE_CHECKING:
    from oasis.config import SimulationConfig

logger = logging.getLogger(__name__)


class EngineManager:
    """Manages the simulation lifecycle on a background thread.

    Provides:
      - the engine lock shared with the API layer
      - control commands (start / pause / resume / step / stop)
      - persistence of the whole world once on shutdown
    """

    def __init__(self, config: SimulationConfig) -> None:
        self.config = config
        self._lock = threading.RLock()
        self._started_at = time.monotonic()

        self._ctx: SimContext | None = None
        self._loop: WorldLoop | None = None

        # Control
        self._thread: threading.Thread | None = None
        self._running = threading.Event()
        self._paused = threading.Event()
        self._step_requested = threading.Event()
        self._stop_requested = threading.Event()

        self._build()

    # -- public properties --

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def ctx(self) -> SimContext:
        assert self._ctx is not None
        return self._ctx

    @property
    def loop(self) -> WorldLoop:
        assert self._loop is not None
        return self._loop

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    @property
    def uptime(self) -> float:
        return time.monotonic() - self._started_at

    @property
    def tick_interval(self) -> float:
        return self.config.tick_ms / 1000.0

    # -- lifecycle --

    def start(self) -> None:
        if self._running.is_set():
            return
        self._stop_requested.clear()
        self._paused.clear()
        self._running.set()
        self._thread = threading.Thread(target=self._run_loop, name="engine-loop", daemon=True)
        self._thread.start()
        logger.info("EngineManager started (tick=%dms)", self.config.tick_ms)

    def pause(self) -> None:
        self._paused.set()
        logger.info("EngineManager paused at tick %d", self._current_tick())

    def resume(self) -> None:
        self._paused.clear()
        logger.info("EngineManager resumed at tick %d", self._current_tick())

    def step(self) -> int:
        """Execute exactly one tick.

        With the engine thread running this pauses it and queues the tick;
        without it the tick runs synchronously on the caller's thread.
        """
        if not self._running.is_set():
            self.tick()
            return self._current_tick()
        if not self._paused.is_set():
            self.pause()
        self._step_requested.set()
        return self._current_tick()

    def tick(self) -> bool:
        with self._lock:
            return self.loop.tick_once()

    def stop(self) -> None:
        self._stop_requested.set()
        self._paused.clear()
        self._running.clear()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self.persist()
        logger.info("EngineManager stopped.")

    def persist(self) -> None:
        with self._lock:
            if self._ctx is not None:
                self._ctx.persist_all()

    # -- internals --

    def _build(self) -> None:
        with self._lock:
            ctx = build_context(self.config)
            ctx.load_all()
            if len(ctx.agents) == 0:
                for _ in range(self.config.initial_agents):
                    ctx.spawn_agent()
            self._ctx = ctx
            self._loop = WorldLoop(ctx)
        logger.info(
            "World ready: %dx%d, %d agents, tick %d",
            ctx.grid.width, ctx.grid.height, len(ctx.agents), ctx.tick,
        )

    def _run_loop(self) -> None:
        """Background thread main loop."""
        logger.info("Engine thread started.")

        while not self._stop_requested.is_set():
            if self._paused.is_set() and not self._step_requested.is_set():
                time.sleep(0.01)
                continue

            single_step = self._step_requested.is_set()
            if single_step:
                self._step_requested.clear()

            started = time.monotonic()
            if not self.tick():
                logger.info("Simulation ended at tick %d.", self._current_tick())
                break

            if not single_step:
                elapsed = time.monotonic() - started
                if elapsed < self.tick_interval:
                    time.sleep(self.tick_interval - elapsed)

        self._running.clear()
        logger.info("Engine thread exited.")

    def _current_tick(self) -> int:
        if self._ctx is not None:
            return self._ctx.tick
        return 0
