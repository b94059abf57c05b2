"""Simulation configuration with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SimulationConfig:
    """Immutable configuration for the simulation run."""

    # World
    world_seed: int = 42
    world_file: str | None = None          # packed world asset JSON; None builds a fallback world
    fallback_width: int = 256
    fallback_height: int = 256

    # Timing
    tick_ms: int = 500
    game_minutes_per_tick: int = 10
    max_ticks: int = 0                     # 0 = run until stopped

    # Cognition
    vision_range: int = 20
    intent_max_ticks: int = 30
    top_intents: int = 5
    move_energy_floor: float = 5.0         # no movement budget at or below this energy
    chat_radius: int = 2
    nearby_radius: int = 10

    # Agents
    inventory_cap: int = 28
    spawn_spread: int = 30
    spawn_attempts: int = 100
    max_spawn_many: int = 50
    initial_agents: int = 0

    # Passive rates (calibrated for 500 ms ticks, see rate_scale)
    hunger_per_tick: float = 0.08
    starving_energy_loss: float = 2.0

    # Relationships
    relationship_cap: int = 100

    # Knowledge
    teach_cooldown_ticks: int = 600        # 5 real minutes at 500 ms
    knowledge_grace_days: int = 3
    knowledge_decay_interval: int = 6      # once per game hour
    observation_cooldown_ticks: int = 144  # one game day

    # Driver cadence
    world_master_interval: int = 50
    projects_interval: int = 10
    full_broadcast_interval: int = 5
    persist_interval: int = 50
    heartbeat_interval: int = 100

    # Mind store
    mind_save_debounce_s: float = 5.0

    # News
    news_capacity: int = 200

    # Persistence
    data_dir: str = "data"

    # Logging
    log_level: str = "INFO"

    @property
    def rate_scale(self) -> float:
        """Multiplier applied to passive per-tick rates for non-default tick periods."""
        return self.tick_ms / 500.0

    @property
    def ticks_per_game_day(self) -> int:
        return (24 * 60) // self.game_minutes_per_tick
