"""Per-agent cognitive state and the mind store.

Minds are keyed by agent id and never hold a reference to the Agent
itself; relationships cache the other agent's display name.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from oasis.core.enums import ActionKind
from oasis.core.personality import Personality, generate_personality

if TYPE_CHECKING:
    from oasis.utils.persistence import JsonStore

logger = logging.getLogger(__name__)

MEMORY_CAPACITY = 30


@dataclass(slots=True)
class Intent:
    """A deliberate multi-tick goal: walk to (target_x, target_y), then act."""
    action: ActionKind
    target_x: int
    target_y: int
    reason: str
    started_tick: int
    max_ticks: int = 30
    gather_x: int | None = None
    gather_y: int | None = None

    def expired(self, tick: int) -> bool:
        return tick - self.started_tick > self.max_ticks

    def to_dict(self) -> dict[str, Any]:
        out = {
            "action": self.action.value,
            "targetX": self.target_x,
            "targetY": self.target_y,
            "reason": self.reason,
            "startedTick": self.started_tick,
            "maxTicks": self.max_ticks,
        }
        if self.gather_x is not None:
            out["gatherX"] = self.gather_x
            out["gatherY"] = self.gather_y
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Intent:
        return cls(
            action=ActionKind(data["action"]),
            target_x=int(data["targetX"]),
            target_y=int(data["targetY"]),
            reason=data.get("reason", ""),
            started_tick=int(data.get("startedTick", 0)),
            max_ticks=int(data.get("maxTicks", 30)),
            gather_x=data.get("gatherX"),
            gather_y=data.get("gatherY"),
        )


@dataclass(slots=True)
class MemoryEvent:
    tick: int
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"tick": self.tick, "text": self.text}


@dataclass(slots=True)
class Memory:
    short: list[MemoryEvent] = field(default_factory=list)
    visited: dict[str, int] = field(default_factory=dict)
    gathered: dict[str, int] = field(default_factory=dict)
    lessons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "short": [e.to_dict() for e in self.short],
            "visited": dict(self.visited),
            "gathered": dict(self.gathered),
            "lessons": list(self.lessons),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Memory:
        return cls(
            short=[MemoryEvent(int(e.get("tick", 0)), e.get("text", "")) for e in data.get("short") or []],
            visited=dict(data.get("visited") or {}),
            gathered=dict(data.get("gathered") or {}),
            lessons=list(data.get("lessons") or []),
        )


@dataclass(slots=True)
class MindRelationship:
    name: str
    score: int = 0
    interactions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "score": self.score, "interactions": self.interactions}


@dataclass(slots=True)
class Goal:
    type: str
    text: str
    done: bool = False
    progress: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text, "done": self.done, "progress": self.progress}


@dataclass(slots=True)
class Mind:
    agent_id: str
    personality: Personality
    goals: list[Goal] = field(default_factory=list)
    current_action: str = "idle"
    intent: Intent | None = None
    path_this_tick: list[tuple[int, int]] | None = None
    memory: Memory = field(default_factory=Memory)
    relationships: dict[str, MindRelationship] = field(default_factory=dict)
    mood: str = "neutral"
    journal: list[str] = field(default_factory=list)

    def remember(self, tick: int, text: str) -> None:
        self.memory.short.append(MemoryEvent(tick, text))
        if len(self.memory.short) > MEMORY_CAPACITY:
            del self.memory.short[:-MEMORY_CAPACITY]

    def has_trait(self, trait: str) -> bool:
        return trait in self.personality.traits

    def relationship_score(self, other_id: str) -> int:
        rel = self.relationships.get(other_id)
        return rel.score if rel else 0

    def bump_relationship(self, other_id: str, other_name: str, delta: int, cap: int) -> None:
        rel = self.relationships.get(other_id)
        if rel is None:
            rel = self.relationships[other_id] = MindRelationship(name=other_name)
        rel.score = max(-cap, min(cap, rel.score + delta))
        rel.interactions += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "personality": self.personality.to_dict(),
            "goals": [g.to_dict() for g in self.goals],
            "currentAction": self.current_action,
            "intent": self.intent.to_dict() if self.intent else None,
            "pathThisTick": [list(p) for p in self.path_this_tick] if self.path_this_tick else None,
            "memory": self.memory.to_dict(),
            "relationships": {k: r.to_dict() for k, r in self.relationships.items()},
            "mood": self.mood,
            "journal": list(self.journal),
        }

    @classmethod
    def from_dict(cls, agent_id: str, data: dict[str, Any]) -> Mind:
        intent = data.get("intent")
        return cls(
            agent_id=agent_id,
            personality=Personality.from_dict(data.get("personality") or {}),
            goals=[Goal(**g) for g in data.get("goals") or []],
            current_action=data.get("currentAction", "idle"),
            intent=Intent.from_dict(intent) if intent else None,
            memory=Memory.from_dict(data.get("memory") or {}),
            relationships={
                k: MindRelationship(v.get("name", k), int(v.get("score", 0)), int(v.get("interactions", 0)))
                for k, v in (data.get("relationships") or {}).items()
            },
            mood=data.get("mood", "neutral"),
            journal=list(data.get("journal") or []),
        )


class MindStore:
    """Lazily-created minds with a throttled save.

    ``schedule_save`` marks the store dirty; ``maybe_flush`` writes once
    the first unsaved change is at least ``debounce_s`` old. ``flush``
    writes unconditionally.
    """

    FILE = "agent-minds.json"

    __slots__ = ("_store", "_minds", "_debounce_s", "_clock", "_dirty_since", "_lock")

    def __init__(
        self,
        store: JsonStore,
        debounce_s: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._minds: dict[str, Mind] = {}
        self._debounce_s = debounce_s
        self._clock = clock
        self._dirty_since: float | None = None
        self._lock = threading.Lock()

    def load(self) -> None:
        raw = self._store.load(self.FILE, {})
        for agent_id, data in raw.items():
            try:
                self._minds[agent_id] = Mind.from_dict(agent_id, data)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Dropping unreadable mind for %s: %s", agent_id, exc)
        logger.info("Loaded %d minds", len(self._minds))

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._minds

    def __len__(self) -> int:
        return len(self._minds)

    def get(self, agent_id: str) -> Mind | None:
        return self._minds.get(agent_id)

    def ensure_mind(self, agent_id: str, name: str | None = None) -> Mind:
        """Return the agent's mind, creating it from the id-seeded personality on first use."""
        mind = self._minds.get(agent_id)
        if mind is None:
            mind = Mind(agent_id=agent_id, personality=generate_personality(agent_id))
            mind.journal.append(f"I am {name or agent_id}. I just arrived in this world.")
            self._minds[agent_id] = mind
            self.schedule_save()
        return mind

    def remove(self, agent_id: str) -> None:
        if self._minds.pop(agent_id, None) is not None:
            self.schedule_save()

    def schedule_save(self) -> None:
        with self._lock:
            if self._dirty_since is None:
                self._dirty_since = self._clock()

    def maybe_flush(self) -> bool:
        with self._lock:
            due = self._dirty_since is not None and self._clock() - self._dirty_since >= self._debounce_s
        if due:
            self.flush()
        return due

    def flush(self) -> None:
        with self._lock:
            self._dirty_since = None
        self._store.save(self.FILE, self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        return {agent_id: mind.to_dict() for agent_id, mind in self._minds.items()}
