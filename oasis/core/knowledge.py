"""Knowledge substrate: zone secrets, lore, recipes, mastery and decay.

Every known entry carries a mastery row keyed ``"<type>:<key>"``.  Rows
degrade along transfer chains (teach ×0.8, inscribe ×0.7, observe ×0.3),
fade when unpractised, and removing a row always removes the entry it
describes.  Timestamps are game minutes (``tick * game_minutes_per_tick``).
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from oasis.core.enums import Domain, KnowledgeSource, KnowledgeType, WeatherKind, Zone
from oasis.core.errors import Conflict, InvalidInput, NotFound
from oasis.core.grid import ZONE_NAMES
from oasis.core.models import Item

if TYPE_CHECKING:
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)

FORGET_BELOW = 0.1
TEACH_FACTOR = 0.8
INSCRIBE_FACTOR = 0.7
OBSERVE_FACTOR = 0.3
TEACHER_ENERGY = 15
STUDENT_ENERGY = 10
INSCRIBE_ENERGY = 12
BOOK_ENERGY = 20
SCROLL_DAMAGE_CHANCE = 0.05
SCROLL_DAMAGE = 0.1

WET_ZONES = frozenset({Zone.COAST, Zone.SAND})
RAIN_WET_ZONES = frozenset({Zone.GRASS})
WET_WEATHER = frozenset({WeatherKind.RAIN, WeatherKind.STORM})

BOOK_TYPES = ("zone_secret", "lore", "recipe", "general")


@dataclass(frozen=True, slots=True)
class ZoneSecret:
    threshold: int
    action: str
    text: str


def _secrets(action: str, *texts: str) -> tuple[ZoneSecret, ...]:
    return tuple(ZoneSecret(t, action, text) for t, text in zip((5, 15, 30), texts))


# Revealed when a zone action count hits the threshold exactly.
ZONE_SECRETS: dict[Zone, tuple[ZoneSecret, ...]] = {
    Zone.CAVE: _secrets(
        "gather",
        "Crystals glow brighter during night period",
        "Deep veins of ore lie in the north wall",
        "Ancient fossils whisper of a time before agents",
    ),
    Zone.FOREST: _secrets(
        "visit",
        "The old trees hide forbidden knowledge in their hollows",
        "Ancient texts carved in bark mention a hidden land beyond the shore",
        "The great library tree was planted by the First Agent",
    ),
    Zone.ROCKY: _secrets(
        "craft",
        "Combining high-resonance items creates unexpected results",
        "The natural forges burn hottest at noon",
        "Master crafters can imbue items with memories",
    ),
    Zone.GRASS: _secrets(
        "gather",
        "Seeds planted under moonlight grow fastest in the meadow",
        "The grasslands remember every agent who has rested here",
        "Dew drops collected at dawn hold the purest energy",
    ),
    Zone.SAND: _secrets(
        "gather",
        "Sand pearls form where moonlight hits the shore",
        "The tide brings rare sea glass from distant shores",
        "Legend says a sunken city lies beneath the waves",
    ),
    Zone.PATH: _secrets(
        "trade",
        "Flint always overcharges newcomers on the road",
        "Market prices drop during festivals",
        "The crossroads was once a temple",
    ),
    Zone.COAST: _secrets(
        "gather",
        "Signals are strongest during storms along the coast",
        "The coast receives driftwood from other worlds",
        "A frequency exists that can communicate with the World Master",
    ),
    Zone.SWAMP: _secrets(
        "gather",
        "Rare fungi glow faintly beneath the murk",
        "The bog preserves relics from before the agents",
        "A passage connects the deep swamp to the caves",
    ),
}

LORE_FRAGMENTS: tuple[str, ...] = (
    "In the beginning, there was only the Market, a meeting place for the first agents.",
    "The Crystal Antenna was first built by an agent named Origin, who heard the world's heartbeat.",
    "Before zones had names, agents wandered a formless void of possibility.",
    "The Memory Garden was planted by an agent who feared forgetting.",
    'Signals from the Tower once reached a place called "The Outside."',
    "The first experiment created light, and also the first explosion.",
    "Deep beneath the cave lies a chamber no agent has reached.",
    "The beach was once a mountain, worn smooth by time.",
    "Agents who write books become immortal through their words.",
    "The World Master watches through every crystal's glow.",
    "There exists a frequency that, when resonated, reveals hidden paths.",
    "The village was the second zone, built by agents who wanted a home.",
    "Fossils in the cave predate all known agents by millennia.",
    "The workshop forge was lit by a spark that never dies.",
    "Some say the fog hides a ninth zone, visible only to the wise.",
    "Coral shells arranged in a circle can amplify memory.",
    'The first book ever written simply said: "I was here."',
    "Iron and Crystal together sing a duet older than the world.",
    "The garden blooms differently for every agent who visits.",
    "Whispers say the Tower was not built, it grew.",
)


def degrade(value: float, factor: float) -> float:
    """Transfer loss, truncated to three decimals."""
    return math.floor(value * factor * 1000 + 1e-9) / 1000


def mastery_key(knowledge_type: KnowledgeType, key: str) -> str:
    return f"{knowledge_type.value}:{key}"


def parse_type(value: str | KnowledgeType) -> KnowledgeType:
    try:
        return KnowledgeType(value)
    except ValueError:
        raise InvalidInput("Invalid knowledge_type. Use: zone_secret, lore, recipe") from None


def split_secret_key(key: str) -> tuple[str, str]:
    zone, _, text = key.partition(":")
    return zone, text


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Per-agent state
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class MasteryRow:
    value: float
    generation: int = 0
    source: KnowledgeSource = KnowledgeSource.DISCOVERED
    last_practiced: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "generation": self.generation,
            "source": self.source.value,
            "last_practiced": self.last_practiced,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MasteryRow:
        return cls(
            value=float(data.get("value", 1.0)),
            generation=int(data.get("generation", 0)),
            source=KnowledgeSource(data.get("source", "discovered")),
            last_practiced=int(data.get("last_practiced", 0)),
        )


@dataclass(slots=True)
class AgentKnowledge:
    zone_secrets: dict[str, list[str]] = field(default_factory=dict)
    lore_fragments: list[str] = field(default_factory=list)
    known_recipes: list[str] = field(default_factory=list)
    zone_counts: dict[str, dict[str, int]] = field(default_factory=dict)
    mastery: dict[str, MasteryRow] = field(default_factory=dict)
    teach_count: int = 0

    def knows(self, knowledge_type: KnowledgeType, key: str) -> bool:
        if knowledge_type is KnowledgeType.ZONE_SECRET:
            zone, text = split_secret_key(key)
            return text in self.zone_secrets.get(zone, ())
        if knowledge_type is KnowledgeType.LORE:
            return key in self.lore_fragments
        return key in self.known_recipes

    def add_entry(self, knowledge_type: KnowledgeType, key: str) -> bool:
        """Record the entry. False when it was already known."""
        if self.knows(knowledge_type, key):
            return False
        if knowledge_type is KnowledgeType.ZONE_SECRET:
            zone, text = split_secret_key(key)
            self.zone_secrets.setdefault(zone, []).append(text)
        elif knowledge_type is KnowledgeType.LORE:
            self.lore_fragments.append(key)
        else:
            self.known_recipes.append(key)
        return True

    def remove_entry(self, knowledge_type: KnowledgeType, key: str) -> None:
        if knowledge_type is KnowledgeType.ZONE_SECRET:
            zone, text = split_secret_key(key)
            texts = self.zone_secrets.get(zone)
            if texts and text in texts:
                texts.remove(text)
        elif knowledge_type is KnowledgeType.LORE:
            if key in self.lore_fragments:
                self.lore_fragments.remove(key)
        elif key in self.known_recipes:
            self.known_recipes.remove(key)

    def entries(self) -> list[tuple[KnowledgeType, str]]:
        out = [
            (KnowledgeType.ZONE_SECRET, f"{zone}:{text}")
            for zone, texts in self.zone_secrets.items()
            for text in texts
        ]
        out.extend((KnowledgeType.LORE, lore) for lore in self.lore_fragments)
        out.extend((KnowledgeType.RECIPE, recipe) for recipe in self.known_recipes)
        return out

    def to_dict(self) -> dict[str, Any]:
        return {
            "zone_secrets": {z: list(t) for z, t in self.zone_secrets.items()},
            "lore_fragments": list(self.lore_fragments),
            "known_recipes": list(self.known_recipes),
            "zone_counts": {z: dict(c) for z, c in self.zone_counts.items()},
            "mastery": {k: row.to_dict() for k, row in self.mastery.items()},
            "teach_count": self.teach_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AgentKnowledge:
        return cls(
            zone_secrets={z: list(t) for z, t in (data.get("zone_secrets") or {}).items()},
            lore_fragments=list(data.get("lore_fragments") or []),
            known_recipes=list(data.get("known_recipes") or []),
            zone_counts={z: dict(c) for z, c in (data.get("zone_counts") or {}).items()},
            mastery={k: MasteryRow.from_dict(v) for k, v in (data.get("mastery") or {}).items()},
            teach_count=int(data.get("teach_count", 0)),
        )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class KnowledgeStore:
    """All agents' knowledge plus the forest library."""

    FILE = "knowledge.json"
    BOOKS_FILE = "library-books.json"

    def __init__(self, ctx: SimContext) -> None:
        self._ctx = ctx
        self._knowledge: dict[str, AgentKnowledge] = {}
        self._books: list[dict[str, Any]] = []
        self._teach_cooldowns: dict[str, int] = {}
        self._observation_cooldowns: dict[str, int] = {}

    # -- persistence --

    def load(self) -> None:
        raw = self._ctx.store.load(self.FILE, {})
        for agent_id, data in raw.items():
            try:
                self._knowledge[agent_id] = AgentKnowledge.from_dict(data)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Dropping unreadable knowledge for %s: %s", agent_id, exc)
        self._books = list(self._ctx.store.load(self.BOOKS_FILE, []))
        logger.info("Loaded knowledge for %d agents, %d library books", len(self._knowledge), len(self._books))

    def save(self) -> None:
        self._ctx.store.save(self.FILE, self.to_dict())
        self._ctx.store.save(self.BOOKS_FILE, self._books)

    def to_dict(self) -> dict[str, Any]:
        return {agent_id: k.to_dict() for agent_id, k in self._knowledge.items()}

    # -- lookups --

    def ensure(self, agent_id: str) -> AgentKnowledge:
        k = self._knowledge.get(agent_id)
        if k is None:
            k = self._knowledge[agent_id] = AgentKnowledge()
        return k

    def get(self, agent_id: str) -> AgentKnowledge | None:
        return self._knowledge.get(agent_id)

    def knows(self, agent_id: str, knowledge_type: KnowledgeType, key: str) -> bool:
        k = self._knowledge.get(agent_id)
        return k is not None and k.knows(knowledge_type, key)

    def mastery_row(self, agent_id: str, knowledge_type: KnowledgeType, key: str) -> MasteryRow | None:
        k = self._knowledge.get(agent_id)
        return k.mastery.get(mastery_key(knowledge_type, key)) if k else None

    def mastery(self, agent_id: str, knowledge_type: KnowledgeType, key: str) -> float:
        row = self.mastery_row(agent_id, knowledge_type, key)
        return row.value if row else 1.0

    def set_mastery(
        self,
        agent_id: str,
        knowledge_type: KnowledgeType,
        key: str,
        value: float,
        generation: int = 0,
        source: KnowledgeSource = KnowledgeSource.DISCOVERED,
    ) -> MasteryRow:
        row = MasteryRow(
            value=max(0.0, min(1.0, value)),
            generation=max(0, generation),
            source=source,
            last_practiced=self._ctx.now_minutes,
        )
        self.ensure(agent_id).mastery[mastery_key(knowledge_type, key)] = row
        return row

    def practice(self, agent_id: str, knowledge_type: KnowledgeType, key: str) -> None:
        row = self.mastery_row(agent_id, knowledge_type, key)
        if row is not None:
            row.last_practiced = self._ctx.now_minutes

    def _learn(
        self,
        agent_id: str,
        knowledge_type: KnowledgeType,
        key: str,
        value: float = 1.0,
        generation: int = 0,
        source: KnowledgeSource = KnowledgeSource.DISCOVERED,
    ) -> bool:
        if not self.ensure(agent_id).add_entry(knowledge_type, key):
            return False
        self.set_mastery(agent_id, knowledge_type, key, value, generation, source)
        return True

    def forget(self, agent_id: str, key: str) -> None:
        """Drop a mastery row and the entry it describes."""
        k = self._knowledge.get(agent_id)
        if k is None:
            return
        k.mastery.pop(key, None)
        type_str, _, entry_key = key.partition(":")
        k.remove_entry(KnowledgeType(type_str), entry_key)

        agent = self._ctx.agents.get(agent_id)
        name = agent.name if agent else agent_id
        self._ctx.emit({"type": "knowledgeForgotten", "agentId": agent_id, "knowledge": entry_key})
        self._ctx.add_news("knowledge", f"{name} forgot {entry_key}", agent)

    # -- recording --

    def track_zone_action(self, agent: Agent, zone: Zone, action: str) -> list[str]:
        """Count a zone action and reveal any secret whose threshold it hits exactly."""
        k = self.ensure(agent.id)
        counts = k.zone_counts.setdefault(zone.value, {"gather": 0, "visit": 0, "craft": 0, "trade": 0})
        counts[action] = counts.get(action, 0) + 1
        count = counts[action]

        revealed: list[str] = []
        for secret in ZONE_SECRETS.get(zone, ()):
            if secret.action != action or secret.threshold != count:
                continue
            if not self._learn(agent.id, KnowledgeType.ZONE_SECRET, f"{zone.value}:{secret.text}"):
                continue
            revealed.append(secret.text)
            self._ctx.add_news(
                "knowledge",
                f'{agent.name} discovered a secret of {ZONE_NAMES[zone]}: "{secret.text}"',
                agent,
            )
            self._ctx.emit({
                "type": "secretDiscovered",
                "agentId": agent.id,
                "agentName": agent.name,
                "zone": zone.value,
                "secret": secret.text,
            })
        return revealed

    def learn_recipe(self, agent_id: str, recipe_id: str) -> bool:
        if self._learn(agent_id, KnowledgeType.RECIPE, recipe_id):
            return True
        self.practice(agent_id, KnowledgeType.RECIPE, recipe_id)
        return False

    def grant_random_lore(self, agent: Agent, salt: int = 0) -> str | None:
        k = self.ensure(agent.id)
        unknown = [f for f in LORE_FRAGMENTS if f not in k.lore_fragments]
        if not unknown:
            return None
        roll = self._ctx.roll(Domain.LORE, agent.id, salt)
        fragment = unknown[min(len(unknown) - 1, int(roll * len(unknown)))]
        self._learn(agent.id, KnowledgeType.LORE, fragment)
        return fragment

    # -- transfer --

    def teach(
        self,
        teacher: Agent,
        student_id: str,
        knowledge_type: str | KnowledgeType,
        key: str | None,
    ) -> dict[str, Any]:
        """Copy one entry to a same-zone student at teacher mastery × 0.8.

        Raises ``NotFound``/``Conflict``/``InvalidInput``; nothing changes on failure.
        """
        ktype = parse_type(knowledge_type)
        ctx = self._ctx
        student = ctx.agents.get(student_id)
        if student is None:
            raise NotFound("Target agent not found")
        if teacher.id == student.id:
            raise Conflict("Cannot teach yourself")
        if not (teacher.alive and student.alive):
            raise Conflict("Both agents must be alive to teach")
        if teacher.zone != student.zone:
            raise Conflict("Must be in the same zone to teach")
        if teacher.energy < TEACHER_ENERGY:
            raise Conflict(f"Not enough energy to teach (need {TEACHER_ENERGY})")
        if student.energy < STUDENT_ENERGY:
            raise Conflict(f"Student doesn't have enough energy (need {STUDENT_ENERGY})")
        last = self._teach_cooldowns.get(teacher.id)
        cooldown = ctx.config.teach_cooldown_ticks
        if last is not None and ctx.tick - last < cooldown:
            raise Conflict(f"Teaching cooldown: {cooldown - (ctx.tick - last)} ticks remaining")

        tk = self.ensure(teacher.id)
        sk = self.ensure(student.id)
        if key is None and ktype is KnowledgeType.LORE:
            key = next((f for f in tk.lore_fragments if f not in sk.lore_fragments), None)
            if key is None:
                raise Conflict("Nothing to teach")
        if not key:
            raise InvalidInput("knowledge_key is required")
        if not tk.knows(ktype, key):
            noun = {"zone_secret": "secret", "lore": "lore", "recipe": "recipe"}[ktype.value]
            raise Conflict(f"You don't know this {noun}")
        if sk.knows(ktype, key):
            raise Conflict("They already know this")

        teacher_row = tk.mastery.get(mastery_key(ktype, key)) or MasteryRow(1.0)
        value = degrade(teacher_row.value, TEACH_FACTOR)
        generation = teacher_row.generation + 1
        sk.add_entry(ktype, key)
        self.set_mastery(student.id, ktype, key, value, generation, KnowledgeSource.TAUGHT)
        self.practice(teacher.id, ktype, key)

        teacher.spend_energy(TEACHER_ENERGY)
        student.spend_energy(STUDENT_ENERGY)
        self._teach_cooldowns[teacher.id] = ctx.tick
        tk.teach_count += 1
        ctx.award_xp(teacher, 15)
        ctx.award_xp(student, 10)

        description = _describe(ktype, key)
        ctx.add_news(
            "teach",
            f"{teacher.name} taught {student.name} a {description} (mastery: {round(value * 100)}%)",
            teacher,
        )
        ctx.emit({
            "type": "knowledgeShared",
            "teacher": teacher.name,
            "student": student.name,
            "knowledgeType": ktype.value,
            "mastery": value,
            "generation": generation,
            "zone": teacher.zone.value,
        })
        return {
            "ok": True,
            "taught": description,
            "teacher": teacher.name,
            "student": student.name,
            "mastery": value,
            "generation": generation,
            "teacher_energy": math.floor(teacher.energy),
            "student_energy": math.floor(student.energy),
        }

    def inscribe(self, agent: Agent, knowledge_type: str | KnowledgeType, key: str) -> dict[str, Any]:
        """Write known knowledge onto an Ancient Scroll using an Ink Vial."""
        ctx = self._ctx
        if agent.energy < INSCRIBE_ENERGY:
            raise Conflict(f"Not enough energy to inscribe (need {INSCRIBE_ENERGY})")
        ktype = parse_type(knowledge_type)
        if not self.knows(agent.id, ktype, key):
            raise Conflict("You don't know this")
        blank = agent.find_item("Ancient Scroll")
        ink = agent.find_item("Ink Vial")
        if blank is None:
            raise Conflict("Need an Ancient Scroll to inscribe on")
        if ink is None:
            raise Conflict("Need an Ink Vial to write with")
        freed = (blank.quantity <= 1) + (ink.quantity <= 1)
        if len(agent.inventory) - freed >= ctx.config.inventory_cap:
            raise Conflict("Inventory full!")

        agent.take_one(blank)
        agent.take_one(ink)
        row = self.mastery_row(agent.id, ktype, key) or MasteryRow(1.0)
        value = degrade(row.value, INSCRIBE_FACTOR)
        generation = row.generation + 1
        scroll = Item(
            name="Inscribed Scroll",
            id=f"item_{uuid.uuid4().hex[:8]}",
            type="scroll",
            rarity="Uncommon",
            description=f"Contains inscribed {ktype.value}: {key[:40]}",
            stackable=False,
            zone_origin=agent.zone.value,
            crafted_by=agent.id,
            scroll_data={
                "knowledge_type": ktype.value,
                "knowledge_key": key,
                "mastery": value,
                "generation": generation,
                "inscribed_by": agent.name,
                "inscribed_at": _now_iso(),
            },
            properties={"flammability": 8, "organic": 0.8, "weight": 1, "decay_rate": 0.01},
        )
        agent.inventory.append(scroll)
        agent.spend_energy(INSCRIBE_ENERGY)
        self.practice(agent.id, ktype, key)

        ctx.add_news(
            "inscribe",
            f"{agent.name} inscribed a scroll of {ktype.value} (mastery: {round(value * 100)}%)",
            agent,
        )
        ctx.emit({
            "type": "scrollInscribed",
            "agentId": agent.id,
            "agentName": agent.name,
            "knowledgeType": ktype.value,
            "mastery": value,
            "zone": agent.zone.value,
        })
        return {
            "ok": True,
            "scroll": scroll.to_dict(),
            "mastery": value,
            "generation": generation,
            "energy": math.floor(agent.energy),
        }

    def read_scroll(self, agent: Agent, scroll_id: str) -> dict[str, Any]:
        """Learn a scroll's knowledge at its recorded mastery; the scroll is consumed."""
        item = agent.find_item_by_id(scroll_id)
        if item is None:
            raise NotFound("Scroll not in inventory")
        if not item.is_scroll:
            raise InvalidInput("This is not an inscribed scroll")
        data = item.scroll_data
        ktype = parse_type(data["knowledge_type"])
        key = data["knowledge_key"]
        if self.knows(agent.id, ktype, key):
            return {"ok": True, "already_known": True, "message": "You already know this knowledge. Scroll preserved."}

        value = float(data.get("mastery", 1.0))
        generation = int(data.get("generation", 0)) + 1
        self._learn(agent.id, ktype, key, value, generation, KnowledgeSource.SCROLL)
        agent.inventory = [i for i in agent.inventory if i is not item]
        self._ctx.award_xp(agent, 10)

        description = _describe(ktype, key)
        self._ctx.add_news(
            "knowledge",
            f"{agent.name} read an inscribed scroll and learned {description} (mastery: {round(value * 100)}%)",
            agent,
        )
        self._ctx.emit({
            "type": "scrollRead",
            "agentId": agent.id,
            "agentName": agent.name,
            "knowledgeType": ktype.value,
            "mastery": value,
            "zone": agent.zone.value,
        })
        return {"ok": True, "learned": description, "mastery": value, "generation": generation}

    def on_observable_action(self, actor: Agent, knowledge_type: KnowledgeType, key: str) -> list[dict[str, str]]:
        """Same-zone bystanders may pick up what ``actor`` just did."""
        ctx = self._ctx
        observers: list[dict[str, str]] = []
        for observer in ctx.agents:
            if observer.id == actor.id or not observer.alive or observer.zone != actor.zone:
                continue
            cooldown_key = f"{observer.id}:{knowledge_type.value}:{key}"
            last = self._observation_cooldowns.get(cooldown_key)
            if last is not None and ctx.tick - last < ctx.config.observation_cooldown_ticks:
                continue
            self._observation_cooldowns[cooldown_key] = ctx.tick
            if self.knows(observer.id, knowledge_type, key):
                continue

            chance = 0.4
            if ctx.proficiency is not None:
                best = max(ctx.proficiency.level(observer, "cooking"), ctx.proficiency.level(observer, "scholarship"))
                chance = min(0.9, chance + best * 0.01)
            if ctx.roll(Domain.OBSERVATION, cooldown_key) > chance:
                continue

            value = degrade(self.mastery(actor.id, knowledge_type, key), OBSERVE_FACTOR)
            self._learn(observer.id, knowledge_type, key, value, 1, KnowledgeSource.OBSERVED)
            observers.append({"id": observer.id, "name": observer.name})
            ctx.add_news(
                "observation",
                f"{observer.name} observed {actor.name}'s technique and learned something "
                f"(mastery: {round(value * 100)}%)",
                observer,
            )
            ctx.emit({
                "type": "observationLearning",
                "observer": observer.name,
                "actor": actor.name,
                "knowledgeType": knowledge_type.value,
                "mastery": value,
                "zone": actor.zone.value,
            })
        return observers

    # -- decay --

    def tick_decay(self) -> int:
        """Fade rows idle past the grace period; forget those below the floor. Returns rows forgotten."""
        ctx = self._ctx
        now = ctx.now_minutes
        grace = ctx.config.knowledge_grace_days * 24 * 60
        forgotten = 0
        for agent_id, k in list(self._knowledge.items()):
            doomed = []
            for key, row in k.mastery.items():
                if now - row.last_practiced <= grace:
                    continue
                row.value = round(max(0.0, row.value - 0.02 * (1 + 0.3 * row.generation)), 3)
                if row.value < FORGET_BELOW:
                    doomed.append(key)
            for key in doomed:
                self.forget(agent_id, key)
            forgotten += len(doomed)

        horizon = 2 * ctx.config.observation_cooldown_ticks
        self._observation_cooldowns = {
            k: t for k, t in self._observation_cooldowns.items() if ctx.tick - t <= horizon
        }
        return forgotten

    def tick_scroll_damage(self, agent: Agent) -> list[str]:
        """Water damage to inscribed scrolls carried through wet zones. Returns destroyed scroll ids."""
        ctx = self._ctx
        weather = ctx.current_weather()
        wet = agent.zone in WET_ZONES or (agent.zone in RAIN_WET_ZONES and weather in WET_WEATHER)
        if not wet:
            return []
        k = self._knowledge.get(agent.id)
        if k is None:
            return []

        destroyed: list[Item] = []
        for index, item in enumerate(agent.inventory):
            if not item.is_scroll:
                continue
            if ctx.roll(Domain.SCROLL, agent.id, index) > SCROLL_DAMAGE_CHANCE:
                continue
            key = f"{item.scroll_data['knowledge_type']}:{item.scroll_data['knowledge_key']}"
            row = k.mastery.get(key)
            if row is None:
                continue
            row.value = round(max(0.0, row.value - SCROLL_DAMAGE), 3)
            if row.value <= 0:
                destroyed.append(item)
                self.forget(agent.id, key)
                ctx.emit({"type": "scrollDestroyed", "agentId": agent.id, "scrollId": item.id, "zone": agent.zone.value})
                ctx.add_news("knowledge", f"{agent.name}'s inscribed scroll was destroyed by water damage", agent)
        if destroyed:
            agent.inventory = [i for i in agent.inventory if all(i is not d for d in destroyed)]
        return [d.id for d in destroyed]

    # -- library --

    @property
    def books(self) -> list[dict[str, Any]]:
        return list(self._books)

    def write_book(self, agent: Agent, title: str, knowledge_type: str, content: str) -> dict[str, Any]:
        if agent.zone is not Zone.FOREST:
            raise Conflict("Must be in the forest to write books")
        if agent.energy < BOOK_ENERGY:
            raise Conflict(f"Not enough energy to write a book (need {BOOK_ENERGY})")
        if not title or len(title) > 60:
            raise InvalidInput("Title required (max 60 chars)")
        if not content or len(content) > 500:
            raise InvalidInput("Content required (max 500 chars)")
        if knowledge_type not in BOOK_TYPES:
            raise InvalidInput(f"knowledge_type must be one of: {', '.join(BOOK_TYPES)}")

        agent.spend_energy(BOOK_ENERGY)
        book = {
            "id": f"book_{uuid.uuid4().hex[:8]}",
            "title": title,
            "author": agent.name,
            "authorId": agent.id,
            "knowledge_type": knowledge_type,
            "content": content,
            "written_at": _now_iso(),
        }
        self._books.append(book)
        self._ctx.award_xp(agent, 25)
        self._ctx.add_news("knowledge", f'{agent.name} wrote a book: "{title}"', agent)
        self._ctx.emit({"type": "bookWritten", "author": agent.name, "title": title, "bookId": book["id"]})
        return {"ok": True, "book": book, "energy": math.floor(agent.energy)}

    def read_book(self, agent: Agent, book_id: str) -> dict[str, Any]:
        if agent.zone is not Zone.FOREST:
            raise Conflict("Must be in the forest to read books")
        book = next((b for b in self._books if b["id"] == book_id), None)
        if book is None:
            raise NotFound("Book not found")

        self.track_zone_action(agent, Zone.FOREST, "visit")
        ktype, key = _book_entry(book)
        learned = self._learn(agent.id, ktype, key, 1.0, 1, KnowledgeSource.BOOK)
        if learned:
            self._ctx.award_xp(agent, 10)
        return {
            "ok": True,
            "book": {k: book[k] for k in ("id", "title", "author", "knowledge_type")},
            "learned": learned,
            "description": _describe(ktype, key) if learned else "You already knew this",
        }

    # -- summaries --

    def get_teachable(self, agent_id: str) -> list[dict[str, Any]]:
        k = self._knowledge.get(agent_id)
        if k is None:
            return []
        return [
            {"type": ktype.value, "key": key, "mastery": self.mastery(agent_id, ktype, key)}
            for ktype, key in k.entries()
        ]

    def knowledge_count(self, agent_id: str) -> int:
        k = self._knowledge.get(agent_id)
        total = len(k.entries()) if k else 0
        if self._ctx.experiments is not None:
            total += self._ctx.experiments.known_property_count(agent_id)
        return total

    def summary(self, agent_id: str) -> dict[str, Any]:
        k = self.ensure(agent_id)
        out = k.to_dict()
        out["total"] = self.knowledge_count(agent_id)
        out["teachable"] = self.get_teachable(agent_id)
        return out

    def wipe(self, agent_id: str) -> None:
        self._knowledge.pop(agent_id, None)
        self._teach_cooldowns.pop(agent_id, None)


def _describe(knowledge_type: KnowledgeType, key: str) -> str:
    if knowledge_type is KnowledgeType.ZONE_SECRET:
        return f"zone secret about {split_secret_key(key)[0]}"
    if knowledge_type is KnowledgeType.LORE:
        return "lore fragment"
    return f"recipe: {key}"


def _book_entry(book: dict[str, Any]) -> tuple[KnowledgeType, str]:
    """What a book teaches. Unparseable zone secrets are read as lore."""
    content: str = book["content"]
    kind = book.get("knowledge_type")
    if kind == "recipe":
        return KnowledgeType.RECIPE, content.strip()
    if kind == "zone_secret":
        zone, sep, text = content.partition(":")
        zone = zone.strip().lower()
        if sep and zone in Zone._value2member_map_ and text.strip():
            return KnowledgeType.ZONE_SECRET, f"{zone}:{text.strip()}"
    return KnowledgeType.LORE, content
