"""Personality tables and deterministic personality generation.

A personality is a pure function of the agent id: the same id always
yields the same traits, temperament, values and ambition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from oasis.core.enums import Domain
from oasis.systems.rng import DeterministicRNG, SeededStream

# trait -> {action: score bias}
PERSONALITY_TRAITS: dict[str, dict[str, int]] = {
    "curious":     {"gather": 15, "explore": 20, "experiment": 10},
    "cautious":    {"gather": -10, "explore": -15, "rest": 20},
    "bold":        {"gather": 20, "explore": 15, "fight": 10},
    "generous":    {"gift": 25, "chat": 10, "craft": 5},
    "greedy":      {"gather": 20, "hoard": 15, "gift": -20},
    "social":      {"chat": 25, "gather": -5, "explore": 5},
    "solitary":    {"chat": -20, "explore": 15, "gather": 10},
    "competitive": {"craft": 10, "gather": 10, "fight": 5},
    "nurturing":   {"gift": 15, "chat": 10, "rest": 5},
    "creative":    {"craft": 25, "experiment": 20, "chat": 5},
    "stubborn":    {"rest": 10, "explore": -5},
    "adaptable":   {"explore": 10, "craft": 5},
    "reckless":    {"explore": 20, "fight": 15, "rest": -15},
    "patient":     {"gather": 10, "craft": 10, "rest": 10},
    "ambitious":   {"explore": 15, "craft": 10, "gather": 10},
    "observant":   {"explore": 10, "gather": 5, "experiment": 5},
}

TEMPERAMENTS: tuple[str, ...] = ("calm", "hot-headed", "impulsive", "methodical", "thoughtful", "restless")

VALUES: tuple[str, ...] = (
    "knowledge", "craftsmanship", "exploration", "friendship", "beauty", "survival",
    "discovery", "harmony", "freedom", "wisdom", "power", "wealth",
)

AMBITIONS: tuple[str, ...] = (
    "explore every biome in the world",
    "master the art of crafting",
    "discover every secret this land holds",
    "build lasting bonds with fellow wanderers",
    "survive against all odds",
    "become the most skilled gatherer",
    "uncover the mysteries of the ancient world",
    "leave a mark that outlasts me",
    "find a place to call home",
    "become a legendary explorer",
)

# Fixed seed: personality depends on the agent id only, never on the world seed.
_PERSONALITY_RNG = DeterministicRNG(0x0A515)


@dataclass(slots=True)
class Personality:
    traits: list[str] = field(default_factory=list)
    temperament: str = "calm"
    values: list[str] = field(default_factory=list)
    ambition: str = AMBITIONS[0]

    def trait_bonus(self, action: str) -> int:
        return sum(PERSONALITY_TRAITS.get(t, {}).get(action, 0) for t in self.traits)

    def to_dict(self) -> dict[str, Any]:
        return {
            "traits": list(self.traits),
            "temperament": self.temperament,
            "values": list(self.values),
            "ambition": self.ambition,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Personality:
        return cls(
            traits=list(data.get("traits") or []),
            temperament=data.get("temperament", "calm"),
            values=list(data.get("values") or []),
            ambition=data.get("ambition", AMBITIONS[0]),
        )


def generate_personality(agent_id: str) -> Personality:
    """2–3 traits, 1 temperament, 2 values, 1 ambition drawn from the id-seeded stream."""
    stream = SeededStream(_PERSONALITY_RNG, Domain.PERSONALITY, DeterministicRNG.entity_key(agent_id))
    trait_count = 2 + int(stream.random() * 2)
    traits = stream.pick_n(list(PERSONALITY_TRAITS), trait_count)
    temperament = TEMPERAMENTS[int(stream.random() * len(TEMPERAMENTS))]
    values = stream.pick_n(list(VALUES), 2)
    ambition = AMBITIONS[int(stream.random() * len(AMBITIONS))]
    return Personality(traits=traits, temperament=temperament, values=values, ambition=ambition)
