"""Physical properties of gathered materials.

Crafted items carry their own ``properties``; raw resources fall back to
this table. Experiments, cooking and decay all read properties through
``properties_of``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from oasis.core.models import Item

PROPERTY_KEYS: tuple[str, ...] = (
    "hardness", "flammability", "toxicity", "luminosity", "organic",
    "weight", "decay_rate", "energy", "temperature", "resonance",
)


def _p(hardness: float, flammability: float, organic: float, weight: float, decay_rate: float,
       energy: float, *, toxicity: float = 0, luminosity: float = 0,
       temperature: float = 20, resonance: float = 0) -> dict[str, float]:
    return {
        "hardness": hardness,
        "flammability": flammability,
        "toxicity": toxicity,
        "luminosity": luminosity,
        "organic": organic,
        "weight": weight,
        "decay_rate": decay_rate,
        "energy": energy,
        "temperature": temperature,
        "resonance": resonance,
    }


MATERIAL_PROPERTIES: dict[str, dict[str, float]] = {
    # grass / path
    "herbs": _p(1, 4, 1.0, 0.1, 0.03, 4),
    "berries": _p(1, 1, 1.0, 0.1, 0.03, 8),
    "flowers": _p(1, 5, 1.0, 0.05, 0.04, 2, luminosity=1),
    "fiber": _p(2, 7, 1.0, 0.1, 0.01, 1),
    # forest
    "wood": _p(4, 7, 1.0, 3, 0.005, 2),
    "mushrooms": _p(1, 1, 1.0, 0.2, 0.03, 6, toxicity=2),
    "resin": _p(2, 9, 0.8, 0.3, 0.0, 1, resonance=1),
    # rocky / cave
    "stone": _p(7, 0, 0.0, 5, 0.0, 0),
    "ore": _p(8, 0, 0.0, 15, 0.0, 3, resonance=1),
    "crystals": _p(7, 0, 0.0, 2, 0.0, 30, luminosity=5, resonance=8),
    "flint": _p(8, 2, 0.0, 1, 0.0, 0),
    "gems": _p(9, 0, 0.0, 0.5, 0.0, 10, luminosity=6, resonance=6),
    "bat_guano": _p(1, 3, 0.9, 0.5, 0.02, 1, toxicity=4),
    # sand / coast
    "shells": _p(5, 0, 0.3, 0.3, 0.0, 0, resonance=2),
    "driftwood": _p(3, 6, 1.0, 2, 0.005, 1),
    "salt": _p(2, 0, 0.0, 0.5, 0.0, 0),
    "sand": _p(1, 0, 0.0, 1, 0.0, 0, temperature=30),
    "seaweed": _p(1, 2, 1.0, 0.3, 0.03, 5),
    # swamp
    "peat": _p(1, 8, 0.9, 2, 0.01, 2),
    "slime": _p(0, 1, 0.7, 0.5, 0.02, 2, toxicity=3),
    # river
    "fish": _p(1, 0, 1.0, 1, 0.05, 12),
    "clay": _p(3, 0, 0.1, 3, 0.0, 0),
    "freshwater": _p(0, 0, 0.0, 1, 0.0, 1, temperature=12),
    "reeds": _p(2, 6, 1.0, 0.2, 0.01, 1),
    # library
    "Ancient Scroll": _p(1, 7, 1.0, 0.3, 0.04, 5, resonance=3),
    "Ink Vial": _p(2, 3, 0.5, 0.2, 0.01, 2, toxicity=2),
    "Torch": _p(3, 9, 1.0, 1, 0.02, 5, luminosity=7, temperature=300),
}

EMPTY: dict[str, float] = {}


def properties_of(item: Item) -> dict[str, Any]:
    if item.properties:
        return item.properties
    return MATERIAL_PROPERTIES.get(item.name, EMPTY)
