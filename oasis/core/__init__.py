"""Core data models and world representation."""

from oasis.core.enums import ActionKind, Biome, Direction, Domain, WeatherKind, Zone
from oasis.core.models import Agent, Item
from oasis.core.grid import TileGrid

__all__ = [
    "ActionKind",
    "Agent",
    "Biome",
    "Direction",
    "Domain",
    "Item",
    "TileGrid",
    "WeatherKind",
    "Zone",
]
