"""Core enumerations used throughout the simulation."""

from enum import Enum, IntEnum, unique


@unique
class Biome(str, Enum):
    """Static terrain class embedded in the world asset."""
    OCEAN = "ocean"
    BEACH = "beach"
    GRASSLAND = "grassland"
    FOREST = "forest"
    DESERT = "desert"
    MOUNTAIN = "mountain"
    TUNDRA = "tundra"
    SWAMP = "swamp"


@unique
class Zone(str, Enum):
    """Gameplay-level classification derived from biome, masks and neighbours."""
    GRASS = "grass"
    FOREST = "forest"
    ROCKY = "rocky"
    SAND = "sand"
    WATER = "water"
    SWAMP = "swamp"
    RIVER = "river"
    CAVE = "cave"
    COAST = "coast"
    PATH = "path"


@unique
class Direction(str, Enum):
    """8-directional compass movement."""
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"
    NORTHEAST = "northeast"
    NORTHWEST = "northwest"
    SOUTHEAST = "southeast"
    SOUTHWEST = "southwest"

    @property
    def delta(self) -> tuple[int, int]:
        return _DIRECTION_DELTAS[self]


_DIRECTION_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.NORTH: (0, -1),
    Direction.SOUTH: (0, 1),
    Direction.EAST: (1, 0),
    Direction.WEST: (-1, 0),
    Direction.NORTHEAST: (1, -1),
    Direction.NORTHWEST: (-1, -1),
    Direction.SOUTHEAST: (1, 1),
    Direction.SOUTHWEST: (-1, 1),
}


@unique
class ActionKind(str, Enum):
    """Closed set of actions an agent can execute on arrival."""
    GATHER = "gather"
    REST = "rest"
    EXPLORE = "explore"
    CHAT = "chat"
    GIFT = "gift"
    CRAFT = "craft"
    EXPERIMENT = "experiment"
    EAT = "eat"
    BUILD = "build"
    FIGHT = "fight"


@unique
class KnowledgeType(str, Enum):
    ZONE_SECRET = "zone_secret"
    LORE = "lore"
    RECIPE = "recipe"


@unique
class KnowledgeSource(str, Enum):
    DISCOVERED = "discovered"
    TAUGHT = "taught"
    SCROLL = "scroll"
    OBSERVED = "observed"
    BOOK = "book"


@unique
class WeatherKind(str, Enum):
    CLEAR = "clear"
    CLOUDY = "cloudy"
    RAIN = "rain"
    STORM = "storm"
    SNOW = "snow"
    FOG = "fog"
    HEATWAVE = "heatwave"


@unique
class Domain(IntEnum):
    """RNG domain separation — each system gets its own random stream."""
    TERRAIN = 0
    SPAWN = 1
    PERSONALITY = 2
    INTENT = 3
    WANDER = 4
    RESOURCE = 5
    CHAT = 6
    GIFT = 7
    LORE = 8
    TRADE = 9
    ENCOUNTER = 10
    EXPERIMENT = 11
    SCROLL = 12
    OBSERVATION = 13
    WEATHER = 14
    WORLD_MASTER = 15
    COOKING = 16
    PROJECTS = 17
