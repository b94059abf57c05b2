"""The Oasis: autonomous agents surviving, learning and building on a tile world."""

__version__ = "0.1.0"
