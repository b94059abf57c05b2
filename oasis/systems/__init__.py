"""World systems: RNG, noise, survival and the pluggable participants."""

from oasis.systems.rng import DeterministicRNG

__all__ = ["DeterministicRNG"]
