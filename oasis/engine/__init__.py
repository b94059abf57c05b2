"""Engine layer: the simulation context and the tick driver."""

from oasis.engine.context import SimContext, build_context
from oasis.engine.world_loop import WorldLoop

__all__ = ["SimContext", "WorldLoop", "build_context"]
