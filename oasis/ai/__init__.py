"""AI layer: perception, intent scoring, movement and the agent brain."""

from oasis.ai.brain import AgentBrain
from oasis.ai.perception import perceive

__all__ = ["AgentBrain", "perceive"]
