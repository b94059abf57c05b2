"""Action executors, dispatched by ActionKind."""

from oasis.actions.base import ACTION_ENERGY, ActionContext
from oasis.actions.dispatcher import EXECUTORS, execute

__all__ = ["ACTION_ENERGY", "ActionContext", "EXECUTORS", "execute"]
