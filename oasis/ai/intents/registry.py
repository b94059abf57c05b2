"""Intent scorer registration.

Call ``register_all_intents()`` once at import time to populate
INTENT_REGISTRY. Registration order is the tie-break order for equal
scores. To add a custom intent, either append to this function or call
``register_intent()`` directly from your own module.
"""

from __future__ import annotations

from oasis.ai.intents.base import register_intent
from oasis.ai.intents.scorers import (
    GatherIntent,
    ChatIntent,
    GiftIntent,
    ExploreIntent,
    WanderIntent,
    RestIntent,
    EatIntent,
    CraftIntent,
    ExperimentIntent,
    BuildIntent,
    FightIntent,
    FleeIntent,
)

_registered = False


def register_all_intents() -> None:
    """Register all built-in intent scorers (idempotent)."""
    global _registered
    if _registered:
        return
    _registered = True

    register_intent(GatherIntent())
    register_intent(ChatIntent())
    register_intent(GiftIntent())
    register_intent(ExploreIntent())
    register_intent(WanderIntent())
    register_intent(RestIntent())
    register_intent(EatIntent())
    register_intent(CraftIntent())
    register_intent(ExperimentIntent())
    register_intent(BuildIntent())
    register_intent(FightIntent())
    register_intent(FleeIntent())
