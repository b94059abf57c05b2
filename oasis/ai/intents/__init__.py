"""Intent scoring plugin system.

Each intent family is an IntentScorer subclass registered in
INTENT_REGISTRY. The IntentEvaluator runs every registered scorer to
produce ranked candidates.
"""

from oasis.ai.intents.base import IntentScorer, IntentCandidate, IntentEvaluator, ScoringContext, INTENT_REGISTRY
from oasis.ai.intents.registry import register_all_intents

# Auto-register all built-in intents on import
register_all_intents()

__all__ = [
    "IntentScorer",
    "IntentCandidate",
    "IntentEvaluator",
    "ScoringContext",
    "INTENT_REGISTRY",
]
