"""Signal evaluation (pure rules, no I/O)."""

from edgecore.signals.engine import (
    SignalEngine,
    even_streak,
    odd_streak,
    rise_streak,
    trend_of,
)
from edgecore.signals.readiness import (
    Condition,
    ReadinessContext,
    ReadinessEvaluator,
    ReadinessResult,
    build_bot_evaluators,
    build_profile,
    list_profiles,
    register_profile,
)

__all__ = [
    "SignalEngine",
    "even_streak",
    "odd_streak",
    "rise_streak",
    "trend_of",
    "Condition",
    "ReadinessContext",
    "ReadinessEvaluator",
    "ReadinessResult",
    "build_bot_evaluators",
    "build_profile",
    "list_profiles",
    "register_profile",
]
