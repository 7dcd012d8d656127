"""Stability — rebalance state machine управления supply.

- Cooldown-гейт по logical height
- Экспансия/контракция, ограниченная max rate (permille)
- Контракция all-or-nothing относительно reserve
"""

from .rebalance_engine import (
    RebalanceAction,
    RebalanceDecision,
    RebalanceEngine,
    RebalancePhase,
    RebalanceResult,
    RebalanceState,
)

__all__ = [
    "RebalanceAction",
    "RebalanceDecision",
    "RebalanceEngine",
    "RebalancePhase",
    "RebalanceResult",
    "RebalanceState",
]
