"""
Flows - Typed, scored views of movements for display.
"""

from movements.flows.mapper import (
    calculate_anomaly_score,
    classify_flow_type,
    movement_to_flow,
    movements_to_flows,
)
from movements.flows.models import (
    DefiAction,
    DefiActivityFlow,
    Flow,
    FlowBase,
    FlowMetadata,
    FlowType,
    SmartMoneyFlow,
    TokenLaunchFlow,
    WhaleCategory,
    WhaleMovementFlow,
)
from movements.flows.scorer import (
    ScoreBreakdown,
    calculate_interestingness_score,
    rank_flows,
    score_breakdown,
)

__all__ = [
    # Models
    "Flow",
    "FlowBase",
    "FlowType",
    "FlowMetadata",
    "WhaleMovementFlow",
    "DefiActivityFlow",
    "TokenLaunchFlow",
    "SmartMoneyFlow",
    "WhaleCategory",
    "DefiAction",
    # Mapper
    "movement_to_flow",
    "movements_to_flows",
    "classify_flow_type",
    "calculate_anomaly_score",
    # Scorer
    "ScoreBreakdown",
    "score_breakdown",
    "calculate_interestingness_score",
    "rank_flows",
]
