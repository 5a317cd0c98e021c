"""
Flow Mapper - Movement -> typed Flow.

Classification (first match wins):
1. Tier 1 swap -> smart-money
2. protocol/defi tag, or a protocol in metadata -> defi-activity
3. Everything else -> whale-movement

Token launches are never inferred from a Movement alone; callers with
launch data pass ``flow_type=FlowType.TOKEN_LAUNCH`` explicitly.
"""

from typing import Callable, Iterable, Optional

from movements.flows.models import (
    DefiAction,
    DefiActivityFlow,
    Flow,
    FlowMetadata,
    FlowType,
    SmartMoneyFlow,
    TokenLaunchFlow,
    WhaleCategory,
    WhaleMovementFlow,
)
from movements.models import (
    Confidence,
    Movement,
    MovementTag,
    MovementType,
)


MEGA_WHALE_USD = 50_000_000

CONFIDENCE_SCORES: dict[Confidence, int] = {
    Confidence.HIGH: 90,
    Confidence.MED: 70,
    Confidence.LOW: 50,
}

DEFI_ACTIONS: dict[str, DefiAction] = {a.value: a for a in DefiAction}

MOVEMENT_TYPE_ACTIONS: dict[MovementType, DefiAction] = {
    MovementType.SWAP: DefiAction.SWAP,
    MovementType.DEPOSIT: DefiAction.LIQUIDITY_ADD,
    MovementType.WITHDRAWAL: DefiAction.LIQUIDITY_REMOVE,
}


def classify_flow_type(movement: Movement) -> FlowType:
    if movement.tier == 1 and movement.movement_type == MovementType.SWAP:
        return FlowType.SMART_MONEY

    if (
        movement.has_tag(MovementTag.PROTOCOL)
        or movement.has_tag(MovementTag.DEFI)
        or movement.metadata.protocol
    ):
        return FlowType.DEFI_ACTIVITY

    return FlowType.WHALE_MOVEMENT


def calculate_anomaly_score(movement: Movement) -> int:
    """
    How unusual a movement looks, 0-100.

    Size band, plus bridge/liquidation routes, plus rare tag
    combinations.
    """
    score = 0

    amount = movement.amount_usd
    if amount > 100_000_000:
        score += 40
    elif amount > 50_000_000:
        score += 30
    elif amount > 10_000_000:
        score += 20
    elif amount > 1_000_000:
        score += 10

    if movement.movement_type == MovementType.BRIDGE:
        score += 20
    if movement.movement_type == MovementType.LIQUIDATION:
        score += 30

    if movement.has_tag(MovementTag.SMART_MONEY) and movement.has_tag(MovementTag.MEGA_WHALE):
        score += 25

    if movement.has_tag(MovementTag.FUND) and movement.has_tag(MovementTag.EXCHANGE):
        score += 15

    return min(score, 100)


def whale_category(movement: Movement) -> WhaleCategory:
    if movement.has_tag(MovementTag.MEGA_WHALE) or movement.amount_usd > MEGA_WHALE_USD:
        return WhaleCategory.MEGA_WHALE
    if movement.has_tag(MovementTag.SMART_MONEY):
        return WhaleCategory.SMART_MONEY
    return WhaleCategory.WHALE


def defi_action(movement: Movement) -> Optional[DefiAction]:
    """Metadata action if it is a known DeFi action, else derived from type."""
    if movement.metadata.action:
        action = DEFI_ACTIONS.get(movement.metadata.action.lower())
        if action is not None:
            return action
    return MOVEMENT_TYPE_ACTIONS.get(movement.movement_type)


def _base_fields(movement: Movement) -> dict:
    return {
        "id": movement.id,
        "chain": movement.chain,
        "timestamp": movement.ts,
        "amount": movement.token_amount or 0.0,
        "amount_usd": movement.amount_usd,
        "token_symbol": movement.asset_symbol or "UNKNOWN",
        "token_address": movement.asset_address or "",
        "from_address": movement.from_address or "",
        "from_label": movement.from_label,
        "to_address": movement.to_address or "",
        "to_label": movement.to_label,
        "tx_hash": movement.tx_hash or "",
        "metadata": FlowMetadata(
            category=movement.tags[0].value if movement.tags else None,
            tags=tuple(t.value for t in movement.tags),
            confidence=CONFIDENCE_SCORES.get(movement.confidence, 50),
            anomaly_score=calculate_anomaly_score(movement),
        ),
    }


# ─────────────────────────────────────────────────────────────
# Builders
# ─────────────────────────────────────────────────────────────

def _build_whale_movement(movement: Movement) -> WhaleMovementFlow:
    return WhaleMovementFlow(
        **_base_fields(movement),
        whale_category=whale_category(movement),
    )


def _build_defi_activity(movement: Movement) -> DefiActivityFlow:
    return DefiActivityFlow(
        **_base_fields(movement),
        protocol=movement.metadata.protocol,
        action=defi_action(movement),
    )


def _build_token_launch(movement: Movement) -> TokenLaunchFlow:
    return TokenLaunchFlow(
        **_base_fields(movement),
        launched_at=movement.ts,
    )


def _build_smart_money(movement: Movement) -> SmartMoneyFlow:
    # PnL and rank need the profiler API; left unset
    return SmartMoneyFlow(**_base_fields(movement))


FLOW_BUILDERS: dict[FlowType, Callable[[Movement], Flow]] = {
    FlowType.WHALE_MOVEMENT: _build_whale_movement,
    FlowType.DEFI_ACTIVITY: _build_defi_activity,
    FlowType.TOKEN_LAUNCH: _build_token_launch,
    FlowType.SMART_MONEY: _build_smart_money,
}

_missing = set(FlowType) - set(FLOW_BUILDERS)
if _missing:
    raise RuntimeError(f"No flow builder for: {sorted(t.value for t in _missing)}")


def movement_to_flow(movement: Movement, flow_type: Optional[FlowType] = None) -> Flow:
    """
    Convert a Movement into its Flow variant.

    Args:
        movement: Enriched movement
        flow_type: Force a kind instead of classifying

    Returns:
        Flow variant with metadata (category, tags, confidence, anomaly)
    """
    return FLOW_BUILDERS[flow_type or classify_flow_type(movement)](movement)


def movements_to_flows(movements: Iterable[Movement]) -> list[Flow]:
    return [movement_to_flow(m) for m in movements]
