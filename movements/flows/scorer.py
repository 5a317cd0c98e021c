"""
Interestingness Scorer - 0-100 display priority for flows.

============================================================
COMPONENTS
============================================================

- Flow type         0-40  (smart money highest)
- Transaction size  0-30  (stepped USD bands)
- Entity quality    0-20  (best label on either side)
- Recency           0-10  (stepped age bands)
- Bonuses           0-15  (bridge, unusual route, combos)

The sum is clamped to [0, 100].

Ranking is score desc, then timestamp desc, then id asc, so equal
inputs always produce the same order.
============================================================
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from movements.flows.models import (
    DefiActivityFlow,
    Flow,
    FlowType,
    WhaleCategory,
    WhaleMovementFlow,
)


logger = logging.getLogger(__name__)


PREMIUM_KEYWORDS: tuple[str, ...] = (
    "smart money", "smart dex", "smart lp", "smart nft", "public figure",
    "fund", "vc", "hedge fund", "top 100",
)

# (minimum exclusive USD, points), checked top-down
SIZE_BANDS: tuple[tuple[float, int], ...] = (
    (100_000_000, 30),
    (50_000_000, 25),
    (10_000_000, 20),
    (5_000_000, 15),
    (1_000_000, 10),
    (500_000, 7),
    (100_000, 5),
)
SIZE_FLOOR_POINTS = 3

# (points, keywords), checked top-down per label
ENTITY_CATEGORIES: tuple[tuple[int, tuple[str, ...]], ...] = (
    (20, ("smart money", "smart dex", "smart lp", "smart nft")),
    (18, ("public figure", "vitalik", "cz", "sbf")),
    (15, ("fund", "vc", "hedge", "a16z", "paradigm")),
    (12, ("whale", "top 100", "top holder")),
    (10, ("binance", "coinbase", "kraken", "exchange")),
)
OTHER_LABEL_POINTS = 8

# (maximum exclusive age in minutes, points)
RECENCY_BANDS: tuple[tuple[float, int], ...] = (
    (5, 10),
    (15, 8),
    (60, 6),
    (360, 4),
    (1440, 2),
)
RECENCY_FLOOR_POINTS = 1

BRIDGE_KEYWORDS: tuple[str, ...] = ("bridge", "wormhole", "portal", "stargate")
TOP_DEFI_PROTOCOLS = frozenset({"uniswap", "aave", "compound", "curve"})

MAX_SCORE = 100


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-component interestingness points."""
    flow_type: int
    size: int
    entity: int
    recency: int
    bonus: int

    @property
    def total(self) -> int:
        raw = self.flow_type + self.size + self.entity + self.recency + self.bonus
        return max(0, min(raw, MAX_SCORE))

    def to_dict(self) -> dict[str, Any]:
        return {
            "flow_type": self.flow_type,
            "size": self.size,
            "entity": self.entity,
            "recency": self.recency,
            "bonus": self.bonus,
            "total": self.total,
        }


def _now_ms() -> int:
    return int(time.time() * 1000)


def has_premium_label(flow: Flow) -> bool:
    return any(
        keyword in label
        for label in flow.labels
        for keyword in PREMIUM_KEYWORDS
    )


# ─────────────────────────────────────────────────────────────
# Components
# ─────────────────────────────────────────────────────────────

FLOW_TYPE_SCORERS: dict[FlowType, Callable[[Flow], int]] = {
    FlowType.SMART_MONEY: lambda flow: 40,
    FlowType.WHALE_MOVEMENT: lambda flow: 30 if has_premium_label(flow) else 20,
    FlowType.DEFI_ACTIVITY: lambda flow: 30 if has_premium_label(flow) else 25,
    FlowType.TOKEN_LAUNCH: lambda flow: 35,
}


def score_flow_type(flow: Flow) -> int:
    return FLOW_TYPE_SCORERS[flow.flow_type](flow)


def score_size(amount_usd: float) -> int:
    for threshold, points in SIZE_BANDS:
        if amount_usd > threshold:
            return points
    return SIZE_FLOOR_POINTS


def score_label(label: str) -> int:
    """Category points for one lowercased label."""
    for points, keywords in ENTITY_CATEGORIES:
        if any(keyword in label for keyword in keywords):
            return points
    return OTHER_LABEL_POINTS


def score_entity(flow: Flow) -> int:
    """Best label score across both sides; 0 when unlabeled."""
    return max((score_label(label) for label in flow.labels), default=0)


def score_recency(timestamp_ms: int, now_ms: Optional[int] = None) -> int:
    now = now_ms if now_ms is not None else _now_ms()
    age_minutes = (now - timestamp_ms) / 60_000
    for limit, points in RECENCY_BANDS:
        if age_minutes < limit:
            return points
    return RECENCY_FLOOR_POINTS


def is_bridge_flow(flow: Flow) -> bool:
    return any(keyword in label for label in flow.labels for keyword in BRIDGE_KEYWORDS)


def is_unusual_route(flow: Flow) -> bool:
    """
    Routes that skip the usual path.

    - Fund/VC sending straight to a DEX
    - Smart-money exchange account withdrawing to a non-exchange
    """
    from_label = (flow.from_label or "").lower()
    to_label = (flow.to_label or "").lower()

    if ("fund" in from_label or "vc" in from_label) and (
        "uniswap" in to_label or "dex" in to_label
    ):
        return True

    if "exchange" in from_label and "smart" in from_label and "exchange" not in to_label:
        return True

    return False


def score_bonus(flow: Flow) -> int:
    bonus = 0

    if is_bridge_flow(flow):
        bonus += 5

    if is_unusual_route(flow):
        bonus += 5

    if (
        isinstance(flow, WhaleMovementFlow)
        and flow.whale_category == WhaleCategory.MEGA_WHALE
        and any("smart" in label for label in flow.labels)
    ):
        bonus += 3

    if (
        isinstance(flow, DefiActivityFlow)
        and flow.protocol
        and flow.protocol.lower() in TOP_DEFI_PROTOCOLS
    ):
        bonus += 2

    return bonus


# ─────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────

def score_breakdown(flow: Flow, now_ms: Optional[int] = None) -> ScoreBreakdown:
    return ScoreBreakdown(
        flow_type=score_flow_type(flow),
        size=score_size(flow.amount_usd),
        entity=score_entity(flow),
        recency=score_recency(flow.timestamp, now_ms),
        bonus=score_bonus(flow),
    )


def calculate_interestingness_score(flow: Flow, now_ms: Optional[int] = None) -> int:
    """
    Interestingness score for one flow.

    Args:
        flow: Flow to score
        now_ms: Reference time for recency (defaults to wall clock)

    Returns:
        Integer in [0, 100]
    """
    return score_breakdown(flow, now_ms).total


def rank_flows(flows: Iterable[Flow], now_ms: Optional[int] = None) -> list[Flow]:
    """
    Score every flow and sort for display.

    Every flow is scored against the same reference time. The returned
    flows carry their score in ``metadata.score``.
    """
    now = now_ms if now_ms is not None else _now_ms()
    scored = [
        flow.with_score(calculate_interestingness_score(flow, now))
        for flow in flows
    ]
    scored.sort(key=lambda f: (-f.metadata.score, -f.timestamp, f.id))

    if scored:
        logger.debug(
            f"[Scorer] Ranked {len(scored)} flows, "
            f"top score {scored[0].metadata.score}"
        )

    return scored
