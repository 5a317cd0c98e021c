"""
Tag Enricher - Semantic tags from labels, amount and movement type.

Every rule is an independent boolean check; a movement can carry any
combination of tags. Label rules apply when either side matches.
"""

import logging
from typing import Optional

from movements.labels import (
    BOT_EMOJI,
    BRIDGE_KEYWORDS,
    EXCHANGE_EMOJI,
    EXCHANGE_KEYWORDS,
    FUND_KEYWORDS,
    MARKET_MAKER_KEYWORDS,
    PROTOCOL_KEYWORDS,
    PUBLIC_FIGURE_KEYWORDS,
    SMART_MONEY_KEYWORDS,
    STABLECOINS,
    any_label_contains,
    contains_any,
    is_present,
)
from movements.models import Movement, MovementTag, MovementType


logger = logging.getLogger(__name__)


WHALE_THRESHOLD_USD = 10_000_000
MEGA_WHALE_THRESHOLD_USD = 50_000_000


def _is_exchange_label(label: Optional[str]) -> bool:
    if not is_present(label):
        return False
    return EXCHANGE_EMOJI in label or contains_any(label, EXCHANGE_KEYWORDS)


def _is_protocol_label(label: Optional[str]) -> bool:
    if not is_present(label):
        return False
    return BOT_EMOJI in label or contains_any(label, PROTOCOL_KEYWORDS)


def _is_public_figure_label(label: Optional[str]) -> bool:
    if not is_present(label):
        return False
    return ".eth" in label.lower() or contains_any(label, PUBLIC_FIGURE_KEYWORDS)


def derive_tags(
    movement: Movement,
    whale_threshold_usd: float = WHALE_THRESHOLD_USD,
    mega_whale_threshold_usd: float = MEGA_WHALE_THRESHOLD_USD,
) -> tuple[MovementTag, ...]:
    """
    Compute tags for a movement.

    Tags come out in ``MovementTag`` declaration order, so equal inputs
    always produce equal tuples.
    """
    from_label = movement.from_label if is_present(movement.from_label) else None
    to_label = movement.to_label if is_present(movement.to_label) else None
    labels = (from_label, to_label)

    tags: set[MovementTag] = set()

    from_is_exchange = _is_exchange_label(from_label)
    to_is_exchange = _is_exchange_label(to_label)
    if from_is_exchange or to_is_exchange:
        tags.add(MovementTag.EXCHANGE)
    if to_is_exchange and not from_is_exchange:
        tags.add(MovementTag.EXCHANGE_DEPOSIT)
    if from_is_exchange and not to_is_exchange:
        tags.add(MovementTag.EXCHANGE_WITHDRAWAL)

    if any_label_contains(labels, FUND_KEYWORDS):
        tags.add(MovementTag.FUND)

    if any_label_contains(labels, MARKET_MAKER_KEYWORDS):
        tags.add(MovementTag.MARKET_MAKER)

    is_protocol = _is_protocol_label(from_label) or _is_protocol_label(to_label)
    if is_protocol:
        tags.add(MovementTag.PROTOCOL)

    if movement.movement_type == MovementType.BRIDGE or any_label_contains(labels, BRIDGE_KEYWORDS):
        tags.add(MovementTag.BRIDGE)

    if movement.asset_symbol and movement.asset_symbol.upper() in STABLECOINS:
        tags.add(MovementTag.STABLECOIN)

    if any_label_contains(labels, SMART_MONEY_KEYWORDS):
        tags.add(MovementTag.SMART_MONEY)

    if _is_public_figure_label(from_label) or _is_public_figure_label(to_label):
        tags.add(MovementTag.PUBLIC_FIGURE)

    if (
        movement.movement_type == MovementType.SWAP
        or movement.metadata.dex_name
        or is_protocol
    ):
        tags.add(MovementTag.DEFI)

    if movement.amount_usd > whale_threshold_usd:
        tags.add(MovementTag.WHALE)
    if movement.amount_usd > mega_whale_threshold_usd:
        tags.add(MovementTag.MEGA_WHALE)

    if MovementTag.EXCHANGE in tags and movement.amount_usd >= whale_threshold_usd:
        logger.debug(
            f"[TagEnricher] Large exchange flow {movement.id}: "
            f"{from_label or 'unlabeled'} -> {to_label or 'unlabeled'} "
            f"${movement.amount_usd / 1_000_000:.1f}M"
        )

    return tuple(tag for tag in MovementTag if tag in tags)


def enrich_tags(movement: Movement, **thresholds: float) -> Movement:
    """Return a copy with tags populated."""
    return movement.evolve(tags=derive_tags(movement, **thresholds))
