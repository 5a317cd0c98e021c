"""
Movement Pipeline - Normalize, enrich, deduplicate, score.

Stages:
    raw records -> normalize -> entities -> tags -> confidence -> dedup
    movements -> flows -> interestingness rank

All stages are synchronous and pure except the deduplicator, whose
seen-set is owned by the caller and passed in explicitly.

Usage:
    pipeline = MovementPipeline(EntityEnricher(), Deduplicator())
    movements = pipeline.process(raw_records, Chain.ETHEREUM)
    flows = pipeline.rank(movements)
"""

import logging
from typing import Iterable, Optional, Union

from movements.confidence import score_confidence
from movements.config import PipelineConfig, get_config
from movements.deduplicator import Deduplicator
from movements.enrichers.entity import EntityEnricher
from movements.enrichers.tags import enrich_tags
from movements.flows.mapper import movements_to_flows
from movements.flows.models import Flow
from movements.flows.scorer import rank_flows
from movements.models import Chain, Movement, MovementTag
from movements.normalizers import RawRecord, normalize_records


logger = logging.getLogger(__name__)


# Public filter names accepted by the HTTP layer
FILTER_TAGS: dict[str, MovementTag] = {
    "exchanges": MovementTag.EXCHANGE,
    "funds": MovementTag.FUND,
    "market-makers": MovementTag.MARKET_MAKER,
    "protocols": MovementTag.PROTOCOL,
    "bridges": MovementTag.BRIDGE,
    "stablecoins": MovementTag.STABLECOIN,
    "smart-money": MovementTag.SMART_MONEY,
    "public-figures": MovementTag.PUBLIC_FIGURE,
    "defi": MovementTag.DEFI,
    "whales": MovementTag.WHALE,
}


def assign_tier(movements: Iterable[Movement], tier: int) -> list[Movement]:
    """Stamp an upstream signal tier on every movement."""
    return [m.evolve(tier=tier) for m in movements]


def sort_by_tier(movements: Iterable[Movement]) -> list[Movement]:
    """Tier ascending (untiered last), then most recent first."""
    return sorted(movements, key=lambda m: (m.tier or 4, -m.ts, m.id))


def filter_movements(
    movements: Iterable[Movement],
    filter_name: Optional[str],
) -> list[Movement]:
    """
    Keep movements carrying the tag named by ``filter_name``.

    Unknown or empty filters keep everything.
    """
    movements = list(movements)
    tag = FILTER_TAGS.get((filter_name or "").lower())
    if tag is None:
        return movements
    return [m for m in movements if m.has_tag(tag)]


def chain_counts(movements: Iterable[Movement], chains: Iterable[Chain]) -> dict[str, int]:
    counts = {chain.value: 0 for chain in chains}
    for movement in movements:
        counts[movement.chain.value] = counts.get(movement.chain.value, 0) + 1
    return counts


class MovementPipeline:
    """
    Wires the processing stages together.

    The deduplicator carries state across calls; share one pipeline (or
    one deduplicator) per long-lived process.
    """

    def __init__(
        self,
        entity_enricher: EntityEnricher,
        deduplicator: Deduplicator,
        config: Optional[PipelineConfig] = None,
    ) -> None:
        self._entity_enricher = entity_enricher
        self._deduplicator = deduplicator
        self._config = config or get_config()

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def deduplicator(self) -> Deduplicator:
        return self._deduplicator

    # ─────────────────────────────────────────────────────────────
    # Movement stages
    # ─────────────────────────────────────────────────────────────

    def enrich_one(self, movement: Movement) -> Movement:
        movement = self._entity_enricher.enrich(movement)
        movement = enrich_tags(
            movement,
            whale_threshold_usd=self._config.whale_threshold_usd,
            mega_whale_threshold_usd=self._config.mega_whale_threshold_usd,
        )
        return score_confidence(movement)

    def enrich(self, movements: Iterable[Movement]) -> list[Movement]:
        """Entity, tag and confidence enrichment. No dedup."""
        return [self.enrich_one(m) for m in movements]

    def process_movements(self, movements: Iterable[Movement]) -> list[Movement]:
        """Enrich and deduplicate already-normalized movements."""
        enriched = self.enrich(movements)
        deduped = self._deduplicator.deduplicate(enriched)

        logger.info(
            f"[Pipeline] Enriched {len(enriched)} movements, "
            f"{len(deduped)} after deduplication"
        )
        return deduped

    def process(
        self,
        records: Iterable[RawRecord],
        chain: Union[Chain, str],
    ) -> list[Movement]:
        """
        Full movement pipeline for one batch of raw records.

        Records that fail normalization are logged and skipped.

        Args:
            records: Raw provider records
            chain: Chain the batch was fetched for

        Returns:
            Enriched, deduplicated movements in input order
        """
        normalized = normalize_records(records, chain)
        logger.info(f"[Pipeline] Normalized {len(normalized)} records for {chain}")
        return self.process_movements(normalized)

    # ─────────────────────────────────────────────────────────────
    # Flow stages
    # ─────────────────────────────────────────────────────────────

    def to_flows(self, movements: Iterable[Movement]) -> list[Flow]:
        return movements_to_flows(movements)

    def rank(self, movements: Iterable[Movement], now_ms: Optional[int] = None) -> list[Flow]:
        """Map movements to flows and sort by interestingness."""
        flows = rank_flows(self.to_flows(movements), now_ms=now_ms)
        logger.info(f"[Pipeline] Ranked {len(flows)} flows")
        return flows

    def __repr__(self) -> str:
        return f"<MovementPipeline(enricher={self._entity_enricher!r}, dedup={self._deduplicator!r})>"
