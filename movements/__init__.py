"""
Movements Package - On-chain movement normalization and enrichment.

Turns raw provider records (Nansen transfers, smart-money DEX trades,
Etherscan token transfers) into a single Movement schema, then enriches,
deduplicates and ranks them for display.

Features:
- One canonical Movement model per upstream event
- Label -> entity resolution (exchanges, funds, market makers, protocols)
- Independent semantic tags and a coarse confidence bucket
- Bounded, explicitly owned dedup state
- Typed flow variants with a 0-100 interestingness score

Quick Start:
    from movements import (
        Chain,
        Deduplicator,
        EntityEnricher,
        MovementPipeline,
        RawTransfer,
    )

    pipeline = MovementPipeline(EntityEnricher(), Deduplicator())

    records = [RawTransfer.from_nansen(row) for row in payload["data"]]
    movements = pipeline.process(records, Chain.ETHEREUM)

    for flow in pipeline.rank(movements)[:10]:
        print(f"{flow.metadata.score:3d} {flow.flow_type.value} ${flow.amount_usd:,.0f}")
"""

from movements.cache import MovementCache
from movements.confidence import (
    calculate_confidence,
    confidence_points,
    score_confidence,
)
from movements.config import (
    PipelineConfig,
    ProviderConfig,
    get_config,
    set_config,
)
from movements.deduplicator import Deduplicator
from movements.enrichers import EntityEnricher, derive_tags, enrich_tags
from movements.exceptions import (
    ConfigurationError,
    MovementPipelineError,
    NormalizationError,
)
from movements.models import (
    Chain,
    Confidence,
    DataSource,
    Movement,
    MovementMetadata,
    MovementTag,
    MovementType,
    RawDexTrade,
    RawTransfer,
    UNKNOWN_WALLET_LABEL,
)
from movements.normalizers import (
    normalize_dex_trade,
    normalize_etherscan_transfer,
    normalize_records,
    normalize_transfer,
)
from movements.pipeline import (
    MovementPipeline,
    assign_tier,
    filter_movements,
    sort_by_tier,
)


__version__ = "1.0.0"

__all__ = [
    # Models
    "Movement",
    "MovementMetadata",
    "MovementType",
    "MovementTag",
    "Confidence",
    "DataSource",
    "Chain",
    "RawTransfer",
    "RawDexTrade",
    "UNKNOWN_WALLET_LABEL",

    # Exceptions
    "MovementPipelineError",
    "NormalizationError",
    "ConfigurationError",

    # Config
    "PipelineConfig",
    "ProviderConfig",
    "get_config",
    "set_config",

    # Stages
    "normalize_transfer",
    "normalize_dex_trade",
    "normalize_etherscan_transfer",
    "normalize_records",
    "EntityEnricher",
    "derive_tags",
    "enrich_tags",
    "confidence_points",
    "calculate_confidence",
    "score_confidence",
    "Deduplicator",

    # Pipeline
    "MovementPipeline",
    "MovementCache",
    "assign_tier",
    "sort_by_tier",
    "filter_movements",
]
