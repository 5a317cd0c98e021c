"""
Entity Enricher - Maps free-text provider labels to canonical entity ids.

Different sub-labels of the same institution ("Binance 1",
"Binance Hot Wallet") resolve to one id ("cex-binance"), which lets the
deduplicator drop internal shuffles between wallets of one entity.

Resolution order:
1. Exact match on the normalized (lowercase, trimmed) label
2. Substring match in either direction, in table declaration order;
   the first pattern that matches wins
3. Fallback slug ``label-{slug}`` so identical unknown labels still
   collapse to one id
"""

import logging
import re
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from movements.labels import is_present, normalize_label
from movements.models import Movement


logger = logging.getLogger(__name__)


# Canonical id -> known label variants. Declaration order is the
# substring-match priority.
EXCHANGE_ENTITIES: dict[str, tuple[str, ...]] = {
    "cex-binance": (
        "binance", "binance 1", "binance 2", "binance 3", "binance 4",
        "binance 5", "binance 6", "binance 7", "binance 8", "binance 9",
        "binance 10", "binance deposit", "binance cold wallet",
        "binance hot wallet",
    ),
    "cex-coinbase": (
        "coinbase", "coinbase 1", "coinbase 2", "coinbase 3", "coinbase 4",
        "coinbase 5", "coinbase cold storage",
    ),
    "cex-kraken": ("kraken", "kraken 1", "kraken 2", "kraken 3", "kraken 4"),
    "cex-bybit": ("bybit", "bybit 1", "bybit 2", "bybit hot wallet"),
    "cex-okx": ("okx", "okex", "okx 1", "okx 2"),
    "cex-huobi": ("huobi", "huobi 1", "huobi 2"),
    "cex-kucoin": ("kucoin", "kucoin 1", "kucoin 2"),
    "cex-bitfinex": ("bitfinex", "bitfinex 1", "bitfinex 2"),
    "cex-gemini": ("gemini",),
    "cex-bitstamp": ("bitstamp",),
    "cex-gate": ("gate.io",),
    "cex-cryptocom": ("crypto.com",),
    "cex-mexc": ("mexc",),
}

FUND_ENTITIES: dict[str, tuple[str, ...]] = {
    "fund-jump": ("jump trading", "jump crypto"),
    "fund-alameda": ("alameda research",),
    "fund-3ac": ("three arrows capital", "3ac"),
    "fund-a16z": ("a16z", "andreessen horowitz"),
    "fund-paradigm": ("paradigm",),
    "fund-dragonfly": ("dragonfly",),
    "fund-pantera": ("pantera",),
    "fund-galaxy": ("galaxy digital",),
}

MARKET_MAKER_ENTITIES: dict[str, tuple[str, ...]] = {
    "mm-wintermute": ("wintermute", "wintermute trading"),
    "mm-amber": ("amber group",),
    "mm-janestreet": ("jane street",),
    "mm-dwrlabs": ("dwr labs",),
}

PROTOCOL_ENTITIES: dict[str, tuple[str, ...]] = {
    "protocol-uniswap": ("uniswap", "uniswap v2", "uniswap v3"),
    "protocol-aave": ("aave",),
    "protocol-compound": ("compound",),
    "protocol-maker": ("maker",),
    "protocol-curve": ("curve",),
    "protocol-balancer": ("balancer",),
}

DEFAULT_ENTITY_GROUPS: tuple[dict[str, tuple[str, ...]], ...] = (
    EXCHANGE_ENTITIES,
    FUND_ENTITIES,
    MARKET_MAKER_ENTITIES,
    PROTOCOL_ENTITIES,
)


def build_entity_table(
    groups: Iterable[Mapping[str, Iterable[str]]] = DEFAULT_ENTITY_GROUPS,
) -> Mapping[str, str]:
    """
    Flatten entity groups into a read-only ``pattern -> entity id`` table.

    The first group declaring a pattern owns it.
    """
    table: dict[str, str] = {}
    for group in groups:
        for entity_id, variants in group.items():
            for variant in variants:
                table.setdefault(normalize_label(variant), entity_id)
    return MappingProxyType(table)


def slugify_label(label: str) -> str:
    """Fallback entity id for labels with no known mapping."""
    slug = re.sub(r"\s+", "-", label.lower().strip())
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    return f"label-{slug}"


class EntityEnricher:
    """
    Resolves ``from_label``/``to_label`` into entity ids.

    The mapping table is built once and never mutated, so one instance
    can be shared by concurrent readers.
    """

    def __init__(self, table: Optional[Mapping[str, str]] = None) -> None:
        self._table = table if table is not None else build_entity_table()

    @property
    def table(self) -> Mapping[str, str]:
        return self._table

    def resolve(self, label: Optional[str]) -> Optional[str]:
        """
        Resolve one label to an entity id.

        Returns None for absent labels and the display placeholder.
        """
        if not is_present(label):
            return None

        normalized = normalize_label(label)
        if not normalized:
            return None

        entity_id = self._table.get(normalized)
        if entity_id is not None:
            return entity_id

        for pattern, entity_id in self._table.items():
            if pattern in normalized or normalized in pattern:
                return entity_id

        logger.debug(f"[EntityEnricher] No mapping for label '{label}', using fallback id")
        return slugify_label(label)

    def enrich(self, movement: Movement) -> Movement:
        """Return a copy with entity ids populated."""
        return movement.evolve(
            from_entity_id=self.resolve(movement.from_label),
            to_entity_id=self.resolve(movement.to_label),
        )

    def enrich_all(self, movements: Iterable[Movement]) -> list[Movement]:
        return [self.enrich(m) for m in movements]

    def __repr__(self) -> str:
        return f"<EntityEnricher(patterns={len(self._table)})>"
