"""
Movement Data Models - Canonical schema for on-chain value movements.

Every provider payload (Nansen transfer, Nansen DEX trade, Etherscan
token transfer) is normalized into exactly one Movement. Enrichment
stages never mutate a Movement; they return an evolved copy.
"""

import dataclasses
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from movements.exceptions import NormalizationError


# Display-layer placeholder. Never stored by the normalizers.
UNKNOWN_WALLET_LABEL = "Unknown Wallet"


class Chain(Enum):
    """Supported blockchain networks."""
    ETHEREUM = "ethereum"
    SOLANA = "solana"
    BASE = "base"
    HYPERLIQUID = "hyperliquid"

    @classmethod
    def parse(cls, value: Union["Chain", str, None]) -> Optional["Chain"]:
        """Parse a chain from a provider string (case-insensitive)."""
        if value is None:
            return None
        if isinstance(value, Chain):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class MovementType(Enum):
    """Economic shape of a movement, fixed at normalization time."""
    TRANSFER = "transfer"        # Simple A -> B token transfer
    SWAP = "swap"                # DEX trade
    BRIDGE = "bridge"            # Cross-chain transfer
    MINT = "mint"                # Token creation (stablecoin issuance)
    BURN = "burn"                # Token destruction
    DEPOSIT = "deposit"          # CEX/protocol deposit
    WITHDRAWAL = "withdrawal"    # CEX/protocol withdrawal
    LIQUIDATION = "liquidation"  # Forced position closure
    OTHER = "other"


class MovementTag(Enum):
    """Semantic annotation derived from labels, amount and type."""
    EXCHANGE = "exchange"
    EXCHANGE_DEPOSIT = "exchange_deposit"
    EXCHANGE_WITHDRAWAL = "exchange_withdrawal"
    FUND = "fund"
    MARKET_MAKER = "market_maker"
    PROTOCOL = "protocol"
    BRIDGE = "bridge"
    STABLECOIN = "stablecoin"
    SMART_MONEY = "smart_money"
    PUBLIC_FIGURE = "public_figure"
    DEFI = "defi"
    WHALE = "whale"
    MEGA_WHALE = "mega_whale"


class Confidence(Enum):
    """Coarse data-quality bucket (distinct from tier)."""
    HIGH = "high"
    MED = "med"
    LOW = "low"


class DataSource(Enum):
    """Where a movement came from."""
    NANSEN = "nansen"
    ETHERSCAN = "etherscan"
    HYPERLIQUID = "hyperliquid"
    STITCHED = "stitched"


def parse_timestamp_ms(value: Any) -> int:
    """
    Convert a provider timestamp into unix milliseconds.

    Accepts ISO-8601 strings (with or without a trailing ``Z``), unix
    seconds and unix milliseconds (numbers or numeric strings).

    Raises:
        NormalizationError: If the value cannot be parsed
    """
    if value is None or value == "":
        raise NormalizationError("Missing timestamp", field_name="block_timestamp")

    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        try:
            number = float(text)
        except ValueError:
            try:
                dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError as e:
                raise NormalizationError(
                    f"Unparseable timestamp: {text}",
                    field_name="block_timestamp",
                    raw_data=value,
                    original_error=e,
                )
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return int(dt.timestamp() * 1000)

    if not math.isfinite(number):
        raise NormalizationError(
            f"Non-finite timestamp: {value}",
            field_name="block_timestamp",
            raw_data=value,
        )

    # Anything below 1e11 is seconds (year 5138 in ms)
    if number < 1e11:
        return int(number * 1000)
    return int(number)


def _optional_str(value: Any) -> Optional[str]:
    """Empty strings from providers mean 'absent'."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


# ─────────────────────────────────────────────────────────────
# Raw provider records
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RawTransfer:
    """
    Raw token transfer as returned by a provider.

    Field names follow the Nansen ``tgm/transfers`` response.
    """
    transaction_hash: Optional[str]
    block_timestamp: Any
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    from_label: Optional[str] = None
    to_label: Optional[str] = None
    token_symbol: Optional[str] = None
    token_address: Optional[str] = None
    transfer_amount: Optional[float] = None
    transfer_value_usd: float = 0.0
    transaction_type: Optional[str] = None
    exchange_type: Optional[str] = None  # "DEX" | "CEX" | "Direct"
    log_index: Optional[int] = None
    chain: Optional[str] = None

    @classmethod
    def from_nansen(cls, data: dict[str, Any]) -> "RawTransfer":
        """Create from a Nansen transfer payload."""
        log_index = data.get("log_index")
        return cls(
            transaction_hash=_optional_str(data.get("transaction_hash")),
            block_timestamp=data.get("block_timestamp"),
            from_address=_optional_str(data.get("from_address")),
            to_address=_optional_str(data.get("to_address")),
            from_label=_optional_str(data.get("from_address_label")),
            to_label=_optional_str(data.get("to_address_label")),
            token_symbol=_optional_str(data.get("token_symbol")),
            token_address=_optional_str(data.get("token_address")),
            transfer_amount=_optional_float(data.get("transfer_amount")),
            transfer_value_usd=_float(data.get("transfer_value_usd")),
            transaction_type=_optional_str(data.get("transaction_type")),
            exchange_type=_optional_str(data.get("exchange_type")),
            log_index=int(log_index) if log_index not in (None, "") else None,
            chain=_optional_str(data.get("chain")),
        )


@dataclass(frozen=True)
class RawDexTrade:
    """Raw smart-money DEX trade (Nansen ``smart-money/dex-trades``)."""
    transaction_hash: Optional[str]
    block_timestamp: Any
    chain: Optional[str]
    trader_address: Optional[str] = None
    trader_label: Optional[str] = None
    smart_money_label: Optional[str] = None
    token_bought_symbol: Optional[str] = None
    token_bought_address: Optional[str] = None
    token_bought_amount: Optional[float] = None
    trade_value_usd: float = 0.0
    dex_name: Optional[str] = None

    @classmethod
    def from_nansen(cls, data: dict[str, Any]) -> "RawDexTrade":
        """Create from a Nansen DEX trade payload."""
        return cls(
            transaction_hash=_optional_str(data.get("transaction_hash")),
            block_timestamp=data.get("block_timestamp"),
            chain=_optional_str(data.get("chain")),
            trader_address=_optional_str(data.get("trader_address")),
            trader_label=_optional_str(data.get("trader_label")),
            smart_money_label=_optional_str(data.get("smart_money_label")),
            token_bought_symbol=_optional_str(data.get("token_bought_symbol")),
            token_bought_address=_optional_str(data.get("token_bought_address")),
            token_bought_amount=_optional_float(data.get("token_bought_amount")),
            trade_value_usd=_float(data.get("trade_value_usd")),
            dex_name=_optional_str(data.get("dex_name")),
        )


# ─────────────────────────────────────────────────────────────
# Movement
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MovementMetadata:
    """Protocol-level details attached by the normalizer."""
    protocol: Optional[str] = None   # 'Uniswap', 'Aave', ...
    action: Optional[str] = None     # 'swap', 'borrow', 'lend', ...
    dex_name: Optional[str] = None
    price_impact: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "protocol": self.protocol,
            "action": self.action,
            "dex_name": self.dex_name,
            "price_impact": self.price_impact,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MovementMetadata":
        return cls(
            protocol=data.get("protocol"),
            action=data.get("action"),
            dex_name=data.get("dex_name"),
            price_impact=data.get("price_impact"),
        )


@dataclass(frozen=True)
class Movement:
    """
    Canonical record of one on-chain value transfer or trade.

    ``id`` is ``{chain}-{tx_hash}-{log_index}`` and is the dedup key.
    ``amount_usd`` is always a USD value, never a token amount.
    """
    # Identity
    id: str
    ts: int  # Unix ms
    chain: Chain

    # Classification
    movement_type: MovementType
    amount_usd: float
    data_source: DataSource
    tags: tuple[MovementTag, ...] = ()
    confidence: Confidence = Confidence.MED
    tier: Optional[int] = None  # 1 = smart money, 2 = labeled, 3 = unlabeled whale

    # Asset
    token_amount: Optional[float] = None
    asset_symbol: Optional[str] = None
    asset_address: Optional[str] = None

    # Entities
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    from_label: Optional[str] = None
    to_label: Optional[str] = None
    from_entity_id: Optional[str] = None
    to_entity_id: Optional[str] = None

    # Transaction
    tx_hash: Optional[str] = None
    explorer_url: Optional[str] = None
    nansen_tx_url: Optional[str] = None

    metadata: MovementMetadata = field(default_factory=MovementMetadata)

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.amount_usd < 0:
            raise ValueError(f"amount_usd must be >= 0, got {self.amount_usd}")
        if self.tier is not None and self.tier not in (1, 2, 3):
            raise ValueError(f"tier must be 1, 2 or 3, got {self.tier}")

    def evolve(self, **changes: Any) -> "Movement":
        """Return a copy with ``changes`` applied."""
        return dataclasses.replace(self, **changes)

    def has_tag(self, tag: MovementTag) -> bool:
        return tag in self.tags

    @property
    def labels(self) -> list[str]:
        """Present labels, from-side first."""
        return [label for label in (self.from_label, self.to_label) if label]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "ts": self.ts,
            "chain": self.chain.value,
            "movement_type": self.movement_type.value,
            "tags": [t.value for t in self.tags],
            "confidence": self.confidence.value,
            "tier": self.tier,
            "amount_usd": self.amount_usd,
            "token_amount": self.token_amount,
            "asset_symbol": self.asset_symbol,
            "asset_address": self.asset_address,
            "from_address": self.from_address,
            "to_address": self.to_address,
            "from_label": self.from_label,
            "to_label": self.to_label,
            "from_entity_id": self.from_entity_id,
            "to_entity_id": self.to_entity_id,
            "tx_hash": self.tx_hash,
            "explorer_url": self.explorer_url,
            "nansen_tx_url": self.nansen_tx_url,
            "metadata": self.metadata.to_dict(),
            "data_source": self.data_source.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Movement":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            ts=int(data["ts"]),
            chain=Chain(data["chain"]),
            movement_type=MovementType(data["movement_type"]),
            amount_usd=float(data["amount_usd"]),
            data_source=DataSource(data["data_source"]),
            tags=tuple(MovementTag(t) for t in data.get("tags", [])),
            confidence=Confidence(data.get("confidence", "med")),
            tier=data.get("tier"),
            token_amount=data.get("token_amount"),
            asset_symbol=data.get("asset_symbol"),
            asset_address=data.get("asset_address"),
            from_address=data.get("from_address"),
            to_address=data.get("to_address"),
            from_label=data.get("from_label"),
            to_label=data.get("to_label"),
            from_entity_id=data.get("from_entity_id"),
            to_entity_id=data.get("to_entity_id"),
            tx_hash=data.get("tx_hash"),
            explorer_url=data.get("explorer_url"),
            nansen_tx_url=data.get("nansen_tx_url"),
            metadata=MovementMetadata.from_dict(data.get("metadata") or {}),
        )
