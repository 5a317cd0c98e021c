"""
Flow Models - Display-oriented variants of a Movement.

A Flow is a Movement classified into one of four kinds. Each kind is its
own frozen dataclass carrying the fields only that kind has; ``Flow`` is
the union of all of them.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Union

from movements.models import Chain


class FlowType(Enum):
    """Kind of flow."""
    WHALE_MOVEMENT = "whale-movement"
    DEFI_ACTIVITY = "defi-activity"
    TOKEN_LAUNCH = "token-launch"
    SMART_MONEY = "smart-money"


class WhaleCategory(Enum):
    MEGA_WHALE = "mega-whale"
    WHALE = "whale"
    SMART_MONEY = "smart-money"


class DefiAction(Enum):
    SWAP = "swap"
    LIQUIDITY_ADD = "liquidity-add"
    LIQUIDITY_REMOVE = "liquidity-remove"
    BORROW = "borrow"
    LEND = "lend"


@dataclass(frozen=True)
class FlowMetadata:
    """Classification and scoring annotations."""
    category: Optional[str] = None  # First movement tag
    tags: tuple[str, ...] = ()
    confidence: int = 50  # 0-100
    anomaly_score: int = 0  # 0-100
    score: Optional[int] = None  # Interestingness, set by the ranker

    # Token launch market data
    liquidity: Optional[float] = None
    volume_24h: Optional[float] = None
    price_change_24h: Optional[float] = None
    market_cap: Optional[float] = None
    fdv: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "category": self.category,
            "tags": list(self.tags),
            "confidence": self.confidence,
            "anomaly_score": self.anomaly_score,
            "score": self.score,
        }
        for key in ("liquidity", "volume_24h", "price_change_24h", "market_cap", "fdv"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class FlowBase:
    """Fields shared by every flow kind."""
    flow_type: ClassVar[FlowType]

    id: str
    chain: Chain
    timestamp: int  # Unix ms
    amount: float  # Token units
    amount_usd: float

    token_symbol: str = "UNKNOWN"
    token_address: str = ""
    from_address: str = ""
    from_label: Optional[str] = None
    to_address: str = ""
    to_label: Optional[str] = None
    tx_hash: str = ""

    metadata: FlowMetadata = field(default_factory=FlowMetadata)

    @property
    def labels(self) -> list[str]:
        """Present labels, lowercased."""
        return [label.lower() for label in (self.from_label, self.to_label) if label]

    def with_score(self, score: int) -> "FlowBase":
        """Return a copy with ``metadata.score`` set."""
        return dataclasses.replace(
            self,
            metadata=dataclasses.replace(self.metadata, score=score),
        )

    def _extra_fields(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {
            "id": self.id,
            "type": self.flow_type.value,
            "chain": self.chain.value,
            "timestamp": self.timestamp,
            "amount": self.amount,
            "amount_usd": self.amount_usd,
            "token": {
                "symbol": self.token_symbol,
                "address": self.token_address,
            },
            "from": {"address": self.from_address, "label": self.from_label},
            "to": {"address": self.to_address, "label": self.to_label},
            "tx_hash": self.tx_hash,
            "metadata": self.metadata.to_dict(),
        }
        data.update(self._extra_fields())
        return data


@dataclass(frozen=True)
class WhaleMovementFlow(FlowBase):
    flow_type: ClassVar[FlowType] = FlowType.WHALE_MOVEMENT

    whale_category: WhaleCategory = WhaleCategory.WHALE

    def _extra_fields(self) -> dict[str, Any]:
        return {"whale_category": self.whale_category.value}


@dataclass(frozen=True)
class DefiActivityFlow(FlowBase):
    flow_type: ClassVar[FlowType] = FlowType.DEFI_ACTIVITY

    protocol: Optional[str] = None
    action: Optional[DefiAction] = None

    def _extra_fields(self) -> dict[str, Any]:
        return {
            "protocol": self.protocol,
            "action": self.action.value if self.action else None,
        }


@dataclass(frozen=True)
class TokenLaunchFlow(FlowBase):
    flow_type: ClassVar[FlowType] = FlowType.TOKEN_LAUNCH

    market_cap: Optional[float] = None
    liquidity: Optional[float] = None
    holders: Optional[int] = None
    launched_at: Optional[int] = None

    def _extra_fields(self) -> dict[str, Any]:
        return {
            "market_cap": self.market_cap,
            "liquidity": self.liquidity,
            "holders": self.holders,
            "launched_at": self.launched_at,
        }


@dataclass(frozen=True)
class SmartMoneyFlow(FlowBase):
    flow_type: ClassVar[FlowType] = FlowType.SMART_MONEY

    trader_pnl: Optional[float] = None  # 30d PnL
    trader_rank: Optional[int] = None

    def _extra_fields(self) -> dict[str, Any]:
        return {
            "trader_pnl": self.trader_pnl,
            "trader_rank": self.trader_rank,
        }


Flow = Union[WhaleMovementFlow, DefiActivityFlow, TokenLaunchFlow, SmartMoneyFlow]

FLOW_CLASSES: dict[FlowType, type] = {
    FlowType.WHALE_MOVEMENT: WhaleMovementFlow,
    FlowType.DEFI_ACTIVITY: DefiActivityFlow,
    FlowType.TOKEN_LAUNCH: TokenLaunchFlow,
    FlowType.SMART_MONEY: SmartMoneyFlow,
}
