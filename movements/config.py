"""
Movement Pipeline Configuration - Thresholds and provider settings.

All thresholds are configurable for tuning.
API keys are loaded from environment variables (optionally a .env file).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv

from movements.exceptions import ConfigurationError
from movements.models import Chain


@dataclass
class ProviderConfig:
    """Credentials and HTTP behaviour for upstream providers."""
    nansen_api_key: Optional[str] = None
    etherscan_api_key: Optional[str] = None

    request_timeout: float = 30.0
    slice_timeout: float = 45.0  # Per-chain / per-token fetch budget
    max_retries: int = 3
    retry_backoff_base: float = 1.0  # Seconds, doubled per attempt

    # Nansen token-based transfer queries
    tokens_per_chain: int = 8
    transfers_per_token: int = 30
    dex_trades_limit: int = 100

    # Etherscan notable-address transfers (tier 2)
    etherscan_transfers_per_address: int = 10
    etherscan_exchange_wallets: int = 3

    def validate(self) -> None:
        """Validate provider settings."""
        if self.max_retries < 1:
            raise ConfigurationError("max_retries must be >= 1", config_key="max_retries")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be > 0", config_key="request_timeout")
        if self.nansen_api_key and "your_" in self.nansen_api_key:
            raise ConfigurationError("Invalid Nansen API key", config_key="NANSEN_API_KEY")

    def to_dict(self) -> dict[str, Any]:
        return {
            "nansen_configured": bool(self.nansen_api_key),
            "etherscan_configured": bool(self.etherscan_api_key),
            "request_timeout": self.request_timeout,
            "slice_timeout": self.slice_timeout,
            "max_retries": self.max_retries,
            "retry_backoff_base": self.retry_backoff_base,
        }


@dataclass
class PipelineConfig:
    """Main configuration for the movement pipeline."""

    supported_chains: list[Chain] = field(default_factory=lambda: [
        Chain.ETHEREUM,
        Chain.SOLANA,
        Chain.BASE,
    ])

    # Size thresholds
    whale_threshold_usd: float = 10_000_000
    mega_whale_threshold_usd: float = 50_000_000

    # Tier fetch thresholds
    tier1_min_usd: float = 1_000  # Smart money DEX trades
    tier3_min_usd: dict[Chain, float] = field(default_factory=lambda: {
        Chain.ETHEREUM: 2_000_000,
        Chain.SOLANA: 1_000_000,
        Chain.BASE: 1_000_000,
    })
    lookback_hours: int = 24

    # Process-local state
    dedup_capacity: int = 10_000
    cache_ttl_seconds: int = 3600  # Whale movements persist for hours
    cache_max_entries: int = 100

    log_level: str = "INFO"

    providers: ProviderConfig = field(default_factory=ProviderConfig)

    def __post_init__(self) -> None:
        if self.dedup_capacity < 2:
            raise ConfigurationError("dedup_capacity must be >= 2", config_key="dedup_capacity")

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "PipelineConfig":
        """Build configuration from environment variables."""
        load_dotenv(dotenv_path)

        providers = ProviderConfig(
            nansen_api_key=os.environ.get("NANSEN_API_KEY") or None,
            etherscan_api_key=os.environ.get("ETHERSCAN_API_KEY") or None,
            request_timeout=float(os.environ.get("PROVIDER_TIMEOUT", 30.0)),
            max_retries=int(os.environ.get("PROVIDER_MAX_RETRIES", 3)),
        )
        providers.validate()

        return cls(
            dedup_capacity=int(os.environ.get("DEDUP_CAPACITY", 10_000)),
            cache_ttl_seconds=int(os.environ.get("MOVEMENT_CACHE_TTL", 3600)),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            providers=providers,
        )

    def tier3_threshold(self, chain: Chain) -> float:
        """Minimum USD value for unlabeled whale transfers on ``chain``."""
        return self.tier3_min_usd.get(chain, self.tier3_min_usd[Chain.ETHEREUM])

    @property
    def log_level_value(self) -> int:
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.INFO

    def to_dict(self) -> dict[str, Any]:
        return {
            "supported_chains": [c.value for c in self.supported_chains],
            "whale_threshold_usd": self.whale_threshold_usd,
            "mega_whale_threshold_usd": self.mega_whale_threshold_usd,
            "tier1_min_usd": self.tier1_min_usd,
            "tier3_min_usd": {k.value: v for k, v in self.tier3_min_usd.items()},
            "lookback_hours": self.lookback_hours,
            "dedup_capacity": self.dedup_capacity,
            "cache_ttl_seconds": self.cache_ttl_seconds,
            "providers": self.providers.to_dict(),
        }


# Default configuration instance
_default_config: Optional[PipelineConfig] = None


def get_config() -> PipelineConfig:
    """Get the default configuration."""
    global _default_config
    if _default_config is None:
        _default_config = PipelineConfig.from_env()
    return _default_config


def set_config(config: PipelineConfig) -> None:
    """Set the default configuration."""
    global _default_config
    _default_config = config
