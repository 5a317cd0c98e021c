"""
Movement Service - Multi-tier fetch, pipeline and cache for the API.

Tiers:
- Tier 1: smart-money DEX trades above ``tier1_min_usd``
- Tier 2: recent Etherscan token transfers of tracked whale and exchange
  wallets, labeled from the static address book (needs ETHERSCAN_API_KEY)
- Tier 3: large token transfers per chain above ``tier3_min_usd[chain]``

One service instance owns one pipeline (and so one deduplicator) and one
cache for the life of the process. The cache holds the unfiltered window
for the current hour; filters are applied on the way out.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from movements.cache import MovementCache
from movements.config import PipelineConfig
from movements.deduplicator import Deduplicator
from movements.enrichers.entity import EntityEnricher
from movements.exceptions import ConfigurationError
from movements.flows.models import Flow
from movements.models import Chain, Movement
from movements.normalizers import normalize_etherscan_rows, normalize_records
from movements.pipeline import (
    MovementPipeline,
    assign_tier,
    chain_counts,
    filter_movements,
    sort_by_tier,
)
from providers.addresses import label_for_address, tracked_addresses
from providers.etherscan import EtherscanClient
from providers.fanout import gather_slices
from providers.nansen import NansenClient
from providers.retry import RetryPolicy


logger = logging.getLogger(__name__)


ClientFactory = Callable[[], NansenClient]
EtherscanFactory = Callable[[], EtherscanClient]


@dataclass
class MovementsResult:
    movements: list[Movement]
    cached: bool
    source: str
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    counts: dict[str, int] = field(default_factory=dict)

    def data_health(self) -> dict[str, Any]:
        return {
            "last_fetch": self.fetched_at.isoformat(),
            "counts": self.counts,
        }


class MovementService:
    """
    Fetches, processes and caches movements.

    Usage:
        service = MovementService(config)
        result = await service.get_movements(filter_name="whales")
    """

    def __init__(
        self,
        config: PipelineConfig,
        pipeline: Optional[MovementPipeline] = None,
        cache: Optional[MovementCache] = None,
        client_factory: Optional[ClientFactory] = None,
        etherscan_factory: Optional[EtherscanFactory] = None,
    ) -> None:
        self._config = config
        self._pipeline = pipeline or MovementPipeline(
            EntityEnricher(),
            Deduplicator(config.dedup_capacity),
            config,
        )
        self._cache = cache or MovementCache(
            ttl_seconds=config.cache_ttl_seconds,
            max_entries=config.cache_max_entries,
        )
        self._client_factory = client_factory or self._default_client
        if etherscan_factory is None and config.providers.etherscan_api_key:
            etherscan_factory = self._default_etherscan_client
        self._etherscan_factory = etherscan_factory

    @property
    def pipeline(self) -> MovementPipeline:
        return self._pipeline

    @property
    def cache(self) -> MovementCache:
        return self._cache

    def _default_client(self) -> NansenClient:
        providers = self._config.providers
        if not providers.nansen_api_key:
            raise ConfigurationError("NANSEN_API_KEY not configured", config_key="NANSEN_API_KEY")
        return NansenClient(
            providers.nansen_api_key,
            timeout=providers.request_timeout,
            retry_policy=RetryPolicy.from_config(providers.max_retries, providers.retry_backoff_base),
            tokens_per_chain=providers.tokens_per_chain,
            transfers_per_token=providers.transfers_per_token,
            slice_timeout=providers.slice_timeout,
        )

    def _default_etherscan_client(self) -> EtherscanClient:
        providers = self._config.providers
        return EtherscanClient(
            providers.etherscan_api_key,
            timeout=providers.request_timeout,
            retry_policy=RetryPolicy.from_config(providers.max_retries, providers.retry_backoff_base),
        )

    def _since(self) -> datetime:
        """Start of the lookback window, truncated to the hour."""
        now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
        return now - timedelta(hours=self._config.lookback_hours)

    # ─────────────────────────────────────────────────────────────
    # Fetch
    # ─────────────────────────────────────────────────────────────

    async def fetch_tiers(self, since: datetime) -> list[Movement]:
        """Fetch and normalize every tier; failed slices contribute nothing."""
        chains = self._config.supported_chains
        slice_timeout = self._config.providers.slice_timeout

        async with self._client_factory() as client:
            slices = {
                "tier1": client.get_dex_trades(
                    chains,
                    since,
                    min_usd=self._config.tier1_min_usd,
                    limit=self._config.providers.dex_trades_limit,
                ),
            }
            for chain in chains:
                slices[f"tier3:{chain.value}"] = client.fetch_transfers_for_chain(
                    chain,
                    self._config.tier3_threshold(chain),
                    since,
                )
            if self._etherscan_factory is not None:
                slices["tier2"] = self._fetch_notable_transfers()

            results = await gather_slices(slices, timeout=slice_timeout)

        movements = assign_tier(normalize_records(results.pop("tier1"), Chain.ETHEREUM), 1)
        logger.info(f"[MovementService] Tier 1: {len(movements)} smart money DEX trades")

        if "tier2" in results:
            since_ms = int(since.timestamp() * 1000)
            tier2 = [
                m for m in normalize_etherscan_rows(results.pop("tier2"), label_for_address)
                if m.ts >= since_ms
            ]
            tier2 = assign_tier(tier2, 2)
            logger.info(f"[MovementService] Tier 2: {len(tier2)} notable address transfers")
            movements.extend(tier2)

        for chain in chains:
            tier3 = assign_tier(normalize_records(results[f"tier3:{chain.value}"], chain), 3)
            logger.info(f"[MovementService] Tier 3 {chain.value}: {len(tier3)} whale movements")
            movements.extend(tier3)

        return movements

    async def _fetch_notable_transfers(self) -> list[dict[str, Any]]:
        providers = self._config.providers
        async with self._etherscan_factory() as etherscan:
            return await etherscan.get_transfers_for_addresses(
                tracked_addresses(providers.etherscan_exchange_wallets),
                limit=providers.etherscan_transfers_per_address,
                slice_timeout=providers.slice_timeout,
            )

    async def get_movements(self, filter_name: Optional[str] = None) -> MovementsResult:
        """
        Cached movements for the current window, fetching on a miss.

        Raises:
            ConfigurationError: If no Nansen API key is configured
        """
        since = self._since()
        key = self._cache.cache_key(self._config.supported_chains, None, since)

        window = self._cache.get(key)
        cached = window is not None
        if cached:
            logger.info(f"[MovementService] Cache hit: {key}")
        else:
            logger.info("[MovementService] Fetching fresh data")
            normalized = await self.fetch_tiers(since)
            window = sort_by_tier(self._pipeline.process_movements(normalized))
            self._cache.set(key, window)

        movements = filter_movements(window, filter_name)
        counts = chain_counts(movements, self._config.supported_chains)
        logger.info(f"[MovementService] Returning {len(movements)} movements {counts}")
        return MovementsResult(
            movements=movements,
            cached=cached,
            source="cache" if cached else "nansen",
            counts=counts,
        )

    async def get_flows(
        self,
        filter_name: Optional[str] = None,
        limit: Optional[int] = None,
        now_ms: Optional[int] = None,
    ) -> tuple[list[Flow], MovementsResult]:
        """Ranked flows built from the current movements."""
        result = await self.get_movements(filter_name)
        flows = self._pipeline.rank(result.movements, now_ms=now_ms)
        if limit is not None:
            flows = flows[:limit]
        return flows, result
