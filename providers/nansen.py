"""
Nansen Client - Labeled transfers and smart-money DEX trades.

Endpoints (POST, ``apikey`` header):
- /smart-money/dex-trades   multi-chain smart-money trades
- /tgm/transfers            token-scoped transfers with address labels
- /profiler/address/labels  full label set for one address (beta API)

Transfer discovery is token-based: for each chain the most liquid
tokens are queried concurrently and the results merged.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import aiohttp

from movements.models import Chain, RawDexTrade, RawTransfer
from providers.base import BaseProviderClient
from providers.exceptions import ChainNotSupportedError, ProviderError
from providers.fanout import flatten, gather_slices
from providers.retry import RetryPolicy
from providers.tokens import popular_tokens


logger = logging.getLogger(__name__)


def _iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class NansenClient(BaseProviderClient):
    """
    Async Nansen API client.

    Usage:
        async with NansenClient(api_key) as client:
            trades = await client.get_dex_trades([Chain.ETHEREUM], min_usd=1_000, since=since)
            transfers = await client.fetch_transfers_for_chain(Chain.SOLANA, 1_000_000, since)
    """

    BASE_URL = "https://api.nansen.ai/api/v1"
    BETA_URL = "https://api.nansen.ai/api/beta"

    CHAIN_IDS: dict[Chain, str] = {
        Chain.ETHEREUM: "ethereum",
        Chain.SOLANA: "solana",
        Chain.BASE: "base",
    }

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        session: Optional[aiohttp.ClientSession] = None,
        tokens_per_chain: int = 8,
        transfers_per_token: int = 30,
        slice_timeout: Optional[float] = None,
    ) -> None:
        if not api_key or "your_" in api_key:
            raise ProviderError("Invalid Nansen API key", provider_name="nansen")
        super().__init__(api_key, timeout, retry_policy, session)
        self._tokens_per_chain = tokens_per_chain
        self._transfers_per_token = transfers_per_token
        self._slice_timeout = slice_timeout

    @property
    def name(self) -> str:
        return "nansen"

    def _auth_headers(self) -> dict[str, str]:
        # Lowercase header name per Nansen docs
        return {"apikey": self._api_key or "", "Content-Type": "application/json"}

    def _chain_id(self, chain: Chain) -> str:
        if chain not in self.CHAIN_IDS:
            raise ChainNotSupportedError(
                message=f"Chain {chain.value} not supported",
                provider_name=self.name,
                chain=chain.value,
                supported_chains=[c.value for c in self.CHAIN_IDS],
            )
        return self.CHAIN_IDS[chain]

    async def _post(self, endpoint: str, body: dict[str, Any], beta: bool = False) -> dict[str, Any]:
        base_url = self.BETA_URL if beta else self.BASE_URL
        response = await self._request(
            "POST",
            f"{base_url}{endpoint}",
            json_body=body,
            headers=self._auth_headers(),
        )
        return response if isinstance(response, dict) else {}

    # ─────────────────────────────────────────────────────────────
    # Smart money
    # ─────────────────────────────────────────────────────────────

    async def get_dex_trades(
        self,
        chains: list[Chain],
        since: datetime,
        min_usd: Optional[float] = None,
        max_usd: Optional[float] = None,
        smart_money_labels: Optional[list[str]] = None,
        limit: int = 100,
    ) -> list[RawDexTrade]:
        """Smart-money DEX trades across ``chains`` since ``since``."""
        filters: dict[str, Any] = {}
        value_filter: dict[str, float] = {}
        if min_usd:
            value_filter["min"] = min_usd
        if max_usd:
            value_filter["max"] = max_usd
        if value_filter:
            filters["trade_value_usd"] = value_filter
        if smart_money_labels:
            filters["smart_money_label"] = list(smart_money_labels)

        response = await self._post("/smart-money/dex-trades", {
            "chains": [self._chain_id(c) for c in chains],
            "filters": filters,
            "date": {
                "from": _iso(since),
                "to": _iso(datetime.now(timezone.utc)),
            },
            "pagination": {"page": 1, "per_page": limit},
        })

        trades = [RawDexTrade.from_nansen(row) for row in response.get("data") or []]
        logger.info(f"[{self.name}] {len(trades)} smart money DEX trades")
        return trades

    # ─────────────────────────────────────────────────────────────
    # Transfers
    # ─────────────────────────────────────────────────────────────

    async def get_token_transfers(
        self,
        chain: Chain,
        token_address: str,
        min_value_usd: float,
        since: Optional[datetime] = None,
        limit: int = 50,
    ) -> list[RawTransfer]:
        """Transfers of one token above ``min_value_usd``."""
        since = since or datetime.now(timezone.utc) - timedelta(hours=24)
        response = await self._post("/tgm/transfers", {
            "chain": self._chain_id(chain),
            "token_address": token_address,
            "filters": {"transfer_value_usd": {"min": min_value_usd}},
            "date": {
                "from": _iso(since),
                "to": _iso(datetime.now(timezone.utc)),
            },
            "pagination": {"page": 1, "per_page": limit},
        })

        rows = response.get("data") or []
        return [RawTransfer.from_nansen({"chain": chain.value, **row}) for row in rows]

    async def fetch_transfers_for_chain(
        self,
        chain: Chain,
        min_usd: float,
        since: Optional[datetime] = None,
    ) -> list[RawTransfer]:
        """
        Large transfers on one chain, merged across popular tokens.

        Each token is an independent slice; a failing token contributes
        nothing.
        """
        self._chain_id(chain)
        tokens = popular_tokens(chain, self._tokens_per_chain)
        if not tokens:
            logger.info(f"[{self.name}] No popular tokens configured for {chain.value}")
            return []

        results = await gather_slices(
            {
                f"{chain.value}:{token}": self.get_token_transfers(
                    chain,
                    token,
                    min_value_usd=min_usd,
                    since=since,
                    limit=self._transfers_per_token,
                )
                for token in tokens
            },
            timeout=self._slice_timeout,
        )

        transfers = flatten(results.values())
        logger.info(f"[{self.name}] {len(transfers)} transfers on {chain.value} from {len(tokens)} tokens")
        return transfers

    # ─────────────────────────────────────────────────────────────
    # Labels
    # ─────────────────────────────────────────────────────────────

    async def get_address_labels(self, chain: Chain, address: str) -> list[dict[str, Any]]:
        """Full label records for one address."""
        response = await self._post(
            "/profiler/address/labels",
            {"chain": self._chain_id(chain), "address": address},
            beta=True,
        )
        return list(response.get("data") or [])
