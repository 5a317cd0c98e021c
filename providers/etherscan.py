"""
Etherscan Client - ERC-20 token transfers for tracked addresses.

Uses the Etherscan V2 unified API (``chainid`` parameter). Rows are
returned as raw dicts; ``movements.normalizers.normalize_etherscan_transfer``
turns them into Movements.

Free tier limits:
- 5 calls/second
- 100,000 calls/day (with API key)
"""

import logging
from typing import Any, Iterable, Optional

import aiohttp

from movements.models import Chain
from providers.addresses import NotableAddress
from providers.base import BaseProviderClient
from providers.exceptions import ChainNotSupportedError, FetchError
from providers.fanout import flatten, gather_slices
from providers.retry import RetryPolicy


logger = logging.getLogger(__name__)


NO_TRANSACTIONS = "No transactions found"


class EtherscanClient(BaseProviderClient):
    """
    Async Etherscan client.

    Usage:
        async with EtherscanClient(api_key) as client:
            rows = await client.get_token_transfers("0x28C6...")
    """

    V2_API_URL = "https://api.etherscan.io/v2/api"

    CHAIN_IDS: dict[Chain, int] = {
        Chain.ETHEREUM: 1,
        Chain.BASE: 8453,
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        chain: Chain = Chain.ETHEREUM,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(api_key, timeout, retry_policy, session)
        self._chain = chain

    @property
    def name(self) -> str:
        return "etherscan"

    @property
    def chain(self) -> Chain:
        return self._chain

    def _chain_id(self, chain: Chain) -> int:
        if chain not in self.CHAIN_IDS:
            raise ChainNotSupportedError(
                message=f"Chain {chain.value} not supported",
                provider_name=self.name,
                chain=chain.value,
                supported_chains=[c.value for c in self.CHAIN_IDS],
            )
        return self.CHAIN_IDS[chain]

    async def _account_query(
        self,
        action: str,
        address: str,
        page: int,
        offset: int,
        sort: str,
        start_block: Optional[int],
        end_block: Optional[int],
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "chainid": self._chain_id(self._chain),
            "module": "account",
            "action": action,
            "address": address,
            "page": page,
            "offset": offset,
            "sort": sort,
        }
        if self._api_key:
            params["apikey"] = self._api_key
        if start_block:
            params["startblock"] = start_block
        if end_block:
            params["endblock"] = end_block

        data = await self._request("GET", self.V2_API_URL, params=params)
        if not isinstance(data, dict):
            return []

        # status "0" with this message is an empty result, not an error
        if str(data.get("status")) == "0" and data.get("message") != NO_TRANSACTIONS:
            raise FetchError(
                message=f"API error: {data.get('message')} {data.get('result')}",
                provider_name=self.name,
                chain=self._chain.value,
            )

        result = data.get("result")
        return result if isinstance(result, list) else []

    async def get_token_transfers(
        self,
        address: str,
        page: int = 1,
        offset: int = 100,
        sort: str = "desc",
        start_block: Optional[int] = None,
        end_block: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """ERC-20 ``tokentx`` rows for one address."""
        rows = await self._account_query(
            "tokentx", address, page, offset, sort, start_block, end_block
        )
        logger.debug(f"[{self.name}] {len(rows)} token transfers for {address[:10]}...")
        return rows

    async def get_transactions(
        self,
        address: str,
        page: int = 1,
        offset: int = 100,
        sort: str = "desc",
        start_block: Optional[int] = None,
        end_block: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Native ``txlist`` rows for one address."""
        return await self._account_query(
            "txlist", address, page, offset, sort, start_block, end_block
        )

    async def get_transfers_for_addresses(
        self,
        addresses: Iterable[NotableAddress],
        limit: int = 20,
        slice_timeout: Optional[float] = None,
    ) -> list[dict[str, Any]]:
        """
        Recent token transfers for several addresses, newest first.

        Each address is its own slice; failures contribute nothing.
        """
        results = await gather_slices(
            {
                entry.address: self.get_token_transfers(entry.address, offset=limit)
                for entry in addresses
            },
            timeout=slice_timeout,
        )
        rows = flatten(results.values())
        rows.sort(key=lambda row: int(row.get("timeStamp") or 0), reverse=True)

        logger.info(f"[{self.name}] {len(rows)} token transfers from {len(results)} addresses")
        return rows
