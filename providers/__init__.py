"""
Providers Package - Async clients for upstream on-chain data.

Provides raw records for the movement pipeline. Clients raise on
failure; the fan-out helpers turn failed slices into empty results so
one bad chain or token never sinks a whole fetch.

Quick Start:
    from movements import Chain
    from providers import NansenClient, RetryPolicy, gather_slices

    async def fetch(since):
        async with NansenClient(api_key, retry_policy=RetryPolicy(max_attempts=3)) as client:
            slices = await gather_slices({
                "tier1": client.get_dex_trades([Chain.ETHEREUM], since, min_usd=1_000),
                "tier3:ethereum": client.fetch_transfers_for_chain(Chain.ETHEREUM, 2_000_000, since),
            }, timeout=45)
        return slices
"""

from providers.addresses import (
    NOTABLE_ADDRESSES,
    NotableAddress,
    addresses_by_category,
    label_for_address,
    tracked_addresses,
)
from providers.base import BaseProviderClient
from providers.etherscan import EtherscanClient
from providers.exceptions import (
    ChainNotSupportedError,
    FetchError,
    ProviderError,
    RateLimitError,
)
from providers.fanout import flatten, gather_slices, run_slice
from providers.nansen import NansenClient
from providers.retry import RetryPolicy, default_backoff, is_retryable
from providers.tokens import POPULAR_TOKENS, popular_tokens


__all__ = [
    # Clients
    "BaseProviderClient",
    "NansenClient",
    "EtherscanClient",

    # Retry / fan-out
    "RetryPolicy",
    "default_backoff",
    "is_retryable",
    "gather_slices",
    "run_slice",
    "flatten",

    # Exceptions
    "ProviderError",
    "FetchError",
    "RateLimitError",
    "ChainNotSupportedError",

    # Static data
    "POPULAR_TOKENS",
    "popular_tokens",
    "NOTABLE_ADDRESSES",
    "NotableAddress",
    "label_for_address",
    "tracked_addresses",
    "addresses_by_category",
]
