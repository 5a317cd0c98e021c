"""
Tests for Provider Clients.

============================================================
PURPOSE
============================================================
Retry policy, fan-out isolation, and the Nansen / Etherscan clients.

TEST PRINCIPLES:
- No network: HTTP is mocked at the session or request layer
- Sleeping is injected, never real
- One failing slice never affects the others

============================================================
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from movements.models import Chain, RawDexTrade, RawTransfer
from providers.addresses import (
    NotableAddress,
    addresses_by_category,
    label_for_address,
)
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
from providers.tokens import popular_tokens


SINCE = datetime(2024, 1, 1, tzinfo=timezone.utc)


# ============================================================
# FIXTURES
# ============================================================

def mock_session(status: int, json_data=None, text: str = "", headers=None):
    """aiohttp-like session whose request() yields one canned response."""
    response = MagicMock()
    response.status = status
    response.headers = headers or {}
    response.json = AsyncMock(return_value=json_data)
    response.text = AsyncMock(return_value=text)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.closed = False
    session.request = MagicMock(return_value=context)
    session.close = AsyncMock()
    return session


@pytest.fixture
def fast_policy():
    return RetryPolicy(max_attempts=3, sleep=AsyncMock())


@pytest.fixture
def nansen(fast_policy):
    return NansenClient("test-key", retry_policy=fast_policy, tokens_per_chain=3)


def server_error():
    return FetchError("HTTP 500", provider_name="test", status_code=500)


# ============================================================
# RETRY TESTS
# ============================================================

class TestRetryPolicy:
    """Tests for RetryPolicy."""

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, fast_policy):
        fn = AsyncMock(side_effect=[server_error(), {"ok": True}])

        result = await fast_policy.call(fn, "a", key="b")

        assert result == {"ok": True}
        assert fn.await_count == 2
        fn.assert_awaited_with("a", key="b")
        fast_policy.sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_exhausted_raises_last_error(self, fast_policy):
        fn = AsyncMock(side_effect=server_error())

        with pytest.raises(FetchError):
            await fast_policy.call(fn)

        assert fn.await_count == 3
        assert fast_policy.sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, fast_policy):
        fn = AsyncMock(side_effect=FetchError("HTTP 404", status_code=404))

        with pytest.raises(FetchError):
            await fast_policy.call(fn)

        assert fn.await_count == 1
        fast_policy.sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unlisted_error_propagates(self, fast_policy):
        fn = AsyncMock(side_effect=ValueError("bad payload"))

        with pytest.raises(ValueError):
            await fast_policy.call(fn)

        assert fn.await_count == 1

    @pytest.mark.asyncio
    async def test_no_retry(self):
        policy = RetryPolicy.no_retry()
        fn = AsyncMock(side_effect=server_error())

        with pytest.raises(FetchError):
            await policy.call(fn)

        assert fn.await_count == 1

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_backoff_shapes(self):
        backoff = default_backoff(1.0)
        limited = RateLimitError("429")

        assert backoff(0, server_error()) == 1.0
        assert backoff(2, server_error()) == 3.0
        assert backoff(0, limited) == 1.0
        assert backoff(2, limited) == 4.0
        assert backoff(3, RateLimitError("429", retry_after_seconds=2)) == 2.0

    def test_is_retryable(self):
        assert is_retryable(server_error())
        assert is_retryable(RateLimitError("429"))
        assert not is_retryable(FetchError("HTTP 401", status_code=401))

    def test_from_config(self):
        policy = RetryPolicy.from_config(5, 0.5)

        assert policy.max_attempts == 5
        assert policy.backoff(1, server_error()) == 1.0


# ============================================================
# FAN-OUT TESTS
# ============================================================

class TestFanOut:
    """Tests for slice isolation."""

    @pytest.mark.asyncio
    async def test_failures_become_empty(self):
        async def ok():
            return [1, 2]

        async def broken():
            raise FetchError("HTTP 500", status_code=500)

        async def slow():
            await asyncio.sleep(1)
            return [3]

        results = await gather_slices(
            {"ok": ok(), "broken": broken(), "slow": slow()},
            timeout=0.05,
        )

        assert results == {"ok": [1, 2], "broken": [], "slow": []}
        assert list(results) == ["ok", "broken", "slow"]

    @pytest.mark.asyncio
    async def test_run_slice_none_result(self):
        async def nothing():
            return None

        assert await run_slice("nothing", nothing()) == []

    def test_flatten(self):
        assert flatten([[1], [], [2, 3]]) == [1, 2, 3]


# ============================================================
# BASE CLIENT TESTS
# ============================================================

class TestBaseClientHttp:
    """Tests for status-code mapping in _make_request."""

    @pytest.mark.asyncio
    async def test_success_returns_json(self):
        session = mock_session(200, json_data={"data": []})
        client = NansenClient("test-key", session=session)

        assert await client._make_request("POST", "https://example.test") == {"data": []}
        assert client.stats()["requests"] == 1

    @pytest.mark.asyncio
    async def test_rate_limit(self):
        session = mock_session(429, headers={"Retry-After": "7"})
        client = NansenClient("test-key", session=session)

        with pytest.raises(RateLimitError) as exc:
            await client._make_request("POST", "https://example.test")

        assert exc.value.retry_after_seconds == 7

    @pytest.mark.asyncio
    async def test_server_error(self):
        session = mock_session(503, text="unavailable")
        client = NansenClient("test-key", session=session)

        with pytest.raises(FetchError) as exc:
            await client._make_request("GET", "https://example.test")

        assert exc.value.status_code == 503
        assert exc.value.response_body == "unavailable"
        assert not exc.value.is_client_error

    @pytest.mark.asyncio
    async def test_connection_error_chained(self):
        session = mock_session(200)
        session.request.side_effect = aiohttp.ClientConnectionError("reset")
        client = NansenClient("test-key", session=session)

        with pytest.raises(FetchError) as exc:
            await client._make_request("GET", "https://example.test")

        assert isinstance(exc.value.__cause__, aiohttp.ClientConnectionError)
        assert exc.value.status_code is None
        assert str(exc.value).startswith("[nansen] Connection error")

    def test_error_text_names_provider_and_chain(self):
        error = ChainNotSupportedError(
            "Chain solana not supported",
            provider_name="etherscan",
            chain="solana",
            supported_chains=["ethereum", "base"],
        )

        assert str(error) == "[etherscan] Chain solana not supported (chain=solana)"
        assert isinstance(error, ProviderError)

    @pytest.mark.asyncio
    async def test_request_counts_errors(self):
        session = mock_session(500)
        client = NansenClient("test-key", session=session, retry_policy=RetryPolicy.no_retry())

        with pytest.raises(FetchError):
            await client._request("GET", "https://example.test")

        assert client.stats()["errors"] == 1

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(self):
        session = mock_session(200)

        async with NansenClient("test-key", session=session):
            pass

        session.close.assert_not_awaited()


# ============================================================
# NANSEN TESTS
# ============================================================

class TestNansenClient:
    """Tests for NansenClient."""

    def test_rejects_placeholder_key(self):
        with pytest.raises(ProviderError):
            NansenClient("your_api_key")
        with pytest.raises(ProviderError):
            NansenClient("")

    @pytest.mark.asyncio
    async def test_get_dex_trades(self, nansen):
        rows = [{
            "transaction_hash": "0x1",
            "block_timestamp": "2024-01-01T00:00:00Z",
            "chain": "ethereum",
            "trader_label": "Smart Trader",
            "trade_value_usd": 5_000,
            "dex_name": "Uniswap",
        }]

        with patch.object(nansen, "_request", AsyncMock(return_value={"data": rows})) as request:
            trades = await nansen.get_dex_trades([Chain.ETHEREUM, Chain.SOLANA], SINCE, min_usd=1_000)

        assert len(trades) == 1
        assert isinstance(trades[0], RawDexTrade)
        assert trades[0].dex_name == "Uniswap"

        args, kwargs = request.call_args
        assert args == ("POST", f"{NansenClient.BASE_URL}/smart-money/dex-trades")
        assert kwargs["headers"]["apikey"] == "test-key"
        assert kwargs["json_body"]["chains"] == ["ethereum", "solana"]
        assert kwargs["json_body"]["filters"] == {"trade_value_usd": {"min": 1_000}}
        assert kwargs["json_body"]["date"]["from"] == "2024-01-01T00:00:00Z"

    @pytest.mark.asyncio
    async def test_unsupported_chain(self, nansen):
        with pytest.raises(ChainNotSupportedError) as exc:
            await nansen.get_dex_trades([Chain.HYPERLIQUID], SINCE)

        assert "ethereum" in exc.value.supported_chains

    @pytest.mark.asyncio
    async def test_get_token_transfers_stamps_chain(self, nansen):
        rows = [{"transaction_hash": "0x1", "block_timestamp": 1_704_067_200}]

        with patch.object(nansen, "_request", AsyncMock(return_value={"data": rows})):
            transfers = await nansen.get_token_transfers(Chain.SOLANA, "So111", 1_000_000, SINCE)

        assert transfers == [RawTransfer(
            transaction_hash="0x1",
            block_timestamp=1_704_067_200,
            chain="solana",
        )]

    @pytest.mark.asyncio
    async def test_empty_response(self, nansen):
        with patch.object(nansen, "_request", AsyncMock(return_value=[])):
            assert await nansen.get_token_transfers(Chain.BASE, "0xusdc", 1) == []

    @pytest.mark.asyncio
    async def test_fetch_transfers_isolates_tokens(self, nansen):
        transfer = RawTransfer(transaction_hash="0x1", block_timestamp=0, chain="ethereum")
        fetch = AsyncMock(side_effect=[server_error(), [transfer], [transfer]])

        with patch.object(nansen, "get_token_transfers", fetch):
            transfers = await nansen.fetch_transfers_for_chain(Chain.ETHEREUM, 2_000_000, SINCE)

        assert len(transfers) == 2
        assert fetch.call_count == 3
        assert fetch.call_args.kwargs["min_value_usd"] == 2_000_000

    @pytest.mark.asyncio
    async def test_address_labels_use_beta(self, nansen):
        with patch.object(nansen, "_request", AsyncMock(return_value={"data": [{"label": "Whale"}]})) as request:
            labels = await nansen.get_address_labels(Chain.ETHEREUM, "0xabc")

        assert labels == [{"label": "Whale"}]
        assert request.call_args.args[1].startswith(NansenClient.BETA_URL)


# ============================================================
# ETHERSCAN TESTS
# ============================================================

class TestEtherscanClient:
    """Tests for EtherscanClient."""

    @pytest.mark.asyncio
    async def test_token_transfers(self):
        client = EtherscanClient("key", chain=Chain.BASE)
        payload = {"status": "1", "message": "OK", "result": [{"hash": "0x1"}]}

        with patch.object(client, "_request", AsyncMock(return_value=payload)) as request:
            rows = await client.get_token_transfers("0xabc", offset=10)

        assert rows == [{"hash": "0x1"}]
        params = request.call_args.kwargs["params"]
        assert params["chainid"] == 8453
        assert params["action"] == "tokentx"
        assert params["offset"] == 10
        assert params["apikey"] == "key"

    @pytest.mark.asyncio
    async def test_no_transactions_is_empty(self):
        client = EtherscanClient()
        payload = {"status": "0", "message": "No transactions found", "result": []}

        with patch.object(client, "_request", AsyncMock(return_value=payload)):
            assert await client.get_transactions("0xabc") == []

    @pytest.mark.asyncio
    async def test_api_error(self):
        client = EtherscanClient()
        payload = {"status": "0", "message": "NOTOK", "result": "Invalid API Key"}

        with patch.object(client, "_request", AsyncMock(return_value=payload)):
            with pytest.raises(FetchError):
                await client.get_token_transfers("0xabc")

    @pytest.mark.asyncio
    async def test_unsupported_chain(self):
        client = EtherscanClient(chain=Chain.SOLANA)

        with pytest.raises(ChainNotSupportedError):
            await client.get_token_transfers("0xabc")

    @pytest.mark.asyncio
    async def test_transfers_for_addresses_sorted(self):
        client = EtherscanClient()
        addresses = [
            NotableAddress("0xa", "A", "whale"),
            NotableAddress("0xb", "B", "whale"),
            NotableAddress("0xc", "C", "whale"),
        ]
        fetch = AsyncMock(side_effect=[
            [{"hash": "old", "timeStamp": "100"}],
            server_error(),
            [{"hash": "new", "timeStamp": "300"}, {"hash": "mid", "timeStamp": "200"}],
        ])

        with patch.object(client, "get_token_transfers", fetch):
            rows = await client.get_transfers_for_addresses(addresses, limit=5)

        assert [row["hash"] for row in rows] == ["new", "mid", "old"]


# ============================================================
# STATIC DATA TESTS
# ============================================================

class TestStaticData:
    """Tests for address book and token lists."""

    def test_label_lookup_case_insensitive(self):
        address = "0x28C6c06298d514Db089934071355E5743bf21d60"

        assert label_for_address(address) == "Binance Hot Wallet"
        assert label_for_address(address.lower()) == "Binance Hot Wallet"
        assert label_for_address("0xnobody") is None
        assert label_for_address(None) is None

    def test_addresses_by_category(self):
        exchanges = addresses_by_category("exchange")

        assert exchanges
        assert all(a.category == "exchange" for a in exchanges)

    def test_popular_tokens_limit(self):
        assert len(popular_tokens(Chain.ETHEREUM, 3)) == 3
        assert popular_tokens(Chain.HYPERLIQUID) == []
