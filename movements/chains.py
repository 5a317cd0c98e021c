"""
Chain Metadata - Native assets and explorer links per chain.
"""

from dataclasses import dataclass
from typing import Optional

from movements.models import Chain


@dataclass(frozen=True)
class ChainInfo:
    """Static per-chain display and default data."""
    chain: Chain
    name: str
    native_symbol: str
    explorer_tx_url: str
    nansen_slug: str
    priority: int  # Lower is higher priority


CHAIN_INFO: dict[Chain, ChainInfo] = {
    Chain.ETHEREUM: ChainInfo(
        chain=Chain.ETHEREUM,
        name="Ethereum",
        native_symbol="ETH",
        explorer_tx_url="https://etherscan.io/tx/",
        nansen_slug="ethereum",
        priority=1,
    ),
    Chain.SOLANA: ChainInfo(
        chain=Chain.SOLANA,
        name="Solana",
        native_symbol="SOL",
        explorer_tx_url="https://solscan.io/tx/",
        nansen_slug="solana",
        priority=2,
    ),
    Chain.BASE: ChainInfo(
        chain=Chain.BASE,
        name="Base",
        native_symbol="ETH",  # Base gas token is ETH
        explorer_tx_url="https://basescan.org/tx/",
        nansen_slug="base",
        priority=3,
    ),
    Chain.HYPERLIQUID: ChainInfo(
        chain=Chain.HYPERLIQUID,
        name="Hyperliquid",
        native_symbol="HYPE",
        explorer_tx_url="https://app.hyperliquid.xyz/explorer/tx/",
        nansen_slug="hyperliquid",
        priority=4,
    ),
}


def native_symbol(chain: Chain) -> str:
    """Default asset symbol when the provider omits one."""
    info = CHAIN_INFO.get(chain)
    return info.native_symbol if info else "UNKNOWN"


def explorer_url(chain: Chain, tx_hash: Optional[str]) -> Optional[str]:
    """Block explorer link for a transaction."""
    if not tx_hash:
        return None
    return f"{CHAIN_INFO[chain].explorer_tx_url}{tx_hash}"


def nansen_tx_url(chain: Chain, tx_hash: Optional[str]) -> Optional[str]:
    """Nansen transaction page link."""
    if not tx_hash:
        return None
    return f"https://app.nansen.ai/tx/{CHAIN_INFO[chain].nansen_slug}/{tx_hash}"


def chains_by_priority() -> list[Chain]:
    return sorted(CHAIN_INFO, key=lambda c: CHAIN_INFO[c].priority)
