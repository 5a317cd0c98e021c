"""
Notable Addresses - Static address book used to label Etherscan rows.

Etherscan returns bare addresses; this table supplies human labels for
a small set of well-known wallets so the entity and tag enrichers have
something to work with.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class NotableAddress:
    address: str
    label: str
    category: str  # whale | exchange | public-figure | fund | defi


NOTABLE_ADDRESSES: tuple[NotableAddress, ...] = (
    # Public figures
    NotableAddress("0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045", "Vitalik Buterin", "public-figure"),
    NotableAddress("0xAb5801a7D398351b8bE11C439e05C5B3259aeC9B", "Vitalik Buterin (2)", "public-figure"),
    NotableAddress("0x220866B1A2219f40e72f5c628B65D54268cA3A9D", "Vitalik Buterin (3)", "public-figure"),
    # Funds
    NotableAddress("0x8EB8a3b98659Cce290402893d0a8614FD165a6B9", "Grayscale Bitcoin Trust", "fund"),
    NotableAddress("0x9F8c163cBA728e99993ABe7495F06c0A3c8Ac8b9", "Grayscale Ethereum Trust", "fund"),
    NotableAddress("0x5e52E2301f01D3B55D87902db0cbf3E9DcC4c8b9", "Ark Invest", "fund"),
    NotableAddress("0x05e793cE0C6027323Ac150F6d45C2344d28B6019", "a16z", "fund"),
    # Exchanges
    NotableAddress("0x28C6c06298d514Db089934071355E5743bf21d60", "Binance Hot Wallet", "exchange"),
    NotableAddress("0x3f5CE5FBFe3E9af3971dD833D26bA9b5C936f0bE", "Binance 1", "exchange"),
    NotableAddress("0xD551234Ae421e3BCBA99A0Da6d736074f22192FF", "Binance 2", "exchange"),
    NotableAddress("0x564286362092D8e7936f0549571a803B203aAceD", "Binance 3", "exchange"),
    NotableAddress("0x71660c4005BA85c37ccec55d0C4493E66Fe775d3", "Coinbase 1", "exchange"),
    NotableAddress("0x503828976D22510aad0201ac7EC88293211D23Da", "Coinbase 2", "exchange"),
    NotableAddress("0xddfAbCdc4D8FfC6d5beaf154f18B778f892A0740", "Coinbase 3", "exchange"),
    NotableAddress("0x56Eddb7aa87536c09CCc2793473599fD21A8b17F", "Kraken", "exchange"),
    # Whales
    NotableAddress("0x00000000219ab540356cBB839Cbe05303d7705Fa", "Ethereum Foundation", "whale"),
    NotableAddress("0x5041ed759Dd4aFc3a72b8192C143F72f4724081A", "Jump Trading", "whale"),
    NotableAddress("0x40B38765696e3d5d8d9d834D8AaD4bB6e418E489", "Alameda Research", "whale"),
    # DeFi
    NotableAddress("0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D", "Uniswap V2 Router", "defi"),
    NotableAddress("0xE592427A0AEce92De3Edee1F18E0157C05861564", "Uniswap V3 Router", "defi"),
    NotableAddress("0x7d2768dE32b0b80b7a3454c06BdAc94A69DDc7A9", "Aave V2", "defi"),
)

_BY_ADDRESS: dict[str, NotableAddress] = {a.address.lower(): a for a in NOTABLE_ADDRESSES}


def label_for_address(address: Optional[str]) -> Optional[str]:
    """Case-insensitive label lookup."""
    if not address:
        return None
    entry = _BY_ADDRESS.get(address.lower())
    return entry.label if entry else None


def addresses_by_category(category: str) -> list[NotableAddress]:
    return [a for a in NOTABLE_ADDRESSES if a.category == category]


def tracked_addresses(exchange_wallets: int = 3) -> list[NotableAddress]:
    """Whales plus the first few exchange hot wallets."""
    return addresses_by_category("whale") + addresses_by_category("exchange")[:exchange_wallets]
