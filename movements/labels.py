"""
Label Keyword Tables - Static keyword lists used for label heuristics.

Provider labels are free text ("Binance 14", "🏦 Coinbase: Hot Wallet",
"30D Smart Trader"). All matching is substring-based on lowercased text
unless a table says otherwise.
"""

from typing import Iterable, Optional

from movements.models import UNKNOWN_WALLET_LABEL


# Custody / bot markers used by Nansen in front of labels (case-sensitive)
EXCHANGE_EMOJI = "\U0001F3E6"  # 🏦
BOT_EMOJI = "\U0001F916"       # 🤖

# Used by the normalizer for deposit/withdrawal direction
CEX_DIRECTION_KEYWORDS: tuple[str, ...] = (
    "binance",
    "coinbase",
    "kraken",
    "exchange",
)

EXCHANGE_KEYWORDS: tuple[str, ...] = (
    "binance", "coinbase", "kraken", "bybit", "okx", "huobi", "kucoin",
    "bitfinex", "gemini", "bitstamp", "gate.io", "crypto.com", "mexc",
    "exchange", "ceffu",
)

FUND_KEYWORDS: tuple[str, ...] = (
    "fund", "capital", "ventures", "trading", "jump", "alameda",
    "three arrows", "3ac", "a16z", "paradigm", "dragonfly", "pantera",
    "galaxy", "investment",
)

MARKET_MAKER_KEYWORDS: tuple[str, ...] = (
    "wintermute", "amber", "jane street", "dwr labs",
    "market maker", "liquidity provider",
)

PROTOCOL_KEYWORDS: tuple[str, ...] = (
    "uniswap", "aave", "compound", "maker", "curve", "balancer",
    "morpho", "euler", "protocol", "contract", "vault", "pool",
)

BRIDGE_KEYWORDS: tuple[str, ...] = ("bridge",)

SMART_MONEY_KEYWORDS: tuple[str, ...] = (
    "smart", "smart trader", "smart money", "30d smart", "90d smart",
    "elite", "dex trader", "legendary",
)

PUBLIC_FIGURE_KEYWORDS: tuple[str, ...] = (
    "vitalik", "buterin", "hayden", "adams", "sam", "sbf", "su zhu",
    "kyle davies", "arthur", "hayes", "cz", "changpeng", "justin", "sun",
    "public figure", "influencer", "founder", "ceo", "celebrity",
)

STABLECOINS: frozenset[str] = frozenset({
    "USDT", "USDC", "DAI", "BUSD", "TUSD", "USDP", "GUSD", "PYUSD", "FRAX",
})


def is_present(label: Optional[str]) -> bool:
    """A label counts only if it is non-empty and not the display placeholder."""
    return bool(label) and label != UNKNOWN_WALLET_LABEL


def normalize_label(label: Optional[str]) -> str:
    """Lowercase/trim a label; absent labels become the empty string."""
    return label.lower().strip() if label else ""


def contains_any(label: Optional[str], keywords: Iterable[str]) -> bool:
    """True if the lowercased label contains any keyword."""
    text = normalize_label(label)
    if not text:
        return False
    return any(keyword in text for keyword in keywords)


def any_label_contains(labels: Iterable[Optional[str]], keywords: Iterable[str]) -> bool:
    """True if any label matches any keyword."""
    keywords = tuple(keywords)
    return any(contains_any(label, keywords) for label in labels)
