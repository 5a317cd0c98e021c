"""
Popular Tokens - Token contracts queried for large transfers per chain.

Transfer endpoints are token-scoped, so whale discovery walks the most
liquid tokens on each chain. Order matters: only the first N are
queried per fetch.
"""

from movements.models import Chain


POPULAR_TOKENS: dict[Chain, tuple[str, ...]] = {
    Chain.ETHEREUM: (
        # Stablecoins
        "0xdac17f958d2ee523a2206206994597c13d831ec7",  # USDT
        "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",  # USDC
        "0x6b175474e89094c44da98b954eedeac495271d0f",  # DAI
        "0x0000000000085d4780b73119b644ae5ecd22b376",  # TUSD
        "0x4fabb145d64652a948d72533023f6e7a623c7c53",  # BUSD
        # Majors
        "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2",  # WETH
        "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599",  # WBTC
        # DeFi
        "0x514910771af9ca656af840dff83e8264ecf986ca",  # LINK
        "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984",  # UNI
        "0x7fc66500c84a76ad7e9c93437bfc5ac33e2ddae9",  # AAVE
        "0xc011a73ee8576fb46f5e1c5751ca3b9fe0af2a6f",  # SNX
        "0xc00e94cb662c3520282e6f5717214004a7f26888",  # COMP
        "0x9f8f72aa9304c8b593d555f12ef6589cc3a579a2",  # MKR
        "0xd533a949740bb3306d119cc777fa900ba034cd52",  # CRV
        "0x95ad61b0a150d79219dcf64e1e6cc01f0b64c4ce",  # SHIB
        "0x4d224452801aced8b2f0aebe155379bb5d594381",  # APE
    ),
    Chain.BASE: (
        "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913",  # USDC
        "0xd9aaec86b65d86f6a7b5b1b0c42ffa531710b6ca",  # USDbC
        "0x50c5725949a6f0c72e6c4a641f24049a917db0cb",  # DAI
        "0x4200000000000000000000000000000000000006",  # WETH
        "0x940181a94a35a4569e4529a3cdfb74e38fd98631",  # AERO
        "0x4ed4e862860bed51a9570b96d89af5e1b0efefed",  # DEGEN
        "0x0b3e328455c4059eeb9e3f84b5543f74e24e7e1b",  # cbBTC
    ),
    Chain.SOLANA: (
        "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",  # USDC
        "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",  # USDT
        "So11111111111111111111111111111111111111112",   # wSOL
        "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So",   # mSOL
        "J1toso1uCk3RLmjorhTtrVwY9HJ7X8V9yYac6Y7kGCPn",  # JitoSOL
        "bSo13r4TkiE4KumL71LsHTPpL2euBYLFx6h9HP3piy1",   # bSOL
        "7vfCXTUXx5WJV5JADk17DUJ4ksgau7utNKj4b963voxs",  # ETH (Wormhole)
        "3NZ9JMVBmGAqocybic2c7LQCJScmgsAZ6vQqTDzcqmJh",  # WBTC (Wormhole)
        "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",  # BONK
        "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm",  # WIF
    ),
}


def popular_tokens(chain: Chain, limit: int = 0) -> list[str]:
    """Token addresses for ``chain``; ``limit`` <= 0 means all."""
    tokens = list(POPULAR_TOKENS.get(chain, ()))
    return tokens[:limit] if limit > 0 else tokens
