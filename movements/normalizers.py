"""
Movement Normalizers - Provider payload -> canonical Movement.

Each normalizer is a pure function that maps exactly one raw record to
exactly one Movement with placeholder tags (empty) and confidence (med).

Known limitation: the id is ``{chain}-{tx_hash}-{log_index or 0}``, so
multiple legs of one transaction collide unless the provider supplies
distinct log indices.
"""

import logging
from typing import Any, Callable, Iterable, Optional, Union

from movements.chains import explorer_url, nansen_tx_url, native_symbol
from movements.exceptions import NormalizationError
from movements.labels import (
    CEX_DIRECTION_KEYWORDS,
    STABLECOINS,
    contains_any,
)
from movements.models import (
    Chain,
    Confidence,
    DataSource,
    Movement,
    MovementMetadata,
    MovementType,
    RawDexTrade,
    RawTransfer,
    parse_timestamp_ms,
)


logger = logging.getLogger(__name__)


RawRecord = Union[RawTransfer, RawDexTrade]


def movement_id(chain: Chain, tx_hash: str, log_index: Optional[int] = None) -> str:
    """Deterministic movement id."""
    return f"{chain.value}-{tx_hash}-{log_index or 0}"


def _require_chain(chain: Union[Chain, str, None], raw: Any) -> Chain:
    parsed = Chain.parse(chain)
    if parsed is None:
        raise NormalizationError(
            f"Missing or unsupported chain: {chain!r}",
            chain=str(chain) if chain else None,
            raw_data=raw,
            field_name="chain",
        )
    return parsed


def _require_hash(tx_hash: Optional[str], chain: Chain, raw: Any) -> str:
    if not tx_hash:
        raise NormalizationError(
            "Missing transaction hash",
            chain=chain.value,
            raw_data=raw,
            field_name="transaction_hash",
        )
    return tx_hash


# ─────────────────────────────────────────────────────────────
# Classification
# ─────────────────────────────────────────────────────────────

def classify_transfer_type(
    transaction_type: Optional[str],
    exchange_type: Optional[str],
    from_label: Optional[str],
    to_label: Optional[str],
) -> MovementType:
    """
    Classify a transfer from provider heuristics.

    First match wins: mint/burn marker, DEX flag, bridge label,
    CEX withdrawal, CEX deposit, plain transfer.
    """
    tx_type = (transaction_type or "").lower()
    if "mint" in tx_type:
        return MovementType.MINT
    if "burn" in tx_type:
        return MovementType.BURN

    if exchange_type == "DEX":
        return MovementType.SWAP

    if contains_any(from_label, ("bridge",)) or contains_any(to_label, ("bridge",)):
        return MovementType.BRIDGE

    from_is_cex = contains_any(from_label, CEX_DIRECTION_KEYWORDS)
    to_is_cex = contains_any(to_label, CEX_DIRECTION_KEYWORDS)

    if from_is_cex and not to_is_cex:
        return MovementType.WITHDRAWAL
    if to_is_cex and not from_is_cex:
        return MovementType.DEPOSIT

    return MovementType.TRANSFER


# ─────────────────────────────────────────────────────────────
# Normalizers
# ─────────────────────────────────────────────────────────────

def normalize_transfer(raw: RawTransfer, chain: Union[Chain, str]) -> Movement:
    """
    Normalize a provider token transfer.

    Args:
        raw: Raw transfer record
        chain: Chain the record was fetched for

    Returns:
        Movement with empty tags and ``med`` confidence

    Raises:
        NormalizationError: If chain or transaction hash is missing
    """
    chain = _require_chain(chain, raw)
    tx_hash = _require_hash(raw.transaction_hash, chain, raw)

    return Movement(
        id=movement_id(chain, tx_hash, raw.log_index),
        ts=parse_timestamp_ms(raw.block_timestamp),
        chain=chain,
        movement_type=classify_transfer_type(
            raw.transaction_type,
            raw.exchange_type,
            raw.from_label,
            raw.to_label,
        ),
        amount_usd=max(raw.transfer_value_usd or 0.0, 0.0),
        data_source=DataSource.NANSEN,
        tags=(),
        confidence=Confidence.MED,
        token_amount=raw.transfer_amount,
        asset_symbol=raw.token_symbol or native_symbol(chain),
        asset_address=raw.token_address or None,
        from_address=raw.from_address,
        to_address=raw.to_address,
        from_label=raw.from_label or None,
        to_label=raw.to_label or None,
        tx_hash=tx_hash,
        explorer_url=explorer_url(chain, tx_hash),
        nansen_tx_url=nansen_tx_url(chain, tx_hash),
    )


def normalize_dex_trade(raw: RawDexTrade) -> Movement:
    """
    Normalize a smart-money DEX trade into a ``swap`` Movement.

    The "to" side is the purchased token, labelled with the venue it was
    bought on, not a wallet.
    """
    chain = _require_chain(raw.chain, raw)
    tx_hash = _require_hash(raw.transaction_hash, chain, raw)
    dex_name = raw.dex_name

    return Movement(
        id=movement_id(chain, tx_hash),
        ts=parse_timestamp_ms(raw.block_timestamp),
        chain=chain,
        movement_type=MovementType.SWAP,
        amount_usd=max(raw.trade_value_usd or 0.0, 0.0),
        data_source=DataSource.NANSEN,
        tags=(),
        confidence=Confidence.MED,
        token_amount=raw.token_bought_amount,
        asset_symbol=raw.token_bought_symbol or native_symbol(chain),
        asset_address=raw.token_bought_address,
        from_address=raw.trader_address,
        to_address=raw.token_bought_address,
        from_label=raw.trader_label or raw.smart_money_label or None,
        to_label=f"Bought via {dex_name or 'DEX'}",
        tx_hash=tx_hash,
        explorer_url=explorer_url(chain, tx_hash),
        nansen_tx_url=nansen_tx_url(chain, tx_hash),
        metadata=MovementMetadata(
            protocol=dex_name,
            action="swap",
            dex_name=dex_name,
        ),
    )


def normalize_etherscan_transfer(
    raw: dict[str, Any],
    label_lookup: Optional[Callable[[str], Optional[str]]] = None,
    chain: Union[Chain, str] = Chain.ETHEREUM,
) -> Movement:
    """
    Normalize an Etherscan ``tokentx`` row.

    Etherscan reports no USD value. Stablecoins are approximated 1:1,
    everything else is left at 0 USD. Labels come from ``label_lookup``
    (a static address book) when provided.
    """
    chain = _require_chain(chain, raw)
    tx_hash = _require_hash(raw.get("hash"), chain, raw)

    try:
        decimals = int(raw.get("tokenDecimal") or 18)
        token_amount = float(raw.get("value") or 0) / (10 ** decimals)
    except (TypeError, ValueError):
        token_amount = None

    symbol = (raw.get("tokenSymbol") or "").strip() or native_symbol(chain)
    amount_usd = token_amount if token_amount and symbol.upper() in STABLECOINS else 0.0

    from_address = raw.get("from") or None
    to_address = raw.get("to") or None
    lookup = label_lookup or (lambda _address: None)
    from_label = lookup(from_address) if from_address else None
    to_label = lookup(to_address) if to_address else None

    log_index = raw.get("logIndex")
    try:
        log_index = int(log_index) if log_index not in (None, "") else None
    except ValueError:
        log_index = None

    return Movement(
        id=movement_id(chain, tx_hash, log_index),
        ts=parse_timestamp_ms(raw.get("timeStamp")),
        chain=chain,
        movement_type=classify_transfer_type(None, None, from_label, to_label),
        amount_usd=max(amount_usd, 0.0),
        data_source=DataSource.ETHERSCAN,
        tags=(),
        confidence=Confidence.MED,
        token_amount=token_amount,
        asset_symbol=symbol,
        asset_address=raw.get("contractAddress") or None,
        from_address=from_address,
        to_address=to_address,
        from_label=from_label,
        to_label=to_label,
        tx_hash=tx_hash,
        explorer_url=explorer_url(chain, tx_hash),
    )


def normalize_record(record: RawRecord, chain: Union[Chain, str]) -> Movement:
    """Dispatch a raw record to its normalizer."""
    if isinstance(record, RawDexTrade):
        return normalize_dex_trade(record)
    if isinstance(record, RawTransfer):
        return normalize_transfer(record, chain)
    raise NormalizationError(
        f"Unsupported record type: {type(record).__name__}",
        raw_data=record,
    )


def normalize_records(
    records: Iterable[RawRecord],
    chain: Union[Chain, str],
) -> list[Movement]:
    """
    Normalize a batch, skipping records without identity fields.

    Skipped records are logged; the batch never aborts.
    """
    movements: list[Movement] = []
    skipped = 0

    for record in records:
        try:
            movements.append(normalize_record(record, chain))
        except NormalizationError as e:
            skipped += 1
            logger.warning(f"[Normalizer] Skipping record: {e}")

    if skipped:
        logger.info(f"[Normalizer] Normalized {len(movements)} records, skipped {skipped}")

    return movements


def normalize_etherscan_rows(
    rows: Iterable[dict[str, Any]],
    label_lookup: Optional[Callable[[str], Optional[str]]] = None,
    chain: Union[Chain, str] = Chain.ETHEREUM,
) -> list[Movement]:
    """Normalize Etherscan ``tokentx`` rows, skipping unusable ones."""
    movements: list[Movement] = []

    for row in rows:
        try:
            movements.append(normalize_etherscan_transfer(row, label_lookup, chain))
        except NormalizationError as e:
            logger.warning(f"[Normalizer] Skipping Etherscan row: {e}")

    return movements
