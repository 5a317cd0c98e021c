"""
Tests for Flow Mapping and Interestingness Scoring.

============================================================
PURPOSE
============================================================
Movement -> typed Flow -> 0-100 display score.

TEST PRINCIPLES:
- Every flow type has a builder
- Scores stay within [0, 100] no matter how bonuses stack
- Ranking is a total order (score, timestamp, id)

============================================================
"""

import pytest

from movements.flows import (
    DefiAction,
    DefiActivityFlow,
    FlowMetadata,
    FlowType,
    SmartMoneyFlow,
    TokenLaunchFlow,
    WhaleCategory,
    WhaleMovementFlow,
    calculate_anomaly_score,
    calculate_interestingness_score,
    classify_flow_type,
    movement_to_flow,
    movements_to_flows,
    rank_flows,
    score_breakdown,
)
from movements.flows.mapper import FLOW_BUILDERS
from movements.flows.scorer import score_entity, score_recency, score_size
from movements.models import (
    Chain,
    Confidence,
    DataSource,
    Movement,
    MovementMetadata,
    MovementTag,
    MovementType,
)


NOW_MS = 1_704_067_200_000
MINUTE_MS = 60_000
DAY_MS = 24 * 60 * MINUTE_MS


def make_movement(**overrides) -> Movement:
    fields = dict(
        id="ethereum-0xtest-0",
        ts=NOW_MS,
        chain=Chain.ETHEREUM,
        movement_type=MovementType.TRANSFER,
        amount_usd=1_000.0,
        data_source=DataSource.NANSEN,
        asset_symbol="ETH",
        tx_hash="0xtest",
    )
    fields.update(overrides)
    return Movement(**fields)


def make_whale(**overrides) -> WhaleMovementFlow:
    fields = dict(
        id="flow-1",
        chain=Chain.ETHEREUM,
        timestamp=NOW_MS,
        amount=1.0,
        amount_usd=2_000_000,
    )
    fields.update(overrides)
    return WhaleMovementFlow(**fields)


# ============================================================
# MAPPER TESTS
# ============================================================

class TestClassifyFlowType:
    """Tests for flow classification."""

    def test_tier1_swap_is_smart_money(self):
        movement = make_movement(tier=1, movement_type=MovementType.SWAP)
        assert classify_flow_type(movement) == FlowType.SMART_MONEY

    def test_tier3_swap_with_defi_tag(self):
        movement = make_movement(
            tier=3,
            movement_type=MovementType.SWAP,
            tags=(MovementTag.DEFI,),
        )
        assert classify_flow_type(movement) == FlowType.DEFI_ACTIVITY

    def test_metadata_protocol_is_defi(self):
        movement = make_movement(metadata=MovementMetadata(protocol="Aave"))
        assert classify_flow_type(movement) == FlowType.DEFI_ACTIVITY

    def test_default_is_whale_movement(self):
        movement = make_movement(tags=(MovementTag.EXCHANGE, MovementTag.WHALE))
        assert classify_flow_type(movement) == FlowType.WHALE_MOVEMENT


class TestMovementToFlow:
    """Tests for flow building."""

    def test_every_flow_type_has_builder(self):
        assert set(FLOW_BUILDERS) == set(FlowType)

    def test_whale_flow_fields(self):
        movement = make_movement(
            amount_usd=60_000_000,
            token_amount=25_000.0,
            tags=(MovementTag.EXCHANGE, MovementTag.WHALE, MovementTag.MEGA_WHALE),
            confidence=Confidence.HIGH,
            from_label="Binance 1",
        )

        flow = movement_to_flow(movement)

        assert isinstance(flow, WhaleMovementFlow)
        assert flow.whale_category == WhaleCategory.MEGA_WHALE
        assert flow.amount == 25_000.0
        assert flow.timestamp == movement.ts
        assert flow.metadata.category == "exchange"
        assert flow.metadata.tags == ("exchange", "whale", "mega_whale")
        assert flow.metadata.confidence == 90
        assert flow.metadata.anomaly_score == 30

    def test_smart_money_whale_category(self):
        movement = make_movement(tags=(MovementTag.SMART_MONEY,))
        assert movement_to_flow(movement).whale_category == WhaleCategory.SMART_MONEY

    def test_defi_flow(self):
        movement = make_movement(
            movement_type=MovementType.SWAP,
            tags=(MovementTag.DEFI,),
            metadata=MovementMetadata(protocol="Uniswap", action="swap"),
            confidence=Confidence.LOW,
        )

        flow = movement_to_flow(movement)

        assert isinstance(flow, DefiActivityFlow)
        assert flow.protocol == "Uniswap"
        assert flow.action == DefiAction.SWAP
        assert flow.metadata.confidence == 50

    def test_defi_action_fallbacks(self):
        explicit = make_movement(metadata=MovementMetadata(protocol="Aave", action="Borrow"))
        unknown = make_movement(
            movement_type=MovementType.DEPOSIT,
            metadata=MovementMetadata(protocol="Lido", action="stake"),
        )
        none = make_movement(metadata=MovementMetadata(protocol="Curve"))

        assert movement_to_flow(explicit).action == DefiAction.BORROW
        assert movement_to_flow(unknown).action == DefiAction.LIQUIDITY_ADD
        assert movement_to_flow(none).action is None

    def test_smart_money_flow(self):
        flow = movement_to_flow(make_movement(tier=1, movement_type=MovementType.SWAP))

        assert isinstance(flow, SmartMoneyFlow)
        assert flow.trader_pnl is None

    def test_forced_token_launch(self):
        flow = movement_to_flow(make_movement(), flow_type=FlowType.TOKEN_LAUNCH)

        assert isinstance(flow, TokenLaunchFlow)
        assert flow.launched_at == NOW_MS

    def test_missing_fields_use_defaults(self):
        flow = movement_to_flow(make_movement(asset_symbol=None, tx_hash=None))

        assert flow.token_symbol == "UNKNOWN"
        assert flow.token_address == ""
        assert flow.tx_hash == ""
        assert flow.amount == 0.0
        assert flow.metadata.category is None

    def test_to_dict(self):
        flow = movement_to_flow(make_movement(from_label="Kraken"))
        data = flow.to_dict()

        assert data["type"] == "whale-movement"
        assert data["chain"] == "ethereum"
        assert data["from"] == {"address": "", "label": "Kraken"}
        assert data["whale_category"] == "whale"
        assert "market_cap" not in data["metadata"]

    def test_movements_to_flows_preserves_order(self):
        movements = [make_movement(id="a"), make_movement(id="b")]
        assert [f.id for f in movements_to_flows(movements)] == ["a", "b"]


class TestAnomalyScore:
    """Tests for anomaly scoring."""

    def test_size_bands(self):
        assert calculate_anomaly_score(make_movement(amount_usd=500_000)) == 0
        assert calculate_anomaly_score(make_movement(amount_usd=2_000_000)) == 10
        assert calculate_anomaly_score(make_movement(amount_usd=20_000_000)) == 20

    def test_combinations(self):
        movement = make_movement(
            amount_usd=150_000_000,
            movement_type=MovementType.BRIDGE,
            tags=(
                MovementTag.EXCHANGE,
                MovementTag.FUND,
                MovementTag.SMART_MONEY,
                MovementTag.MEGA_WHALE,
            ),
        )
        assert calculate_anomaly_score(movement) == 100

    def test_capped(self):
        movement = make_movement(
            amount_usd=150_000_000,
            movement_type=MovementType.LIQUIDATION,
            tags=(
                MovementTag.EXCHANGE,
                MovementTag.FUND,
                MovementTag.SMART_MONEY,
                MovementTag.MEGA_WHALE,
            ),
        )
        assert calculate_anomaly_score(movement) == 100


# ============================================================
# SCORER TESTS
# ============================================================

class TestScoreComponents:
    """Tests for individual score components."""

    def test_size_bands_are_strict(self):
        assert score_size(100_000_001) == 30
        assert score_size(100_000_000) == 25
        assert score_size(100_001) == 5
        assert score_size(100) == 3
        assert score_size(0) == 3

    def test_recency_bands(self):
        assert score_recency(NOW_MS - 4 * MINUTE_MS, NOW_MS) == 10
        assert score_recency(NOW_MS - 5 * MINUTE_MS, NOW_MS) == 8
        assert score_recency(NOW_MS - 2 * 60 * MINUTE_MS, NOW_MS) == 4
        assert score_recency(NOW_MS - 2 * DAY_MS, NOW_MS) == 1

    def test_entity_best_side(self):
        assert score_entity(make_whale()) == 0
        assert score_entity(make_whale(from_label="Random Wallet")) == 8
        assert score_entity(make_whale(from_label="Binance 1")) == 10
        assert score_entity(make_whale(from_label="Binance 1", to_label="Paradigm")) == 15

    def test_unlabeled_whale(self):
        flow = make_whale(timestamp=NOW_MS - 2 * DAY_MS)
        breakdown = score_breakdown(flow, NOW_MS)

        assert breakdown.to_dict() == {
            "flow_type": 20,
            "size": 10,
            "entity": 0,
            "recency": 1,
            "bonus": 0,
            "total": 31,
        }

    def test_smart_mega_whale(self):
        flow = make_whale(
            amount_usd=150_000_000,
            from_label="Smart Money Whale",
            whale_category=WhaleCategory.MEGA_WHALE,
        )

        assert calculate_interestingness_score(flow, NOW_MS) == 93

    def test_total_is_clamped(self):
        flow = DefiActivityFlow(
            id="defi-1",
            chain=Chain.ETHEREUM,
            timestamp=NOW_MS,
            amount=1.0,
            amount_usd=150_000_000,
            from_label="Smart Money Fund Bridge",
            to_label="Uniswap DEX",
            protocol="Uniswap",
            action=DefiAction.SWAP,
        )

        breakdown = score_breakdown(flow, NOW_MS)

        assert breakdown.bonus == 12
        assert breakdown.total == 100

    def test_token_launch_type_points(self):
        flow = TokenLaunchFlow(id="t", chain=Chain.BASE, timestamp=NOW_MS, amount=0, amount_usd=0)
        assert score_breakdown(flow, NOW_MS).flow_type == 35


class TestRankFlows:
    """Tests for rank_flows."""

    def test_sets_score_and_orders(self):
        small = make_whale(id="small", amount_usd=50)
        big = make_whale(id="big", amount_usd=60_000_000)

        ranked = rank_flows([small, big], NOW_MS)

        assert [f.id for f in ranked] == ["big", "small"]
        assert all(f.metadata.score is not None for f in ranked)
        assert small.metadata.score is None

    def test_tie_break_later_timestamp_first(self):
        older = make_whale(id="a", timestamp=NOW_MS - 3 * DAY_MS)
        newer = make_whale(id="b", timestamp=NOW_MS - 2 * DAY_MS)

        ranked = rank_flows([older, newer], NOW_MS)

        assert ranked[0].metadata.score == ranked[1].metadata.score
        assert [f.id for f in ranked] == ["b", "a"]

    def test_tie_break_by_id(self):
        ranked = rank_flows([make_whale(id="z"), make_whale(id="a")], NOW_MS)
        assert [f.id for f in ranked] == ["a", "z"]

    def test_deterministic(self):
        flows = [make_whale(id=str(i), amount_usd=i * 1_000_000) for i in range(10)]

        first = rank_flows(flows, NOW_MS)
        second = rank_flows(list(reversed(flows)), NOW_MS)

        assert [f.id for f in first] == [f.id for f in second]

    @pytest.mark.parametrize("amount_usd", [0, 1_000, 5_000_001, 10**12])
    def test_scores_in_bounds(self, amount_usd):
        flow = make_whale(
            amount_usd=amount_usd,
            from_label="Smart Money Bridge",
            to_label="Vitalik",
            whale_category=WhaleCategory.MEGA_WHALE,
        )
        score = calculate_interestingness_score(flow, NOW_MS)

        assert 0 <= score <= 100

    def test_metadata_default(self):
        assert FlowMetadata().confidence == 50
