"""Unit tests for the liquidation cascade."""
from __future__ import annotations

from dataclasses import replace

import pytest
from web3 import Web3

from conftest import ASSET_A, ASSET_B, BORROWER_1, BORROWER_2, make_submitter

from comet_liquidator.config import GasPolicy, MarketConfig
from comet_liquidator.exceptions import ConfigurationGapError, PendingTransactionError
from comet_liquidator.models import MAX_UINT256, Asset
from comet_liquidator.services.cascade import (
    TIER_ABSORB,
    TIER_MAXIMAL,
    TIER_TIERED,
    LiquidationCascade,
    tiered_amounts,
)

LIQUIDATOR_BOT = "0x9999999999999999999999999999999999999999"
ABSORBER = "0x8888888888888888888888888888888888888888"


def _calls(submitter) -> list:
    return [c.args[0] for c in submitter.submit.await_args_list]


class TestTieredAmounts:
    def test_fractions(self) -> None:
        assert tiered_amounts(1000) == (1000, 500, 100)

    def test_integer_division(self) -> None:
        assert tiered_amounts(25) == (25, 12, 2)

    def test_zero_amounts_are_dropped(self) -> None:
        assert tiered_amounts(7) == (7, 3)
        assert tiered_amounts(1) == (1,)
        assert tiered_amounts(0) == ()


class TestMaximalTier:
    @pytest.mark.asyncio
    async def test_success_stops_cascade(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT, [True])
        absorber = make_submitter(ABSORBER)
        cascade = LiquidationCascade(sample_market, submitter, sample_gas, absorber)

        outcome = await cascade.attempt_liquidation([BORROWER_1], sample_assets)

        assert outcome.succeeded
        assert outcome.decisions == ((TIER_MAXIMAL, None, None, True),)
        assert submitter.submit.await_count == 1
        absorber.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_uses_unbounded_amounts_for_routable_assets(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT, [True])
        cascade = LiquidationCascade(sample_market, submitter, sample_gas)

        await cascade.attempt_liquidation([BORROWER_1], sample_assets)

        (call,) = _calls(submitter)
        assert call.function == "absorbAndArbitrage"
        assert call.to == Web3.to_checksum_address(sample_market.liquidator)
        market, targets, assets, pools, amounts, flash_token, pool_fee, threshold = call.args
        assert market == Web3.to_checksum_address(sample_market.address)
        assert targets == [Web3.to_checksum_address(BORROWER_1)]
        # The unrouted asset is left out.
        assert assets == [Web3.to_checksum_address(ASSET_A), Web3.to_checksum_address(ASSET_B)]
        assert len(pools) == 2
        assert amounts == [MAX_UINT256, MAX_UINT256]
        assert pool_fee == 500
        assert threshold == sample_market.liquidation_threshold
        submitter.submit.assert_awaited_with(call, sample_gas)


class TestAbsorbTier:
    @pytest.mark.asyncio
    async def test_absorb_runs_only_with_targets(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT, [False] * 10)
        absorber = make_submitter(ABSORBER, [True])
        cascade = LiquidationCascade(sample_market, submitter, sample_gas, absorber)

        outcome = await cascade.attempt_liquidation([], sample_assets)

        absorber.submit.assert_not_called()
        assert TIER_ABSORB not in [d[0] for d in outcome.decisions]

    @pytest.mark.asyncio
    async def test_absorb_uses_absorber_account(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT, [False] * 10)
        absorber = make_submitter(ABSORBER, [True])
        cascade = LiquidationCascade(sample_market, submitter, sample_gas, absorber)

        await cascade.attempt_liquidation([BORROWER_1], sample_assets)

        (call,) = _calls(absorber)
        assert call.function == "absorb"
        assert call.to == Web3.to_checksum_address(sample_market.address)
        assert call.args == (
            Web3.to_checksum_address(ABSORBER),
            [Web3.to_checksum_address(BORROWER_1)],
        )

    @pytest.mark.asyncio
    async def test_absorb_failure_does_not_block_tiered(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT, [False, False, True])
        absorber = make_submitter(ABSORBER, [RuntimeError("nonce too low")])
        cascade = LiquidationCascade(sample_market, submitter, sample_gas, absorber)

        outcome = await cascade.attempt_liquidation([BORROWER_1], sample_assets)

        assert outcome.succeeded
        assert (TIER_ABSORB, None, None, False) in outcome.decisions
        assert submitter.submit.await_count == 3

    @pytest.mark.asyncio
    async def test_absorb_success_alone_does_not_end_cascade(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT, [False, True])
        absorber = make_submitter(ABSORBER, [True])
        cascade = LiquidationCascade(sample_market, submitter, sample_gas, absorber)

        outcome = await cascade.attempt_liquidation([BORROWER_1], sample_assets)

        assert submitter.submit.await_count == 2
        assert outcome.decisions[-1] == (TIER_TIERED, ASSET_A, 1000, True)


class TestTieredRetries:
    @pytest.mark.asyncio
    async def test_half_amount_success_stops_retries(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT, [False, False, True])
        absorber = make_submitter(ABSORBER, [False])
        cascade = LiquidationCascade(sample_market, submitter, sample_gas, absorber)

        outcome = await cascade.attempt_liquidation([BORROWER_1], sample_assets)

        tiered_calls = _calls(submitter)[1:]
        assert len(tiered_calls) == 2
        assert [c.args[4] for c in tiered_calls] == [[1000], [500]]
        assert all(
            c.args[2] == [Web3.to_checksum_address(ASSET_A)] for c in tiered_calls
        )
        assert outcome.succeeded

    @pytest.mark.asyncio
    async def test_exhaustion_tries_all_fractions(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT, [False] * 4)
        absorber = make_submitter(ABSORBER, [False])
        cascade = LiquidationCascade(sample_market, submitter, sample_gas, absorber)

        outcome = await cascade.attempt_liquidation([BORROWER_1], sample_assets)

        assert not outcome.succeeded
        assert outcome.decisions == (
            (TIER_MAXIMAL, None, None, False),
            (TIER_ABSORB, None, None, False),
            (TIER_TIERED, ASSET_A, 1000, False),
            (TIER_TIERED, ASSET_A, 500, False),
            (TIER_TIERED, ASSET_A, 100, False),
        )

    @pytest.mark.asyncio
    async def test_exception_counts_as_failure(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(
            LIQUIDATOR_BOT, [RuntimeError("execution reverted"), ValueError("gas"), True]
        )
        cascade = LiquidationCascade(sample_market, submitter, sample_gas)

        outcome = await cascade.attempt_liquidation([], sample_assets)

        assert outcome.succeeded
        assert outcome.decisions[-1] == (TIER_TIERED, ASSET_A, 500, True)

    @pytest.mark.asyncio
    async def test_arbitrage_only_call_has_no_targets(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT, [True])
        cascade = LiquidationCascade(sample_market, submitter, sample_gas)

        outcome = await cascade.attempt_liquidation([], sample_assets)

        (call,) = _calls(submitter)
        assert call.args[1] == []
        assert outcome.targets == ()


class TestUnderwaterBorrowers:
    @pytest.mark.asyncio
    async def test_one_cascade_per_address_in_order(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT)
        cascade = LiquidationCascade(sample_market, submitter, sample_gas)

        outcomes = await cascade.liquidate_underwater_borrowers(
            [BORROWER_2, BORROWER_1], sample_assets
        )

        assert [o.targets for o in outcomes] == [(BORROWER_2,), (BORROWER_1,)]
        assert [c.args[1] for c in _calls(submitter)] == [
            [Web3.to_checksum_address(BORROWER_2)],
            [Web3.to_checksum_address(BORROWER_1)],
        ]


class TestAttemptConstruction:
    def test_unrouted_asset_is_a_configuration_gap(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        cascade = LiquidationCascade(sample_market, make_submitter(LIQUIDATOR_BOT), sample_gas)

        with pytest.raises(ConfigurationGapError):
            cascade._build_attempt([], [sample_assets[2]], [1])


class TestNothingToPurchase:
    @pytest.mark.asyncio
    async def test_unrouted_only_collateral_purchase_submits_nothing(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT)
        cascade = LiquidationCascade(sample_market, submitter, sample_gas)

        outcome = await cascade.attempt_liquidation([], [sample_assets[2]])

        submitter.submit.assert_not_called()
        assert not outcome.succeeded
        assert outcome.decisions == ()

    @pytest.mark.asyncio
    async def test_targets_without_routable_assets_still_absorb(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT, [True])
        cascade = LiquidationCascade(sample_market, submitter, sample_gas)

        outcome = await cascade.attempt_liquidation([BORROWER_1], [sample_assets[2]])

        (call,) = _calls(submitter)
        assert call.args[1] == [Web3.to_checksum_address(BORROWER_1)]
        assert call.args[2] == []
        assert outcome.succeeded

    @pytest.mark.asyncio
    async def test_small_cap_never_submits_zero_amount(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        small_cap = replace(sample_market.assets[ASSET_A], max_purchase_amount=5)
        market = replace(
            sample_market, assets={**sample_market.assets, ASSET_A: small_cap}
        )
        submitter = make_submitter(LIQUIDATOR_BOT, [False] * 4)
        cascade = LiquidationCascade(market, submitter, sample_gas)

        outcome = await cascade.attempt_liquidation([], sample_assets)

        assert [c.args[4] for c in _calls(submitter)[1:]] == [[5], [2]]
        assert (TIER_TIERED, ASSET_A, 0, False) not in outcome.decisions


class TestPendingTransaction:
    @pytest.mark.asyncio
    async def test_pending_maximal_halts_cascade(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(
            LIQUIDATOR_BOT, [PendingTransactionError("0xfeed"), True, True]
        )
        absorber = make_submitter(ABSORBER)
        cascade = LiquidationCascade(sample_market, submitter, sample_gas, absorber)

        outcome = await cascade.attempt_liquidation([BORROWER_1], sample_assets)

        assert outcome.pending_tx == "0xfeed"
        assert not outcome.succeeded
        assert outcome.decisions == ()
        assert submitter.submit.await_count == 1
        absorber.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_pending_tiered_keeps_earlier_results(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(
            LIQUIDATOR_BOT, [False, False, PendingTransactionError("0xbeef"), True]
        )
        absorber = make_submitter(ABSORBER, [False])
        cascade = LiquidationCascade(sample_market, submitter, sample_gas, absorber)

        outcome = await cascade.attempt_liquidation([BORROWER_1], sample_assets)

        assert outcome.pending_tx == "0xbeef"
        assert outcome.decisions == (
            (TIER_MAXIMAL, None, None, False),
            (TIER_ABSORB, None, None, False),
            (TIER_TIERED, ASSET_A, 1000, False),
        )
        assert submitter.submit.await_count == 3

    @pytest.mark.asyncio
    async def test_pending_absorb_halts_cascade(
        self, sample_market: MarketConfig, sample_assets: list[Asset], sample_gas: GasPolicy
    ) -> None:
        submitter = make_submitter(LIQUIDATOR_BOT, [False, True])
        absorber = make_submitter(ABSORBER, [PendingTransactionError("0xabba")])
        cascade = LiquidationCascade(sample_market, submitter, sample_gas, absorber)

        outcome = await cascade.attempt_liquidation([BORROWER_1], sample_assets)

        assert outcome.pending_tx == "0xabba"
        assert submitter.submit.await_count == 1
