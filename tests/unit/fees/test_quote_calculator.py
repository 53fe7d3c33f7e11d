"""Tests for the default fee calculator."""

import pytest

from uba.fees.calculator import DEFAULT_FEE_CALCULATOR, DefaultFeeCalculator
from uba.fees.result import RelayerFeeResult, SystemFeeResult, UBAFeeResult
from uba.math.fixed_point import parse_units
from uba.models.bundle import ReconciliationState
from tests.helpers import MAINNET, OPTIMISM, make_config


class TestSystemFee:
    def test_combines_lp_and_balancing_fee(self):
        state = ReconciliationState(running_balance=500_000, incentive_balance=1_000_000)
        result = DEFAULT_FEE_CALCULATOR.compute_system_fee(
            100_000, OPTIMISM, MAINNET, state, make_config()
        )
        assert result.lp_fee == 1_000
        assert result.deposit_balancing_fee == -9_000
        assert result.system_fee == -8_000

    def test_penalty_when_balance_above_target(self):
        state = ReconciliationState(running_balance=1_500_000)
        result = DefaultFeeCalculator().compute_system_fee(
            100_000, OPTIMISM, MAINNET, state, make_config()
        )
        assert result.deposit_balancing_fee == 11_000
        assert result.system_fee == 12_000


class TestRelayerFee:
    def test_breakdown(self):
        state = ReconciliationState(running_balance=500_000)
        result = DEFAULT_FEE_CALCULATOR.compute_relayer_fee(
            100_000,
            MAINNET,
            state,
            make_config(),
            relayer_gas_fee=500,
            relayer_capital_fee_pct=parse_units("0.001"),
        )
        assert result.relayer_gas_fee == 500
        assert result.relayer_capital_fee == 100
        assert result.relayer_balancing_fee == 11_000
        assert result.relayer_fee == 11_600
        assert not result.amount_too_low

    def test_amount_too_low(self):
        state = ReconciliationState(running_balance=500_000)
        result = DEFAULT_FEE_CALCULATOR.compute_relayer_fee(
            100, MAINNET, state, make_config(), relayer_gas_fee=1_000
        )
        assert result.amount_too_low

    def test_negative_inputs_rejected(self):
        with pytest.raises(ValueError):
            DEFAULT_FEE_CALCULATOR.compute_relayer_fee(
                100, MAINNET, ReconciliationState(), make_config(), relayer_gas_fee=-1
            )


class TestResults:
    def test_combine(self):
        system = SystemFeeResult.from_parts(1_000, -9_000)
        relayer = RelayerFeeResult.from_parts(100_000, 0, 0, 20_000)
        combined = UBAFeeResult.combine(system, relayer)
        assert combined.system_fee == -8_000
        assert combined.relayer_fee == 20_000
        assert combined.total_fee == 12_000

    def test_serializes_as_decimal_strings(self):
        result = SystemFeeResult.from_parts(1_000, -9_000)
        assert result.model_dump(by_alias=True) == {
            "lpFee": "1000",
            "depositBalancingFee": "-9000",
            "systemFee": "-8000",
        }
