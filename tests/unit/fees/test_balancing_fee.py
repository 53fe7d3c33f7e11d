"""Tests for balancing fee calculation with incentive-pool capping."""

import pytest

from uba.fees.balancing import compute_flow_fee, get_deposit_fee, get_event_fee, get_refund_fee
from uba.math.curve import FeeCurve, integrate
from uba.math.fixed_point import ONE_18, div_trunc, parse_units
from uba.models.flow import FlowDirection
from tests.helpers import OPTIMISM, POLYGON, REFERENCE_CURVE, ZERO_CENTERED_CURVE, make_config

INFLOW = FlowDirection.INFLOW
OUTFLOW = FlowDirection.OUTFLOW


class TestPenalties:
    """Flows moving away from the zero point pay the raw integral."""

    def test_flat_single_point_curve(self):
        curve = FeeCurve(points=((0, parse_units("2")),))
        assert compute_flow_fee(10, INFLOW, 1_000, 1_000, curve) == 20

    def test_outflow_below_zero_point(self, zero_centered_curve):
        assert compute_flow_fee(100_000, OUTFLOW, 500_000, 0, zero_centered_curve) == 11_000

    def test_inflow_above_zero_point(self, zero_centered_curve):
        assert compute_flow_fee(100_000, INFLOW, 1_500_000, 0, zero_centered_curve) == 11_000

    def test_penalty_ignores_multiplier_and_pool(self, zero_centered_curve):
        fee = compute_flow_fee(
            100_000, OUTFLOW, 500_000, 0, zero_centered_curve, reward_multiplier=7 * ONE_18
        )
        assert fee == 11_000

    def test_zero_amount(self, zero_centered_curve):
        assert compute_flow_fee(0, INFLOW, 500_000, 1_000_000, zero_centered_curve) == 0

    def test_negative_amount_rejected(self, zero_centered_curve):
        with pytest.raises(ValueError, match="negative"):
            compute_flow_fee(-1, INFLOW, 0, 0, zero_centered_curve)


class TestRewards:
    """Flows moving toward the zero point are paid from the incentive pool."""

    def test_full_reward_when_pool_covers_reserve(self, zero_centered_curve):
        # Reserve needed from 500k to the zero point is 25_000
        assert compute_flow_fee(100_000, INFLOW, 500_000, 1_000_000, zero_centered_curve) == -9_000

    def test_reward_above_zero_point(self, zero_centered_curve):
        assert compute_flow_fee(100_000, OUTFLOW, 1_500_000, 1_000_000, zero_centered_curve) == -9_000

    def test_reference_curve_reward_matches_raw_integral(self, reference_curve):
        fee = compute_flow_fee(50_000, INFLOW, 300_000, 10**12, reference_curve)
        assert fee == -10_250

    @pytest.mark.parametrize("incentive_balance", [0, -5])
    def test_empty_pool_pays_nothing(self, zero_centered_curve, incentive_balance):
        fee = compute_flow_fee(100_000, INFLOW, 500_000, incentive_balance, zero_centered_curve)
        assert fee == 0

    @pytest.mark.parametrize(
        "multiplier",
        ["-1", "0", "1.2", "0.2", "3.4", "7"],
    )
    def test_reward_multiplier_scales_reward(self, zero_centered_curve, multiplier):
        multiplier = parse_units(multiplier)
        original = compute_flow_fee(100_000, INFLOW, 500_000, 1_000_000, zero_centered_curve)
        scaled = compute_flow_fee(
            100_000, INFLOW, 500_000, 1_000_000, zero_centered_curve, reward_multiplier=multiplier
        )
        assert scaled == div_trunc(original * multiplier, ONE_18)

    def test_reward_multiplier_exact_values(self, zero_centered_curve):
        fee = compute_flow_fee(
            100_000, INFLOW, 500_000, 1_000_000, zero_centered_curve, parse_units("1.2")
        )
        assert fee == -10_800

    def test_discount_when_pool_is_short(self, zero_centered_curve):
        # Pool holds half the 25_000 reserve: rewards are halved
        assert compute_flow_fee(100_000, INFLOW, 500_000, 12_500, zero_centered_curve) == -4_500

    def test_reward_never_exceeds_pool(self, zero_centered_curve):
        # 7x multiplier would pay 63_000 from a 30_000 pool
        fee = compute_flow_fee(
            100_000, INFLOW, 500_000, 30_000, zero_centered_curve, reward_multiplier=7 * ONE_18
        )
        assert fee == -30_000

    def test_reward_discount_on_large_reserve(self):
        curve = FeeCurve(points=((0, 0), (1_000_000, parse_units("0.2"))))
        running_balance = 2_000 * 10**6
        amount = 10 * 10**6
        non_discounted = compute_flow_fee(amount, OUTFLOW, running_balance, 10**18, curve)
        discounted = compute_flow_fee(amount, OUTFLOW, running_balance, 100 * 10**6, curve)
        reserve_needed = abs(integrate(curve, 0, running_balance))
        discount_factor = div_trunc(100 * 10**6 * ONE_18, reserve_needed)

        assert non_discounted == -2_000_000
        assert discount_factor == 250_062_515_628_907_226
        assert discounted == div_trunc(non_discounted * discount_factor, ONE_18)
        assert -discounted <= 100 * 10**6


class TestConfigWrappers:
    def test_uses_chain_curve_override(self):
        config = make_config(curve_overrides={str(POLYGON): REFERENCE_CURVE})
        polygon_fee = get_deposit_fee(50_000, 300_000, 10**12, POLYGON, config)
        optimism_fee = get_deposit_fee(100_000, 500_000, 1_000_000, OPTIMISM, config)
        assert polygon_fee == -10_250
        assert optimism_fee == -9_000

    def test_refund_fee(self):
        config = make_config()
        assert get_refund_fee(100_000, 500_000, 0, OPTIMISM, config) == 11_000

    def test_reward_multiplier_from_config(self):
        config = make_config(reward_multiplier=parse_units("0.5"))
        fee = get_event_fee(100_000, INFLOW, 500_000, 1_000_000, OPTIMISM, config)
        assert fee == -4_500

    def test_zero_centered_config_curve(self):
        config = make_config(curve=ZERO_CENTERED_CURVE)
        assert config.get_zero_fee_point(OPTIMISM) == 1_000_000
