"""Tests for fee configuration lookups and validation."""

import pytest

from uba.constants import DEFAULT_REWARD_MULTIPLIER
from uba.errors import InvalidFeeConfigurationError, InvalidFeeCurveError
from uba.fees.config import (
    FLAT_ZERO_GAMMA,
    NO_HURDLES,
    DefaultOverride,
    FeeConfiguration,
    Threshold,
    TriggerHurdles,
)
from uba.math.curve import FeeCurve
from tests.helpers import (
    GAMMA_CURVE,
    MAINNET,
    OPTIMISM,
    POLYGON,
    REFERENCE_CURVE,
    WETH,
    ZERO_CENTERED_CURVE,
    make_config,
)


class TestDefaultOverride:
    def test_resolves_default(self):
        entry = DefaultOverride(default=1, override={"10": 2})
        assert entry.resolve("1") == 1

    def test_resolves_first_matching_override(self):
        entry = DefaultOverride(default=1, override={"a": 2, "b": 3})
        assert entry.resolve("b", "a") == 3

    def test_override_mapping_is_read_only(self):
        entry = DefaultOverride(default=1, override={"a": 2})
        with pytest.raises(TypeError):
            entry.override["b"] = 3  # type: ignore[index]


class TestFeeConfigurationLookups:
    def test_baseline_fee_default(self):
        config = make_config(baseline_fee=100)
        assert config.get_baseline_fee(MAINNET, OPTIMISM) == 100

    def test_baseline_fee_checks_both_route_orders(self):
        config = FeeConfiguration(
            baseline_fee=DefaultOverride(default=100, override={f"{OPTIMISM}-{MAINNET}": 7}),
            balancing_fee=DefaultOverride(default=FeeCurve(points=((0, 0),))),
        )
        assert config.get_baseline_fee(MAINNET, OPTIMISM) == 7
        assert config.get_baseline_fee(OPTIMISM, MAINNET) == 7
        assert config.get_baseline_fee(POLYGON, OPTIMISM) == 100

    def test_balancing_curve_override(self):
        config = make_config(curve_overrides={str(POLYGON): REFERENCE_CURVE})
        assert config.get_balancing_fee_curve(POLYGON).points == tuple(REFERENCE_CURVE)
        assert config.get_balancing_fee_curve(OPTIMISM).points == tuple(ZERO_CENTERED_CURVE)

    def test_zero_fee_point(self):
        config = make_config(curve_overrides={str(POLYGON): REFERENCE_CURVE})
        assert config.get_zero_fee_point(POLYGON) == 2_000_000
        assert config.get_zero_fee_point(OPTIMISM) == 1_000_000

    def test_flat_at_zero(self):
        config = make_config(curve_overrides={str(POLYGON): [(0, 0)]})
        assert config.is_balancing_fee_curve_flat_at_zero(POLYGON)
        assert not config.is_balancing_fee_curve_flat_at_zero(OPTIMISM)

    def test_defaults(self):
        config = make_config()
        assert config.get_lp_gamma_curve(OPTIMISM) == FLAT_ZERO_GAMMA
        assert config.get_balance_trigger_threshold(OPTIMISM, WETH) == NO_HURDLES
        assert config.get_incentive_pool_adjustment(OPTIMISM) == 0
        assert config.get_reward_multiplier(OPTIMISM) == DEFAULT_REWARD_MULTIPLIER

    def test_trigger_threshold_keyed_by_chain_and_token(self):
        hurdles = TriggerHurdles(upper_bound=Threshold(target=100, threshold=200))
        config = make_config(
            balance_trigger_threshold=DefaultOverride(
                default=NO_HURDLES, override={f"{OPTIMISM}-WETH": hurdles}
            )
        )
        assert config.get_balance_trigger_threshold(OPTIMISM, "weth") == hurdles
        assert config.get_balance_trigger_threshold(MAINNET, WETH) == NO_HURDLES

    def test_gamma_and_multiplier_overrides(self):
        gamma = FeeCurve(points=tuple(GAMMA_CURVE))
        config = FeeConfiguration(
            baseline_fee=DefaultOverride(default=0),
            balancing_fee=DefaultOverride(default=FeeCurve(points=tuple(ZERO_CENTERED_CURVE))),
            lp_gamma_function=DefaultOverride(default=FLAT_ZERO_GAMMA, override={"1": gamma}),
            incentive_pool_adjustment=DefaultOverride(default=0, override={"10": 500}),
            reward_multiplier=DefaultOverride(default=DEFAULT_REWARD_MULTIPLIER, override={"10": 0}),
        )
        assert config.get_lp_gamma_curve(MAINNET) == gamma
        assert config.get_incentive_pool_adjustment(OPTIMISM) == 500
        assert config.get_reward_multiplier(OPTIMISM) == 0
        assert config.get_reward_multiplier(MAINNET) == DEFAULT_REWARD_MULTIPLIER


class TestFeeConfigurationValidation:
    def test_balancing_curve_without_zero_point(self):
        with pytest.raises(InvalidFeeCurveError) as exc_info:
            make_config(curve=[(0, 1)])
        assert exc_info.value.curve_name == "balancingFee[default]"

    def test_override_curve_with_two_zero_points(self):
        with pytest.raises(InvalidFeeCurveError, match=r"balancingFee\[137\]"):
            make_config(curve_overrides={str(POLYGON): [(0, 0), (10, 0)]})

    def test_upper_target_above_threshold(self):
        hurdles = TriggerHurdles(upper_bound=Threshold(target=300, threshold=200))
        with pytest.raises(InvalidFeeConfigurationError, match="upper target"):
            make_config(hurdles=hurdles)

    def test_lower_target_below_threshold(self):
        hurdles = TriggerHurdles(lower_bound=Threshold(target=50, threshold=100))
        with pytest.raises(InvalidFeeConfigurationError, match="lower target"):
            make_config(hurdles=hurdles)

    def test_crossed_hurdles(self):
        hurdles = TriggerHurdles(
            upper_bound=Threshold(target=100, threshold=200),
            lower_bound=Threshold(target=300, threshold=250),
        )
        with pytest.raises(InvalidFeeConfigurationError, match="below upper threshold"):
            make_config(hurdles=hurdles)

    def test_disabled_hurdles_are_not_validated(self):
        hurdles = TriggerHurdles(upper_bound=Threshold(target=300, threshold=0))
        config = make_config(hurdles=hurdles)
        assert config.get_balance_trigger_threshold(OPTIMISM, WETH).upper is None

    def test_configuration_is_frozen(self):
        config = make_config()
        with pytest.raises(AttributeError):
            config.baseline_fee = DefaultOverride(default=0)  # type: ignore[misc]
