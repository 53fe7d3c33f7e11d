"""Tests for strict fee configuration parsing."""

import json

import pytest

from uba.errors import InvalidFeeConfigurationError, InvalidFeeCurveError
from uba.models.config import dump_fee_configuration, parse_fee_configuration
from tests.helpers import OPTIMISM, POLYGON, WETH

VALID_PAYLOAD = {
    "baselineFee": {"default": "300000000000000", "override": {"10-1": "100000000000000"}},
    "balancingFee": {
        "default": [["0", "-200000000000000000"], ["1000000", "0"], ["2000000", "200000000000000000"]],
        "override": {"137": [["0", "0"]]},
    },
    "balanceTriggerThreshold": {
        "default": {},
        "override": {
            "10-WETH": {
                "upperBound": {"target": "1000000", "threshold": "1500000"},
                "lowerBound": {"target": "500000", "threshold": "100000"},
            }
        },
    },
    "lpGammaFunction": {"default": [["500000000000000000", "0"]]},
    "incentivePoolAdjustment": {"default": "0", "override": {"10": "5000"}},
    "rewardMultiplier": {"default": "1000000000000000000"},
}


class TestParseFeeConfiguration:
    def test_parses_valid_payload(self):
        config = parse_fee_configuration(VALID_PAYLOAD)
        assert config.get_baseline_fee(1, 10) == 100_000_000_000_000
        assert config.get_zero_fee_point(OPTIMISM) == 1_000_000
        assert config.is_balancing_fee_curve_flat_at_zero(POLYGON)
        hurdles = config.get_balance_trigger_threshold(OPTIMISM, WETH)
        assert hurdles.upper.target == 1_000_000
        assert hurdles.lower.threshold == 100_000
        assert config.get_incentive_pool_adjustment(OPTIMISM) == 5_000

    def test_parses_raw_json(self):
        config = parse_fee_configuration(json.dumps(VALID_PAYLOAD))
        assert config.get_baseline_fee(137, 10) == 300_000_000_000_000

    def test_minimal_payload(self):
        config = parse_fee_configuration(
            {"baselineFee": {"default": "0"}, "balancingFee": {"default": [["0", "0"]]}}
        )
        assert config.get_reward_multiplier(OPTIMISM) == 10**18

    def test_unknown_keys_rejected(self):
        payload = {**VALID_PAYLOAD, "surpriseFee": {"default": "1"}}
        with pytest.raises(InvalidFeeConfigurationError):
            parse_fee_configuration(payload)

    def test_float_values_rejected(self):
        payload = {**VALID_PAYLOAD, "baselineFee": {"default": 0.0003}}
        with pytest.raises(InvalidFeeConfigurationError):
            parse_fee_configuration(payload)

    def test_invalid_curve_rejected(self):
        payload = {**VALID_PAYLOAD, "balancingFee": {"default": [["0", "5"], ["10", "1"]]}}
        with pytest.raises(InvalidFeeCurveError, match="non-decreasing"):
            parse_fee_configuration(payload)

    def test_trigger_threshold_keys_are_normalized(self):
        thresholds = VALID_PAYLOAD["balanceTriggerThreshold"]
        payload = {
            **VALID_PAYLOAD,
            "balanceTriggerThreshold": {"override": {" 10-weth ": thresholds["override"]["10-WETH"]}},
        }
        config = parse_fee_configuration(payload)
        assert config.balance_trigger_threshold.override.keys() == {"10-WETH"}
        hurdles = config.get_balance_trigger_threshold(OPTIMISM, WETH)
        assert hurdles.upper.threshold == 1_500_000

    @pytest.mark.parametrize("key", ["WETH", "weth-10", "10-", "-WETH"])
    def test_malformed_trigger_threshold_key_rejected(self, key):
        hurdles = VALID_PAYLOAD["balanceTriggerThreshold"]["override"]["10-WETH"]
        payload = {**VALID_PAYLOAD, "balanceTriggerThreshold": {"override": {key: hurdles}}}
        with pytest.raises(InvalidFeeConfigurationError, match="chainId"):
            parse_fee_configuration(payload)

    def test_trigger_threshold_keys_colliding_after_normalization(self):
        hurdles = VALID_PAYLOAD["balanceTriggerThreshold"]["override"]["10-WETH"]
        payload = {
            **VALID_PAYLOAD,
            "balanceTriggerThreshold": {"override": {"10-WETH": hurdles, "10-weth": hurdles}},
        }
        with pytest.raises(InvalidFeeConfigurationError, match="more than once"):
            parse_fee_configuration(payload)

    def test_missing_required_section(self):
        with pytest.raises(InvalidFeeConfigurationError):
            parse_fee_configuration({"baselineFee": {"default": "0"}})


class TestDumpFeeConfiguration:
    def test_round_trip(self):
        config = parse_fee_configuration(VALID_PAYLOAD)
        dumped = dump_fee_configuration(config)
        assert parse_fee_configuration(dumped) == config

    def test_curves_dump_as_string_pairs(self):
        dumped = dump_fee_configuration(parse_fee_configuration(VALID_PAYLOAD))
        assert dumped["balancingFee"]["override"]["137"] == [["0", "0"]]
