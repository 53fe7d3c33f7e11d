"""Strict wire schema for UBA fee configuration.

Configuration reaches the engine as loosely typed JSON (from a config store
or a fixture file). It is validated here, with unknown keys rejected, and
turned into the immutable :class:`~uba.fees.config.FeeConfiguration`.

Usage:
    from uba.models.config import parse_fee_configuration

    config = parse_fee_configuration({
        "baselineFee": {"default": "300000000000000"},
        "balancingFee": {"default": [["0", "0"]]},
    })
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from uba.errors import InvalidFeeConfigurationError
from uba.fees.config import (
    DefaultOverride,
    FeeConfiguration,
    Threshold,
    TriggerHurdles,
)
from uba.math.curve import FeeCurve
from uba.models.types import Int256, Uint256, normalize_symbol

CurvePoints = list[tuple[Int256, Int256]]


class _StrictModel(BaseModel):
    model_config = {"populate_by_name": True, "extra": "forbid", "frozen": True}


class IntDefaultOverride(_StrictModel):
    default: Int256
    override: dict[str, Int256] = Field(default_factory=dict)


class CurveDefaultOverride(_StrictModel):
    default: CurvePoints
    override: dict[str, CurvePoints] = Field(default_factory=dict)


class ThresholdSchema(_StrictModel):
    target: Int256
    threshold: Uint256


class TriggerHurdlesSchema(_StrictModel):
    upper_bound: ThresholdSchema | None = Field(default=None, alias="upperBound")
    lower_bound: ThresholdSchema | None = Field(default=None, alias="lowerBound")

    def to_hurdles(self) -> TriggerHurdles:
        return TriggerHurdles(
            upper_bound=_threshold(self.upper_bound),
            lower_bound=_threshold(self.lower_bound),
        )


class TriggerDefaultOverride(_StrictModel):
    default: TriggerHurdlesSchema = Field(default_factory=TriggerHurdlesSchema)
    override: dict[str, TriggerHurdlesSchema] = Field(default_factory=dict)


def _threshold(schema: ThresholdSchema | None) -> Threshold | None:
    if schema is None:
        return None
    return Threshold(target=schema.target, threshold=schema.threshold)


def _hurdle_overrides(
    override: Mapping[str, TriggerHurdlesSchema],
) -> dict[str, TriggerHurdles]:
    """Hurdles keyed by canonical ``<chainId>-<TOKEN>``."""
    hurdles: dict[str, TriggerHurdles] = {}
    for key, schema in override.items():
        chain, sep, token = key.partition("-")
        if not sep or not chain.strip().isdigit() or not token.strip():
            raise InvalidFeeConfigurationError(
                f"balanceTriggerThreshold override key {key!r} is not <chainId>-<token>"
            )
        canonical = f"{int(chain)}-{normalize_symbol(token)}"
        if canonical in hurdles:
            raise InvalidFeeConfigurationError(
                f"balanceTriggerThreshold override {canonical} is given more than once"
            )
        hurdles[canonical] = schema.to_hurdles()
    return hurdles


def _curves(schema: CurveDefaultOverride, name: str) -> DefaultOverride[FeeCurve]:
    return DefaultOverride(
        default=FeeCurve(points=tuple(schema.default), name=f"{name}[default]"),
        override={
            key: FeeCurve(points=tuple(points), name=f"{name}[{key}]")
            for key, points in schema.override.items()
        },
    )


class FeeConfigurationSchema(_StrictModel):
    """JSON shape of a fee configuration."""

    baseline_fee: IntDefaultOverride = Field(alias="baselineFee")
    balancing_fee: CurveDefaultOverride = Field(alias="balancingFee")
    balance_trigger_threshold: TriggerDefaultOverride = Field(
        default_factory=TriggerDefaultOverride, alias="balanceTriggerThreshold"
    )
    lp_gamma_function: CurveDefaultOverride | None = Field(default=None, alias="lpGammaFunction")
    incentive_pool_adjustment: IntDefaultOverride | None = Field(
        default=None, alias="incentivePoolAdjustment"
    )
    reward_multiplier: IntDefaultOverride | None = Field(default=None, alias="rewardMultiplier")

    def to_fee_configuration(self) -> FeeConfiguration:
        """Build the immutable configuration, validating every curve."""
        kwargs: dict[str, Any] = {
            "baseline_fee": DefaultOverride(
                default=self.baseline_fee.default, override=self.baseline_fee.override
            ),
            "balancing_fee": _curves(self.balancing_fee, "balancingFee"),
            "balance_trigger_threshold": DefaultOverride(
                default=self.balance_trigger_threshold.default.to_hurdles(),
                override=_hurdle_overrides(self.balance_trigger_threshold.override),
            ),
        }
        if self.lp_gamma_function is not None:
            kwargs["lp_gamma_function"] = _curves(self.lp_gamma_function, "lpGammaFunction")
        if self.incentive_pool_adjustment is not None:
            kwargs["incentive_pool_adjustment"] = DefaultOverride(
                default=self.incentive_pool_adjustment.default,
                override=self.incentive_pool_adjustment.override,
            )
        if self.reward_multiplier is not None:
            kwargs["reward_multiplier"] = DefaultOverride(
                default=self.reward_multiplier.default,
                override=self.reward_multiplier.override,
            )
        return FeeConfiguration(**kwargs)

    @classmethod
    def from_fee_configuration(cls, config: FeeConfiguration) -> FeeConfigurationSchema:
        """Inverse of :meth:`to_fee_configuration`."""

        def curves(entry: DefaultOverride[FeeCurve]) -> dict[str, Any]:
            return {
                "default": list(entry.default.points),
                "override": {key: list(curve.points) for key, curve in entry.override.items()},
            }

        def hurdles(value: TriggerHurdles) -> dict[str, Any]:
            return {
                "upper_bound": _threshold_dict(value.upper_bound),
                "lower_bound": _threshold_dict(value.lower_bound),
            }

        def ints(entry: DefaultOverride[int]) -> dict[str, Any]:
            return {"default": entry.default, "override": dict(entry.override)}

        return cls.model_validate(
            {
                "baseline_fee": ints(config.baseline_fee),
                "balancing_fee": curves(config.balancing_fee),
                "balance_trigger_threshold": {
                    "default": hurdles(config.balance_trigger_threshold.default),
                    "override": {
                        key: hurdles(value)
                        for key, value in config.balance_trigger_threshold.override.items()
                    },
                },
                "lp_gamma_function": curves(config.lp_gamma_function),
                "incentive_pool_adjustment": ints(config.incentive_pool_adjustment),
                "reward_multiplier": ints(config.reward_multiplier),
            }
        )


def _threshold_dict(value: Threshold | None) -> dict[str, int] | None:
    if value is None:
        return None
    return {"target": value.target, "threshold": value.threshold}


def parse_fee_configuration(data: Mapping[str, Any] | str | bytes) -> FeeConfiguration:
    """Validate a JSON payload (parsed or raw) into a FeeConfiguration.

    Raises:
        InvalidFeeConfigurationError: If the payload does not match the schema
        InvalidFeeCurveError: If a curve violates its invariants
    """
    try:
        if isinstance(data, (str, bytes)):
            schema = FeeConfigurationSchema.model_validate_json(data)
        else:
            schema = FeeConfigurationSchema.model_validate(data)
    except ValidationError as err:
        raise InvalidFeeConfigurationError(f"Invalid fee configuration: {err}") from err
    return schema.to_fee_configuration()


def dump_fee_configuration(config: FeeConfiguration) -> dict[str, Any]:
    """Serialize a FeeConfiguration to JSON-ready data with decimal strings."""
    return FeeConfigurationSchema.from_fee_configuration(config).model_dump(
        mode="json", by_alias=True
    )
