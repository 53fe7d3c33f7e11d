"""Fee configuration for the UBA fee engine.

Every parameter is a :class:`DefaultOverride`: a default value plus an
optional override mapping keyed by chain id, ``"chainId-TOKEN"`` or a
``"origin-destination"`` route. Lookups try the overrides first and fall back
to the default. The configuration is immutable once built, and every curve it
holds is validated at construction.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Generic, TypeVar

from uba.constants import DEFAULT_REWARD_MULTIPLIER
from uba.errors import InvalidFeeConfigurationError, InvalidFeeCurveError
from uba.math.curve import FeeCurve
from uba.models.types import normalize_symbol

V = TypeVar("V")


@dataclass(frozen=True)
class DefaultOverride(Generic[V]):
    """A default value with optional per-key overrides."""

    default: V
    override: Mapping[str, V] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "override", MappingProxyType(dict(self.override)))

    def resolve(self, *keys: str) -> V:
        """Return the override of the first matching key, else the default."""
        for key in keys:
            if key in self.override:
                return self.override[key]
        return self.default

    def values(self) -> list[tuple[str, V]]:
        """All configured values, the default first, labelled by key."""
        return [("default", self.default), *self.override.items()]


@dataclass(frozen=True)
class Threshold:
    """A trigger hurdle: crossing ``threshold`` snaps the balance to ``target``."""

    target: int
    threshold: int


@dataclass(frozen=True)
class TriggerHurdles:
    """Upper and lower running-balance hurdles of one chain and token.

    A hurdle with a zero threshold is disabled.
    """

    upper_bound: Threshold | None = None
    lower_bound: Threshold | None = None

    @property
    def upper(self) -> Threshold | None:
        if self.upper_bound is not None and self.upper_bound.threshold > 0:
            return self.upper_bound
        return None

    @property
    def lower(self) -> Threshold | None:
        if self.lower_bound is not None and self.lower_bound.threshold > 0:
            return self.lower_bound
        return None


NO_HURDLES = TriggerHurdles()

# Gamma curve used when none is configured: no utilization surcharge
FLAT_ZERO_GAMMA = FeeCurve(points=((0, 0),), name="lpGammaFunction")


@dataclass(frozen=True)
class FeeConfiguration:
    """Immutable UBA fee parameters.

    Attributes:
        baseline_fee: Baseline LP fee percentage (1e18 scale), keyed by route
        balancing_fee: Balancing fee curve, keyed by chain id
        balance_trigger_threshold: Running-balance hurdles, keyed by "chainId-TOKEN"
        lp_gamma_function: LP utilization curve, keyed by chain id
        incentive_pool_adjustment: DAO-set incentive pool top-up, keyed by chain id
        reward_multiplier: Scale applied to balancing rewards (1e18 = 1.0),
            keyed by chain id

    Raises:
        InvalidFeeCurveError: If a balancing curve lacks exactly one zero point
        InvalidFeeConfigurationError: If a hurdle target lies past its threshold
    """

    baseline_fee: DefaultOverride[int]
    balancing_fee: DefaultOverride[FeeCurve]
    balance_trigger_threshold: DefaultOverride[TriggerHurdles] = field(
        default_factory=lambda: DefaultOverride(default=NO_HURDLES)
    )
    lp_gamma_function: DefaultOverride[FeeCurve] = field(
        default_factory=lambda: DefaultOverride(default=FLAT_ZERO_GAMMA)
    )
    incentive_pool_adjustment: DefaultOverride[int] = field(
        default_factory=lambda: DefaultOverride(default=0)
    )
    reward_multiplier: DefaultOverride[int] = field(
        default_factory=lambda: DefaultOverride(default=DEFAULT_REWARD_MULTIPLIER)
    )

    def __post_init__(self) -> None:
        for key, curve in self.balancing_fee.values():
            try:
                curve.validate_zero_point()
            except InvalidFeeCurveError as err:
                raise InvalidFeeCurveError(f"balancingFee[{key}]", err.reason) from err

        for key, hurdles in self.balance_trigger_threshold.values():
            upper, lower = hurdles.upper, hurdles.lower
            if upper is not None and upper.target > upper.threshold:
                raise InvalidFeeConfigurationError(
                    f"balanceTriggerThreshold[{key}]: upper target {upper.target} "
                    f"exceeds threshold {upper.threshold}"
                )
            if lower is not None and lower.target < lower.threshold:
                raise InvalidFeeConfigurationError(
                    f"balanceTriggerThreshold[{key}]: lower target {lower.target} "
                    f"is below threshold {lower.threshold}"
                )
            if upper is not None and lower is not None and lower.threshold >= upper.threshold:
                raise InvalidFeeConfigurationError(
                    f"balanceTriggerThreshold[{key}]: lower threshold must be below upper threshold"
                )

    def get_baseline_fee(self, destination_chain_id: int, origin_chain_id: int) -> int:
        """Baseline LP fee of a route, checking both route orientations."""
        return self.baseline_fee.resolve(
            f"{origin_chain_id}-{destination_chain_id}",
            f"{destination_chain_id}-{origin_chain_id}",
        )

    def get_balancing_fee_curve(self, chain_id: int) -> FeeCurve:
        return self.balancing_fee.resolve(str(chain_id))

    def get_zero_fee_point(self, chain_id: int) -> int:
        """Running balance at which the chain's balancing fee is zero."""
        return self.get_balancing_fee_curve(chain_id).require_zero()

    def is_balancing_fee_curve_flat_at_zero(self, chain_id: int) -> bool:
        return self.get_balancing_fee_curve(chain_id).is_flat_at_zero

    def get_lp_gamma_curve(self, chain_id: int) -> FeeCurve:
        return self.lp_gamma_function.resolve(str(chain_id))

    def get_balance_trigger_threshold(self, chain_id: int, token_symbol: str) -> TriggerHurdles:
        return self.balance_trigger_threshold.resolve(f"{chain_id}-{normalize_symbol(token_symbol)}")

    def get_incentive_pool_adjustment(self, chain_id: int) -> int:
        return self.incentive_pool_adjustment.resolve(str(chain_id))

    def get_reward_multiplier(self, chain_id: int) -> int:
        return self.reward_multiplier.resolve(str(chain_id))
