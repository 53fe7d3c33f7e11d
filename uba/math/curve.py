"""Piecewise linear fee curves and their exact integer integration.

A curve is an ordered list of ``(breakpoint, value)`` points. Between two
adjacent breakpoints the function is the straight line joining them; below the
first breakpoint and above the last it is flat. Values are 18-decimal fixed
point, breakpoints are in token units (or fixed point for utilization curves).

The fee charged for moving a running balance from ``x`` to ``y`` is the signed
definite integral of the curve over ``[x, y]``:

    fee = integrate(curve, running_balance, running_balance + amount)

Every division truncates toward zero at a fixed point in the computation, so
results are reproducible bit for bit.

Usage:
    from uba.math.curve import FeeCurve, integrate

    curve = FeeCurve.from_json([["0", "0"], ["1000000", "200000000000000000"]])
    fee = integrate(curve, 500_000, 600_000)
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from uba.constants import BOUNDS_RANGE_MAX, BOUNDS_RANGE_MIN
from uba.errors import CurveDomainError, InvalidFeeCurveError
from uba.math.fixed_point import ONE_18, div_trunc

__all__ = [
    "Point",
    "FeeCurve",
    "get_bounds",
    "get_interval",
    "perform_linear_integration",
    "integrate",
    "evaluate",
    "get_deposit_balancing_fee",
    "get_refund_balancing_fee",
]

Point = tuple[int, int]


def _coerce_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise TypeError(f"{what} must be an int or decimal string, got {type(value).__name__}")
    return int(value)


@dataclass(frozen=True)
class FeeCurve:
    """An immutable, validated piecewise linear curve.

    Structural invariants are checked at construction: the curve is
    non-empty, breakpoints are strictly increasing and values never decrease.
    Balancing fee curves additionally need exactly one zero-valued point;
    request that check with ``require_zero_point=True`` or call
    :meth:`validate_zero_point`.

    Attributes:
        points: Tuple of ``(breakpoint, value)`` integer pairs
        name: Label used in validation errors and logs
    """

    points: tuple[Point, ...]
    name: str = field(default="curve", compare=False)
    require_zero_point: bool = field(default=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        points = tuple(
            (_coerce_int(x, "breakpoint"), _coerce_int(y, "value")) for x, y in self.points
        )
        object.__setattr__(self, "points", points)

        if not points:
            raise InvalidFeeCurveError(self.name, "curve must contain at least one point")
        for (prev_x, prev_y), (x, y) in zip(points, points[1:]):
            if x <= prev_x:
                raise InvalidFeeCurveError(
                    self.name, f"breakpoints must be strictly increasing ({prev_x} -> {x})"
                )
            if y < prev_y:
                raise InvalidFeeCurveError(
                    self.name, f"values must be non-decreasing ({prev_y} -> {y} at {x})"
                )
        for x, _ in points:
            if not BOUNDS_RANGE_MIN <= x < BOUNDS_RANGE_MAX:
                raise InvalidFeeCurveError(self.name, f"breakpoint {x} outside curve domain")

        if self.require_zero_point:
            self.validate_zero_point()

    @classmethod
    def from_json(
        cls, data: Sequence[Sequence[Any]], name: str = "curve", require_zero_point: bool = False
    ) -> FeeCurve:
        """Build a curve from ``[breakpoint, value]`` pairs of ints or decimal strings."""
        points = []
        for pair in data:
            if len(pair) != 2:
                raise InvalidFeeCurveError(name, f"expected [breakpoint, value] pair, got {pair!r}")
            points.append((pair[0], pair[1]))
        return cls(points=tuple(points), name=name, require_zero_point=require_zero_point)

    def to_json(self) -> list[list[str]]:
        """Serialize as a list of ``[breakpointString, valueString]`` pairs."""
        return [[str(x), str(y)] for x, y in self.points]

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)

    @property
    def breakpoints(self) -> tuple[int, ...]:
        return tuple(x for x, _ in self.points)

    @property
    def values(self) -> tuple[int, ...]:
        return tuple(y for _, y in self.points)

    @property
    def zero_point(self) -> int | None:
        """Breakpoint of the first zero-valued point, or None if there is none."""
        for x, y in self.points:
            if y == 0:
                return x
        return None

    @property
    def is_flat_at_zero(self) -> bool:
        """True if every value on the curve is zero (no fees, no rewards)."""
        return all(y == 0 for _, y in self.points)

    def validate_zero_point(self) -> None:
        """Require exactly one zero-valued point.

        Raises:
            InvalidFeeCurveError: If the curve has no zero point or several
        """
        zeros = [x for x, y in self.points if y == 0]
        if len(zeros) != 1:
            raise InvalidFeeCurveError(
                self.name, f"curve must contain exactly one zero point, found {len(zeros)}"
            )

    def require_zero(self) -> int:
        """Return the zero point, raising if the curve has none."""
        zero_point = self.zero_point
        if zero_point is None:
            raise InvalidFeeCurveError(self.name, "curve has no zero point")
        return zero_point


def _as_points(curve: FeeCurve | Sequence[Point]) -> Sequence[Point]:
    if isinstance(curve, FeeCurve):
        return curve.points
    return curve


def _check_domain(value: int) -> None:
    if not BOUNDS_RANGE_MIN <= value < BOUNDS_RANGE_MAX:
        raise CurveDomainError(f"{value} is outside the curve domain")


def get_bounds(curve: FeeCurve | Sequence[Point], index: int) -> tuple[int, int]:
    """Return the ``[lower, upper)`` bounds of an interval of the curve.

    Interval 0 runs from the lower sentinel to the first breakpoint; interval
    ``len(curve)`` runs from the last breakpoint to the upper sentinel.
    """
    points = _as_points(curve)
    if index == 0:
        return BOUNDS_RANGE_MIN, points[0][0]
    if index < len(points):
        return points[index - 1][0], points[index][0]
    return points[-1][0], BOUNDS_RANGE_MAX


def get_interval(curve: FeeCurve | Sequence[Point], target: int) -> tuple[int, tuple[int, int]]:
    """Find the interval containing ``target``.

    Intervals are half-open, so a target sitting on a breakpoint belongs to
    the interval that starts there.

    Returns:
        Tuple of (interval index, (lower, upper))

    Raises:
        CurveDomainError: If target lies outside the sentinel range
    """
    points = _as_points(curve)
    for index in range(len(points) + 1):
        lower, upper = get_bounds(points, index)
        if lower <= target < upper:
            return index, (lower, upper)
    raise CurveDomainError(f"{target} is outside the curve domain")


def perform_linear_integration(
    curve: FeeCurve | Sequence[Point], index: int, start: int, end: int
) -> int:
    """Integrate a single interval of the curve from ``start`` to ``end``.

    The flat part uses the value at the interval's left point (clamped to the
    ends of the curve). Interior intervals add the sloped part in closed form:

        slope * ((end^2/2 - x_prev*end) - (start^2/2 - x_prev*start))

    Args:
        curve: Curve points
        index: Interval index as returned by :func:`get_interval`
        start: Lower integration limit, inside the interval
        end: Upper integration limit, inside the interval

    Returns:
        The integral, in token units
    """
    points = _as_points(curve)
    length = end - start
    value = points[max(0, min(len(points) - 1, index - 1))][1]
    fee_integral = div_trunc(value * length, ONE_18)

    if 0 < index < len(points) - 1:
        curr_x, curr_y = points[index]
        prev_x, prev_y = points[index - 1]
        slope = div_trunc((prev_y - curr_y) * ONE_18, prev_x - curr_x)
        end_expression = div_trunc(end**2, 2) - prev_x * end
        start_expression = div_trunc(start**2, 2) - prev_x * start
        slope_integral = div_trunc(
            div_trunc(slope * (end_expression - start_expression), ONE_18), ONE_18
        )
        fee_integral += slope_integral

    return fee_integral


def integrate(curve: FeeCurve | Sequence[Point], x: int, y: int) -> int:
    """Signed definite integral of the curve from ``x`` to ``y``.

    The integral always runs over ``[min(x, y), max(x, y)]`` and is negated
    when ``y < x``, so ``integrate(c, x, y) == -integrate(c, y, x)`` holds
    exactly.

    Raises:
        CurveDomainError: If x or y lies outside the sentinel range
    """
    points = _as_points(curve)
    if not points:
        raise InvalidFeeCurveError("curve", "curve must contain at least one point")
    _check_domain(x)
    _check_domain(y)
    if x == y:
        return 0

    extended = (*points, (BOUNDS_RANGE_MAX, points[-1][1]))
    scale = 1 if x <= y else -1
    lower, upper = min(x, y), max(x, y)

    lower_index, _ = get_interval(extended, lower)
    upper_index, _ = get_interval(extended, upper)

    total = 0
    for index in range(lower_index, upper_index + 1):
        segment_lower, segment_upper = get_bounds(extended, index)
        if index == lower_index:
            segment_lower = lower
        if index == upper_index:
            segment_upper = upper
        if segment_lower != segment_upper:
            total += perform_linear_integration(extended, index, segment_lower, segment_upper)

    return total * scale


def evaluate(curve: FeeCurve | Sequence[Point], x: int) -> int:
    """Value of the curve at ``x`` (flat outside the breakpoints)."""
    points = _as_points(curve)
    _check_domain(x)
    index, _ = get_interval(points, x)
    if index == 0:
        return points[0][1]
    if index >= len(points):
        return points[-1][1]
    prev_x, prev_y = points[index - 1]
    curr_x, curr_y = points[index]
    return prev_y + div_trunc((curr_y - prev_y) * (x - prev_x), curr_x - prev_x)


def get_deposit_balancing_fee(
    curve: FeeCurve | Sequence[Point], running_balance: int, amount: int
) -> int:
    """Raw curve fee of a deposit of ``amount`` at ``running_balance``."""
    return integrate(curve, running_balance, running_balance + amount)


def get_refund_balancing_fee(
    curve: FeeCurve | Sequence[Point], running_balance: int, amount: int
) -> int:
    """Raw curve fee of a refund of ``amount`` at ``running_balance``."""
    return integrate(curve, running_balance, running_balance - amount)
