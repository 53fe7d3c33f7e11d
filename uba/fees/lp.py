"""LP fee calculation.

The LP fee percentage of a deposit is the route's baseline fee plus a
utilization surcharge read off the gamma curve. The surcharge is the average
of the gamma curve over the utilization move the deposit causes:

    lp_fee_pct = max(0, baseline + integral(gamma, u_pre, u_post) / (u_post - u_pre))

Utilization is the share of hub pool equity not held as free liquidity, in
18-decimal fixed point and clamped to [0, 1]. Free liquidity is the hub
balance plus the hub chain's spoke balance minus the spoke targets reserved
for rebalancing.
"""

from __future__ import annotations

from uba.fees.config import FeeConfiguration
from uba.math.curve import FeeCurve, evaluate, integrate
from uba.math.fixed_point import ONE_18, div_trunc, mul_div
from uba.models.liquidity import PoolLiquidity


def calculate_utilization(liquid_reserves: int, hub_equity: int) -> int:
    """Utilization of the hub pool in 1e18 fixed point, clamped to [0, 1e18]."""
    if hub_equity <= 0:
        return ONE_18
    utilization = div_trunc((hub_equity - liquid_reserves) * ONE_18, hub_equity)
    return max(0, min(ONE_18, utilization))


def calculate_utilization_boundaries(amount: int, liquidity: PoolLiquidity) -> tuple[int, int]:
    """Utilization before and after ``amount`` leaves the hub's free liquidity.

    Returns:
        Tuple of (utilization before, utilization after)
    """
    reserved = sum(liquidity.spoke_targets.values())
    liquid_reserves = liquidity.hub_balance + liquidity.hub_chain_spoke_balance - reserved
    return (
        calculate_utilization(liquid_reserves, liquidity.hub_equity),
        calculate_utilization(liquid_reserves - amount, liquidity.hub_equity),
    )


def compute_lp_fee_pct(
    baseline_fee: int, gamma_curve: FeeCurve, utilization_pre: int, utilization_post: int
) -> int:
    """LP fee percentage for a utilization move.

    When utilization does not move (e.g. a zero amount or a pool pinned at
    full utilization) the gamma curve is read at the current point instead
    of averaged.
    """
    delta = utilization_post - utilization_pre
    if delta == 0:
        surcharge = evaluate(gamma_curve, utilization_pre)
    else:
        surcharge = div_trunc(integrate(gamma_curve, utilization_pre, utilization_post) * ONE_18, delta)
    return max(0, baseline_fee + surcharge)


def get_lp_fee_pct(
    amount: int,
    origin_chain_id: int,
    destination_chain_id: int,
    config: FeeConfiguration,
    liquidity: PoolLiquidity | None = None,
) -> int:
    """LP fee percentage of a deposit on a route.

    Without a liquidity snapshot only the baseline fee applies.
    """
    baseline_fee = config.get_baseline_fee(destination_chain_id, origin_chain_id)
    if liquidity is None:
        return max(0, baseline_fee)
    utilization_pre, utilization_post = calculate_utilization_boundaries(amount, liquidity)
    return compute_lp_fee_pct(
        baseline_fee,
        config.get_lp_gamma_curve(destination_chain_id),
        utilization_pre,
        utilization_post,
    )


def get_lp_fee(
    amount: int,
    origin_chain_id: int,
    destination_chain_id: int,
    config: FeeConfiguration,
    liquidity: PoolLiquidity | None = None,
) -> int:
    """LP fee of a deposit, in token units."""
    pct = get_lp_fee_pct(amount, origin_chain_id, destination_chain_id, config, liquidity)
    return mul_div(amount, pct)
