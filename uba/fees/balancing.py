"""Balancing fee calculation.

The balancing fee of a flow is the integral of the chain's balancing curve
over the running-balance move the flow causes. A positive integral is a fee
that feeds the incentive pool. A negative integral is a reward paid from the
pool: it is scaled by the chain's reward multiplier and discounted so the pool
can cover every reward still owed until the balance reaches the curve's zero
point.
"""

from __future__ import annotations

import structlog

from uba.fees.config import FeeConfiguration
from uba.math.curve import FeeCurve, integrate
from uba.math.fixed_point import ONE_18, div_trunc
from uba.models.flow import FlowDirection

logger = structlog.get_logger()


def compute_flow_fee(
    amount: int,
    direction: FlowDirection,
    last_running_balance: int,
    last_incentive_balance: int,
    curve: FeeCurve,
    reward_multiplier: int = ONE_18,
) -> int:
    """Compute the balancing fee of a single flow.

    Args:
        amount: Flow amount (non-negative)
        direction: Inflow or outflow
        last_running_balance: Running balance before the flow
        last_incentive_balance: Incentive pool balance before the flow
        curve: The chain's balancing fee curve
        reward_multiplier: Scale applied to rewards (1e18 = 1.0)

    Returns:
        Signed fee: positive is charged to the user, negative is a reward,
        never larger in magnitude than ``last_incentive_balance``
    """
    if amount < 0:
        raise ValueError(f"Flow amount cannot be negative: {amount}")

    end_balance = last_running_balance + direction.sign * amount
    fee = integrate(curve, last_running_balance, end_balance)
    if fee >= 0:
        return fee

    if last_incentive_balance <= 0:
        return 0

    fee = div_trunc(fee * reward_multiplier, ONE_18)

    zero_point = curve.require_zero()
    reserve_needed = abs(integrate(curve, zero_point, last_running_balance))
    if reserve_needed > last_incentive_balance:
        discount_factor = div_trunc(last_incentive_balance * ONE_18, reserve_needed)
        fee = div_trunc(fee * discount_factor, ONE_18)
        logger.debug(
            "balancing_reward_discounted",
            reserve_needed=reserve_needed,
            incentive_balance=last_incentive_balance,
            discount_factor=discount_factor,
        )

    if -fee > last_incentive_balance:
        fee = -last_incentive_balance

    return fee


def get_event_fee(
    amount: int,
    direction: FlowDirection,
    last_running_balance: int,
    last_incentive_balance: int,
    chain_id: int,
    config: FeeConfiguration,
) -> int:
    """Balancing fee of a flow on ``chain_id`` under ``config``."""
    return compute_flow_fee(
        amount,
        direction,
        last_running_balance,
        last_incentive_balance,
        config.get_balancing_fee_curve(chain_id),
        config.get_reward_multiplier(chain_id),
    )


def get_deposit_fee(
    amount: int,
    last_running_balance: int,
    last_incentive_balance: int,
    chain_id: int,
    config: FeeConfiguration,
) -> int:
    """Balancing fee of a deposit originating on ``chain_id``."""
    return get_event_fee(
        amount,
        FlowDirection.INFLOW,
        last_running_balance,
        last_incentive_balance,
        chain_id,
        config,
    )


def get_refund_fee(
    amount: int,
    last_running_balance: int,
    last_incentive_balance: int,
    chain_id: int,
    config: FeeConfiguration,
) -> int:
    """Balancing fee of a fill or refund repaid on ``chain_id``."""
    return get_event_fee(
        amount,
        FlowDirection.OUTFLOW,
        last_running_balance,
        last_incentive_balance,
        chain_id,
        config,
    )
