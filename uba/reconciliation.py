"""Running-balance reconciliation.

Replays the flows of one chain and token in chronological order. Each flow
is priced against the state the previous flow left behind, then folded into
that state:

    running_balance'   = running_balance +/- amount - balancing_fee
    incentive_balance' = max(0, incentive_balance + balancing_fee)

after which a running balance past a trigger hurdle is snapped back to the
hurdle's target, with the difference booked as a net running balance
adjustment for the hub to realize.

Usage:
    from uba.reconciliation import replay_flows

    modified = replay_flows(flows, opening_state, config, chain_id=10, token_symbol="WETH")
    closing = modified[-1].state
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from functools import reduce

import structlog

from uba.errors import IncentivePoolOverdrawnError
from uba.fees.balancing import get_event_fee
from uba.fees.config import NO_HURDLES, FeeConfiguration, TriggerHurdles
from uba.math.fixed_point import mul_div
from uba.models.bundle import ModifiedFlow, ReconciliationState
from uba.models.flow import Flow

logger = structlog.get_logger()


def apply_flow(
    state: ReconciliationState,
    flow: Flow,
    incentive_fee: int,
    hurdles: TriggerHurdles = NO_HURDLES,
) -> ReconciliationState:
    """Fold one priced flow into the reconciliation state.

    Raises:
        IncentivePoolOverdrawnError: If the reward exceeds the incentive balance
    """
    if -incentive_fee > state.incentive_balance:
        logger.error(
            "incentive_pool_overdrawn",
            incentive_fee=incentive_fee,
            incentive_balance=state.incentive_balance,
            deposit_id=flow.deposit_id,
            chain_id=flow.flow_chain_id,
        )
        raise IncentivePoolOverdrawnError(incentive_fee, state.incentive_balance)

    running_balance = state.running_balance + flow.signed_amount - incentive_fee
    incentive_balance = max(0, state.incentive_balance + incentive_fee)
    net_adjustment = state.net_running_balance_adjustment

    upper, lower = hurdles.upper, hurdles.lower
    if upper is not None and running_balance > upper.threshold:
        net_adjustment -= running_balance - upper.target
        running_balance = upper.target
    elif lower is not None and running_balance < lower.threshold:
        net_adjustment += lower.target - running_balance
        running_balance = lower.target

    return ReconciliationState(
        running_balance=running_balance,
        incentive_balance=incentive_balance,
        net_running_balance_adjustment=net_adjustment,
    )


def calculate_historical_running_balance(
    flows_with_fees: Iterable[tuple[Flow, int]],
    opening_state: ReconciliationState,
    hurdles: TriggerHurdles = NO_HURDLES,
) -> ReconciliationState:
    """Fold already-priced flows into the opening state."""
    return reduce(
        lambda state, priced: apply_flow(state, priced[0], priced[1], hurdles),
        flows_with_fees,
        opening_state,
    )


def sort_flows_ascending(flows: Iterable[Flow]) -> list[Flow]:
    """Sort flows into replay order (see :meth:`Flow.sort_key`)."""
    return sorted(flows, key=lambda flow: flow.sort_key())


def dedupe_flows(flows: Iterable[Flow]) -> list[Flow]:
    """Drop repeated flows, keeping the first occurrence of each."""
    seen: set[str] = set()
    unique = []
    for flow in flows:
        key = flow.content_hash
        if key in seen:
            logger.debug("duplicate_flow_dropped", deposit_id=flow.deposit_id, flow_hash=key)
            continue
        seen.add(key)
        unique.append(flow)
    return unique


def price_flow(
    flow: Flow,
    state: ReconciliationState,
    config: FeeConfiguration,
    chain_id: int,
) -> tuple[int, int]:
    """Balancing fee and LP fee of a flow at the given state.

    Returns:
        Tuple of (balancing fee, LP fee)
    """
    deposit = flow.matched_deposit
    if flow.is_outflow and deposit is not None and deposit.realized_lp_fee_pct is not None:
        return 0, mul_div(flow.amount, deposit.realized_lp_fee_pct)

    if config.is_balancing_fee_curve_flat_at_zero(chain_id):
        balancing_fee = 0
    else:
        balancing_fee = get_event_fee(
            flow.amount,
            flow.direction,
            state.running_balance,
            state.incentive_balance,
            chain_id,
            config,
        )
    baseline_fee = config.get_baseline_fee(flow.destination_chain_id, flow.origin_chain_id)
    return balancing_fee, mul_div(flow.amount, max(0, baseline_fee))


def replay_flows(
    flows: Sequence[Flow],
    opening_state: ReconciliationState,
    config: FeeConfiguration,
    chain_id: int,
    token_symbol: str,
) -> list[ModifiedFlow]:
    """Price and fold every flow of a chain and token, in the given order.

    Flows that fill pre-UBA deposits keep the LP fee fixed at deposit time,
    pay no balancing fee and leave the balances untouched.

    Args:
        flows: Flows already sorted with :func:`sort_flows_ascending`
        opening_state: State before the first flow
        config: Fee configuration in force for these flows
        chain_id: Chain whose running balance is reconciled
        token_symbol: Token being reconciled

    Returns:
        One ModifiedFlow per input flow, in input order
    """
    hurdles = config.get_balance_trigger_threshold(chain_id, token_symbol)
    state = opening_state
    modified = []
    for flow in flows:
        balancing_fee, lp_fee = price_flow(flow, state, config, chain_id)
        if not flow.is_pre_uba_outflow:
            state = apply_flow(state, flow, balancing_fee, hurdles)
        modified.append(
            ModifiedFlow(flow=flow, balancing_fee=balancing_fee, lp_fee=lp_fee, state=state)
        )
    logger.debug(
        "flows_replayed",
        chain_id=chain_id,
        token=token_symbol,
        flow_count=len(modified),
        running_balance=state.running_balance,
        incentive_balance=state.incentive_balance,
    )
    return modified


def verify_closing_balance(
    opening_state: ReconciliationState, modified_flows: Sequence[ModifiedFlow]
) -> bool:
    """Check the closing running balance against the bundle's flow totals.

    closing == opening + inflows - outflows - balancing fees + change in
    net running balance adjustment. A mismatch is logged, not raised.

    Returns:
        True if the balances reconcile
    """
    reconciled = [m for m in modified_flows if not m.flow.is_pre_uba_outflow]
    closing = modified_flows[-1].state if modified_flows else opening_state

    inflows = sum(m.flow.amount for m in reconciled if m.flow.is_inflow)
    outflows = sum(m.flow.amount for m in reconciled if m.flow.is_outflow)
    balancing_fees = sum(m.balancing_fee for m in reconciled)
    adjustment = closing.net_running_balance_adjustment - opening_state.net_running_balance_adjustment

    expected = opening_state.running_balance + inflows - outflows - balancing_fees + adjustment
    if expected != closing.running_balance:
        logger.error(
            "closing_balance_mismatch",
            expected=expected,
            actual=closing.running_balance,
            inflows=inflows,
            outflows=outflows,
            balancing_fees=balancing_fees,
        )
        return False
    return True
