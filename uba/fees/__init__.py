"""Fee calculation for the UBA.

This package provides:
- Fee configuration with default/override lookup
- Balancing fees with incentive-pool capping and reward scaling
- LP fees from the baseline fee and the utilization gamma curve
- Quoting of system and relayer fees for prospective deposits

Usage:
    from uba.fees import DEFAULT_FEE_CALCULATOR, compute_flow_fee

    fee = compute_flow_fee(amount, FlowDirection.INFLOW, running_balance,
                           incentive_balance, curve)
    quote = DEFAULT_FEE_CALCULATOR.compute_system_fee(
        amount, deposit_chain_id, refund_chain_id, state, config
    )
"""

from uba.fees.balancing import compute_flow_fee, get_deposit_fee, get_event_fee, get_refund_fee
from uba.fees.calculator import DEFAULT_FEE_CALCULATOR, DefaultFeeCalculator, FeeCalculator
from uba.fees.config import (
    NO_HURDLES,
    DefaultOverride,
    FeeConfiguration,
    Threshold,
    TriggerHurdles,
)
from uba.fees.lp import (
    calculate_utilization,
    calculate_utilization_boundaries,
    compute_lp_fee_pct,
    get_lp_fee,
    get_lp_fee_pct,
)
from uba.fees.result import RelayerFeeResult, SystemFeeResult, UBAFeeResult

__all__ = [
    # Calculator
    "FeeCalculator",
    "DefaultFeeCalculator",
    "DEFAULT_FEE_CALCULATOR",
    # Config
    "FeeConfiguration",
    "DefaultOverride",
    "Threshold",
    "TriggerHurdles",
    "NO_HURDLES",
    # Balancing fees
    "compute_flow_fee",
    "get_event_fee",
    "get_deposit_fee",
    "get_refund_fee",
    # LP fees
    "calculate_utilization",
    "calculate_utilization_boundaries",
    "compute_lp_fee_pct",
    "get_lp_fee_pct",
    "get_lp_fee",
    # Results
    "SystemFeeResult",
    "RelayerFeeResult",
    "UBAFeeResult",
]
