"""Fee quoting for prospective deposits and refunds.

Given the reconciled state of the deposit and refund chains, prices a new
deposit the way the reconciler will price it once it lands:

    system_fee  = lp_fee + deposit balancing fee (origin chain)
    relayer_fee = gas fee + capital fee + refund balancing fee (repayment chain)
"""

from __future__ import annotations

from typing import Protocol

import structlog

from uba.fees.balancing import get_deposit_fee, get_refund_fee
from uba.fees.config import FeeConfiguration
from uba.fees.lp import get_lp_fee
from uba.fees.result import RelayerFeeResult, SystemFeeResult
from uba.math.fixed_point import mul_div
from uba.models.bundle import ReconciliationState
from uba.models.liquidity import PoolLiquidity

logger = structlog.get_logger()


class FeeCalculator(Protocol):
    """Protocol for quoting UBA fees.

    Different implementations can be used for testing or for alternative
    pricing strategies.
    """

    def compute_system_fee(
        self,
        amount: int,
        deposit_chain_id: int,
        refund_chain_id: int,
        deposit_chain_state: ReconciliationState,
        config: FeeConfiguration,
        liquidity: PoolLiquidity | None = None,
    ) -> SystemFeeResult:
        """Quote the fees a depositor pays.

        Args:
            amount: Deposit amount
            deposit_chain_id: Origin chain of the deposit
            refund_chain_id: Chain the relayer is repaid on
            deposit_chain_state: Reconciled state of the origin chain
            config: Fee configuration in force
            liquidity: Hub liquidity snapshot, if available

        Returns:
            SystemFeeResult with LP, balancing and total system fee
        """
        ...

    def compute_relayer_fee(
        self,
        amount: int,
        refund_chain_id: int,
        refund_chain_state: ReconciliationState,
        config: FeeConfiguration,
        relayer_gas_fee: int = 0,
        relayer_capital_fee_pct: int = 0,
    ) -> RelayerFeeResult:
        """Quote the fees a relayer charges.

        Args:
            amount: Deposit amount
            refund_chain_id: Chain the relayer is repaid on
            refund_chain_state: Reconciled state of the repayment chain
            config: Fee configuration in force
            relayer_gas_fee: Gas cost of the fill, in token units
            relayer_capital_fee_pct: Capital cost as a 1e18 percentage

        Returns:
            RelayerFeeResult with the fee breakdown
        """
        ...


class DefaultFeeCalculator:
    """Default fee quoting, matching how flows are priced on replay."""

    def compute_system_fee(
        self,
        amount: int,
        deposit_chain_id: int,
        refund_chain_id: int,
        deposit_chain_state: ReconciliationState,
        config: FeeConfiguration,
        liquidity: PoolLiquidity | None = None,
    ) -> SystemFeeResult:
        lp_fee = get_lp_fee(amount, deposit_chain_id, refund_chain_id, config, liquidity)
        balancing_fee = get_deposit_fee(
            amount,
            deposit_chain_state.running_balance,
            deposit_chain_state.incentive_balance,
            deposit_chain_id,
            config,
        )
        result = SystemFeeResult.from_parts(lp_fee, balancing_fee)
        logger.debug(
            "system_fee_computed",
            amount=amount,
            deposit_chain_id=deposit_chain_id,
            refund_chain_id=refund_chain_id,
            lp_fee=lp_fee,
            deposit_balancing_fee=balancing_fee,
        )
        return result

    def compute_relayer_fee(
        self,
        amount: int,
        refund_chain_id: int,
        refund_chain_state: ReconciliationState,
        config: FeeConfiguration,
        relayer_gas_fee: int = 0,
        relayer_capital_fee_pct: int = 0,
    ) -> RelayerFeeResult:
        if relayer_gas_fee < 0 or relayer_capital_fee_pct < 0:
            raise ValueError("Relayer gas fee and capital fee percentage cannot be negative")

        balancing_fee = get_refund_fee(
            amount,
            refund_chain_state.running_balance,
            refund_chain_state.incentive_balance,
            refund_chain_id,
            config,
        )
        capital_fee = mul_div(amount, relayer_capital_fee_pct)
        result = RelayerFeeResult.from_parts(amount, relayer_gas_fee, capital_fee, balancing_fee)
        if result.amount_too_low:
            logger.info(
                "relayer_fee_exceeds_amount",
                amount=amount,
                refund_chain_id=refund_chain_id,
                relayer_fee=result.relayer_fee,
            )
        return result


# Default calculator instance
DEFAULT_FEE_CALCULATOR = DefaultFeeCalculator()
