"""Pydantic models for reconciled bundle state.

These are what the reconciler produces and what gets cached: the balances
after every flow, and the per-chain block ranges that delimit a bundle.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from uba.models.flow import Flow
from uba.models.types import BlockNumber, ChainId, Int256, Uint256

if TYPE_CHECKING:
    from uba.fees.config import FeeConfiguration


class ReconciliationState(BaseModel):
    """Balances of one chain and token at a point in the flow history."""

    running_balance: Int256 = Field(default=0, alias="runningBalance")
    incentive_balance: Uint256 = Field(default=0, alias="incentiveBalance")
    net_running_balance_adjustment: Int256 = Field(
        default=0,
        alias="netRunningBalanceAdjustment",
        description="Total moved by trigger-hurdle clamping; realized via hub rebalancing.",
    )

    model_config = {"populate_by_name": True, "frozen": True}


class ModifiedFlow(BaseModel):
    """A flow together with the fees charged on it and the state it produced."""

    flow: Flow
    balancing_fee: Int256 = Field(alias="balancingFee")
    lp_fee: Uint256 = Field(alias="lpFee")
    state: ReconciliationState

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def running_balance(self) -> int:
        return self.state.running_balance

    @property
    def incentive_balance(self) -> int:
        return self.state.incentive_balance

    @property
    def net_running_balance_adjustment(self) -> int:
        return self.state.net_running_balance_adjustment

    @property
    def system_fee(self) -> int:
        """LP fee plus balancing fee, as charged on an inflow."""
        return self.lp_fee + self.balancing_fee


class BundleRange(BaseModel):
    """Inclusive block range of one bundle on every chain it covers."""

    block_ranges: dict[ChainId, tuple[BlockNumber, BlockNumber]] = Field(alias="blockRanges")

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def chain_ids(self) -> list[int]:
        return sorted(self.block_ranges)

    @property
    def start_blocks(self) -> tuple[int, ...]:
        """Start block per chain, ordered by chain id."""
        return tuple(self.block_ranges[chain_id][0] for chain_id in self.chain_ids)

    def range_for(self, chain_id: int) -> tuple[int, int] | None:
        return self.block_ranges.get(chain_id)

    def contains(self, chain_id: int, block_number: int) -> bool:
        block_range = self.range_for(chain_id)
        if block_range is None:
            return False
        start, end = block_range
        return start <= block_number <= end


class BundleState(BaseModel):
    """Reconciled flows of one chain and token within one bundle.

    ``config`` is the fee configuration the flows were priced with. It is
    excluded from serialization; cached entries get it re-attached on load.
    """

    chain_id: ChainId = Field(alias="chainId")
    token_symbol: str = Field(alias="tokenSymbol")
    bundle: BundleRange
    opening: ReconciliationState
    flows: list[ModifiedFlow] = Field(default_factory=list)
    config: Any = Field(default=None, exclude=True)

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def closing(self) -> ReconciliationState:
        """State after the last flow, or the opening state if there were none."""
        if self.flows:
            return self.flows[-1].state
        return self.opening

    @property
    def fee_config(self) -> FeeConfiguration:
        if self.config is None:
            raise ValueError(f"No fee configuration attached to bundle state of chain {self.chain_id}")
        return self.config

    def state_at_block(self, block_number: int) -> ReconciliationState:
        """State after every flow mined at or before ``block_number``."""
        state = self.opening
        for modified in self.flows:
            if modified.flow.block_number > block_number:
                break
            state = modified.state
        return state
