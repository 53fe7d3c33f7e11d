"""Pydantic models for bridge flows.

A flow is any event that moves a token balance on one spoke chain: a deposit
(inflow) or a fill/refund repaid to a relayer (outflow). Flows arrive already
indexed and validated; this module only gives them a canonical shape, an
identity and a chronological sort key.
"""

from __future__ import annotations

import hashlib
from enum import Enum

from pydantic import BaseModel, Field

from uba.models.types import BlockNumber, ChainId, TxHash, Uint256


class FlowDirection(str, Enum):
    """Whether a flow adds to or removes from a chain's running balance."""

    INFLOW = "inflow"
    OUTFLOW = "outflow"

    @property
    def sign(self) -> int:
        return 1 if self is FlowDirection.INFLOW else -1


class Flow(BaseModel):
    """A deposit, fill or refund affecting one chain's running balance."""

    amount: Uint256
    direction: FlowDirection
    token_symbol: str = Field(alias="tokenSymbol", min_length=1)
    origin_chain_id: ChainId = Field(alias="originChainId")
    destination_chain_id: ChainId = Field(alias="destinationChainId")
    repayment_chain_id: ChainId | None = Field(default=None, alias="repaymentChainId")
    block_number: BlockNumber = Field(alias="blockNumber")
    block_timestamp: BlockNumber = Field(alias="blockTimestamp")
    quote_block_number: BlockNumber = Field(alias="quoteBlockNumber")
    deposit_id: int = Field(alias="depositId", ge=0)
    transaction_hash: TxHash = Field(alias="transactionHash")
    log_index: int = Field(default=0, alias="logIndex", ge=0)
    realized_lp_fee_pct: Uint256 | None = Field(
        default=None,
        alias="realizedLpFeePct",
        description="LP fee percentage fixed at deposit time (pre-UBA deposits only).",
    )
    matched_deposit: Flow | None = Field(
        default=None,
        alias="matchedDeposit",
        description="The deposit an outflow fills or refunds.",
    )

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def is_inflow(self) -> bool:
        return self.direction is FlowDirection.INFLOW

    @property
    def is_outflow(self) -> bool:
        return self.direction is FlowDirection.OUTFLOW

    @property
    def signed_amount(self) -> int:
        """Amount with the sign of its effect on the running balance."""
        return self.direction.sign * self.amount

    @property
    def flow_chain_id(self) -> int:
        """The chain whose running balance this flow moves.

        Deposits move their origin chain. Fills and refunds move the chain the
        relayer is repaid on, which defaults to the destination chain.
        """
        if self.is_inflow:
            return self.origin_chain_id
        if self.repayment_chain_id is not None:
            return self.repayment_chain_id
        return self.destination_chain_id

    @property
    def relevant_quote_block(self) -> int:
        """Quote block of the deposit this flow belongs to."""
        if self.is_outflow and self.matched_deposit is not None:
            return self.matched_deposit.quote_block_number
        return self.quote_block_number

    @property
    def is_pre_uba_outflow(self) -> bool:
        """True if this outflow fills a deposit priced before UBA activation."""
        return (
            self.is_outflow
            and self.matched_deposit is not None
            and self.matched_deposit.realized_lp_fee_pct is not None
        )

    @property
    def content_hash(self) -> str:
        """Stable identity of the flow, used for deduplication."""
        hash_input = ":".join(
            str(part)
            for part in (
                self.direction.value,
                self.token_symbol,
                self.origin_chain_id,
                self.destination_chain_id,
                self.repayment_chain_id,
                self.deposit_id,
                self.amount,
                self.block_number,
                self.transaction_hash.lower(),
                self.log_index,
            )
        ).encode()
        return "0x" + hashlib.sha256(hash_input).hexdigest()

    def sort_key(self) -> tuple[int, ...]:
        """Chronological ordering key.

        Orders by block timestamp, then the quote block of the relevant
        deposit, inflows before outflows, amount, and finally on-chain
        position so that the order is total.
        """
        return (
            self.block_timestamp,
            self.relevant_quote_block,
            0 if self.is_inflow else 1,
            self.amount,
            self.flow_chain_id,
            self.block_number,
            self.log_index,
            self.deposit_id,
        )
