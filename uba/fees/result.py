"""Fee quote result types."""

from pydantic import BaseModel, Field

from uba.models.types import Int256, Uint256


class SystemFeeResult(BaseModel):
    """Fees a depositor pays to the system.

    Attributes:
        lp_fee: Fee paid to liquidity providers, in token units
        deposit_balancing_fee: Balancing fee of the deposit on its origin
            chain (negative when the deposit earns a reward)
        system_fee: ``lp_fee + deposit_balancing_fee``
    """

    lp_fee: Uint256 = Field(alias="lpFee")
    deposit_balancing_fee: Int256 = Field(alias="depositBalancingFee")
    system_fee: Int256 = Field(alias="systemFee")

    model_config = {"populate_by_name": True, "frozen": True}

    @classmethod
    def from_parts(cls, lp_fee: int, deposit_balancing_fee: int) -> "SystemFeeResult":
        return cls(
            lp_fee=lp_fee,
            deposit_balancing_fee=deposit_balancing_fee,
            system_fee=lp_fee + deposit_balancing_fee,
        )


class RelayerFeeResult(BaseModel):
    """Fees a relayer charges to fill a deposit.

    Attributes:
        relayer_gas_fee: Gas cost of the fill, supplied by the caller
        relayer_capital_fee: Cost of the relayer's capital lock-up
        relayer_balancing_fee: Balancing fee of the refund on the repayment chain
        relayer_fee: Sum of the three
        amount_too_low: True if the fees consume the whole amount
    """

    relayer_gas_fee: Uint256 = Field(alias="relayerGasFee")
    relayer_capital_fee: Uint256 = Field(alias="relayerCapitalFee")
    relayer_balancing_fee: Int256 = Field(alias="relayerBalancingFee")
    relayer_fee: Int256 = Field(alias="relayerFee")
    amount_too_low: bool = Field(default=False, alias="amountTooLow")

    model_config = {"populate_by_name": True, "frozen": True}

    @classmethod
    def from_parts(
        cls,
        amount: int,
        relayer_gas_fee: int,
        relayer_capital_fee: int,
        relayer_balancing_fee: int,
    ) -> "RelayerFeeResult":
        relayer_fee = relayer_gas_fee + relayer_capital_fee + relayer_balancing_fee
        return cls(
            relayer_gas_fee=relayer_gas_fee,
            relayer_capital_fee=relayer_capital_fee,
            relayer_balancing_fee=relayer_balancing_fee,
            relayer_fee=relayer_fee,
            amount_too_low=relayer_fee >= amount,
        )


class UBAFeeResult(BaseModel):
    """Complete fee quote for a deposit and its refund."""

    lp_fee: Uint256 = Field(alias="lpFee")
    deposit_balancing_fee: Int256 = Field(alias="depositBalancingFee")
    system_fee: Int256 = Field(alias="systemFee")
    relayer_gas_fee: Uint256 = Field(alias="relayerGasFee")
    relayer_capital_fee: Uint256 = Field(alias="relayerCapitalFee")
    relayer_balancing_fee: Int256 = Field(alias="relayerBalancingFee")
    relayer_fee: Int256 = Field(alias="relayerFee")
    amount_too_low: bool = Field(default=False, alias="amountTooLow")

    model_config = {"populate_by_name": True, "frozen": True}

    @classmethod
    def combine(cls, system: SystemFeeResult, relayer: RelayerFeeResult) -> "UBAFeeResult":
        return cls(**system.model_dump(), **relayer.model_dump())

    @property
    def total_fee(self) -> int:
        return self.system_fee + self.relayer_fee
