"""Hub pool liquidity snapshot used to price LP fees."""

from pydantic import BaseModel, Field

from uba.models.types import ChainId, Uint256


class PoolLiquidity(BaseModel):
    """Liquidity available to back a deposit of one token.

    Attributes:
        hub_balance: Liquid reserves held by the hub pool
        hub_equity: Total LP equity of the hub pool (liquid plus utilized)
        hub_chain_spoke_balance: Balance of the spoke pool on the hub chain
        spoke_targets: Target balance per spoke chain, reserved for rebalancing
    """

    hub_balance: Uint256 = Field(alias="hubBalance")
    hub_equity: Uint256 = Field(alias="hubEquity")
    hub_chain_spoke_balance: Uint256 = Field(default=0, alias="hubChainSpokeBalance")
    spoke_targets: dict[ChainId, Uint256] = Field(default_factory=dict, alias="spokeTargets")

    model_config = {"populate_by_name": True, "frozen": True}
