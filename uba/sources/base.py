"""Data source protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from uba.fees.config import FeeConfiguration
    from uba.models.bundle import BundleRange, ReconciliationState
    from uba.models.flow import Flow
    from uba.models.liquidity import PoolLiquidity


class FlowDataSource(Protocol):
    """Protocol for loading flows and the context needed to price them.

    Implementations must be safe to call from several threads at once; the
    client reconciles independent chains and tokens concurrently.
    """

    def fetch_bundle_ranges(self) -> list[BundleRange]:
        """Return every known bundle, oldest first."""
        ...

    def fetch_flows(
        self, chain_id: int, token_symbol: str, start_block: int, end_block: int
    ) -> list[Flow]:
        """Return the flows moving ``chain_id``'s balance of a token.

        Args:
            chain_id: Chain whose running balance the flows move
            token_symbol: Token symbol
            start_block: First block, inclusive
            end_block: Last block, inclusive
        """
        ...

    def fetch_opening_balance(
        self, chain_id: int, token_symbol: str, bundle: BundleRange
    ) -> ReconciliationState | None:
        """Return the committed opening state of a bundle, if one exists.

        None means the opening state must be derived from the previous
        bundle's closing state.
        """
        ...

    def fetch_fee_config(
        self, chain_id: int, token_symbol: str, bundle: BundleRange
    ) -> FeeConfiguration:
        """Return the fee configuration in force at the start of a bundle."""
        ...

    def fetch_pool_liquidity(
        self, token_symbol: str, block_number: int | None = None
    ) -> PoolLiquidity | None:
        """Return a hub liquidity snapshot, or None if unavailable."""
        ...
