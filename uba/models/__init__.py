"""Pydantic models for UBA data structures.

The configuration schema lives in :mod:`uba.models.config` and is imported
from there directly.
"""

from uba.models.bundle import BundleRange, BundleState, ModifiedFlow, ReconciliationState
from uba.models.flow import Flow, FlowDirection
from uba.models.liquidity import PoolLiquidity
from uba.models.types import ChainId, Int256, Uint256, normalize_symbol

__all__ = [
    # Types
    "ChainId",
    "Int256",
    "Uint256",
    "normalize_symbol",
    # Flows
    "Flow",
    "FlowDirection",
    # Bundles
    "BundleRange",
    "BundleState",
    "ModifiedFlow",
    "ReconciliationState",
    # Liquidity
    "PoolLiquidity",
]
