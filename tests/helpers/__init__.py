"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Chain ids, token symbols and curves
- factories: Flow, configuration and data source factory functions
"""

from tests.helpers.constants import (
    ARBITRUM,
    BASELINE_FEE,
    FULL_REFERENCE_CURVE,
    GAMMA_CURVE,
    MAINNET,
    OPTIMISM,
    POLYGON,
    REFERENCE_CURVE,
    USDC,
    WETH,
    ZERO_CENTERED_CURVE,
)
from tests.helpers.factories import (
    BUNDLE_0,
    BUNDLE_1,
    OPTIMISM_OPENING,
    make_config,
    make_deposit,
    make_flow,
    make_refund,
    make_two_bundle_source,
)

__all__ = [
    # Constants
    "MAINNET",
    "OPTIMISM",
    "POLYGON",
    "ARBITRUM",
    "WETH",
    "USDC",
    "REFERENCE_CURVE",
    "FULL_REFERENCE_CURVE",
    "ZERO_CENTERED_CURVE",
    "GAMMA_CURVE",
    "BASELINE_FEE",
    # Factories
    "make_flow",
    "make_deposit",
    "make_refund",
    "make_config",
    "make_two_bundle_source",
    "BUNDLE_0",
    "BUNDLE_1",
    "OPTIMISM_OPENING",
]
