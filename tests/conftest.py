"""Pytest configuration and fixtures."""

import json
from pathlib import Path

import pytest

from uba.caching import MemoryCacheStore
from uba.client import UBAClient, UBAClientConfig
from uba.fees.config import FeeConfiguration
from uba.math.curve import FeeCurve
from uba.sources.manual import ManualFlowSource
from tests.helpers import (
    MAINNET,
    OPTIMISM,
    REFERENCE_CURVE,
    WETH,
    ZERO_CENTERED_CURVE,
    make_config,
    make_two_bundle_source,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"
BUNDLES_DIR = FIXTURES_DIR / "bundles"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the fixtures directory path."""
    return FIXTURES_DIR


def load_bundle_fixture(name: str) -> dict:
    """Load an exported bundle fixture by name.

    Args:
        name: Fixture name (e.g., "two_chain")

    Returns:
        Parsed JSON payload
    """
    with open(BUNDLES_DIR / f"{name}.json") as f:
        return json.load(f)


@pytest.fixture
def reference_curve() -> FeeCurve:
    """Reference balancing curve with a single zero point at 2M."""
    return FeeCurve(points=tuple(REFERENCE_CURVE), name="reference")


@pytest.fixture
def zero_centered_curve() -> FeeCurve:
    """Symmetric balancing curve with its zero point at 1M."""
    return FeeCurve(points=tuple(ZERO_CENTERED_CURVE), name="zeroCentered")


@pytest.fixture
def fee_config() -> FeeConfiguration:
    """Fee configuration using the zero-centered curve and a 1% baseline fee."""
    return make_config()


@pytest.fixture
def two_bundle_source() -> ManualFlowSource:
    """Two bundles of WETH flows on mainnet and Optimism."""
    return make_two_bundle_source()


@pytest.fixture
def cache() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def updated_client(two_bundle_source: ManualFlowSource) -> UBAClient:
    """A client that has reconciled the two-bundle source."""
    client = UBAClient(
        two_bundle_source,
        chain_ids=[MAINNET, OPTIMISM],
        tokens=[WETH],
        config=UBAClientConfig(max_workers=2),
    )
    client.update()
    return client
