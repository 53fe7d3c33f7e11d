"""End-to-end replay of an exported bundle fixture."""

import pytest

from uba.caching import MemoryCacheStore
from uba.client import UBAClient, UBAClientConfig
from uba.models.bundle import BundleState, ReconciliationState
from uba.reconciliation import verify_closing_balance
from uba.sources.manual import ManualFlowSource
from tests.conftest import load_bundle_fixture
from tests.helpers import MAINNET, OPTIMISM, WETH


@pytest.fixture
def fixture_source() -> ManualFlowSource:
    return ManualFlowSource.from_dict(load_bundle_fixture("two_chain"))


@pytest.fixture
def fixture_client(fixture_source) -> UBAClient:
    client = UBAClient(fixture_source, chain_ids=[MAINNET, OPTIMISM], tokens=[WETH])
    client.update()
    return client


class TestFixtureReplay:
    def test_closing_balances(self, fixture_client):
        optimism = fixture_client.get_latest_bundle_state(OPTIMISM, WETH)
        mainnet = fixture_client.get_latest_bundle_state(MAINNET, WETH)
        assert optimism.closing == ReconciliationState(
            running_balance=715_820, incentive_balance=984_180
        )
        assert mainnet.closing == ReconciliationState(
            running_balance=-120_000, incentive_balance=20_000
        )

    def test_every_bundle_reconciles(self, fixture_client):
        for chain_id in (MAINNET, OPTIMISM):
            for state in fixture_client.get_bundle_states(chain_id, WETH):
                assert verify_closing_balance(state.opening, state.flows)

    def test_quote_uses_pool_utilization(self, fixture_client):
        # Utilization moves from 40% to 41% over a flat 0.1% gamma curve
        quote = fixture_client.get_uba_fee(
            OPTIMISM, MAINNET, WETH, 100_000, evaluation_block=1_499
        )
        assert quote.lp_fee == 1_100
        assert quote.deposit_balancing_fee == -6_820


class TestCachedReplay:
    def test_cached_states_match_fresh_replay(self, fixture_source, fixture_client):
        cache = MemoryCacheStore()
        config = UBAClientConfig(cache_latest_bundle=True)
        UBAClient(
            fixture_source, chain_ids=[MAINNET, OPTIMISM], tokens=[WETH], cache=cache, config=config
        ).update()

        warm = UBAClient(
            fixture_source, chain_ids=[MAINNET, OPTIMISM], tokens=[WETH], cache=cache, config=config
        )
        warm.update()

        for chain_id in (MAINNET, OPTIMISM):
            fresh = fixture_client.get_bundle_states(chain_id, WETH)
            cached = warm.get_bundle_states(chain_id, WETH)
            assert [s.model_dump() for s in cached] == [s.model_dump() for s in fresh]

    def test_cached_payload_is_string_encoded(self, fixture_source):
        cache = MemoryCacheStore()
        UBAClient(fixture_source, chain_ids=[MAINNET, OPTIMISM], tokens=[WETH], cache=cache).update()

        bundle_0 = fixture_source.fetch_bundle_ranges()[0]
        payload = cache.get(f"UBA_BUNDLE_STATE_{bundle_0.start_blocks[0]},{bundle_0.start_blocks[1]}-WETH-10")
        state = BundleState.model_validate_json(payload)
        assert '"runningBalance":"609000"' in payload
        assert state.closing.running_balance == 609_000
