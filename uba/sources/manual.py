"""In-memory data source.

Serves bundles, flows and configuration handed to it up front. Used for
tests, fixtures and replaying exported bundle data.

Usage:
    source = ManualFlowSource(
        bundle_ranges=[BundleRange(block_ranges={1: (0, 100), 10: (0, 500)})],
        fee_config=config,
    )
    source.add_flows(flows)
"""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from typing_extensions import NotRequired, TypedDict

from uba.fees.config import FeeConfiguration
from uba.models.bundle import BundleRange, ReconciliationState
from uba.models.config import parse_fee_configuration
from uba.models.flow import Flow
from uba.models.liquidity import PoolLiquidity
from uba.models.types import normalize_symbol


class OpeningBalanceEntry(TypedDict):
    """Committed opening balance of one chain and token in an exported bundle."""

    chainId: int
    tokenSymbol: str
    bundleIndex: int
    state: dict[str, str]


class SourceExport(TypedDict):
    """JSON export accepted by :meth:`ManualFlowSource.from_dict`."""

    bundleRanges: list[dict[str, Any]]
    feeConfig: dict[str, Any]
    flows: NotRequired[list[dict[str, Any]]]
    openingBalances: NotRequired[list[OpeningBalanceEntry]]
    liquidity: NotRequired[dict[str, dict[str, Any]]]


class ManualFlowSource:
    """A :class:`~uba.sources.base.FlowDataSource` over in-memory data.

    Args:
        bundle_ranges: Bundles, oldest first
        fee_config: Configuration used for every bundle without its own
        flows: Initial flows
        liquidity: Hub liquidity per token symbol
    """

    def __init__(
        self,
        bundle_ranges: Iterable[BundleRange],
        fee_config: FeeConfiguration,
        flows: Iterable[Flow] = (),
        liquidity: Mapping[str, PoolLiquidity] | None = None,
    ) -> None:
        self._bundle_ranges = list(bundle_ranges)
        self._fee_config = fee_config
        self._bundle_configs: dict[tuple[int, ...], FeeConfiguration] = {}
        self._flows: list[Flow] = list(flows)
        self._opening_balances: dict[tuple[int, str, tuple[int, ...]], ReconciliationState] = {}
        self._liquidity = {normalize_symbol(k): v for k, v in (liquidity or {}).items()}
        self._lock = threading.Lock()

    @classmethod
    def from_dict(cls, data: SourceExport) -> ManualFlowSource:
        """Build a source from exported JSON data.

        Opening balances refer to bundles by their index in ``bundleRanges``.
        """
        bundles = [BundleRange.model_validate(item) for item in data["bundleRanges"]]
        source = cls(
            bundle_ranges=bundles,
            fee_config=parse_fee_configuration(data["feeConfig"]),
            flows=[Flow.model_validate(item) for item in data.get("flows", [])],
            liquidity={
                symbol: PoolLiquidity.model_validate(item)
                for symbol, item in data.get("liquidity", {}).items()
            },
        )
        for entry in data.get("openingBalances", []):
            source.set_opening_balance(
                int(entry["chainId"]),
                entry["tokenSymbol"],
                bundles[int(entry["bundleIndex"])],
                ReconciliationState.model_validate(entry["state"]),
            )
        return source

    @classmethod
    def from_file(cls, path: str | Path) -> ManualFlowSource:
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def add_flows(self, flows: Iterable[Flow]) -> None:
        with self._lock:
            self._flows.extend(flows)

    def add_bundle(self, bundle: BundleRange, fee_config: FeeConfiguration | None = None) -> None:
        with self._lock:
            self._bundle_ranges.append(bundle)
            if fee_config is not None:
                self._bundle_configs[bundle.start_blocks] = fee_config

    def set_opening_balance(
        self, chain_id: int, token_symbol: str, bundle: BundleRange, state: ReconciliationState
    ) -> None:
        key = (chain_id, normalize_symbol(token_symbol), bundle.start_blocks)
        with self._lock:
            self._opening_balances[key] = state

    def fetch_bundle_ranges(self) -> list[BundleRange]:
        with self._lock:
            return list(self._bundle_ranges)

    def fetch_flows(
        self, chain_id: int, token_symbol: str, start_block: int, end_block: int
    ) -> list[Flow]:
        with self._lock:
            flows = list(self._flows)
        symbol = normalize_symbol(token_symbol)
        return [
            flow
            for flow in flows
            if flow.flow_chain_id == chain_id
            and normalize_symbol(flow.token_symbol) == symbol
            and start_block <= flow.block_number <= end_block
        ]

    def fetch_opening_balance(
        self, chain_id: int, token_symbol: str, bundle: BundleRange
    ) -> ReconciliationState | None:
        key = (chain_id, normalize_symbol(token_symbol), bundle.start_blocks)
        with self._lock:
            return self._opening_balances.get(key)

    def fetch_fee_config(
        self, chain_id: int, token_symbol: str, bundle: BundleRange
    ) -> FeeConfiguration:
        with self._lock:
            return self._bundle_configs.get(bundle.start_blocks, self._fee_config)

    def fetch_pool_liquidity(
        self, token_symbol: str, block_number: int | None = None
    ) -> PoolLiquidity | None:
        return self._liquidity.get(normalize_symbol(token_symbol))
