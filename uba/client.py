"""UBA client: bundle-by-bundle reconciliation and fee quoting.

The client loads bundles from a :class:`~uba.sources.base.FlowDataSource`,
reconciles every (chain, token) pair it tracks, and answers fee quotes from
the resulting state.

A bundle's opening state is the committed opening balance the data source
supplies, or else the closing state of the bundle before it. Resolving a
bundle may therefore need earlier bundles first; this walk is done with an
explicit work stack and memoized per update.

Independent (chain, token) pairs are reconciled concurrently. A pair whose
replay fails is not committed and nothing of it is cached.

Usage:
    client = UBAClient(source, chain_ids=[1, 10, 137], tokens=["WETH", "USDC"])
    client.update()
    quote = client.get_uba_fee(deposit_chain_id=10, refund_chain_id=137,
                               token_symbol="WETH", amount=10**18)
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import structlog
from pydantic import ValidationError

from uba.caching import CacheStore
from uba.constants import bundle_state_key
from uba.errors import MissingBundleStateError, UBAError, UnresolvableFlowError
from uba.fees.balancing import get_event_fee
from uba.fees.calculator import DEFAULT_FEE_CALCULATOR, FeeCalculator
from uba.fees.config import FeeConfiguration
from uba.fees.result import RelayerFeeResult, SystemFeeResult, UBAFeeResult
from uba.models.bundle import BundleRange, BundleState, ModifiedFlow, ReconciliationState
from uba.models.flow import Flow, FlowDirection
from uba.models.types import normalize_symbol
from uba.reconciliation import dedupe_flows, replay_flows, sort_flows_ascending, verify_closing_balance
from uba.sources.base import FlowDataSource

logger = structlog.get_logger()


@dataclass(frozen=True)
class UBAClientConfig:
    """Behavior settings of the UBA client.

    Attributes:
        max_workers: Threads used to reconcile (chain, token) pairs
        bundle_lookback: Number of most recent bundles to load; None loads all.
            Older bundles are still replayed when an opening state needs them.
        cache_latest_bundle: If False, the still-open latest bundle is never cached
        cache_ttl: Expiry of cache entries in seconds; None keeps them forever
    """

    max_workers: int = 4
    bundle_lookback: int | None = None
    cache_latest_bundle: bool = False
    cache_ttl: float | None = None


# Default configuration instance
DEFAULT_CLIENT_CONFIG = UBAClientConfig()


@dataclass
class _UnitResult:
    states: dict[int, BundleState]
    cached_indices: set[int]


class UBAClient:
    """Reconciles running balances and quotes UBA fees.

    Args:
        source: Data source for bundles, flows, opening balances and config
        chain_ids: Chains to reconcile
        tokens: Token symbols to reconcile
        cache: Optional cache for reconciled bundle states
        calculator: Fee calculator used for quotes
        config: Client behavior settings
    """

    def __init__(
        self,
        source: FlowDataSource,
        chain_ids: Iterable[int],
        tokens: Iterable[str],
        cache: CacheStore | None = None,
        calculator: FeeCalculator = DEFAULT_FEE_CALCULATOR,
        config: UBAClientConfig = DEFAULT_CLIENT_CONFIG,
    ) -> None:
        self.source = source
        self.chain_ids = sorted(set(chain_ids))
        self.tokens = sorted({normalize_symbol(token) for token in tokens})
        self.cache = cache
        self.calculator = calculator
        self.config = config
        self._states: dict[tuple[int, str], list[BundleState]] = {}

    @property
    def is_updated(self) -> bool:
        return bool(self._states)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def update(self) -> None:
        """Reconcile every tracked (chain, token) pair.

        Raises:
            UBAError: The first failure of any pair, after the pairs that
                succeeded have been committed
        """
        bundles = self.source.fetch_bundle_ranges()
        if not bundles:
            logger.warning("no_bundles_to_load")
            return

        first_index = 0
        if self.config.bundle_lookback is not None:
            first_index = max(0, len(bundles) - self.config.bundle_lookback)

        units = [(chain_id, token) for chain_id in self.chain_ids for token in self.tokens]
        logger.info(
            "uba_update_started",
            bundle_count=len(bundles) - first_index,
            chain_ids=self.chain_ids,
            tokens=self.tokens,
        )

        results: dict[tuple[int, str], _UnitResult] = {}
        failures: list[tuple[tuple[int, str], UBAError]] = []
        with ThreadPoolExecutor(max_workers=max(1, self.config.max_workers)) as pool:
            futures = {
                unit: pool.submit(self._reconcile_unit, unit[0], unit[1], bundles, first_index)
                for unit in units
            }
            for unit, future in futures.items():
                try:
                    results[unit] = future.result()
                except UBAError as err:
                    logger.error(
                        "uba_unit_failed",
                        chain_id=unit[0],
                        token=unit[1],
                        error=str(err),
                    )
                    failures.append((unit, err))

        for (chain_id, token), result in results.items():
            self._commit(chain_id, token, bundles, result)

        logger.info("uba_update_finished", committed=len(results), failed=len(failures))
        if failures:
            raise failures[0][1]

    def _commit(
        self, chain_id: int, token: str, bundles: list[BundleRange], result: _UnitResult
    ) -> None:
        ordered = [result.states[index] for index in sorted(result.states)]
        self._states[(chain_id, token)] = ordered

        if self.cache is None:
            return
        last_index = len(bundles) - 1
        for index, state in result.states.items():
            if index in result.cached_indices:
                continue
            if index == last_index and not self.config.cache_latest_bundle:
                continue
            key = bundle_state_key(state.bundle.start_blocks, token, chain_id)
            self.cache.set(key, state.model_dump_json(by_alias=True), self.config.cache_ttl)
            logger.debug("bundle_state_cached", key=key)

    def _reconcile_unit(
        self, chain_id: int, token: str, bundles: list[BundleRange], first_index: int
    ) -> _UnitResult:
        result = _UnitResult(states={}, cached_indices=set())
        for index in range(first_index, len(bundles)):
            self._resolve_bundle(chain_id, token, bundles, index, result)
        return result

    def _resolve_bundle(
        self,
        chain_id: int,
        token: str,
        bundles: list[BundleRange],
        index: int,
        result: _UnitResult,
    ) -> BundleState:
        """Resolve one bundle, walking back to earlier bundles as needed."""
        memo = result.states
        stack = [index]
        while stack:
            current = stack[-1]
            if current in memo:
                stack.pop()
                continue

            bundle = bundles[current]
            cached = self._load_cached(chain_id, token, bundle)
            if cached is not None:
                memo[current] = cached
                result.cached_indices.add(current)
                stack.pop()
                continue

            opening = self._opening_state(chain_id, token, bundles, current, memo)
            if opening is None:
                stack.append(current - 1)
                continue

            memo[current] = self._reconcile_bundle(chain_id, token, bundle, opening)
            stack.pop()

        return memo[index]

    def _opening_state(
        self,
        chain_id: int,
        token: str,
        bundles: list[BundleRange],
        index: int,
        memo: dict[int, BundleState],
    ) -> ReconciliationState | None:
        """Opening state of a bundle, or None if the previous bundle is needed first."""
        bundle = bundles[index]
        committed = self.source.fetch_opening_balance(chain_id, token, bundle)
        if committed is not None:
            config = self.source.fetch_fee_config(chain_id, token, bundle)
            adjustment = config.get_incentive_pool_adjustment(chain_id)
            if adjustment == 0:
                return committed
            return committed.model_copy(
                update={"incentive_balance": max(0, committed.incentive_balance + adjustment)}
            )
        if index == 0:
            logger.debug("opening_balance_defaulted", chain_id=chain_id, token=token)
            return ReconciliationState()
        previous = memo.get(index - 1)
        if previous is None:
            return None
        return previous.closing

    def _load_cached(self, chain_id: int, token: str, bundle: BundleRange) -> BundleState | None:
        if self.cache is None:
            return None
        key = bundle_state_key(bundle.start_blocks, token, chain_id)
        payload = self.cache.get(key)
        if payload is None:
            logger.debug("bundle_state_cache_miss", key=key)
            return None
        try:
            state = BundleState.model_validate_json(payload)
        except ValidationError as err:
            logger.warning("bundle_state_cache_invalid", key=key, error=str(err))
            return None
        logger.debug("bundle_state_cache_hit", key=key)
        config = self.source.fetch_fee_config(chain_id, token, bundle)
        return state.model_copy(update={"config": config})

    def _reconcile_bundle(
        self, chain_id: int, token: str, bundle: BundleRange, opening: ReconciliationState
    ) -> BundleState:
        config = self.source.fetch_fee_config(chain_id, token, bundle)
        block_range = bundle.range_for(chain_id)
        flows: list[Flow] = []
        if block_range is not None:
            fetched = self.source.fetch_flows(chain_id, token, block_range[0], block_range[1])
            flows = sort_flows_ascending(dedupe_flows(self._resolvable_flows(fetched, chain_id, token)))

        modified = replay_flows(flows, opening, config, chain_id, token)
        verify_closing_balance(opening, modified)
        return BundleState(
            chain_id=chain_id,
            token_symbol=token,
            bundle=bundle,
            opening=opening,
            flows=modified,
            config=config,
        )

    def _resolvable_flows(self, flows: Iterable[Flow], chain_id: int, token: str) -> list[Flow]:
        """Drop flows whose token or chains the client does not track."""
        resolvable = []
        for flow in flows:
            try:
                self._check_resolvable(flow, chain_id, token)
            except UnresolvableFlowError as err:
                logger.warning(
                    "unresolvable_flow_skipped",
                    deposit_id=flow.deposit_id,
                    chain_id=chain_id,
                    token=token,
                    reason=str(err),
                )
                continue
            resolvable.append(flow)
        return resolvable

    def _check_resolvable(self, flow: Flow, chain_id: int, token: str) -> None:
        if normalize_symbol(flow.token_symbol) != token:
            raise UnresolvableFlowError(f"token {flow.token_symbol} is not {token}")
        if flow.flow_chain_id != chain_id:
            raise UnresolvableFlowError(f"flow moves chain {flow.flow_chain_id}, not {chain_id}")
        for referenced in (flow.origin_chain_id, flow.destination_chain_id):
            if referenced not in self.chain_ids:
                raise UnresolvableFlowError(f"chain {referenced} is not enabled")

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    def get_bundle_states(self, chain_id: int, token_symbol: str) -> list[BundleState]:
        """All loaded bundle states of a chain and token, oldest first."""
        states = self._states.get((chain_id, normalize_symbol(token_symbol)))
        if not states:
            raise MissingBundleStateError(chain_id, normalize_symbol(token_symbol))
        return list(states)

    def get_bundle_state(
        self, chain_id: int, token_symbol: str, block_number: int | None = None
    ) -> BundleState:
        """The last loaded bundle state opened at or before ``block_number``.

        Blocks past the latest bundle's end resolve to the latest bundle.

        Args:
            chain_id: Chain to look up
            token_symbol: Token symbol
            block_number: Block on ``chain_id``; None selects the latest bundle

        Raises:
            MissingBundleStateError: If the block precedes every loaded bundle
        """
        states = self.get_bundle_states(chain_id, token_symbol)
        if block_number is None:
            return states[-1]
        for state in reversed(states):
            block_range = state.bundle.range_for(chain_id)
            if block_range is not None and block_range[0] <= block_number:
                return state
        raise MissingBundleStateError(chain_id, normalize_symbol(token_symbol), block_number)

    def get_latest_bundle_state(self, chain_id: int, token_symbol: str) -> BundleState:
        return self.get_bundle_state(chain_id, token_symbol)

    def get_state_at_block(
        self, chain_id: int, token_symbol: str, block_number: int | None = None
    ) -> tuple[ReconciliationState, FeeConfiguration]:
        """Reconciled state after every flow up to ``block_number``, with its config."""
        bundle_state = self.get_bundle_state(chain_id, token_symbol, block_number)
        if block_number is None:
            state = bundle_state.closing
        else:
            state = bundle_state.state_at_block(block_number)
        return state, bundle_state.fee_config

    def get_modified_flows(
        self, chain_id: int, token_symbol: str, from_block: int, to_block: int
    ) -> list[ModifiedFlow]:
        """Reconciled flows of a chain and token mined within a block range."""
        if from_block > to_block:
            raise ValueError(f"from_block {from_block} is after to_block {to_block}")
        return [
            modified
            for state in self.get_bundle_states(chain_id, token_symbol)
            for modified in state.flows
            if from_block <= modified.flow.block_number <= to_block
        ]

    # ------------------------------------------------------------------
    # Fee quotes
    # ------------------------------------------------------------------

    def compute_system_fee(
        self,
        amount: int,
        deposit_chain_id: int,
        refund_chain_id: int,
        token_symbol: str,
        block_number: int | None = None,
    ) -> SystemFeeResult:
        """Quote the LP and deposit balancing fees of a new deposit.

        Args:
            amount: Deposit amount
            deposit_chain_id: Origin chain
            refund_chain_id: Repayment chain
            token_symbol: Token deposited
            block_number: Quote block on the origin chain; None uses the latest state
        """
        state, config = self.get_state_at_block(deposit_chain_id, token_symbol, block_number)
        liquidity = self.source.fetch_pool_liquidity(normalize_symbol(token_symbol), block_number)
        return self.calculator.compute_system_fee(
            amount, deposit_chain_id, refund_chain_id, state, config, liquidity
        )

    def compute_relayer_fee(
        self,
        amount: int,
        deposit_chain_id: int,
        refund_chain_id: int,
        token_symbol: str,
        block_number: int | None = None,
        relayer_gas_fee: int = 0,
        relayer_capital_fee_pct: int = 0,
    ) -> RelayerFeeResult:
        """Quote the relayer's fees for filling a new deposit.

        Gas estimation is out of scope; callers pass their estimate in
        ``relayer_gas_fee``. ``block_number`` is a block on the refund chain.
        """
        state, config = self.get_state_at_block(refund_chain_id, token_symbol, block_number)
        return self.calculator.compute_relayer_fee(
            amount,
            refund_chain_id,
            state,
            config,
            relayer_gas_fee=relayer_gas_fee,
            relayer_capital_fee_pct=relayer_capital_fee_pct,
        )

    def get_uba_fee(
        self,
        deposit_chain_id: int,
        refund_chain_id: int,
        token_symbol: str,
        amount: int,
        evaluation_block: int | None = None,
        refund_evaluation_block: int | None = None,
        relayer_gas_fee: int = 0,
        relayer_capital_fee_pct: int = 0,
    ) -> UBAFeeResult:
        """Complete fee quote of a deposit and its refund.

        Args:
            deposit_chain_id: Origin chain
            refund_chain_id: Repayment chain
            token_symbol: Token deposited
            amount: Deposit amount
            evaluation_block: Block on the origin chain to price at; None
                prices against the latest state
            refund_evaluation_block: Block on the repayment chain; None
                prices against the latest state
            relayer_gas_fee: Relayer gas cost estimate, in token units
            relayer_capital_fee_pct: Relayer capital cost (1e18 percentage)

        Raises:
            MissingBundleStateError: If no loaded bundle covers a requested block
        """
        system = self.compute_system_fee(
            amount, deposit_chain_id, refund_chain_id, token_symbol, evaluation_block
        )
        relayer = self.compute_relayer_fee(
            amount,
            deposit_chain_id,
            refund_chain_id,
            token_symbol,
            refund_evaluation_block,
            relayer_gas_fee=relayer_gas_fee,
            relayer_capital_fee_pct=relayer_capital_fee_pct,
        )
        return UBAFeeResult.combine(system, relayer)

    def get_uba_fee_from_candidates(
        self,
        amount: int,
        deposit_chain_id: int,
        refund_chain_ids: Iterable[int],
        token_symbol: str,
        evaluation_block: int | None = None,
        relayer_gas_fee: int = 0,
        relayer_capital_fee_pct: int = 0,
    ) -> dict[int, UBAFeeResult]:
        """Quote a deposit against each candidate repayment chain.

        Candidates whose relayer fee would consume the whole amount are left
        out. Repayment chains are priced against their latest state, since a
        single block number is not meaningful across chains.

        Returns:
            Quotes keyed by repayment chain id
        """
        quotes = {}
        for refund_chain_id in refund_chain_ids:
            quote = self.get_uba_fee(
                deposit_chain_id,
                refund_chain_id,
                token_symbol,
                amount,
                evaluation_block=evaluation_block,
                relayer_gas_fee=relayer_gas_fee,
                relayer_capital_fee_pct=relayer_capital_fee_pct,
            )
            if quote.amount_too_low:
                logger.debug(
                    "refund_candidate_dropped",
                    refund_chain_id=refund_chain_id,
                    relayer_fee=quote.relayer_fee,
                    amount=amount,
                )
                continue
            quotes[refund_chain_id] = quote
        return quotes

    def compute_balancing_fee(
        self,
        token_symbol: str,
        amount: int,
        chain_id: int,
        direction: FlowDirection,
        block_number: int | None = None,
    ) -> int:
        """Balancing fee a flow of ``amount`` on ``chain_id`` would pay at a block."""
        state, config = self.get_state_at_block(chain_id, token_symbol, block_number)
        return get_event_fee(
            amount, direction, state.running_balance, state.incentive_balance, chain_id, config
        )

    def compute_balancing_fees(
        self,
        token_symbol: str,
        amount: int,
        block_number: int | None,
        chain_ids: Iterable[int],
        direction: FlowDirection,
    ) -> dict[int, int]:
        """Balancing fee of the same flow on each of ``chain_ids``, keyed by chain."""
        return {
            chain_id: self.compute_balancing_fee(
                token_symbol, amount, chain_id, direction, block_number
            )
            for chain_id in chain_ids
        }

    def compute_fees_for_deposit(self, deposit: Flow) -> SystemFeeResult:
        """System fee already charged on a reconciled deposit.

        Raises:
            ValueError: If ``deposit`` is not an inflow
            MissingBundleStateError: If the deposit is not in any loaded bundle
        """
        if not deposit.is_inflow:
            raise ValueError(f"Flow {deposit.deposit_id} is not a deposit")
        bundle_state = self.get_bundle_state(
            deposit.origin_chain_id, deposit.token_symbol, deposit.block_number
        )
        target = deposit.content_hash
        for modified in bundle_state.flows:
            if modified.flow.content_hash == target:
                return SystemFeeResult.from_parts(modified.lp_fee, modified.balancing_fee)
        raise MissingBundleStateError(
            deposit.origin_chain_id, normalize_symbol(deposit.token_symbol), deposit.block_number
        )

    def compute_balancing_fee_for_next_refund(
        self, repayment_chain_id: int, token_symbol: str, amount: int
    ) -> int:
        """Balancing fee a refund of ``amount`` would pay right now."""
        return self.compute_relayer_fee(
            amount, repayment_chain_id, repayment_chain_id, token_symbol
        ).relayer_balancing_fee
