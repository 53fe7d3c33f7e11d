"""UBA error classes.

Construction-time errors (invalid curves, invalid configuration) and fold-time
invariant violations are fatal. Missing bundle state and unresolvable flows are
recoverable by the caller.
"""


class UBAError(Exception):
    """Base error for UBA fee operations."""

    pass


class InvalidFeeCurveError(UBAError, ValueError):
    """A fee curve violates one of its structural invariants."""

    def __init__(self, curve_name: str, reason: str) -> None:
        self.curve_name = curve_name
        self.reason = reason
        super().__init__(f"Invalid fee curve '{curve_name}': {reason}")


class InvalidFeeConfigurationError(UBAError, ValueError):
    """A fee configuration payload does not match the expected schema."""

    pass


class CurveDomainError(UBAError, ValueError):
    """A curve argument lies outside the sentinel range."""

    pass


class IncentivePoolOverdrawnError(UBAError):
    """A reward would pay out more than the incentive pool holds."""

    def __init__(self, incentive_fee: int, incentive_balance: int) -> None:
        self.incentive_fee = incentive_fee
        self.incentive_balance = incentive_balance
        super().__init__(
            f"Incentive fee {incentive_fee} exceeds incentive balance {incentive_balance}"
        )


class MissingBundleStateError(UBAError, LookupError):
    """No reconciled bundle state covers the requested chain, token and block."""

    def __init__(self, chain_id: int, token: str, block_number: int | None = None) -> None:
        self.chain_id = chain_id
        self.token = token
        self.block_number = block_number
        where = "latest bundle" if block_number is None else f"block {block_number}"
        super().__init__(f"No bundle state for {token} on chain {chain_id} at {where}")


class UnresolvableFlowError(UBAError, LookupError):
    """A flow references a token or chain absent from the configuration."""

    pass
