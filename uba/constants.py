"""Protocol constants for the UBA fee engine.

Centralizes the fixed-point scale, curve sentinels and cache key layout.
"""

# 18-decimal fixed-point scale used by fee percentages and curve values
FIXED_POINT_ADJUSTMENT = 10**18

# Largest integer a float64 represents exactly (JS Number.MAX_SAFE_INTEGER)
MAX_SAFE_INTEGER = 2**53 - 1

# Open-ended curve bounds, standing in for +/- infinity
BOUNDS_RANGE_MAX = MAX_SAFE_INTEGER * FIXED_POINT_ADJUSTMENT
BOUNDS_RANGE_MIN = -BOUNDS_RANGE_MAX

# Default multiplier applied to balancing rewards (1.0)
DEFAULT_REWARD_MULTIPLIER = FIXED_POINT_ADJUSTMENT

# Cache key prefix for reconciled bundle states
BUNDLE_STATE_KEY_PREFIX = "UBA_BUNDLE_STATE"


def bundle_state_key(start_blocks: list[int] | tuple[int, ...], token: str, chain_id: int) -> str:
    """Build the cache key of one (bundle, token, chain) reconciliation.

    Args:
        start_blocks: Bundle start block per chain, ordered by chain id
        token: Token symbol
        chain_id: Chain whose running balance the entry holds

    Returns:
        Key of the form ``UBA_BUNDLE_STATE_<blocks>-<token>-<chainId>``
    """
    bundle_key = ",".join(str(block) for block in start_blocks)
    return f"{BUNDLE_STATE_KEY_PREFIX}_{bundle_key}-{token}-{chain_id}"
