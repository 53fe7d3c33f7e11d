"""Data sources feeding the UBA client.

A data source supplies everything the engine cannot derive itself: bundle
boundaries, the flows inside them, externally committed opening balances,
the fee configuration in force and hub liquidity. Chain indexers implement
:class:`FlowDataSource`; :class:`ManualFlowSource` serves fixed data.
"""

from uba.sources.base import FlowDataSource
from uba.sources.manual import ManualFlowSource

__all__ = ["FlowDataSource", "ManualFlowSource"]
