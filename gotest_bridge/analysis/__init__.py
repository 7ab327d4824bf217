"""Event stream aggregation and reconciliation onto discovered positions."""

from gotest_bridge.analysis.event_stream import AggregatedTest, RawEvent, aggregate
from gotest_bridge.analysis.results import ReconciledResult, collect_results, reconcile

__all__ = [
    "AggregatedTest",
    "RawEvent",
    "ReconciledResult",
    "aggregate",
    "collect_results",
    "reconcile",
]
