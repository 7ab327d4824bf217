"""go test invocation: command building, process running, output storage."""

from gotest_bridge.execution.invocation import AdapterConfig, RunSpec, build_spec
from gotest_bridge.execution.output_store import OutputStore
from gotest_bridge.execution.runner import RunOutcome, run_spec

__all__ = [
    "AdapterConfig",
    "OutputStore",
    "RunOutcome",
    "RunSpec",
    "build_spec",
    "run_spec",
]
