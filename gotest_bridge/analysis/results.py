"""Reconciliation of aggregated go test events with discovered positions.

Every node of the position tree is mapped onto the runtime identity
scheme and looked up in the aggregated tests.  Nodes without a matching
test (directories, files, tests that did not run) are left out of the
result mapping.  When the stream produced no tests at all, every node is
marked failed and shares the raw log as its output.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from gotest_bridge.analysis.event_stream import TEST_STATUSES, AggregatedTest, aggregate
from gotest_bridge.discovery.positions import Tree
from gotest_bridge.execution.invocation import RunSpec
from gotest_bridge.execution.output_store import OutputStore
from gotest_bridge.identity import (
    find_go_root,
    get_filename_from_id,
    normalize_id,
    read_go_module_name,
)


@dataclass
class ReconciledResult:
    """Outcome reported for one position."""

    status: str | None
    output: str
    short: str | None = None
    errors: list[dict[str, Any]] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status, "output": self.output}
        if self.short is not None:
            data["short"] = self.short
        if self.errors is not None:
            data["errors"] = self.errors
        return data


def get_errors_from_test(
    test: AggregatedTest, file_name: str | None,
) -> list[dict[str, Any]] | None:
    """Build ``{line, message}`` entries for output attributed to *file_name*.

    Returns:
        One entry per tracked line in first-seen order, or ``None`` if the
        test has no output attributed to that file.
    """
    if file_name is None or file_name not in test.file_output:
        return None
    return [
        {"line": line, "message": "".join(fragments)}
        for line, fragments in test.file_output[file_name].items()
    ]


def reconcile(
    tree: Tree,
    tests: dict[str, AggregatedTest],
    log: list[str],
    go_root: str,
    go_module: str,
    store: OutputStore,
) -> dict[str, ReconciledResult]:
    """Produce one result per position that has a matching test.

    Args:
        tree: Discovered position tree.
        tests: Output of ``aggregate``.
        log: Decorated run log from ``aggregate``.
        go_root: Directory holding ``go.mod``.
        go_module: Module name declared in ``go.mod``.
        store: Where output files are written.

    Returns:
        Mapping of position id to its reconciled result.
    """
    results: dict[str, ReconciledResult] = {}

    if not tests:
        empty_result_fname = store.write(log)
        for node in tree.iter_nodes():
            results[node.data().id] = ReconciledResult(
                status=TEST_STATUSES["fail"],
                output=empty_result_fname,
            )
        return results

    for node in tree.iter_nodes():
        position_id = node.data().id
        test = tests.get(normalize_id(position_id, go_root, go_module))
        if test is None:
            continue
        results[position_id] = ReconciledResult(
            status=test.status,
            output=store.write(test.output),
            short="\n".join(test.output),
            errors=get_errors_from_test(test, get_filename_from_id(position_id)),
        )
    return results


def read_output_lines(output_path: str | Path) -> list[str] | None:
    """Read the captured process output, one entry per line."""
    try:
        text = Path(output_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        print(f"gotest results: could not read output {output_path}: {exc}", file=sys.stderr)
        return None
    # frame on "\n" only; go writes some unicode line separators raw
    lines = [line.rstrip("\r") for line in text.split("\n")]
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def collect_results(
    spec: RunSpec,
    output_path: str | Path,
    tree: Tree,
    store: OutputStore,
) -> dict[str, ReconciledResult]:
    """Turn a finished run's output file into per-position results.

    Returns an empty mapping when the go module cannot be determined or
    the output cannot be read.  Callers can tell this apart from the
    no-tests fallback, which marks every position failed.
    """
    go_root = find_go_root(spec.context["file"])
    if go_root is None:
        print(f"gotest results: no go.mod above {spec.context['file']}", file=sys.stderr)
        return {}
    go_module = read_go_module_name(go_root)
    if go_module is None:
        return {}

    lines = read_output_lines(output_path)
    if lines is None:
        return {}

    tests, log = aggregate(lines)
    return reconcile(tree, tests, log, go_root, go_module, store)
