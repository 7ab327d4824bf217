"""Report generation for reconciled go test results.

Summarises the per-position results of one run as a YAML or JSON report
with counts per status.
"""

from __future__ import annotations

import datetime
import json
from pathlib import Path
from typing import Any

import yaml

from gotest_bridge.analysis.results import ReconciledResult

# Valid status values for a reconciled position
VALID_STATUSES = frozenset({
    "passed",
    "failed",
    "skipped",
})


class Reporter:
    """Collects reconciled results and generates reports.

    Positions whose test never reached a terminal status are counted as
    ``unknown``.
    """

    def __init__(self) -> None:
        self.results: dict[str, ReconciledResult] = {}
        self.command: list[str] | None = None
        self.exit_code: int | None = None

    def add_results(self, results: dict[str, ReconciledResult]) -> None:
        """Add reconciled results keyed by position id."""
        self.results.update(results)

    def set_command(self, command: list[str], exit_code: int | None = None) -> None:
        """Record the go test command (and its exit code) the results came from."""
        self.command = list(command)
        self.exit_code = exit_code

    def _summary(self) -> dict[str, int]:
        summary = {"total": len(self.results), "passed": 0, "failed": 0, "skipped": 0, "unknown": 0}
        for result in self.results.values():
            if result.status in VALID_STATUSES:
                summary[result.status] += 1
            else:
                summary["unknown"] += 1
        return summary

    def generate_report(self) -> dict[str, Any]:
        """Generate the report dict."""
        report: dict[str, Any] = {
            "generated_at": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "summary": self._summary(),
        }
        if self.command is not None:
            report["command"] = " ".join(self.command)
        if self.exit_code is not None:
            report["exit_code"] = self.exit_code
        report["results"] = {
            position_id: result.to_dict()
            for position_id, result in self.results.items()
        }
        return {"report": report}

    def write_yaml(self, path: Path) -> None:
        """Write the report as a YAML file.

        Args:
            path: File path to write the YAML report to.
        """
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(
                report,
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

    def write_json(self, path: Path) -> None:
        """Write the report as a JSON file."""
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(report, f, indent=2)
            f.write("\n")

    def write(self, path: Path) -> None:
        """Write YAML or JSON depending on the file suffix."""
        if path.suffix == ".json":
            self.write_json(path)
        else:
            self.write_yaml(path)
