"""Result reporting: YAML and JSON report generation."""

from gotest_bridge.reporting.reporter import Reporter

__all__ = [
    "Reporter",
]
