"""Adapter configuration file management.

Reads and writes the ``.gotest_bridge.json`` file holding the options the
invocation builder is constructed with.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from gotest_bridge.execution.invocation import AdapterConfig

CONFIG_FILENAME = ".gotest_bridge.json"

# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "test_table": False,
    "extra_args": [],
    "output_dir": None,
}


class GoTestConfig:
    """Options stored in ``.gotest_bridge.json``.

    Keys missing from the file take their value from ``DEFAULT_CONFIG``.
    A file that cannot be read or is not a JSON object is ignored.

    Args:
        path: Location of the file.  Without one the defaults are used and
            ``save()`` is unavailable.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._data: dict[str, Any] = {**DEFAULT_CONFIG, **self._read_overrides()}

    def _read_overrides(self) -> dict[str, Any]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def save(self) -> None:
        """Write the current options back to ``path``."""
        if self.path is None:
            raise ValueError("No config file path specified")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2) + "\n")

    @property
    def test_table(self) -> bool:
        """Whether table-driven subtests are discovered."""
        return bool(self._data.get("test_table"))

    @test_table.setter
    def test_table(self, value: bool) -> None:
        self._data["test_table"] = bool(value)

    @property
    def extra_args(self) -> list[str]:
        """Arguments appended to every go test invocation."""
        val = self._data.get("extra_args") or []
        if isinstance(val, str):
            return val.split()
        return [str(arg) for arg in val]

    @extra_args.setter
    def extra_args(self, value: list[str]) -> None:
        self._data["extra_args"] = list(value)

    @property
    def output_dir(self) -> Path | None:
        """Directory for persisted test output (None = system temp dir)."""
        val = self._data.get("output_dir")
        return Path(val) if val else None

    @output_dir.setter
    def output_dir(self, value: str | Path | None) -> None:
        self._data["output_dir"] = str(value) if value else None

    def to_adapter_config(self) -> AdapterConfig:
        """Build the options object the invocation builder takes."""
        return AdapterConfig(test_table=self.test_table, extra_args=self.extra_args)
