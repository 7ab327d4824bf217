"""Persisted output for reconciled results.

Each reconciled position gets its own uniquely named file holding the
test's output lines, so consumers can open the full text later without
the results mapping holding it in memory.  Files are written once.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterable


class OutputStore:
    """Writes line-ordered output to uniquely named files.

    Args:
        output_dir: Directory to create files in.  Defaults to the system
            temporary directory.
    """

    def __init__(self, output_dir: str | Path | None = None) -> None:
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.written: list[Path] = []

    def _create(self, suffix: str) -> tuple[int, Path]:
        if self.output_dir is not None:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix="gotest-", suffix=suffix, dir=self.output_dir)
        return fd, Path(name)

    def write(self, lines: Iterable[str]) -> str:
        """Write *lines* (one per line) to a new file and return its path."""
        fd, path = self._create(".log")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line)
                f.write("\n")
        self.written.append(path)
        return str(path)

    def tempname(self) -> str:
        """Reserve an empty ``.jsonl`` file for a go test process to write into."""
        fd, path = self._create(".jsonl")
        os.close(fd)
        return str(path)
