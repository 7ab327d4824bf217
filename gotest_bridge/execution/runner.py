"""Runs a built ``go test`` command and captures its event stream."""

from __future__ import annotations

import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from gotest_bridge.execution.invocation import RunSpec


@dataclass
class RunOutcome:
    """Result of running one ``go test`` process."""

    output_path: str
    exit_code: int
    duration: float = 0.0
    stderr: str = ""


def run_spec(spec: RunSpec, timeout: float = 600.0) -> RunOutcome:
    """Execute *spec* and write its stdout to ``spec.context["results_path"]``.

    The process runs from the directory of the selected position so that
    package-name scopes resolve.  Failures to start or time-outs are
    reported through ``exit_code == -1`` and ``stderr``; the output file
    is still written (possibly empty) so result collection falls back to
    marking positions failed.
    """
    output_path = spec.context["results_path"]
    file_path = spec.context["file"]
    cwd = file_path if os.path.isdir(file_path) else os.path.dirname(file_path)

    start_time = time.monotonic()
    try:
        proc = subprocess.run(
            spec.command,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd or None,
        )
    except subprocess.TimeoutExpired as exc:
        stdout = exc.stdout or ""
        if isinstance(stdout, bytes):
            stdout = stdout.decode("utf-8", errors="replace")
        Path(output_path).write_text(stdout)
        return RunOutcome(
            output_path=output_path,
            exit_code=-1,
            duration=time.monotonic() - start_time,
            stderr=f"go test timed out after {timeout} seconds",
        )
    except FileNotFoundError:
        Path(output_path).write_text("")
        return RunOutcome(
            output_path=output_path,
            exit_code=-1,
            duration=time.monotonic() - start_time,
            stderr=f"Executable not found: {spec.command[0]}",
        )
    except OSError as e:
        Path(output_path).write_text("")
        return RunOutcome(
            output_path=output_path,
            exit_code=-1,
            duration=time.monotonic() - start_time,
            stderr=f"OS error running go test: {e}",
        )

    Path(output_path).write_text(proc.stdout)
    return RunOutcome(
        output_path=output_path,
        exit_code=proc.returncode,
        duration=time.monotonic() - start_time,
        stderr=proc.stderr,
    )
