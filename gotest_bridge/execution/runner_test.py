"""Tests for running go test processes."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

from gotest_bridge.execution.invocation import RunSpec
from gotest_bridge.execution.runner import run_spec


def _spec(tmp_path: Path) -> RunSpec:
    test_file = tmp_path / "a_test.go"
    test_file.write_text("package a\n")
    return RunSpec(
        command=["go", "test", "-v", "-json", f"{tmp_path}/..."],
        context={"results_path": str(tmp_path / "go.out"), "file": str(test_file)},
    )


class TestRunSpec:
    """Tests for run_spec."""

    def test_stdout_written_to_results_path(self, tmp_path):
        spec = _spec(tmp_path)
        proc = MagicMock(returncode=1, stdout='{"Action":"fail"}\n', stderr="")
        with patch("subprocess.run", return_value=proc) as run:
            outcome = run_spec(spec)

        assert outcome.exit_code == 1
        assert Path(outcome.output_path).read_text() == '{"Action":"fail"}\n'
        assert run.call_args.kwargs["cwd"] == str(tmp_path)
        assert run.call_args.args[0] == spec.command

    def test_directory_position_runs_in_directory(self, tmp_path):
        spec = RunSpec(
            command=["go", "test"],
            context={"results_path": str(tmp_path / "go.out"), "file": str(tmp_path)},
        )
        proc = MagicMock(returncode=0, stdout="", stderr="")
        with patch("subprocess.run", return_value=proc) as run:
            run_spec(spec)
        assert run.call_args.kwargs["cwd"] == str(tmp_path)

    def test_go_not_found(self, tmp_path):
        spec = _spec(tmp_path)
        with patch("subprocess.run", side_effect=FileNotFoundError):
            outcome = run_spec(spec)
        assert outcome.exit_code == -1
        assert "Executable not found: go" in outcome.stderr
        assert Path(outcome.output_path).read_text() == ""

    def test_timeout_keeps_partial_output(self, tmp_path):
        spec = _spec(tmp_path)
        exc = subprocess.TimeoutExpired(spec.command, 5, output='{"Action":"run"}\n')
        with patch("subprocess.run", side_effect=exc):
            outcome = run_spec(spec, timeout=5)
        assert outcome.exit_code == -1
        assert "timed out after 5" in outcome.stderr
        assert Path(outcome.output_path).read_text() == '{"Action":"run"}\n'

    def test_os_error(self, tmp_path):
        spec = _spec(tmp_path)
        with patch("subprocess.run", side_effect=PermissionError("denied")):
            outcome = run_spec(spec)
        assert outcome.exit_code == -1
        assert "OS error" in outcome.stderr
