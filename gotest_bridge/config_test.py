"""Tests for the adapter configuration file."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gotest_bridge.config import DEFAULT_CONFIG, GoTestConfig
from gotest_bridge.execution.invocation import AdapterConfig


def _assert_defaults(config: GoTestConfig) -> None:
    assert config.test_table is DEFAULT_CONFIG["test_table"]
    assert config.extra_args == DEFAULT_CONFIG["extra_args"]
    assert config.output_dir is DEFAULT_CONFIG["output_dir"]


class TestGoTestConfig:
    """Tests for GoTestConfig."""

    def test_defaults_without_file(self):
        _assert_defaults(GoTestConfig())

    def test_missing_file_uses_defaults(self, tmp_path):
        _assert_defaults(GoTestConfig(tmp_path / "missing.json"))

    def test_load_overrides(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"test_table": True, "extra_args": ["-count=1"]}))
        config = GoTestConfig(path)
        assert config.test_table is True
        assert config.extra_args == ["-count=1"]
        assert config.output_dir is None

    def test_extra_args_as_string(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"extra_args": "-race -count=1"}))
        assert GoTestConfig(path).extra_args == ["-race", "-count=1"]

    def test_invalid_json_uses_defaults(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text("{not json")
        _assert_defaults(GoTestConfig(path))

    def test_non_object_uses_defaults(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text("[1]")
        _assert_defaults(GoTestConfig(path))

    def test_output_dir(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"output_dir": str(tmp_path / "out")}))
        assert GoTestConfig(path).output_dir == tmp_path / "out"

    def test_save_round_trip(self, tmp_path):
        path = tmp_path / "sub" / "cfg.json"
        config = GoTestConfig(path)
        config.test_table = True
        config.extra_args = ["-v"]
        config.output_dir = "/tmp/o"
        config.save()

        loaded = GoTestConfig(path)
        assert loaded.test_table is True
        assert loaded.extra_args == ["-v"]
        assert loaded.output_dir == Path("/tmp/o")

    def test_save_keeps_unknown_keys(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"editor": "vim"}))
        config = GoTestConfig(path)
        config.test_table = True
        config.save()
        assert json.loads(path.read_text())["editor"] == "vim"

    def test_save_without_path(self):
        with pytest.raises(ValueError, match="No config file path"):
            GoTestConfig().save()

    def test_to_adapter_config(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"test_table": True, "extra_args": ["-short"]}))
        assert GoTestConfig(path).to_adapter_config() == AdapterConfig(
            test_table=True, extra_args=["-short"],
        )
