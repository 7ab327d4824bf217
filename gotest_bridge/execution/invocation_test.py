"""Tests for go test command construction."""

from __future__ import annotations

from pathlib import Path

import pytest

from gotest_bridge.discovery.positions import Tree
from gotest_bridge.execution.invocation import (
    AdapterConfig,
    build_spec,
    get_build_tags,
    get_package_name,
    get_prefix,
)


@pytest.fixture
def pkg_dir(tmp_path: Path) -> Path:
    pkg = tmp_path / "pkg"
    pkg.mkdir()
    (pkg / "a_test.go").write_text("package pkg\n\nimport \"testing\"\n")
    return pkg


def _tree(pkg_dir: Path) -> Tree:
    test_file = str(pkg_dir / "a_test.go")
    return Tree.from_dict({
        "type": "dir",
        "path": str(pkg_dir),
        "name": "pkg",
        "children": [{
            "type": "file",
            "path": test_file,
            "name": "a_test.go",
            "children": [
                {"type": "test", "path": test_file, "name": "TestA"},
                {
                    "type": "namespace",
                    "path": test_file,
                    "name": "TestParent",
                    "children": [
                        {
                            "type": "test",
                            "path": test_file,
                            "name": "sub",
                            "children": [{"type": "test", "path": test_file, "name": "deep"}],
                        },
                    ],
                },
            ],
        }],
    })


class TestGetBuildTags:
    """Tests for get_build_tags."""

    def test_legacy_constraint(self, tmp_path):
        path = tmp_path / "a_test.go"
        path.write_text("// +build integration linux\n\npackage a\n")
        assert get_build_tags(path) == "-tags=integration,linux"

    def test_go_build_constraint(self, tmp_path):
        path = tmp_path / "a_test.go"
        path.write_text("//go:build integration\n\npackage a\n")
        assert get_build_tags(path) == "-tags=integration"

    def test_no_constraint(self, tmp_path):
        path = tmp_path / "a_test.go"
        path.write_text("package a\n")
        assert get_build_tags(path) == ""

    def test_constraint_not_on_first_line(self, tmp_path):
        path = tmp_path / "a_test.go"
        path.write_text("// doc\n//go:build integration\n")
        assert get_build_tags(path) == ""

    def test_unreadable_file(self, tmp_path):
        assert get_build_tags(tmp_path / "missing_test.go") == ""

    def test_directory(self, tmp_path):
        assert get_build_tags(tmp_path) == ""


class TestGetPackageName:
    """Tests for get_package_name."""

    def test_package_line(self, tmp_path):
        path = tmp_path / "a_test.go"
        path.write_text("package calc_test\n")
        assert get_package_name(path) == "calc_test"

    def test_no_package_line(self, tmp_path):
        path = tmp_path / "a_test.go"
        path.write_text("//go:build x\n\npackage calc\n")
        assert get_package_name(path) == ""


class TestGetPrefix:
    """Tests for get_prefix."""

    def test_top_level_test(self, pkg_dir):
        node = _tree(pkg_dir).get_key(f"{pkg_dir / 'a_test.go'}::TestA")
        assert get_prefix(node) == "TestA"

    def test_subtest_uses_immediate_parent(self, pkg_dir):
        node = _tree(pkg_dir).get_key(f"{pkg_dir / 'a_test.go'}::TestParent::sub::deep")
        assert get_prefix(node) == "sub/deep"

    def test_root_node(self, pkg_dir):
        assert get_prefix(_tree(pkg_dir)) == "pkg"

    def test_quoted_subtest_name_rewritten(self):
        tree = Tree.from_dict({
            "type": "file",
            "path": "/r/a_test.go",
            "name": "a_test.go",
            "children": [{
                "type": "namespace",
                "path": "/r/a_test.go",
                "name": "TestParent",
                "children": [{"type": "test", "path": "/r/a_test.go", "name": '"sub case"'}],
            }],
        })
        node = tree.get_key("/r/a_test.go::TestParent::sub_case")
        assert get_prefix(node) == "TestParent/sub_case"


class TestBuildSpec:
    """Tests for build_spec."""

    def test_dir_runs_recursively(self, pkg_dir):
        spec = build_spec(_tree(pkg_dir))
        assert spec.command == ["go", "test", "-v", "-json", f"{pkg_dir}/..."]
        assert spec.context == {"results_path": None, "file": str(pkg_dir)}

    def test_file_runs_whole_directory(self, pkg_dir):
        node = _tree(pkg_dir).get_key(str(pkg_dir / "a_test.go"))
        spec = build_spec(node, results_path="/tmp/out")
        assert spec.command == ["go", "test", "-v", "-json", f"{pkg_dir}/..."]
        assert spec.context == {"results_path": "/tmp/out", "file": str(pkg_dir / "a_test.go")}

    def test_namespace_runs_package(self, pkg_dir):
        node = _tree(pkg_dir).get_key(f"{pkg_dir / 'a_test.go'}::TestParent")
        spec = build_spec(node)
        assert spec.command == ["go", "test", "-v", "-json", "pkg"]

    def test_test_uses_anchored_run_pattern(self, pkg_dir):
        node = _tree(pkg_dir).get_key(f"{pkg_dir / 'a_test.go'}::TestA")
        spec = build_spec(node)
        assert spec.command == ["go", "test", "-v", "-json", "-run", "TestA$", str(pkg_dir)]

    def test_subtest_run_pattern(self, pkg_dir):
        node = _tree(pkg_dir).get_key(f"{pkg_dir / 'a_test.go'}::TestParent::sub")
        spec = build_spec(node)
        assert spec.command[-3:] == ["-run", "TestParent/sub$", str(pkg_dir)]

    def test_build_tags_and_extra_args_order(self, pkg_dir):
        (pkg_dir / "a_test.go").write_text("//go:build integration\n\npackage pkg\n")
        node = _tree(pkg_dir).get_key(f"{pkg_dir / 'a_test.go'}::TestA")
        config = AdapterConfig(extra_args=["-count=1"])
        spec = build_spec(node, config, extra_args=["-race"])
        assert spec.command == [
            "go", "test", "-v", "-json", "-tags=integration",
            "-count=1", "-race",
            "-run", "TestA$", str(pkg_dir),
        ]

    def test_unknown_type(self, pkg_dir):
        tree = _tree(pkg_dir)
        tree.data().type = "module"
        with pytest.raises(ValueError, match="Unknown position type"):
            build_spec(tree)
