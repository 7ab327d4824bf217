"""Construction of the ``go test`` command for a selected position.

Directories and files run the whole directory recursively, since a single
test file cannot always be compiled on its own.  Namespaces run their
package, and tests are selected with an anchored ``-run`` pattern built
from the parent test name.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gotest_bridge.discovery.positions import Tree
from gotest_bridge.identity import transform_test_name

BUILD_TAG_PREFIXES = ("// +build ", "//go:build ")


@dataclass
class AdapterConfig:
    """Options fixed when the adapter is set up.

    Attributes:
        test_table: Discover table-driven subtests as positions.
        extra_args: Arguments passed to every ``go test`` invocation.
    """

    test_table: bool = False
    extra_args: list[str] = field(default_factory=list)


@dataclass
class RunSpec:
    """Command to run plus the context needed to read its results."""

    command: list[str]
    context: dict[str, Any] = field(default_factory=dict)


def _first_line(path: str | Path) -> str:
    """Return the stripped first line of *path*, or ``""`` if unreadable."""
    try:
        with open(path, encoding="utf-8") as f:
            return f.readline().strip()
    except (OSError, UnicodeDecodeError):
        return ""


def get_build_tags(path: str | Path) -> str:
    """Translate a build constraint on the first line into ``-tags=...``.

    Both the legacy ``// +build a b`` and the ``//go:build a b`` forms are
    recognised.  Returns an empty string when there is no constraint.
    """
    line = _first_line(path)
    tag_format = None
    for prefix in BUILD_TAG_PREFIXES:
        if line.startswith(prefix):
            tag_format = prefix
    if tag_format is None:
        return ""
    tags = [tag for tag in line[len(tag_format):].split(" ") if tag]
    if not tags:
        return ""
    return "-tags=" + ",".join(tags)


def get_package_name(path: str | Path) -> str:
    """Return the package declared on the first line of a go file."""
    parts = _first_line(path).split()
    if len(parts) >= 2 and parts[0] == "package":
        return parts[1]
    return ""


def get_prefix(node: Tree) -> str:
    """Build the ``-run`` name from the node and its immediate parent.

    Names are rewritten the way go reports subtests (``"sub case"``
    becomes ``sub_case``).
    """
    name = transform_test_name(node.data().name)
    parent = node.parent()
    if parent is None or parent.data().type == "file":
        return name
    return f"{transform_test_name(parent.data().name)}/{name}"


def build_spec(
    node: Tree,
    config: AdapterConfig | None = None,
    extra_args: list[str] | None = None,
    results_path: str | None = None,
) -> RunSpec:
    """Build the ``go test`` invocation for the selected node.

    Args:
        node: Selected position in the tree.
        config: Adapter options; defaults to ``AdapterConfig()``.
        extra_args: Per-run arguments appended after the configured ones.
        results_path: Where the caller will store the process output.

    Raises:
        ValueError: If the position type is unknown.
    """
    config = config or AdapterConfig()
    position = node.data()
    directory = position.path
    if not os.path.isdir(position.path):
        directory = os.path.dirname(position.path)

    if position.type in ("dir", "file"):
        # file runs the whole directory: a lone file may need its siblings
        scope = [f"{directory}/..."]
    elif position.type == "namespace":
        scope = [get_package_name(position.path)]
    elif position.type == "test":
        scope = ["-run", get_prefix(node) + "$", directory]
    else:
        raise ValueError(f"Unknown position type: {position.type}")

    command = ["go", "test", "-v", "-json"]
    tags = get_build_tags(position.path)
    if tags:
        command.append(tags)
    command.extend(config.extra_args)
    command.extend(extra_args or [])
    command.extend(scope)

    return RunSpec(
        command=command,
        context={"results_path": results_path, "file": position.path},
    )
