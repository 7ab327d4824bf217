"""Identifier normalization between discovered positions and go test events.

Two identity schemes meet here:

* **Static identity** -- assigned to positions discovered in source.  A
  ``::``-joined chain of the filesystem path, the enclosing namespace
  names and the transformed test name, e.g.
  ``/src/proj/pkg/foo_test.go::TestParent::sub_case``.
* **Runtime identity** -- derived from ``go test -json`` events.  The
  package import path and the slash-delimited test name, joined with
  ``::``, e.g. ``example.com/proj/pkg::TestParent::sub_case``.

``normalize_id`` maps the first onto the second so that results can be
looked up by exact string equality.
"""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path
from typing import Any, Iterable

SEPARATOR = "::"
TEST_FILE_SUFFIX = "_test.go"
MODULE_MANIFEST = "go.mod"
MODULE_SUM = "go.sum"

_MODULE_RE = re.compile(r"module (.+)")
_TEST_FILE_SEGMENT_RE = re.compile(r"/\w*_test\.go$")
_FILENAME_FROM_ID_RE = re.compile(r"/(\w*_test\.go)::")
_QUOTED_RE = re.compile(r'^"(.*)"$', re.DOTALL)


def transform_test_name(name: str) -> str:
    """Replace whitespace with underscores and strip surrounding quotes.

    ``"sub case"`` (with the quotes, as it appears in ``t.Run``) becomes
    ``sub_case``.  Only one layer of double quotes is removed.
    """
    name = re.sub(r"\s", "_", name)
    return _QUOTED_RE.sub(r"\1", name)


def normalize_testname(package: str, test: str) -> tuple[str, str | None]:
    """Build the runtime identity for a go test event.

    Subtests are reported as ``TestParent/sub_case``; every slash becomes
    ``::``.  The identity of the top-level parent test is returned as
    the second element when the test is a subtest.

    Args:
        package: Package import path from the event.
        test: Test name from the event.

    Returns:
        Tuple of ``(identity, parent_identity_or_None)``.
    """
    parts = test.split("/")
    parent = f"{package}{SEPARATOR}{parts[0]}" if len(parts) > 1 else None
    return package + SEPARATOR + SEPARATOR.join(parts), parent


def generate_position_id(position: Any, namespaces: Iterable[Any]) -> str:
    """Build the static identity for a discovered position.

    Args:
        position: The position (anything with ``path`` and ``name``).
        namespaces: Enclosing positions, outermost first.  File positions
            are not part of the identity.
    """
    prefix = [ns.name for ns in namespaces if ns.type != "file"]
    return SEPARATOR.join([position.path, *prefix, transform_test_name(position.name)])


def _to_slash(path: str) -> str:
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    if os.altsep and os.altsep != "/":
        path = path.replace(os.altsep, "/")
    return path


def normalize_id(position_id: str, go_root: str, go_module: str) -> str:
    """Convert a static identity into the runtime identity scheme.

    The ``go_root`` prefix of the path component is replaced by the module
    name, separators are converted to ``/`` and the trailing
    ``/<name>_test.go`` file segment is dropped.  Identities outside
    ``go_root`` keep their path unchanged and therefore never match.
    """
    path, sep, rest = position_id.partition(SEPARATOR)
    path = _to_slash(path)
    root = _to_slash(go_root).rstrip("/")
    if path == root or path.startswith(root + "/"):
        path = go_module + path[len(root):]
    return _TEST_FILE_SEGMENT_RE.sub("", path) + sep + rest


def get_filename_from_id(position_id: str) -> str | None:
    """Return the ``*_test.go`` file name embedded in a static identity."""
    match = _FILENAME_FROM_ID_RE.search(_to_slash(position_id))
    if match is None:
        return None
    return match.group(1)


def is_test_file(file_path: str | Path) -> bool:
    """True if *file_path* names a go test source file."""
    return Path(file_path).name.endswith(TEST_FILE_SUFFIX)


def _match_root(start: str | Path, markers: tuple[str, ...]) -> str | None:
    """Walk upward from *start* to the first directory holding a marker."""
    current = Path(start).absolute()
    if not current.is_dir():
        current = current.parent
    for directory in (current, *current.parents):
        if any((directory / marker).is_file() for marker in markers):
            return str(directory)
    return None


def find_go_root(start: str | Path) -> str | None:
    """Return the nearest ancestor of *start* containing ``go.mod``."""
    return _match_root(start, (MODULE_MANIFEST,))


def project_root(start: str | Path) -> str | None:
    """Return the nearest ancestor of *start* containing ``go.mod`` or ``go.sum``."""
    return _match_root(start, (MODULE_MANIFEST, MODULE_SUM))


def read_go_module_name(go_root: str | Path) -> str | None:
    """Read the module path declared on the first line of ``go.mod``.

    Returns:
        The module name, or ``None`` if the manifest cannot be read or its
        first line is not a ``module`` directive.
    """
    gomod_file = Path(go_root) / MODULE_MANIFEST
    try:
        with open(gomod_file, encoding="utf-8") as f:
            first_line = f.readline()
    except (OSError, UnicodeDecodeError) as exc:
        print(f"gotest module: couldn't read {gomod_file}: {exc}", file=sys.stderr)
        return None

    match = _MODULE_RE.search(first_line.strip())
    if match is None:
        print(f"gotest module: no module directive in {gomod_file}", file=sys.stderr)
        return None
    return match.group(1).strip()
