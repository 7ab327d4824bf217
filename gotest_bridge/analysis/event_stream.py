"""Aggregation of the ``go test -json`` event stream.

Each non-empty line of the stream is an independent JSON record with the
optional fields ``Action``, ``Package``, ``Test`` and ``Output``.  Records
for many tests and subtests may be interleaved; ``aggregate`` folds them
into one ``AggregatedTest`` per runtime identity.

A single line that is not valid JSON makes the whole stream suspect, so
structured aggregation is abandoned and the raw lines are returned as a
decorated log instead.
"""

from __future__ import annotations

import json
import re
import sys
from dataclasses import dataclass, field
from typing import Any, Iterable

from gotest_bridge.identity import normalize_testname

# Action -> terminal status.  None marks a transitional action.
TEST_STATUSES: dict[str, str | None] = {
    "run": None,  # the test has started running
    "pause": None,  # the test has been paused
    "cont": None,  # the test has continued running
    "bench": None,  # the benchmark printed log output but did not fail
    "output": None,  # the test printed output
    "pass": "passed",  # the test passed
    "fail": "failed",  # the test or benchmark failed
    "skip": "skipped",  # the test was skipped or the package contained no tests
}

RED = "\x1b[31m"
GREEN = "\x1b[32m"
YELLOW = "\x1b[33m"
RESET = "\x1b[0m"

# go test prints assertion locations as "    main_test.go:12: message",
# indented four more spaces per subtest level
_TESTFILE_INFO_RE = re.compile(r"\s{4}(\S*_test\.go):(\d+):")


@dataclass
class RawEvent:
    """One decoded line of the event stream.  Every field may be absent."""

    Action: str | None = None
    Package: str | None = None
    Test: str | None = None
    Output: str | None = None

    @classmethod
    def from_json(cls, line: str) -> RawEvent:
        """Decode a stream line, ignoring unknown fields.

        Raises:
            ValueError: If the line is not a JSON object.
        """
        data = json.loads(line)
        if not isinstance(data, dict):
            raise ValueError(f"Event is not a JSON object: {line!r}")
        return cls(
            Action=_optional_str(data.get("Action")),
            Package=_optional_str(data.get("Package")),
            Test=_optional_str(data.get("Test")),
            Output=_optional_str(data.get("Output")),
        )


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


@dataclass
class AggregatedTest:
    """Accumulated state for one runtime test identity.

    ``file_output`` maps a test file name to a mapping of line number to
    the output fragments attributed to that location, in arrival order.
    """

    status: str | None = None
    output: list[str] = field(default_factory=list)
    progress: list[str] = field(default_factory=list)
    file_output: dict[str, dict[int, list[str]]] = field(default_factory=dict)


def sanitize_output(output: str | None) -> str | None:
    """Remove newline and tab characters from test output."""
    if output is None:
        return None
    return output.replace("\n", "").replace("\t", "")


def highlight_output(output: str | None) -> str | None:
    """Colour a line by the first of FAIL, PASS or SKIP it contains."""
    if output is None:
        return None
    if "FAIL" in output:
        return f"{RED}{output}{RESET}"
    if "PASS" in output:
        return f"{GREEN}{output}{RESET}"
    if "SKIP" in output:
        return f"{YELLOW}{output}{RESET}"
    return output


def get_testfileinfo(line: str | None) -> tuple[str, int, str] | tuple[None, None, None]:
    """Extract a test file location from a line of go test output.

    Matches the four-space-indented ``name_test.go:12:`` prefix that
    ``t.Errorf`` and friends produce.

    Returns:
        ``(file, line_number, message)`` where *message* is the text after
        the location prefix, or ``(None, None, None)`` if there is none.
    """
    if line is None:
        return None, None, None
    match = _TESTFILE_INFO_RE.search(line)
    if match is None:
        return None, None, None
    return match.group(1), int(match.group(2)), line[match.end():]


def _decorate_lines(lines: Iterable[str]) -> list[str]:
    return [highlight_output(line) or "" for line in lines if line != ""]


def aggregate(lines: Iterable[str]) -> tuple[dict[str, AggregatedTest], list[str]]:
    """Fold the ``go test -json`` stream into per-test state.

    Args:
        lines: Stream lines in arrival order.

    Returns:
        Tuple of ``(tests, log)``.  *tests* maps the runtime identity
        (``package::Test::subtest``) to its aggregated state.  *log* holds
        every decorated output line of the run.  If any line fails to
        decode, *tests* is empty and *log* is the decorated raw stream.
    """
    lines = list(lines)
    tests: dict[str, AggregatedTest] = {}
    log: list[str] = []

    for line in lines:
        if line == "":
            continue
        try:
            event = RawEvent.from_json(line)
        except ValueError as exc:
            # json.JSONDecodeError is a ValueError subclass
            print(
                f"gotest results: undecodable event line, falling back to raw log: {exc}",
                file=sys.stderr,
            )
            return {}, _decorate_lines(lines)

        output = highlight_output(sanitize_output(event.Output))
        if output is not None:
            log.append(output)

        if event.Test is None:
            continue

        testname, parentname = normalize_testname(event.Package or "", event.Test)
        test = tests.get(testname)
        if test is None:
            test = tests[testname] = AggregatedTest()

        testfile, linenumber, message = get_testfileinfo(event.Output)
        if testfile is not None and linenumber is not None:
            fragment = highlight_output(sanitize_output(message).lstrip(" "))
            test.file_output.setdefault(testfile, {}).setdefault(linenumber, []).append(fragment)

        if event.Action is not None:
            test.progress.append(event.Action)
            status = TEST_STATUSES.get(event.Action)
            if status is not None:
                test.status = status

        if output is not None:
            test.output.append(output)
            if parentname is not None and parentname in tests:
                tests[parentname].output.append(output)

    return tests, log
