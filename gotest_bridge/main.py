"""Entry point for the go test bridge.

Builds ``go test -json`` invocations for positions of a discovered test
tree, runs them, and reconciles the event stream back onto the tree.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from gotest_bridge.analysis.results import ReconciledResult, collect_results
from gotest_bridge.config import CONFIG_FILENAME, GoTestConfig
from gotest_bridge.discovery.positions import Tree, discovery_query, load_tree
from gotest_bridge.execution.invocation import RunSpec, build_spec
from gotest_bridge.execution.output_store import OutputStore
from gotest_bridge.execution.runner import run_spec
from gotest_bridge.reporting.reporter import Reporter


def _add_tree_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--tree",
        required=True,
        type=Path,
        help="Path to the JSON position tree produced by discovery",
    )
    parser.add_argument(
        "--position",
        default=None,
        help="Position id to run (default: the tree root)",
    )


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config-file",
        type=Path,
        default=Path(CONFIG_FILENAME),
        help=f"Path to the adapter config JSON file (default: {CONFIG_FILENAME})",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Write a YAML (or .json) report of the results to this path",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Bridge between go test -json output and a discovered test tree"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # command subcommand
    command_parser = subparsers.add_parser(
        "command",
        help="Print the go test command for a position",
    )
    _add_tree_args(command_parser)
    command_parser.add_argument(
        "--config-file",
        type=Path,
        default=Path(CONFIG_FILENAME),
        help=f"Path to the adapter config JSON file (default: {CONFIG_FILENAME})",
    )
    command_parser.add_argument(
        "extra_args",
        nargs="*",
        help="Extra arguments for go test (after --)",
    )

    # run subcommand
    run_parser = subparsers.add_parser(
        "run",
        help="Run go test for a position and reconcile the results",
    )
    _add_tree_args(run_parser)
    _add_common_args(run_parser)
    run_parser.add_argument(
        "--timeout",
        type=float,
        default=600.0,
        help="Seconds before the go test process is killed (default: 600)",
    )
    run_parser.add_argument(
        "extra_args",
        nargs="*",
        help="Extra arguments for go test (after --)",
    )

    # results subcommand
    results_parser = subparsers.add_parser(
        "results",
        help="Reconcile previously captured go test -json output",
    )
    _add_tree_args(results_parser)
    _add_common_args(results_parser)
    results_parser.add_argument(
        "--output-file",
        required=True,
        type=Path,
        help="File holding the captured go test -json output",
    )

    # query subcommand
    query_parser = subparsers.add_parser(
        "query",
        help="Print the tree-sitter query used for test discovery",
    )
    query_parser.add_argument(
        "--config-file",
        type=Path,
        default=Path(CONFIG_FILENAME),
        help=f"Path to the adapter config JSON file (default: {CONFIG_FILENAME})",
    )
    query_parser.add_argument(
        "--test-table",
        action="store_true",
        default=False,
        help="Include table-driven subtests regardless of the config file",
    )
    return parser.parse_args(argv)


def _select_node(tree: Tree, position_id: str | None) -> Tree:
    """Return the node for *position_id*, or the root if none is given.

    Raises:
        ValueError: If the position id is not in the tree.
    """
    if position_id is None:
        return tree
    node = tree.get_key(position_id)
    if node is None:
        raise ValueError(f"Position not found in tree: {position_id}")
    return node


def _load(args: argparse.Namespace) -> tuple[GoTestConfig, Tree, Tree] | None:
    config = GoTestConfig(args.config_file)
    try:
        tree = load_tree(args.tree)
        node = _select_node(tree, args.position)
    except FileNotFoundError:
        print(f"Error: Position tree not found: {args.tree}", file=sys.stderr)
        return None
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None
    return config, tree, node


def _print_results(results: dict[str, ReconciledResult]) -> int:
    """Print one line per result and return the exit code."""
    if not results:
        print("No results.")
        return 1

    for position_id, result in results.items():
        status = (result.status or "unknown").upper()
        print(f"  {status:<8} {position_id}")
        for error in result.errors or []:
            print(f"           line {error['line']}: {error['message']}")

    failed = sum(1 for r in results.values() if r.status == "failed")
    print(f"\n{len(results)} results, {failed} failed")
    return 1 if failed else 0


def _write_report(
    args: argparse.Namespace,
    results: dict[str, ReconciledResult],
    spec: RunSpec | None = None,
    exit_code: int | None = None,
) -> None:
    if args.report is None:
        return
    reporter = Reporter()
    reporter.add_results(results)
    if spec is not None:
        reporter.set_command(spec.command, exit_code)
    reporter.write(args.report)
    print(f"Report written to {args.report}")


def cmd_command(args: argparse.Namespace) -> int:
    """Print the go test command for the selected position."""
    loaded = _load(args)
    if loaded is None:
        return 1
    config, _, node = loaded

    try:
        spec = build_spec(node, config.to_adapter_config(), args.extra_args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(" ".join(spec.command))
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Run go test for the selected position and report the results."""
    loaded = _load(args)
    if loaded is None:
        return 1
    config, _, node = loaded
    store = OutputStore(config.output_dir)

    try:
        spec = build_spec(
            node,
            config.to_adapter_config(),
            args.extra_args,
            results_path=store.tempname(),
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(" ".join(spec.command))
    outcome = run_spec(spec, timeout=args.timeout)
    if outcome.exit_code == -1:
        print(f"Warning: {outcome.stderr}", file=sys.stderr)

    results = collect_results(spec, outcome.output_path, node, store)
    _write_report(args, results, spec, outcome.exit_code)
    return _print_results(results)


def cmd_results(args: argparse.Namespace) -> int:
    """Reconcile captured output against the selected position."""
    loaded = _load(args)
    if loaded is None:
        return 1
    config, _, node = loaded
    store = OutputStore(config.output_dir)

    spec = RunSpec(
        command=[],
        context={"results_path": str(args.output_file), "file": node.data().path},
    )
    results = collect_results(spec, args.output_file, node, store)
    _write_report(args, results)
    return _print_results(results)


def cmd_query(args: argparse.Namespace) -> int:
    """Print the discovery query."""
    adapter = GoTestConfig(args.config_file).to_adapter_config()
    if args.test_table:
        adapter.test_table = True
    print(discovery_query(adapter.test_table))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return 1

    if args.command == "command":
        return cmd_command(args)
    elif args.command == "run":
        return cmd_run(args)
    elif args.command == "results":
        return cmd_results(args)
    elif args.command == "query":
        return cmd_query(args)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
