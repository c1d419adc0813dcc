"""Command-line entry point for the Go test explorer.

Provides discover, run, history and flags subcommands operating on one
workspace root.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from gotests.lifecycle.history import sorted_results
from gotests.model import TestInfo, TestTree
from gotests.session import TestSession


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Discover, run and track Go tests in a workspace"
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=Path("."),
        help="Workspace root to scan (default: current directory)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # discover subcommand
    subparsers.add_parser(
        "discover",
        help="List modules, packages, files and tests",
    )

    # run subcommand
    run_parser = subparsers.add_parser(
        "run",
        help="Run tests and record the outcome in history",
    )
    target = run_parser.add_mutually_exclusive_group()
    target.add_argument(
        "--package",
        type=str,
        default=None,
        help="Package directory to run",
    )
    target.add_argument(
        "--file",
        type=str,
        default=None,
        help="Test file whose tests to run",
    )
    target.add_argument(
        "--last",
        action="store_true",
        default=False,
        help="Repeat the previous run",
    )
    run_parser.add_argument(
        "--test",
        type=str,
        default=None,
        help="Single test name to run (requires --package)",
    )

    # history subcommand
    history_parser = subparsers.add_parser(
        "history",
        help="Show recent runs, most recent first",
    )
    history_parser.add_argument(
        "--clear",
        action="store_true",
        default=False,
        help="Delete all recorded runs",
    )

    # flags subcommand
    flags_parser = subparsers.add_parser(
        "flags",
        help="Show or change the extra go test flags",
    )
    flags_parser.add_argument(
        "--enable",
        action="append",
        default=[],
        metavar="ID",
        help="Activate a flag (repeatable)",
    )
    flags_parser.add_argument(
        "--disable",
        action="append",
        default=[],
        metavar="ID",
        help="Deactivate a flag (repeatable)",
    )
    flags_parser.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="ID=VALUE",
        help="Store a value for a flag that takes one (repeatable)",
    )
    flags_parser.add_argument(
        "--show-command",
        action="store_true",
        default=False,
        help="Print the composed extra flags string",
    )
    return parser.parse_args(argv)


def _format_duration(duration: float | None) -> str:
    return f" ({duration:.2f}s)" if duration is not None else ""


def _print_test(test: TestInfo, indent: str) -> None:
    status = test.status or "-"
    print(f"{indent}{test.name} [{status}]{_format_duration(test.duration)}")
    if test.sub_tests is None:
        return
    if not test.sub_tests:
        print(f"{indent}  (run the test to discover sub-tests)")
        return
    for sub in test.sub_tests:
        sub_status = sub.status or "-"
        print(f"{indent}  {sub.name} [{sub_status}]{_format_duration(sub.duration)}")


def print_tree(tree: TestTree) -> None:
    """Print the module/package/file/test hierarchy."""
    if tree.is_empty:
        print("No tests found")
        return
    for mod in tree.modules:
        count = sum(len(f.tests) for p in mod.packages for f in p.files)
        print(f"{mod.name}  ({count} test{'s' if count != 1 else ''})")
        for pkg in mod.packages:
            print(f"  {pkg.display_name}")
            for test_file in pkg.files:
                print(f"    {test_file.base_name}")
                for test in test_file.tests:
                    _print_test(test, "      ")
    print()
    print(f"Total: {tree.total_test_count()} tests")


def cmd_discover(session: TestSession) -> int:
    """Handle discover subcommand."""
    print_tree(session.discover_sync())
    return 0


def cmd_run(session: TestSession, args: argparse.Namespace) -> int:
    """Handle run subcommand.

    Returns:
        Exit code (0 if no test failed, 1 otherwise).
    """
    session.discover_sync()

    try:
        if args.last:
            entry = session.rerun_last()
        elif args.test:
            if not args.package:
                print("Error: --test requires --package", file=sys.stderr)
                return 1
            entry = session.run_test(os.path.abspath(args.package), args.test)
        elif args.package:
            entry = session.run_package(os.path.abspath(args.package))
        elif args.file:
            entry = session.run_file(os.path.abspath(args.file))
        else:
            entry = session.run_all()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if entry is None:
        print("No tests were run")
        return 0

    print(entry.label)
    for result in sorted_results(entry):
        print(f"  {result.status:<8} {result.test_name}{_format_duration(result.duration)}")
    print()
    print(f"{entry.pass_count} pass, {entry.fail_count} fail")
    return 1 if entry.fail_count else 0


def cmd_history(session: TestSession, args: argparse.Namespace) -> int:
    """Handle history subcommand."""
    if args.clear:
        session.history.clear()
        session.history.save()
        print("Run history cleared")
        return 0

    runs = session.history.display_order()
    if not runs:
        print("No runs recorded")
        return 0
    for entry in runs:
        fail = f" · {entry.fail_count} fail" if entry.fail_count else ""
        print(f"{entry.label}  ({entry.pass_count} pass{fail})")
        for result in sorted_results(entry):
            print(f"    {result.status:<8} {result.test_name}{_format_duration(result.duration)}")
    return 0


def cmd_flags(session: TestSession, args: argparse.Namespace) -> int:
    """Handle flags subcommand."""
    flags = session.flags
    active = flags.active_flag_ids()
    values = flags.flag_values()

    try:
        for flag_id in args.enable:
            flags.option(flag_id)
            if flag_id not in active:
                active.append(flag_id)
        for flag_id in args.disable:
            flags.option(flag_id)
            if flag_id in active:
                active.remove(flag_id)
        for assignment in args.set:
            flag_id, sep, value = assignment.partition("=")
            if not sep:
                print(f"Error: expected ID=VALUE, got '{assignment}'", file=sys.stderr)
                return 1
            if not flags.option(flag_id).takes_value:
                print(f"Error: flag '{flag_id}' does not take a value", file=sys.stderr)
                return 1
            values[flag_id] = value
        if args.enable or args.disable or args.set:
            flags.set_active_flags(active, values)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.show_command:
        print(flags.build_extra_flags())
        return 0

    for opt in flags.options:
        mark = "x" if flags.is_flag_active(opt.id) else " "
        value = ""
        if opt.takes_value:
            current = flags.flag_values().get(opt.id, opt.default_value)
            value = f" = {current}" if current else ""
        print(f"[{mark}] {opt.id:<13} {opt.label}{value}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return 1

    root = args.root.resolve()
    if not root.is_dir():
        print(f"Error: workspace root not found: {root}", file=sys.stderr)
        return 1
    session = TestSession(root)

    if args.command == "discover":
        return cmd_discover(session)
    elif args.command == "run":
        return cmd_run(session, args)
    elif args.command == "history":
        return cmd_history(session, args)
    elif args.command == "flags":
        return cmd_flags(session, args)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
