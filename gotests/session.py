"""Workspace session: discovery, runs, status reconciliation and history.

A ``TestSession`` owns the tree store and the components that act on it.
Discovery replaces the stored tree in one step.  A run marks its targets
as running, invokes the runner once per package, applies top-level results,
replaces sub-tests from the transcript, and records the outcome in the run
history.
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

from gotests.analysis.output_parser import parse_test_results, update_subtests_from_output
from gotests.discovery.hierarchy import discover_tests
from gotests.discovery.parser import TestSourceParser
from gotests.execution.runner import (
    GoTestRunner,
    LastRunSpec,
    TestRunner,
    build_run_pattern,
)
from gotests.lifecycle.config import ExplorerConfig
from gotests.lifecycle.flags import COVERPROFILE_ID, FlagStore
from gotests.lifecycle.history import RunHistory, RunHistoryEntry, RunResult
from gotests.lifecycle.state import WorkspaceState
from gotests.lifecycle.status import StatusTracker
from gotests.model import (
    STATUS_FAIL,
    STATUS_RUNNING,
    STATUS_UNKNOWN,
    TestInfo,
    TestTree,
)
from gotests.store import TestTreeStore

LAST_RUN_KEY = "gotests.lastRun"
COVERAGE_FILE_NAME = "coverage.out"


class TestSession:
    """Everything needed to discover and run the tests of one workspace."""

    def __init__(
        self,
        root: str | Path,
        config: ExplorerConfig | None = None,
        runner: TestRunner | None = None,
        parser: TestSourceParser | None = None,
    ) -> None:
        self.root = os.path.abspath(root)
        self.config = config or ExplorerConfig.for_workspace(Path(self.root))
        self.parser = parser
        self.store = TestTreeStore()
        self.tracker = StatusTracker(self.store)
        self.state = WorkspaceState(self.config.state_file)
        self.flags = FlagStore(self.state)
        self.history = RunHistory(
            capacity=self.config.history_capacity,
            path=self.config.history_file,
        )
        self.runner: TestRunner = runner or GoTestRunner(
            go_binary=self.config.go_binary,
            timeout=self.config.timeout,
        )

    # -- discovery -----------------------------------------------------------

    async def discover(self) -> TestTree:
        """Rescan the workspace and replace the stored tree.

        Returns:
            A snapshot of the new tree.
        """
        tree = await discover_tests(self.root, self.parser, self.config.exclude_dirs)
        self.store.replace(tree, carry_statuses=self.config.carry_statuses)
        return self.store.snapshot()

    def discover_sync(self) -> TestTree:
        return asyncio.run(self.discover())

    def tree(self) -> TestTree:
        return self.store.snapshot()

    # -- runs ----------------------------------------------------------------

    @property
    def last_run(self) -> LastRunSpec | None:
        data = self.state.get(LAST_RUN_KEY)
        if not data:
            return None
        try:
            return LastRunSpec(**data)
        except (TypeError, ValueError) as exc:
            print(
                f"Workspace state: ignoring malformed last run {data!r}: {exc}",
                file=sys.stderr,
            )
            return None

    def _remember(self, spec: LastRunSpec) -> None:
        self.state.update(LAST_RUN_KEY, {
            "kind": spec.kind,
            "label": spec.label,
            "package_path": spec.package_path,
            "file": spec.file,
            "test_name": spec.test_name,
        })

    def run_all(self) -> RunHistoryEntry | None:
        """Run every discovered package, one runner invocation each."""
        tree = self.store.snapshot()
        results: list[RunResult] = []
        for pkg in tree.iter_packages():
            tests = [t for f in pkg.files for t in f.tests]
            results.extend(self._execute(pkg.path, tests, run_pattern=None))
        spec = LastRunSpec(kind="all", label="all tests")
        self._remember(spec)
        return self._record(spec.label, results)

    def run_package(self, package_path: str) -> RunHistoryEntry | None:
        """Run all tests of one package.

        Raises:
            ValueError: If the package is not in the tree.
        """
        pkg = self.store.snapshot().find_package(package_path)
        if pkg is None:
            raise ValueError(f"Unknown package: {package_path}")
        tests = [t for f in pkg.files for t in f.tests]
        results = self._execute(pkg.path, tests, run_pattern=None)
        spec = LastRunSpec(
            kind="package",
            label=f"package {pkg.display_name}",
            package_path=pkg.path,
        )
        self._remember(spec)
        return self._record(spec.label, results)

    def run_file(self, file_path: str) -> RunHistoryEntry | None:
        """Run the tests declared in one file.

        Raises:
            ValueError: If the file is not in the tree.
        """
        test_file = self.store.snapshot().find_file(file_path)
        if test_file is None:
            raise ValueError(f"Unknown test file: {file_path}")
        names = list(dict.fromkeys(t.name for t in test_file.tests))
        results = self._execute(
            test_file.package_path,
            test_file.tests,
            run_pattern=build_run_pattern(names),
        )
        spec = LastRunSpec(
            kind="file",
            label=f"file {test_file.base_name}",
            package_path=test_file.package_path,
            file=test_file.path,
        )
        self._remember(spec)
        return self._record(spec.label, results)

    def run_test(self, package_path: str, name: str) -> RunHistoryEntry | None:
        """Run a single test function.

        Raises:
            ValueError: If the test is not in the tree.
        """
        test = self.store.snapshot().find_test(package_path, name)
        if test is None:
            raise ValueError(f"Unknown test {name} in {package_path}")
        results = self._execute(
            package_path, [test], run_pattern=build_run_pattern([name])
        )
        spec = LastRunSpec(
            kind="test",
            label=name,
            package_path=package_path,
            test_name=name,
        )
        self._remember(spec)
        return self._record(spec.label, results)

    def rerun_last(self) -> RunHistoryEntry | None:
        """Repeat the most recent run.

        Raises:
            ValueError: If nothing has been run yet or the target is gone.
        """
        spec = self.last_run
        if spec is None:
            raise ValueError("No previous run to repeat")
        if spec.kind == "all":
            return self.run_all()
        if spec.kind == "package":
            return self.run_package(spec.package_path or "")
        if spec.kind == "file":
            return self.run_file(spec.file or "")
        return self.run_test(spec.package_path or "", spec.test_name or "")

    def _execute(
        self,
        package_path: str,
        tests: list[TestInfo],
        run_pattern: str | None,
    ) -> list[RunResult]:
        for test in tests:
            self.tracker.set_test_status(test.name, package_path, STATUS_RUNNING)

        coverage_file = None
        if self.flags.is_flag_active(COVERPROFILE_ID):
            coverage_file = os.path.join(package_path, COVERAGE_FILE_NAME)
        extra_flags = self.flags.build_extra_flags(
            skip_run=run_pattern is not None,
            coverage_file=coverage_file,
        )
        output = self.runner.run(package_path, extra_flags, run_pattern)
        transcript = output.transcript

        outcomes = parse_test_results(transcript)
        update_subtests_from_output(self.store, transcript, package_path)

        results: list[RunResult] = []
        for test in tests:
            outcome = outcomes.get(test.name)
            if outcome is not None:
                status, duration = outcome.status, outcome.duration
            elif not output.succeeded:
                # No result line but the process failed: build error or panic
                status, duration = STATUS_FAIL, None
            else:
                status, duration = STATUS_UNKNOWN, None
            self.tracker.set_test_status(test.name, package_path, status, duration)
            results.append(RunResult(
                test_name=test.name,
                package_path=package_path,
                file=test.file,
                status=status,
                duration=duration,
            ))
        return results

    def _record(self, label: str, results: list[RunResult]) -> RunHistoryEntry | None:
        entry = self.history.record(label, results)
        if entry is not None and self.history.path is not None:
            self.history.save()
        return entry
