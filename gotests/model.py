"""Data model for discovered Go tests.

The discovery pass produces a four-level tree of modules, packages, files
and tests.  Tests may carry sub-tests, either recovered statically from
``t.Run("name", ...)`` calls or discovered later from ``go test -v`` output.

``TestInfo.sub_tests`` has three meaningful states:

* ``None`` -- a plain test, never expandable.
* ``[]`` -- a table-driven pattern was detected but the concrete names are
  not known until the test has been run.
* non-empty list -- concrete sub-test names are known.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterator

# Status values carried by tests and sub-tests
STATUS_PASS = "pass"
STATUS_FAIL = "fail"
STATUS_RUNNING = "running"
STATUS_UNKNOWN = "unknown"

VALID_STATUSES = frozenset({
    STATUS_PASS,
    STATUS_FAIL,
    STATUS_RUNNING,
    STATUS_UNKNOWN,
})

# Outcomes that may be stored in run history (never "running")
RESULT_STATUSES = frozenset({STATUS_PASS, STATUS_FAIL, STATUS_UNKNOWN})


@dataclass
class SubTestInfo:
    """A sub-test nested inside a top-level test function."""

    name: str  # display form, e.g. "empty input"
    full_name: str  # run form, e.g. "TestParse/empty_input"
    parent_name: str
    file: str
    package_path: str
    line: int | None = None  # 1-based line of the t.Run call, if known
    status: str | None = None
    duration: float | None = None


@dataclass
class TestInfo:
    """A top-level Test/Benchmark/Example function."""

    name: str
    line: int  # 1-based line of the func declaration
    file: str
    package_path: str
    status: str | None = None
    duration: float | None = None  # seconds from the last completed run
    sub_tests: list[SubTestInfo] | None = None

    @property
    def expandable(self) -> bool:
        return self.sub_tests is not None

    @property
    def pending_discovery(self) -> bool:
        """True when a table-driven pattern awaits a run to name its cases."""
        return self.sub_tests is not None and not self.sub_tests


@dataclass
class TestFile:
    """A ``*_test.go`` file and the tests declared in it."""

    path: str
    package_path: str
    tests: list[TestInfo] = field(default_factory=list)

    @property
    def base_name(self) -> str:
        return os.path.basename(self.path)


@dataclass
class TestPackage:
    """A directory of Go files sharing one package namespace."""

    path: str
    # Import path relative to the module root (e.g. "internal/utils"), or
    # the declared package name for the module's root package.
    display_name: str
    files: list[TestFile] = field(default_factory=list)


@dataclass
class TestModule:
    """A Go module identified by its ``go.mod``."""

    name: str
    root: str
    packages: list[TestPackage] = field(default_factory=list)


class TestTree:
    """Ordered modules plus an explicit parent->children index.

    The index is keyed by absolute path: module root to packages, package
    path to files, and file path to tests, plus direct package and file
    lookups.  All lookups go through it, so ``reindex()`` must be called
    whenever the module list changes shape.
    """

    def __init__(self, modules: list[TestModule] | None = None) -> None:
        self.modules: list[TestModule] = list(modules or [])
        self._module_packages: dict[str, list[TestPackage]] = {}
        self._package_files: dict[str, list[TestFile]] = {}
        self._file_tests: dict[str, list[TestInfo]] = {}
        self._packages: dict[str, TestPackage] = {}
        self._files: dict[str, TestFile] = {}
        self.reindex()

    def reindex(self) -> None:
        """Rebuild the path-keyed index from ``modules``."""
        self._module_packages = {}
        self._package_files = {}
        self._file_tests = {}
        self._packages = {}
        self._files = {}
        for mod in self.modules:
            self._module_packages[mod.root] = mod.packages
            for pkg in mod.packages:
                self._packages.setdefault(pkg.path, pkg)
                self._package_files.setdefault(pkg.path, pkg.files)
                for test_file in pkg.files:
                    self._files.setdefault(test_file.path, test_file)
                    self._file_tests.setdefault(test_file.path, test_file.tests)

    @property
    def is_empty(self) -> bool:
        return not self.modules

    def packages_of(self, module_root: str) -> list[TestPackage]:
        return list(self._module_packages.get(module_root, []))

    def files_of(self, package_path: str) -> list[TestFile]:
        return list(self._package_files.get(package_path, []))

    def tests_of(self, file_path: str) -> list[TestInfo]:
        return list(self._file_tests.get(file_path, []))

    def iter_packages(self) -> Iterator[TestPackage]:
        for mod in self.modules:
            yield from mod.packages

    def iter_tests(self, package_path: str | None = None) -> Iterator[TestInfo]:
        """Yield tests in traversal order, optionally scoped to one package."""
        if package_path is not None:
            for test_file in self._package_files.get(package_path, []):
                yield from test_file.tests
            return
        for pkg in self.iter_packages():
            for test_file in pkg.files:
                yield from test_file.tests

    def find_test(self, package_path: str, name: str) -> TestInfo | None:
        """Return the first test named *name* in *package_path*.

        Duplicate names inside one package are not distinguished; the first
        one in file order wins.
        """
        for test in self.iter_tests(package_path):
            if test.name == name:
                return test
        return None

    def find_package(self, package_path: str) -> TestPackage | None:
        return self._packages.get(package_path)

    def find_file(self, file_path: str) -> TestFile | None:
        return self._files.get(file_path)

    def total_test_count(self) -> int:
        return sum(1 for _ in self.iter_tests())
