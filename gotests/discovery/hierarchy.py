"""Build the module -> package -> file -> test hierarchy for a workspace.

Discovery is a full rebuild: every ``*_test.go`` file under the scan root
is read, resolved to its module and package, and parsed.  Files that cannot
be read are reported and skipped so one bad file never aborts discovery.
Packages are attached to the module whose root is the longest ancestor of
the package directory.
"""

from __future__ import annotations

import asyncio
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from gotests.discovery.modules import (
    ModuleContext,
    package_display_name,
    resolve_module,
)
from gotests.discovery.parser import DEFAULT_PARSER, TestSourceParser
from gotests.model import TestFile, TestInfo, TestModule, TestPackage, TestTree

TEST_FILE_SUFFIX = "_test.go"
DEFAULT_EXCLUDE_DIRS: tuple[str, ...] = ("vendor",)


@dataclass
class ParsedFile:
    """One test file with its resolved module and package context."""

    path: str
    package_path: str
    package_name: str
    module: ModuleContext
    tests: list[TestInfo]


def scan_test_files(
    root: str | Path,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
) -> list[str]:
    """Find all ``*_test.go`` files below *root*.

    Hidden directories and any directory named in *exclude_dirs* are
    pruned.  Paths are absolute and sorted.
    """
    excluded = set(exclude_dirs)
    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(os.path.abspath(root)):
        dirnames[:] = [
            d for d in dirnames
            if not d.startswith(".") and d not in excluded
        ]
        for filename in filenames:
            if filename.endswith(TEST_FILE_SUFFIX):
                found.append(os.path.join(dirpath, filename))
    return sorted(found)


def parse_file(
    file_path: str,
    scan_root: str,
    parser: TestSourceParser | None = None,
) -> ParsedFile | None:
    """Read and parse one test file.

    Returns:
        ParsedFile, or None if the file could not be read or decoded.
    """
    package_path = os.path.dirname(file_path)
    try:
        text = Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Test discovery: skipping {file_path}: {exc}", file=sys.stderr)
        return None

    module = resolve_module(file_path, scan_root)
    tests = (parser or DEFAULT_PARSER).parse(text, file_path, package_path)
    return ParsedFile(
        path=file_path,
        package_path=package_path,
        package_name=package_display_name(package_path, module.root, file_path),
        module=module,
        tests=tests,
    )


def _is_within(path: str, root: str) -> bool:
    rel = os.path.relpath(path, root)
    return rel != os.pardir and not rel.startswith(os.pardir + os.sep)


def select_owning_module(
    package_path: str,
    modules: Iterable[TestModule],
) -> TestModule | None:
    """Pick the module whose root is the longest ancestor of *package_path*.

    Among candidates of equal root length the first one wins.
    """
    best: TestModule | None = None
    best_length = -1
    for mod in modules:
        if _is_within(package_path, mod.root) and len(mod.root) > best_length:
            best = mod
            best_length = len(mod.root)
    return best


def build_hierarchy(parsed_files: Iterable[ParsedFile]) -> TestTree:
    """Group parsed files into a sorted module/package/file tree.

    Files with no tests are left out.  Modules sort by name, packages by
    display name and files by base name, all plain string order.
    """
    modules: dict[str, TestModule] = {}
    packages: dict[str, TestPackage] = {}

    for parsed in parsed_files:
        if not parsed.tests:
            continue

        pkg = packages.get(parsed.package_path)
        if pkg is None:
            pkg = TestPackage(
                path=parsed.package_path,
                display_name=parsed.package_name,
            )
            packages[parsed.package_path] = pkg
        pkg.files.append(TestFile(
            path=parsed.path,
            package_path=parsed.package_path,
            tests=parsed.tests,
        ))

        if parsed.module.root not in modules:
            modules[parsed.module.root] = TestModule(
                name=parsed.module.name,
                root=parsed.module.root,
            )

    for pkg in packages.values():
        owner = select_owning_module(pkg.path, modules.values())
        if owner is not None:
            owner.packages.append(pkg)

    ordered = sorted(modules.values(), key=lambda m: m.name)
    for mod in ordered:
        mod.packages.sort(key=lambda p: p.display_name)
        for pkg in mod.packages:
            pkg.files.sort(key=lambda f: f.base_name)

    return TestTree(ordered)


async def discover_tests(
    root: str | Path,
    parser: TestSourceParser | None = None,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
) -> TestTree:
    """Discover every test below *root* and return a fresh tree.

    File-system work runs in the default thread pool so the event loop stays
    responsive during large scans.
    """
    scan_root = os.path.abspath(root)
    loop = asyncio.get_running_loop()
    paths = await loop.run_in_executor(
        None, scan_test_files, scan_root, tuple(exclude_dirs)
    )

    parsed_files: list[ParsedFile] = []
    for path in paths:
        parsed = await loop.run_in_executor(None, parse_file, path, scan_root, parser)
        if parsed is not None and parsed.tests:
            parsed_files.append(parsed)

    return build_hierarchy(parsed_files)


def discover_tests_sync(
    root: str | Path,
    parser: TestSourceParser | None = None,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
) -> TestTree:
    """Blocking wrapper around ``discover_tests``."""
    return asyncio.run(discover_tests(root, parser, exclude_dirs))
