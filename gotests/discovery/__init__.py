"""Test discovery: module resolution, source parsing, and tree building."""

from gotests.discovery.hierarchy import (
    ParsedFile,
    build_hierarchy,
    discover_tests,
    discover_tests_sync,
    scan_test_files,
    select_owning_module,
)
from gotests.discovery.modules import ModuleContext, find_go_mod, resolve_module
from gotests.discovery.parser import HeuristicTestParser, TestSourceParser, parse_tests

__all__ = [
    "HeuristicTestParser",
    "ModuleContext",
    "ParsedFile",
    "TestSourceParser",
    "build_hierarchy",
    "discover_tests",
    "discover_tests_sync",
    "find_go_mod",
    "parse_tests",
    "resolve_module",
    "scan_test_files",
    "select_owning_module",
]
