"""Heuristic parser for Go test source files.

Recovers top-level ``Test*``, ``Benchmark*`` and ``Example*`` functions
and their statically named sub-tests from raw source text.  This is not a
Go grammar: function bodies are found by brace counting, and sub-tests by
matching ``t.Run(...)`` calls with regular expressions.  Callers depend on
the ``TestSourceParser`` protocol so a real parser can replace it.

Sub-test recovery, per function body:

1. Every ``t.Run("literal", ...)`` call yields one sub-test in source order,
   several per line if present.  Any receiver ending in ``t`` or ``b``
   counts: ``b.Run``, ``tt.Run`` and ``st.Run`` as well.
2. If there are none but a ``t.Run(tc.name, ...)`` style call exists, the
   body is searched for ``name: "literal"`` table fields instead.
3. If that finds nothing either, ``sub_tests`` is ``[]`` so the test can be
   expanded once a run reveals the names.  Without any ``Run`` call it
   stays ``None``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from gotests.model import SubTestInfo, TestInfo

_TEST_FUNC_RE = re.compile(
    r"^func\s+(Test[A-Z]\w*|Benchmark[A-Z]\w*|Example[A-Z]\w*)\s*\("
)
_LITERAL_RUN_RE = re.compile(r'[tb]\.Run\(\s*"([^"]+)"')
_VARIABLE_RUN_RE = re.compile(
    r"[tb]\.Run\(\s*[a-zA-Z_]\w*(?:\.[a-zA-Z_]\w*)?\s*,"
)
_NAME_FIELD_RE = re.compile(r'\bname\s*:\s*"([^"]+)"')


class TestSourceParser(Protocol):
    """Extracts tests from the text of one Go source file."""

    def parse(
        self, text: str, file_path: str, package_path: str
    ) -> list[TestInfo]:
        ...


@dataclass
class FunctionSpan:
    """Line range of one top-level test function (0-based, inclusive)."""

    name: str
    start: int
    end: int


def run_name(sub_name: str) -> str:
    """Convert a sub-test name to the form ``go test`` prints and matches."""
    return sub_name.replace(" ", "_")


def _is_comment(line: str) -> bool:
    return line.strip().startswith("//")


def find_test_functions(lines: list[str]) -> list[FunctionSpan]:
    """Locate top-level test functions by tracking brace depth.

    A declaration seen while already inside a tracked body is treated as
    part of that body.  A function whose braces never balance is dropped.
    """
    spans: list[FunctionSpan] = []
    current: FunctionSpan | None = None
    depth = 0

    for idx, line in enumerate(lines):
        if _is_comment(line):
            continue

        if current is None:
            match = _TEST_FUNC_RE.match(line)
            if match is None:
                continue
            current = FunctionSpan(name=match.group(1), start=idx, end=idx)
            depth = 0

        for ch in line:
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    current.end = idx
                    spans.append(current)
                    current = None
                    break

    return spans


def _sub_test(
    parent: str,
    sub_name: str,
    file_path: str,
    package_path: str,
    line: int | None,
) -> SubTestInfo:
    return SubTestInfo(
        name=sub_name,
        full_name=f"{parent}/{run_name(sub_name)}",
        parent_name=parent,
        file=file_path,
        package_path=package_path,
        line=line,
    )


def find_sub_tests(
    lines: list[str],
    span: FunctionSpan,
    file_path: str,
    package_path: str,
) -> list[SubTestInfo] | None:
    """Recover the sub-tests of one function body.

    Returns:
        A non-empty list of statically named sub-tests, ``[]`` for a
        table-driven body whose names are unknown, or None when the body
        makes no ``Run`` call at all.
    """
    sub_tests: list[SubTestInfo] = []
    has_variable_run = False

    for idx in range(span.start + 1, span.end + 1):
        line = lines[idx]
        if _is_comment(line):
            continue
        for match in _LITERAL_RUN_RE.finditer(line):
            sub_tests.append(
                _sub_test(span.name, match.group(1), file_path, package_path, idx + 1)
            )
        if not has_variable_run and _VARIABLE_RUN_RE.search(line):
            has_variable_run = True

    if not sub_tests and has_variable_run:
        body = "\n".join(lines[span.start + 1:span.end + 1])
        for match in _NAME_FIELD_RE.finditer(body):
            sub_tests.append(
                _sub_test(span.name, match.group(1), file_path, package_path, None)
            )

    if sub_tests:
        return sub_tests
    return [] if has_variable_run else None


class HeuristicTestParser:
    """Regex and brace-counting implementation of ``TestSourceParser``."""

    def parse(
        self, text: str, file_path: str, package_path: str
    ) -> list[TestInfo]:
        lines = text.split("\n")
        tests: list[TestInfo] = []
        for span in find_test_functions(lines):
            tests.append(TestInfo(
                name=span.name,
                line=span.start + 1,
                file=file_path,
                package_path=package_path,
                sub_tests=find_sub_tests(lines, span, file_path, package_path),
            ))
        return tests


DEFAULT_PARSER = HeuristicTestParser()


def parse_tests(text: str, file_path: str, package_path: str) -> list[TestInfo]:
    """Parse *text* with the default heuristic parser."""
    return DEFAULT_PARSER.parse(text, file_path, package_path)
