"""Parse ``go test -v`` transcripts.

Two kinds of lines are recognized::

    === RUN   TestParse/empty_input
    --- PASS: TestParse/empty_input (0.01s)

Sub-test names discovered this way replace the ``sub_tests`` list of the
matching tests wholesale.  ``go test`` prints spaces in sub-test names as
underscores, and the display name turns every underscore back into a space.
A name that really contained an underscore therefore comes back with a
space; the raw form is kept intact in ``full_name``.

Top-level results (``--- PASS: TestParse (0.02s)``) are parsed separately
by ``parse_test_results``.  Lines that match neither pattern are ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from gotests.model import (
    STATUS_FAIL,
    STATUS_PASS,
    STATUS_UNKNOWN,
    SubTestInfo,
    TestTree,
)
from gotests.store import TestTreeStore

_RUN_RE = re.compile(r"=== RUN\s+(\w+)/(\S+)", re.MULTILINE)
_SUB_RESULT_RE = re.compile(
    r"--- (PASS|FAIL):\s+(\w+)/(\S+)\s+\(([\d.]+)s\)", re.MULTILINE
)
_TEST_RESULT_RE = re.compile(
    r"--- (PASS|FAIL):\s+(\w+)\s+\(([\d.]+)s\)", re.MULTILINE
)

_OUTCOMES = {"PASS": STATUS_PASS, "FAIL": STATUS_FAIL}


@dataclass
class SubTestOutcome:
    """Outcome of one test or sub-test as seen in a transcript."""

    status: str = STATUS_UNKNOWN
    duration: float | None = None


def display_name(raw_sub: str) -> str:
    """Display form of a sub-test name printed by ``go test``."""
    return raw_sub.replace("_", " ")


def parse_subtest_output(output: str) -> dict[str, dict[str, SubTestOutcome]]:
    """Collect sub-test names and outcomes per parent test.

    ``=== RUN`` lines register a sub-test with an unknown outcome unless it
    was already seen; result lines set (or add) its outcome and duration.
    Sub-tests keep the order in which they first appeared.

    Returns:
        Mapping of parent test name to ``{raw_sub_name: SubTestOutcome}``.
        Empty if nothing matched.
    """
    discovered: dict[str, dict[str, SubTestOutcome]] = {}

    for match in _RUN_RE.finditer(output):
        parent, raw_sub = match.group(1), match.group(2)
        subs = discovered.setdefault(parent, {})
        if raw_sub not in subs:
            subs[raw_sub] = SubTestOutcome()

    for match in _SUB_RESULT_RE.finditer(output):
        outcome, parent, raw_sub, seconds = match.groups()
        subs = discovered.setdefault(parent, {})
        subs[raw_sub] = SubTestOutcome(
            status=_OUTCOMES[outcome],
            duration=float(seconds),
        )

    return discovered


def parse_test_results(output: str) -> dict[str, SubTestOutcome]:
    """Collect top-level test outcomes from ``--- PASS/FAIL`` lines.

    A test reported more than once (e.g. with ``-count``) keeps its last
    outcome.
    """
    results: dict[str, SubTestOutcome] = {}
    for match in _TEST_RESULT_RE.finditer(output):
        outcome, name, seconds = match.groups()
        results[name] = SubTestOutcome(
            status=_OUTCOMES[outcome],
            duration=float(seconds),
        )
    return results


def apply_discovered_subtests(
    tree: TestTree,
    discovered: dict[str, dict[str, SubTestOutcome]],
    package_path: str | None = None,
) -> bool:
    """Replace ``sub_tests`` of every test named in *discovered*.

    Args:
        tree: Tree to update in place.
        discovered: Output of ``parse_subtest_output``.
        package_path: Only touch tests in this package when given.

    Returns:
        True if any test was updated.
    """
    if not discovered:
        return False

    changed = False
    for test in tree.iter_tests(package_path):
        subs = discovered.get(test.name)
        if not subs:
            continue
        test.sub_tests = [
            SubTestInfo(
                name=display_name(raw_sub),
                full_name=f"{test.name}/{raw_sub}",
                parent_name=test.name,
                file=test.file,
                package_path=test.package_path,
                status=outcome.status,
                duration=outcome.duration,
            )
            for raw_sub, outcome in subs.items()
        ]
        changed = True
    return changed


def update_subtests_from_output(
    store: TestTreeStore,
    output: str,
    package_path: str | None = None,
) -> bool:
    """Reconcile a run transcript into the stored tree.

    Returns:
        True if any test's sub-tests were replaced.
    """
    discovered = parse_subtest_output(output)
    if not discovered:
        return False
    return store.mutate(
        lambda tree: apply_discovered_subtests(tree, discovered, package_path)
    )
