"""In-memory store for the discovered test tree.

All readers and writers go through one ``TestTreeStore`` instance.  Readers
take deep-copied snapshots; writers either swap the whole tree with
``replace()`` (one discovery pass) or run a point mutation through
``mutate()``.  Both serialize on a single lock.

Racing discoveries are not cancelled: whichever ``replace()`` call happens
last wins, even if it carries an older scan.
"""

from __future__ import annotations

import copy
import dataclasses
import threading
from typing import Callable, TypeVar

from gotests.model import TestInfo, TestTree

T = TypeVar("T")


class TestTreeStore:
    """Holds the authoritative test tree and gates every mutation."""

    def __init__(self, tree: TestTree | None = None) -> None:
        self._tree = tree if tree is not None else TestTree()
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def generation(self) -> int:
        """Number of whole-tree replacements applied so far."""
        return self._generation

    def snapshot(self) -> TestTree:
        """Return a deep copy of the current tree, safe to read freely."""
        with self._lock:
            return copy.deepcopy(self._tree)

    def mutate(self, fn: Callable[[TestTree], T]) -> T:
        """Run *fn* against the live tree under the store lock.

        *fn* must not keep references to tree nodes after it returns.
        """
        with self._lock:
            return fn(self._tree)

    def replace(self, tree: TestTree, carry_statuses: bool = True) -> None:
        """Swap in a freshly discovered tree.

        Args:
            tree: The new tree.  It is owned by the store afterwards.
            carry_statuses: Re-attach statuses, durations and run-discovered
                sub-tests from the outgoing tree, keyed by package path and
                test name.  When False, every status is dropped.
        """
        with self._lock:
            if carry_statuses:
                _carry_statuses(self._tree, tree)
            tree.reindex()
            self._tree = tree
            self._generation += 1


def _carry_statuses(old: TestTree, new: TestTree) -> None:
    """Copy run state from *old* onto matching tests in *new*."""
    previous: dict[tuple[str, str], TestInfo] = {}
    for test in old.iter_tests():
        previous.setdefault((test.package_path, test.name), test)

    applied: set[tuple[str, str]] = set()
    for test in new.iter_tests():
        key = (test.package_path, test.name)
        old_test = previous.get(key)
        if old_test is None or key in applied:
            continue
        applied.add(key)

        test.status = old_test.status
        test.duration = old_test.duration

        if not old_test.sub_tests or test.sub_tests is None:
            continue
        if not test.sub_tests:
            # Table-driven placeholder: keep names learned from the last run
            test.sub_tests = [
                dataclasses.replace(sub, file=test.file)
                for sub in old_test.sub_tests
            ]
            continue
        old_subs = {sub.full_name: sub for sub in old_test.sub_tests}
        for sub in test.sub_tests:
            old_sub = old_subs.get(sub.full_name)
            if old_sub is not None:
                sub.status = old_sub.status
                sub.duration = old_sub.duration
