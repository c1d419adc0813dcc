"""Per-test status and duration tracking.

Statuses are attached to tests already present in the stored tree, located
by name within one package.  Updating a test that does not exist is a
silent no-op: the tree may have been rediscovered while a run was in
flight.

A ``running`` update never touches the duration, so the last completed
duration stays visible while a test is re-run.
"""

from __future__ import annotations

from gotests.model import STATUS_RUNNING, STATUS_UNKNOWN, VALID_STATUSES, TestTree
from gotests.store import TestTreeStore


def _check_status(status: str) -> None:
    if status not in VALID_STATUSES:
        raise ValueError(
            f"Invalid status '{status}'. Must be one of: {sorted(VALID_STATUSES)}"
        )


class StatusTracker:
    """Applies status mutations to tests held in a ``TestTreeStore``."""

    def __init__(self, store: TestTreeStore) -> None:
        self.store = store

    def set_test_status(
        self,
        name: str,
        package_path: str,
        status: str,
        duration: float | None = None,
    ) -> bool:
        """Set the status of the first test named *name* in a package.

        Args:
            name: Test function name, e.g. "TestParse".
            package_path: Absolute package directory.
            status: One of VALID_STATUSES.
            duration: Seconds; ignored for "running" and when None.

        Returns:
            True if a test was updated, False if none matched.

        Raises:
            ValueError: If status is not a valid status.
        """
        _check_status(status)

        def apply(tree: TestTree) -> bool:
            test = tree.find_test(package_path, name)
            if test is None:
                return False
            test.status = status
            if duration is not None and status != STATUS_RUNNING:
                test.duration = duration
            return True

        return self.store.mutate(apply)

    def set_sub_test_status(
        self,
        parent_name: str,
        full_name: str,
        package_path: str,
        status: str,
        duration: float | None = None,
    ) -> bool:
        """Set the status of a sub-test, matched by its full run name.

        Tests named *parent_name* in the package are searched in traversal
        order and the first sub-test with a matching full name wins.

        Returns:
            True if a sub-test was updated, False if none matched.

        Raises:
            ValueError: If status is not a valid status.
        """
        _check_status(status)

        def apply(tree: TestTree) -> bool:
            for test in tree.iter_tests(package_path):
                if test.name != parent_name or not test.sub_tests:
                    continue
                for sub in test.sub_tests:
                    if sub.full_name == full_name:
                        sub.status = status
                        if duration is not None and status != STATUS_RUNNING:
                            sub.duration = duration
                        return True
            return False

        return self.store.mutate(apply)

    def clear_all_statuses(self) -> int:
        """Reset every test to "unknown" and forget its duration.

        Returns:
            Number of tests reset.
        """

        def apply(tree: TestTree) -> int:
            count = 0
            for test in tree.iter_tests():
                test.status = STATUS_UNKNOWN
                test.duration = None
                count += 1
            return count

        return self.store.mutate(apply)
