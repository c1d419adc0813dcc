"""Unit tests for status tracking."""

from __future__ import annotations

import pytest

from gotests.lifecycle.status import StatusTracker
from gotests.model import (
    STATUS_FAIL,
    STATUS_PASS,
    STATUS_RUNNING,
    STATUS_UNKNOWN,
    SubTestInfo,
    TestFile,
    TestInfo,
    TestModule,
    TestPackage,
    TestTree,
)
from gotests.store import TestTreeStore


def _store() -> TestTreeStore:
    """Packages /ws/a and /ws/b, both holding a TestShared."""
    packages = []
    for pkg_path, names in (("/ws/a", ["TestShared", "TestTable"]), ("/ws/b", ["TestShared"])):
        file_path = f"{pkg_path}/x_test.go"
        tests = [TestInfo(name=n, line=1, file=file_path, package_path=pkg_path) for n in names]
        packages.append(TestPackage(
            path=pkg_path,
            display_name=pkg_path,
            files=[TestFile(path=file_path, package_path=pkg_path, tests=tests)],
        ))
    table = packages[0].files[0].tests[1]
    table.sub_tests = [
        SubTestInfo(
            name=case,
            full_name=f"TestTable/{case}",
            parent_name="TestTable",
            file=table.file,
            package_path=table.package_path,
        )
        for case in ("A", "B")
    ]
    return TestTreeStore(TestTree([TestModule(name="m", root="/ws", packages=packages)]))


class TestSetTestStatus:
    """Tests for top-level status updates."""

    def test_running_keeps_last_duration(self):
        """running -> pass(0.02) -> running leaves duration at 0.02."""
        store = _store()
        tracker = StatusTracker(store)

        tracker.set_test_status("TestShared", "/ws/a", STATUS_RUNNING)
        tracker.set_test_status("TestShared", "/ws/a", STATUS_PASS, 0.02)
        tracker.set_test_status("TestShared", "/ws/a", STATUS_RUNNING, 5.0)

        test = store.snapshot().find_test("/ws/a", "TestShared")
        assert test.status == STATUS_RUNNING
        assert test.duration == 0.02

    def test_none_duration_keeps_previous(self):
        """A status update without a duration does not erase it."""
        store = _store()
        tracker = StatusTracker(store)
        tracker.set_test_status("TestShared", "/ws/a", STATUS_PASS, 0.3)
        tracker.set_test_status("TestShared", "/ws/a", STATUS_FAIL)

        test = store.snapshot().find_test("/ws/a", "TestShared")
        assert (test.status, test.duration) == (STATUS_FAIL, 0.3)

    def test_packages_are_isolated(self):
        """Updating TestShared in /ws/a leaves /ws/b untouched."""
        store = _store()
        tracker = StatusTracker(store)

        assert tracker.set_test_status("TestShared", "/ws/a", STATUS_FAIL, 1.0)

        snap = store.snapshot()
        assert snap.find_test("/ws/a", "TestShared").status == STATUS_FAIL
        assert snap.find_test("/ws/b", "TestShared").status is None
        assert snap.find_test("/ws/b", "TestShared").duration is None

    def test_unknown_test_is_no_op(self):
        """A missing test returns False and changes nothing."""
        store = _store()
        tracker = StatusTracker(store)

        assert not tracker.set_test_status("TestGone", "/ws/a", STATUS_PASS)
        assert not tracker.set_test_status("TestShared", "/ws/c", STATUS_PASS)
        assert all(t.status is None for t in store.snapshot().iter_tests())

    def test_invalid_status_raises(self):
        """Statuses outside the valid set are rejected."""
        tracker = StatusTracker(_store())
        with pytest.raises(ValueError, match="Invalid status"):
            tracker.set_test_status("TestShared", "/ws/a", "skipped")


class TestSetSubTestStatus:
    """Tests for sub-test status updates."""

    def test_sets_matching_sub_test(self):
        """The sub-test with the given full name is updated."""
        store = _store()
        tracker = StatusTracker(store)

        assert tracker.set_sub_test_status("TestTable", "TestTable/B", "/ws/a", STATUS_FAIL, 0.4)

        subs = store.snapshot().find_test("/ws/a", "TestTable").sub_tests
        assert subs[0].status is None
        assert (subs[1].status, subs[1].duration) == (STATUS_FAIL, 0.4)

    def test_running_keeps_sub_test_duration(self):
        """running leaves a sub-test's duration alone."""
        store = _store()
        tracker = StatusTracker(store)
        tracker.set_sub_test_status("TestTable", "TestTable/A", "/ws/a", STATUS_PASS, 0.1)
        tracker.set_sub_test_status("TestTable", "TestTable/A", "/ws/a", STATUS_RUNNING, 9.0)

        sub = store.snapshot().find_test("/ws/a", "TestTable").sub_tests[0]
        assert (sub.status, sub.duration) == (STATUS_RUNNING, 0.1)

    def test_missing_sub_test(self):
        """Unknown parents, sub-tests or packages return False."""
        tracker = StatusTracker(_store())
        assert not tracker.set_sub_test_status("TestTable", "TestTable/Z", "/ws/a", STATUS_PASS)
        assert not tracker.set_sub_test_status("TestShared", "TestShared/A", "/ws/a", STATUS_PASS)
        assert not tracker.set_sub_test_status("TestTable", "TestTable/A", "/ws/b", STATUS_PASS)

    def test_invalid_status_raises(self):
        """Sub-test statuses are validated too."""
        tracker = StatusTracker(_store())
        with pytest.raises(ValueError):
            tracker.set_sub_test_status("TestTable", "TestTable/A", "/ws/a", "ok")


class TestClearAllStatuses:
    """Tests for resetting every status."""

    def test_resets_to_unknown(self):
        """Every test becomes unknown without a duration."""
        store = _store()
        tracker = StatusTracker(store)
        tracker.set_test_status("TestShared", "/ws/a", STATUS_PASS, 0.2)
        tracker.set_test_status("TestShared", "/ws/b", STATUS_FAIL, 0.3)

        assert tracker.clear_all_statuses() == 3

        for test in store.snapshot().iter_tests():
            assert test.status == STATUS_UNKNOWN
            assert test.duration is None
