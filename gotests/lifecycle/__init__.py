"""Run lifecycle: status tracking, run history, flag selection, and config."""

from gotests.lifecycle.config import ExplorerConfig
from gotests.lifecycle.flags import AVAILABLE_TEST_FLAGS, FlagStore, TestFlagOption
from gotests.lifecycle.history import RunHistory, RunHistoryEntry, RunResult, sorted_results
from gotests.lifecycle.state import WorkspaceState
from gotests.lifecycle.status import StatusTracker

__all__ = [
    "AVAILABLE_TEST_FLAGS",
    "ExplorerConfig",
    "FlagStore",
    "RunHistory",
    "RunHistoryEntry",
    "RunResult",
    "StatusTracker",
    "TestFlagOption",
    "WorkspaceState",
    "sorted_results",
]
