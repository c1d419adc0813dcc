"""Bounded history of completed test runs.

Each completed run is recorded as an immutable ``RunHistoryEntry``.  The
ledger keeps at most ``capacity`` entries; the oldest are evicted first.
``runs()`` returns entries oldest-first (append order) and
``display_order()`` newest-first.

The ledger can be persisted to a YAML file so history survives restarts.
"""

from __future__ import annotations

import datetime
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import yaml

from gotests.model import (
    RESULT_STATUSES,
    STATUS_FAIL,
    STATUS_PASS,
    STATUS_UNKNOWN,
)

# Maximum number of runs kept (oldest dropped when exceeded)
HISTORY_CAPACITY = 10

# Display rank of results within one run: failures first, passes last
_RESULT_ORDER = {STATUS_FAIL: 0, STATUS_UNKNOWN: 1, STATUS_PASS: 2}


@dataclass(frozen=True)
class RunResult:
    """Outcome of one test within a recorded run."""

    test_name: str
    package_path: str
    file: str
    status: str
    duration: float | None = None


@dataclass(frozen=True)
class RunHistoryEntry:
    """One recorded run.  Never mutated after creation."""

    id: str
    label: str
    timestamp: datetime.datetime
    results: tuple[RunResult, ...]

    @property
    def pass_count(self) -> int:
        return sum(1 for r in self.results if r.status == STATUS_PASS)

    @property
    def fail_count(self) -> int:
        return sum(1 for r in self.results if r.status == STATUS_FAIL)


def sorted_results(entry: RunHistoryEntry) -> list[RunResult]:
    """Results of *entry* for display: fail, then unknown, then pass.

    The sort is stable, so results with the same status keep run order.
    """
    return sorted(
        entry.results,
        key=lambda r: _RESULT_ORDER.get(r.status, _RESULT_ORDER[STATUS_UNKNOWN]),
    )


class RunHistory:
    """Append-only, capacity-bounded log of past runs."""

    def __init__(
        self,
        capacity: int = HISTORY_CAPACITY,
        path: str | Path | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.path = Path(path) if path is not None else None
        self._runs: list[RunHistoryEntry] = []
        if self.path is not None and self.path.exists():
            self._load()

    def __len__(self) -> int:
        return len(self._runs)

    def record(
        self,
        label: str,
        results: Iterable[RunResult],
        now: datetime.datetime | None = None,
    ) -> RunHistoryEntry | None:
        """Append a run to the ledger.

        Args:
            label: Short description of what was run, e.g. "all tests".
            results: Per-test outcomes; statuses must be pass, fail or
                unknown.
            now: Timestamp of the run (defaults to the local time).

        Returns:
            The new entry, or None if *results* was empty.

        Raises:
            ValueError: If a result carries an invalid status.
        """
        results = tuple(results)
        if not results:
            return None
        for result in results:
            if result.status not in RESULT_STATUSES:
                raise ValueError(
                    f"Invalid result status '{result.status}' for "
                    f"{result.test_name}. Must be one of: {sorted(RESULT_STATUSES)}"
                )

        if now is None:
            now = datetime.datetime.now()
        entry = RunHistoryEntry(
            id=str(int(now.timestamp() * 1000)),
            label=f"{now:%Y-%m-%d %H:%M} · {label}",
            timestamp=now,
            results=results,
        )
        self._runs.append(entry)
        self._trim()
        return entry

    def runs(self) -> list[RunHistoryEntry]:
        """All entries, oldest first."""
        return list(self._runs)

    def display_order(self) -> list[RunHistoryEntry]:
        """All entries, most recent first."""
        return list(reversed(self._runs))

    def clear(self) -> None:
        self._runs = []

    def _trim(self) -> None:
        if len(self._runs) > self.capacity:
            del self._runs[: len(self._runs) - self.capacity]

    # -- persistence ---------------------------------------------------------

    def save(self) -> None:
        """Write the ledger to its YAML file."""
        if self.path is None:
            raise ValueError("No history file path specified")
        data = {"runs": [_entry_to_dict(e) for e in self._runs]}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.dump(
                data,
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

    def _load(self) -> None:
        """Load entries from the YAML file, keeping the newest ``capacity``."""
        assert self.path is not None
        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
            runs = (data or {}).get("runs") or []
            self._runs = [_entry_from_dict(item) for item in runs]
        except (yaml.YAMLError, OSError, AttributeError, KeyError, TypeError, ValueError) as exc:
            print(
                f"Run history: ignoring unreadable history file {self.path}: {exc}",
                file=sys.stderr,
            )
            self._runs = []
        self._trim()


def _entry_to_dict(entry: RunHistoryEntry) -> dict[str, Any]:
    results = []
    for r in entry.results:
        item: dict[str, Any] = {
            "test_name": r.test_name,
            "package_path": r.package_path,
            "file": r.file,
            "status": r.status,
        }
        if r.duration is not None:
            item["duration_seconds"] = round(r.duration, 3)
        results.append(item)
    return {
        "id": entry.id,
        "label": entry.label,
        "timestamp": entry.timestamp.isoformat(),
        "results": results,
    }


def _entry_from_dict(item: dict[str, Any]) -> RunHistoryEntry:
    results = tuple(
        RunResult(
            test_name=r["test_name"],
            package_path=r["package_path"],
            file=r["file"],
            status=r["status"],
            duration=(
                float(r["duration_seconds"])
                if r.get("duration_seconds") is not None else None
            ),
        )
        for r in item.get("results", [])
    )
    timestamp = item["timestamp"]
    if not isinstance(timestamp, datetime.datetime):
        timestamp = datetime.datetime.fromisoformat(str(timestamp))
    return RunHistoryEntry(
        id=str(item["id"]),
        label=item["label"],
        timestamp=timestamp,
        results=results,
    )
