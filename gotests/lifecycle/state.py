"""Persisted key/value workspace state.

Backs user selections that must survive restarts (active test flags and
their values).  Stored as one JSON object; every ``update()`` writes
through when a path is configured.
"""

from __future__ import annotations

import copy
import json
import sys
from pathlib import Path
from typing import Any


class WorkspaceState:
    """A small JSON-backed key/value store.

    With ``path=None`` the state lives only in memory.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._data: dict[str, Any] = {}
        if self.path is not None and self.path.exists():
            self._load()

    def _load(self) -> None:
        """Load state from the file."""
        assert self.path is not None
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            # If file is corrupted, start fresh
            print(
                f"Workspace state: ignoring unreadable state file {self.path}: {exc}",
                file=sys.stderr,
            )
            return
        if isinstance(data, dict):
            self._data = data

    def save(self) -> None:
        """Write state to the file (no-op for in-memory state)."""
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._data, f, indent=2)
            f.write("\n")

    def get(self, key: str, default: Any = None) -> Any:
        """Return a copy of the stored value, or *default* if unset."""
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def update(self, key: str, value: Any) -> None:
        """Store *value* under *key* and persist."""
        self._data[key] = copy.deepcopy(value)
        self.save()

    def keys(self) -> list[str]:
        return list(self._data)
