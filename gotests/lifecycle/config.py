"""Explorer configuration file management.

Reads and writes the ``.gotests_config`` JSON file that stores history size,
state locations and runner settings for one workspace.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

CONFIG_FILE_NAME = ".gotests_config"

# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "history_capacity": 10,
    "state_file": ".gotests/state.json",
    "history_file": ".gotests/history.yaml",
    "exclude_dirs": ["vendor"],
    "go_binary": "go",
    "timeout": 300.0,
    "carry_statuses": True,
}


class ExplorerConfig:
    """Manages the ``.gotests_config`` JSON configuration file.

    Relative ``state_file`` and ``history_file`` paths resolve against the
    directory holding the config file (or the workspace root when given).
    """

    def __init__(self, path: Path | None = None, root: Path | None = None) -> None:
        self.path = path
        self.root = root if root is not None else (path.parent if path else Path.cwd())
        self._data: dict[str, Any] = dict(DEFAULT_CONFIG)
        if path is not None and path.exists():
            self._load()

    @classmethod
    def for_workspace(cls, root: Path) -> ExplorerConfig:
        """Load the config file at the workspace root, if any."""
        return cls(root / CONFIG_FILE_NAME, root=root)

    def _load(self) -> None:
        """Load config from the file."""
        assert self.path is not None
        try:
            text = self.path.read_text()
            data = json.loads(text)
            if isinstance(data, dict):
                self._data = {**DEFAULT_CONFIG, **data}
        except (json.JSONDecodeError, OSError):
            self._data = dict(DEFAULT_CONFIG)

    def save(self) -> None:
        """Write config to the file."""
        if self.path is None:
            raise ValueError("No config file path specified")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._data, f, indent=2)
            f.write("\n")

    @property
    def config(self) -> dict[str, Any]:
        """Get the full configuration dict."""
        return dict(self._data)

    def _resolve(self, key: str) -> Path:
        path = Path(self._data.get(key, DEFAULT_CONFIG[key]))
        return path if path.is_absolute() else self.root / path

    @property
    def history_capacity(self) -> int:
        """Get the number of runs kept in history."""
        return int(
            self._data.get("history_capacity", DEFAULT_CONFIG["history_capacity"])
        )

    @property
    def state_file(self) -> Path:
        """Get the path of the persisted flag selection state."""
        return self._resolve("state_file")

    @property
    def history_file(self) -> Path:
        """Get the path of the YAML run history."""
        return self._resolve("history_file")

    @property
    def exclude_dirs(self) -> list[str]:
        """Get directory names skipped during discovery."""
        return list(self._data.get("exclude_dirs", DEFAULT_CONFIG["exclude_dirs"]))

    @property
    def go_binary(self) -> str:
        """Get the go executable used to run tests."""
        return str(self._data.get("go_binary", DEFAULT_CONFIG["go_binary"]))

    @property
    def timeout(self) -> float:
        """Get the per-invocation runner timeout in seconds."""
        return float(self._data.get("timeout", DEFAULT_CONFIG["timeout"]))

    @property
    def carry_statuses(self) -> bool:
        """Whether statuses survive rediscovery."""
        return bool(
            self._data.get("carry_statuses", DEFAULT_CONFIG["carry_statuses"])
        )

    def set_config(
        self,
        history_capacity: int | None = None,
        carry_statuses: bool | None = None,
    ) -> None:
        """Update configuration values."""
        if history_capacity is not None:
            self._data["history_capacity"] = history_capacity
        if carry_statuses is not None:
            self._data["carry_statuses"] = carry_statuses
