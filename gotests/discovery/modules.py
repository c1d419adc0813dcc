"""Resolve the Go module and package that own a test file.

Walks upward from a file's directory looking for ``go.mod``.  A missing or
malformed manifest is never an error: the module root falls back to the
scan root and the module name to a directory base name.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

GO_MOD = "go.mod"

_MODULE_RE = re.compile(r"^module\s+(\S+)", re.MULTILINE)
_PACKAGE_RE = re.compile(r"^package\s+(\w+)", re.MULTILINE)


@dataclass(frozen=True)
class ModuleContext:
    """The module a file belongs to."""

    name: str
    root: str


def find_go_mod(start_dir: str | Path) -> Path | None:
    """Find the nearest ``go.mod`` at or above *start_dir*.

    Returns:
        Path to the manifest, or None if the filesystem root is reached.
    """
    current = Path(start_dir)
    for directory in [current, *current.parents]:
        candidate = directory / GO_MOD
        if candidate.is_file():
            return candidate
    return None


def parse_module_name(go_mod_path: str | Path) -> str | None:
    """Read the ``module`` declaration from a go.mod file.

    Returns None if the file is unreadable or has no module line.
    """
    try:
        content = Path(go_mod_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    match = _MODULE_RE.search(content)
    return match.group(1) if match else None


def read_package_declaration(file_path: str | Path) -> str | None:
    """Read the ``package`` clause of a Go source file."""
    try:
        content = Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    match = _PACKAGE_RE.search(content)
    return match.group(1) if match else None


def resolve_module(file_path: str | Path, scan_root: str | Path) -> ModuleContext:
    """Resolve the owning module of a test file.

    Args:
        file_path: Absolute path of the ``*_test.go`` file.
        scan_root: Root directory passed to discovery, used when no
            go.mod exists above the file.

    Returns:
        ModuleContext with the module name and absolute root directory.
    """
    go_mod = find_go_mod(Path(file_path).parent)
    if go_mod is None:
        root = str(scan_root)
        return ModuleContext(name=os.path.basename(root), root=root)

    root = str(go_mod.parent)
    name = parse_module_name(go_mod) or os.path.basename(root)
    return ModuleContext(name=name, root=root)


def package_display_name(
    package_path: str,
    module_root: str,
    file_path: str | Path,
) -> str:
    """Human-readable package label.

    Packages below the module root are shown by their relative import path
    (always ``/``-separated).  The root package is shown by its declared
    ``package`` name, defaulting to ``main``.
    """
    rel = os.path.relpath(package_path, module_root)
    if rel in ("", "."):
        return read_package_declaration(file_path) or "main"
    return rel.replace(os.sep, "/")
