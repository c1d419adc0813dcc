"""Tests for go.mod resolution and package naming."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from gotests.discovery.modules import (
    find_go_mod,
    package_display_name,
    parse_module_name,
    read_package_declaration,
    resolve_module,
)


def _write(root: Path, rel: str, content: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestFindGoMod:
    """Tests for the upward go.mod search."""

    def test_nearest_manifest_wins(self):
        """The closest go.mod above the directory is returned."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _write(root, "go.mod", "module example.com/outer\n")
            inner = _write(root, "tools/go.mod", "module example.com/tools\n")
            (root / "tools" / "lint").mkdir()

            assert find_go_mod(root / "tools" / "lint") == inner

    def test_manifest_in_start_dir(self):
        """A go.mod in the start directory itself is found."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            mod = _write(root, "go.mod", "module example.com/app\n")
            assert find_go_mod(root) == mod


class TestParseModuleName:
    """Tests for reading the module declaration."""

    def test_module_line(self):
        """The module path is read from the first module line."""
        with tempfile.TemporaryDirectory() as tmpdir:
            mod = _write(Path(tmpdir), "go.mod", "// header\nmodule github.com/acme/app\n\ngo 1.22\n")
            assert parse_module_name(mod) == "github.com/acme/app"

    def test_missing_module_line(self):
        """A manifest without a module line yields None."""
        with tempfile.TemporaryDirectory() as tmpdir:
            mod = _write(Path(tmpdir), "go.mod", "go 1.22\n")
            assert parse_module_name(mod) is None

    def test_missing_file(self):
        """An unreadable manifest yields None."""
        with tempfile.TemporaryDirectory() as tmpdir:
            assert parse_module_name(Path(tmpdir) / "go.mod") is None


class TestResolveModule:
    """Tests for module resolution with fallbacks."""

    def test_resolves_named_module(self):
        """The owning go.mod supplies both name and root."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _write(root, "go.mod", "module example.com/app\n")
            test_file = _write(root, "pkg/a_test.go", "package pkg\n")

            ctx = resolve_module(test_file, root)
            assert ctx.name == "example.com/app"
            assert ctx.root == str(root)

    def test_malformed_manifest_uses_directory_name(self):
        """Without a module line the root's base name is the module name."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / "myproj"
            _write(root, "go.mod", "\n")
            test_file = _write(root, "a_test.go", "package main\n")

            ctx = resolve_module(test_file, root)
            assert ctx.name == "myproj"
            assert ctx.root == str(root)

    def test_no_manifest_falls_back_to_scan_root(self):
        """No go.mod anywhere: the scan root is the module."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / "loose"
            test_file = _write(root, "x/a_test.go", "package x\n")

            # Guard against a go.mod somewhere above the temp directory
            if find_go_mod(root) is None:
                ctx = resolve_module(test_file, root)
                assert ctx.name == "loose"
                assert ctx.root == str(root)


class TestPackageDisplayName:
    """Tests for package labels."""

    def test_nested_package_uses_relative_path(self):
        """Packages below the module root show their relative path."""
        root = os.path.join(os.sep, "ws")
        pkg = os.path.join(root, "internal", "utils")
        assert package_display_name(pkg, root, os.path.join(pkg, "u_test.go")) == "internal/utils"

    def test_root_package_uses_declared_name(self):
        """The root package shows its package clause."""
        with tempfile.TemporaryDirectory() as tmpdir:
            test_file = _write(Path(tmpdir), "a_test.go", "// comment\npackage server_test\n")
            assert package_display_name(tmpdir, tmpdir, test_file) == "server_test"

    def test_root_package_defaults_to_main(self):
        """Without a package clause the root package is called main."""
        with tempfile.TemporaryDirectory() as tmpdir:
            test_file = _write(Path(tmpdir), "a_test.go", "func TestA(t *testing.T) {}\n")
            assert package_display_name(tmpdir, tmpdir, test_file) == "main"

    def test_read_package_declaration_missing_file(self):
        """An unreadable file has no package clause."""
        with tempfile.TemporaryDirectory() as tmpdir:
            assert read_package_declaration(Path(tmpdir) / "gone_test.go") is None
