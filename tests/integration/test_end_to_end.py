"""End-to-end integration tests exercising the full pipeline.

Tests the complete flow from workspace scan -> tree -> go test invocation
-> transcript reconciliation -> history, using a stand-in ``go`` script
that prints canned ``go test -v`` transcripts per package.
"""

from __future__ import annotations

import json
import stat
import tempfile
from pathlib import Path

import yaml

from gotests.lifecycle.config import CONFIG_FILE_NAME
from gotests.main import main
from gotests.model import STATUS_FAIL, STATUS_PASS
from gotests.session import TestSession


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

MATHX_SOURCE = """\
package mathx

import "testing"

func TestSum(t *testing.T) {
	t.Run("small", func(t *testing.T) {
		if Sum(1, 2) != 3 {
			t.Fatal("bad")
		}
	})
	t.Run("large", func(t *testing.T) {})
}

func TestTable(t *testing.T) {
	for _, tc := range cases() {
		t.Run(tc.title, func(t *testing.T) {})
	}
}
"""

GEN_SOURCE = """\
package gen

import "testing"

func TestGen(t *testing.T) {
}
"""

MATHX_OUTPUT = """\
=== RUN   TestSum
=== RUN   TestSum/small
=== RUN   TestSum/large
--- PASS: TestSum (0.01s)
    --- PASS: TestSum/small (0.00s)
    --- PASS: TestSum/large (0.01s)
=== RUN   TestTable
=== RUN   TestTable/zero_value
=== RUN   TestTable/negative
    mathx_test.go:16: negative input
--- FAIL: TestTable (0.02s)
    --- PASS: TestTable/zero_value (0.00s)
    --- FAIL: TestTable/negative (0.02s)
FAIL
"""


def _make_script(tmpdir: Path, name: str, content: str) -> str:
    """Create an executable script and return its path."""
    script_path = tmpdir / name
    script_path.write_text(content)
    script_path.chmod(script_path.stat().st_mode | stat.S_IEXEC)
    return str(script_path)


def _fake_go(bindir: Path) -> str:
    """A go stand-in: logs its argv, prints <pkg>.out, exits with <pkg>.code."""
    return _make_script(bindir, "go", (
        "#!/bin/sh\n"
        'pkg=$(basename "$(pwd -P)")\n'
        f'echo "$pkg $*" >> "{bindir}/calls.log"\n'
        f'if [ -f "{bindir}/$pkg.out" ]; then cat "{bindir}/$pkg.out"; fi\n'
        f'if [ -f "{bindir}/$pkg.code" ]; then exit $(cat "{bindir}/$pkg.code"); fi\n'
        "exit 0\n"
    ))


def _setup(tmpdir: Path) -> tuple[Path, Path]:
    """Create a two-module workspace and the fake go binary.

    Returns:
        (workspace root, bin directory)
    """
    root = tmpdir / "ws"
    bindir = tmpdir / "bin"
    bindir.mkdir()
    (root / "mathx").mkdir(parents=True)
    (root / "go.mod").write_text("module example.com/calc\n\ngo 1.22\n")
    (root / "mathx" / "mathx_test.go").write_text(MATHX_SOURCE)
    (root / "tools" / "gen").mkdir(parents=True)
    (root / "tools" / "go.mod").write_text("module example.com/calc/tools\n")
    (root / "tools" / "gen" / "gen_test.go").write_text(GEN_SOURCE)

    (bindir / "mathx.out").write_text(MATHX_OUTPUT)
    (bindir / "mathx.code").write_text("1\n")
    (bindir / "gen.code").write_text("2\n")

    (root / CONFIG_FILE_NAME).write_text(json.dumps({
        "go_binary": _fake_go(bindir),
        "timeout": 30,
    }))
    return root, bindir


def _calls(bindir: Path) -> list[str]:
    log = bindir / "calls.log"
    return log.read_text().splitlines() if log.exists() else []


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestFullPipeline:
    """Discovery, runs and history against a real subprocess."""

    def test_discover_run_and_reconcile(self):
        with tempfile.TemporaryDirectory() as tmp:
            root, bindir = _setup(Path(tmp))
            mathx = str(root / "mathx")
            gen = str(root / "tools" / "gen")

            session = TestSession(root)
            tree = session.discover_sync()

            assert [m.name for m in tree.modules] == [
                "example.com/calc",
                "example.com/calc/tools",
            ]
            assert [s.name for s in tree.find_test(mathx, "TestSum").sub_tests] == ["small", "large"]
            assert tree.find_test(mathx, "TestTable").pending_discovery

            entry = session.run_all()

            results = {r.test_name: r.status for r in entry.results}
            assert results == {
                "TestSum": STATUS_PASS,
                "TestTable": STATUS_FAIL,
                "TestGen": STATUS_FAIL,
            }

            tree = session.tree()
            table = tree.find_test(mathx, "TestTable")
            assert [(s.name, s.status) for s in table.sub_tests] == [
                ("zero value", STATUS_PASS),
                ("negative", STATUS_FAIL),
            ]
            assert tree.find_test(gen, "TestGen").status == STATUS_FAIL

            calls = _calls(bindir)
            assert [c.split()[0] for c in calls] == ["mathx", "gen"]
            assert "test -v -fullpath -timeout=30s" in calls[0]
            assert f"-coverprofile={mathx}/coverage.out" in calls[0]

    def test_rediscovery_keeps_statuses(self):
        with tempfile.TemporaryDirectory() as tmp:
            root, _ = _setup(Path(tmp))
            mathx = str(root / "mathx")
            session = TestSession(root)
            session.discover_sync()
            session.run_package(mathx)

            # A new test appears in the file between scans
            test_file = root / "mathx" / "mathx_test.go"
            test_file.write_text(
                MATHX_SOURCE + "\nfunc TestNew(t *testing.T) {\n}\n"
            )
            tree = session.discover_sync()

            assert tree.find_test(mathx, "TestSum").status == STATUS_PASS
            assert tree.find_test(mathx, "TestSum").duration == 0.01
            assert len(tree.find_test(mathx, "TestTable").sub_tests) == 2
            assert tree.find_test(mathx, "TestNew").status is None

    def test_single_test_and_rerun(self):
        with tempfile.TemporaryDirectory() as tmp:
            root, bindir = _setup(Path(tmp))
            mathx = str(root / "mathx")

            first = TestSession(root)
            first.discover_sync()
            first.run_test(mathx, "TestSum")

            second = TestSession(root)
            second.discover_sync()
            entry = second.rerun_last()

            assert [r.test_name for r in entry.results] == ["TestSum"]
            calls = _calls(bindir)
            assert len(calls) == 2
            assert all(c.endswith("-run ^TestSum$") for c in calls)

            history = yaml.safe_load((root / ".gotests" / "history.yaml").read_text())
            assert len(history["runs"]) == 2


class TestCommandLine:
    """The CLI over the same workspace."""

    def test_run_then_history(self, capsys):
        with tempfile.TemporaryDirectory() as tmp:
            root, _ = _setup(Path(tmp))

            assert main(["--root", str(root), "run", "--package", str(root / "mathx")]) == 1
            out = capsys.readouterr().out
            assert "1 pass, 1 fail" in out

            assert main(["--root", str(root), "history"]) == 0
            out = capsys.readouterr().out
            assert "package mathx  (1 pass · 1 fail)" in out
            assert out.index("TestTable") < out.index("TestSum")
