"""Invoke ``go test`` and capture its transcript.

The runner is a thin boundary around the external test process: it builds
the command line, runs it in a package directory, and returns stdout,
stderr, exit code and wall time.  Process failures (timeout, missing go
binary, OS errors) come back as a failed ``RunOutput`` rather than an
exception.
"""

from __future__ import annotations

import shlex
import subprocess
import time
from dataclasses import dataclass
from typing import Protocol, Sequence

RUN_KINDS = frozenset({"all", "package", "file", "test"})


@dataclass
class RunOutput:
    """Captured result of one ``go test`` invocation."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    duration: float = 0.0

    @property
    def transcript(self) -> str:
        """stdout followed by stderr, the text handed to output parsing."""
        return self.stdout + self.stderr

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class LastRunSpec:
    """What the most recent run targeted, so it can be repeated."""

    kind: str  # all, package, file, test
    label: str
    package_path: str | None = None
    file: str | None = None
    test_name: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in RUN_KINDS:
            raise ValueError(
                f"Invalid run kind '{self.kind}'. Must be one of: {sorted(RUN_KINDS)}"
            )


class TestRunner(Protocol):
    """Runs tests in one package directory and returns the transcript."""

    def run(
        self,
        cwd: str,
        extra_flags: str = "",
        run_pattern: str | None = None,
    ) -> RunOutput:
        ...


def build_run_pattern(names: Sequence[str]) -> str:
    """Anchored ``-run`` regex matching exactly the given test names."""
    if len(names) == 1:
        return f"^{names[0]}$"
    return f"^({'|'.join(names)})$"


class GoTestRunner:
    """Runs ``go test -v`` through ``subprocess``."""

    def __init__(self, go_binary: str = "go", timeout: float = 300.0) -> None:
        self.go_binary = go_binary
        self.timeout = timeout

    def build_command(
        self,
        extra_flags: str = "",
        run_pattern: str | None = None,
    ) -> list[str]:
        """Build the argv for one invocation.

        ``-v`` is always present because sub-test discovery needs the
        ``=== RUN`` lines it prints.
        """
        cmd = [self.go_binary, "test"]
        flags = shlex.split(extra_flags)
        if "-v" not in flags:
            cmd.append("-v")
        cmd.extend(flags)
        if run_pattern:
            cmd.extend(["-run", run_pattern])
        return cmd

    def run(
        self,
        cwd: str,
        extra_flags: str = "",
        run_pattern: str | None = None,
    ) -> RunOutput:
        """Run the tests of the package in *cwd*.

        Args:
            cwd: Package directory to run in.
            extra_flags: Shell-quoted flags, as built by ``FlagStore``.
            run_pattern: Optional ``-run`` regex.

        Returns:
            RunOutput with the captured transcript.
        """
        cmd = self.build_command(extra_flags, run_pattern)
        start_time = time.monotonic()
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=cwd,
            )
            return RunOutput(
                stdout=proc.stdout,
                stderr=proc.stderr,
                exit_code=proc.returncode,
                duration=time.monotonic() - start_time,
            )
        except subprocess.TimeoutExpired:
            return RunOutput(
                stderr=f"go test timed out after {self.timeout} seconds",
                exit_code=-1,
                duration=time.monotonic() - start_time,
            )
        except FileNotFoundError:
            return RunOutput(
                stderr=f"Executable not found: {self.go_binary}",
                exit_code=-1,
                duration=time.monotonic() - start_time,
            )
        except OSError as e:
            return RunOutput(
                stderr=f"OS error running go test: {e}",
                exit_code=-1,
                duration=time.monotonic() - start_time,
            )
