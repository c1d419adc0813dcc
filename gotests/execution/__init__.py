"""Test execution boundary: the go test runner and run specs."""

from gotests.execution.runner import GoTestRunner, LastRunSpec, RunOutput, build_run_pattern

__all__ = [
    "GoTestRunner",
    "LastRunSpec",
    "RunOutput",
    "build_run_pattern",
]
