"""Go test explorer: discovery, run tracking, history and flag selection."""

from gotests.model import (
    SubTestInfo,
    TestFile,
    TestInfo,
    TestModule,
    TestPackage,
    TestTree,
)
from gotests.store import TestTreeStore

__all__ = [
    "SubTestInfo",
    "TestFile",
    "TestInfo",
    "TestModule",
    "TestPackage",
    "TestTree",
    "TestTreeStore",
]
