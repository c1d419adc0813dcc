"""Run transcript analysis: sub-test discovery and result parsing."""

from gotests.analysis.output_parser import (
    SubTestOutcome,
    apply_discovered_subtests,
    parse_subtest_output,
    parse_test_results,
    update_subtests_from_output,
)

__all__ = [
    "SubTestOutcome",
    "apply_discovered_subtests",
    "parse_subtest_output",
    "parse_test_results",
    "update_subtests_from_output",
]
