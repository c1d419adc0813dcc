"""Selection of extra ``go test`` flags, persisted per workspace.

The store keeps the set of active flag ids and a map of id -> value for
flags that take one.  It also remembers every flag id it has ever seen:
when a new default-active flag is added to ``AVAILABLE_TEST_FLAGS`` it is
switched on for existing workspaces, while flags the user turned off stay
off.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from gotests.lifecycle.state import WorkspaceState

ACTIVE_FLAGS_KEY = "gotests.testFlags"
KNOWN_FLAGS_KEY = "gotests.knownFlagIds"
FLAG_VALUES_KEY = "gotests.testFlagValues"

RUN_FILTER_ID = "run"
COVERPROFILE_ID = "coverprofile"


@dataclass(frozen=True)
class TestFlagOption:
    """One selectable ``go test`` flag."""

    id: str
    flag: str  # literal token, e.g. "-race"
    label: str
    description: str
    active_by_default: bool
    takes_value: bool = False  # rendered as -flag="value"
    value_placeholder: str = ""
    default_value: str | None = None
    external: bool = False  # appended by the caller, not by build_extra_flags


AVAILABLE_TEST_FLAGS: tuple[TestFlagOption, ...] = (
    # Output
    TestFlagOption(
        id="verbose",
        flag="-v",
        label="Verbose (-v)",
        description="Show all test output",
        active_by_default=True,
    ),
    TestFlagOption(
        id="fullpath",
        flag="-fullpath",
        label="Full Path (-fullpath)",
        description="Show full file paths in test output",
        active_by_default=True,
    ),
    # Execution
    TestFlagOption(
        id="timeout",
        flag="-timeout",
        label="Timeout (-timeout)",
        description="Maximum time allowed for all tests to run (0 = no limit)",
        active_by_default=True,
        takes_value=True,
        value_placeholder="e.g. 30s, 2m, 0",
        default_value="30s",
    ),
    TestFlagOption(
        id="count",
        flag="-count=1",
        label="No Cache (-count=1)",
        description="Disable test result caching",
        active_by_default=False,
    ),
    TestFlagOption(
        id="race",
        flag="-race",
        label="Race Detector (-race)",
        description="Detect race conditions",
        active_by_default=False,
    ),
    TestFlagOption(
        id="bench",
        flag="-bench=.",
        label="Benchmarks (-bench=.)",
        description="Also run all benchmarks",
        active_by_default=False,
    ),
    TestFlagOption(
        id=RUN_FILTER_ID,
        flag="-run",
        label="Filter (-run=...)",
        description="Only run tests matching a regex (applied to run-all / package / file commands)",
        active_by_default=False,
        takes_value=True,
        value_placeholder="e.g. TestFoo|TestBar",
    ),
    # Coverage
    TestFlagOption(
        id=COVERPROFILE_ID,
        flag="-coverprofile",
        label="Coverage Profile (save to file)",
        description="Write a coverage profile for the run",
        active_by_default=True,
        external=True,
    ),
    TestFlagOption(
        id="coverpkg",
        flag="-coverpkg=./...",
        label="Shared Coverage (-coverpkg=./...)",
        description="Measure coverage across all packages in the module",
        active_by_default=False,
    ),
)


class FlagStore:
    """Active flag selection and values, backed by ``WorkspaceState``."""

    def __init__(
        self,
        state: WorkspaceState,
        options: Sequence[TestFlagOption] = AVAILABLE_TEST_FLAGS,
    ) -> None:
        self.state = state
        self.options = tuple(options)
        self._by_id = {opt.id: opt for opt in self.options}

        defaults = [opt.id for opt in self.options if opt.active_by_default]
        saved = state.get(ACTIVE_FLAGS_KEY, defaults)
        known = set(state.get(KNOWN_FLAGS_KEY, []))

        active = list(dict.fromkeys(saved))
        for opt in self.options:
            if opt.active_by_default and opt.id not in known and opt.id not in active:
                active.append(opt.id)

        state.update(KNOWN_FLAGS_KEY, [opt.id for opt in self.options])
        state.update(ACTIVE_FLAGS_KEY, active)
        self._active = active
        self._values: dict[str, str] = dict(state.get(FLAG_VALUES_KEY, {}))

    def option(self, flag_id: str) -> TestFlagOption:
        """Look up a flag option by id.

        Raises:
            ValueError: If the id is not a known flag.
        """
        opt = self._by_id.get(flag_id)
        if opt is None:
            raise ValueError(
                f"Unknown flag '{flag_id}'. Must be one of: {sorted(self._by_id)}"
            )
        return opt

    def active_flag_ids(self) -> list[str]:
        return list(self._active)

    def flag_values(self) -> dict[str, str]:
        return dict(self._values)

    def is_flag_active(self, flag_id: str) -> bool:
        return flag_id in self._active

    def set_active_flags(
        self, ids: Sequence[str], values: dict[str, str]
    ) -> None:
        """Replace the active selection and values, and persist both.

        Raises:
            ValueError: If any id is not a known flag.
        """
        for flag_id in [*ids, *values]:
            self.option(flag_id)
        self._active = list(dict.fromkeys(ids))
        self._values = dict(values)
        self.state.update(ACTIVE_FLAGS_KEY, self._active)
        self.state.update(FLAG_VALUES_KEY, self._values)

    def build_extra_flags(
        self,
        skip_run: bool = False,
        coverage_file: str | None = None,
    ) -> str:
        """Compose the extra flags for one ``go test`` invocation.

        Args:
            skip_run: Leave out the ``-run`` filter flag because the caller
                supplies its own.
            coverage_file: When given and the coverprofile flag is active,
                append ``-coverprofile="<path>"``.

        Returns:
            Space-separated flags in catalog order.
        """
        parts: list[str] = []
        for opt in self.options:
            if opt.id not in self._active or opt.external:
                continue
            if opt.id == RUN_FILTER_ID and skip_run:
                continue
            if opt.takes_value:
                value = self._values.get(opt.id)
                if value is None:
                    value = opt.default_value or ""
                if value:
                    parts.append(f'{opt.flag}="{value}"')
            else:
                parts.append(opt.flag)

        if coverage_file and COVERPROFILE_ID in self._active:
            parts.append(f'-coverprofile="{coverage_file}"')
        return " ".join(parts)
