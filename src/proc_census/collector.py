"""Process state census collector.

Picks a process source for the platform, runs it once into a fresh
StateTable, and returns the table as a single flat record.
"""

import sys
from collections.abc import Callable
from functools import partial
from pathlib import Path
from typing import Protocol

import structlog

from proc_census.config import Config
from proc_census.procfs import PROC_ROOT, ProcGatherer, read_proc_file
from proc_census.ps import PS_COMMAND, PsGatherer, run_ps
from proc_census.states import Bucket, StateTable, new_state_table, normalize_platform

log = structlog.get_logger()

COLLECTOR_NAME = "processes"


class Gatherer(Protocol):
    """A process source that fills in a StateTable."""

    source: str

    def gather(self, table: StateTable) -> None: ...


class ProcessesCollector:
    """Counts processes per scheduler state.

    Linux reads ``/proc/<pid>/stat``; every other platform runs ``ps``.
    ``force_ps`` and ``force_proc`` override the platform default, with
    ``force_ps`` taking precedence.

    The two OS touch points (running ps, reading one stat file) are injected
    so tests can substitute fixtures.
    """

    def __init__(
        self,
        force_ps: bool = False,
        force_proc: bool = False,
        platform: str | None = None,
        run_ps: Callable[[], bytes] = run_ps,
        read_proc_file: Callable[[Path], bytes | None] = read_proc_file,
        proc_root: Path = PROC_ROOT,
    ):
        self.force_ps = force_ps
        self.force_proc = force_proc
        self.platform = normalize_platform(platform or sys.platform)
        self._ps = PsGatherer(run=run_ps)
        self._proc = ProcGatherer(read=read_proc_file, proc_root=proc_root)

    @classmethod
    def from_config(cls, config: Config, platform: str | None = None) -> "ProcessesCollector":
        """Build a collector from the [census] config section."""
        census = config.census
        command = tuple(census.ps_command) or PS_COMMAND
        timeout = census.ps_timeout or None
        return cls(
            force_ps=census.force_ps,
            force_proc=census.force_proc,
            platform=platform,
            run_ps=partial(run_ps, command, timeout),
            proc_root=Path(census.proc_root),
        )

    @property
    def name(self) -> str:
        return COLLECTOR_NAME

    def use_ps(self) -> bool:
        """Return True if this census should run ps rather than read procfs."""
        if self.force_ps:
            return True
        if self.force_proc:
            return False
        return self.platform != "linux"

    def gatherer(self) -> Gatherer:
        return self._ps if self.use_ps() else self._proc

    def collect(self) -> dict[str, int]:
        """Run one census.

        Returns:
            Flat mapping of bucket name to count for this platform's buckets.

        Raises:
            SourceUnavailable: If the process source can't be read at all.
            MalformedRecord: If a procfs stat record is structurally broken.
        """
        table = new_state_table(self.platform)
        gatherer = self.gatherer()
        gatherer.gather(table)
        log.debug(
            "census_collected",
            source=gatherer.source,
            platform=self.platform,
            total=table[Bucket.TOTAL],
        )
        return table.as_record()
