"""Process census from ``/proc/<pid>/stat`` files (Linux).

Each stat file looks like::

    1234 (some (odd) name) S 1 1234 1234 0 -1 4194560 ... 4 0 ...

The process name may itself contain parentheses, so fields are located from
the last ``)`` in the record. Field 0 after it is the state code and field 17
is the thread count (``num_threads`` in proc(5)).
"""

import errno
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from proc_census.errors import MalformedRecord, SourceUnavailable
from proc_census.states import Bucket, StateTable

log = structlog.get_logger()

PROC_ROOT = Path("/proc")
STAT_PATTERN = "[0-9]*/stat"
THREADS_FIELD = 17
MIN_FIELDS = 3

# proc(5) state codes
PROC_STATES = {
    "R": Bucket.RUNNING,
    "S": Bucket.SLEEPING,
    "D": Bucket.BLOCKED,
    "Z": Bucket.ZOMBIES,
    "X": Bucket.DEAD,
    "T": Bucket.STOPPED,
    "t": Bucket.STOPPED,  # Tracing stop
    "W": Bucket.PAGING,  # Pre-2.6 kernels only
}


def read_proc_file(path: Path) -> bytes | None:
    """Read a stat file, returning None if its process has gone away.

    A process can exit between enumeration and open() (file missing), or
    between open() and read(), in which case the read fails with ESRCH.

    Raises:
        SourceUnavailable: For any other read failure.
    """
    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        return None
    except OSError as e:
        if e.errno == errno.ESRCH:
            return None
        raise SourceUnavailable(f"Failed to read {path}: {e}") from e


def list_stat_files(proc_root: Path = PROC_ROOT) -> list[Path]:
    """List per-process stat files under a procfs root.

    Raises:
        SourceUnavailable: If the root is missing or can't be listed.
    """
    if not proc_root.is_dir():
        raise SourceUnavailable(f"procfs root not found: {proc_root}")
    try:
        return list(proc_root.glob(STAT_PATTERN))
    except OSError as e:
        raise SourceUnavailable(f"Failed to list {proc_root}: {e}") from e


def split_stat(path: Path, data: bytes) -> list[bytes] | None:
    """Split a stat record into the fields following the process name.

    Returns:
        Fields after ``(<name>)``, or None if the record has no name delimiter.

    Raises:
        MalformedRecord: If fewer than 3 fields follow the name.
    """
    i = data.rfind(b")")
    if i == -1:
        return None

    # Skip ")" and the single separator after it
    stats = data[i + 2 :].split()
    if len(stats) < MIN_FIELDS:
        raise MalformedRecord(str(path), len(stats))
    return stats


def gather_from_proc(
    table: StateTable,
    read: Callable[[Path], bytes | None] = read_proc_file,
    proc_root: Path = PROC_ROOT,
) -> None:
    """Count process states and threads from every stat file under proc_root.

    Vanished processes contribute nothing, not even to ``total``.
    """
    for path in list_stat_files(proc_root):
        data = read(path)
        if data is None:
            log.debug("process_vanished", path=str(path))
            continue

        stats = split_stat(path, data)
        if stats is None:
            log.debug("stat_without_name", path=str(path))
            continue

        code = chr(stats[0][0])
        bucket = PROC_STATES.get(code)
        if bucket is None:
            log.info("unknown_state", state=code, path=str(path), source="procfs")
        else:
            table.increment(bucket)
        table.increment(Bucket.TOTAL)

        try:
            threads = int(stats[THREADS_FIELD])
        except (IndexError, ValueError) as e:
            log.info("thread_count_unparseable", path=str(path), error=str(e))
            continue
        table.increment(Bucket.TOTAL_THREADS, threads)


@dataclass
class ProcGatherer:
    """Gathers process states from procfs."""

    read: Callable[[Path], bytes | None] = field(default=read_proc_file)
    proc_root: Path = PROC_ROOT

    source = "procfs"

    def gather(self, table: StateTable) -> None:
        gather_from_proc(table, self.read, self.proc_root)
