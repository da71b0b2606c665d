"""Process census from ``ps`` output."""

import shutil
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import structlog

from proc_census.errors import SourceUnavailable
from proc_census.states import Bucket, StateTable

log = structlog.get_logger()

# "state=" suppresses the header on both procps and BSD ps
PS_COMMAND = ("ps", "axo", "state=")
PS_HEADER = b"STAT"  # BSD header when a custom command omits "="

# ps(1) state codes, first character only
PS_STATES = {
    "W": Bucket.WAIT,
    "U": Bucket.BLOCKED,
    "D": Bucket.BLOCKED,  # Uninterruptible (disk) sleep
    "L": Bucket.BLOCKED,  # Waiting to acquire a lock
    "Z": Bucket.ZOMBIES,
    "X": Bucket.DEAD,
    "T": Bucket.STOPPED,
    "R": Bucket.RUNNING,
    "S": Bucket.SLEEPING,
    "I": Bucket.IDLE,
    "?": Bucket.UNKNOWN,
}


def run_ps(
    command: Sequence[str] = PS_COMMAND,
    timeout: float | None = None,
) -> bytes:
    """Run ``ps`` and return its raw stdout.

    Args:
        command: Argument vector; the first element is looked up on PATH.
        timeout: Seconds to wait for ps to exit. None waits forever.

    Raises:
        SourceUnavailable: If ps can't be found, can't be started, exits
            non-zero, or times out.
    """
    binary = shutil.which(command[0])
    if binary is None:
        raise SourceUnavailable(f"{command[0]} not found on PATH")

    try:
        result = subprocess.run(
            [binary, *command[1:]],
            capture_output=True,
            check=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
        raise SourceUnavailable(f"{binary} exited with status {e.returncode}: {stderr}") from e
    except subprocess.TimeoutExpired as e:
        raise SourceUnavailable(f"{binary} timed out after {timeout}s") from e
    except OSError as e:
        raise SourceUnavailable(f"Failed to run {binary}: {e}") from e

    return result.stdout


def gather_from_ps(table: StateTable, output: bytes) -> None:
    """Count one state code per whitespace-separated token of ps output.

    A leading ``STAT`` header token is skipped. Every other token counts
    toward ``total``, including ones with an unrecognized state.
    """
    for i, status in enumerate(output.split()):
        if i == 0 and status == PS_HEADER:
            continue

        code = chr(status[0])
        bucket = PS_STATES.get(code)
        if bucket is None:
            log.info("unknown_state", state=code, source="ps")
        else:
            table.increment(bucket)
        table.increment(Bucket.TOTAL)


@dataclass
class PsGatherer:
    """Gathers process states by running ``ps``."""

    run: Callable[[], bytes] = field(default=run_ps)

    source = "ps"

    def gather(self, table: StateTable) -> None:
        gather_from_ps(table, self.run())
