"""Per-platform state buckets and the count table they live in."""

import sys
from dataclasses import dataclass, field
from enum import Enum

import structlog

log = structlog.get_logger()


class Bucket(Enum):
    """Process state category reported by a census."""

    BLOCKED = "blocked"  # Uninterruptible / disk sleep
    ZOMBIES = "zombies"
    STOPPED = "stopped"
    RUNNING = "running"
    SLEEPING = "sleeping"
    TOTAL = "total"
    UNKNOWN = "unknown"
    IDLE = "idle"
    WAIT = "wait"  # Waiting on interrupt (FreeBSD)
    DEAD = "dead"
    PAGING = "paging"
    TOTAL_THREADS = "total_threads"


UNIVERSAL_BUCKETS = (
    Bucket.BLOCKED,
    Bucket.ZOMBIES,
    Bucket.STOPPED,
    Bucket.RUNNING,
    Bucket.SLEEPING,
    Bucket.TOTAL,
    Bucket.UNKNOWN,
)

# Extra buckets by platform family
PLATFORM_BUCKETS: dict[str, tuple[Bucket, ...]] = {
    "freebsd": (Bucket.IDLE, Bucket.WAIT),
    "darwin": (Bucket.IDLE,),
    "openbsd": (Bucket.IDLE,),
    "linux": (Bucket.DEAD, Bucket.PAGING, Bucket.TOTAL_THREADS),
}


def normalize_platform(platform: str | None = None) -> str:
    """Map a ``sys.platform`` string to its family.

    ``sys.platform`` carries a major version on some systems (``freebsd14``,
    ``openbsd7``). Unrecognized platforms are returned unchanged.

    Args:
        platform: Platform identifier. Defaults to ``sys.platform``.

    Returns:
        Family name such as "linux" or "freebsd".
    """
    platform = platform or sys.platform
    for family in PLATFORM_BUCKETS:
        if platform.startswith(family):
            return family
    return platform


def platform_buckets(platform: str | None = None) -> tuple[Bucket, ...]:
    """Return the fixed bucket set meaningful on a platform."""
    return UNIVERSAL_BUCKETS + PLATFORM_BUCKETS.get(normalize_platform(platform), ())


@dataclass
class StateTable:
    """Zero-initialized counts for one census.

    The key set is decided at construction and never grows: incrementing a
    bucket the platform doesn't report is logged and dropped.
    """

    platform: str
    counts: dict[Bucket, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.counts:
            self.counts = {bucket: 0 for bucket in platform_buckets(self.platform)}

    def __getitem__(self, bucket: Bucket) -> int:
        return self.counts[bucket]

    def __contains__(self, bucket: object) -> bool:
        return bucket in self.counts

    @property
    def buckets(self) -> frozenset[Bucket]:
        return frozenset(self.counts)

    def increment(self, bucket: Bucket, amount: int = 1) -> bool:
        """Add to a bucket's count.

        Returns:
            True if the bucket exists on this platform, False if dropped.
        """
        if bucket not in self.counts:
            log.debug("bucket_not_on_platform", bucket=bucket.value, platform=self.platform)
            return False
        self.counts[bucket] += amount
        return True

    def as_record(self) -> dict[str, int]:
        """Render as a flat mapping of bucket name to count."""
        return {bucket.value: count for bucket, count in self.counts.items()}


def new_state_table(platform: str | None = None) -> StateTable:
    """Create a zero-filled table for the given (or current) platform."""
    return StateTable(platform=normalize_platform(platform))
