"""True memory usage derived from raw cgroup counters."""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CgroupCounters:
    """Memory counters for one container, read at one point in time."""
    usage_bytes: int
    cache_bytes: Optional[int]
    memory_limit_bytes: int
    memory_reservation_bytes: int


def true_usage(counters: CgroupCounters) -> int:
    """Raw usage minus reclaimable page cache. A missing cache counter counts as zero."""
    return counters.usage_bytes - (counters.cache_bytes or 0)


def is_inconsistent(counters: CgroupCounters) -> bool:
    """True when cache exceeds usage, i.e. the two reads raced with a teardown."""
    return true_usage(counters) < 0
