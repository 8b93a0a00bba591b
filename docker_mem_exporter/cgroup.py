"""Readers for the per-container memory cgroup pseudo-files."""
from typing import Dict, Optional
import logging
import os

from docker_mem_exporter.errors import (
    CgroupIOError, NotFoundError, ParseError, UnsupportedCgroupVersion
)
from docker_mem_exporter.usage import CgroupCounters

logger = logging.getLogger(__name__)

CGROUP_V1 = "v1"
CGROUP_V2 = "v2"

MEMORY_CONTROLLER = "memory"
DOCKER_PARENT = "docker"
USAGE_FILE = "memory.usage_in_bytes"
STAT_FILE = "memory.stat"
CACHE_KEY = "total_cache"


def _parse_int(token: str, path: str) -> int:
    # int() accepts digit separators and non-ASCII digits, the kernel writes neither
    if '_' in token or not token.isascii():
        raise ParseError(f"{path}: {token!r} is not an integer")
    try:
        return int(token, 10)
    except ValueError:
        raise ParseError(f"{path}: {token!r} is not an integer")


def _open(path: str):
    try:
        return open(path, 'r', encoding='utf-8')
    except FileNotFoundError:
        raise NotFoundError(f"No such cgroup file: {path}")
    except OSError as e:
        raise CgroupIOError(f"Cannot read {path}: {e}")


def read_scalar(path: str) -> int:
    """Read a file holding a single base-10 integer."""
    with _open(path) as f:
        try:
            content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise CgroupIOError(f"Cannot read {path}: {e}")

    value = content.strip()
    if not value:
        raise ParseError(f"{path}: file is empty")
    return _parse_int(value, path)


def read_table(path: str) -> Dict[str, int]:
    """
    Read a whitespace-delimited ``key value`` table.

    Blank lines are skipped. A line with fewer than two tokens, or whose
    second token is not an integer, fails the whole read. A repeated key
    keeps the last value seen.
    """
    values: Dict[str, int] = {}

    with _open(path) as f:
        try:
            for line_no, line in enumerate(f, start=1):
                parts = line.split()
                if not parts:
                    continue
                if len(parts) < 2:
                    raise ParseError(f"{path}:{line_no}: expected 'key value', got {line.strip()!r}")
                values[parts[0]] = _parse_int(parts[1], f"{path}:{line_no}")
        except (OSError, UnicodeDecodeError) as e:
            raise CgroupIOError(f"Cannot read {path}: {e}")

    return values


def detect_cgroup_version(mount_root: str) -> str:
    """
    Detect which cgroup hierarchy is mounted at ``mount_root``.

    A unified (v2) mount exposes ``cgroup.controllers`` at its root and has
    no per-controller directories. Hybrid hosts keep the v1 memory
    controller and are treated as v1.
    """
    unified = os.path.exists(os.path.join(mount_root, "cgroup.controllers"))
    has_memory_controller = os.path.isdir(os.path.join(mount_root, MEMORY_CONTROLLER))

    if unified and not has_memory_controller:
        return CGROUP_V2
    return CGROUP_V1


class CgroupReader:
    """Reads memory counters for containers from one cgroup mount."""

    def __init__(self, mount_root: str, version: Optional[str] = None):
        self.mount_root = mount_root
        self.version = version or detect_cgroup_version(mount_root)
        logger.debug(f"Using cgroup {self.version} layout under {mount_root}")

    def _check_version(self):
        if self.version != CGROUP_V1:
            raise UnsupportedCgroupVersion(self.version)

    def container_path(self, container_id: str, filename: str) -> str:
        """Path of ``filename`` in the container's memory cgroup."""
        self._check_version()
        return os.path.join(
            self.mount_root, MEMORY_CONTROLLER, DOCKER_PARENT, container_id, filename
        )

    def usage_bytes(self, container_id: str) -> int:
        return read_scalar(self.container_path(container_id, USAGE_FILE))

    def memory_stat(self, container_id: str) -> Dict[str, int]:
        return read_table(self.container_path(container_id, STAT_FILE))

    def counters(self, container_id: str, limit: int, reservation: int) -> CgroupCounters:
        """Read usage and cache for a container and combine them with inspection data."""
        usage = self.usage_bytes(container_id)
        stat = self.memory_stat(container_id)
        return CgroupCounters(
            usage_bytes=usage,
            cache_bytes=stat.get(CACHE_KEY),
            memory_limit_bytes=limit,
            memory_reservation_bytes=reservation,
        )
