"""Shared fixtures: a fake cgroup v1 tree and an in-memory container runtime."""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from docker_mem_exporter.series import ContainerRecord


class FakeRuntime:
    """Runtime double returning canned listing and inspection data."""

    def __init__(self, containers=None, memory=None, list_error=None, inspect_errors=None):
        self.containers = containers or []
        self.memory = memory or {}
        self.list_error = list_error
        self.inspect_errors = inspect_errors or {}
        self.inspected = []

    def ping(self):
        return self.list_error is None

    def list_containers(self):
        if self.list_error:
            raise self.list_error
        return list(self.containers)

    def inspect_memory(self, container_id):
        self.inspected.append(container_id)
        if container_id in self.inspect_errors:
            raise self.inspect_errors[container_id]
        return self.memory.get(container_id, (0, 0))


def write_container(root: Path, container_id: str, usage=None, stat=None):
    """Create the memory cgroup files of one container under ``root``."""
    directory = root / "memory" / "docker" / container_id
    directory.mkdir(parents=True, exist_ok=True)
    if usage is not None:
        (directory / "memory.usage_in_bytes").write_text(usage)
    if stat is not None:
        (directory / "memory.stat").write_text(stat)
    return directory


@pytest.fixture
def cgroup_root(tmp_path):
    """Empty cgroup v1 mount with a memory controller directory."""
    (tmp_path / "memory" / "docker").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def shop_runtime():
    """One compose container, as in the documented end-to-end example."""
    return FakeRuntime(
        containers=[
            ContainerRecord(
                id="abc",
                raw_name="/web-1",
                labels={
                    "com.docker.compose.project": "shop",
                    "com.docker.compose.service": "web",
                },
            )
        ],
        memory={"abc": (1073741824, 536870912)},
    )
