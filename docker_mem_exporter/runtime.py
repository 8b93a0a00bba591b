"""Container runtime client backed by the Docker SDK."""
from typing import List, Tuple
import logging

import docker
import requests
from docker.errors import DockerException, NotFound

from docker_mem_exporter.config import DockerConfig
from docker_mem_exporter.errors import ContainerGone, RuntimeUnavailable
from docker_mem_exporter.series import ContainerRecord

logger = logging.getLogger(__name__)

# Errors meaning the daemon itself could not be reached or answered badly
RUNTIME_ERRORS = (DockerException, requests.exceptions.RequestException)


def create_docker_client(config: DockerConfig) -> docker.DockerClient:
    """Create the process-wide Docker client."""
    try:
        if config.base_url:
            return docker.DockerClient(base_url=config.base_url, timeout=config.timeout_s)
        return docker.from_env(timeout=config.timeout_s)
    except RUNTIME_ERRORS as e:
        raise RuntimeUnavailable(f"Cannot connect to Docker: {e}") from e


class DockerRuntime:
    """
    Lists and inspects running containers.

    Holds no state besides the client handle, so one instance can serve
    every scrape.
    """

    def __init__(self, client: docker.DockerClient):
        self.client = client

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except RUNTIME_ERRORS as e:
            logger.debug(f"Docker ping failed: {e}")
            return False

    def list_containers(self) -> List[ContainerRecord]:
        """List running containers."""
        try:
            containers = self.client.api.containers()
        except RUNTIME_ERRORS as e:
            raise RuntimeUnavailable(f"Listing containers failed: {e}") from e

        records = []
        for container in containers:
            container_id = container["Id"]
            names = container.get("Names") or []
            records.append(ContainerRecord(
                id=container_id,
                raw_name=names[0] if names else container_id[:12],
                labels=container.get("Labels") or {},
            ))
        return records

    def inspect_memory(self, container_id: str) -> Tuple[int, int]:
        """Return (memory limit, memory reservation) in bytes for a container."""
        try:
            inspect = self.client.api.inspect_container(container_id)
        except NotFound as e:
            raise ContainerGone(container_id) from e
        except RUNTIME_ERRORS as e:
            raise RuntimeUnavailable(f"Inspecting container {container_id} failed: {e}") from e

        host_config = inspect.get("HostConfig") or {}
        return (
            int(host_config.get("Memory") or 0),
            int(host_config.get("MemoryReservation") or 0),
        )
