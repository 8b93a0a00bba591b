"""Assembles one metrics snapshot across all running containers."""
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import List, Optional
import logging
import threading
import time

from docker_mem_exporter.cgroup import CgroupReader
from docker_mem_exporter.errors import CgroupError, ContainerGone, ScrapeCancelled
from docker_mem_exporter.identity import Identity, resolve_identity
from docker_mem_exporter.series import ContainerFailure, ContainerRecord, MetricPoint, Snapshot
from docker_mem_exporter.usage import is_inconsistent, true_usage

logger = logging.getLogger(__name__)

MEMORY_USAGE = "docker_container_memory_usage_bytes"
MEMORY_RESERVATION = "docker_container_memory_reservation_bytes"
MEMORY_LIMIT = "docker_container_memory_limit_bytes"

LABEL_NAMES = ["name", "stack", "service"]

METRIC_HELP = {
    MEMORY_USAGE: "Total memory usage in bytes",
    MEMORY_RESERVATION: "Memory reserved for the container in bytes",
    MEMORY_LIMIT: "Memory limit for the container in bytes",
}


@dataclass
class _ContainerResult:
    points: List[MetricPoint]
    failure: Optional[ContainerFailure] = None
    negative_usage: bool = False


class SnapshotAssembler:
    """
    Builds the memory metrics of every running container.

    Args:
        runtime: object with ``list_containers()`` and ``inspect_memory(id)``
        reader: cgroup reader for the host's memory controller
        max_workers: containers enriched in parallel; 1 keeps the scrape
            on the calling thread
    """

    def __init__(self, runtime, reader: CgroupReader, max_workers: int = 1):
        self.runtime = runtime
        self.reader = reader
        self.max_workers = max_workers

    def snapshot(
        self,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Snapshot:
        """
        Take one snapshot.

        Per-container read failures are recorded and skipped. Runtime
        unavailability, an unsupported cgroup layout, the deadline or the
        cancel event abort the whole snapshot.
        """
        start = time.monotonic()
        deadline = start + timeout if timeout is not None else None

        records = self.runtime.list_containers()
        logger.debug(f"Runtime listed {len(records)} running containers")

        if self.max_workers > 1 and len(records) > 1:
            results = self._enrich_parallel(records, deadline, cancel_event)
        else:
            results = self._enrich_sequential(records, deadline, cancel_event)

        snapshot = Snapshot(containers_seen=len(records))
        for result in results:
            if result.failure:
                snapshot.failures.append(result.failure)
            else:
                snapshot.points.extend(result.points)
            if result.negative_usage:
                snapshot.negative_usage += 1

        snapshot.duration_s = time.monotonic() - start
        logger.debug(
            f"Snapshot: {len(snapshot.points)} points, "
            f"{len(snapshot.failures)} skipped containers in {snapshot.duration_s:.3f}s"
        )
        return snapshot

    def _enrich_sequential(self, records, deadline, cancel_event) -> List[_ContainerResult]:
        results = []
        for record in records:
            _check_deadline(deadline, cancel_event)
            results.append(self.enrich(record))
        _check_deadline(deadline, cancel_event)
        return results

    def _enrich_parallel(self, records, deadline, cancel_event) -> List[_ContainerResult]:
        executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="enrich"
        )
        try:
            futures = [executor.submit(self.enrich, record) for record in records]
            results = []
            # Collected in inventory order so the output does not depend on scheduling
            for future in futures:
                _check_deadline(deadline, cancel_event)
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                try:
                    results.append(future.result(timeout=remaining))
                except FutureTimeout:
                    raise ScrapeCancelled("Scrape deadline exceeded")
            return results
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def enrich(self, record: ContainerRecord) -> _ContainerResult:
        """Read one container's counters and turn them into its three metric points."""
        identity = resolve_identity(record.raw_name, record.labels)

        try:
            limit, reservation = self.runtime.inspect_memory(record.id)
            counters = self.reader.counters(record.id, limit, reservation)
        except (CgroupError, ContainerGone) as e:
            logger.warning(f"Skipping container {identity.display_name} ({record.id[:12]}): {e}")
            return _ContainerResult(
                points=[],
                failure=ContainerFailure(
                    container_id=record.id,
                    display_name=identity.display_name,
                    reason=type(e).__name__,
                    message=str(e),
                ),
            )

        usage = true_usage(counters)
        negative = is_inconsistent(counters)
        if negative:
            logger.warning(
                f"Container {identity.display_name}: cache {counters.cache_bytes} exceeds "
                f"usage {counters.usage_bytes}, reporting negative usage {usage}"
            )

        return _ContainerResult(
            points=_points(identity, usage, counters.memory_reservation_bytes,
                           counters.memory_limit_bytes),
            negative_usage=negative,
        )


def _points(identity: Identity, usage: int, reservation: int, limit: int) -> List[MetricPoint]:
    label_values = identity.label_values()
    return [
        MetricPoint(MEMORY_USAGE, float(usage), label_values),
        MetricPoint(MEMORY_RESERVATION, float(reservation), label_values),
        MetricPoint(MEMORY_LIMIT, float(limit), label_values),
    ]


def _check_deadline(deadline: Optional[float], cancel_event: Optional[threading.Event]):
    if cancel_event is not None and cancel_event.is_set():
        raise ScrapeCancelled("Scrape cancelled")
    if deadline is not None and time.monotonic() > deadline:
        raise ScrapeCancelled("Scrape deadline exceeded")
