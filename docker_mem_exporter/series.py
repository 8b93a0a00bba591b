"""Data structures passed between the runtime, the assembler and the exporter."""
from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class ContainerRecord:
    """A running container as listed by the runtime."""
    id: str
    raw_name: str
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class MetricPoint:
    """A single gauge value with its (name, stack, service) label values."""
    name: str
    value: float
    label_values: Tuple[str, str, str]


@dataclass(frozen=True)
class ContainerFailure:
    """A container skipped from a snapshot and why."""
    container_id: str
    display_name: str
    reason: str
    message: str


@dataclass
class Snapshot:
    """Result of one scrape."""
    points: List[MetricPoint] = field(default_factory=list)
    failures: List[ContainerFailure] = field(default_factory=list)
    containers_seen: int = 0
    negative_usage: int = 0
    duration_s: float = 0.0
