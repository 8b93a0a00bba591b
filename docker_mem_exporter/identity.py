"""Resolve a container's display name and stack/service from orchestrator labels."""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple
import logging

from docker_mem_exporter.errors import MalformedLabelError

logger = logging.getLogger(__name__)

NAME_SEPARATOR = "/"

RANCHER_STACK_SERVICE = "io.rancher.stack_service.name"
SWARM_SERVICE_NAME = "com.docker.swarm.service.name"
SWARM_STACK_NAMESPACE = "com.docker.stack.namespace"
COMPOSE_PROJECT = "com.docker.compose.project"
COMPOSE_SERVICE = "com.docker.compose.service"

# Stack reported for swarm services whose name carries no stack prefix
UNKNOWN_STACK = "-"

StackService = Tuple[str, str]


@dataclass(frozen=True)
class Identity:
    """Labels attached to every metric of a container."""
    display_name: str
    stack: str
    service: str

    def label_values(self) -> Tuple[str, str, str]:
        return (self.display_name, self.stack, self.service)


def normalize_name(raw_name: str) -> str:
    """Strip one leading separator from a runtime-reported container name."""
    if raw_name.startswith(NAME_SEPARATOR):
        return raw_name[len(NAME_SEPARATOR):]
    return raw_name


def rancher_stack_service(labels: Dict[str, str]) -> Optional[StackService]:
    """Rancher 1.x: ``io.rancher.stack_service.name = <stack>/<service>``."""
    value = labels.get(RANCHER_STACK_SERVICE, "")
    if not value:
        return None

    stack, sep, service = value.partition("/")
    if not sep:
        # Not fatal: keep the container visible under an empty stack
        error = MalformedLabelError(RANCHER_STACK_SERVICE, value, "missing '/' separator")
        logger.warning(f"{error}; reporting it as service with an empty stack")
        return "", value
    return stack, service


def swarm_stack_service(labels: Dict[str, str]) -> Optional[StackService]:
    """Docker swarm: service name, optionally qualified by the stack namespace."""
    service_name = labels.get(SWARM_SERVICE_NAME, "")
    if not service_name:
        return None

    namespace = labels.get(SWARM_STACK_NAMESPACE, "")
    if namespace:
        prefix = f"{namespace}_"
        if service_name.startswith(prefix):
            return namespace, service_name[len(prefix):]
        return namespace, service_name

    # No namespace label, guess from the "<stack>_<service>" naming scheme
    parts = service_name.split("_", 1)
    if len(parts) > 1:
        return parts[0], parts[1]
    return UNKNOWN_STACK, service_name


def compose_stack_service(labels: Dict[str, str]) -> Optional[StackService]:
    """Docker compose project and service. Always matches, possibly with empty values."""
    return labels.get(COMPOSE_PROJECT, ""), labels.get(COMPOSE_SERVICE, "")


# Evaluated in order, first match wins
RESOLVERS: List[Callable[[Dict[str, str]], Optional[StackService]]] = [
    rancher_stack_service,
    swarm_stack_service,
    compose_stack_service,
]


def resolve_stack_service(labels: Dict[str, str]) -> StackService:
    for resolver in RESOLVERS:
        result = resolver(labels)
        if result is not None:
            return result
    return "", ""


def resolve_identity(raw_name: str, labels: Optional[Dict[str, str]]) -> Identity:
    """Build the identity of a container from its name and label set."""
    stack, service = resolve_stack_service(labels or {})
    return Identity(
        display_name=normalize_name(raw_name),
        stack=stack,
        service=service,
    )
