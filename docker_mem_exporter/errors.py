"""Exception types raised by the metrics pipeline."""


class ExporterError(Exception):
    """Base class for all exporter errors."""


class RuntimeUnavailable(ExporterError):
    """The container runtime could not answer a list or inspect call."""


class ContainerGone(ExporterError):
    """A listed container disappeared before it could be inspected."""

    def __init__(self, container_id: str):
        super().__init__(f"Container {container_id} no longer exists")
        self.container_id = container_id


class CgroupError(ExporterError):
    """Base class for cgroup pseudo-file read failures."""


class NotFoundError(CgroupError, FileNotFoundError):
    """A cgroup pseudo-file does not exist."""


class ParseError(CgroupError, ValueError):
    """A cgroup pseudo-file holds content that is not the expected format."""


class CgroupIOError(CgroupError, OSError):
    """Any other failure while reading a cgroup pseudo-file."""


class MalformedLabelError(ExporterError, ValueError):
    """An orchestrator label does not follow its expected shape."""

    def __init__(self, label: str, value: str, reason: str):
        super().__init__(f"Label {label}={value!r} is malformed: {reason}")
        self.label = label
        self.value = value


class UnsupportedCgroupVersion(ExporterError, NotImplementedError):
    """The host uses a cgroup hierarchy this exporter cannot read."""

    def __init__(self, version: str):
        super().__init__(f"cgroup {version} is not supported")
        self.version = version


class ScrapeCancelled(ExporterError):
    """A scrape was aborted by its deadline or a cancellation request."""
