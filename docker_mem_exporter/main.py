"""Main entry point for the Docker container memory exporter."""
import argparse
import logging
import signal
import sys
import threading

from pythonjsonlogger import jsonlogger

from docker_mem_exporter.cgroup import CGROUP_V1, CgroupReader
from docker_mem_exporter.collector import SnapshotAssembler
from docker_mem_exporter.config import CgroupConfig, load_config
from docker_mem_exporter.control_api import ControlAPI
from docker_mem_exporter.errors import ExporterError
from docker_mem_exporter.prom_exporter import DockerMemoryCollector, PrometheusExporter, SelfMetrics
from docker_mem_exporter.runtime import DockerRuntime, create_docker_client


def make_formatter(log_format: str) -> logging.Formatter:
    """Build the log formatter for the configured format."""
    if log_format == "json":
        return jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            rename_fields={"asctime": "time", "levelname": "level", "name": "logger"},
        )
    return logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )


def setup_logging(log_level: str, log_format: str):
    """Setup logging configuration."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(make_formatter(log_format))
    logging.basicConfig(level=level, handlers=[handler])

    # Reduce noise from some libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("docker").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def create_cgroup_reader(config: CgroupConfig) -> CgroupReader:
    """Build the cgroup reader, warning when the detected layout cannot be read."""
    logger = logging.getLogger(__name__)

    version = None if config.version == "auto" else config.version
    reader = CgroupReader(config.mount_root, version)
    logger.info(f"Reading cgroup {reader.version} memory accounting")
    if reader.version != CGROUP_V1:
        logger.warning(
            f"cgroup {reader.version} is not supported, every scrape will fail until the "
            f"exporter runs on a cgroup v1 host or cgroup.version is set"
        )
    return reader


def main():
    """Main function."""
    parser = argparse.ArgumentParser(
        description="Docker Memory Exporter - per-container memory metrics for Prometheus"
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to configuration YAML file (defaults and environment only if omitted)"
    )

    args = parser.parse_args()

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    setup_logging(config.global_.log_level, config.global_.log_format)
    logger = logging.getLogger(__name__)

    logger.info("Docker Memory Exporter")
    if args.config:
        logger.info(f"Configuration loaded from: {args.config}")
    logger.info(f"cgroup mount root: {config.cgroup.mount_root} (version: {config.cgroup.version})")
    logger.info(f"Scrape timeout: {config.scrape.timeout_s}s, workers: {config.scrape.max_workers}")

    try:
        runtime = DockerRuntime(create_docker_client(config.docker))
    except ExporterError as e:
        logger.error(f"Failed to initialize Docker client: {e}")
        sys.exit(1)

    reader = create_cgroup_reader(config.cgroup)

    assembler = SnapshotAssembler(runtime, reader, max_workers=config.scrape.max_workers)

    collector = DockerMemoryCollector(assembler, scrape_timeout=config.scrape.timeout_s)
    exporter = PrometheusExporter(config.exporter, collector)
    if config.exporter.self_metrics:
        collector.self_metrics = SelfMetrics(registry=exporter.registry)

    try:
        exporter.start()
    except Exception:
        sys.exit(1)

    # Setup signal handlers
    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if not config.global_.control_api_enabled:
        # The metrics server runs in a daemon thread, keep the process alive
        threading.Event().wait()
        return

    control_api = ControlAPI(config, collector, runtime)

    # Run control API (blocking)
    logger.info(f"Starting control API on port {config.global_.control_api_port}")
    try:
        control_api.run(
            host=config.exporter.bind_address,
            port=config.global_.control_api_port
        )
    except Exception as e:
        logger.error(f"Control API error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
