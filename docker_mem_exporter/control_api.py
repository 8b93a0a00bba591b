"""Control API for runtime inspection using FastAPI."""
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
import logging
import time

from docker_mem_exporter.config import Config

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogLevelRequest(BaseModel):
    """Request to change log level."""
    level: str


class ControlAPI:
    """FastAPI-based control API next to the /metrics endpoint."""

    def __init__(self, config: Config, collector, runtime):
        """
        Initialize control API.

        Args:
            config: Loaded exporter configuration
            collector: Prometheus collector holding the last scrape summary
            runtime: Container runtime, pinged by the health check
        """
        self.config = config
        self.collector = collector
        self.runtime = runtime
        self.start_time = time.time()
        self.app = FastAPI(title="Docker Memory Exporter Control API")

        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/healthz")
        def healthz():
            """Health check endpoint, unhealthy while Docker is unreachable."""
            if not self.runtime.ping():
                raise HTTPException(status_code=503, detail="Docker daemon unreachable")
            return {"status": "healthy", "timestamp": time.time()}

        @self.app.get("/status")
        def status():
            """Get exporter status and the outcome of the last scrape."""
            return {
                "uptime_seconds": time.time() - self.start_time,
                "last_scrape": self.collector.last_scrape(),
                "config": {
                    "exporter_port": self.config.exporter.port,
                    "cgroup_mount_root": self.config.cgroup.mount_root,
                    "cgroup_version": self.collector.assembler.reader.version,
                    "scrape_timeout_s": self.config.scrape.timeout_s,
                    "max_workers": self.config.scrape.max_workers,
                },
            }

        @self.app.post("/control/loglevel")
        def set_log_level(request: LogLevelRequest):
            """Change log level at runtime."""
            level = request.level.upper()

            if level not in LOG_LEVELS:
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid log level: {level}"
                )

            logging.getLogger().setLevel(getattr(logging, level))
            logger.info(f"Log level changed to: {level}")

            return {
                "status": "log_level_changed",
                "level": level,
                "timestamp": time.time()
            }

    def run(self, host: str = "0.0.0.0", port: int = 9477):
        """Run the API server."""
        import uvicorn
        uvicorn.run(self.app, host=host, port=port, log_level="info")
