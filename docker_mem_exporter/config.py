"""Configuration models using Pydantic for validation."""
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator
import os


class GlobalConfig(BaseModel):
    """Global configuration settings."""
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"
    control_api_enabled: bool = True
    control_api_port: int = 9477

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level


class ExporterConfig(BaseModel):
    """Prometheus pull endpoint configuration."""
    port: int = 9476
    bind_address: str = "0.0.0.0"
    self_metrics: bool = True


class CgroupConfig(BaseModel):
    """Location and layout of the host's cgroup filesystem."""
    mount_root: str = "/host/sys/fs/cgroup"
    version: Literal["auto", "v1", "v2"] = "auto"


class DockerConfig(BaseModel):
    """Container runtime client configuration."""
    base_url: Optional[str] = None  # None -> docker.from_env()
    timeout_s: int = 10

    @field_validator('timeout_s')
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("timeout_s must be positive")
        return v


class ScrapeConfig(BaseModel):
    """Per-scrape behaviour."""
    timeout_s: float = 10.0
    max_workers: int = 1

    @field_validator('timeout_s')
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("timeout_s must be positive")
        return v

    @field_validator('max_workers')
    @classmethod
    def validate_workers(cls, v):
        if v < 1:
            raise ValueError("max_workers must be at least 1")
        return v


class Config(BaseModel):
    """Root configuration model."""
    global_: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    exporter: ExporterConfig = Field(default_factory=ExporterConfig)
    cgroup: CgroupConfig = Field(default_factory=CgroupConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    scrape: ScrapeConfig = Field(default_factory=ScrapeConfig)

    model_config = {"populate_by_name": True}

    @field_validator('global_')
    @classmethod
    def validate_control_port(cls, v):
        if not 0 < v.control_api_port < 65536:
            raise ValueError(f"control_api_port out of range: {v.control_api_port}")
        return v

    @field_validator('exporter')
    @classmethod
    def validate_exporter_port(cls, v):
        if not 0 < v.port < 65536:
            raise ValueError(f"exporter port out of range: {v.port}")
        return v


def _override(raw_config: dict, section: str, key: str, value):
    raw_config.setdefault(section, {})
    raw_config[section][key] = value


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate configuration from an optional YAML file."""
    import yaml

    raw_config = {}
    if config_path is not None:
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

    # Apply environment variable overrides
    if env_log_level := os.getenv('LOG_LEVEL'):
        _override(raw_config, 'global', 'log_level', env_log_level)

    if env_port := os.getenv('EXPORTER_PORT'):
        _override(raw_config, 'exporter', 'port', env_port)

    if env_mount_root := os.getenv('CGROUP_MOUNT_ROOT'):
        _override(raw_config, 'cgroup', 'mount_root', env_mount_root)

    if env_docker_host := os.getenv('DOCKER_HOST'):
        _override(raw_config, 'docker', 'base_url', env_docker_host)

    try:
        config = Config(**raw_config)
        return config
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")
