"""Tests for configuration loading."""
import pytest

from docker_mem_exporter.config import Config, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "EXPORTER_PORT", "CGROUP_MOUNT_ROOT", "DOCKER_HOST"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_file():
    config = load_config()

    assert isinstance(config, Config)
    assert config.exporter.port == 9476
    assert config.cgroup.mount_root == "/host/sys/fs/cgroup"
    assert config.cgroup.version == "auto"
    assert config.docker.base_url is None
    assert config.scrape.max_workers == 1
    assert config.global_.log_level == "INFO"


def test_load_yaml(tmp_path):
    path = tmp_path / "exporter.yaml"
    path.write_text(
        "global:\n"
        "  log_level: debug\n"
        "exporter:\n"
        "  port: 9999\n"
        "cgroup:\n"
        "  mount_root: /sys/fs/cgroup\n"
        "  version: v1\n"
        "scrape:\n"
        "  max_workers: 4\n"
    )

    config = load_config(str(path))

    assert config.global_.log_level == "DEBUG"
    assert config.exporter.port == 9999
    assert config.cgroup.mount_root == "/sys/fs/cgroup"
    assert config.cgroup.version == "v1"
    assert config.scrape.max_workers == 4


def test_empty_yaml_uses_defaults(tmp_path):
    path = tmp_path / "exporter.yaml"
    path.write_text("")
    assert load_config(str(path)).exporter.port == 9476


def test_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "exporter.yaml"
    path.write_text("exporter:\n  port: 9999\n")
    monkeypatch.setenv("EXPORTER_PORT", "9100")
    monkeypatch.setenv("CGROUP_MOUNT_ROOT", "/cgroup")
    monkeypatch.setenv("DOCKER_HOST", "tcp://docker:2375")
    monkeypatch.setenv("LOG_LEVEL", "warning")

    config = load_config(str(path))

    assert config.exporter.port == 9100
    assert config.cgroup.mount_root == "/cgroup"
    assert config.docker.base_url == "tcp://docker:2375"
    assert config.global_.log_level == "WARNING"


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/exporter.yaml")


@pytest.mark.parametrize("content", [
    "exporter:\n  port: 70000\n",
    "scrape:\n  max_workers: 0\n",
    "scrape:\n  timeout_s: 0\n",
    "docker:\n  timeout_s: 0\n",
    "docker:\n  timeout_s: -5\n",
    "cgroup:\n  version: v3\n",
    "global:\n  log_level: loud\n",
])
def test_invalid_values(tmp_path, content):
    path = tmp_path / "exporter.yaml"
    path.write_text(content)
    with pytest.raises(ValueError):
        load_config(str(path))


def test_sample_config_loads():
    from pathlib import Path
    sample = Path(__file__).parent.parent / "configs" / "exporter.yaml"
    config = load_config(str(sample))
    assert config.docker.base_url == "unix:///var/run/docker.sock"
