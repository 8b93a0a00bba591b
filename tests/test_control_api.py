"""Tests for the control API."""
import logging

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry, generate_latest

from conftest import FakeRuntime, write_container
from docker_mem_exporter.cgroup import CgroupReader
from docker_mem_exporter.collector import SnapshotAssembler
from docker_mem_exporter.config import Config
from docker_mem_exporter.control_api import ControlAPI
from docker_mem_exporter.errors import RuntimeUnavailable
from docker_mem_exporter.prom_exporter import DockerMemoryCollector


def make_api(runtime, cgroup_root):
    collector = DockerMemoryCollector(SnapshotAssembler(runtime, CgroupReader(str(cgroup_root))))
    return ControlAPI(Config(), collector, runtime)


@pytest.fixture
def restore_log_level():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


def test_healthz(cgroup_root, shop_runtime):
    client = TestClient(make_api(shop_runtime, cgroup_root).app)
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_healthz_docker_down(cgroup_root):
    runtime = FakeRuntime(list_error=RuntimeUnavailable("down"))
    client = TestClient(make_api(runtime, cgroup_root).app)
    assert client.get("/healthz").status_code == 503


def test_status_reports_last_scrape(cgroup_root, shop_runtime):
    write_container(cgroup_root, "abc", usage="100", stat="")
    api = make_api(shop_runtime, cgroup_root)
    registry = CollectorRegistry()
    registry.register(api.collector)
    generate_latest(registry)

    body = TestClient(api.app).get("/status").json()

    assert body["last_scrape"]["success"] is True
    assert body["last_scrape"]["containers_seen"] == 1
    assert body["config"]["cgroup_version"] == "v1"
    assert body["config"]["exporter_port"] == 9476


def test_status_before_first_scrape(cgroup_root, shop_runtime):
    body = TestClient(make_api(shop_runtime, cgroup_root).app).get("/status").json()
    assert body["last_scrape"] == {}


def test_set_log_level(cgroup_root, shop_runtime, restore_log_level):
    client = TestClient(make_api(shop_runtime, cgroup_root).app)

    response = client.post("/control/loglevel", json={"level": "debug"})

    assert response.status_code == 200
    assert response.json()["level"] == "DEBUG"
    assert logging.getLogger().level == logging.DEBUG


def test_set_invalid_log_level(cgroup_root, shop_runtime):
    client = TestClient(make_api(shop_runtime, cgroup_root).app)
    assert client.post("/control/loglevel", json={"level": "chatty"}).status_code == 400
