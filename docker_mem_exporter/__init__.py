"""Prometheus exporter for per-container memory usage, reservation and limit."""

__version__ = "0.1.0"
