"""
Pytest configuration and fixtures for nodemanifest tests.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Generator

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from nodemanifest.config import NodeManifestConfig, reset_config
from nodemanifest.queue import InMemoryManifestQueue
from nodemanifest.registry.base import InMemoryRegistry
from nodemanifest.registry.loader import RegistrySnapshotLoader
from nodemanifest.reporter import ErrorPayload


# ============================================================================
# Reporter
# ============================================================================


class CollectingReporter:
    """Reporter that records everything it is given."""

    def __init__(self) -> None:
        self.errors: list[ErrorPayload] = []
        self.warnings: list[str] = []
        self.infos: list[str] = []

    def error(self, payload: ErrorPayload) -> ErrorPayload:
        self.errors.append(payload)
        return payload

    def warn(self, message: str) -> str:
        self.warnings.append(message)
        return message

    def info(self, message: str) -> str:
        self.infos.append(message)
        return message


@pytest.fixture
def reporter() -> CollectingReporter:
    return CollectingReporter()


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _isolate_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Fresh config singleton and loader cache; no NODEMANIFEST_* leakage."""
    for key in list(os.environ):
        if key.startswith("NODEMANIFEST_"):
            monkeypatch.delenv(key)
    reset_config()
    RegistrySnapshotLoader.clear_cache()
    yield
    reset_config()
    RegistrySnapshotLoader.clear_cache()
    package_logger = logging.getLogger("nodemanifest")
    for handler in list(package_logger.handlers):
        if handler.get_name() == "nodemanifest-stream":
            package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def config(tmp_path: Path) -> NodeManifestConfig:
    return NodeManifestConfig(program_directory=str(tmp_path))


@pytest.fixture
def manifest_dir(config: NodeManifestConfig) -> Path:
    return config.get_manifest_dir()


# ============================================================================
# Registry / Queue Fixtures
# ============================================================================


@pytest.fixture
def registry() -> InMemoryRegistry:
    return InMemoryRegistry()


@pytest.fixture
def queue() -> InMemoryManifestQueue:
    return InMemoryManifestQueue()


# ============================================================================
# OTel Fixtures
# ============================================================================


_span_exporter = InMemorySpanExporter()
_provider = TracerProvider()
_provider.add_span_processor(SimpleSpanProcessor(_span_exporter))
trace.set_tracer_provider(_provider)


@pytest.fixture
def span_exporter() -> Generator[InMemorySpanExporter, None, None]:
    """Spans finished during the test."""
    _span_exporter.clear()
    yield _span_exporter
    _span_exporter.clear()
