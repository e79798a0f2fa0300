"""Pytest configuration and shared fixtures.

Provides common test fixtures and configuration for the structgraph test suite.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
import structlog

from structgraph.cli import build_sample
from structgraph_ir.builder import GraphBuilder
from structgraph_ir.manager import Manager
from structgraph_ir.model import Model


# Configure test logging; loggers are not cached so capture_logs() works
structlog.configure(
    processors=[
        structlog.testing.LogCapture(),
    ],
    logger_factory=structlog.testing.CapturingLoggerFactory(),
    cache_logger_on_first_use=False,
)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def model() -> Model:
    """Provide an empty model."""
    return Model()


@pytest.fixture
def builder(model: Model) -> GraphBuilder:
    """Provide a construction facade over the ``model`` fixture."""
    return GraphBuilder(model)


@pytest.fixture
def manager() -> Manager:
    """Provide a manager holding one empty model at index 0."""
    manager = Manager()
    manager.add_model()
    return manager


@pytest.fixture
def sample_manager() -> Manager:
    """Provide a manager whose model 0 holds the sample column graph."""
    manager = Manager()
    index = manager.add_model()
    build_sample(manager, index)
    return manager
