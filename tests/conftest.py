"""Pytest configuration and shared fixtures for the duelbench test suite."""

import logging
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from duelbench.config import Config
from tests.fakes import (FakeCatalogue, FakeCompiler, ScriptedEngine,
                         make_competitor)


# Configure test logging
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "integration: End-to-end runs through the whole matrix"
    )
    config.addinivalue_line(
        "markers", "error_handling: Error propagation and fail-fast behaviour"
    )
    config.addinivalue_line(
        "markers", "concurrency: Tests that exercise worker pools"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )


@pytest.fixture(autouse=True)
def propagate_duelbench_logs():
    """Let caplog see duelbench records even after setup_logging() detached them."""
    logger = logging.getLogger("duelbench")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture(scope="session")
def test_config_dict() -> Dict[str, Any]:
    """Load the repository's default config.yaml."""
    config_path = Path(__file__).parent.parent / "config.yaml"
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    return {}


@pytest.fixture(scope="session")
def test_config(test_config_dict) -> Config:
    return Config(test_config_dict)


@pytest.fixture(scope="function")
def engine() -> ScriptedEngine:
    return ScriptedEngine(max_ticks=50)


@pytest.fixture(scope="function")
def jitter_engine() -> ScriptedEngine:
    """Engine whose trials finish out of seed order."""
    return ScriptedEngine(max_ticks=50, jitter=True)


@pytest.fixture(scope="function")
def compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture(scope="function")
def catalogue() -> FakeCatalogue:
    return FakeCatalogue()


@pytest.fixture(scope="function")
def opponent():
    """Resident opponent; the fake engine ignores team 1 logic."""
    return make_competitor("idle", name="Enemy")


@pytest.fixture(scope="function")
def winner():
    return make_competitor("win", name="always-wins")


@pytest.fixture(scope="function")
def drawer():
    return make_competitor("draw", name="always-draws")
