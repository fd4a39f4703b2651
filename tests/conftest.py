"""Pytest configuration and fixtures for PDB Controller tests."""

from datetime import timedelta

import pytest

from factories import OWNER_LABELS, FakeCluster
from pdb_controller.config import ControllerConfig


@pytest.fixture
def cluster() -> FakeCluster:
    """Empty cluster with a single "default" namespace."""
    return FakeCluster()


@pytest.fixture
def config() -> ControllerConfig:
    """Configuration with a one hour non-ready TTL."""
    return ControllerConfig(owner_labels=dict(OWNER_LABELS), non_ready_ttl=timedelta(hours=1))
