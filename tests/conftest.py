"""Pytest configuration for tfbridge tests."""

import pytest

from tfbridge import EagerSession, Graph, Ops, is_available


def pytest_configure(config):
    """Register the marker for tests that need the TensorFlow C library."""
    config.addinivalue_line(
        "markers", "native: test requires the TensorFlow C library"
    )


@pytest.fixture(scope="session")
def native():
    """Skip the test if the TensorFlow C library cannot be loaded."""
    if not is_available():
        pytest.skip("TensorFlow C library not available")


@pytest.fixture
def graph(native):
    with Graph() as g:
        yield g


@pytest.fixture
def eager(native):
    with EagerSession() as env:
        yield env


@pytest.fixture
def graph_ops(graph):
    return Ops.create(graph)


@pytest.fixture
def eager_ops(eager):
    return Ops.create(eager)
