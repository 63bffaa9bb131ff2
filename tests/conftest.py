"""Pytest configuration and fixtures for HAR tests."""

import os

import pytest

from har.ir import Dependency, DependencyType, Graph, Operation, OperationType


@pytest.fixture(autouse=True)
def isolate_har_environment():
    """
    Clear HAR_* environment variables for each test.

    Settings are read from the environment at call time, so a developer's
    shell configuration must not leak into assertions.
    """
    saved = {key: value for key, value in os.environ.items() if key.startswith("HAR_")}
    for key in saved:
        del os.environ[key]
    yield
    for key in [key for key in os.environ if key.startswith("HAR_")]:
        del os.environ[key]
    os.environ.update(saved)


@pytest.fixture
def install_nginx() -> Operation:
    """Package install operation with a fixed id."""
    return Operation.create(
        OperationType.PACKAGE_INSTALL, {"package": "nginx"}, id="A"
    )


@pytest.fixture
def start_nginx() -> Operation:
    """Service start operation with a fixed id."""
    return Operation.create(OperationType.SERVICE_START, {"service": "nginx"}, id="B")


@pytest.fixture
def nginx_graph(install_nginx: Operation, start_nginx: Operation) -> Graph:
    """Install nginx, then start it."""
    return Graph.create(
        operations=[install_nginx, start_nginx],
        dependencies=[Dependency.create("A", "B", DependencyType.REQUIRES)],
    )
