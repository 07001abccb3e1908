"""
Shared pytest fixtures and configuration for stepgate tests.

This module provides:
- Settings isolation (no STEPGATE_* leakage between tests)
- Backend handle fixtures for direct and imported state machines
- A fresh grant registry per test
"""

import os
from pathlib import Path

import pytest

from stepgate.core.settings import reset_settings
from stepgate.core.tokens import Token
from stepgate.integration.backend import BackendHandle
from stepgate.integration.permissions import InMemoryGrantRegistry

ORDER_FLOW_ARN = "arn:aws:states:us-east-1:123456789012:stateMachine:OrderFlow"


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "scenarios" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Settings isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Strip STEPGATE_* variables and drop cached settings around each test."""
    for key in list(os.environ):
        if key.startswith("STEPGATE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(Path(__file__).parent)  # keep a developer .env out of tests
    reset_settings()
    yield
    reset_settings()


# =============================================================================
# Backend fixtures
# =============================================================================


@pytest.fixture
def order_flow() -> BackendHandle:
    """Directly defined state machine with a literal name."""
    return BackendHandle.direct(ORDER_FLOW_ARN, name="OrderFlow")


@pytest.fixture
def unnamed_flow() -> BackendHandle:
    """Directly defined state machine whose name is still a placeholder."""
    return BackendHandle.direct(
        Token.placeholder("StateMachine.Arn"),
        name=Token.placeholder("StateMachine.Name"),
    )


@pytest.fixture
def imported_flow() -> BackendHandle:
    """State machine referenced from an existing resource."""
    return BackendHandle.imported(
        "arn:aws:states:us-east-1:123456789012:stateMachine:Legacy",
        stack_path=["OrdersApp", "OrdersStack"],
    )


@pytest.fixture
def registry() -> InMemoryGrantRegistry:
    return InMemoryGrantRegistry()
