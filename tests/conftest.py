"""Pytest configuration and shared fixtures for pool tests.

This module provides:
- Pytest markers for test categorization
- Shared fixtures for empty and seeded pools
"""

import pytest

from simple_dex.core.pool import Pool
from tests.fixtures.pool_fixtures import FakeClock, create_pool, ether


# ============================================================================
# Pytest Hooks
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "invariant: Property tests over randomized operation sequences"
    )
    config.addinivalue_line(
        "markers", "concurrency: Tests driving one pool from several threads"
    )
    config.addinivalue_line(
        "markers", "slow: Tests taking more than 5 seconds to run"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location and name."""
    for item in items:
        if "invariant" in item.nodeid:
            item.add_marker(pytest.mark.invariant)
        if "concurrency" in item.nodeid or "thread" in item.name:
            item.add_marker(pytest.mark.concurrency)


# ============================================================================
# Pool Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock starting at T0."""
    return FakeClock()


@pytest.fixture
def empty_pool(clock) -> Pool:
    """Pool with no liquidity; owner and users funded and approved."""
    return create_pool(clock=clock)


@pytest.fixture
def balanced_pool(clock) -> Pool:
    """Pool seeded by owner with (1000, 1000)."""
    return create_pool(ether(1000), ether(1000), clock=clock)


@pytest.fixture
def skewed_pool(clock) -> Pool:
    """Pool seeded by owner with (1000, 2000), price 2 B per A."""
    return create_pool(ether(1000), ether(2000), clock=clock)
