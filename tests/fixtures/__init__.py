"""Test fixtures for pool correctness testing."""

from tests.fixtures.pool_fixtures import (
    DAY,
    OWNER,
    T0,
    USER1,
    USER2,
    FakeClock,
    PoolStateSnapshot,
    create_pool,
    create_tokens,
    ether,
    fund,
    snapshot_pool_state,
)

__all__ = [
    "DAY",
    "OWNER",
    "T0",
    "USER1",
    "USER2",
    "FakeClock",
    "PoolStateSnapshot",
    "create_pool",
    "create_tokens",
    "ether",
    "fund",
    "snapshot_pool_state",
]
