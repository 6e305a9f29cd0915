"""Core AMM components."""

from simple_dex.core.events import (
    DailyStatsUpdated,
    EventLog,
    LiquidityAdded,
    LiquidityRemoved,
    Swap,
)
from simple_dex.core.ledger import FungibleLedger
from simple_dex.core.pool import Pool
from simple_dex.core.stats import DayBucket, StatsTracker

__all__ = [
    "DailyStatsUpdated",
    "DayBucket",
    "EventLog",
    "FungibleLedger",
    "LiquidityAdded",
    "LiquidityRemoved",
    "Pool",
    "StatsTracker",
    "Swap",
]
