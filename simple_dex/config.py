"""Shared configuration for pools and the simulator."""

from dataclasses import dataclass
import logging
import os
from typing import Optional

MAX_UINT256 = 2**256 - 1

BPS_DENOMINATOR = 10_000


@dataclass(frozen=True)
class PoolSettings:
    fee_bps: int = 30
    seconds_per_day: int = 86_400
    decimals: int = 18
    # Reject deposits off the pool ratio instead of minting by the minimum.
    reject_imbalanced_deposits: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.fee_bps < BPS_DENOMINATOR:
            raise ValueError(f"fee_bps must be in [0, {BPS_DENOMINATOR}), got {self.fee_bps}")
        if self.seconds_per_day <= 0:
            raise ValueError(f"seconds_per_day must be > 0, got {self.seconds_per_day}")
        if self.decimals < 0:
            raise ValueError(f"decimals must be >= 0, got {self.decimals}")


DEFAULT_SETTINGS = PoolSettings()


@dataclass(frozen=True)
class SimulationSettings:
    n_steps: int
    seconds_per_step: int
    start_timestamp: int
    liquidity_a: str
    liquidity_b: str
    trader_funds: str
    retail_arrival_rate: float
    retail_mean_size: float
    retail_size_sigma: float
    retail_a_for_b_prob: float


BASELINE_SIMULATION = SimulationSettings(
    n_steps=1000,
    seconds_per_step=60,
    start_timestamp=1_700_000_000,
    liquidity_a="10000",
    liquidity_b="10000",
    trader_funds="1000000",
    retail_arrival_rate=0.8,
    retail_mean_size=20.0,
    retail_size_sigma=1.2,
    retail_a_for_b_prob=0.5,
)


def resolve_log_level(name: Optional[str] = None) -> int:
    """Resolve a log level name, falling back to SIMPLE_DEX_LOG_LEVEL, then WARNING."""
    if name is None:
        name = os.environ.get("SIMPLE_DEX_LOG_LEVEL", "WARNING")
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level
