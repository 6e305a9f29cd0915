"""Synthetic order flow for exercising a pool."""

from simple_dex.market.retail import RetailTrader, SwapOrder
from simple_dex.market.simulation import SimulationResult, SimulationRunner

__all__ = [
    "RetailTrader",
    "SimulationResult",
    "SimulationRunner",
    "SwapOrder",
]
