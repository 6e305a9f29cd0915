"""Constant-product AMM core: pool, liquidity shares, events and daily stats."""

from simple_dex.core.ledger import FungibleLedger
from simple_dex.core.pool import Pool
from simple_dex.errors import DEXError
from simple_dex.units import format_units, parse_units

__all__ = [
    "DEXError",
    "FungibleLedger",
    "Pool",
    "format_units",
    "parse_units",
]
