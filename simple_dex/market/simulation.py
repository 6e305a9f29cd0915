"""Runs retail order flow against a freshly seeded pool."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from simple_dex.config import BASELINE_SIMULATION, DEFAULT_SETTINGS, MAX_UINT256, PoolSettings, SimulationSettings
from simple_dex.core.ledger import FungibleLedger
from simple_dex.core.pool import Pool
from simple_dex.errors import InsufficientBalance, InsufficientLiquidity
from simple_dex.market.retail import RetailTrader
from simple_dex.units import parse_units

logger = logging.getLogger(__name__)

PROVIDER = "provider"
TRADER = "trader"


@dataclass
class SimulationResult:
    """Final pool state and activity counts of one simulation."""
    seed: Optional[int]
    reserves: tuple[int, int]
    initial_k: int
    final_k: int
    shares_minted: int
    executed_swaps: int
    rejected_swaps: int
    volume_a: int
    volume_b: int
    total_fees: int
    apr: Decimal
    n_events: int
    pool: Pool = field(repr=False)

    @property
    def k_growth(self) -> Decimal:
        """Relative growth of k from retained fees."""
        if self.initial_k == 0:
            return Decimal("0")
        return Decimal(self.final_k - self.initial_k) / Decimal(self.initial_k)


class SimulationRunner:
    """Seeds a pool with one provider and replays random retail swaps."""

    def __init__(
        self,
        *,
        settings: SimulationSettings = BASELINE_SIMULATION,
        pool_settings: PoolSettings = DEFAULT_SETTINGS,
    ):
        self.settings = settings
        self.pool_settings = pool_settings

    def _build_pool(self) -> Pool:
        decimals = self.pool_settings.decimals
        token_a = FungibleLedger(name="Token A", symbol="TKA", address="token-a", decimals=decimals)
        token_b = FungibleLedger(name="Token B", symbol="TKB", address="token-b", decimals=decimals)
        pool = Pool(token_a, token_b, address="pool", settings=self.pool_settings, clock=lambda: 0)

        liquidity_a = parse_units(self.settings.liquidity_a, decimals)
        liquidity_b = parse_units(self.settings.liquidity_b, decimals)
        funds = parse_units(self.settings.trader_funds, decimals)
        for token, liquidity in ((token_a, liquidity_a), (token_b, liquidity_b)):
            token.mint(PROVIDER, liquidity)
            token.approve(PROVIDER, pool.address, liquidity)
            token.mint(TRADER, funds)
            token.approve(TRADER, pool.address, MAX_UINT256)
        return pool

    def run(self, seed: Optional[int] = None) -> SimulationResult:
        s = self.settings
        pool = self._build_pool()
        decimals = self.pool_settings.decimals
        shares = pool.add_liquidity(
            PROVIDER,
            parse_units(s.liquidity_a, decimals),
            parse_units(s.liquidity_b, decimals),
            timestamp=s.start_timestamp,
        )
        initial_k = pool.k

        trader = RetailTrader(
            arrival_rate=s.retail_arrival_rate,
            mean_size=s.retail_mean_size,
            size_sigma=s.retail_size_sigma,
            a_for_b_prob=s.retail_a_for_b_prob,
            decimals=decimals,
            seed=seed,
        )

        executed = 0
        rejected = 0
        timestamp = s.start_timestamp
        for step in range(s.n_steps):
            timestamp = s.start_timestamp + step * s.seconds_per_step
            for order in trader.generate_orders():
                try:
                    if order.is_a_for_b:
                        pool.swap_a_for_b(TRADER, order.amount_in, timestamp=timestamp)
                    else:
                        pool.swap_b_for_a(TRADER, order.amount_in, timestamp=timestamp)
                    executed += 1
                except (InsufficientLiquidity, InsufficientBalance) as e:
                    logger.debug("Step %d: swap rejected: %s", step, e)
                    rejected += 1

        volume_a, volume_b = pool.get_volume_24h(timestamp)
        logger.info("Simulation finished: %d swaps executed, %d rejected", executed, rejected)
        return SimulationResult(
            seed=seed,
            reserves=pool.get_reserves(),
            initial_k=initial_k,
            final_k=pool.k,
            shares_minted=shares,
            executed_swaps=executed,
            rejected_swaps=rejected,
            volume_a=volume_a,
            volume_b=volume_b,
            total_fees=pool.total_fees_collected,
            apr=pool.get_apr(timestamp),
            n_events=len(pool.events),
            pool=pool,
        )
