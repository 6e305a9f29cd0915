"""Retail trader simulation with Poisson arrivals."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import numpy as np

from simple_dex.units import parse_units


@dataclass
class SwapOrder:
    """A retail swap to be sent to a pool."""
    is_a_for_b: bool  # True sells A for B
    amount_in: int    # Smallest units of the input asset


class RetailTrader:
    """Generates retail swap flow with Poisson arrivals.

    Retail traders arrive according to a Poisson process and submit
    swaps of lognormally distributed size in either direction. They are
    uninformed and ignore the pool price.
    """

    def __init__(
        self,
        arrival_rate: float = 1.0,
        mean_size: float = 1.0,
        size_sigma: float = 1.2,
        a_for_b_prob: float = 0.5,
        decimals: int = 18,
        seed: Optional[int] = None,
    ):
        """
        Args:
            arrival_rate: Expected number of swaps per time step (lambda)
            mean_size: Mean swap size in whole tokens of the input asset
            size_sigma: Lognormal sigma (log-space)
            a_for_b_prob: Probability that a swap sells A for B
            decimals: Token decimals used to convert sizes to smallest units
            seed: Random seed for reproducibility
        """
        if arrival_rate < 0:
            raise ValueError(f"arrival_rate must be >= 0, got {arrival_rate}")
        if not 0.0 <= a_for_b_prob <= 1.0:
            raise ValueError(f"a_for_b_prob must be in [0, 1], got {a_for_b_prob}")
        self.arrival_rate = arrival_rate
        self.mean_size = mean_size
        self.size_sigma = size_sigma
        self.a_for_b_prob = a_for_b_prob
        self.decimals = decimals
        self._rng = np.random.default_rng(seed)

    def reset(self, seed: Optional[int] = None) -> None:
        """Reset the random state."""
        if seed is not None:
            self._rng = np.random.default_rng(seed)

    def generate_orders(self) -> list[SwapOrder]:
        """Generate retail orders for one time step.

        Returns:
            List of swap orders (may be empty if no arrivals)
        """
        n_arrivals = self._rng.poisson(self.arrival_rate)

        orders = []
        for _ in range(n_arrivals):
            # Lognormal sizes with mean = mean_size
            sigma = max(self.size_sigma, 0.01)
            mean = max(self.mean_size, 0.01)
            mu = float(np.log(mean) - 0.5 * sigma * sigma)
            size = Decimal(str(self._rng.lognormal(mu, sigma)))
            # Truncate to the token's precision
            size = size.quantize(Decimal(1).scaleb(-min(self.decimals, 12)))
            amount_in = parse_units(size, self.decimals)
            if amount_in == 0:
                continue

            is_a_for_b = bool(self._rng.random() < self.a_for_b_prob)
            orders.append(SwapOrder(is_a_for_b=is_a_for_b, amount_in=amount_in))

        return orders
