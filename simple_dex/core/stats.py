"""Per-UTC-day trading statistics."""

import threading
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_DOWN, localcontext
from typing import Dict, List, Optional, Tuple

import pandas as pd

from simple_dex.core.ledger import checked_add

DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class DayBucket:
    """Cumulative totals for one UTC day.

    volume_a counts A->B input, volume_b counts B->A input. Fees are
    summed in input-asset units regardless of direction.
    """
    day: int
    volume_a: int = 0
    volume_b: int = 0
    fees: int = 0
    tx_count: int = 0


class StatsTracker:
    """Aggregates swaps into calendar-day buckets.

    The "24h" figures are the totals of the bucket for the current UTC
    day, so they reset at midnight rather than sliding. A bucket is
    created on the first swap of its day and never changes once a later
    day has a bucket.
    """

    def __init__(self, seconds_per_day: int = 86_400):
        self.seconds_per_day = seconds_per_day
        self._buckets: Dict[int, DayBucket] = {}
        self._latest_day: Optional[int] = None
        self._total_fees = 0
        self._lock = threading.Lock()

    def day_index(self, timestamp: int) -> int:
        return timestamp // self.seconds_per_day

    @property
    def total_fees_collected(self) -> int:
        """Fees across all days, in input-asset units."""
        return self._total_fees

    def record_swap(
        self,
        day: int,
        amount_in: int,
        amount_out: int,
        fee: int,
        is_a_for_b: bool,
    ) -> DayBucket:
        """Add one swap to the bucket of `day` and return its new totals.

        Volume counts the input side only; amount_out is not aggregated.

        Raises:
            ValueError: If `day` precedes the latest recorded day
            ArithmeticOverflow: If a total would exceed uint256
        """
        with self._lock:
            if self._latest_day is not None and day < self._latest_day:
                raise ValueError(
                    f"Day {day} is before the latest recorded day {self._latest_day}"
                )
            bucket = self._buckets.get(day, DayBucket(day=day))
            if is_a_for_b:
                bucket = replace(bucket, volume_a=checked_add(bucket.volume_a, amount_in))
            else:
                bucket = replace(bucket, volume_b=checked_add(bucket.volume_b, amount_in))
            bucket = replace(
                bucket,
                fees=checked_add(bucket.fees, fee),
                tx_count=bucket.tx_count + 1,
            )
            total_fees = checked_add(self._total_fees, fee)

            self._buckets[day] = bucket
            self._latest_day = day
            self._total_fees = total_fees
            return bucket

    def bucket(self, day: int) -> DayBucket:
        """Totals for `day`; an empty bucket if nothing was recorded."""
        return self._buckets.get(day, DayBucket(day=day))

    def volume_24h(self, day: int) -> Tuple[int, int]:
        bucket = self.bucket(day)
        return bucket.volume_a, bucket.volume_b

    def fees_24h(self, day: int) -> int:
        return self.bucket(day).fees

    def transactions_24h(self, day: int) -> int:
        return self.bucket(day).tx_count

    def apr(self, day: int, total_liquidity: int) -> Decimal:
        """Annualized fee yield of `day` as a percentage, two places.

        fees * 365 * 100 / total_liquidity, truncated; 0 for an empty pool.
        """
        if total_liquidity <= 0:
            return Decimal("0.00")
        fees = self.fees_24h(day)
        with localcontext() as ctx:
            ctx.prec = 100
            ratio = Decimal(fees * DAYS_PER_YEAR * 100) / Decimal(total_liquidity)
            return ratio.quantize(Decimal("0.01"), rounding=ROUND_DOWN)

    def history(self) -> List[DayBucket]:
        """All buckets, oldest day first."""
        with self._lock:
            return [self._buckets[day] for day in sorted(self._buckets)]

    def to_frame(self) -> pd.DataFrame:
        """Daily buckets as a DataFrame with one row per day.

        Columns: day, date, volume_a, volume_b, fees, tx_count. Amounts
        stay integers (object dtype, since they may exceed int64).
        """
        columns = ["day", "date", "volume_a", "volume_b", "fees", "tx_count"]
        rows = [
            {
                "day": b.day,
                "date": pd.Timestamp(b.day * self.seconds_per_day, unit="s", tz="UTC").date(),
                "volume_a": b.volume_a,
                "volume_b": b.volume_b,
                "fees": b.fees,
                "tx_count": b.tx_count,
            }
            for b in self.history()
        ]
        df = pd.DataFrame(rows, columns=columns)
        for col in ("volume_a", "volume_b", "fees"):
            df[col] = df[col].astype(object)
        return df
