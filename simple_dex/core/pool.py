"""Two-asset constant-product pool with liquidity shares."""

import logging
import math
import threading
import time
from contextlib import ExitStack, contextmanager
from decimal import Decimal
from typing import Callable, Iterator, List, Optional, Tuple

from simple_dex.config import BPS_DENOMINATOR, DEFAULT_SETTINGS, PoolSettings
from simple_dex.core.events import (
    DailyStatsUpdated,
    EventLog,
    LiquidityAdded,
    LiquidityRemoved,
    PoolEvent,
    Swap,
)
from simple_dex.core.ledger import Address, FungibleLedger, checked_add, checked_mul
from simple_dex.core.stats import StatsTracker
from simple_dex.errors import (
    DEXError,
    EmptyPool,
    ImbalancedDeposit,
    InsufficientLiquidity,
    InsufficientShares,
    ZeroAmount,
)

logger = logging.getLogger(__name__)


def _check_input(amount: int, name: str) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError(f"{name} must be an int, got {type(amount).__name__}")
    if amount < 0:
        raise ValueError(f"{name} must be >= 0, got {amount}")
    if amount == 0:
        raise ZeroAmount(f"{name} must be > 0")


class Pool:
    """Constant-product AMM over two fungible assets.

    Implements the x * y = k invariant with a fee taken on the input.
    The fee stays in the pool as reserve growth, so k never decreases
    across a swap:
    - Output: out = in' * reserve_out / (reserve_in + in'), in' = in * (1 - f)
    - Reserves: reserve_in += in (full amount), reserve_out -= out
    - Liquidity shares are minted as sqrt(a * b) on the first deposit
      and pro rata afterwards

    Each mutating operation is a transaction: it runs under the pool lock
    and the locks of all three ledgers, and any failure restores the
    ledgers and reserves exactly. Ledger reads wait for a running
    transaction, so they never see its uncommitted transfers.

    Events are recorded on commit, still under the pool lock, and
    delivered to subscribers after the lock is released. Reserve reads
    take no lock: reserves are swapped as one tuple, so get_reserves()
    is always a consistent pair, but a reader may see the new reserves
    shortly before the matching events are in the log.
    """

    def __init__(
        self,
        token_a: FungibleLedger,
        token_b: FungibleLedger,
        address: Address = "pool",
        settings: PoolSettings = DEFAULT_SETTINGS,
        clock: Callable[[], float] = time.time,
    ):
        if token_a.address == token_b.address:
            raise ValueError("token_a and token_b must be different ledgers")
        if address in (token_a.address, token_b.address):
            raise ValueError(f"Pool address {address!r} collides with a token address")

        self.token_a = token_a
        self.token_b = token_b
        self.address = address
        self.settings = settings
        self.shares = FungibleLedger(
            name=f"{token_a.symbol}-{token_b.symbol} LP",
            symbol="SDEX-LP",
            address=f"{address}:shares",
            decimals=settings.decimals,
        )
        self.stats = StatsTracker(settings.seconds_per_day)
        self.events = EventLog()

        self._clock = clock
        self._reserves: Tuple[int, int] = (0, 0)
        self._lock = threading.RLock()

        # Fee multiplier in lowest terms, e.g. 30 bps -> 997 / 1000
        gcd = math.gcd(BPS_DENOMINATOR - settings.fee_bps, BPS_DENOMINATOR)
        self._fee_numerator = (BPS_DENOMINATOR - settings.fee_bps) // gcd
        self._fee_denominator = BPS_DENOMINATOR // gcd

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_reserves(self) -> Tuple[int, int]:
        return self._reserves

    @property
    def k(self) -> int:
        """The constant product invariant."""
        reserve_a, reserve_b = self._reserves
        return reserve_a * reserve_b

    @property
    def spot_price(self) -> Decimal:
        """Current price of A in B before fees."""
        reserve_a, reserve_b = self._reserves
        if reserve_a == 0:
            return Decimal("0")
        return Decimal(reserve_b) / Decimal(reserve_a)

    @property
    def total_shares(self) -> int:
        return self.shares.total_supply

    def share_balance_of(self, owner: Address) -> int:
        return self.shares.balance_of(owner)

    def _quote(self, amount_in: int, reserve_in: int, reserve_out: int) -> Tuple[int, int]:
        """Return (amount_out, fee) for `amount_in` against the given reserves."""
        after_fee = checked_mul(amount_in, self._fee_numerator) // self._fee_denominator
        fee = amount_in - after_fee
        denominator = checked_add(reserve_in, after_fee)
        if denominator == 0:
            return 0, fee
        return checked_mul(after_fee, reserve_out) // denominator, fee

    def get_amount_out(self, amount_in: int, is_a_for_b: bool) -> int:
        """Quote a swap without executing it.

        Args:
            amount_in: Input amount in smallest units
            is_a_for_b: True to sell A for B, False to sell B for A

        Returns:
            Output amount the swap would pay at current reserves (0 on an
            empty pool)
        """
        _check_input(amount_in, "amount_in")
        reserve_a, reserve_b = self._reserves
        if is_a_for_b:
            amount_out, _ = self._quote(amount_in, reserve_a, reserve_b)
        else:
            amount_out, _ = self._quote(amount_in, reserve_b, reserve_a)
        return amount_out

    def _now(self, timestamp: Optional[int]) -> int:
        if timestamp is None:
            return int(self._clock())
        if isinstance(timestamp, bool) or not isinstance(timestamp, int) or timestamp < 0:
            raise ValueError(f"timestamp must be a non-negative int, got {timestamp!r}")
        return timestamp

    def _today(self, timestamp: Optional[int]) -> int:
        return self.stats.day_index(self._now(timestamp))

    def get_volume_24h(self, timestamp: Optional[int] = None) -> Tuple[int, int]:
        """Input volume of today's UTC day as (A->B volume, B->A volume)."""
        return self.stats.volume_24h(self._today(timestamp))

    def get_fees_24h(self, timestamp: Optional[int] = None) -> int:
        return self.stats.fees_24h(self._today(timestamp))

    def get_transactions_24h(self, timestamp: Optional[int] = None) -> int:
        return self.stats.transactions_24h(self._today(timestamp))

    def get_total_liquidity(self) -> int:
        """Reserves valued one-for-one: reserve_a + reserve_b."""
        reserve_a, reserve_b = self._reserves
        return reserve_a + reserve_b

    def get_apr(self, timestamp: Optional[int] = None) -> Decimal:
        return self.stats.apr(self._today(timestamp), self.get_total_liquidity())

    def get_liquidity_providers_count(self) -> int:
        return self.shares.holders()

    @property
    def total_fees_collected(self) -> int:
        return self.stats.total_fees_collected

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[List[PoolEvent]]:
        """Run one operation atomically and publish its events on commit."""
        ledgers = sorted((self.token_a, self.token_b, self.shares), key=lambda l: l.address)
        with self._lock:
            with ExitStack() as stack:
                for ledger in ledgers:
                    stack.enter_context(ledger.lock)
                snapshots = [(ledger, ledger.snapshot()) for ledger in ledgers]
                reserves = self._reserves
                pending: List[PoolEvent] = []
                try:
                    yield pending
                except BaseException as e:
                    for ledger, snapshot in snapshots:
                        ledger.restore(snapshot)
                    self._reserves = reserves
                    if isinstance(e, DEXError):
                        logger.info("%s rejected: %s: %s", operation, type(e).__name__, e)
                    raise
            self.events.record(pending)
        # Subscribers run outside the pool lock so they may call other pools.
        self.events.dispatch()
        logger.debug("%s committed, reserves=%s", operation, self._reserves)

    def add_liquidity(
        self,
        sender: Address,
        amount_a: int,
        amount_b: int,
        timestamp: Optional[int] = None,
    ) -> int:
        """Deposit both assets and mint liquidity shares to `sender`.

        The sender must hold and have approved the pool for both amounts.
        The first deposit sets the price and mints floor(sqrt(a * b))
        shares. Later deposits mint the smaller of the two pro-rata
        amounts; the excess of the over-supplied asset stays in the pool
        for existing holders, unless the pool is configured to reject
        off-ratio deposits.

        Returns:
            Number of shares minted

        Raises:
            ZeroAmount: If either amount is zero
            ImbalancedDeposit: If rejecting off-ratio deposits and this is one
            InsufficientLiquidity: If the deposit would mint zero shares
            InsufficientAllowance, InsufficientBalance: From the asset ledgers
        """
        _check_input(amount_a, "amount_a")
        _check_input(amount_b, "amount_b")
        now = self._now(timestamp)

        with self._transaction("add_liquidity") as pending:
            reserve_a, reserve_b = self._reserves
            supply = self.shares.total_supply
            if supply == 0:
                minted = math.isqrt(checked_mul(amount_a, amount_b))
            else:
                if self.settings.reject_imbalanced_deposits:
                    self._require_pool_ratio(amount_a, amount_b, reserve_a, reserve_b)
                minted = min(
                    checked_mul(amount_a, supply) // reserve_a,
                    checked_mul(amount_b, supply) // reserve_b,
                )
            if minted == 0:
                raise InsufficientLiquidity("Deposit too small to mint any shares")

            new_reserves = (checked_add(reserve_a, amount_a), checked_add(reserve_b, amount_b))
            self.token_a.transfer_from(self.address, sender, self.address, amount_a)
            self.token_b.transfer_from(self.address, sender, self.address, amount_b)
            self.shares.mint(sender, minted)
            self._reserves = new_reserves
            pending.append(LiquidityAdded(
                provider=sender,
                amount_a=amount_a,
                amount_b=amount_b,
                shares_minted=minted,
                timestamp=now,
            ))
        return minted

    @staticmethod
    def _require_pool_ratio(amount_a: int, amount_b: int, reserve_a: int, reserve_b: int) -> None:
        """Accept amount_b only if it is the pool-ratio quote for amount_a, floor or ceiling."""
        product = checked_mul(amount_a, reserve_b)
        low = product // reserve_a
        high = -(-product // reserve_a)
        if not low <= amount_b <= high:
            raise ImbalancedDeposit(
                f"Deposit of {amount_a} A needs {low} B at the pool ratio, got {amount_b}"
            )

    def remove_liquidity(
        self,
        sender: Address,
        share_amount: int,
        timestamp: Optional[int] = None,
    ) -> Tuple[int, int]:
        """Burn `share_amount` of sender's shares and pay out both assets pro rata.

        Returns:
            (amount_a, amount_b) paid to the sender

        Raises:
            ZeroAmount: If share_amount is zero
            EmptyPool: If no shares are outstanding
            InsufficientShares: If sender holds fewer shares
            InsufficientLiquidity: If either payout rounds down to zero
        """
        _check_input(share_amount, "share_amount")
        now = self._now(timestamp)

        with self._transaction("remove_liquidity") as pending:
            supply = self.shares.total_supply
            if supply == 0:
                raise EmptyPool("Pool has no liquidity shares outstanding")
            held = self.shares.balance_of(sender)
            if share_amount > held:
                raise InsufficientShares(f"{sender} holds {held} shares, cannot redeem {share_amount}")

            reserve_a, reserve_b = self._reserves
            amount_a = checked_mul(share_amount, reserve_a) // supply
            amount_b = checked_mul(share_amount, reserve_b) // supply
            if amount_a == 0 or amount_b == 0:
                raise InsufficientLiquidity("Redemption too small to pay out both assets")

            self.shares.burn(sender, share_amount)
            self.token_a.transfer(self.address, sender, amount_a)
            self.token_b.transfer(self.address, sender, amount_b)
            self._reserves = (reserve_a - amount_a, reserve_b - amount_b)
            pending.append(LiquidityRemoved(
                provider=sender,
                amount_a=amount_a,
                amount_b=amount_b,
                shares_burned=share_amount,
                timestamp=now,
            ))
        return amount_a, amount_b

    def swap_a_for_b(self, sender: Address, amount_in: int, timestamp: Optional[int] = None) -> int:
        """Sell `amount_in` of A for B. Returns the B paid out."""
        return self._swap(sender, amount_in, True, timestamp)

    def swap_b_for_a(self, sender: Address, amount_in: int, timestamp: Optional[int] = None) -> int:
        """Sell `amount_in` of B for A. Returns the A paid out."""
        return self._swap(sender, amount_in, False, timestamp)

    def _swap(
        self,
        sender: Address,
        amount_in: int,
        is_a_for_b: bool,
        timestamp: Optional[int],
    ) -> int:
        _check_input(amount_in, "amount_in")
        now = self._now(timestamp)
        if is_a_for_b:
            token_in, token_out = self.token_a, self.token_b
        else:
            token_in, token_out = self.token_b, self.token_a
        operation = "swap_a_for_b" if is_a_for_b else "swap_b_for_a"

        with self._transaction(operation) as pending:
            reserve_a, reserve_b = self._reserves
            reserve_in, reserve_out = (reserve_a, reserve_b) if is_a_for_b else (reserve_b, reserve_a)
            amount_out, fee = self._quote(amount_in, reserve_in, reserve_out)
            if amount_out == 0:
                raise InsufficientLiquidity(f"Swap of {amount_in} would pay out nothing")
            if amount_out >= reserve_out:
                raise InsufficientLiquidity(f"Swap of {amount_in} would drain the {token_out.symbol} reserve")

            new_in = checked_add(reserve_in, amount_in)
            new_out = reserve_out - amount_out
            token_in.transfer_from(self.address, sender, self.address, amount_in)
            token_out.transfer(self.address, sender, amount_out)
            bucket = self.stats.record_swap(
                self.stats.day_index(now), amount_in, amount_out, fee, is_a_for_b
            )
            self._reserves = (new_in, new_out) if is_a_for_b else (new_out, new_in)
            pending.append(Swap(
                user=sender,
                token_in=token_in.address,
                token_out=token_out.address,
                amount_in=amount_in,
                amount_out=amount_out,
                fee=fee,
                timestamp=now,
            ))
            pending.append(DailyStatsUpdated(
                day=bucket.day,
                volume_a=bucket.volume_a,
                volume_b=bucket.volume_b,
                fees=bucket.fees,
                transactions=bucket.tx_count,
            ))
        return amount_out
