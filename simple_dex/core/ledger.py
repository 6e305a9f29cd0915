"""Balance, allowance and supply bookkeeping for a fungible asset."""

import threading
from dataclasses import dataclass, field
from typing import Dict, Tuple

from simple_dex.config import MAX_UINT256
from simple_dex.errors import ArithmeticOverflow, InsufficientAllowance, InsufficientBalance

Address = str


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError(f"amount must be an int, got {type(amount).__name__}")
    if amount < 0:
        raise ValueError(f"amount must be >= 0, got {amount}")


def checked_add(a: int, b: int) -> int:
    """Add two uint256 values, raising instead of wrapping."""
    result = a + b
    if result > MAX_UINT256:
        raise ArithmeticOverflow(f"{a} + {b} exceeds uint256")
    return result


def checked_mul(a: int, b: int) -> int:
    """Multiply two uint256 values, raising instead of wrapping."""
    result = a * b
    if result > MAX_UINT256:
        raise ArithmeticOverflow(f"{a} * {b} exceeds uint256")
    return result


@dataclass(frozen=True)
class LedgerSnapshot:
    """Point-in-time copy of a ledger, used to roll back a failed transaction."""
    balances: Dict[Address, int]
    allowances: Dict[Tuple[Address, Address], int]
    total_supply: int


@dataclass
class FungibleLedger:
    """ERC-20 style ledger for one asset.

    Tracks per-owner balances, per-(owner, spender) allowances and the
    total supply. The sum of all balances always equals total_supply.

    Every mutation validates before it writes, so a failing call leaves
    the ledger untouched. Reads and mutations are serialized by a
    re-entrant lock that a pool also holds for the span of its own
    transactions, so outside readers wait for commit or rollback.
    """
    name: str
    symbol: str
    address: Address
    decimals: int = 18
    _balances: Dict[Address, int] = field(default_factory=dict, init=False, repr=False)
    _allowances: Dict[Tuple[Address, Address], int] = field(
        default_factory=dict, init=False, repr=False
    )
    _total_supply: int = field(default=0, init=False)
    lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False, compare=False)

    @property
    def total_supply(self) -> int:
        with self.lock:
            return self._total_supply

    def balance_of(self, owner: Address) -> int:
        with self.lock:
            return self._balances.get(owner, 0)

    def allowance(self, owner: Address, spender: Address) -> int:
        with self.lock:
            return self._allowances.get((owner, spender), 0)

    def holders(self) -> int:
        """Number of owners holding a non-zero balance."""
        with self.lock:
            return sum(1 for amount in self._balances.values() if amount > 0)

    def _set_balance(self, owner: Address, amount: int) -> None:
        if amount:
            self._balances[owner] = amount
        else:
            self._balances.pop(owner, None)

    def _move(self, sender: Address, to: Address, amount: int) -> None:
        balance = self.balance_of(sender)
        if amount > balance:
            raise InsufficientBalance(
                f"{sender} holds {balance} {self.symbol}, needs {amount}"
            )
        if sender == to:
            return
        new_to = checked_add(self.balance_of(to), amount)
        self._set_balance(sender, balance - amount)
        self._set_balance(to, new_to)

    def transfer(self, sender: Address, to: Address, amount: int) -> None:
        """Move `amount` from sender to `to`."""
        _check_amount(amount)
        with self.lock:
            self._move(sender, to, amount)

    def approve(self, owner: Address, spender: Address, amount: int) -> None:
        """Set the amount `spender` may move out of `owner`'s balance."""
        _check_amount(amount)
        if amount > MAX_UINT256:
            raise ArithmeticOverflow(f"allowance {amount} exceeds uint256")
        with self.lock:
            if amount:
                self._allowances[(owner, spender)] = amount
            else:
                self._allowances.pop((owner, spender), None)

    def transfer_from(self, spender: Address, owner: Address, to: Address, amount: int) -> None:
        """Move `amount` of owner's balance to `to` on the spender's authority.

        The allowance is checked before the balance. An allowance of
        MAX_UINT256 is unlimited and is not decremented.
        """
        _check_amount(amount)
        with self.lock:
            allowed = self.allowance(owner, spender)
            if amount > allowed:
                raise InsufficientAllowance(
                    f"{spender} may spend {allowed} {self.symbol} of {owner}, needs {amount}"
                )
            self._move(owner, to, amount)
            if allowed != MAX_UINT256:
                remaining = allowed - amount
                if remaining:
                    self._allowances[(owner, spender)] = remaining
                else:
                    del self._allowances[(owner, spender)]

    def mint(self, to: Address, amount: int) -> None:
        _check_amount(amount)
        with self.lock:
            new_supply = checked_add(self._total_supply, amount)
            new_balance = checked_add(self.balance_of(to), amount)
            self._total_supply = new_supply
            self._set_balance(to, new_balance)

    def burn(self, holder: Address, amount: int) -> None:
        _check_amount(amount)
        with self.lock:
            balance = self.balance_of(holder)
            if amount > balance:
                raise InsufficientBalance(
                    f"{holder} holds {balance} {self.symbol}, cannot burn {amount}"
                )
            self._set_balance(holder, balance - amount)
            self._total_supply -= amount

    def snapshot(self) -> LedgerSnapshot:
        with self.lock:
            return LedgerSnapshot(
                balances=dict(self._balances),
                allowances=dict(self._allowances),
                total_supply=self._total_supply,
            )

    def restore(self, snapshot: LedgerSnapshot) -> None:
        with self.lock:
            self._balances = dict(snapshot.balances)
            self._allowances = dict(snapshot.allowances)
            self._total_supply = snapshot.total_supply
