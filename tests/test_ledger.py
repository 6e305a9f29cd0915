"""Tests for FungibleLedger balance, allowance and supply bookkeeping."""

import pytest

from simple_dex.config import MAX_UINT256
from simple_dex.core.ledger import FungibleLedger, checked_add, checked_mul
from simple_dex.errors import ArithmeticOverflow, InsufficientAllowance, InsufficientBalance


@pytest.fixture
def ledger() -> FungibleLedger:
    token = FungibleLedger(name="Token A", symbol="TKA", address="token-a")
    token.mint("alice", 1_000)
    return token


class TestBalances:
    def test_metadata_defaults(self, ledger):
        assert ledger.name == "Token A"
        assert ledger.symbol == "TKA"
        assert ledger.decimals == 18

    def test_unknown_owner_has_zero_balance(self, ledger):
        assert ledger.balance_of("nobody") == 0

    def test_transfer_moves_balance(self, ledger):
        ledger.transfer("alice", "bob", 300)
        assert ledger.balance_of("alice") == 700
        assert ledger.balance_of("bob") == 300
        assert ledger.total_supply == 1_000

    def test_transfer_whole_balance(self, ledger):
        ledger.transfer("alice", "bob", 1_000)
        assert ledger.balance_of("alice") == 0
        assert ledger.holders() == 1

    def test_transfer_more_than_balance_fails(self, ledger):
        with pytest.raises(InsufficientBalance):
            ledger.transfer("alice", "bob", 1_001)
        assert ledger.balance_of("alice") == 1_000
        assert ledger.balance_of("bob") == 0

    def test_self_transfer_is_noop(self, ledger):
        ledger.transfer("alice", "alice", 500)
        assert ledger.balance_of("alice") == 1_000

    def test_negative_amount_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.transfer("alice", "bob", -1)

    def test_non_int_amount_rejected(self, ledger):
        with pytest.raises(TypeError):
            ledger.transfer("alice", "bob", 1.5)
        with pytest.raises(TypeError):
            ledger.transfer("alice", "bob", True)


class TestAllowances:
    def test_approve_sets_and_overwrites(self, ledger):
        ledger.approve("alice", "pool", 100)
        assert ledger.allowance("alice", "pool") == 100
        ledger.approve("alice", "pool", 40)
        assert ledger.allowance("alice", "pool") == 40

    def test_transfer_from_spends_allowance(self, ledger):
        ledger.approve("alice", "pool", 500)
        ledger.transfer_from("pool", "alice", "pool", 200)
        assert ledger.allowance("alice", "pool") == 300
        assert ledger.balance_of("pool") == 200
        assert ledger.balance_of("alice") == 800

    def test_transfer_from_without_allowance_fails(self, ledger):
        with pytest.raises(InsufficientAllowance):
            ledger.transfer_from("pool", "alice", "pool", 1)

    def test_transfer_from_above_allowance_fails_unchanged(self, ledger):
        ledger.approve("alice", "pool", 100)
        with pytest.raises(InsufficientAllowance):
            ledger.transfer_from("pool", "alice", "pool", 101)
        assert ledger.allowance("alice", "pool") == 100
        assert ledger.balance_of("alice") == 1_000

    def test_transfer_from_above_balance_keeps_allowance(self, ledger):
        ledger.approve("alice", "pool", 5_000)
        with pytest.raises(InsufficientBalance):
            ledger.transfer_from("pool", "alice", "pool", 2_000)
        assert ledger.allowance("alice", "pool") == 5_000

    def test_allowance_checked_before_balance(self, ledger):
        with pytest.raises(InsufficientAllowance):
            ledger.transfer_from("pool", "bob", "pool", 10)

    def test_max_allowance_is_unlimited(self, ledger):
        ledger.approve("alice", "pool", MAX_UINT256)
        ledger.transfer_from("pool", "alice", "pool", 600)
        assert ledger.allowance("alice", "pool") == MAX_UINT256

    def test_allowance_is_per_spender(self, ledger):
        ledger.approve("alice", "pool", 100)
        with pytest.raises(InsufficientAllowance):
            ledger.transfer_from("mallory", "alice", "mallory", 50)


class TestSupply:
    def test_mint_and_burn_track_supply(self, ledger):
        ledger.mint("bob", 250)
        assert ledger.total_supply == 1_250
        ledger.burn("alice", 1_000)
        assert ledger.total_supply == 250
        assert ledger.balance_of("alice") == 0

    def test_burn_more_than_held_fails(self, ledger):
        with pytest.raises(InsufficientBalance):
            ledger.burn("alice", 1_001)
        assert ledger.total_supply == 1_000

    def test_sum_of_balances_equals_supply(self, ledger):
        ledger.mint("bob", 77)
        ledger.transfer("alice", "carol", 123)
        ledger.burn("bob", 7)
        total = sum(ledger.balance_of(o) for o in ("alice", "bob", "carol"))
        assert total == ledger.total_supply

    def test_holders_counts_non_zero_balances(self, ledger):
        ledger.mint("bob", 1)
        assert ledger.holders() == 2
        ledger.burn("bob", 1)
        assert ledger.holders() == 1

    def test_mint_overflow_is_fatal(self, ledger):
        with pytest.raises(ArithmeticOverflow):
            ledger.mint("bob", MAX_UINT256)
        assert ledger.total_supply == 1_000
        assert ledger.balance_of("bob") == 0


class TestSnapshots:
    def test_restore_undoes_changes(self, ledger):
        ledger.approve("alice", "pool", 10)
        snapshot = ledger.snapshot()
        ledger.transfer_from("pool", "alice", "bob", 10)
        ledger.mint("carol", 5)
        ledger.restore(snapshot)
        assert ledger.balance_of("alice") == 1_000
        assert ledger.balance_of("bob") == 0
        assert ledger.balance_of("carol") == 0
        assert ledger.allowance("alice", "pool") == 10
        assert ledger.total_supply == 1_000


class TestCheckedMath:
    def test_checked_add_at_bound(self):
        assert checked_add(MAX_UINT256 - 1, 1) == MAX_UINT256
        with pytest.raises(ArithmeticOverflow):
            checked_add(MAX_UINT256, 1)

    def test_checked_mul_overflow(self):
        assert checked_mul(2**128 - 1, 2**128 - 1) < MAX_UINT256
        with pytest.raises(ArithmeticOverflow):
            checked_mul(2**128, 2**128)
