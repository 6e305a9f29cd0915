"""Conversions between whole-token decimals and smallest-unit integers."""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from typing import Union

WAD = 10**18
_WAD_DECIMAL = Decimal(WAD)

# Enough digits for any uint256 amount at any supported scale.
_PRECISION = 100


def _scale(decimals: int) -> Decimal:
    return _WAD_DECIMAL if decimals == 18 else Decimal(10) ** decimals


def parse_units(value: Union[str, int, Decimal], decimals: int = 18) -> int:
    """Convert a whole-token amount to smallest units.

    Args:
        value: Amount in whole tokens, e.g. "1.5" or Decimal("100")
        decimals: Number of fractional digits of the token

    Returns:
        Integer amount in smallest units

    Raises:
        TypeError: If given a float
        ValueError: If the value is negative, not a number, or has more
            fractional digits than the token supports

    Example:
        >>> parse_units("1.5")
        1500000000000000000
    """
    if isinstance(value, float):
        raise TypeError("parse_units does not accept floats; pass a str or Decimal")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        try:
            amount = Decimal(value)
        except InvalidOperation as e:
            raise ValueError(f"Not a decimal amount: {value!r}") from e
        if not amount.is_finite():
            raise ValueError(f"Not a finite amount: {value!r}")
        if amount < 0:
            raise ValueError(f"Amount must be >= 0, got {value}")

        scaled = amount * _scale(decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"{value} has more than {decimals} fractional digits")
        return int(scaled)


def format_units(amount: int, decimals: int = 18) -> Decimal:
    """Convert smallest units back to a whole-token Decimal."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(amount) / _scale(decimals)


def format_display(amount: int, decimals: int = 18, places: int = 4) -> str:
    """Render an amount for terminal output, truncated to `places` digits."""
    quantum = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return str(format_units(amount, decimals).quantize(quantum, rounding=ROUND_DOWN))
