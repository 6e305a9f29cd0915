"""Errors raised by pool and ledger operations.

Every error is raised synchronously by the failing operation, and the
operation leaves ledgers, reserves, stats and the event log unchanged.
"""


class DEXError(Exception):
    """Base class for all failures of a pool or ledger operation."""


class ZeroAmount(DEXError):
    """An amount that must be strictly positive was zero."""


class InsufficientBalance(DEXError):
    """The holder does not own enough of the asset."""


class InsufficientAllowance(DEXError):
    """The spender is not authorized to move that much of the owner's asset."""


class InsufficientShares(DEXError):
    """The caller tried to redeem more liquidity shares than it holds."""


class EmptyPool(DEXError):
    """The pool has no outstanding liquidity shares."""


class InsufficientLiquidity(DEXError):
    """The reserves cannot support the requested swap or redemption."""


class ArithmeticOverflow(DEXError):
    """An intermediate or resulting amount exceeded the 256-bit range."""


class ImbalancedDeposit(DEXError):
    """A deposit did not match the pool ratio and the pool rejects those."""
