"""Command-line interface for quoting swaps and simulating pool activity."""

import argparse
import logging
import sys
from dataclasses import replace
from typing import Optional

from simple_dex.config import BASELINE_SIMULATION, DEFAULT_SETTINGS, resolve_log_level
from simple_dex.core.ledger import FungibleLedger
from simple_dex.core.pool import Pool
from simple_dex.errors import DEXError
from simple_dex.market.simulation import SimulationRunner
from simple_dex.units import format_display, parse_units

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def quote_command(args: argparse.Namespace) -> int:
    """Print the output of a swap against the given reserves."""
    decimals = DEFAULT_SETTINGS.decimals
    try:
        reserve_a = parse_units(args.reserve_a, decimals)
        reserve_b = parse_units(args.reserve_b, decimals)
        amount_in = parse_units(args.amount_in, decimals)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    token_a = FungibleLedger(name="Token A", symbol="TKA", address="token-a")
    token_b = FungibleLedger(name="Token B", symbol="TKB", address="token-b")
    pool = Pool(token_a, token_b)
    is_a_for_b = not args.b_for_a
    try:
        if reserve_a and reserve_b:
            for token, amount in ((token_a, reserve_a), (token_b, reserve_b)):
                token.mint("quoter", amount)
                token.approve("quoter", pool.address, amount)
            pool.add_liquidity("quoter", reserve_a, reserve_b, timestamp=0)
        amount_out = pool.get_amount_out(amount_in, is_a_for_b)
    except DEXError as e:
        print(f"Quote failed: {type(e).__name__}: {e}")
        return 1

    symbol_in, symbol_out = ("TKA", "TKB") if is_a_for_b else ("TKB", "TKA")
    print(
        f"{format_display(amount_in, decimals)} {symbol_in} -> "
        f"{format_display(amount_out, decimals)} {symbol_out}"
    )
    return 0


def simulate_command(args: argparse.Namespace) -> int:
    """Run retail flow against a seeded pool and print the outcome."""
    settings = BASELINE_SIMULATION
    overrides = {
        "n_steps": args.steps,
        "liquidity_a": args.liquidity_a,
        "liquidity_b": args.liquidity_b,
        "retail_arrival_rate": args.retail_rate,
        "retail_mean_size": args.retail_size,
    }
    settings = replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    print(f"Running {settings.n_steps} steps...")
    try:
        result = SimulationRunner(settings=settings).run(seed=args.seed)
    except (DEXError, ValueError) as e:
        print(f"Simulation failed: {e}")
        return 1

    reserve_a, reserve_b = result.reserves
    print(f"\nReserves: {format_display(reserve_a)} TKA / {format_display(reserve_b)} TKB")
    print(f"Shares minted: {format_display(result.shares_minted)}")
    print(f"k growth: {result.k_growth:.6%}")
    print(f"Swaps: {result.executed_swaps} executed, {result.rejected_swaps} rejected")
    print(f"Volume (last day): {format_display(result.volume_a)} TKA / {format_display(result.volume_b)} TKB")
    print(f"Fees (lifetime): {format_display(result.total_fees)}")
    print(f"APR: {result.apr}%")
    print(f"Events: {result.n_events}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Constant-product AMM - quote swaps and simulate pool activity",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  simple-dex quote --reserve-a 1000 --reserve-b 1000 --amount-in 100
  simple-dex quote --reserve-a 1000 --reserve-b 2000 --amount-in 50 --b-for-a
  simple-dex simulate --steps 500 --seed 7
        """,
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (defaults to SIMPLE_DEX_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Quote command
    quote_parser = subparsers.add_parser("quote", help="Quote a swap against given reserves")
    quote_parser.add_argument("--reserve-a", required=True, help="Reserve of A in whole tokens")
    quote_parser.add_argument("--reserve-b", required=True, help="Reserve of B in whole tokens")
    quote_parser.add_argument("--amount-in", required=True, help="Input amount in whole tokens")
    quote_parser.add_argument(
        "--b-for-a",
        action="store_true",
        help="Sell B for A instead of A for B",
    )
    quote_parser.set_defaults(func=quote_command)

    # Simulate command
    sim_parser = subparsers.add_parser("simulate", help="Simulate retail swaps against a pool")
    sim_parser.add_argument(
        "--steps",
        type=int,
        default=None,
        help="Number of time steps (defaults to baseline config)",
    )
    sim_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    sim_parser.add_argument(
        "--liquidity-a",
        default=None,
        help="Initial A liquidity in whole tokens (defaults to baseline config)",
    )
    sim_parser.add_argument(
        "--liquidity-b",
        default=None,
        help="Initial B liquidity in whole tokens (defaults to baseline config)",
    )
    sim_parser.add_argument(
        "--retail-rate",
        type=float,
        default=None,
        help="Retail arrival rate per step (defaults to baseline config)",
    )
    sim_parser.add_argument(
        "--retail-size",
        type=float,
        default=None,
        help="Mean retail swap size in whole tokens (defaults to baseline config)",
    )
    sim_parser.set_defaults(func=simulate_command)

    args = parser.parse_args(argv)

    try:
        level = resolve_log_level(args.log_level)
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    logging.basicConfig(level=level, format=LOG_FORMAT)

    if args.command is None:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
