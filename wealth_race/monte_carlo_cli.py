"""CLI entry point for Monte Carlo batches."""

import argparse
import logging

from wealth_race.config import parse_args
from wealth_race.monte_carlo import (
    MonteCarloConfig,
    MonteCarloResult,
    run_monte_carlo,
    run_monte_carlo_all_difficulties,
)


def _add_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--mc-runs", type=int, default=200, help="games per difficulty (default: 200)")
    parser.add_argument("--mc-tick-ms", type=float, default=500.0, help="virtual wall time per tick (default: 500)")
    parser.add_argument("--all", action="store_true", dest="run_all", help="run every difficulty")


def _fmt_lakh(v: float) -> str:
    """Format rupees as lakhs with sign."""
    lakh = v / 100000
    if lakh < 0:
        return f"▲{abs(lakh):.1f}L"
    return f"{lakh:.1f}L"


def _print_results(results: list[MonteCarloResult], n: int) -> None:
    print()
    print(f"【Monte Carlo (N={n:,} games per difficulty, autopilot player)】")
    print("─" * 92)
    print(
        f"{'Difficulty':<12}"
        f"{'P5':>10}"
        f"{'P25':>10}"
        f"{'P50':>10}"
        f"{'P75':>10}"
        f"{'P95':>10}"
        f"{'AI P50':>10}"
        f"{'Win':>7}"
        f"{'Goal':>7}"
        f"{'Debt':>6}"
    )
    print("─" * 92)
    for r in results:
        print(
            f"{r.difficulty:<12}"
            f"{_fmt_lakh(r.percentiles[5]):>10}"
            f"{_fmt_lakh(r.percentiles[25]):>10}"
            f"{_fmt_lakh(r.percentiles[50]):>10}"
            f"{_fmt_lakh(r.percentiles[75]):>10}"
            f"{_fmt_lakh(r.percentiles[95]):>10}"
            f"{_fmt_lakh(r.ai_percentiles[50]):>10}"
            f"{r.win_probability:>7.0%}"
            f"{r.goal_probability:>7.0%}"
            f"{r.debt_probability:>6.0%}"
        )
    print("─" * 92)

    print(f"\n{'Difficulty':<12} {'Mean':>10} {'Std':>10}")
    print("─" * 34)
    for r in results:
        print(f"{r.difficulty:<12}{_fmt_lakh(r.mean):>11}{_fmt_lakh(r.std):>11}")
    print("─" * 34)


def main():
    r, game_config, args = parse_args("Net worth race: Monte Carlo batch", _add_args)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    if args.mc_runs <= 0:
        raise SystemExit("--mc-runs must be positive")

    mc_config = MonteCarloConfig(
        n_simulations=args.mc_runs,
        seed=r["seed"] if r["seed"] is not None else 42,
        tick_ms=args.mc_tick_ms,
    )
    if args.run_all:
        results = run_monte_carlo_all_difficulties(game_config, mc_config)
    else:
        results = [run_monte_carlo(r["difficulty"], game_config, mc_config)]
    _print_results(results, mc_config.n_simulations)


if __name__ == "__main__":
    main()
