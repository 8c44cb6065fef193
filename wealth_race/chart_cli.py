"""CLI entry point for chart generation."""

import argparse
import logging
from pathlib import Path

from wealth_race.autopilot import play_session
from wealth_race.charts import plot_mc_fan, plot_trajectory
from wealth_race.config import parse_args
from wealth_race.monte_carlo import MonteCarloConfig, run_monte_carlo_all_difficulties


def _add_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--output", type=Path, default=Path("charts"), help="output directory (default: charts)")
    parser.add_argument("--name", type=str, default="", help="output filename suffix")
    parser.add_argument("--mc-runs", type=int, default=100, help="games per difficulty for the fan chart (default: 100)")
    parser.add_argument("--no-mc", action="store_true", help="skip the Monte Carlo fan chart")


def main():
    r, game_config, args = parse_args("Net worth race: charts", _add_args)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    seed = r["seed"] if r["seed"] is not None else 42

    session = play_session(r["difficulty"], config=game_config, seed=seed)
    path = plot_trajectory(session.state, args.output, args.name or r["difficulty"])
    print(f"Trajectory: {path}")

    if not args.no_mc:
        mc_config = MonteCarloConfig(n_simulations=args.mc_runs, seed=seed)
        results = run_monte_carlo_all_difficulties(game_config, mc_config, collect_monthly=True)
        path = plot_mc_fan(results, args.output, args.name)
        print(f"Monte Carlo fan: {path}")


if __name__ == "__main__":
    main()
