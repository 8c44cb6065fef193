"""CLI entry point: play one headless game with the autopilot and print the outcome."""

import argparse
import logging
from pathlib import Path

from wealth_race.autopilot import play_session
from wealth_race.config import parse_args
from wealth_race.events import EventKind
from wealth_race.history import ResultHistory
from wealth_race.params import INSTRUMENTS, TRADITIONAL_ASSETS, get_difficulty
from wealth_race.snapshot import save_snapshot


def _add_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--tick-ms", type=float, default=None, help="virtual wall time per host tick (default: tick interval)")
    parser.add_argument("--user", type=str, default=None, help="record the result in the history file under this user id")
    parser.add_argument("--history", type=Path, default=None, help="history file (default: game_results.jsonl)")
    parser.add_argument("--save-snapshot", type=Path, default=None, help="write the final state snapshot (JSON)")


def _print_header(profile, game_config) -> None:
    print("=" * 80)
    print(f"Net worth race ({profile.name}, {profile.time_horizon_years} years in "
          f"{game_config.game_duration_ms / 60000:.0f} minutes)")
    print(f"  Starting cash: ₹{profile.starting_cash:,.0f} / Salary: ₹{profile.salary:,.0f}/yr "
          f"(+{profile.salary_increment:.0%} per appraisal)")
    print(f"  Passive income target: ₹{profile.passive_income_target:,.0f}/month")
    print(f"  Computer: salary ₹{profile.ai_salary:,.0f}/yr, invests {profile.ai_investment_ratio:.0%} "
          f"at {profile.ai_base_return:.0%} ±{profile.ai_volatility:.0%}")
    print("=" * 80)
    print()


def _print_holdings(holdings: dict, instruments: dict) -> None:
    print("【Holdings】")
    print("-" * 80)
    print(f"{'Asset':<22} {'Principal':>14} {'Profit':>14} {'Units':>10} {'Price':>14}")
    print("-" * 80)
    for asset, h in holdings.items():
        if h.total == 0 and h.quantity == 0:
            continue
        if asset in INSTRUMENTS:
            name = INSTRUMENTS[asset].display_name
            units = f"{h.quantity:>10.4g}"
            price = f"{instruments[asset].current_price:>14,.0f}"
        else:
            name = TRADITIONAL_ASSETS[asset].display_name
            units = f"{'':>10}"
            price = f"{'':>14}"
        print(f"{name:<22} {h.principal:>14,.0f} {h.profit:>14,.0f} {units} {price}")
    print("-" * 80)


def _print_yearly_log(monthly_log: list[dict]) -> None:
    print("\n【Yearly log】")
    print("-" * 80)
    print(f"{'Year':<6} {'Cash':>14} {'Net worth':>14} {'Computer':>14} {'Salary':>12} {'Dividend/mo':>12}")
    print("-" * 80)
    for row in monthly_log:
        if row["month"] % 12 == 0:
            print(
                f"{row['month'] // 12:<6} "
                f"{row['cash']:>14,.0f} "
                f"{row['net_worth']:>14,.0f} "
                f"{row['ai_net_worth']:>14,.0f} "
                f"{row['salary']:>12,.0f} "
                f"{row['passive_income']:>12,.0f}"
            )
    print("-" * 80)


def _print_summary(state) -> None:
    print("\n" + "=" * 80)
    print("【Final result】")
    print("=" * 80)
    net = state.ledger.net_worth
    ai = state.ai_net_worth
    print(f"  Your net worth:     ₹{net:>16,.0f}")
    print(f"  Computer net worth: ₹{ai:>16,.0f}")
    print(f"  Cash:               ₹{state.ledger.cash:>16,.0f}")
    print(f"  Passive income:     ₹{state.passive_income:>16,.0f}/month "
          f"(target ₹{state.difficulty.passive_income_target:,.0f})")
    expenses = [e for e in state.events if e.kind == EventKind.EXPENSE]
    print(f"  Life events:        {len(state.events)} logged, {len(expenses)} expenses "
          f"(₹{sum(e.cost for e in expenses):,.0f})")
    if net > ai:
        print("\n  Congratulations! You beat the market!")
    else:
        print("\n  Better luck next time!")
    if state.ledger.cash < 0:
        print(f"  ⚠ Finished in debt (cash ₹{state.ledger.cash:,.0f})")


def main():
    """Play one game (autopilot) and print the outcome."""
    r, game_config, args = parse_args("Net worth race: headless autopilot game", _add_args)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    profile = get_difficulty(r["difficulty"])
    _print_header(profile, game_config)

    session = play_session(profile, config=game_config, seed=r["seed"], tick_ms=args.tick_ms)
    state = session.state

    _print_holdings(state.ledger.holdings, state.ledger.instruments)
    _print_yearly_log(state.monthly_log)
    _print_summary(state)

    if args.user:
        history = ResultHistory(args.history)
        history.record(session.final_result(args.user))
        print(f"\nResult recorded for '{args.user}' in {history.path}")
    if args.save_snapshot:
        path = save_snapshot(state, args.save_snapshot)
        print(f"Snapshot written to {path}")


if __name__ == "__main__":
    main()
