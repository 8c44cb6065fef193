"""Monte Carlo batch of headless games."""

import math
import sys
from collections import defaultdict
from dataclasses import dataclass, field
from random import Random
from typing import Callable

from wealth_race.autopilot import Autopilot, play_session
from wealth_race.params import DIFFICULTIES, GameConfig

MC_PERCENTILES = (5, 25, 50, 75, 95)


@dataclass
class MonteCarloConfig:
    """Configuration for a Monte Carlo batch."""

    n_simulations: int = 200
    seed: int | None = 42
    # Coarser than live play to keep batches fast; event odds are per tick
    tick_ms: float = 500.0


@dataclass
class MonteCarloResult:
    """Outcome distribution for one difficulty."""

    difficulty: str
    n_simulations: int
    final_net_worths: list[float] = field(default_factory=list)
    ai_net_worths: list[float] = field(default_factory=list)
    percentiles: dict[int, float] = field(default_factory=dict)
    ai_percentiles: dict[int, float] = field(default_factory=dict)
    win_probability: float = 0.0
    goal_probability: float = 0.0
    debt_probability: float = 0.0  # finished with negative cash
    mean: float = 0.0
    std: float = 0.0
    # month → {5: val, 25: val, 50: val, 75: val, 95: val}
    monthly_percentiles: dict[int, dict[int, float]] | None = None


def _percentile_from_sorted(sorted_vals: list[float], p: int) -> float:
    """Calculate percentile from a pre-sorted list."""
    n = len(sorted_vals)
    idx = max(0, min(int(p / 100 * n), n - 1))
    return sorted_vals[idx]


def run_monte_carlo(
    difficulty: str,
    game_config: GameConfig,
    config: MonteCarloConfig,
    policy_factory: Callable[[], Autopilot] = Autopilot,
    quiet: bool = False,
    collect_monthly: bool = False,
) -> MonteCarloResult:
    """Play N seeded games on one difficulty and summarize the outcomes."""
    rng = Random(config.seed)
    finals: list[float] = []
    ai_finals: list[float] = []
    wins = 0
    goals = 0
    debts = 0
    monthly: dict[int, list[float]] = defaultdict(list)

    for i in range(config.n_simulations):
        session = play_session(
            difficulty, config=game_config, seed=rng.randrange(2**32),
            policy=policy_factory(), tick_ms=config.tick_ms,
        )
        state = session.state
        finals.append(state.ledger.net_worth)
        ai_finals.append(state.ai_net_worth)
        if state.ledger.net_worth > state.ai_net_worth:
            wins += 1
        if state.passive_income >= state.difficulty.passive_income_target:
            goals += 1
        if state.ledger.cash < 0:
            debts += 1
        if collect_monthly:
            for row in state.monthly_log:
                monthly[row["month"]].append(row["net_worth"])

        if not quiet and (i + 1) % 10 == 0:
            print(f"\r  {difficulty}: {i + 1}/{config.n_simulations}", end="", file=sys.stderr)

    if not quiet and config.n_simulations >= 10:
        print(file=sys.stderr)

    n = config.n_simulations
    mean = sum(finals) / n if n > 0 else 0
    variance = sum((x - mean) ** 2 for x in finals) / n if n > 0 else 0
    finals.sort()
    ai_finals.sort()

    monthly_percentiles = None
    if collect_monthly and monthly:
        monthly_percentiles = {
            month: {p: _percentile_from_sorted(sorted(vals), p) for p in MC_PERCENTILES}
            for month, vals in sorted(monthly.items())
        }

    return MonteCarloResult(
        difficulty=difficulty,
        n_simulations=n,
        final_net_worths=finals,
        ai_net_worths=ai_finals,
        percentiles={p: _percentile_from_sorted(finals, p) for p in MC_PERCENTILES} if finals else {},
        ai_percentiles={p: _percentile_from_sorted(ai_finals, p) for p in MC_PERCENTILES} if ai_finals else {},
        win_probability=wins / n if n > 0 else 0.0,
        goal_probability=goals / n if n > 0 else 0.0,
        debt_probability=debts / n if n > 0 else 0.0,
        mean=mean,
        std=math.sqrt(variance),
        monthly_percentiles=monthly_percentiles,
    )


def run_monte_carlo_all_difficulties(
    game_config: GameConfig,
    config: MonteCarloConfig,
    quiet: bool = False,
    collect_monthly: bool = False,
) -> list[MonteCarloResult]:
    """Run the batch for every difficulty, easy to hard."""
    return [
        run_monte_carlo(name, game_config, config, quiet=quiet, collect_monthly=collect_monthly)
        for name in DIFFICULTIES
    ]
