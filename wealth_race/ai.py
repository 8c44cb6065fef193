"""AI opponent: a coarse stochastic net-worth growth model.

The AI does not hold instruments. Each simulated month it earns salary, a
volatility-adjusted return on the invested share of its net worth, and
occasionally a windfall bonus. Each simulated year adds a lump bonus.
"""

from dataclasses import dataclass

from wealth_race.params import DifficultyProfile, GameConfig


@dataclass
class AIMonth:
    """Breakdown of one AI month (for logs and tests)."""

    income: float
    invested: float
    investment_return: float
    bonus: float
    net_worth: float


def advance_ai_month(
    net_worth: float, profile: DifficultyProfile, config: GameConfig, rng,
) -> AIMonth:
    monthly_income = profile.ai_salary / 12
    invested = net_worth * profile.ai_investment_ratio
    base_return = invested * profile.ai_base_return / 12
    volatility_factor = rng.uniform(-1, 1)
    investment_return = base_return * (1 + volatility_factor * profile.ai_volatility)

    bonus = 0.0
    if rng.random() < config.ai_bonus_probability:
        bonus = net_worth * rng.choice(config.ai_bonus_multipliers)

    new_net_worth = max(0.0, net_worth + monthly_income + investment_return + bonus)
    return AIMonth(
        income=monthly_income,
        invested=invested,
        investment_return=investment_return,
        bonus=bonus,
        net_worth=new_net_worth,
    )


def apply_annual_bonus(net_worth: float, config: GameConfig) -> float:
    """Year-end lump bonus on the AI's net worth."""
    return net_worth + net_worth * config.ai_annual_bonus_ratio
