"""Monthly return accrual on pooled (non-tradable) holdings."""

from wealth_race.params import TRADITIONAL_ASSETS, TraditionalSpec


def monthly_rate(spec: TraditionalSpec, rng, noise: bool = True) -> float:
    """Monthly return rate, optionally perturbed by the instrument's rate volatility."""
    base = spec.annual_rate / 12
    if not noise or spec.rate_volatility == 0:
        return base
    return base * (1 + spec.rate_volatility * rng.uniform(-1, 1))


def accrue(
    principal: float, profit: float, rate: float, profit_share: float = 0.7,
) -> tuple[float, float]:
    """Apply one month of return. Returns (new_profit, cash_dividend).

    A positive return is split: profit_share compounds into profit, the rest
    is paid out as cash. A loss comes entirely out of profit, floored at 0,
    and pays no dividend.
    """
    if principal <= 0:
        return profit, 0.0
    total_return = (principal + profit) * rate
    if total_return >= 0:
        return profit + total_return * profit_share, total_return * (1 - profit_share)
    return max(0.0, profit + total_return), 0.0


def accrue_all(ledger, rng, profit_share: float = 0.7, noise: bool = True) -> float:
    """Accrue returns on every traditional holding. Returns total cash dividend.

    Dividends are credited to ledger.cash; net worth is left for the caller
    to recompute.
    """
    total_dividend = 0.0
    for asset, spec in TRADITIONAL_ASSETS.items():
        holding = ledger.holdings[asset]
        if holding.principal <= 0:
            continue
        rate = monthly_rate(spec, rng, noise)
        holding.profit, dividend = accrue(holding.principal, holding.profit, rate, profit_share)
        total_dividend += dividend
    ledger.cash += total_dividend
    return total_dividend
