"""Procedural price movement for tradable instruments."""

from dataclasses import dataclass

from wealth_race.params import INSTRUMENTS, MONTHS_PER_YEAR, Asset, InstrumentSpec


@dataclass
class Instrument:
    """Live market state of one tradable, owned by a session."""

    symbol: Asset
    current_price: float
    change_pct: float = 0.0         # change since prior month
    annualized_return: float = 0.0  # display-only estimate from the last move

    @property
    def spec(self) -> InstrumentSpec:
        return INSTRUMENTS[self.symbol]

    @classmethod
    def from_spec(cls, symbol: Asset) -> "Instrument":
        return cls(symbol=symbol, current_price=INSTRUMENTS[symbol].base_price)


def create_market() -> dict[Asset, Instrument]:
    """Fresh instruments at base price, in catalog order."""
    return {symbol: Instrument.from_spec(symbol) for symbol in INSTRUMENTS}


def next_price(
    current_price: float, base_price: float, volatility: float, floor_ratio: float, rng,
) -> tuple[float, float]:
    """Draw next month's price. Returns (new_price, change_pct).

    The move is uniform within ±volatility of the current price; the result
    never drops below base_price * floor_ratio.
    """
    delta = current_price * volatility * rng.uniform(-1, 1)
    new_price = max(base_price * floor_ratio, current_price + delta)
    if current_price > 0:
        change_pct = (new_price - current_price) / current_price * 100
    else:
        change_pct = 0.0
    return new_price, change_pct


def annualize_change(change_pct: float) -> float:
    """Compound a monthly % change into an annual rate (fraction)."""
    monthly = change_pct / 100
    if monthly <= -1:
        return -1.0
    return (1 + monthly) ** MONTHS_PER_YEAR - 1


def update_prices(market: dict[Asset, Instrument], rng) -> None:
    """Advance every instrument by one simulated month, in place."""
    for inst in market.values():
        spec = inst.spec
        inst.current_price, inst.change_pct = next_price(
            inst.current_price, spec.base_price, spec.volatility, spec.floor_ratio, rng,
        )
        inst.annualized_return = annualize_change(inst.change_pct)
