"""Scripted player and headless game loop on a virtual clock."""

import math
from dataclasses import dataclass, field

from wealth_race.events import EventKind
from wealth_race.params import Asset, AssetClass, DifficultyProfile, GameConfig, asset_class
from wealth_race.session import SimulationSession

# Whole units only for these; crypto trades in fractions
_UNIT_DECIMALS = {
    AssetClass.STOCK: 0,
    AssetClass.REAL_ESTATE: 0,
    AssetClass.CRYPTO: 4,
}

_BUY = {
    AssetClass.STOCK: SimulationSession.buy_stock,
    AssetClass.CRYPTO: SimulationSession.buy_crypto,
    AssetClass.REAL_ESTATE: SimulationSession.buy_real_estate,
}


class VirtualClock:
    """Manually advanced millisecond clock, usable as a session's now_fn."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def tick(self, ms: float) -> float:
        self.now += ms
        return self.now


def _floor_units(quantity: float, decimals: int) -> float:
    factor = 10 ** decimals
    return math.floor(quantity * factor) / factor


@dataclass
class Autopilot:
    """Keeps a cash buffer and invests the surplus across a fixed mix once a month.

    Expenses are paid from cash when it covers them, otherwise from investments.
    """

    buffer_months: float = 3.0
    mix: dict[Asset, float] = field(default_factory=lambda: {
        Asset.SAVINGS: 0.15,
        Asset.FIXED_DEPOSIT: 0.20,
        Asset.INDEX_FUND: 0.35,
        Asset.GOLD: 0.10,
        Asset.TCS: 0.08,
        Asset.BTC: 0.04,
        Asset.MUMBAI_APT: 0.08,
    })
    _last_month: int = field(default=-1, init=False, repr=False)

    def act(self, session: SimulationSession) -> None:
        state = session.state
        event = state.current_event
        if state.is_modal_open and event is not None:
            if event.kind != EventKind.EXPENSE:
                session.acknowledge_event(event)
            elif state.ledger.cash >= event.cost:
                session.pay_expense_with_cash(event)
            else:
                session.pay_expense_with_investments(event)
            return
        if state.processed_month == self._last_month:
            return
        self._last_month = state.processed_month
        self._invest_surplus(session)

    def _invest_surplus(self, session: SimulationSession) -> None:
        state = session.state
        buffer = state.salary / 12 * self.buffer_months
        surplus = state.ledger.cash - buffer
        if surplus <= 0:
            return
        for asset, weight in self.mix.items():
            amount = surplus * weight
            if amount <= 0:
                continue
            kind = asset_class(asset)
            if kind == AssetClass.TRADITIONAL:
                session.invest(asset, amount)
                continue
            quantity = _floor_units(amount / session.price(asset), _UNIT_DECIMALS[kind])
            if quantity > 0:
                _BUY[kind](session, asset, quantity)


def play_session(
    difficulty: "DifficultyProfile | str" = "easy",
    config: GameConfig | None = None,
    seed: int | None = None,
    policy: Autopilot | None = None,
    tick_ms: float | None = None,
) -> SimulationSession:
    """Play one full game headless. Returns the finished session."""
    config = config or GameConfig()
    clock = VirtualClock()
    session = SimulationSession(difficulty, config=config, seed=seed, now_fn=clock)
    policy = policy or Autopilot()
    step = tick_ms or config.tick_interval_ms
    session.initialize_game()
    while not session.is_game_over:
        clock.tick(step)
        session.advance()
        if not session.is_game_over:
            policy.act(session)
    return session
