"""Simulation session: the per-tick orchestrator and the command surface.

A session owns one game's state. The host calls advance() at any cadence
(frame callback, timer, test loop); player commands may arrive between
ticks. Ticks and commands are serialized by one lock, and a tick is computed
on a copy of the state that replaces the live state only when complete.
"""

import copy
import dataclasses
import logging
import threading
from datetime import datetime
from random import Random
from typing import Callable

from wealth_race.ai import advance_ai_month, apply_annual_bonus
from wealth_race.clock import SimulationClock, monotonic_ms
from wealth_race.events import EventKind, GameEvent, annual_appraisal, draw_event
from wealth_race.history import GameResult
from wealth_race.ledger import Holding, InvalidCommand, Ledger, resolve_asset
from wealth_race.params import (
    MONTHS_PER_YEAR,
    Asset,
    AssetClass,
    DifficultyProfile,
    GameConfig,
    get_difficulty,
)
from wealth_race.prices import update_prices
from wealth_race.returns import accrue_all
from wealth_race.snapshot import from_snapshot, to_snapshot
from wealth_race.state import GameState, GameStatus

logger = logging.getLogger(__name__)


class GameNotRunning(InvalidCommand):
    """Command issued before initialize_game() or after game over."""


class NoPendingEvent(InvalidCommand):
    """Resolution issued for an event that is not the open one."""


def _as_profile(difficulty: "DifficultyProfile | str") -> DifficultyProfile:
    if isinstance(difficulty, DifficultyProfile):
        return difficulty
    return get_difficulty(difficulty)


class SimulationSession:
    def __init__(
        self,
        difficulty: "DifficultyProfile | str" = "easy",
        config: GameConfig | None = None,
        rng=None,
        now_fn: Callable[[], float] | None = None,
        seed: int | None = None,
    ):
        self.config = config or GameConfig()
        self.rng = rng if rng is not None else Random(seed)
        self.now_fn = now_fn or monotonic_ms
        self._lock = threading.RLock()
        self._state = GameState.fresh(_as_profile(difficulty))

    # -- queries ---------------------------------------------------------

    def snapshot(self) -> GameState:
        """Deep copy of the committed state."""
        with self._lock:
            return copy.deepcopy(self._state)

    @property
    def state(self) -> GameState:
        """Live committed state, unguarded. Other threads should use snapshot() or the scalar queries."""
        return self._state

    @property
    def status(self) -> GameStatus:
        with self._lock:
            return self._state.status

    @property
    def cash(self) -> float:
        with self._lock:
            return self._state.ledger.cash

    @property
    def net_worth(self) -> float:
        with self._lock:
            return self._state.ledger.net_worth

    @property
    def ai_net_worth(self) -> float:
        with self._lock:
            return self._state.ai_net_worth

    @property
    def is_game_over(self) -> bool:
        with self._lock:
            return self._state.is_game_over

    @property
    def current_event(self) -> GameEvent | None:
        with self._lock:
            return self._state.current_event

    def holding(self, asset: "Asset | str") -> Holding:
        with self._lock:
            return copy.copy(self._state.ledger.holdings[resolve_asset(asset)])

    def price(self, asset: "Asset | str") -> float:
        with self._lock:
            return self._state.ledger.price(asset)

    @property
    def months_total(self) -> int:
        return self._state.difficulty.time_horizon_years * MONTHS_PER_YEAR

    @property
    def ms_per_month(self) -> float:
        return self.config.ms_per_month(self._state.difficulty.time_horizon_years)

    # -- lifecycle -------------------------------------------------------

    def set_difficulty(self, difficulty: "DifficultyProfile | str") -> None:
        """Choose the profile for the next game. Not allowed mid-game."""
        profile = _as_profile(difficulty)
        with self._lock:
            if self._state.status in (GameStatus.RUNNING, GameStatus.PAUSED):
                raise InvalidCommand("Cannot change difficulty while a game is in progress")
            self._state = GameState.fresh(profile)

    def initialize_game(self) -> None:
        """Start a fresh game on the current difficulty, discarding any prior state."""
        with self._lock:
            profile = self._state.difficulty
            state = GameState.fresh(profile)
            state.clock = SimulationClock.start(self.now_fn())
            state.status = GameStatus.RUNNING
            self._state = state
        logger.info(
            "Game started: difficulty=%s cash=%.0f salary=%.0f",
            profile.name, profile.starting_cash, profile.salary,
        )

    def reset_game(self) -> None:
        """Back to not-started on the same difficulty."""
        with self._lock:
            self._state = GameState.fresh(self._state.difficulty)

    def load_state(self, state: GameState, reanchor: bool = True) -> None:
        """Adopt a restored state. reanchor shifts wall-clock fields to this process's clock."""
        state = copy.deepcopy(state)
        if reanchor:
            now = self.now_fn()
            clock = state.clock
            clock.wall_start_time = now - (clock.wall_now - clock.wall_start_time)
            clock.wall_now = now
            clock.last_advance_wall_time = now
            clock.last_processed_wall_time = now
        with self._lock:
            self._state = state

    def to_snapshot(self) -> dict:
        """Flat key-value snapshot of the committed state."""
        with self._lock:
            return to_snapshot(self._state)

    def restore(self, flat: dict, reanchor: bool = True) -> None:
        self.load_state(from_snapshot(flat), reanchor=reanchor)

    # -- tick ------------------------------------------------------------

    def advance(self) -> bool:
        """Process one host tick. Returns True if simulated state was recomputed."""
        with self._lock:
            state = self._state
            if state.status not in (GameStatus.RUNNING, GameStatus.PAUSED):
                return False
            now = self.now_fn()
            if not state.clock.due(now, self.config.tick_interval_ms):
                state.clock.wall_now = now
                return False
            draft = copy.deepcopy(state)
            self._tick(draft, now)
            self._state = draft
            return True

    def _tick(self, state: GameState, now: float) -> None:
        clock = state.clock
        clock.advance(now)
        if clock.is_paused:
            return
        if clock.is_terminal(self.config.game_duration_ms):
            # Settle month boundaries crossed on the way to the deadline, then stop
            self._catch_up_months(state)
            state.status = GameStatus.GAME_OVER
            logger.info(
                "Game over: net_worth=%.0f ai_net_worth=%.0f",
                state.ledger.net_worth, state.ai_net_worth,
            )
            return

        event = draw_event(
            clock.game_time_elapsed, state.last_event_time, self.config, self.rng,
            state.event_seq + 1,
        )
        if event is not None:
            self._emit(state, event, now)

        self._catch_up_months(state)

    def _catch_up_months(self, state: GameState) -> None:
        """Process every month boundary crossed since the last processed month."""
        target_month = min(
            int(state.clock.game_time_elapsed // self.ms_per_month), self.months_total,
        )
        while state.processed_month < target_month:
            state.processed_month += 1
            self._process_month(state, state.processed_month)

    def _emit(self, state: GameState, event: GameEvent, now: float) -> None:
        event = dataclasses.replace(event, month=state.processed_month)
        state.event_seq += 1
        state.events.append(event)
        state.last_event_time = state.clock.game_time_elapsed
        if event.kind == EventKind.EXPENSE:
            logger.info("Expense event %s: %s (%.0f)", event.id, event.title, event.cost)
            self._open_modal(state, event, now)
            return
        logger.debug("Income event %s: %s (%.0f)", event.id, event.title, event.cost)
        state.ledger.credit(event.cost)
        if self.config.income_requires_ack:
            self._open_modal(state, event, now)

    def _process_month(self, state: GameState, month: int) -> None:
        ledger = state.ledger
        update_prices(ledger.instruments, self.rng)
        state.passive_income = accrue_all(
            ledger, self.rng,
            profit_share=self.config.profit_share, noise=self.config.return_noise,
        )
        ledger.cash += state.salary / 12

        # Only months that end after the open expense fired wait on it
        expense_open = (
            state.is_modal_open
            and state.current_event is not None
            and state.current_event.kind == EventKind.EXPENSE
            and state.last_event_time is not None
            and month * self.ms_per_month > state.last_event_time
        )
        if not expense_open:
            ai_month = advance_ai_month(state.ai_net_worth, state.difficulty, self.config, self.rng)
            state.ai_net_worth = ai_month.net_worth

        if month % MONTHS_PER_YEAR == 0:
            raise_amount = state.salary * state.difficulty.salary_increment
            state.salary += raise_amount
            state.event_seq += 1
            state.events.append(
                annual_appraisal(month // MONTHS_PER_YEAR, raise_amount, state.event_seq)
            )
            state.ai_net_worth = apply_annual_bonus(state.ai_net_worth, self.config)

        ledger.update_net_worth()
        state.monthly_log.append({
            "month": month,
            "cash": ledger.cash,
            "net_worth": ledger.net_worth,
            "ai_net_worth": state.ai_net_worth,
            "salary": state.salary,
            "passive_income": state.passive_income,
        })
        logger.debug(
            "Month %d: net_worth=%.0f ai=%.0f", month, ledger.net_worth, state.ai_net_worth,
        )

    # -- pause / modal ---------------------------------------------------

    def _sync_pause(self, state: GameState, now: float) -> None:
        should_pause = state.manual_pause or state.is_modal_open
        if state.clock.is_paused != should_pause:
            state.clock.set_paused(should_pause, now)
        state.status = GameStatus.PAUSED if should_pause else GameStatus.RUNNING

    def _open_modal(self, state: GameState, event: GameEvent, now: float) -> None:
        state.current_event = event
        state.is_modal_open = True
        self._sync_pause(state, now)

    def _close_modal(self, state: GameState) -> None:
        state.current_event = None
        state.is_modal_open = False
        self._sync_pause(state, self.now_fn())

    def set_paused(self, paused: bool) -> None:
        """Host-requested pause. An open event keeps the clock frozen regardless."""
        with self._lock:
            state = self._require_active()
            state.manual_pause = paused
            self._sync_pause(state, self.now_fn())

    def pause(self) -> None:
        self.set_paused(True)

    def resume(self) -> None:
        self.set_paused(False)

    # -- commands --------------------------------------------------------

    def _require_active(self) -> GameState:
        state = self._state
        if state.status == GameStatus.NOT_STARTED:
            raise GameNotRunning("Game has not started; call initialize_game() first")
        if state.status == GameStatus.GAME_OVER:
            raise GameNotRunning("Game is over; call reset_game() or initialize_game()")
        return state

    def _ledger_command(self, name: str, fn: Callable[[Ledger], float | None]):
        with self._lock:
            try:
                state = self._require_active()
                return fn(state.ledger)
            except InvalidCommand as e:
                logger.debug("Rejected %s: %s", name, e)
                raise

    def invest(self, asset: "Asset | str", amount: float) -> None:
        self._ledger_command("invest", lambda ledger: ledger.invest(asset, amount))

    def withdraw(self, asset: "Asset | str", amount: float) -> None:
        self._ledger_command("withdraw", lambda ledger: ledger.withdraw(asset, amount))

    def buy_stock(self, symbol: "Asset | str", quantity: float) -> float:
        return self._ledger_command("buy_stock", lambda ledger: ledger.buy(symbol, quantity, AssetClass.STOCK))

    def buy_crypto(self, symbol: "Asset | str", quantity: float) -> float:
        return self._ledger_command("buy_crypto", lambda ledger: ledger.buy(symbol, quantity, AssetClass.CRYPTO))

    def buy_real_estate(self, symbol: "Asset | str", quantity: float) -> float:
        return self._ledger_command(
            "buy_real_estate", lambda ledger: ledger.buy(symbol, quantity, AssetClass.REAL_ESTATE),
        )

    def sell_stock(self, symbol: "Asset | str", quantity: float) -> float:
        return self._ledger_command("sell_stock", lambda ledger: ledger.sell(symbol, quantity, AssetClass.STOCK))

    def sell_crypto(self, symbol: "Asset | str", quantity: float) -> float:
        return self._ledger_command("sell_crypto", lambda ledger: ledger.sell(symbol, quantity, AssetClass.CRYPTO))

    def sell_real_estate(self, symbol: "Asset | str", quantity: float) -> float:
        return self._ledger_command(
            "sell_real_estate", lambda ledger: ledger.sell(symbol, quantity, AssetClass.REAL_ESTATE),
        )

    # -- event resolution ------------------------------------------------

    def _open_event(self, state: GameState, event: "GameEvent | str", kind: EventKind) -> GameEvent:
        event_id = event.id if isinstance(event, GameEvent) else event
        current = state.current_event
        if not state.is_modal_open or current is None or current.id != event_id:
            raise NoPendingEvent(f"Event '{event_id}' is not awaiting resolution")
        if current.kind != kind:
            raise NoPendingEvent(f"Event '{event_id}' is {current.kind.value}, not {kind.value}")
        return current

    def pay_expense_with_cash(self, event: "GameEvent | str") -> None:
        """Pay the open expense from cash. Cash may go negative."""
        with self._lock:
            state = self._require_active()
            current = self._open_event(state, event, EventKind.EXPENSE)
            state.ledger.debit(current.cost)
            self._close_modal(state)
        logger.debug("Paid %s with cash; cash=%.0f", current.id, state.ledger.cash)

    def pay_expense_with_investments(self, event: "GameEvent | str") -> float:
        """Pay the open expense by liquidating holdings, then cash. Returns the amount liquidated."""
        with self._lock:
            state = self._require_active()
            current = self._open_event(state, event, EventKind.EXPENSE)
            liquidated = state.ledger.pay_from_holdings(current.cost)
            self._close_modal(state)
        logger.debug(
            "Paid %s with investments: liquidated=%.0f cash=%.0f",
            current.id, liquidated, state.ledger.cash,
        )
        return liquidated

    def acknowledge_event(self, event: "GameEvent | str") -> None:
        """Close an income event opened for acknowledgement."""
        with self._lock:
            state = self._require_active()
            self._open_event(state, event, EventKind.INCOME)
            self._close_modal(state)

    def trigger_event(self, event: GameEvent) -> None:
        """Inject an event as if the scheduler had drawn it (scripted play, tests)."""
        with self._lock:
            state = self._require_active()
            if state.is_modal_open:
                raise InvalidCommand("Another event is awaiting resolution")
            self._emit(state, event, self.now_fn())

    # -- outcome ---------------------------------------------------------

    def final_result(self, user_id: str, date: datetime | None = None) -> GameResult:
        """Outcome record for the history store. Only available after game over."""
        with self._lock:
            state = self._state
            if not state.is_game_over:
                raise GameNotRunning("Game is not over yet")
            return GameResult(
                date=(date or datetime.now()).isoformat(timespec="seconds"),
                user_id=user_id,
                difficulty=state.difficulty.name,
                net_worth=state.ledger.net_worth,
                ai_net_worth=state.ai_net_worth,
                passive_income=state.passive_income,
                won=state.ledger.net_worth > state.ai_net_worth,
                goal_reached=state.passive_income >= state.difficulty.passive_income_target,
            )
