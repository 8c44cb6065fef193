"""Tests for the simulation session: lifecycle, ticks, pause, commands and events."""

import threading
from dataclasses import replace

import pytest

from wealth_race.autopilot import VirtualClock
from wealth_race.events import EventKind, GameEvent
from wealth_race.ledger import InsufficientCash, InvalidCommand, UnknownAsset, WrongAssetClass
from wealth_race.params import DIFFICULTIES, Asset, GameConfig
from wealth_race.session import GameNotRunning, GameStatus, NoPendingEvent, SimulationSession


class CalmRandom:
    """No price moves, no AI bonus, no noise."""

    def uniform(self, a, b):
        return 0.0

    def random(self):
        return 0.99

    def choice(self, seq):
        return seq[0]


QUIET = GameConfig(expense_probability=0.0, income_probability=0.0, return_noise=False)

WEDDING = GameEvent("wedding-1", "Family Wedding", "Celebrate.", 75_000, EventKind.EXPENSE)
BONUS = GameEvent("festival-1", "Diwali Bonus", "Bonus.", 50_000, EventKind.INCOME)


def _session(difficulty="easy", config=QUIET):
    clock = VirtualClock(1_000.0)
    session = SimulationSession(difficulty, config=config, rng=CalmRandom(), now_fn=clock)
    return session, clock


class TestLifecycle:
    def test_not_started(self):
        session, _ = _session()
        assert session.status == GameStatus.NOT_STARTED
        assert not session.is_game_over
        assert session.advance() is False

    def test_initialize_easy(self):
        session, _ = _session()
        session.initialize_game()
        assert session.status == GameStatus.RUNNING
        assert session.cash == 200000
        assert session.net_worth == 200000
        assert session.ai_net_worth == 200000
        assert all(h.total == 0 for h in session.state.ledger.holdings.values())
        assert session.state.events == []

    def test_initialize_discards_prior_game(self):
        session, _ = _session()
        session.initialize_game()
        session.invest(Asset.SAVINGS, 1000)
        session.initialize_game()
        assert session.cash == 200000

    @pytest.mark.parametrize("name", ["easy", "medium", "hard"])
    def test_profiles(self, name):
        session, _ = _session(name)
        session.initialize_game()
        assert session.cash == DIFFICULTIES[name].starting_cash
        assert session.state.salary == DIFFICULTIES[name].salary

    def test_unknown_difficulty(self):
        with pytest.raises(ValueError):
            SimulationSession("impossible")

    def test_set_difficulty_between_games(self):
        session, _ = _session()
        session.set_difficulty("hard")
        session.initialize_game()
        assert session.cash == 100000

    def test_set_difficulty_mid_game_rejected(self):
        session, _ = _session()
        session.initialize_game()
        with pytest.raises(InvalidCommand):
            session.set_difficulty("hard")
        assert session.state.difficulty.name == "easy"

    def test_reset(self):
        session, _ = _session()
        session.initialize_game()
        session.invest(Asset.GOLD, 500)
        session.reset_game()
        assert session.status == GameStatus.NOT_STARTED
        assert session.cash == 200000

    def test_commands_before_start_rejected(self):
        session, _ = _session()
        with pytest.raises(GameNotRunning):
            session.invest(Asset.SAVINGS, 100)


class TestTick:
    def setup_method(self):
        self.session, self.clock = _session()
        self.session.initialize_game()

    def test_throttled(self):
        self.clock.tick(50)
        assert self.session.advance() is False
        assert self.session.state.clock.game_time_elapsed == 0
        self.clock.tick(60)
        assert self.session.advance() is True
        assert self.session.state.clock.game_time_elapsed == 110

    def test_backwards_clock_adds_nothing(self):
        self.clock.tick(1000)
        self.session.advance()
        self.clock.now -= 500
        assert self.session.advance() is False
        assert self.session.state.clock.game_time_elapsed == 1000
        self.clock.now += 650
        self.session.advance()
        assert self.session.state.clock.game_time_elapsed == 1150

    def test_month_boundary(self):
        """One month of savings at 4%, salary credit and AI step."""
        self.session.invest(Asset.SAVINGS, 50000)
        assert self.session.ms_per_month == 5000
        self.clock.tick(5000)
        self.session.advance()

        state = self.session.state
        ret = 50000 * 0.04 / 12
        assert state.processed_month == 1
        assert state.ledger.holdings[Asset.SAVINGS].profit == pytest.approx(ret * 0.7)
        assert state.passive_income == pytest.approx(ret * 0.3)
        assert self.session.cash == pytest.approx(150000 + ret * 0.3 + 50000)
        assert self.session.net_worth == pytest.approx(self.session.cash + 50000 + ret * 0.7)
        assert self.session.ai_net_worth == pytest.approx(
            200000 + 500000 / 12 + 200000 * 0.65 * 0.08 / 12
        )
        assert state.monthly_log[-1]["month"] == 1

    def test_large_tick_catches_up_months(self):
        self.clock.tick(5000 * 3 + 10)
        self.session.advance()
        assert self.session.state.processed_month == 3
        assert [row["month"] for row in self.session.state.monthly_log] == [1, 2, 3]

    def test_year_end_raise_and_appraisal(self):
        self.clock.tick(5000 * 12)
        self.session.advance()
        state = self.session.state
        assert state.salary == pytest.approx(600000 * 1.08)
        appraisals = [e for e in state.events if e.id.startswith("appraisal-")]
        assert len(appraisals) == 1
        assert appraisals[0].cost == pytest.approx(48000)
        assert state.year == 2
        assert state.month == 1

    def test_game_over_once(self):
        self.clock.tick(600_000)
        assert self.session.advance() is True
        state = self.session.state
        assert state.status == GameStatus.GAME_OVER
        assert state.processed_month == 120
        before = self.session.to_snapshot()
        self.clock.tick(10_000)
        assert self.session.advance() is False
        assert self.session.to_snapshot() == before

    def test_commands_after_game_over_rejected(self):
        self.clock.tick(600_000)
        self.session.advance()
        with pytest.raises(GameNotRunning):
            self.session.invest(Asset.SAVINGS, 1)
        with pytest.raises(GameNotRunning):
            self.session.pause()

    def test_final_result(self):
        with pytest.raises(GameNotRunning):
            self.session.final_result("u1")
        self.clock.tick(600_000)
        self.session.advance()
        result = self.session.final_result("u1")
        assert result.user_id == "u1"
        assert result.difficulty == "easy"
        assert result.net_worth == self.session.net_worth
        assert result.won == (self.session.net_worth > self.session.ai_net_worth)


class TestPause:
    def setup_method(self):
        self.session, self.clock = _session()
        self.session.initialize_game()

    def test_manual_pause(self):
        self.clock.tick(1000)
        self.session.advance()
        self.session.pause()
        assert self.session.status == GameStatus.PAUSED
        self.clock.tick(5000)
        self.session.advance()
        self.session.resume()
        self.clock.tick(200)
        self.session.advance()
        assert self.session.state.clock.game_time_elapsed == pytest.approx(1200)
        assert self.session.status == GameStatus.RUNNING

    def test_commands_allowed_while_paused(self):
        self.session.pause()
        self.session.invest(Asset.SAVINGS, 100)
        assert self.session.cash == 199900

    def test_no_months_while_paused(self):
        self.session.pause()
        self.clock.tick(50_000)
        self.session.advance()
        assert self.session.state.processed_month == 0


class TestEvents:
    def setup_method(self):
        self.session, self.clock = _session()
        self.session.initialize_game()

    def test_expense_pauses_until_resolved(self):
        """A 5 s modal contributes no game time."""
        self.clock.tick(1000)
        self.session.advance()
        self.session.trigger_event(WEDDING)
        assert self.session.status == GameStatus.PAUSED
        assert self.session.state.is_modal_open
        assert self.session.current_event.id == "wedding-1"

        self.clock.tick(5000)
        self.session.advance()
        assert self.session.state.clock.game_time_elapsed == pytest.approx(1000)

        self.session.pay_expense_with_cash("wedding-1")
        assert self.session.status == GameStatus.RUNNING
        assert self.session.current_event is None
        assert self.session.cash == 125000
        self.clock.tick(200)
        self.session.advance()
        assert self.session.state.clock.game_time_elapsed == pytest.approx(1200)

    def test_cash_payment_can_go_negative(self):
        self.session.invest(Asset.SAVINGS, 190000)
        self.session.trigger_event(WEDDING)
        self.session.pay_expense_with_cash(WEDDING)
        assert self.session.cash == -65000

    def test_pay_with_investments(self):
        """cash 30,000 + holdings 40,000 vs 75,000 → cash -5,000."""
        profile = replace(DIFFICULTIES["easy"], starting_cash=70000)
        session, _ = _session(profile)
        session.initialize_game()
        session.invest(Asset.SAVINGS, 25000)
        session.invest(Asset.GOLD, 15000)
        session.trigger_event(WEDDING)
        liquidated = session.pay_expense_with_investments("wedding-1")
        assert liquidated == pytest.approx(40000)
        assert session.cash == pytest.approx(-5000)
        assert session.state.ledger.holdings_value() == 0
        assert session.status == GameStatus.RUNNING
        assert [e.id for e in session.state.events] == ["wedding-1"]

    def test_wrong_event_id(self):
        self.session.trigger_event(WEDDING)
        with pytest.raises(NoPendingEvent):
            self.session.pay_expense_with_cash("medical-9")
        assert self.session.state.is_modal_open

    def test_pay_without_event(self):
        with pytest.raises(NoPendingEvent):
            self.session.pay_expense_with_cash(WEDDING)

    def test_one_modal_at_a_time(self):
        self.session.trigger_event(WEDDING)
        with pytest.raises(InvalidCommand):
            self.session.trigger_event(replace(WEDDING, id="wedding-2"))

    def test_income_credited(self):
        self.session.trigger_event(BONUS)
        assert self.session.cash == 250000
        assert not self.session.state.is_modal_open
        assert self.session.status == GameStatus.RUNNING

    def test_income_acknowledgement(self):
        config = replace(QUIET, income_requires_ack=True)
        session, _ = _session(config=config)
        session.initialize_game()
        session.trigger_event(BONUS)
        assert session.status == GameStatus.PAUSED
        assert session.cash == 250000
        with pytest.raises(NoPendingEvent):
            session.pay_expense_with_cash(BONUS)
        session.acknowledge_event(BONUS)
        assert session.status == GameStatus.RUNNING

    def test_manual_pause_survives_resolution(self):
        self.session.pause()
        self.session.trigger_event(WEDDING)
        self.session.pay_expense_with_cash(WEDDING)
        assert self.session.status == GameStatus.PAUSED
        self.session.resume()
        assert self.session.status == GameStatus.RUNNING

    def test_resume_keeps_modal_paused(self):
        self.session.trigger_event(WEDDING)
        self.session.resume()
        assert self.session.status == GameStatus.PAUSED
        assert self.session.state.clock.is_paused

    def test_event_stamped_with_month(self):
        self.clock.tick(5000 * 2)
        self.session.advance()
        self.session.trigger_event(WEDDING)
        assert self.session.state.events[-1].month == 2

    def test_scheduler_respects_grace(self):
        config = replace(QUIET, expense_probability=1.0)
        session, clock = _session(config=config)
        session.initialize_game()
        clock.tick(59_000)
        session.advance()
        assert session.current_event is None
        clock.tick(2_000)
        session.advance()
        assert session.current_event is not None
        assert session.current_event.kind == EventKind.EXPENSE
        assert session.status == GameStatus.PAUSED

    def test_months_ended_before_expense_keep_ai_steps(self):
        """A slow tick that settles months and draws an expense still runs the AI for those months."""
        eventful, eventful_clock = _session(config=replace(QUIET, expense_probability=1.0))
        quiet, quiet_clock = _session()
        for session, clock in ((eventful, eventful_clock), (quiet, quiet_clock)):
            session.initialize_game()
            clock.tick(65_000)
            session.advance()
        assert eventful.state.is_modal_open
        assert eventful.state.processed_month == 13
        assert eventful.ai_net_worth == pytest.approx(quiet.ai_net_worth)
        assert eventful.ai_net_worth > 200000 * 1.12

    def test_ai_waits_on_month_ending_after_expense(self):
        self.clock.tick(1000)
        self.session.advance()
        self.session.trigger_event(WEDDING)
        state = self.session.state
        before = state.ai_net_worth
        self.session._process_month(state, 1)
        assert state.ai_net_worth == before
        assert state.ledger.cash == pytest.approx(200000 + 50000)


class TestCommands:
    def setup_method(self):
        self.session, self.clock = _session()
        self.session.initialize_game()

    def test_invest(self):
        self.session.invest(Asset.SAVINGS, 50000)
        assert self.session.cash == 150000
        assert self.session.holding(Asset.SAVINGS).principal == 50000
        assert self.session.net_worth == 200000

    def test_buy_and_sell_stock(self):
        self.session.state.ledger.instruments[Asset.TCS].current_price = 100.0
        self.session.buy_stock("TCS", 10)
        self.session.state.ledger.instruments[Asset.TCS].current_price = 120.0
        self.session.sell_stock("TCS", 5)
        h = self.session.holding("TCS")
        assert h.principal == pytest.approx(500)
        assert h.profit == pytest.approx(100)
        assert self.session.cash == pytest.approx(200000 - 1000 + 600)

    def test_buy_crypto_and_real_estate(self):
        self.session.buy_crypto(Asset.SOL, 2.5)
        self.session.buy_real_estate(Asset.PUNE_PLOT, 1)
        assert self.session.holding(Asset.SOL).quantity == 2.5
        assert self.session.holding(Asset.PUNE_PLOT).quantity == 1
        self.session.sell_crypto(Asset.SOL, 2.5)
        self.session.sell_real_estate(Asset.PUNE_PLOT, 1)
        assert self.session.cash == pytest.approx(200000)

    def test_wrong_class(self):
        with pytest.raises(WrongAssetClass):
            self.session.buy_stock("BTC", 1)
        with pytest.raises(WrongAssetClass):
            self.session.sell_crypto(Asset.TCS, 1)

    def test_rejected_command_leaves_state_unchanged(self):
        before = self.session.to_snapshot()
        with pytest.raises(InsufficientCash):
            self.session.buy_crypto(Asset.BTC, 1)
        with pytest.raises(UnknownAsset):
            self.session.invest("DOGE", 10)
        assert self.session.to_snapshot() == before

    def test_holding_is_a_copy(self):
        self.session.invest(Asset.GOLD, 100)
        self.session.holding(Asset.GOLD).principal = 0
        assert self.session.holding(Asset.GOLD).principal == 100

    def test_snapshot_is_a_copy(self):
        snap = self.session.snapshot()
        snap.ledger.cash = 0
        assert self.session.cash == 200000


class BrokenRandom(CalmRandom):
    """Fails on the nth uniform() draw, partway through a month."""

    def __init__(self, fail_at: int):
        self.calls = 0
        self.fail_at = fail_at

    def uniform(self, a, b):
        self.calls += 1
        if self.calls >= self.fail_at:
            raise RuntimeError("rng failure")
        return 0.0


class TestTickCommit:
    def test_failed_tick_leaves_state_untouched(self):
        clock = VirtualClock(1_000.0)
        session = SimulationSession("easy", config=QUIET, rng=BrokenRandom(fail_at=5), now_fn=clock)
        session.initialize_game()
        session.invest(Asset.SAVINGS, 50000)
        before = session.to_snapshot()
        clock.tick(5000)
        with pytest.raises(RuntimeError):
            session.advance()
        assert session.to_snapshot() == before

    def test_ticks_and_commands_interleave_cleanly(self):
        session, clock = _session()
        session.initialize_game()
        errors = []

        def ticker():
            try:
                for _ in range(300):
                    clock.tick(100)
                    session.advance()
            except Exception as e:
                errors.append(e)

        def trader():
            try:
                for _ in range(300):
                    session.invest(Asset.SAVINGS, 100)
                    session.withdraw(Asset.SAVINGS, 100)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=ticker), threading.Thread(target=trader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        ledger = session.snapshot().ledger
        assert ledger.net_worth == pytest.approx(ledger.cash + ledger.holdings_value())
        for h in ledger.holdings.values():
            assert h.principal >= 0
            assert h.profit >= 0
        assert session.state.processed_month == 6

    def test_queries_wait_for_the_lock(self):
        session, _ = _session()
        session.initialize_game()
        seen = []
        session._lock.acquire()
        reader = threading.Thread(target=lambda: seen.append(session.cash))
        reader.start()
        reader.join(timeout=0.2)
        assert reader.is_alive()
        session._lock.release()
        reader.join()
        assert seen == [200000]
