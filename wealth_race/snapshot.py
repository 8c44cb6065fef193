"""Flat key-value serialization of a whole game state.

The snapshot is always written and read as a unit; there is no partial
persistence. Keys are dotted paths, e.g. "holding.savings.principal",
"instrument.BTC.current_price", "event.3.title".
"""

import json
from pathlib import Path

from wealth_race.clock import SimulationClock
from wealth_race.events import EventKind, GameEvent
from wealth_race.ledger import Holding, Ledger
from wealth_race.params import INSTRUMENTS, Asset, DifficultyProfile
from wealth_race.prices import Instrument
from wealth_race.state import GameState, GameStatus

SNAPSHOT_VERSION = 1

_CLOCK_FIELDS = (
    "wall_start_time",
    "wall_now",
    "game_time_elapsed",
    "last_advance_wall_time",
    "last_processed_wall_time",
    "is_paused",
)
_PROFILE_FIELDS = (
    "name",
    "salary",
    "starting_cash",
    "passive_income_target",
    "time_horizon_years",
    "salary_increment",
    "ai_salary",
    "ai_base_return",
    "ai_investment_ratio",
    "ai_volatility",
)
_EVENT_FIELDS = ("id", "title", "description", "cost", "kind", "month")
_LOG_FIELDS = ("month", "cash", "net_worth", "ai_net_worth", "salary", "passive_income")


def _flatten_event(prefix: str, event: GameEvent, flat: dict) -> None:
    for name in _EVENT_FIELDS:
        value = getattr(event, name)
        flat[f"{prefix}.{name}"] = value.value if name == "kind" else value


def _read_event(prefix: str, flat: dict) -> GameEvent:
    return GameEvent(
        id=flat[f"{prefix}.id"],
        title=flat[f"{prefix}.title"],
        description=flat[f"{prefix}.description"],
        cost=flat[f"{prefix}.cost"],
        kind=EventKind(flat[f"{prefix}.kind"]),
        month=flat[f"{prefix}.month"],
    )


def to_snapshot(state: GameState) -> dict:
    """Flatten a GameState into {dotted_key: scalar}."""
    flat: dict = {"version": SNAPSHOT_VERSION}
    for name in _PROFILE_FIELDS:
        flat[f"difficulty.{name}"] = getattr(state.difficulty, name)
    flat["status"] = state.status.value
    flat["salary"] = state.salary
    flat["cash"] = state.ledger.cash
    flat["net_worth"] = state.ledger.net_worth
    flat["ai_net_worth"] = state.ai_net_worth
    flat["processed_month"] = state.processed_month
    flat["is_modal_open"] = state.is_modal_open
    flat["manual_pause"] = state.manual_pause
    flat["passive_income"] = state.passive_income
    flat["last_event_time"] = state.last_event_time
    flat["event_seq"] = state.event_seq

    for name in _CLOCK_FIELDS:
        flat[f"clock.{name}"] = getattr(state.clock, name)

    for asset, holding in state.ledger.holdings.items():
        flat[f"holding.{asset.value}.principal"] = holding.principal
        flat[f"holding.{asset.value}.profit"] = holding.profit
        if asset in INSTRUMENTS:
            flat[f"holding.{asset.value}.quantity"] = holding.quantity

    for symbol, inst in state.ledger.instruments.items():
        flat[f"instrument.{symbol.value}.current_price"] = inst.current_price
        flat[f"instrument.{symbol.value}.change_pct"] = inst.change_pct
        flat[f"instrument.{symbol.value}.annualized_return"] = inst.annualized_return

    flat["event.count"] = len(state.events)
    for i, event in enumerate(state.events):
        _flatten_event(f"event.{i}", event, flat)
    flat["current_event"] = state.current_event is not None
    if state.current_event is not None:
        _flatten_event("current_event", state.current_event, flat)

    flat["log.count"] = len(state.monthly_log)
    for i, row in enumerate(state.monthly_log):
        for name in _LOG_FIELDS:
            flat[f"log.{i}.{name}"] = row[name]
    return flat


def from_snapshot(flat: dict) -> GameState:
    """Rebuild a GameState from to_snapshot() output. Raises ValueError on a bad snapshot."""
    version = flat.get("version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {version!r}")
    try:
        profile = DifficultyProfile(**{
            name: flat[f"difficulty.{name}"] for name in _PROFILE_FIELDS
        })
        clock = SimulationClock(**{name: flat[f"clock.{name}"] for name in _CLOCK_FIELDS})

        holdings = {}
        for asset in Asset:
            holdings[asset] = Holding(
                principal=flat[f"holding.{asset.value}.principal"],
                profit=flat[f"holding.{asset.value}.profit"],
                quantity=flat.get(f"holding.{asset.value}.quantity", 0.0),
            )
        instruments = {}
        for symbol in INSTRUMENTS:
            instruments[symbol] = Instrument(
                symbol=symbol,
                current_price=flat[f"instrument.{symbol.value}.current_price"],
                change_pct=flat[f"instrument.{symbol.value}.change_pct"],
                annualized_return=flat[f"instrument.{symbol.value}.annualized_return"],
            )
        ledger = Ledger(
            cash=flat["cash"],
            net_worth=flat["net_worth"],
            holdings=holdings,
            instruments=instruments,
        )

        events = [_read_event(f"event.{i}", flat) for i in range(flat["event.count"])]
        current_event = _read_event("current_event", flat) if flat["current_event"] else None
        monthly_log = [
            {name: flat[f"log.{i}.{name}"] for name in _LOG_FIELDS}
            for i in range(flat["log.count"])
        ]

        return GameState(
            difficulty=profile,
            status=GameStatus(flat["status"]),
            salary=flat["salary"],
            ledger=ledger,
            clock=clock,
            ai_net_worth=flat["ai_net_worth"],
            processed_month=flat["processed_month"],
            events=events,
            current_event=current_event,
            is_modal_open=flat["is_modal_open"],
            manual_pause=flat["manual_pause"],
            passive_income=flat["passive_income"],
            last_event_time=flat["last_event_time"],
            event_seq=flat["event_seq"],
            monthly_log=monthly_log,
        )
    except KeyError as e:
        raise ValueError(f"Snapshot is missing key {e}") from None


def save_snapshot(state: GameState, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(to_snapshot(state), f, ensure_ascii=False, indent=1)
    return path


def load_snapshot(path: Path) -> GameState:
    with open(path, encoding="utf-8") as f:
        return from_snapshot(json.load(f))
