"""Net worth race: a real-time personal-finance game simulation engine."""

from wealth_race.params import (
    Asset,
    AssetClass,
    DifficultyProfile,
    GameConfig,
    DIFFICULTIES,
    INSTRUMENTS,
    TRADITIONAL_ASSETS,
    GAME_DURATION_MS,
    get_difficulty,
)
from wealth_race.ledger import (
    Holding,
    Ledger,
    InvalidCommand,
    InvalidAmount,
    InsufficientCash,
    InsufficientHoldings,
    UnknownAsset,
    WrongAssetClass,
)
from wealth_race.events import EventKind, GameEvent
from wealth_race.clock import SimulationClock
from wealth_race.state import GameState, GameStatus
from wealth_race.session import SimulationSession, GameNotRunning, NoPendingEvent
from wealth_race.snapshot import to_snapshot, from_snapshot, save_snapshot, load_snapshot
from wealth_race.history import GameResult, ResultHistory
from wealth_race.autopilot import Autopilot, VirtualClock, play_session

__all__ = [
    "Asset",
    "AssetClass",
    "DifficultyProfile",
    "GameConfig",
    "DIFFICULTIES",
    "INSTRUMENTS",
    "TRADITIONAL_ASSETS",
    "GAME_DURATION_MS",
    "get_difficulty",
    "Holding",
    "Ledger",
    "InvalidCommand",
    "InvalidAmount",
    "InsufficientCash",
    "InsufficientHoldings",
    "UnknownAsset",
    "WrongAssetClass",
    "EventKind",
    "GameEvent",
    "SimulationClock",
    "SimulationSession",
    "GameState",
    "GameStatus",
    "GameNotRunning",
    "NoPendingEvent",
    "to_snapshot",
    "from_snapshot",
    "save_snapshot",
    "load_snapshot",
    "GameResult",
    "ResultHistory",
    "Autopilot",
    "VirtualClock",
    "play_session",
]
