"""Game state container shared by the session and the snapshot codec."""

from dataclasses import dataclass, field
from enum import Enum

from wealth_race.clock import SimulationClock
from wealth_race.events import GameEvent
from wealth_race.ledger import Ledger
from wealth_race.params import MONTHS_PER_YEAR, DifficultyProfile


class GameStatus(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    PAUSED = "paused"
    GAME_OVER = "game_over"


@dataclass
class GameState:
    """Everything a session mutates. Copied wholesale per tick."""

    difficulty: DifficultyProfile
    status: GameStatus = GameStatus.NOT_STARTED
    salary: float = 0.0
    ledger: Ledger = field(default_factory=Ledger)
    clock: SimulationClock = field(default_factory=SimulationClock)
    ai_net_worth: float = 0.0
    processed_month: int = 0
    events: list[GameEvent] = field(default_factory=list)
    current_event: GameEvent | None = None
    is_modal_open: bool = False
    manual_pause: bool = False
    passive_income: float = 0.0  # dividends paid in the last processed month
    last_event_time: float | None = None
    event_seq: int = 0
    monthly_log: list[dict] = field(default_factory=list)

    @classmethod
    def fresh(cls, profile: DifficultyProfile) -> "GameState":
        return cls(
            difficulty=profile,
            salary=profile.salary,
            ledger=Ledger.opening(profile.starting_cash),
            ai_net_worth=profile.starting_cash,
        )

    @property
    def cash(self) -> float:
        return self.ledger.cash

    @property
    def net_worth(self) -> float:
        return self.ledger.net_worth

    @property
    def is_game_over(self) -> bool:
        return self.status == GameStatus.GAME_OVER

    @property
    def is_paused(self) -> bool:
        return self.clock.is_paused

    @property
    def year(self) -> int:
        """Simulated year, 1-based."""
        return self.processed_month // MONTHS_PER_YEAR + 1

    @property
    def month(self) -> int:
        """Simulated month within the year, 1-based."""
        return self.processed_month % MONTHS_PER_YEAR + 1
