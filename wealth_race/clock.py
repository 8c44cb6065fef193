"""Pausable game clock decoupling wall-clock ticks from simulated time."""

import time
from dataclasses import dataclass


def monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class SimulationClock:
    """Game time advances only while unpaused; pausing accrues no backlog."""

    wall_start_time: float = 0.0
    wall_now: float = 0.0
    game_time_elapsed: float = 0.0
    last_advance_wall_time: float = 0.0
    last_processed_wall_time: float = 0.0
    is_paused: bool = False

    @classmethod
    def start(cls, now: float) -> "SimulationClock":
        return cls(
            wall_start_time=now,
            wall_now=now,
            last_advance_wall_time=now,
            last_processed_wall_time=now,
        )

    def due(self, now: float, interval_ms: float) -> bool:
        """True when at least interval_ms of wall time passed since the last processed tick."""
        return now - self.last_processed_wall_time >= interval_ms

    def advance(self, now: float) -> float:
        """Advance to wall time `now`. Returns the game time added (>= 0)."""
        self.wall_now = now
        self.last_processed_wall_time = now
        if self.is_paused:
            self.last_advance_wall_time = now
            return 0.0
        # Clock skew: never subtract time
        delta = max(0.0, now - self.last_advance_wall_time)
        self.game_time_elapsed += delta
        self.last_advance_wall_time = now
        return delta

    def set_paused(self, paused: bool, now: float) -> None:
        """Freeze or resume. Time run up to `now` is banked before freezing."""
        if paused and not self.is_paused:
            self.game_time_elapsed += max(0.0, now - self.last_advance_wall_time)
        self.wall_now = now
        self.last_advance_wall_time = now
        self.is_paused = paused

    def is_terminal(self, duration_ms: float) -> bool:
        return self.game_time_elapsed >= duration_ms
