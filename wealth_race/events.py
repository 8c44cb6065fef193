"""Life events: catalog, per-tick scheduling and cooldown."""

from dataclasses import dataclass
from enum import Enum

from wealth_race.params import GameConfig


class EventKind(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"
    OPPORTUNITY = "opportunity"


@dataclass(frozen=True)
class GameEvent:
    id: str
    title: str
    description: str
    cost: float
    kind: EventKind
    month: int | None = None  # simulated month the event was logged in


@dataclass(frozen=True)
class EventTemplate:
    key: str
    title: str
    description: str
    cost: float
    kind: EventKind

    def instantiate(self, seq: int) -> GameEvent:
        return GameEvent(
            id=f"{self.key}-{seq}",
            title=self.title,
            description=self.description,
            cost=self.cost,
            kind=self.kind,
        )


EXPENSE_EVENTS: tuple[EventTemplate, ...] = (
    EventTemplate("wedding", "Family Wedding",
                  "Your cousin is getting married! Contribute to the celebration.",
                  75_000, EventKind.EXPENSE),
    EventTemplate("medical", "Medical Emergency",
                  "Unexpected hospital visit for a family member.",
                  50_000, EventKind.EXPENSE),
    EventTemplate("car_repair", "Car Repair",
                  "Your car broke down on the highway.",
                  20_000, EventKind.EXPENSE),
    EventTemplate("phone", "Phone Replacement",
                  "Your phone slipped into a puddle.",
                  15_000, EventKind.EXPENSE),
    EventTemplate("home_repair", "Home Repair",
                  "Monsoon leaks need fixing before the next storm.",
                  40_000, EventKind.EXPENSE),
    EventTemplate("school_fees", "School Fees",
                  "Annual school fees for your nephew are due.",
                  30_000, EventKind.EXPENSE),
)

INCOME_EVENTS: tuple[EventTemplate, ...] = (
    EventTemplate("festival", "Diwali Bonus",
                  "Received festival bonus from work!",
                  50_000, EventKind.INCOME),
    EventTemplate("freelance", "Freelance Project",
                  "A weekend side project paid off.",
                  20_000, EventKind.INCOME),
    EventTemplate("tax_refund", "Tax Refund",
                  "Income tax department processed your refund.",
                  15_000, EventKind.INCOME),
    EventTemplate("windfall", "Dividend Windfall",
                  "An old shareholding paid a special dividend.",
                  10_000, EventKind.INCOME),
)


def annual_appraisal(year: int, raise_amount: float, seq: int) -> GameEvent:
    """Income-type log entry for the year-end salary increment."""
    return GameEvent(
        id=f"appraisal-{seq}",
        title="Annual Appraisal",
        description=f"Year {year} appraisal: salary raised by {raise_amount:,.0f}.",
        cost=raise_amount,
        kind=EventKind.INCOME,
        month=year * 12,
    )


def event_window_open(
    game_time: float, last_event_time: float | None, config: GameConfig,
) -> bool:
    """Grace period over and cooldown since the previous event elapsed."""
    if game_time < config.event_grace_ms:
        return False
    if last_event_time is None:
        return True
    return game_time - last_event_time >= config.min_event_interval_ms


def draw_event(
    game_time: float,
    last_event_time: float | None,
    config: GameConfig,
    rng,
    seq: int,
) -> GameEvent | None:
    """Decide whether this tick emits an event. Expense is drawn before income."""
    if not event_window_open(game_time, last_event_time, config):
        return None
    if rng.random() < config.expense_probability:
        return rng.choice(EXPENSE_EVENTS).instantiate(seq)
    if rng.random() < config.income_probability:
        return rng.choice(INCOME_EVENTS).instantiate(seq)
    return None
