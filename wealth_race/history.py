"""Finished-game outcomes and an append-only JSON-lines history store."""

import dataclasses
import json
from dataclasses import dataclass
from pathlib import Path

DEFAULT_HISTORY_PATH = Path("game_results.jsonl")


@dataclass(frozen=True)
class GameResult:
    date: str
    user_id: str
    difficulty: str
    net_worth: float
    ai_net_worth: float
    passive_income: float
    won: bool
    goal_reached: bool


class ResultHistory:
    """Results keyed by an opaque user id; one JSON object per line."""

    def __init__(self, path: Path | None = None):
        self.path = path or DEFAULT_HISTORY_PATH

    def record(self, result: GameResult) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(dataclasses.asdict(result), ensure_ascii=False) + "\n")

    def all(self) -> list[GameResult]:
        if not self.path.exists():
            return []
        results = []
        with open(self.path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    results.append(GameResult(**json.loads(line)))
        return results

    def for_user(self, user_id: str) -> list[GameResult]:
        return [r for r in self.all() if r.user_id == user_id]

    def best(self, user_id: str) -> GameResult | None:
        results = self.for_user(user_id)
        if not results:
            return None
        return max(results, key=lambda r: r.net_worth)
