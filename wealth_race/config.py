"""TOML config loader with CLI > config > default resolution."""

import argparse
import sys
import tomllib
from pathlib import Path
from typing import Callable

from wealth_race.params import DIFFICULTIES, GameConfig

DEFAULT_CONFIG_PATH = Path("config.toml")

_BASE = GameConfig()

DEFAULTS = {
    "difficulty": "easy",
    "seed": None,
    "game_duration_ms": _BASE.game_duration_ms,
    "tick_interval_ms": _BASE.tick_interval_ms,
    "expense_probability": _BASE.expense_probability,
    "income_probability": _BASE.income_probability,
    "min_event_interval_ms": _BASE.min_event_interval_ms,
    "event_grace_ms": _BASE.event_grace_ms,
    "income_requires_ack": _BASE.income_requires_ack,
    "profit_share": _BASE.profit_share,
    "return_noise": _BASE.return_noise,
    "ai_bonus_probability": _BASE.ai_bonus_probability,
    "ai_bonus_multipliers": _BASE.ai_bonus_multipliers,
    "ai_annual_bonus_ratio": _BASE.ai_annual_bonus_ratio,
}

# Keys passed straight through to GameConfig
_CONFIG_KEYS = tuple(k for k in DEFAULTS if k not in ("difficulty", "seed"))


def load_config(path: Path | None = None) -> dict:
    """Load TOML config file. Returns empty dict if file doesn't exist.

    Accepts flat keys or [game] / [events] / [ai] tables, which are merged.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        print(f"Failed to read config file: {path}: {e}", file=sys.stderr)
        raise SystemExit(1)
    merged = {}
    for key, value in raw.items():
        if key in ("game", "events", "ai") and isinstance(value, dict):
            merged.update(value)
        else:
            merged[key] = value
    # Normalize bonus multipliers: TOML list / comma string → tuple
    if "ai_bonus_multipliers" in merged:
        merged["ai_bonus_multipliers"] = parse_multipliers(merged["ai_bonus_multipliers"])
    return merged


def parse_multipliers(v) -> tuple[float, ...]:
    """Parse "0.05,0.1" or [0.05, 0.1] → (0.05, 0.1). Raises ValueError on empty/negative."""
    if isinstance(v, str):
        parts = [p.strip() for p in v.split(",") if p.strip()]
    else:
        parts = list(v)
    values = tuple(float(p) for p in parts)
    if not values:
        raise ValueError("ai_bonus_multipliers must not be empty")
    if any(x < 0 for x in values):
        raise ValueError(f"ai_bonus_multipliers must be non-negative: {values}")
    return values


def create_parser(description: str) -> argparse.ArgumentParser:
    """Create argparse parser with shared game flags."""
    d = DEFAULTS
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--config", type=Path, default=None, help="config file path (default: config.toml)")
    parser.add_argument("--difficulty", choices=sorted(DIFFICULTIES), default=None, help=f"difficulty (default: {d['difficulty']})")
    parser.add_argument("--seed", type=int, default=None, help="random seed (default: unseeded)")
    parser.add_argument("--game-duration-ms", type=float, default=None, help=f"unpaused session length in ms (default: {d['game_duration_ms']:.0f})")
    parser.add_argument("--tick-interval-ms", type=float, default=None, help=f"minimum wall time between processed ticks (default: {d['tick_interval_ms']:.0f})")
    parser.add_argument("--expense-probability", type=float, default=None, help=f"expense chance per processed tick (default: {d['expense_probability']})")
    parser.add_argument("--income-probability", type=float, default=None, help=f"income chance per processed tick (default: {d['income_probability']})")
    parser.add_argument("--min-event-interval-ms", type=float, default=None, help=f"cooldown between events in game ms (default: {d['min_event_interval_ms']:.0f})")
    parser.add_argument("--event-grace-ms", type=float, default=None, help=f"no events before this game time (default: {d['event_grace_ms']:.0f})")
    parser.add_argument("--income-requires-ack", action="store_true", default=None, help="income events open a modal that must be acknowledged")
    parser.add_argument("--profit-share", type=float, default=None, help=f"share of returns that compounds; rest paid as cash (default: {d['profit_share']})")
    parser.add_argument("--no-return-noise", dest="return_noise", action="store_false", default=None, help="use fixed monthly rates for traditional assets")
    parser.add_argument("--ai-bonus-probability", type=float, default=None, help=f"AI monthly windfall chance (default: {d['ai_bonus_probability']})")
    parser.add_argument("--ai-bonus-multipliers", type=parse_multipliers, default=None, help="AI windfall sizes, comma separated (default: 0.05,0.08,0.10,0.12,0.15)")
    parser.add_argument("--ai-annual-bonus-ratio", type=float, default=None, help=f"AI year-end bonus ratio (default: {d['ai_annual_bonus_ratio']})")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging to stderr")
    return parser


def resolve(args: argparse.Namespace, config: dict) -> dict:
    """Resolve values with priority: CLI flag > config.toml > hardcoded default."""
    resolved = {}
    for key, default in DEFAULTS.items():
        cli_val = getattr(args, key, None)
        resolved[key] = cli_val if cli_val is not None else config.get(key, default)
    return resolved


def build_config(r: dict) -> GameConfig:
    """Build GameConfig from resolved config dict. Raises ValueError on out-of-range values."""
    values = {key: r[key] for key in _CONFIG_KEYS}
    values["ai_bonus_multipliers"] = parse_multipliers(values["ai_bonus_multipliers"])
    for key in ("expense_probability", "income_probability", "ai_bonus_probability", "profit_share"):
        if not 0 <= values[key] <= 1:
            raise ValueError(f"{key} must be within [0, 1], got {values[key]}")
    for key in ("game_duration_ms", "tick_interval_ms"):
        if values[key] <= 0:
            raise ValueError(f"{key} must be positive, got {values[key]}")
    return GameConfig(**values)


def parse_args(
    description: str,
    add_args_fn: Callable[[argparse.ArgumentParser], None] | None = None,
) -> tuple[dict, GameConfig, argparse.Namespace]:
    """Parse CLI args, load config, resolve values.

    Returns (resolved_dict, game_config, namespace).
    namespace: raw argparse.Namespace (for extra CLI args added via add_args_fn).
    """
    parser = create_parser(description)
    if add_args_fn:
        add_args_fn(parser)
    args = parser.parse_args()
    config = load_config(args.config)
    r = resolve(args, config)
    try:
        game_config = build_config(r)
    except ValueError as e:
        parser.error(str(e))
    return r, game_config, args
