"""Chart generation for game results."""

from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker

from wealth_race.events import EventKind
from wealth_race.monte_carlo import MonteCarloResult

DIFFICULTY_COLORS = {
    "easy": "#2ca02c",    # green
    "medium": "#ff7f0e",  # orange
    "hard": "#d62728",    # red
}
PLAYER_COLOR = "#1f77b4"
AI_COLOR = "#7f7f7f"
DEFAULT_COLOR = "#9467bd"


def _format_lakh_axis(ax: plt.Axes):
    """Thousands separators on the left, lakh (1e5) labels on the right."""
    ax.yaxis.set_major_formatter(
        ticker.FuncFormatter(lambda x, _: f"{x:,.0f}")
    )
    ax_right = ax.secondary_yaxis("right")
    ax_right.yaxis.set_major_formatter(
        ticker.FuncFormatter(lambda x, _: f"{x / 100000:.1f}L" if x != 0 else "0")
    )
    ax_right.set_ylabel("")


def plot_trajectory(state, output_path: Path, name: str = "") -> Path:
    """Line chart of player vs AI net worth by simulated month.

    Args:
        state: finished GameState (with monthly_log and events).
        output_path: directory to save the PNG.
        name: optional suffix for the output filename (e.g. "easy" → "trajectory-easy.png").

    Returns:
        Path to the generated PNG file.
    """
    fig, ax = plt.subplots(figsize=(14, 8))

    log = state.monthly_log
    months = [row["month"] for row in log]
    ax.plot(months, [row["net_worth"] for row in log], label="You", color=PLAYER_COLOR, linewidth=2)
    ax.plot(months, [row["ai_net_worth"] for row in log], label="Computer", color=AI_COLOR, linewidth=2)
    ax.plot(months, [row["cash"] for row in log], label="Cash", color=PLAYER_COLOR,
            linewidth=1, linestyle="--", alpha=0.6)

    ax.set_xlabel("Month")
    ax.set_ylabel("Net worth (₹)")
    ax.set_title(f"Net worth race ({state.difficulty.name})")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)
    ax.axhline(0, color="#000000", linewidth=0.6)
    _format_lakh_axis(ax)

    # Mark life events on the month they were logged in
    event_months = _event_months(state)
    y_lo, y_hi = ax.get_ylim()
    for i, (month, event) in enumerate(event_months):
        color = "#27ae60" if event.kind == EventKind.INCOME else "#c0392b"
        ax.axvline(month, color=color, linewidth=0.7, linestyle=":", alpha=0.5, zorder=3)
        y_pos = y_lo + (y_hi - y_lo) * (0.05 + 0.06 * (i % 5))
        sign = "+" if event.kind == EventKind.INCOME else "-"
        ax.annotate(
            f"{sign}{event.title}",
            xy=(month, y_pos), fontsize=8, color=color, ha="center", va="bottom",
        )

    output_path.mkdir(parents=True, exist_ok=True)
    suffix = f"-{name}" if name else ""
    filepath = output_path / f"trajectory{suffix}.png"
    fig.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return filepath


def _event_months(state) -> list[tuple[int, object]]:
    """Scheduled (non-appraisal) events paired with the month they were logged in."""
    return [
        (event.month, event) for event in state.events
        if event.month is not None and not event.id.startswith("appraisal-")
    ]


def plot_mc_fan(
    mc_results: list[MonteCarloResult],
    output_path: Path,
    name: str = "",
) -> Path:
    """Fan chart (P5-P95 bands, P50 line) of net worth by month per difficulty."""
    fig, ax = plt.subplots(figsize=(14, 8))

    for r in mc_results:
        if not r.monthly_percentiles:
            continue
        color = DIFFICULTY_COLORS.get(r.difficulty, DEFAULT_COLOR)
        months = sorted(r.monthly_percentiles)
        p = {q: [r.monthly_percentiles[m][q] for m in months] for q in (5, 25, 50, 75, 95)}
        ax.fill_between(months, p[5], p[95], color=color, alpha=0.12)
        ax.fill_between(months, p[25], p[75], color=color, alpha=0.25)
        ax.plot(months, p[50], color=color, linewidth=2,
                label=f"{r.difficulty} (win {r.win_probability:.0%})")

    ax.set_xlabel("Month")
    ax.set_ylabel("Net worth (₹)")
    ax.set_title("Monte Carlo net worth (P5-P95 / P25-P75 / P50)")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)
    _format_lakh_axis(ax)

    output_path.mkdir(parents=True, exist_ok=True)
    suffix = f"-{name}" if name else ""
    filepath = output_path / f"mc-fan{suffix}.png"
    fig.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return filepath
