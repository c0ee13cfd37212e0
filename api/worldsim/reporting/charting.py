"""Time-series charts of the world log.

Renders food and population/workers charts with matplotlib, each in a
desktop and a mobile layout, with alternate simulated years shaded.

Example:
    >>> from worldsim.persistence.queries import get_tick_history
    >>> df = get_tick_history(store.conn, year_length=60, last=1440)
    >>> series = TickSeries.from_frame(df, year_length=60)
    >>> render_all_charts(series, Path("charts"))
    [PosixPath('charts/food.png'), ...]
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import matplotlib.ticker as ticker  # noqa: E402
import polars as pl  # noqa: E402

COLORS = {
    "food": "#16a34a",  # Green
    "population": "#2563eb",  # Blue
    "workers": "#f59e0b",  # Amber
    "births": "#0ea5e9",  # Light blue
    "deaths": "#dc2626",  # Red
    "year_band": "#f1f5f9",  # Very light gray
    "grid": "#e2e8f0",  # Light gray
    "text": "#334155",  # Dark gray
}


@dataclass(frozen=True)
class ChartVariant:
    suffix: str
    figsize: tuple[float, float]
    dpi: int
    title_size: int


DESKTOP = ChartVariant(suffix="", figsize=(10, 5), dpi=120, title_size=14)
MOBILE = ChartVariant(suffix="_mobile", figsize=(5, 6), dpi=160, title_size=11)
VARIANTS = (DESKTOP, MOBILE)


@dataclass(frozen=True)
class TickSeries:
    """Columns of the tick log needed for charting."""

    tick_index: list[int]
    population: list[int]
    food: list[float]
    workers: list[int]
    births: list[int]
    deaths: list[int]
    year_length: int

    @classmethod
    def from_frame(cls, df: pl.DataFrame, year_length: int) -> TickSeries:
        """Build a series from a tick history DataFrame.

        Raises:
            ValueError: If the frame is empty
        """
        if df.height == 0:
            raise ValueError("Cannot chart an empty tick history")
        df = df.sort("tick_index")
        return cls(
            tick_index=df["tick_index"].to_list(),
            population=df["population"].to_list(),
            food=df["food"].to_list(),
            workers=df["workers"].to_list(),
            births=df["births"].to_list(),
            deaths=df["deaths"].to_list(),
            year_length=year_length,
        )

    def __len__(self) -> int:
        return len(self.tick_index)


def render_food_chart(series: TickSeries, output_path: Path, variant: ChartVariant = DESKTOP) -> Path:
    """Render the food stock over time."""
    plt.style.use("seaborn-v0_8-whitegrid")
    fig, ax = plt.subplots(figsize=variant.figsize)

    _shade_years(ax, series)
    ax.plot(series.tick_index, series.food, color=COLORS["food"], linewidth=2, label="Food")
    ax.fill_between(series.tick_index, series.food, color=COLORS["food"], alpha=0.12)

    ax.set_ylabel("Food stock", color=COLORS["text"])
    ax.yaxis.set_major_formatter(ticker.FuncFormatter(lambda v, _pos: f"{v:,.0f}"))
    ax.set_ylim(bottom=0)
    _finish(fig, ax, series, "Food", variant, output_path)
    return output_path


def render_population_chart(
    series: TickSeries, output_path: Path, variant: ChartVariant = DESKTOP
) -> Path:
    """Render population and workers, with births/deaths bars on a second axis."""
    plt.style.use("seaborn-v0_8-whitegrid")
    fig, ax = plt.subplots(figsize=variant.figsize)

    _shade_years(ax, series)
    ax.plot(
        series.tick_index,
        series.population,
        color=COLORS["population"],
        linewidth=2.2,
        label="Population",
    )
    ax.plot(
        series.tick_index,
        series.workers,
        color=COLORS["workers"],
        linewidth=1.6,
        linestyle="--",
        label="Workers",
    )
    ax.set_ylabel("People", color=COLORS["text"])
    ax.set_ylim(bottom=0)

    flows = ax.twinx()
    flows.bar(series.tick_index, series.births, color=COLORS["births"], alpha=0.35, width=1.0, label="Births")
    flows.bar(
        series.tick_index,
        [-d for d in series.deaths],
        color=COLORS["deaths"],
        alpha=0.35,
        width=1.0,
        label="Deaths",
    )
    flows.set_ylabel("Births / deaths per tick", color=COLORS["text"])
    flows.grid(False)

    handles, labels = ax.get_legend_handles_labels()
    flow_handles, flow_labels = flows.get_legend_handles_labels()
    ax.legend(handles + flow_handles, labels + flow_labels, loc="upper left", framealpha=0.9)

    _finish(fig, ax, series, "Population & workers", variant, output_path, legend=False)
    return output_path


def render_all_charts(series: TickSeries, out_dir: Path) -> list[Path]:
    """Write food and population charts in every layout.

    Returns:
        Paths written: food.png, food_mobile.png, pop_workers.png, pop_workers_mobile.png
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for variant in VARIANTS:
        written.append(render_food_chart(series, out_dir / f"food{variant.suffix}.png", variant))
    for variant in VARIANTS:
        written.append(
            render_population_chart(series, out_dir / f"pop_workers{variant.suffix}.png", variant)
        )
    return written


def _shade_years(ax: plt.Axes, series: TickSeries) -> None:
    """Shade every other simulated year in the plotted range."""
    first_year = series.tick_index[0] // series.year_length
    last_year = series.tick_index[-1] // series.year_length
    for year in range(first_year, last_year + 1):
        if year % 2 == 1:
            start = year * series.year_length
            ax.axvspan(start, start + series.year_length, color=COLORS["year_band"], zorder=0)


def _finish(
    fig: plt.Figure,
    ax: plt.Axes,
    series: TickSeries,
    title: str,
    variant: ChartVariant,
    output_path: Path,
    legend: bool = True,
) -> None:
    first_year = series.tick_index[0] // series.year_length
    last_year = series.tick_index[-1] // series.year_length
    span = f"year {first_year}" if first_year == last_year else f"years {first_year}-{last_year}"
    ax.set_title(
        f"{title} ({span})",
        fontsize=variant.title_size,
        fontweight="medium",
        color=COLORS["text"],
    )
    ax.set_xlabel("Tick", color=COLORS["text"])
    ax.xaxis.set_major_locator(ticker.MaxNLocator(integer=True))
    ax.set_xlim(series.tick_index[0], max(series.tick_index[-1], series.tick_index[0] + 1))

    if legend:
        ax.legend(loc="upper left", framealpha=0.9)

    ax.spines["top"].set_visible(False)
    ax.grid(True, alpha=0.3, color=COLORS["grid"])

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(output_path, dpi=variant.dpi, bbox_inches="tight")
    plt.close(fig)
