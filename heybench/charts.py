from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .config import DEFAULT_CHARTS, METRICS, ChartSpec
from .dataset import ResultRow

LOGGER = logging.getLogger("heybench.charts")

sns.set_style("whitegrid")
plt.rcParams["figure.dpi"] = 100
plt.rcParams["savefig.dpi"] = 150
plt.rcParams["font.size"] = 10
plt.rcParams["axes.labelsize"] = 11
plt.rcParams["axes.titlesize"] = 13
plt.rcParams["legend.fontsize"] = 9

METRIC_LABELS = {
    "rps": "Requests/sec",
    "p95": "p95 latency (s)",
    "average": "Average latency (s)",
    "total": "Total time (s)",
}

SERIES_COLORS = ["#2E86AB", "#6A994E", "#F18F01", "#A23B72", "#C73E1D"]


def results_frame(rows: Sequence[ResultRow]) -> pd.DataFrame:
    """Tabulate rows with a 1-based run index per target, preserving dataset order."""
    df = pd.DataFrame(
        [
            {"target": row.target, "file": row.file, **{m: row.metric(m) for m in METRICS}}
            for row in rows
        ],
        columns=["target", "file", *METRICS],
    )
    df["run"] = df.groupby("target", sort=False).cumcount() + 1
    return df


def run_axis(df: pd.DataFrame, repetitions: int | None = None) -> np.ndarray:
    """Test-run indices ``1..N``, widened when the data holds more runs than ``repetitions``."""
    observed = int(df["run"].max()) if not df.empty else 0
    if repetitions is None:
        repetitions = observed
    elif observed > repetitions:
        LOGGER.warning(
            "Dataset has %d runs per target but %d repetitions are configured; widening the axis",
            observed,
            repetitions,
        )
        repetitions = observed
    return np.arange(1, repetitions + 1)


def render_line_chart(
    rows: Sequence[ResultRow],
    metric: str,
    title: str,
    chart_path: str | Path,
    repetitions: int | None = None,
) -> Path:
    """Plot ``metric`` per target against the test-run index and save it as PNG.

    Every target gets its own series. A target with fewer points than the
    axis length is drawn against the first runs only.
    """
    if metric not in METRICS:
        raise ValueError(f"Unknown metric: {metric}")

    chart_path = Path(chart_path)
    df = results_frame(rows)
    runs = run_axis(df, repetitions)

    fig, ax = plt.subplots(figsize=(10, 6))
    for idx, (target, group) in enumerate(df.groupby("target", sort=False)):
        values = group[metric].to_numpy()
        ax.plot(
            runs[: len(values)],
            values,
            marker="o",
            linewidth=2,
            markersize=5,
            color=SERIES_COLORS[idx % len(SERIES_COLORS)],
            label=target,
        )

    if len(runs):
        ax.set_xticks(runs)
        ax.set_xlim(0.5, len(runs) + 0.5)
    ax.set_xlabel("Test Run", fontweight="semibold")
    ax.set_ylabel(METRIC_LABELS[metric], fontweight="semibold")
    ax.set_title(title, fontweight="bold", pad=15)
    ax.grid(True, alpha=0.3, linestyle="--")
    if not df.empty:
        ax.legend(loc="best", frameon=True)
    else:
        LOGGER.warning("No data available for %s chart", metric)

    chart_path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    fig.savefig(chart_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    LOGGER.info("Chart written to %s", chart_path)
    return chart_path


def render_report_charts(
    rows: Sequence[ResultRow],
    output_dir: str | Path,
    charts: Sequence[ChartSpec] = DEFAULT_CHARTS,
    repetitions: int | None = None,
) -> list[Path]:
    output_dir = Path(output_dir)
    return [
        render_line_chart(rows, chart.metric, chart.title, output_dir / chart.filename, repetitions)
        for chart in charts
    ]


__all__ = ["render_line_chart", "render_report_charts", "results_frame", "run_axis"]
