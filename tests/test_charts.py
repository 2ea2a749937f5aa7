import logging
from pathlib import Path

import pytest

from heybench.charts import render_line_chart, render_report_charts, results_frame, run_axis
from heybench.dataset import ResultRow

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def _rows():
    return [
        ResultRow("green-cloud", "hey_result_green_1.txt", 100.0, 0.2, 0.1, 2.0),
        ResultRow("t2no3", "hey_result_apis_1.txt", 80.0, 0.3, 0.15, 2.5),
        ResultRow("green-cloud", "hey_result_green_2.txt", 110.0, 0.19, 0.09, 1.9),
    ]


def test_results_frame_numbers_runs_per_target():
    df = results_frame(_rows())
    assert list(df["run"]) == [1, 1, 2]
    assert list(df["target"]) == ["green-cloud", "t2no3", "green-cloud"]


def test_render_line_chart_writes_png(tmp_path: Path):
    path = render_line_chart(_rows(), "rps", "Requests Per Second", tmp_path / "chart_rps.png", 3)

    assert path.read_bytes().startswith(PNG_MAGIC)


def test_empty_dataset_still_renders(tmp_path: Path):
    path = render_line_chart([], "p95", "95th Percentile Latency", tmp_path / "chart_p95.png", 30)

    assert path.exists()
    assert path.read_bytes().startswith(PNG_MAGIC)


def test_unknown_metric_is_rejected(tmp_path: Path):
    with pytest.raises(ValueError):
        render_line_chart(_rows(), "p42", "?", tmp_path / "x.png")


def test_render_report_charts_produces_four_files(tmp_path: Path):
    paths = render_report_charts(_rows(), tmp_path / "charts", repetitions=2)

    assert [p.name for p in paths] == [
        "chart_rps.png",
        "chart_p95.png",
        "chart_avg.png",
        "chart_total.png",
    ]
    assert all(p.exists() for p in paths)


def test_axis_widens_when_dataset_has_more_runs_than_configured(caplog):
    df = results_frame(_rows())

    with caplog.at_level(logging.WARNING, logger="heybench.charts"):
        runs = run_axis(df, repetitions=1)

    assert list(runs) == [1, 2]
    assert "widening the axis" in caplog.text


def test_axis_keeps_configured_length_for_short_series():
    assert list(run_axis(results_frame(_rows()), repetitions=4)) == [1, 2, 3, 4]
    assert list(run_axis(results_frame([]), repetitions=None)) == []
