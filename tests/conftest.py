from __future__ import annotations

from pathlib import Path

import pytest

from heybench.config import BenchmarkConfig

from .fakes import GREEN, HEY_REPORT, PLAIN


@pytest.fixture
def hey_report() -> str:
    return HEY_REPORT


@pytest.fixture
def small_config(tmp_path: Path) -> BenchmarkConfig:
    return BenchmarkConfig(
        targets=(GREEN, PLAIN),
        repetitions=3,
        requests=10,
        concurrency=2,
        pause_seconds=1.0,
        output_dir=tmp_path / "hey_results",
        dataset_path=tmp_path / "hey_results.csv",
        chart_dir=tmp_path / "charts",
    )
