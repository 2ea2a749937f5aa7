from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Sequence

import pandas as pd

from .config import METRICS, BenchmarkConfig, Target, default_config
from .errors import DatasetError
from .extractor import DATASET_COLUMNS, BenchmarkRecord

LOGGER = logging.getLogger("heybench.dataset")


@dataclass(frozen=True)
class ResultRow:
    """Typed, target-attributed view of one dataset row."""

    target: str
    file: str
    rps: float
    p95: float
    average: float
    total: float

    def metric(self, name: str) -> float:
        if name not in METRICS:
            raise ValueError(f"Unknown metric: {name}")
        return getattr(self, name)


def infer_target(filename: str, targets: Sequence[Target], fallback: str) -> str:
    """Label of the target that produced ``filename``.

    Explicit markers are checked first, then each target's own artifact names;
    anything unrecognised gets ``fallback``.
    """
    for target in targets:
        if target.matches_marker(filename):
            return target.label
    for target in targets:
        if target.owns_artifact(filename):
            return target.label
    return fallback


def write_dataset(
    records: Iterable[BenchmarkRecord | Mapping[str, str]],
    path: str | Path,
    columns: Sequence[str] = DATASET_COLUMNS,
) -> Path:
    """Write records as CSV with a fixed header, overwriting ``path``."""
    path = Path(path)
    rows = [
        record.to_row() if isinstance(record, BenchmarkRecord) else dict(record)
        for record in records
    ]
    df = pd.DataFrame(rows, columns=list(columns))
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, na_rep="")
    LOGGER.info("CSV written to %s (%d rows)", path, len(df))
    return path


def read_dataset_frame(path: str | Path) -> pd.DataFrame:
    """Load the raw dataset as strings, normalised to the fixed column schema."""
    path = Path(path)
    if not path.is_file():
        raise DatasetError(f"dataset not found: {path}")
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, on_bad_lines="skip")
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=list(DATASET_COLUMNS))
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as exc:
        raise DatasetError(f"failed to read dataset {path}: {exc}") from exc

    missing = [column for column in DATASET_COLUMNS if column not in df.columns]
    if missing:
        LOGGER.warning("Dataset %s is missing columns: %s", path, ", ".join(missing))
    return df.reindex(columns=list(DATASET_COLUMNS))


def _numeric(series: pd.Series) -> pd.Series:
    return pd.to_numeric(series, errors="coerce").fillna(0.0).astype(float)


def read_dataset(path: str | Path, config: BenchmarkConfig | None = None) -> list[ResultRow]:
    """Reload a dataset written by :func:`write_dataset` into :class:`ResultRow` objects."""
    config = config or default_config()
    df = read_dataset_frame(path)
    if df.empty:
        return []

    files = df["file"].fillna("").astype(str)
    rps = _numeric(df["requests_per_sec"])
    p95 = _numeric(df["p95"])
    average = _numeric(df["average"])
    total = _numeric(df["total"])
    fallback = config.resolved_fallback_label()

    return [
        ResultRow(
            target=infer_target(files.iat[i], config.targets, fallback),
            file=files.iat[i],
            rps=float(rps.iat[i]),
            p95=float(p95.iat[i]),
            average=float(average.iat[i]),
            total=float(total.iat[i]),
        )
        for i in range(len(df))
    ]


__all__ = [
    "ResultRow",
    "infer_target",
    "read_dataset",
    "read_dataset_frame",
    "write_dataset",
]
