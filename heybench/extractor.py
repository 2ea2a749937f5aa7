"""Parsing of ``hey`` text reports into benchmark records.

``hey`` prints a summary block (``Total:``, ``Slowest:``, ``Requests/sec:`` ...)
followed by a latency distribution (``95% in 0.0456 secs``). Each field is
matched line by line against a fixed table of patterns; when a field appears
more than once the last match wins.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Iterable

LOGGER = logging.getLogger("heybench.extractor")

_NUMBER = r"([\d.]+)"

FIELD_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("p50", re.compile(r"50% in " + _NUMBER)),
    ("p75", re.compile(r"75% in " + _NUMBER)),
    ("p90", re.compile(r"90% in " + _NUMBER)),
    ("p95", re.compile(r"95% in " + _NUMBER)),
    ("p99", re.compile(r"99% in " + _NUMBER)),
    ("total", re.compile(r"Total:\s+" + _NUMBER)),
    ("fastest", re.compile(r"Fastest:\s+" + _NUMBER)),
    ("slowest", re.compile(r"Slowest:\s+" + _NUMBER)),
    ("average", re.compile(r"Average:\s+" + _NUMBER)),
    ("requests_per_sec", re.compile(r"Requests/sec:\s+" + _NUMBER)),
    ("size_request", re.compile(r"Size/request:\s+" + _NUMBER)),
)

DATASET_COLUMNS: tuple[str, ...] = (
    "file",
    "total",
    "average",
    "fastest",
    "slowest",
    "requests_per_sec",
    "size_request",
    "p50",
    "p75",
    "p90",
    "p95",
    "p99",
)


@dataclass(frozen=True)
class ReportMetrics:
    """Numeric fields scraped from one report; ``None`` means the field was absent."""

    total: float | None = None
    average: float | None = None
    fastest: float | None = None
    slowest: float | None = None
    requests_per_sec: float | None = None
    size_request: float | None = None
    p50: float | None = None
    p75: float | None = None
    p90: float | None = None
    p95: float | None = None
    p99: float | None = None

    def present(self) -> dict[str, float]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def is_empty(self) -> bool:
        return not self.present()


@dataclass(frozen=True)
class BenchmarkRecord:
    """Result of a single repetition against a single target."""

    file: str
    metrics: ReportMetrics = field(default_factory=ReportMetrics)
    target_url: str | None = None
    target_label: str | None = None
    repetition: int | None = None

    def to_row(self) -> dict[str, str]:
        row = {"file": self.file}
        for name, value in self.metrics.present().items():
            row[name] = f"{value:.4f}"
        return row


def _extract_float(pattern: re.Pattern[str], line: str) -> float | None:
    match = pattern.search(line)
    if match is None:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        # "[\d.]+" also matches strings such as "1.2.3"
        return None


def parse_lines(lines: Iterable[str]) -> ReportMetrics:
    values: dict[str, float] = {}
    for line in lines:
        for name, pattern in FIELD_PATTERNS:
            value = _extract_float(pattern, line)
            if value is not None:
                values[name] = value
    return ReportMetrics(**values)


def parse_report(text: str) -> ReportMetrics:
    """Parse the full text of a ``hey`` report."""
    return parse_lines(text.splitlines())


def parse_report_file(path: str | Path) -> BenchmarkRecord:
    """Parse a saved report; an unreadable file yields a record with no metrics."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            metrics = parse_lines(f)
    except OSError as exc:
        LOGGER.warning("Could not read report %s: %s", path, exc)
        metrics = ReportMetrics()
    return BenchmarkRecord(file=path.name, metrics=metrics)


__all__ = [
    "DATASET_COLUMNS",
    "FIELD_PATTERNS",
    "BenchmarkRecord",
    "ReportMetrics",
    "parse_lines",
    "parse_report",
    "parse_report_file",
]
