from __future__ import annotations

import dataclasses
import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from .errors import ConfigError

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9]")

METRICS: tuple[str, ...] = ("rps", "p95", "average", "total")
ARTIFACT_PREFIX = "hey_result"


def slugify_url(url: str) -> str:
    """Turn a target URL into a token usable inside a file name."""
    return _UNSAFE_RE.sub("_", _SCHEME_RE.sub("", url))


@dataclass(frozen=True)
class Target:
    """HTTP endpoint under test and the rules used to recognise its artifacts."""

    url: str
    label: str
    marker: str | None = None

    def slug(self) -> str:
        return slugify_url(self.url)

    def artifact_name(self, repetition: int) -> str:
        return f"{ARTIFACT_PREFIX}_{self.slug()}_{repetition}.txt"

    def matches_marker(self, filename: str) -> bool:
        return bool(self.marker) and self.marker in filename

    def owns_artifact(self, filename: str) -> bool:
        """True when ``filename`` is exactly one of this target's artifact names."""
        pattern = rf"{ARTIFACT_PREFIX}_{re.escape(self.slug())}_\d+\.txt"
        return re.fullmatch(pattern, filename) is not None


@dataclass(frozen=True)
class ChartSpec:
    metric: str
    title: str
    filename: str


DEFAULT_TARGETS: tuple[Target, ...] = (
    Target(url="https://green-apis.nesgnas.uk/persons", label="green-cloud", marker="green"),
    Target(url="https://apis.nesgnas.uk/persons", label="t2no3"),
)

DEFAULT_CHARTS: tuple[ChartSpec, ...] = (
    ChartSpec(metric="rps", title="Requests Per Second", filename="chart_rps.png"),
    ChartSpec(metric="p95", title="95th Percentile Latency", filename="chart_p95.png"),
    ChartSpec(metric="average", title="Average Latency", filename="chart_avg.png"),
    ChartSpec(metric="total", title="Total Time", filename="chart_total.png"),
)


@dataclass(frozen=True)
class BenchmarkConfig:
    """Everything a benchmark run needs: targets, load shape and output locations."""

    targets: tuple[Target, ...] = DEFAULT_TARGETS
    repetitions: int = 30
    requests: int = 1000
    concurrency: int = 100
    method: str = "GET"
    pause_seconds: float = 1.0
    timeout_seconds: float | None = None
    executable: str = "hey"
    output_dir: Path = Path("hey_results")
    dataset_path: Path = Path("hey_results.csv")
    chart_dir: Path = Path(".")
    charts: tuple[ChartSpec, ...] = DEFAULT_CHARTS
    fallback_label: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.targets, tuple) or not self.targets:
            raise ConfigError("at least one target is required")
        for name in ("repetitions", "requests", "concurrency"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
        for name in ("pause_seconds", "timeout_seconds"):
            value = getattr(self, name)
            if value is None and name == "timeout_seconds":
                continue
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ConfigError(f"{name} must be a number, got {value!r}")
        if self.repetitions < 1:
            raise ConfigError("repetitions must be >= 1")
        if self.requests < 1:
            raise ConfigError("requests must be >= 1")
        if self.concurrency < 1:
            raise ConfigError("concurrency must be >= 1")
        if self.concurrency > self.requests:
            raise ConfigError("concurrency cannot exceed the total number of requests")
        if self.pause_seconds < 0:
            raise ConfigError("pause_seconds must be >= 0")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ConfigError("timeout_seconds must be > 0")
        for chart in self.charts:
            if chart.metric not in METRICS:
                raise ConfigError(f"unknown chart metric: {chart.metric!r}")
        slugs = [target.slug() for target in self.targets]
        if len(set(slugs)) != len(slugs):
            raise ConfigError("target URLs must produce distinct artifact names")
        labels = [target.label for target in self.targets]
        if len(set(labels)) != len(labels):
            raise ConfigError("target labels must be distinct")

    def resolved_fallback_label(self) -> str:
        """Label assigned to artifacts that match no target marker."""
        if self.fallback_label:
            return self.fallback_label
        unmarked = [target for target in self.targets if not target.marker]
        if unmarked:
            return unmarked[-1].label
        return self.targets[-1].label

    def manifest_path(self) -> Path:
        return self.dataset_path.parent / "benchmark_manifest.json"


def default_config() -> BenchmarkConfig:
    """Return the stock configuration: two endpoints, 30 repetitions each."""

    return BenchmarkConfig()


def parse_target(spec: str) -> Target:
    """Parse ``URL[=LABEL[:MARKER]]`` as accepted on the command line."""
    url, sep, rest = spec.partition("=")
    url = url.strip()
    if not url:
        raise ConfigError(f"invalid target {spec!r}")
    if not sep:
        return Target(url=url, label=slugify_url(url))
    label, _, marker = rest.partition(":")
    return Target(url=url, label=label.strip() or slugify_url(url), marker=marker.strip() or None)


def load_config(path: str | Path | None, base: BenchmarkConfig | None = None) -> BenchmarkConfig:
    """Load a JSON configuration file; keys override ``base`` (or the defaults)."""
    config = base or default_config()
    if not path:
        return config
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as exc:
        raise ConfigError(f"configuration file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"configuration file {path} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("configuration root must be a JSON object")
    return apply_overrides(config, raw)


def apply_overrides(config: BenchmarkConfig, overrides: dict[str, Any]) -> BenchmarkConfig:
    known = {f.name for f in dataclasses.fields(BenchmarkConfig)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None and key not in {"timeout_seconds", "fallback_label"}:
            continue
        if key in {"targets", "charts"} and not isinstance(value, (list, tuple)):
            raise ConfigError(f"{key} must be a list, got {value!r}")
        if key == "targets":
            values[key] = _coerce_targets(value)
        elif key == "charts":
            values[key] = tuple(_coerce_chart(item) for item in value)
        elif key in {"output_dir", "dataset_path", "chart_dir"}:
            values[key] = Path(value)
        else:
            values[key] = value
    try:
        return dataclasses.replace(config, **values)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc


def _coerce_targets(value: Sequence[Any]) -> tuple[Target, ...]:
    targets = []
    for item in value:
        if isinstance(item, Target):
            targets.append(item)
        elif isinstance(item, str):
            targets.append(parse_target(item))
        elif isinstance(item, dict) and item.get("url"):
            targets.append(
                Target(
                    url=item["url"],
                    label=item.get("label") or slugify_url(item["url"]),
                    marker=item.get("marker"),
                )
            )
        else:
            raise ConfigError(f"invalid target entry: {item!r}")
    return tuple(targets)


def _coerce_chart(item: Any) -> ChartSpec:
    if isinstance(item, ChartSpec):
        return item
    try:
        return ChartSpec(metric=item["metric"], title=item["title"], filename=item["filename"])
    except (KeyError, TypeError) as exc:
        raise ConfigError(f"invalid chart entry: {item!r}") from exc


__all__ = [
    "ARTIFACT_PREFIX",
    "METRICS",
    "BenchmarkConfig",
    "ChartSpec",
    "Target",
    "apply_overrides",
    "default_config",
    "load_config",
    "parse_target",
    "slugify_url",
]
