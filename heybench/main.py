from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from .charts import render_report_charts
from .command import HeyCommand
from .config import BenchmarkConfig, apply_overrides, load_config, parse_target
from .dataset import read_dataset, write_dataset
from .errors import DatasetError
from .orchestrator import BenchmarkOrchestrator, RunSummary, artifact_name

LOGGER = logging.getLogger("heybench")


def _env_number(name: str, cast):
    value = os.environ.get(name)
    if not value:
        return None
    try:
        return cast(value)
    except ValueError:
        print(f"invalid {name} value {value!r}; ignoring", file=sys.stderr)
        return None


def _env_float(name: str) -> float | None:
    return _env_number(name, float)


def _env_int(name: str) -> int | None:
    return _env_number(name, int)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Repeatedly load-test HTTP endpoints with hey and chart the results"
    )
    parser.add_argument(
        "--config",
        default=os.environ.get("HEYBENCH_CONFIG"),
        help="Optional JSON file overriding the default configuration",
    )
    parser.add_argument(
        "--target",
        action="append",
        dest="targets",
        metavar="URL[=LABEL[:MARKER]]",
        help="Endpoint to benchmark (repeatable); replaces the configured targets",
    )
    parser.add_argument("--repetitions", type=int, default=_env_int("HEYBENCH_REPETITIONS"))
    parser.add_argument(
        "--requests",
        type=int,
        default=_env_int("HEYBENCH_REQUESTS"),
        help="Total number of requests per run (hey -n)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=_env_int("HEYBENCH_CONCURRENCY"),
        help="Number of concurrent workers per run (hey -c)",
    )
    parser.add_argument(
        "--pause",
        type=float,
        dest="pause_seconds",
        default=_env_float("HEYBENCH_PAUSE_SECONDS"),
        help="Seconds to wait between runs",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        dest="timeout_seconds",
        default=_env_float("HEYBENCH_TIMEOUT_SECONDS"),
        help="Abort a single run after this many seconds",
    )
    parser.add_argument("--executable", default=os.environ.get("HEYBENCH_EXECUTABLE"))
    parser.add_argument(
        "--output-dir",
        default=os.environ.get("HEYBENCH_OUTPUT_DIR"),
        help="Directory for raw hey reports (cleared at the start of a run)",
    )
    parser.add_argument(
        "--dataset",
        dest="dataset_path",
        default=os.environ.get("HEYBENCH_DATASET"),
        help="CSV file aggregating all runs",
    )
    parser.add_argument(
        "--chart-dir",
        default=os.environ.get("HEYBENCH_CHART_DIR"),
        help="Directory to write the PNG charts to",
    )
    parser.add_argument(
        "--report-only",
        action="store_true",
        help="Skip benchmarking and only chart an existing dataset",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the planned runs without executing them",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("HEYBENCH_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_config(args: argparse.Namespace) -> BenchmarkConfig:
    config = load_config(args.config)
    overrides: dict[str, Any] = {
        key: getattr(args, key)
        for key in (
            "repetitions",
            "requests",
            "concurrency",
            "pause_seconds",
            "executable",
            "output_dir",
            "dataset_path",
            "chart_dir",
        )
        if getattr(args, key) is not None
    }
    if args.timeout_seconds is not None:
        overrides["timeout_seconds"] = args.timeout_seconds
    if args.targets:
        overrides["targets"] = [parse_target(spec) for spec in args.targets]
    return apply_overrides(config, overrides)


def write_manifest(config: BenchmarkConfig, summary: RunSummary | None, charts: list[Path]) -> Path:
    manifest = {
        "dataset": str(config.dataset_path),
        "charts": [str(path) for path in charts],
        "targets": [
            {"url": target.url, "label": target.label, "marker": target.marker}
            for target in config.targets
        ],
        "run": summary.to_dict() if summary is not None else None,
    }
    path = config.manifest_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2)
    LOGGER.info("Benchmark manifest written to %s", path)
    return path


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = build_config(args)
    except ValueError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 2

    if args.dry_run:
        _print_plan(config)
        return 0

    summary = None
    if not args.report_only:
        LOGGER.info("Benchmark output directory: %s", config.output_dir)
        orchestrator = BenchmarkOrchestrator(config, HeyCommand.from_config(config))
        summary = orchestrator.run()
        try:
            write_dataset(summary.records, config.dataset_path)
        except OSError as exc:
            LOGGER.error("Error writing CSV %s: %s", config.dataset_path, exc)
            return 1

    try:
        rows = read_dataset(config.dataset_path, config)
    except DatasetError as exc:
        LOGGER.error("Failed to read CSV: %s", exc)
        return 1

    charts = render_report_charts(rows, config.chart_dir, config.charts, config.repetitions)
    write_manifest(config, summary, charts)
    return 0


def _print_plan(config: BenchmarkConfig) -> None:
    print(
        f"hey -n {config.requests} -c {config.concurrency} -m {config.method}, "
        f"{config.repetitions} runs per target, pause={config.pause_seconds}s"
    )
    for target in config.targets:
        marker = f", marker={target.marker!r}" if target.marker else ""
        print(f"  - {target.label}: {target.url}{marker}")
        print(f"      {config.output_dir / artifact_name(target, 1)} ...")
    print(f"Dataset: {config.dataset_path}")
    for chart in config.charts:
        print(f"Chart: {config.chart_dir / chart.filename} ({chart.title})")


if __name__ == "__main__":
    sys.exit(main())
