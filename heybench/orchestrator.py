from __future__ import annotations

import collections
import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .command import BenchmarkCommand
from .config import BenchmarkConfig, Target
from .errors import BenchmarkCommandError
from .extractor import BenchmarkRecord, parse_report_file

LOGGER = logging.getLogger("heybench.orchestrator")


@dataclass
class TargetStatistics:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0


@dataclass
class RunSummary:
    """Records collected by a run plus per-target success/failure counters."""

    records: list[BenchmarkRecord] = field(default_factory=list)
    per_target: dict[str, TargetStatistics] = field(
        default_factory=lambda: collections.defaultdict(TargetStatistics)
    )
    started_at: float = 0.0
    finished_at: float = 0.0

    @property
    def duration_s(self) -> float:
        return max(self.finished_at - self.started_at, 0.0)

    @property
    def attempted(self) -> int:
        return sum(stats.attempted for stats in self.per_target.values())

    @property
    def failed(self) -> int:
        return sum(stats.failed for stats in self.per_target.values())

    def to_dict(self) -> dict[str, object]:
        return {
            "duration_s": round(self.duration_s, 3),
            "attempted": self.attempted,
            "succeeded": len(self.records),
            "failed": self.failed,
            "targets": {
                label: {
                    "attempted": stats.attempted,
                    "succeeded": stats.succeeded,
                    "failed": stats.failed,
                }
                for label, stats in self.per_target.items()
            },
        }


def artifact_name(target: Target, repetition: int) -> str:
    return target.artifact_name(repetition)


class BenchmarkOrchestrator:
    """Runs every repetition for every configured target, one process at a time."""

    def __init__(
        self,
        config: BenchmarkConfig,
        command: BenchmarkCommand,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._command = command
        self._sleep = sleep

    def prepare_output_dir(self) -> Path:
        output_dir = self._config.output_dir
        if output_dir.exists():
            shutil.rmtree(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir

    def run(self) -> RunSummary:
        self.prepare_output_dir()
        summary = RunSummary(started_at=time.time())
        first = True

        for target in self._config.targets:
            stats = summary.per_target[target.label]
            for repetition in range(1, self._config.repetitions + 1):
                if not first and self._config.pause_seconds > 0:
                    self._sleep(self._config.pause_seconds)
                first = False

                LOGGER.info(
                    "Running test %d/%d for %s",
                    repetition,
                    self._config.repetitions,
                    target.url,
                )
                stats.attempted += 1
                record = self.run_once(target, repetition)
                if record is None:
                    stats.failed += 1
                    continue
                stats.succeeded += 1
                summary.records.append(record)

        summary.finished_at = time.time()
        LOGGER.info(
            "Completed %d/%d repetitions in %.1fs (%d failed)",
            len(summary.records),
            summary.attempted,
            summary.duration_s,
            summary.failed,
        )
        return summary

    def run_once(self, target: Target, repetition: int) -> BenchmarkRecord | None:
        """Run a single repetition; ``None`` means it failed and was skipped."""
        try:
            output = self._command.run(target)
        except BenchmarkCommandError as exc:
            LOGGER.error("Error running benchmark against %s (run %d): %s", target.url, repetition, exc)
            return None

        path = self._config.output_dir / artifact_name(target, repetition)
        try:
            path.write_text(output, encoding="utf-8")
        except OSError as exc:
            LOGGER.error("Could not save report %s: %s", path, exc)
            return None

        parsed = parse_report_file(path)
        if parsed.metrics.is_empty():
            LOGGER.warning("No metrics found in %s", path)
        return BenchmarkRecord(
            file=parsed.file,
            metrics=parsed.metrics,
            target_url=target.url,
            target_label=target.label,
            repetition=repetition,
        )


__all__ = [
    "BenchmarkOrchestrator",
    "RunSummary",
    "TargetStatistics",
    "artifact_name",
]
