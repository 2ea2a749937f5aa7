from __future__ import annotations

import logging
import subprocess
from typing import Protocol

from .config import BenchmarkConfig, Target
from .errors import BenchmarkCommandError

LOGGER = logging.getLogger("heybench.command")


class BenchmarkCommand(Protocol):
    """Runs one load test against a target and returns the raw text report."""

    def run(self, target: Target) -> str: ...


class HeyCommand:
    """Invoke the ``hey`` load generator as a subprocess."""

    def __init__(
        self,
        executable: str = "hey",
        requests: int = 1000,
        concurrency: int = 100,
        method: str = "GET",
        timeout_seconds: float | None = None,
    ) -> None:
        self._executable = executable
        self._requests = requests
        self._concurrency = concurrency
        self._method = method
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_config(cls, config: BenchmarkConfig) -> "HeyCommand":
        return cls(
            executable=config.executable,
            requests=config.requests,
            concurrency=config.concurrency,
            method=config.method,
            timeout_seconds=config.timeout_seconds,
        )

    def argv(self, target: Target) -> list[str]:
        return [
            self._executable,
            "-n",
            str(self._requests),
            "-c",
            str(self._concurrency),
            "-m",
            self._method,
            target.url,
        ]

    def run(self, target: Target) -> str:
        argv = self.argv(target)
        LOGGER.debug("Executing %s", " ".join(argv))
        try:
            result = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self._timeout_seconds,
            )
        except FileNotFoundError as exc:
            raise BenchmarkCommandError(
                f"{self._executable!r} was not found on PATH"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise BenchmarkCommandError(
                f"{self._executable} timed out after {self._timeout_seconds}s against {target.url}"
            ) from exc
        except OSError as exc:
            raise BenchmarkCommandError(f"failed to start {self._executable}: {exc}") from exc

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise BenchmarkCommandError(
                f"{self._executable} exited with code {result.returncode}: {stderr or '<no stderr>'}",
                returncode=result.returncode,
                stderr=stderr,
            )
        return result.stdout


__all__ = ["BenchmarkCommand", "HeyCommand"]
