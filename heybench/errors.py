from __future__ import annotations


class HeybenchError(Exception):
    """Base class for errors raised by the benchmark harness."""


class ConfigError(HeybenchError, ValueError):
    """Raised when a benchmark configuration is invalid."""


class BenchmarkCommandError(HeybenchError):
    """Raised when the external load generator fails to produce a report."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class DatasetError(HeybenchError):
    """Raised when the results dataset cannot be read."""


__all__ = [
    "HeybenchError",
    "ConfigError",
    "BenchmarkCommandError",
    "DatasetError",
]
