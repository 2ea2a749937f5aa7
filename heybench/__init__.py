"""
Repeated HTTP load testing with ``hey``.

This package runs the ``hey`` load generator against a set of endpoints many
times over, scrapes each text report into a record, aggregates the records into
a CSV dataset and renders per-endpoint line charts of throughput and latency.
"""

from .main import main

__all__ = ["main"]
