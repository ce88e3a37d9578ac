"""
Benchmark results.

Parses ``go test -bench`` output into pandas DataFrames and keeps the raw
output of every successful benchmark run in a JSON store, keyed by benchmark
name (or by directory when every benchmark was run), so runs can be compared
over time.
"""

from __future__ import annotations

import json
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

COLUMNS = [
    "benchmark",
    "procs",
    "iterations",
    "ns_per_op",
    "bytes_per_op",
    "allocs_per_op",
    "mb_per_s",
]

# go test -bench units -> column names
UNIT_COLUMNS = {
    "ns/op": "ns_per_op",
    "B/op": "bytes_per_op",
    "allocs/op": "allocs_per_op",
    "MB/s": "mb_per_s",
}

_RESULT_LINE = re.compile(r"^(Benchmark\S*?)(?:-(\d+))?\s+(\d+)\s+(.*)$")
_METRIC = re.compile(r"([0-9.]+(?:[eE][+-]?\d+)?)\s+(\S+)")


def parse_benchmark_output(text: str) -> pd.DataFrame:
    """Parse ``go test -bench`` output into one row per result line.

    Args:
        text: Raw output; lines that are not benchmark results are ignored

    Returns:
        DataFrame with COLUMNS; metrics a line does not report are NaN

    Example:
        >>> frame = parse_benchmark_output("BenchmarkAdd-8  1000000  12.5 ns/op")
        >>> float(frame.loc[0, "ns_per_op"])
        12.5
    """
    rows = []
    for line in text.splitlines():
        match = _RESULT_LINE.match(line.strip())
        if not match:
            continue
        name, procs, iterations, metrics = match.groups()
        row: Dict[str, object] = {
            "benchmark": name,
            "procs": int(procs) if procs else None,
            "iterations": int(iterations),
        }
        for value, unit in _METRIC.findall(metrics):
            column = UNIT_COLUMNS.get(unit)
            if column is not None:
                row[column] = float(value)
        rows.append(row)

    return pd.DataFrame(rows, columns=COLUMNS)


class BenchmarkStore:
    """JSON store of raw benchmark output, ``{key: {timestamp: output}}``."""

    def __init__(self, path: PathLike):
        self.path = Path(path)

    def _read(self) -> Dict[str, Dict[str, str]]:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)

    def _write(self, data: Dict[str, Dict[str, str]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        os.replace(tmp, self.path)

    def record(self, key: str, output: str, when: Optional[datetime] = None) -> str:
        """Store one run's output under ``key``. Returns the run timestamp."""
        when = when or datetime.now(timezone.utc)
        stamp = when.isoformat()
        data = self._read()
        data.setdefault(key, {})[stamp] = output
        self._write(data)
        logger.debug("Stored benchmark run %s for %s", stamp, key)
        return stamp

    def keys(self) -> List[str]:
        return sorted(self._read())

    def runs(self, key: str) -> Dict[str, str]:
        """Raw output of every run for ``key``, oldest first."""
        return dict(sorted(self._read().get(key, {}).items()))

    def frame(self, key: str) -> pd.DataFrame:
        """Every run for ``key`` parsed and stacked, with a ``run_at`` column."""
        frames = []
        for stamp, output in self.runs(key).items():
            parsed = parse_benchmark_output(output)
            parsed.insert(0, "run_at", pd.Timestamp(stamp))
            frames.append(parsed)
        if not frames:
            return pd.DataFrame(columns=["run_at", *COLUMNS])
        return pd.concat(frames, ignore_index=True)

    def summary(self, key: str) -> pd.DataFrame:
        """Per-benchmark run count and mean/min/max ns/op across all runs."""
        frame = self.frame(key)
        if frame.empty:
            return pd.DataFrame(columns=["benchmark", "runs", "mean_ns_per_op", "min_ns_per_op", "max_ns_per_op"])
        return (
            frame.groupby("benchmark", sort=False)["ns_per_op"]
            .agg(runs="count", mean_ns_per_op="mean", min_ns_per_op="min", max_ns_per_op="max")
            .reset_index()
        )
