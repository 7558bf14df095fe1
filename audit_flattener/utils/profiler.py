"""
Phase profiling for conversion runs.

Discovery and plan execution are the two passes over the in-memory dataset,
and on large exports either can dominate. `profile_phase` measures:
- Wall-clock time (perf_counter)
- Peak RSS via a background sampling thread (psutil)
- Peak Python allocations (tracemalloc)

Usage:
    from audit_flattener.utils.profiler import profile_phase

    with profile_phase("discovery") as stats:
        strategy.discover(records)

    summary["phases"]["discovery"] = stats.as_dict()
"""

from __future__ import annotations

import contextlib
import threading
import time
import tracemalloc
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Optional

import psutil


@dataclass
class PhaseStats:
    """
    Measurements for one pipeline phase.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    peak_rss_bytes: Optional[int] = field(default=None)
    peak_traced_bytes: Optional[int] = field(default=None)
    records: int = field(default=0)

    @property
    def records_per_sec(self) -> float:
        return self.records / self.duration_seconds if self.duration_seconds > 0 else 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "duration_seconds": round(self.duration_seconds, 3),
            "records": self.records,
            "records_per_sec": round(self.records_per_sec, 2),
            "peak_rss_bytes": self.peak_rss_bytes,
            "peak_traced_bytes": self.peak_traced_bytes,
        }


@contextlib.contextmanager
def profile_phase(
    label: str, sample_interval_ms: int = 50, enable_tracemalloc: bool = True
) -> Generator[PhaseStats, None, None]:
    """
    Profile one phase of a conversion run.

    Parameters
    ----------
    label : str
        Phase name, used in logs and the run summary.
    sample_interval_ms : int
        Interval in milliseconds between RSS samples.
    enable_tracemalloc : bool
        Whether to track Python-level allocation peaks.

    The caller sets `stats.records` inside the block so throughput can be
    derived once the phase ends.
    """
    stats = PhaseStats(label=label)
    process = psutil.Process()
    peak_rss = process.memory_info().rss
    stop_sampling = threading.Event()

    def _sample_memory() -> None:
        nonlocal peak_rss
        while not stop_sampling.is_set():
            try:
                peak_rss = max(peak_rss, process.memory_info().rss)
            except psutil.Error:
                return
            stop_sampling.wait(timeout=sample_interval_ms / 1000.0)

    tracemalloc_was_running = tracemalloc.is_tracing()
    if enable_tracemalloc and not tracemalloc_was_running:
        tracemalloc.start()

    sampler = threading.Thread(target=_sample_memory, daemon=True)
    sampler.start()

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts

        stop_sampling.set()
        sampler.join(timeout=1.0)
        stats.peak_rss_bytes = peak_rss if peak_rss > 0 else None

        if enable_tracemalloc and tracemalloc.is_tracing():
            _, peak_traced = tracemalloc.get_traced_memory()
            stats.peak_traced_bytes = peak_traced
            # Stop tracemalloc only if we started it
            if not tracemalloc_was_running:
                tracemalloc.stop()


__all__ = ["PhaseStats", "profile_phase"]
