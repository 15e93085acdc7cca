"""
Palette Service Metrics
In-process counters and timings for pipeline runs, exposed at /palette/metrics.
"""
import statistics
import time
from collections import Counter, defaultdict
from threading import Lock
from typing import Any, Dict, List, Optional


class PaletteMetrics:
    """Thread-safe per-process metrics for palette extraction."""

    def __init__(self):
        self._lock = Lock()
        self.reset()

    def reset(self):
        with self._lock:
            self._counters: Counter = Counter()
            self._timings: Dict[str, List[float]] = defaultdict(list)
            self._palette_sizes: List[int] = []
            self._start_time = time.time()

    def record_request(self, backend: str):
        """Count one pipeline run and the backend it targets."""
        with self._lock:
            self._counters["palette_requests_total"] += 1
            self._counters[f"palette_backend_total_{backend}"] += 1

    def record_failure(self, error_kind: str):
        with self._lock:
            self._counters[f"palette_failed_total_{error_kind}"] += 1

    def record_timing(self, operation: str, duration_ms: float):
        with self._lock:
            self._timings[f"{operation}_duration_ms"].append(duration_ms)

    def record_palette_size(self, size: int):
        with self._lock:
            self._palette_sizes.append(size)

    def counters(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def timing_stats(self) -> Dict[str, Dict[str, float]]:
        """count/mean/p50/p95/max per timed operation."""
        with self._lock:
            series = {name: list(values) for name, values in self._timings.items() if values}

        stats = {}
        for name, values in series.items():
            # quantiles() needs two points; a single sample is its own p95
            p95 = statistics.quantiles(values, n=20)[18] if len(values) > 1 else values[0]
            stats[name] = {
                "count": len(values),
                "mean": statistics.fmean(values),
                "p50": statistics.median(values),
                "p95": p95,
                "max": max(values),
            }
        return stats

    def summary(self) -> Dict[str, Any]:
        with self._lock:
            sizes = list(self._palette_sizes)
            uptime = time.time() - self._start_time

        return {
            "uptime_seconds": uptime,
            "counters": self.counters(),
            "timing_stats": self.timing_stats(),
            "palette_size_stats": {
                "count": len(sizes),
                "mean": statistics.fmean(sizes),
                "max": max(sizes),
            } if sizes else {},
        }


_metrics: Optional[PaletteMetrics] = None


def get_metrics() -> PaletteMetrics:
    """Get or create the process-wide metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = PaletteMetrics()
    return _metrics


def reset_metrics():
    """Reset global metrics (for testing)."""
    if _metrics is not None:
        _metrics.reset()
