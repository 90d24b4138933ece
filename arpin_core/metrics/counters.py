"""
Tracking session counters and histograms.

One MetricsCollector per tracking session. The filter and the gate of a
pipeline share it, so a session's diagnostics read as one report:

- counters: fixes in, filter initializations/updates/resets, accuracy
  clamps, skipped altitude, gate accepts and rejects per rule
- drop reasons: why the gate withheld an estimate
- histograms: Kalman gain per update, displacement since last accept
"""

import logging
import threading
import time
from typing import Dict, List, Optional
from dataclasses import dataclass
from collections import defaultdict
import statistics

logger = logging.getLogger(__name__)

STANDARD_COUNTERS = (
    'fixes_in',
    'filter_initialized',
    'filter_updates',
    'filter_resets',
    'accuracy_clamped',
    'altitude_skipped',
    'gate_accepted',
    'gate_rejected',
    'gate_resets',
)


@dataclass
class CounterSnapshot:
    """Copy of a session's metrics at one point in time."""

    timestamp: float
    counters: Dict[str, int]
    drop_reasons: Dict[str, int]
    histograms: Dict[str, List[float]]

    def total_dropped(self) -> int:
        return sum(self.drop_reasons.values())


def summarize_samples(samples: List[float]) -> Optional[Dict[str, float]]:
    """
    Summary statistics of histogram samples.

    Returns:
        Dict with count, min, max, mean, median, p95; None if empty
    """
    if not samples:
        return None

    ordered = sorted(samples)
    count = len(ordered)
    return {
        'count': count,
        'min': ordered[0],
        'max': ordered[-1],
        'mean': statistics.mean(ordered),
        'median': statistics.median(ordered),
        'p95': ordered[int(count * 0.95)] if count > 1 else ordered[0],
    }


class MetricsCollector:
    """
    Thread-safe diagnostics for one tracking session.

    Usage:
        metrics = MetricsCollector()
        metrics.increment('fixes_in')
        metrics.increment_drop('below_min_distance')
        metrics.record_histogram('filter_gain', 0.12)

        print(metrics.format_summary())
    """

    DROP_REASONS = {
        'below_min_distance': 'Estimate within minimum distance of last accepted',
    }

    # Histograms are halved once they grow past this
    MAX_HISTOGRAM_SAMPLES = 10000

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = defaultdict(int)
        self._drop_reasons: Dict[str, int] = defaultdict(int)
        self._histograms: Dict[str, List[float]] = defaultdict(list)
        self._start_time = time.time()

        # Zeroed keys keep reports stable before anything happens
        for name in STANDARD_COUNTERS:
            self._counters[name] = 0
        for reason in self.DROP_REASONS:
            self._drop_reasons[reason] = 0

    def increment(self, counter_name: str, value: int = 1):
        with self._lock:
            self._counters[counter_name] += value

    def increment_drop(self, reason: str, value: int = 1):
        """
        Count a withheld estimate under a reason code.

        Unknown reasons are counted too, with a warning. Every drop also
        increments the 'estimates_dropped' counter.
        """
        if reason not in self.DROP_REASONS:
            logger.warning("Unknown drop reason '%s'", reason)

        with self._lock:
            self._drop_reasons[reason] += value
            self._counters['estimates_dropped'] += value

    def get_counter(self, counter_name: str) -> int:
        """Current value of a counter (0 if never incremented)."""
        with self._lock:
            return self._counters.get(counter_name, 0)

    def record_histogram(self, histogram_name: str, value: float, max_samples: Optional[int] = None):
        """
        Append a sample to a histogram.

        Args:
            histogram_name: Histogram key
            value: Sample
            max_samples: Bound on retained samples (MAX_HISTOGRAM_SAMPLES if None)
        """
        limit = max_samples or self.MAX_HISTOGRAM_SAMPLES

        with self._lock:
            samples = self._histograms[histogram_name]
            samples.append(value)
            if len(samples) > limit:
                self._histograms[histogram_name] = samples[-limit // 2:]

    def get_histogram_stats(self, histogram_name: str) -> Optional[Dict[str, float]]:
        """Summary statistics of a histogram, None if it has no samples."""
        with self._lock:
            samples = list(self._histograms.get(histogram_name, []))
        return summarize_samples(samples)

    def snapshot(self) -> CounterSnapshot:
        """Copy all metrics under the lock."""
        with self._lock:
            return CounterSnapshot(
                timestamp=time.time(),
                counters=dict(self._counters),
                drop_reasons=dict(self._drop_reasons),
                histograms={k: list(v) for k, v in self._histograms.items()},
            )

    def format_summary(self) -> str:
        """Human-readable session report."""
        snapshot = self.snapshot()
        uptime = snapshot.timestamp - self._start_time

        lines = [
            "=" * 70,
            f"  TRACKING METRICS (uptime: {uptime:.1f}s)",
            "=" * 70,
            "",
            "COUNTERS:",
        ]
        lines.extend(f"  {name:30s}: {value:8d}" for name, value in sorted(snapshot.counters.items()))

        total_dropped = snapshot.total_dropped()
        if total_dropped > 0:
            lines += ["", "DROP REASONS:"]
            for reason, count in sorted(snapshot.drop_reasons.items()):
                if count > 0:
                    pct = (count / total_dropped) * 100
                    lines.append(f"  {reason:30s}: {count:8d} ({pct:5.1f}%)")

        if snapshot.histograms:
            lines += ["", "HISTOGRAMS:"]
            for name, samples in sorted(snapshot.histograms.items()):
                stats = summarize_samples(samples)
                if stats:
                    lines.append(f"  {name}:")
                    lines.append(f"    count={stats['count']}, mean={stats['mean']:.4f}, "
                                 f"median={stats['median']:.4f}, p95={stats['p95']:.4f}")

        lines.append("=" * 70)
        return "\n".join(lines)
