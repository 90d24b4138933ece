"""
Metrics Module: Per-session diagnostics, counters, histograms.

There is no process-wide collector: each tracking session creates its
own MetricsCollector and shares it between its filter and gate.

Usage:
    from arpin_core.metrics import MetricsCollector

    metrics = MetricsCollector()
    metrics.increment('fixes_in')
    metrics.increment_drop('below_min_distance')
    metrics.record_histogram('filter_gain', 0.12)
"""

from .counters import MetricsCollector, CounterSnapshot

__all__ = ['MetricsCollector', 'CounterSnapshot']
