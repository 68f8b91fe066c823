"""In-process metrics for save/load operations.

Latency aggregates per operation name plus plain event counters
(identity-collision retries, edges skipped during a lenient load).
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from threading import Lock

logger = logging.getLogger(__name__)


@dataclass
class LatencySummary:
    """Aggregated latency metrics for one operation."""

    count: int = 0
    error_count: int = 0
    total_ms: float = 0.0
    min_ms: float = 0.0
    max_ms: float = 0.0


class _MetricsRegistry:
    def __init__(self) -> None:
        self._lock = Lock()
        self._latency: dict[str, LatencySummary] = {}
        self._counters: Counter[str] = Counter()

    def record(self, operation: str, duration_ms: float, ok: bool) -> None:
        duration = max(float(duration_ms), 0.0)
        with self._lock:
            summary = self._latency.setdefault(operation, LatencySummary())
            first = summary.count == 0
            summary.count += 1
            summary.total_ms += duration
            if not ok:
                summary.error_count += 1
            summary.min_ms = duration if first else min(summary.min_ms, duration)
            summary.max_ms = duration if first else max(summary.max_ms, duration)

        logger.info(
            "operation=%s duration_ms=%.3f ok=%s", operation, duration, ok
        )

    def increment(self, name: str, amount: int) -> None:
        with self._lock:
            self._counters[name] += amount

    def snapshot(self) -> dict[str, dict]:
        with self._lock:
            latency = {
                operation: {
                    "count": s.count,
                    "error_count": s.error_count,
                    "avg_ms": round(s.total_ms / s.count, 3) if s.count else 0.0,
                    "min_ms": round(s.min_ms, 3),
                    "max_ms": round(s.max_ms, 3),
                }
                for operation, s in sorted(self._latency.items())
            }
            return {"latency": latency, "counters": dict(self._counters)}

    def reset(self) -> None:
        with self._lock:
            self._latency.clear()
            self._counters.clear()


_REGISTRY = _MetricsRegistry()


def record_latency(*, operation: str, duration_ms: float, ok: bool = True) -> None:
    """Record one latency sample for *operation*."""
    _REGISTRY.record(operation, duration_ms, ok)


def increment_counter(name: str, amount: int = 1) -> None:
    """Bump the event counter *name*."""
    _REGISTRY.increment(name, amount)


def metrics_snapshot() -> dict[str, dict]:
    """Return ``{"latency": {...}, "counters": {...}}``."""
    return _REGISTRY.snapshot()


def reset_metrics() -> None:
    """Clear all aggregates (test helper)."""
    _REGISTRY.reset()
