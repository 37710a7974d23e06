"""In-process metrics for oidcore, exported in Prometheus text format.

Counters and latency histograms for the token and introspection endpoints.
The transport layer exposes them at ``GET /metrics``.

Example:
    >>> collector = MetricsCollector()
    >>> collector.increment_counter(
    ...     "oidcore_token_requests_total", {"grant_type": "password", "status": "success"}
    ... )
    >>> "oidcore_token_requests_total" in collector.export_prometheus()
    True
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import ClassVar

LabelKey = tuple[tuple[str, str], ...]

DEFAULT_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)


def _label_key(labels: dict[str, str] | None) -> LabelKey:
    return tuple(sorted((labels or {}).items()))


def _format_labels(labels: LabelKey, extra: tuple[str, str] | None = None) -> str:
    pairs = list(labels)
    if extra is not None:
        pairs.append(extra)
    if not pairs:
        return ""
    return "{" + ",".join(f'{k}="{_escape(v)}"' for k, v in pairs) + "}"


def _escape(value: str) -> str:
    # backslashes first so quotes are not double-escaped
    return value.replace("\\", "\\\\").replace('"', '\\"')


@dataclass
class Counter:
    """A monotonically increasing counter, one value per label set."""

    name: str
    help_text: str
    values: dict[LabelKey, float] = field(default_factory=dict)

    def increment(self, labels: dict[str, str] | None = None, value: float = 1.0) -> None:
        key = _label_key(labels)
        self.values[key] = self.values.get(key, 0.0) + value

    def render(self) -> list[str]:
        lines = [f"# HELP {self.name} {self.help_text}", f"# TYPE {self.name} counter"]
        if not self.values:
            lines.append(f"{self.name} 0")
        for key, value in self.values.items():
            lines.append(f"{self.name}{_format_labels(key)} {value}")
        return lines


@dataclass
class _HistogramSeries:
    bucket_counts: list[float]
    total: float = 0.0
    count: float = 0.0


@dataclass
class Histogram:
    """A cumulative-bucket histogram, one series per label set."""

    name: str
    help_text: str
    buckets: tuple[float, ...] = DEFAULT_LATENCY_BUCKETS
    series: dict[LabelKey, _HistogramSeries] = field(default_factory=dict)

    def observe(self, value: float, labels: dict[str, str] | None = None) -> None:
        key = _label_key(labels)
        entry = self.series.get(key)
        if entry is None:
            entry = _HistogramSeries(bucket_counts=[0.0] * len(self.buckets))
            self.series[key] = entry
        for index, bound in enumerate(self.buckets):
            if value <= bound:
                entry.bucket_counts[index] += 1.0
        entry.total += value
        entry.count += 1.0

    def count(self, labels: dict[str, str] | None = None) -> float:
        entry = self.series.get(_label_key(labels))
        return entry.count if entry is not None else 0.0

    def render(self) -> list[str]:
        lines = [f"# HELP {self.name} {self.help_text}", f"# TYPE {self.name} histogram"]
        for key, entry in self.series.items():
            for bound, bucket_count in zip(self.buckets, entry.bucket_counts):
                lines.append(
                    f"{self.name}_bucket{_format_labels(key, ('le', str(bound)))} {bucket_count}"
                )
            lines.append(f"{self.name}_bucket{_format_labels(key, ('le', '+Inf'))} {entry.count}")
            lines.append(f"{self.name}_sum{_format_labels(key)} {entry.total}")
            lines.append(f"{self.name}_count{_format_labels(key)} {entry.count}")
        return lines


class MetricsCollector:
    """Thread-safe registry of counters and histograms.

    Unknown metric names are ignored on update so call sites never fail
    because of a metrics typo.
    """

    DEFAULT_COUNTERS: ClassVar[dict[str, str]] = {
        "oidcore_token_requests_total": "Token endpoint requests by grant type and status",
        "oidcore_introspection_requests_total": "Introspection requests by status",
        "oidcore_client_auth_failures_total": "Failed client or resource authentications",
        "oidcore_hook_failures_total": "Response customization hook failures",
    }

    DEFAULT_HISTOGRAMS: ClassVar[dict[str, str]] = {
        "oidcore_request_duration_seconds": "Endpoint processing duration in seconds",
    }

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters = {
            name: Counter(name=name, help_text=text) for name, text in self.DEFAULT_COUNTERS.items()
        }
        self._histograms = {
            name: Histogram(name=name, help_text=text)
            for name, text in self.DEFAULT_HISTOGRAMS.items()
        }
        self._start_time = time.time()

    def register_counter(self, name: str, help_text: str) -> None:
        with self._lock:
            self._counters.setdefault(name, Counter(name=name, help_text=help_text))

    def increment_counter(
        self, name: str, labels: dict[str, str] | None = None, value: float = 1.0
    ) -> None:
        with self._lock:
            counter = self._counters.get(name)
            if counter is not None:
                counter.increment(labels, value)

    def observe_histogram(
        self, name: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        with self._lock:
            histogram = self._histograms.get(name)
            if histogram is not None:
                histogram.observe(value, labels)

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> float:
        with self._lock:
            counter = self._counters.get(name)
            return counter.values.get(_label_key(labels), 0.0) if counter else 0.0

    def get_histogram_count(self, name: str, labels: dict[str, str] | None = None) -> float:
        with self._lock:
            histogram = self._histograms.get(name)
            return histogram.count(labels) if histogram else 0.0

    def export_prometheus(self) -> str:
        """Render every metric in Prometheus exposition format."""
        lines: list[str] = []
        with self._lock:
            for counter in self._counters.values():
                lines.extend(counter.render())
            for histogram in self._histograms.values():
                lines.extend(histogram.render())
            lines.append("# HELP oidcore_process_uptime_seconds Time since collector start")
            lines.append("# TYPE oidcore_process_uptime_seconds gauge")
            lines.append(f"oidcore_process_uptime_seconds {time.time() - self._start_time:.3f}")
        return "\n".join(lines) + "\n"

    def reset(self) -> None:
        with self._lock:
            for counter in self._counters.values():
                counter.values.clear()
            for histogram in self._histograms.values():
                histogram.series.clear()


_metrics_collector: MetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics() -> MetricsCollector:
    """Return the process-wide collector."""
    global _metrics_collector
    with _collector_lock:
        if _metrics_collector is None:
            _metrics_collector = MetricsCollector()
        return _metrics_collector


def reset_metrics() -> None:
    """Zero the process-wide collector (tests)."""
    with _collector_lock:
        if _metrics_collector is not None:
            _metrics_collector.reset()
