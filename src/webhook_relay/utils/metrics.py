"""
Prometheus Metrics Collector

Process-local metrics for the relay, exported in Prometheus text
exposition format (text/plain; version=0.0.4).
"""
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class MetricValue:
    """Single sample with optional labels and name suffix."""
    value: float
    labels: Dict[str, str] = field(default_factory=dict)
    suffix: str = ""


class _Metric:
    """Shared label bookkeeping for all metric types."""

    kind = "untyped"

    def __init__(self, name: str, description: str, labels: Optional[List[str]] = None):
        self.name = name
        self.description = description
        self.label_names = labels or []
        self._values: Dict[tuple, float] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(labels: Dict[str, str]) -> tuple:
        return tuple(sorted(labels.items()))

    def _add(self, amount: float, labels: Dict[str, str]) -> None:
        key = self._key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + amount

    def value(self, **labels: str) -> float:
        """Current value for one label combination (0 if never touched)."""
        with self._lock:
            return self._values.get(self._key(labels), 0.0)

    def collect(self) -> List[MetricValue]:
        with self._lock:
            return [MetricValue(value=v, labels=dict(k)) for k, v in self._values.items()]


class Counter(_Metric):
    """Monotonic counter: pushes, rejections, deliveries, restarts."""

    kind = "counter"

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        if amount < 0:
            raise ValueError("counters can only increase")
        self._add(amount, labels)


class Gauge(_Metric):
    """Value that goes up and down: queue depth, subscriber count."""

    kind = "gauge"

    def set(self, value: float, **labels: str) -> None:
        with self._lock:
            self._values[self._key(labels)] = value


class Histogram(_Metric):
    """Bucketed observations, used for request and delivery latency."""

    kind = "histogram"

    DEFAULT_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

    def __init__(
        self,
        name: str,
        description: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[tuple] = None,
    ):
        super().__init__(name, description, labels)
        self.buckets = tuple(sorted(buckets or self.DEFAULT_BUCKETS))
        self._series: Dict[tuple, Dict] = {}

    def observe(self, value: float, **labels: str) -> None:
        key = self._key(labels)
        with self._lock:
            series = self._series.setdefault(
                key, {"buckets": [0] * len(self.buckets), "sum": 0.0, "count": 0}
            )
            series["sum"] += value
            series["count"] += 1
            for i, bound in enumerate(self.buckets):
                if value <= bound:
                    series["buckets"][i] += 1

    def count(self, **labels: str) -> int:
        with self._lock:
            series = self._series.get(self._key(labels))
            return series["count"] if series else 0

    def collect(self) -> List[MetricValue]:
        samples = []
        with self._lock:
            for key, series in self._series.items():
                base = dict(key)
                for bound, hits in zip(self.buckets, series["buckets"]):
                    samples.append(MetricValue(hits, {**base, "le": str(bound)}, "_bucket"))
                samples.append(MetricValue(series["count"], {**base, "le": "+Inf"}, "_bucket"))
                samples.append(MetricValue(series["sum"], base, "_sum"))
                samples.append(MetricValue(series["count"], base, "_count"))
        return samples


class Timer:
    """Context manager that observes elapsed seconds into a histogram."""

    def __init__(self, histogram: Histogram, **labels: str):
        self.histogram = histogram
        self.labels = labels
        self.start_time: Optional[float] = None
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        if self.start_time is not None:
            self.elapsed = time.perf_counter() - self.start_time
            self.histogram.observe(self.elapsed, **self.labels)


def _escape(value: str) -> str:
    """Escape a label value for the text exposition format."""
    return str(value).replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


class MetricsRegistry:
    """
    Central registry for relay metrics.

    A single module-level instance (`metrics`) is shared by the broker,
    the delivery layer and the HTTP routes.
    """

    def __init__(self):
        self._metrics: Dict[str, _Metric] = {}
        self._setup_metrics()

    def _setup_metrics(self) -> None:
        # ============================================
        # HTTP
        # ============================================
        self.requests_total = self.counter(
            "relay_requests_total", "Total HTTP requests by status", ["status"]
        )
        self.request_duration = self.histogram(
            "relay_request_duration_seconds", "HTTP request duration in seconds", ["endpoint"]
        )

        # ============================================
        # PRODUCERS / CONSUMERS
        # ============================================
        self.messages_pushed = self.counter(
            "relay_messages_pushed_total", "Messages accepted into a queue", ["queue"]
        )
        self.push_rejected = self.counter(
            "relay_push_rejected_total", "Pushes rejected by reason", ["queue", "reason"]
        )
        self.subscriptions = self.counter(
            "relay_subscriptions_total", "Callbacks registered", ["queue"]
        )
        self.subscribe_rejected = self.counter(
            "relay_subscribe_rejected_total", "Subscriptions rejected by reason", ["queue", "reason"]
        )

        # ============================================
        # QUEUES
        # ============================================
        self.queue_depth = self.gauge(
            "relay_queue_depth", "Messages waiting in a queue buffer", ["queue"]
        )
        self.queue_subscribers = self.gauge(
            "relay_queue_subscribers", "Callbacks registered on a queue", ["queue"]
        )

        # ============================================
        # DELIVERY
        # ============================================
        self.deliveries = self.counter(
            "relay_deliveries_total", "Callback delivery attempts by outcome", ["queue", "outcome"]
        )
        self.delivery_duration = self.histogram(
            "relay_delivery_duration_seconds", "Callback delivery attempt duration", ["queue"]
        )
        self.dispatcher_restarts = self.counter(
            "relay_dispatcher_restarts_total", "Dispatcher restarts after an internal fault"
        )

    def counter(self, name: str, description: str, labels: Optional[List[str]] = None) -> Counter:
        return self._register(Counter(name, description, labels))

    def gauge(self, name: str, description: str, labels: Optional[List[str]] = None) -> Gauge:
        return self._register(Gauge(name, description, labels))

    def histogram(
        self,
        name: str,
        description: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[tuple] = None,
    ) -> Histogram:
        return self._register(Histogram(name, description, labels, buckets))

    def _register(self, metric):
        self._metrics[metric.name] = metric
        return metric

    def export(self) -> str:
        """
        Export all metrics in Prometheus text exposition format.

        https://prometheus.io/docs/instrumenting/exposition_formats/
        """
        lines = []
        for name, metric in self._metrics.items():
            lines.append(f"# HELP {name} {metric.description}")
            lines.append(f"# TYPE {name} {metric.kind}")
            for sample in metric.collect():
                lines.append(f"{name}{sample.suffix}{self._format_labels(sample.labels)} {sample.value}")
            lines.append("")
        return "\n".join(lines)

    @staticmethod
    def _format_labels(labels: Dict[str, str]) -> str:
        if not labels:
            return ""
        parts = [f'{k}="{_escape(v)}"' for k, v in sorted(labels.items())]
        return "{" + ",".join(parts) + "}"

    def reset(self) -> None:
        """Reset all metrics. Useful for testing."""
        self._metrics.clear()
        self._setup_metrics()


# Global metrics instance
metrics = MetricsRegistry()
