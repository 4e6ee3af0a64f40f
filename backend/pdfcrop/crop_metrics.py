"""
Crop API Metrics: Prometheus-compatible observability.

All metrics use the `pdfcrop_` namespace prefix.

Tracks:
- pdfcrop_crop_total{outcome}: Crop request outcomes
- pdfcrop_crop_duration_seconds: PDF composition duration (successful crops)
- pdfcrop_upload_bytes: Size of stored uploads
- pdfcrop_api_request_total{endpoint,method,status_class}: HTTP request count
- pdfcrop_api_request_duration_seconds{endpoint}: HTTP request duration
"""

import logging
from typing import Dict

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

logger = logging.getLogger(__name__)

CROP_OUTCOMES = ("success", "invalid_request", "too_large", "error")

# 1 KB .. 256 MB
UPLOAD_SIZE_BUCKETS = tuple(float(4 ** i * 1024) for i in range(10))


class CropMetrics:
    """
    Prometheus-compatible metrics for the crop endpoint.

    Thread-safe via prometheus_client built-in thread safety.
    Uses instance-level CollectorRegistry for test isolation.

    snapshot() and reset() are intended for test/debug only.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()
        self._init_metrics()

    def _init_metrics(self) -> None:
        """Register all prometheus metrics on the current registry."""
        self._crop_total = Counter(
            "pdfcrop_crop_total",
            "Crop request outcomes",
            labelnames=["outcome"],
            registry=self._registry,
        )
        self._crop_duration = Histogram(
            "pdfcrop_crop_duration_seconds",
            "PDF crop composition duration",
            registry=self._registry,
        )
        self._upload_bytes = Histogram(
            "pdfcrop_upload_bytes",
            "Stored upload size in bytes",
            buckets=UPLOAD_SIZE_BUCKETS,
            registry=self._registry,
        )
        self._api_request_total = Counter(
            "pdfcrop_api_request_total",
            "HTTP request count",
            labelnames=["endpoint", "method", "status_class"],
            registry=self._registry,
        )
        self._api_request_duration = Histogram(
            "pdfcrop_api_request_duration_seconds",
            "HTTP request duration",
            labelnames=["endpoint"],
            registry=self._registry,
        )

    # ── crop_total ────────────────────────────────────────────────────────

    def inc_crop(self, outcome: str) -> None:
        """Increment crop_total counter. outcome: see CROP_OUTCOMES."""
        if outcome not in CROP_OUTCOMES:
            logger.warning(f"[METRICS] Invalid crop outcome: {outcome}")
            return
        self._crop_total.labels(outcome=outcome).inc()
        logger.debug(f"[METRICS] crop_total{{outcome={outcome}}} += 1")

    def observe_crop_duration(self, duration_seconds: float) -> None:
        self._crop_duration.observe(duration_seconds)

    def observe_upload_bytes(self, size: int) -> None:
        self._upload_bytes.observe(size)

    # ── api_request (used by middleware) ──────────────────────────────────

    def inc_api_request(self, endpoint: str, method: str, status_code: int) -> None:
        """Increment api_request_total counter.

        status_code is normalized to status_class (2xx/3xx/4xx/5xx/0xx)
        to keep label cardinality low.
        """
        status_class = f"{status_code // 100}xx"
        self._api_request_total.labels(
            endpoint=endpoint, method=method, status_class=status_class
        ).inc()

    def observe_api_request_duration(self, endpoint: str, duration: float) -> None:
        """Record HTTP request duration."""
        self._api_request_duration.labels(endpoint=endpoint).observe(duration)

    # ── Snapshot (test/debug only) ────────────────────────────────────────

    def snapshot(self) -> Dict:
        """Return crop counters and histogram summaries as a plain dict."""
        return {
            "crop_total": {
                outcome: self._get_counter_value(self._crop_total, {"outcome": outcome})
                for outcome in CROP_OUTCOMES
            },
            "crop_duration_seconds": self._snapshot_histogram(self._crop_duration),
            "upload_bytes": self._snapshot_histogram(self._upload_bytes),
        }

    def api_request_count(self, endpoint: str, method: str, status_class: str) -> int:
        return self._get_counter_value(
            self._api_request_total,
            {"endpoint": endpoint, "method": method, "status_class": status_class},
        )

    @staticmethod
    def _get_counter_value(counter: Counter, labels: Dict[str, str]) -> int:
        """Read current value of a labeled counter. Returns 0 if label combo not yet initialized."""
        for metric in counter.collect():
            for sample in metric.samples:
                if sample.name.endswith("_total") and sample.labels == labels:
                    return int(sample.value)
        return 0

    @staticmethod
    def _snapshot_histogram(histogram: Histogram) -> Dict:
        """Read count and sum from an unlabeled histogram."""
        count = 0.0
        total = 0.0
        for sample in histogram.collect()[0].samples:
            if sample.name.endswith("_count"):
                count = sample.value
            elif sample.name.endswith("_sum"):
                total = sample.value
        return {"count": int(count), "sum": round(total, 6)}

    # ── Reset (test only) ─────────────────────────────────────────────────

    def reset(self) -> None:
        """Reset all metrics by creating a fresh CollectorRegistry."""
        self._registry = CollectorRegistry()
        self._init_metrics()

    # ── Prometheus exposition ─────────────────────────────────────────────

    def generate_metrics(self) -> bytes:
        """Generate Prometheus text exposition format output."""
        return generate_latest(self._registry)

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry


# ═══════════════════════════════════════════════════════════════════════════════
# SINGLETON INSTANCE
# ═══════════════════════════════════════════════════════════════════════════════

_metrics = CropMetrics()


def get_crop_metrics() -> CropMetrics:
    """Get singleton CropMetrics instance."""
    return _metrics
