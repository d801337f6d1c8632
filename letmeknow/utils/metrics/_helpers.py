"""
Helper functions for Prometheus metric registration.

Creating a metric twice (uvicorn --reload, repeated imports in tests)
raises ValueError, so the already registered collector is returned
instead.
"""

from typing import TypeVar

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

MetricType = TypeVar("MetricType", Counter, Gauge, Histogram)


def _get_or_create(
    metric_cls: type[MetricType],
    name: str,
    doc: str,
    labels: list[str] | None = None,
    **kwargs,
) -> MetricType:
    try:
        return metric_cls(name, doc, labels or [], **kwargs)
    except ValueError:
        # Metric already exists, retrieve it from registry
        return REGISTRY._names_to_collectors[name]


def _get_or_create_counter(
    name: str, doc: str, labels: list[str] | None = None
) -> Counter:
    return _get_or_create(Counter, name, doc, labels)


def _get_or_create_gauge(
    name: str, doc: str, labels: list[str] | None = None
) -> Gauge:
    return _get_or_create(Gauge, name, doc, labels)


def _get_or_create_histogram(
    name: str,
    doc: str,
    labels: list[str] | None = None,
    buckets: tuple[float, ...] | None = None,
) -> Histogram:
    if buckets:
        return _get_or_create(Histogram, name, doc, labels, buckets=buckets)
    return _get_or_create(Histogram, name, doc, labels)
