"""Observability module for metrics and monitoring."""

from articles_search.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
    track_search_results,
    track_store_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "get_metrics_content_type",
    "track_search_results",
    "track_store_operation",
]
