"""Monitoring configuration for the review engine."""
from typing import Optional

from prometheus_client import Counter, Histogram, start_http_server

from wordreview.config import settings

# Review metrics
answers_recorded = Counter(
    "wordreview_answers_total",
    "Total number of answers applied to word progress",
    ["outcome"],
)

status_transitions = Counter(
    "wordreview_status_transitions_total",
    "Mastery status changes caused by answers",
    ["from_status", "to_status"],
)

new_interval_days = Histogram(
    "wordreview_new_interval_days",
    "Interval assigned to a word after an answer, in days",
    buckets=[0, 1, 3, 7, 14, 30, 60, 90],
)

# Database metrics
progress_writes = Counter(
    "wordreview_progress_writes_total",
    "Total number of progress records written",
    ["operation"],
)

store_errors = Counter(
    "wordreview_store_errors_total",
    "Total number of progress store failures",
    ["operation"],
)


def start_monitoring(port: Optional[int] = None) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port if port is not None else settings.monitoring.metrics_port)
