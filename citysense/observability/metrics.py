"""
Metrics definitions for CitySense.

This module defines Prometheus metrics for monitoring
the warning check cycle and warning state.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
checks_run = Counter(
    "citysense_checks_total",
    "Number of warning check cycles executed",
    ["trigger"]
)

checks_skipped = Counter(
    "citysense_checks_skipped_total",
    "Number of warning check cycles skipped",
    ["reason"]
)

warnings_detected = Counter(
    "citysense_warnings_detected_total",
    "Number of candidate warnings produced by detection rules",
    ["kind"]
)

warnings_created = Counter(
    "citysense_warnings_created_total",
    "Number of new warnings inserted into the live list",
    ["kind", "level"]
)

persistence_failures = Counter(
    "citysense_persistence_failures_total",
    "Failed loads or saves of persisted documents",
    ["operation", "document"]
)

analysis_failures = Counter(
    "citysense_analysis_failures_total",
    "Failed AI suggestion requests"
)

# 히스토그램 메트릭
check_seconds = Histogram(
    "citysense_check_duration_seconds",
    "Time spent in one warning check cycle",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]
)

# 게이지 메트릭
live_warnings = Gauge(
    "citysense_live_warnings",
    "Current number of live warnings"
)

suppressed_notifications = Gauge(
    "citysense_suppressed_notifications",
    "Current number of suppressed warning notifications"
)

auto_check_active = Gauge(
    "citysense_auto_check_active",
    "1 when the periodic warning check is armed"
)
