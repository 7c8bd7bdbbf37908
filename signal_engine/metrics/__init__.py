# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics: single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""
from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "signal_requests_total",
    "Total HTTP requests to the signal engine",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "signal_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "signal_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Log intake / auto incidents ──
LOG_EVENTS_INGESTED = Counter(
    "log_events_ingested_total",
    "Total log events accepted for buffering",
    ["level"],
)
BUFFERED_LOG_EVENTS = Gauge(
    "log_events_buffered",
    "Log events currently held in the intake buffer",
)
AUTO_INCIDENTS_CREATED = Counter(
    "auto_incidents_created_total",
    "Incidents opened automatically from log error bursts",
)
AUTO_INCIDENTS_SKIPPED = Counter(
    "auto_incidents_skipped_total",
    "Threshold breaches that did not open an incident",
    ["reason"],
)
AI_SUMMARIES = Counter(
    "ai_log_summaries_total",
    "AI log summary attempts",
    ["outcome"],
)

# ── Status page ──
STATUS_CACHE_LOOKUPS = Counter(
    "status_cache_lookups_total",
    "Status cache reads by result",
    ["result"],
)
STATUS_SNAPSHOT_LATENCY = Histogram(
    "status_snapshot_compute_seconds",
    "Time to recompute and persist the status snapshot",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# ── Maintenance ──
MAINTENANCE_TRANSITIONS = Counter(
    "maintenance_transitions_total",
    "Automatic maintenance status transitions",
    ["to_status"],
)
