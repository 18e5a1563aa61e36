"""Custom Prometheus metrics for the Document Anonymizer.

These metrics are exposed at /metrics endpoint and should be scraped by Prometheus.
Alert rules should be configured for:
- remote_call_attempts_total{outcome="rate_limited"} (throttling pressure)
- degenerate_fallbacks_total (model returning truncated/empty rewrites)
- jobs_finished_total{status="ERROR"} (documents left un-anonymized)
"""

from prometheus_client import Counter, Gauge, Histogram

# === Remote Call Metrics ===

remote_call_attempts_total = Counter(
    "remote_call_attempts_total",
    "Remote call attempts by operation and outcome",
    ["operation", "outcome"],
)
"""
Attempts made through invoke_with_retry.

Labels:
- operation: redaction, verification
- outcome: success, rate_limited, failed

Alert thresholds:
- WARN: rate_limited > 10% of attempts (lower CHUNK_DELAY_SECONDS pressure)
"""

retry_backoff_seconds_total = Counter(
    "retry_backoff_seconds_total",
    "Total seconds spent waiting in rate-limit backoff",
    ["operation"],
)

llm_latency_seconds = Histogram(
    "llm_latency_seconds",
    "LLM generation latency in seconds",
    ["model", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)
"""
LLM generation latency histogram.

Buckets sized for full-chunk rewrites (0.5s to 120s).
"""

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens consumed by model and type",
    ["model", "token_type"],
)

# === Pipeline Metrics ===

chunks_processed_total = Counter(
    "chunks_processed_total",
    "Chunks rewritten per pipeline pass",
    ["pass_name"],
)

degenerate_fallbacks_total = Counter(
    "degenerate_fallbacks_total",
    "Chunks whose rewrite was empty/too short and fell back to the input text",
    ["pass_name"],
)
"""
Degenerate-output fallbacks by pass.

A fallback in the redaction pass means that chunk leaves pass 1 un-redacted
and relies on the verification pass alone.

Alert thresholds:
- WARN: any fallback in pass_name="redaction"
"""

# === Queue Metrics ===

jobs_finished_total = Counter(
    "jobs_finished_total",
    "Jobs that reached a terminal state",
    ["status"],
)

queue_pending_jobs = Gauge(
    "queue_pending_jobs",
    "Jobs currently waiting in PENDING state",
)
