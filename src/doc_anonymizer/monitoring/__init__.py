"""Monitoring and metrics instrumentation for the Document Anonymizer.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from doc_anonymizer.monitoring.metrics import (
    chunks_processed_total,
    degenerate_fallbacks_total,
    jobs_finished_total,
    llm_latency_seconds,
    llm_tokens_total,
    queue_pending_jobs,
    remote_call_attempts_total,
    retry_backoff_seconds_total,
)

__all__ = [
    "remote_call_attempts_total",
    "retry_backoff_seconds_total",
    "llm_latency_seconds",
    "llm_tokens_total",
    "chunks_processed_total",
    "degenerate_fallbacks_total",
    "jobs_finished_total",
    "queue_pending_jobs",
]
