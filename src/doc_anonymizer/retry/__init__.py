"""
Rate-limit aware retry for remote calls.

Only throttling is retried: the remote rewriting service is rate limited
but otherwise expected to answer, so any other failure is surfaced at once.

Main Components:
    - invoke_with_retry: Higher-order coroutine with exponential backoff
    - is_rate_limited: Default failure classifier
    - InvocationAttempt: Immutable per-attempt diagnostics

Usage:
    >>> from doc_anonymizer.retry import invoke_with_retry
    >>> response = await invoke_with_retry(lambda: client.generate(request), 5, 2.0)
"""

from doc_anonymizer.retry.invoker import backoff_delay, invoke_with_retry, is_rate_limited
from doc_anonymizer.retry.metadata import InvocationAttempt

__all__ = [
    "invoke_with_retry",
    "is_rate_limited",
    "backoff_delay",
    "InvocationAttempt",
]
