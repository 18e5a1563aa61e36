"""
Per-attempt diagnostics for invoke_with_retry.

Each attempt is reported as an immutable InvocationAttempt to an optional
observer callback, in addition to structlog events and Prometheus counters.
"""

from dataclasses import dataclass
from typing import Optional


OUTCOME_SUCCESS = "success"
OUTCOME_RATE_LIMITED = "rate_limited"
OUTCOME_FAILED = "failed"


@dataclass(frozen=True)
class InvocationAttempt:
    """
    Outcome of a single attempt of a remote call.

    Attributes:
        operation: Label of the call (e.g. "redaction", "verification")
        attempt: 1-indexed attempt number
        outcome: success, rate_limited or failed
        latency_ms: Wall time of the attempt
        will_retry: Whether another attempt follows this one
        backoff_seconds: Wait before the next attempt (0 if none)
        error: String form of the failure, None on success
    """

    operation: str
    attempt: int
    outcome: str
    latency_ms: int
    will_retry: bool = False
    backoff_seconds: float = 0.0
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if self.attempt < 1:
            raise ValueError("attempt must be >= 1")

        if self.outcome not in (OUTCOME_SUCCESS, OUTCOME_RATE_LIMITED, OUTCOME_FAILED):
            raise ValueError(f"unknown outcome '{self.outcome}'")

        if self.latency_ms < 0:
            raise ValueError("latency_ms must be >= 0")

        if self.will_retry and self.outcome != OUTCOME_RATE_LIMITED:
            raise ValueError("only rate-limited attempts are retried")
