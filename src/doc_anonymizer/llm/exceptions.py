"""
Custom exceptions for the remote rewriting service layer.

Failures are classified here, at the adapter boundary, so the retry
invoker never has to sniff error strings: RateLimitError is the only
retryable condition, everything else is fatal for the current job.
"""


class RemoteServiceError(Exception):
    """
    Base exception for all remote rewriting service errors.

    Not retried. Surfaces as the job's ERROR state with `message` preserved.
    """
    rate_limited = False

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class RateLimitError(RemoteServiceError):
    """
    Raised when the server throttles the request (HTTP 429 or an explicit
    "too many requests" / "rate limit" error body).

    Recovered locally with exponential backoff; only propagates once the
    retry budget is spent.
    """
    rate_limited = True


class RemoteConnectionError(RemoteServiceError):
    """
    Raised when unable to reach the rewriting server.

    Includes DNS failures, refused connections and dropped sockets.
    """
    pass


class RemoteTimeoutError(RemoteConnectionError):
    """Raised when a rewrite exceeds the client timeout."""
    pass


class ModelNotAvailableError(RemoteServiceError):
    """Raised when the configured model is not present on the server."""
    pass
