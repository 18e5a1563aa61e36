"""
Ollama client implementation for the remote rewriting service.

Communicates with the Ollama API using httpx AsyncClient. Supports:
- Plain-text rewrites with a system instruction (POST /api/generate)
- Failure classification (rate limit vs fatal) at the adapter boundary
- Connection pooling via a persistent AsyncClient
- Single-shot connectivity probe
"""

import time
from typing import Optional
import httpx
import structlog

from doc_anonymizer.llm.base_client import BaseLLMClient
from doc_anonymizer.llm.exceptions import (
    ModelNotAvailableError,
    RateLimitError,
    RemoteConnectionError,
    RemoteServiceError,
    RemoteTimeoutError,
)
from doc_anonymizer.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from doc_anonymizer.monitoring.metrics import llm_latency_seconds, llm_tokens_total


logger = structlog.get_logger(__name__)

# Lower-cased fragments of error bodies that proxies and hosted gateways
# in front of Ollama use to signal throttling without a 429.
RATE_LIMIT_MARKERS = (
    "too many requests",
    "rate limit",
    "rate-limit",
    "ratelimit",
    "resource exhausted",
    "resource_exhausted",
)

PING_PROMPT = "ping"


def mentions_rate_limit(text: str | None) -> bool:
    """Return True if an error body reads like a throttling signal."""
    if not text:
        return False
    lowered = text.lower()
    return any(marker in lowered for marker in RATE_LIMIT_MARKERS)


class OllamaClient(BaseLLMClient):
    """
    Ollama-specific rewriting client using httpx for async HTTP.

    API Endpoints:
    - POST /api/generate: Generate completion with a system instruction

    Every call is exactly one HTTP round trip; retrying is left to
    invoke_with_retry so that only rate limits are ever retried.
    """

    def __init__(
        self,
        base_url: str = "http://ollama:11434",
        model: str = "qwen2.5:7b",
        timeout: int = 120,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        """
        Initialize Ollama client.

        Args:
            base_url: Ollama server URL
            model: Default model name (used by ping)
            timeout: Request timeout in seconds
            connection_limits: httpx connection pool limits
            transport: Optional httpx transport (tests plug a MockTransport here)
            **kwargs: Additional config
        """
        super().__init__(base_url, model, timeout, **kwargs)

        if connection_limits is None:
            # Requests are strictly sequential, a small pool is plenty
            connection_limits = httpx.Limits(
                max_keepalive_connections=2,
                max_connections=4,
                keepalive_expiry=30.0
            )

        self._client: Optional[httpx.AsyncClient] = None
        self._connection_limits = connection_limits
        self._transport = transport

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
                follow_redirects=True
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        Rewrite one chunk via POST /api/generate (non-streaming).

        Request body:
            {"model", "system", "prompt", "stream": false,
             "options": {"temperature", "num_predict", "num_ctx"}}

        Reply body (fields used):
            {"model", "response", "done", "prompt_eval_count", "eval_count"}
            or {"error": "..."} on failure
        """
        started = time.perf_counter()
        logger.debug(
            "Ollama rewrite request",
            model=request.model,
            input_chars=len(request.prompt),
            temperature=request.temperature,
        )

        try:
            http = await self._get_client()
            reply = await http.post("/api/generate", json=self._build_payload(request))
            reply.raise_for_status()
            data = reply.json()
        except httpx.TimeoutException as e:
            self._observe_failure(request.model, started)
            raise RemoteTimeoutError(
                f"No reply from Ollama within {self.timeout}s",
                details={"timeout": self.timeout, "error": str(e)},
            ) from e
        except httpx.HTTPStatusError as e:
            self._observe_failure(request.model, started)
            raise self._classify_http_error(e, request.model) from e
        except httpx.TransportError as e:
            self._observe_failure(request.model, started)
            raise RemoteConnectionError(
                f"Cannot reach Ollama at {self.base_url}: {e}",
                details={"error_type": type(e).__name__},
            ) from e
        except ValueError as e:
            # json.JSONDecodeError
            self._observe_failure(request.model, started)
            raise RemoteServiceError(
                "Invalid JSON response from Ollama",
                details={"parse_error": str(e)},
            ) from e

        if not isinstance(data, dict):
            self._observe_failure(request.model, started)
            raise RemoteServiceError(
                "Unexpected reply from Ollama",
                details={"type": type(data).__name__},
            )

        if "error" in data:
            self._observe_failure(request.model, started)
            raise self._classify_error_body(str(data["error"]))

        return self._parse_reply(data, request, started)

    @staticmethod
    def _build_payload(request: LLMGenerationRequest) -> dict:
        payload = {
            "model": request.model,
            "system": request.system,
            "prompt": request.prompt,
            "stream": False,
            "options": {
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
            },
        }
        if request.num_ctx is not None:
            # Ollama truncates prompts past its default window without an error
            payload["options"]["num_ctx"] = request.num_ctx
        return payload

    @staticmethod
    def _parse_reply(data: dict, request: LLMGenerationRequest, started: float) -> LLMGenerationResponse:
        elapsed = time.perf_counter() - started
        served_by = data.get("model", request.model)
        content = data.get("response") or ""
        prompt_tokens = data.get("prompt_eval_count")
        completion_tokens = data.get("eval_count")

        llm_latency_seconds.labels(model=served_by, success="true").observe(elapsed)
        for token_type, count in (("prompt", prompt_tokens), ("completion", completion_tokens)):
            if count:
                llm_tokens_total.labels(model=served_by, token_type=token_type).inc(count)

        logger.debug(
            "Ollama rewrite reply",
            model=served_by,
            output_chars=len(content),
            done=bool(data.get("done")),
            latency_ms=int(elapsed * 1000),
        )

        return LLMGenerationResponse(
            content=content,
            model_version=served_by,
            finish_reason="stop" if data.get("done") else "incomplete",
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            latency_ms=int(elapsed * 1000),
            raw_metadata={
                key: data[key]
                for key in ("total_duration", "load_duration", "eval_duration", "done_reason")
                if key in data
            },
        )

    @staticmethod
    def _classify_error_body(error_text: str) -> RemoteServiceError:
        if mentions_rate_limit(error_text):
            return RateLimitError(f"Rate limited: {error_text}", details={"error": error_text})
        return RemoteServiceError(f"Ollama error: {error_text}", details={"error": error_text})

    async def ping(self) -> bool:
        """
        Connectivity probe: one tiny generation, no retry.

        Returns True if the server replies with non-empty text.
        """
        request = LLMGenerationRequest(
            system="Reply with a single word.",
            prompt=PING_PROMPT,
            model=self.model,
            max_tokens=16,
        )
        try:
            response = await self.generate(request)
        except RemoteServiceError as e:
            logger.warning("Ollama ping failed", error=e.message, error_type=type(e).__name__)
            return False
        reachable = bool(response.content.strip())
        logger.info("Ollama ping", reachable=reachable, latency_ms=response.latency_ms)
        return reachable

    def _classify_http_error(self, error: httpx.HTTPStatusError, model: str) -> RemoteServiceError:
        status_code = error.response.status_code
        error_text = error.response.text
        details = {"status": status_code, "error": error_text}

        if status_code == 429 or mentions_rate_limit(error_text):
            retry_after = error.response.headers.get("Retry-After")
            if retry_after is not None:
                details["retry_after"] = retry_after
            logger.warning("Ollama rate limited the request", status_code=status_code)
            return RateLimitError(f"Rate limited by server (HTTP {status_code})", details=details)

        logger.error("Ollama HTTP error", status_code=status_code, error_text=error_text)

        if status_code == 404:
            return ModelNotAvailableError(f"Model not found: {model}", details=details)
        return RemoteServiceError(f"Ollama HTTP error: {status_code}", details=details)

    @staticmethod
    def _observe_failure(model: str, started: float) -> None:
        llm_latency_seconds.labels(model=model, success="false").observe(time.perf_counter() - started)

    async def close(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Ollama client connection")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
