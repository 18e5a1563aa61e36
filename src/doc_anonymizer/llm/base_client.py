"""
Abstract base client for the remote rewriting service.

Defines the interface that all rewriting backends must adhere to. The
redaction pipeline and the connectivity probe only depend on this
abstraction, so backends can be swapped without touching orchestration.
"""

from abc import ABC, abstractmethod
import structlog

from doc_anonymizer.models.llm_models import LLMGenerationRequest, LLMGenerationResponse


logger = structlog.get_logger(__name__)


class BaseLLMClient(ABC):
    """
    Abstract base class for rewriting clients.

    Responsibilities:
    - Send a single rewrite request to the server
    - Parse the reply into LLMGenerationResponse
    - Classify failures into the llm.exceptions taxonomy

    Does NOT handle:
    - Retries (that's invoke_with_retry's job)
    - Judging whether a reply is usable (that's RedactionPipeline's job)
    """

    def __init__(self, base_url: str, model: str, timeout: int = 120, **kwargs):
        """
        Initialize base client.

        Args:
            base_url: Base URL of the server (e.g., http://ollama:11434)
            model: Default model name
            timeout: Request timeout in seconds
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.timeout = timeout
        self.extra_config = kwargs

        logger.info(
            "Initialized LLM client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
            model=model,
            timeout=timeout,
        )

    @abstractmethod
    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        Run one rewrite request. Exactly one HTTP round trip, no retries.

        Returns:
            LLMGenerationResponse (content may be empty)

        Raises:
            RateLimitError: Server throttled the request
            RemoteConnectionError: Network failure
            RemoteTimeoutError: Request exceeded timeout
            ModelNotAvailableError: Model not found
            RemoteServiceError: Any other server-side failure
        """
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """
        Connectivity probe: a single tiny generation with no retry.

        Returns:
            True if the server answered with non-empty text, False otherwise

        Note:
            This should NOT raise exceptions - return False on error.
        """
        pass

    async def close(self):
        """Close client connections. Default implementation does nothing."""
        logger.debug("Closing LLM client", client_class=self.__class__.__name__)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"model={self.model}, "
            f"timeout={self.timeout}s)"
        )
