"""
Remote rewriting service clients.

Components:
- BaseLLMClient: Abstract base class for rewriting clients
- OllamaClient: Implementation for the Ollama inference server
- PromptBuilder: Renders the redaction / verification instruction sets
- exceptions: Failure taxonomy (rate limit vs fatal)
"""

from doc_anonymizer.llm.base_client import BaseLLMClient
from doc_anonymizer.llm.ollama_client import OllamaClient
from doc_anonymizer.llm.prompt_builder import PromptBuilder
from doc_anonymizer.llm.exceptions import (
    ModelNotAvailableError,
    RateLimitError,
    RemoteConnectionError,
    RemoteServiceError,
    RemoteTimeoutError,
)

__all__ = [
    "BaseLLMClient",
    "OllamaClient",
    "PromptBuilder",
    "RemoteServiceError",
    "RateLimitError",
    "RemoteConnectionError",
    "RemoteTimeoutError",
    "ModelNotAvailableError",
]
