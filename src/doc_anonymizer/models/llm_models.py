"""
LLM-specific data models for the request/response cycle.

These models are internal to the LLM layer and describe the raw exchange
with the rewriting server. The pipeline only ever looks at `content`.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict


class LLMGenerationRequest(BaseModel):
    """
    Standardized rewrite request sent to any LLM client implementation.

    `system` carries the instruction set, `prompt` the text to rewrite.
    """
    model_config = ConfigDict(frozen=True)

    system: str = Field(..., description="Instruction set (system prompt)")
    prompt: str = Field(..., description="Input text to rewrite")
    model: str = Field(..., description="Model name/identifier (e.g., 'qwen2.5:7b')")
    temperature: float = Field(default=0.05, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=8192, ge=1, le=32768, description="Maximum tokens to generate")
    num_ctx: Optional[int] = Field(
        default=None, ge=512, description="Context window in tokens (None keeps the server default)"
    )


class LLMGenerationResponse(BaseModel):
    """
    Response from a rewrite request.

    `content` may be empty: deciding whether a short reply is usable is the
    pipeline's job, not the client's.
    """
    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Generated text")
    model_version: str = Field(..., description="Model that served the request")
    finish_reason: str = Field(..., description="Why generation stopped: 'stop', 'incomplete'")
    prompt_tokens: Optional[int] = Field(default=None, description="Tokens in prompt")
    completion_tokens: Optional[int] = Field(default=None, description="Tokens in completion")
    latency_ms: int = Field(..., ge=0, description="Generation latency in milliseconds")
    raw_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific metadata (for debugging)"
    )
