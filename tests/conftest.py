"""Shared test fixtures and configuration for all tests.

Provides settings without pacing delays, an in-memory rewriting client and
helpers to build real DOCX payloads.
"""

import io
from typing import Callable, Optional

import docx
import pytest

from doc_anonymizer.config import DEFAULT_PROMPTS_DIR, Settings
from doc_anonymizer.llm.base_client import BaseLLMClient
from doc_anonymizer.llm.prompt_builder import PromptBuilder
from doc_anonymizer.models.llm_models import LLMGenerationRequest, LLMGenerationResponse


class FakeLLMClient(BaseLLMClient):
    """In-memory rewriting client.

    `responder` receives each request and returns the reply text, or raises
    to simulate a remote failure. Defaults to echoing the prompt back.
    """

    def __init__(
        self,
        responder: Optional[Callable[[LLMGenerationRequest], str]] = None,
        reachable: bool = True,
    ):
        super().__init__(base_url="http://fake-llm:11434", model="fake-model", timeout=5)
        self.responder = responder or (lambda request: request.prompt)
        self.reachable = reachable
        self.requests: list[LLMGenerationRequest] = []

    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        self.requests.append(request)
        content = self.responder(request)
        return LLMGenerationResponse(
            content=content,
            model_version=request.model,
            finish_reason="stop",
            latency_ms=0,
        )

    async def ping(self) -> bool:
        return self.reachable


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_docx(*paragraphs: str) -> bytes:
    """Build a DOCX file with one paragraph per argument."""
    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def docx_paragraphs(content: bytes) -> list[str]:
    return [p.text for p in docx.Document(io.BytesIO(content)).paragraphs]


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with all pacing delays disabled.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.REDACTION_CHUNK_SIZE = 10
    """
    return Settings(
        # === Application ===
        APP_NAME="Document Anonymizer (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Remote rewriting service ===
        LLM_BASE_URL="http://localhost:11434",
        LLM_MODEL="qwen2.5:7b",
        LLM_TIMEOUT=5,

        # === Retry ===
        MAX_RETRIES=5,
        RETRY_BASE_DELAY=2.0,

        # === Pipeline (no real waiting in tests) ===
        REDACTION_CHUNK_SIZE=5000,
        VERIFICATION_CHUNK_SIZE=7000,
        CHUNK_DELAY_SECONDS=0.0,
        PASS_DELAY_SECONDS=0.0,
        DEGENERATE_OUTPUT_RATIO=0.3,
        PROMPT_TEMPLATES_DIR=str(DEFAULT_PROMPTS_DIR),

        # === Queue ===
        QUEUE_CAPACITY=100,
        JOB_DELAY_SECONDS=0.0,

        PROMETHEUS_ENABLED=False,
    )


@pytest.fixture
def prompt_builder(test_settings: Settings) -> PromptBuilder:
    """PromptBuilder over the packaged instruction templates."""
    return PromptBuilder(
        templates_dir=DEFAULT_PROMPTS_DIR,
        default_model=test_settings.LLM_MODEL,
        default_temperature=test_settings.LLM_TEMPERATURE,
        default_max_tokens=test_settings.LLM_MAX_TOKENS,
        default_num_ctx=test_settings.LLM_NUM_CTX,
    )


@pytest.fixture
def echo_client() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_client_factory() -> type[FakeLLMClient]:
    """FakeLLMClient class, for tests that need a custom responder."""
    return FakeLLMClient


@pytest.fixture
def docx_factory() -> Callable[..., bytes]:
    return make_docx


@pytest.fixture
def read_docx() -> Callable[[bytes], list[str]]:
    return docx_paragraphs
