"""
Two-pass redaction pipeline.

Pass 1 (redaction): chunk the document at REDACTION_CHUNK_SIZE and rewrite
every chunk with the redaction instruction set.
Pass 2 (verification): re-chunk the pass-1 output at the larger
VERIFICATION_CHUNK_SIZE and rewrite it with the verification instruction set,
which only hunts for PII the first pass missed. Pass 2 never sees the
original text.

Chunks are processed strictly one after another with a pacing delay in
between, and every remote call goes through invoke_with_retry. A reply that
is empty or shorter than DEGENERATE_OUTPUT_RATIO * input is discarded and the
chunk's input text is kept instead: under-redaction is preferred to losing
content.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

import structlog

from doc_anonymizer.config import Settings
from doc_anonymizer.llm.base_client import BaseLLMClient
from doc_anonymizer.llm.prompt_builder import PromptBuilder
from doc_anonymizer.models.enums import PassName
from doc_anonymizer.monitoring.metrics import chunks_processed_total, degenerate_fallbacks_total
from doc_anonymizer.pipeline.chunker import chunk_by_paragraphs
from doc_anonymizer.retry.invoker import invoke_with_retry

logger = structlog.get_logger(__name__)

CHUNK_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class PassOutcome:
    """Result of one sweep over all chunks of a document."""

    pass_name: PassName
    chunk_count: int
    fallback_count: int
    text: str
    elapsed_ms: int


def is_degenerate(source: str, output: str, ratio: float) -> bool:
    """True if `output` is too short to be a real rewrite of `source`."""
    return not output or len(output) < len(source) * ratio


class RedactionPipeline:
    """
    Orchestrates both rewrite passes for a single document.

    The pipeline holds no per-document state between runs; every run()
    builds its chunks and output locally, so an aborted run leaves nothing
    behind.

    Attributes:
        llm_client: Rewriting backend
        prompt_builder: Builds requests for either pass
        settings: Chunk sizes, pacing, retry budget, fallback ratio
    """

    def __init__(
        self,
        llm_client: BaseLLMClient,
        prompt_builder: PromptBuilder,
        settings: Settings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.llm_client = llm_client
        self.prompt_builder = prompt_builder
        self.settings = settings
        self._sleep = sleep

        self.redaction_chunk_size = settings.REDACTION_CHUNK_SIZE
        self.verification_chunk_size = settings.VERIFICATION_CHUNK_SIZE
        self.chunk_delay = settings.CHUNK_DELAY_SECONDS
        self.pass_delay = settings.PASS_DELAY_SECONDS
        self.degenerate_ratio = settings.DEGENERATE_OUTPUT_RATIO
        self.max_retries = settings.MAX_RETRIES
        self.retry_base_delay = settings.RETRY_BASE_DELAY

        logger.info(
            "RedactionPipeline initialized",
            redaction_chunk_size=self.redaction_chunk_size,
            verification_chunk_size=self.verification_chunk_size,
            chunk_delay=self.chunk_delay,
            pass_delay=self.pass_delay,
            degenerate_ratio=self.degenerate_ratio,
            max_retries=self.max_retries,
        )

    async def run(self, full_text: str) -> str:
        """
        Anonymize a whole document's text.

        Args:
            full_text: Extracted plain text

        Returns:
            Final anonymized text, stripped of surrounding whitespace

        Raises:
            RemoteServiceError: A chunk failed with a non-recoverable error
                (or rate limiting outlasted the retry budget); the run is
                aborted and partial output discarded
        """
        if not full_text.strip():
            return ""

        start = time.perf_counter()
        logger.info(
            "Starting anonymization",
            total_chars=len(full_text),
            estimated_chunks=-(-len(full_text) // self.redaction_chunk_size),
        )

        redaction = await self._run_pass(PassName.REDACTION, full_text, self.redaction_chunk_size)

        # Let the remote service recover before the verification burst
        await self._pause(self.pass_delay)

        verification = await self._run_pass(
            PassName.VERIFICATION, redaction.text.strip(), self.verification_chunk_size
        )
        final_text = verification.text.strip()

        logger.info(
            "Anonymization complete",
            input_chars=len(full_text),
            output_chars=len(final_text),
            redaction_chunks=redaction.chunk_count,
            verification_chunks=verification.chunk_count,
            redaction_fallbacks=redaction.fallback_count,
            verification_fallbacks=verification.fallback_count,
            total_ms=int((time.perf_counter() - start) * 1000),
        )
        return final_text

    async def _run_pass(self, pass_name: PassName, text: str, target_size: int) -> PassOutcome:
        start = time.perf_counter()
        chunks = chunk_by_paragraphs(text, target_size)
        log = logger.bind(pass_name=pass_name.value, total_chunks=len(chunks))
        log.info("Pass started", input_chars=len(text))

        outputs: list[str] = []
        fallbacks = 0
        for index, chunk in enumerate(chunks):
            if index > 0:
                await self._pause(self.chunk_delay)

            rewritten = await self._rewrite_chunk(pass_name, chunk)
            chunks_processed_total.labels(pass_name=pass_name.value).inc()

            if is_degenerate(chunk, rewritten, self.degenerate_ratio):
                fallbacks += 1
                degenerate_fallbacks_total.labels(pass_name=pass_name.value).inc()
                log.warning(
                    "Empty or too short response, keeping chunk input",
                    chunk=index + 1,
                    input_length=len(chunk),
                    response_length=len(rewritten),
                )
                outputs.append(chunk)
            else:
                log.debug(
                    "Chunk rewritten",
                    chunk=index + 1,
                    input_length=len(chunk),
                    response_length=len(rewritten),
                )
                outputs.append(rewritten)

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        log.info("Pass complete", fallbacks=fallbacks, elapsed_ms=elapsed_ms)
        return PassOutcome(
            pass_name=pass_name,
            chunk_count=len(chunks),
            fallback_count=fallbacks,
            text=CHUNK_SEPARATOR.join(outputs),
            elapsed_ms=elapsed_ms,
        )

    async def _rewrite_chunk(self, pass_name: PassName, chunk: str) -> str:
        request = self.prompt_builder.build_request(pass_name, chunk)
        response = await invoke_with_retry(
            lambda: self.llm_client.generate(request),
            self.max_retries,
            self.retry_base_delay,
            operation=pass_name.value,
            sleep=self._sleep,
        )
        return response.content.strip()

    async def _pause(self, seconds: float) -> None:
        if seconds > 0:
            await self._sleep(seconds)
