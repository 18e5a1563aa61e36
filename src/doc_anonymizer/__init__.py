"""
Document Anonymizer.

Rewrites bulk text documents through an LLM server to replace personal data
with category tags, then reassembles clean output documents:
- Paragraph-aware chunking of extracted text
- Two sequential rewrite passes (redaction + verification)
- Rate-limit aware retry with exponential backoff
- Sequential job queue with start/stop control

Architecture: FastAPI control surface + asyncio scheduler + Ollama inference
"""

__version__ = "0.1.0"
