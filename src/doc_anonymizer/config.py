"""
Configuration settings for the Document Anonymizer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PROMPTS_DIR = Path(__file__).parent / "prompts"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # === Application ===
    APP_NAME: str = "Document Anonymizer"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    
    # === Remote rewriting service (Ollama) ===
    LLM_BASE_URL: str = "http://ollama:11434"
    LLM_MODEL: str = "qwen2.5:7b"
    LLM_TIMEOUT: int = 120  # seconds, a 5000-char chunk rewrite is slow
    
    # === LLM Generation Parameters ===
    LLM_TEMPERATURE: float = 0.05  # Near-deterministic rewrites
    LLM_MAX_TOKENS: int = 8192
    # Must hold the system prompt, a VERIFICATION_CHUNK_SIZE chunk and LLM_MAX_TOKENS
    # of output; Ollama silently cuts the prompt when its window is too small
    LLM_NUM_CTX: int = 16384
    
    # === Retry (rate limits only) ===
    MAX_RETRIES: int = 5
    RETRY_BASE_DELAY: float = 2.0  # seconds, doubled per attempt
    
    # === Redaction Pipeline ===
    REDACTION_CHUNK_SIZE: int = 5000  # chars, pass 1
    VERIFICATION_CHUNK_SIZE: int = 7000  # chars, pass 2
    CHUNK_DELAY_SECONDS: float = 1.5  # between chunks of one pass
    PASS_DELAY_SECONDS: float = 2.0  # between pass 1 and pass 2
    DEGENERATE_OUTPUT_RATIO: float = 0.3  # response shorter than this * input is discarded
    PROMPT_TEMPLATES_DIR: str = str(DEFAULT_PROMPTS_DIR)
    
    # === Job Queue ===
    QUEUE_CAPACITY: int = 100
    JOB_DELAY_SECONDS: float = 1.0  # pacing before each job
    UPLOAD_MAX_BYTES: int = 20 * 1024 * 1024  # per file
    
    # === Export ===
    RESULT_FILENAME_PREFIX: str = "anonymized_"
    ARCHIVE_FILENAME: str = "anonymized_documents.zip"
    
    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
