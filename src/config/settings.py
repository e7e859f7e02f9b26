"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources, in priority order:

  1. Environment variables, e.g. ``OPENAI_API_KEY=sk-abc123``
  2. A ``.env`` file in the working directory (local development)

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``; defaults apply
when neither source defines a value.  An empty API key means "not
configured": the embedding factory skips that backend and, when nothing is
left, the document service runs in keyword-only mode.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Course-document RAG settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Embedding providers ===
    # "auto" picks the first backend with a key (OpenAI, then Gemini);
    # "none" disables semantic indexing entirely.
    embedding_provider: str = "auto"
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (TogetherAI, etc.)
    openai_embedding_model: str = ""
    gemini_api_key: str = ""
    gemini_embedding_model: str = "text-embedding-004"
    ollama_base_url: str = "http://localhost:11434"
    http_timeout: float = 30.0

    # === RAG configuration ===
    rag_enabled: bool = True
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    max_total_indexed_chars: int = Field(default=20_000, gt=0)
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    embedding_batch_size: int = Field(default=16, gt=0)
    text_preview_chars: int = Field(default=200, gt=0)
    retrieval_top_k: int = Field(default=5, gt=0)
    vector_store_strict_dimensions: bool = False

    # === Retry policy ===
    retry_max_attempts: int = Field(default=5, ge=1)
    retry_initial_delay: float = Field(default=0.5, ge=0.0)
    retry_multiplier: float = Field(default=2.0, ge=1.0)

    # === App config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_overlap(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return self
