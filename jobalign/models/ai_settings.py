"""
AI Settings Models for Configuration Management
"""
import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

DEFAULT_OLLAMA_URL = "http://localhost:11434"


class LLMSettings(BaseModel):
    """LLM Configuration Settings"""
    model_name: str = Field(default="llama3.1:8b", description="LLM model name")
    fast_model_name: Optional[str] = Field(default=None, description="Cheaper model for short extraction tasks")
    base_url: str = Field(default=DEFAULT_OLLAMA_URL, description="Ollama base URL")
    timeout: int = Field(default=120, ge=1, le=600, description="Request timeout in seconds")
    max_retries: int = Field(default=3, ge=1, le=10, description="Attempts per request before giving up")

    @property
    def extraction_model(self) -> str:
        return self.fast_model_name or self.model_name


class EmbeddingSettings(BaseModel):
    """Embedding Model Configuration"""
    model_name: str = Field(default="nomic-embed-text", description="Embedding model name")
    base_url: str = Field(default=DEFAULT_OLLAMA_URL, description="Ollama base URL")
    timeout: int = Field(default=120, ge=1, le=600, description="Request timeout in seconds")


class ProcessingSettings(BaseModel):
    """Indexing pipeline settings"""
    enrich_batch_size: int = Field(default=5, description="Chunks enriched concurrently per batch")
    embed_batch_size: int = Field(default=20, description="Texts sent per embedding call")
    requirement_fallback_chars: int = Field(default=1000, description="JD prefix used when no requirement is extracted")
    tailor_jd_chars: int = Field(default=10000, description="JD prefix sent to the tailoring prompt")

    @field_validator('enrich_batch_size', 'embed_batch_size', 'requirement_fallback_chars', 'tailor_jd_chars')
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError('Batch sizes and character limits must be positive')
        return v


class RetrievalSettings(BaseModel):
    """Default retrieval options"""
    include_summary: bool = True
    include_education: bool = True
    requirement_count: int = Field(default=6, ge=1)
    req_match_count: int = Field(default=6, ge=0)
    final_context_limit: int = Field(default=15, ge=0)


class SessionSettings(BaseModel):
    """Per-session limits"""
    max_session_tokens: int = Field(default=200000, ge=1, description="Token ceiling for one session")


class RagSettings(BaseModel):
    """Complete settings bundle"""
    llm: LLMSettings = Field(default_factory=LLMSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)

    @classmethod
    def from_env(cls) -> "RagSettings":
        base_url = os.getenv("OLLAMA_BASE_URL", DEFAULT_OLLAMA_URL)
        timeout = int(os.getenv("OLLAMA_TIMEOUT", "120"))
        return cls(
            llm=LLMSettings(
                model_name=os.getenv("LLM_MODEL", "llama3.1:8b"),
                fast_model_name=os.getenv("FAST_LLM_MODEL") or None,
                base_url=base_url,
                timeout=timeout,
                max_retries=int(os.getenv("OLLAMA_MAX_RETRIES", "3")),
            ),
            embedding=EmbeddingSettings(
                model_name=os.getenv("EMBED_MODEL", "nomic-embed-text"),
                base_url=base_url,
                timeout=timeout,
            ),
            processing=ProcessingSettings(
                enrich_batch_size=int(os.getenv("ENRICH_BATCH_SIZE", "5")),
                embed_batch_size=int(os.getenv("EMBED_BATCH_SIZE", "20")),
            ),
            retrieval=RetrievalSettings(
                requirement_count=int(os.getenv("REQUIREMENT_COUNT", "6")),
                req_match_count=int(os.getenv("REQ_MATCH_COUNT", "6")),
                final_context_limit=int(os.getenv("FINAL_CONTEXT_LIMIT", "15")),
            ),
            session=SessionSettings(
                max_session_tokens=int(os.getenv("MAX_SESSION_TOKENS", "200000")),
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> RagSettings:
    return RagSettings.from_env()


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment"""
    get_settings.cache_clear()
