"""Configuration management for the Neurocom chat backend."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # Sandboxed environments may not expose .env; rely on real env vars
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Model provider keys
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key (embeddings)")
    ANTHROPIC_API_KEY: str = Field(..., description="Anthropic API key (completions)")
    GEMINI_API_KEY: str = Field(default="", description="Gemini API key (voice streaming)")

    # Environment
    APP_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Embedding configuration
    EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    EMBEDDING_DIM: int = Field(default=768, description="Embedding vector dimension")

    # Completion configuration
    CHAT_MODEL: str = Field(default="claude-sonnet-4-5", description="Model for chat replies")
    FOLLOWUPS_MODEL: str = Field(
        default="claude-haiku-4-5", description="Model for follow-up questions"
    )
    CHAT_MAX_TOKENS: int = Field(default=1024, description="Max tokens for a chat reply")
    FOLLOWUPS_MAX_TOKENS: int = Field(default=200, description="Max tokens for follow-ups")
    MODEL_TIMEOUT_SECONDS: float = Field(
        default=60.0, description="Deadline applied to every upstream model call"
    )

    # Conversation assembly
    HISTORY_WINDOW: int = Field(default=10, description="Recent turns included in the prompt")
    TITLE_MAX_CHARS: int = Field(default=60, description="Session title length from first turn")

    # Retrieval defaults
    RAG_MIN_SIM_DOCS: float = Field(default=0.30, description="Min similarity for documents")
    RAG_MIN_SIM_HIST: float = Field(default=0.25, description="Min similarity for history")
    RAG_DOCS_K: int = Field(default=8, description="Max documents per query")
    RAG_HIST_K: int = Field(default=6, description="Max history items per query")
    RAG_RECENCY_HALF_LIFE_SECONDS: int = Field(
        default=86400, description="Half-life of the recency decay applied to history"
    )
    RAG_CANDIDATE_POOL: int = Field(
        default=50, description="Candidate pool for the document-only fallback search"
    )
    RAG_DEBUG_CANDIDATE_POOL: int = Field(
        default=100, description="Candidate pool used by the retrieval debug endpoint"
    )

    # Voice streaming
    STREAM_MODEL: str = Field(default="gemini-1.5-flash", description="Streaming audio model")
    STREAM_BASE_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the streaming model API",
    )
    STREAM_AUDIO_MIME: str = Field(
        default="audio/pcm;rate=16000", description="Mime type of inbound audio chunks"
    )
    STREAM_TEMPERATURE: float = Field(default=0.7, description="Streaming generation temperature")
    STREAM_OUTBOX_SIZE: int = Field(
        default=256, description="Max queued outbound events per voice connection"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
