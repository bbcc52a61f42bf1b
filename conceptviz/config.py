"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Provide defaults that match the reference behavior of the pipeline

Collaborators:
  - main.py: reads settings for CORS and startup logging
  - container.py: reads settings for chunker, renderers, synchronizer
  - api/routes.py: reads settings for request validation limits

Constraints:
  - No business logic, pure configuration

Notes:
  - Singleton via lru_cache
  - FAKE_LLM=1 swaps every model-backed collaborator for a deterministic fake
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ACTIVE_CONCEPT_STRATEGIES = ("directional", "center")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        google_api_key: Gemini API key (extraction, formatting, SVG, answers)
        anthropic_api_key: Claude API key (alternative SVG renderer)
        gemini_model_id: Gemini model used for every Gemini call
        claude_model_id: Claude model used by the Claude SVG renderer
        claude_max_tokens: Max output tokens for Claude renders
        allowed_origins: Comma-separated CORS origins
        fake_llm: Use deterministic fakes instead of model APIs
        prompt_version: Prompt template version prefix
        paragraphs_per_chunk: Target paragraphs per formatting chunk
        max_paragraphs_per_chunk: Hard cap before a concept may be split
        rescue_context_chars: Context around a concept in a rescue chunk
        url_fetch_timeout_seconds: Timeout for URL scraping
        min_url_text_chars: Minimum extracted text length for a URL
        max_text_chars: Maximum source text length accepted by the API
        max_upload_bytes: Maximum PDF upload size
        max_conversation_messages: Assistant history window
        scroll_throttle_seconds: Minimum gap between scroll recomputations
        manual_navigation_suppression_seconds: Scroll suppression after a jump
        active_concept_strategy: "directional" or "center"
    """

    # Model credentials
    google_api_key: str = ""
    anthropic_api_key: str = ""

    # Models
    gemini_model_id: str = "gemini-2.0-flash"
    claude_model_id: str = "claude-3-7-sonnet-20250219"
    claude_max_tokens: int = 4000

    # CORS configuration
    allowed_origins: str = "http://localhost:5173"

    # Testing/CI
    fake_llm: bool = False

    # Prompts
    prompt_version: str = "v1"

    # Chunking
    paragraphs_per_chunk: int = 3
    max_paragraphs_per_chunk: int = 5
    rescue_context_chars: int = 300

    # Sources
    url_fetch_timeout_seconds: float = 10.0
    min_url_text_chars: int = 500
    max_text_chars: int = 200_000
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB

    # Assistant
    max_conversation_messages: int = 12

    # Reader synchronization
    scroll_throttle_seconds: float = 0.15
    manual_navigation_suppression_seconds: float = 0.8
    active_concept_strategy: str = "directional"

    # Retry/Resilience
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 1.0
    retry_max_delay_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("paragraphs_per_chunk", "max_paragraphs_per_chunk")
    @classmethod
    def paragraph_counts_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("paragraph counts must be >= 1")
        return v

    @field_validator("rescue_context_chars", "min_url_text_chars")
    @classmethod
    def must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must be >= 0")
        return v

    @field_validator("active_concept_strategy")
    @classmethod
    def strategy_must_be_known(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ACTIVE_CONCEPT_STRATEGIES:
            raise ValueError(
                f"active_concept_strategy must be one of {ACTIVE_CONCEPT_STRATEGIES}"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return (v or "INFO").strip().upper()

    @model_validator(mode="after")
    def validate_chunk_params(self):
        if self.max_paragraphs_per_chunk < self.paragraphs_per_chunk:
            raise ValueError(
                f"max_paragraphs_per_chunk ({self.max_paragraphs_per_chunk}) must be >= "
                f"paragraphs_per_chunk ({self.paragraphs_per_chunk})"
            )
        return self

    @model_validator(mode="after")
    def validate_ai_requirements(self):
        if not self.google_api_key and not self.fake_llm:
            raise ValueError("GOOGLE_API_KEY is required unless FAKE_LLM=1")
        return self

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()
