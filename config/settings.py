"""Application configuration using Pydantic Settings."""

import os
from dataclasses import dataclass
from typing import List, Tuple
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# NOTE: logfire.configure() is intentionally not called here.
# Logfire is configured once at application startup (main.py via observability/logfire_config.py)
# or in pytest hooks (conftest.py).


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field has a default so the validator and orchestrator can be
    constructed in tests and scripts without a populated .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Settings
    environment: str = Field(default="development", description="Environment: development, staging, production")
    debug: bool = Field(default=False, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # CORS Settings
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    # External APIs
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    producer_model: str = Field(
        default="anthropic:claude-sonnet-4-5-20250929",
        description="Model used by the stage producers"
    )
    corrector_model: str = Field(
        default="anthropic:claude-haiku-4-5",
        description="Model used by the AI corrector"
    )

    # Artifact storage (Supabase Storage)
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_service_role_key: str = Field(default="", description="Supabase service role key for backend operations")
    artifact_bucket: str = Field(default="email-artifacts", description="Storage bucket for design/delivery artifacts")

    # Handoff limits
    max_file_size_bytes: int = Field(default=100_000, description="Ceiling for rendered email size in bytes")
    max_render_time_ms: int = Field(default=1000, description="Ceiling for template render time")
    max_design_total_size_kb: int = Field(default=100, description="Ceiling for design performance_metrics.total_size_kb")
    max_package_size_kb: int = Field(default=600, description="Ceiling for the delivery package size")
    min_quality_score: int = Field(default=70, description="Quality floor below which nothing advances")
    min_compatibility_score: int = Field(default=95, description="Required email client compatibility")
    min_accessibility_score: int = Field(default=80, description="Required accessibility score (WCAG AA)")
    max_spam_score: float = Field(default=3.0, description="Highest acceptable spam score")
    supported_languages: str = Field(default="ru,en", description="Comma-separated content languages")

    # Pipeline behaviour
    max_correction_attempts: int = Field(default=2, ge=0, description="Bounded AI correction passes per stage")
    external_call_timeout_seconds: float = Field(default=30.0, gt=0, description="Timeout for producer/corrector/store calls")
    require_approval: bool = Field(default=False, description="Fail campaigns whose verdict is needs_revision")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Observability
    logfire_token: str = Field(default="", description="Logfire observability token")

    @field_validator("allowed_origins")
    @classmethod
    def parse_origins(cls, v: str) -> List[str]:
        """Parse comma-separated origins into a list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("supported_languages")
    @classmethod
    def parse_languages(cls, v: str) -> List[str]:
        """Parse comma-separated language codes into a lowercase list."""
        if isinstance(v, str):
            languages = [lang.strip().lower() for lang in v.split(",") if lang.strip()]
        else:
            languages = [str(lang).lower() for lang in v]
        if not languages:
            raise ValueError("At least one supported language is required")
        return languages

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment.lower() == "production"


@dataclass(frozen=True)
class HandoffLimits:
    """
    Read-only thresholds shared by every campaign.

    Built once from Settings and handed to the validator and orchestrator;
    nothing mutates it after construction.
    """

    max_file_size_bytes: int = 100_000
    max_render_time_ms: int = 1000
    max_design_total_size_kb: int = 100
    max_package_size_kb: int = 600
    min_quality_score: int = 70
    min_compatibility_score: int = 95
    min_accessibility_score: int = 80
    max_spam_score: float = 3.0
    supported_languages: Tuple[str, ...] = ("ru", "en")

    @classmethod
    def from_settings(cls, s: "Settings") -> "HandoffLimits":
        return cls(
            max_file_size_bytes=s.max_file_size_bytes,
            max_render_time_ms=s.max_render_time_ms,
            max_design_total_size_kb=s.max_design_total_size_kb,
            max_package_size_kb=s.max_package_size_kb,
            min_quality_score=s.min_quality_score,
            min_compatibility_score=s.min_compatibility_score,
            min_accessibility_score=s.min_accessibility_score,
            max_spam_score=s.max_spam_score,
            supported_languages=tuple(s.supported_languages),
        )


# Create a singleton instance
settings = Settings()

# Ensure SDKs that read ANTHROPIC_API_KEY at import time see the configured value.
if settings.anthropic_api_key:
    os.environ.setdefault("ANTHROPIC_API_KEY", settings.anthropic_api_key)


def get_settings() -> "Settings":
    """Return the singleton settings instance."""
    return settings
