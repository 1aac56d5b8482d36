"""Application settings using Pydantic BaseSettings for environment variable management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Attributes:
        gemini_api_key: Google Gemini API key (required for LLM verification)
        gemini_model: Default Gemini model to use
        max_rpm: Maximum requests per minute
        max_tpm: Maximum tokens per minute
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        cron_secret: Shared secret required to trigger and list runs
        verify_concurrency: Claims verified concurrently per batch
        batch_delay_seconds: Pacing delay between verification batches
        max_verify_claims: Cap on claims sent to the judge per run
        staleness_years: Years after which a dated claim is considered stale
        max_text_chars: Page text budget for LLM claim extraction
        max_document_chars: Document text budget for LLM claim extraction
        recent_documents_limit: Recent documents/insights audited weekly
        data_dir: Directory for JSON persistence (None = memory only)
        pages_snapshot_path: JSON file with structured page data
    """

    gemini_api_key: str = Field(default="", description="Google Gemini API key")
    gemini_model: str = Field(
        default="gemini-1.5-pro",
        description="Default Gemini model identifier"
    )
    max_rpm: int = Field(
        default=15,
        description="Maximum requests per minute"
    )
    max_tpm: int = Field(
        default=1_000_000,
        description="Maximum tokens per minute"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )
    cron_secret: str = Field(
        default="",
        description="Shared secret for run triggers (empty disables runs)"
    )
    verify_concurrency: int = Field(
        default=3,
        ge=1,
        description="Concurrent judge calls per verification batch"
    )
    batch_delay_seconds: float = Field(
        default=0.5,
        ge=0.0,
        description="Pause between verification batches to respect rate limits"
    )
    max_verify_claims: int = Field(
        default=20,
        ge=1,
        description="Maximum claims verified by the judge in one run"
    )
    staleness_years: int = Field(
        default=2,
        ge=0,
        description="Claims citing years older than this are flagged stale"
    )
    max_text_chars: int = Field(
        default=8000,
        description="Character budget for page text sent to extraction"
    )
    max_document_chars: int = Field(
        default=4000,
        description="Character budget for document text sent to extraction"
    )
    recent_documents_limit: int = Field(
        default=10,
        description="Recent documents and insights audited per weekly run"
    )
    data_dir: str | None = Field(
        default=None,
        description="Directory for JSON store persistence"
    )
    pages_snapshot_path: str | None = Field(
        default=None,
        description="JSON file holding the structured page snapshot"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_prefix": "EVAL_",
    }


# Singleton instance - import this throughout the application
settings = Settings()
