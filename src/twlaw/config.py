"""Configuration management using Pydantic settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ARCHIVE_TOOLS = ("unzip", "zipfile")


class Settings(BaseSettings):
    """Ingestion settings loaded from environment variables."""

    # Upstream OpenAPI datasets
    law_dataset_url: str = Field(
        default="https://law.moj.gov.tw/api/ch/law/json",
        description="ZIP endpoint of the Chinese law dataset (contains ChLaw.json)",
    )
    order_dataset_url: str = Field(
        default="https://law.moj.gov.tw/api/ch/order/json",
        description="ZIP endpoint of the Chinese order dataset (contains ChOrder.json)",
    )

    # Local directories
    source_dir: str = Field(
        default="data/source",
        description="Directory for cached ZIP downloads and extracted JSON",
    )
    seed_dir: str = Field(
        default="data/seed",
        description="Directory where one seed JSON file per act is written",
    )

    # Fetch behaviour
    user_agent: str = Field(
        default="twlaw/0.1 (real-legislation-ingestion)",
        description="User-Agent header sent with every request",
    )
    request_min_interval_seconds: float = Field(
        default=1.2,
        description="Minimum spacing between the start of consecutive requests",
    )
    request_timeout_seconds: float = Field(
        default=300.0,
        ge=1.0,
        description="Per-request timeout for the HTTP client",
    )
    fetch_max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="In-process retries on HTTP 429/5xx or network errors",
    )
    curl_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retry count passed to the curl fallback",
    )
    curl_retry_delay_seconds: int = Field(
        default=2,
        ge=0,
        description="Delay between curl fallback retries",
    )
    curl_max_bytes: int = Field(
        default=256 * 1024 * 1024,
        ge=1,
        description="Largest payload accepted from the curl fallback",
    )

    # Archive extraction
    archive_tool: str = Field(
        default="unzip",
        description="Archive extractor: 'unzip' (subprocess) or 'zipfile' (in-process)",
    )
    extract_max_bytes: int = Field(
        default=1024 * 1024 * 1024,
        ge=1,
        description="Largest extracted JSON entry accepted from the unzip tool",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("request_min_interval_seconds")
    @classmethod
    def validate_min_interval(cls, v: float) -> float:
        """Pacing must never be disabled entirely."""
        if v <= 0:
            raise ValueError("REQUEST_MIN_INTERVAL_SECONDS must be greater than zero.")
        return v

    @field_validator("archive_tool")
    @classmethod
    def validate_archive_tool(cls, v: str) -> str:
        """Validate that the archive tool is one we know how to drive."""
        tool = v.strip().lower()
        if tool not in ARCHIVE_TOOLS:
            raise ValueError(f"ARCHIVE_TOOL must be one of {', '.join(ARCHIVE_TOOLS)}, got {v!r}.")
        return tool


# Singleton instance
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """
    Get ingestion settings instance (singleton pattern).

    Returns:
        Settings instance (cached after first call)
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
