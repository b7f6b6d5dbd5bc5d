from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide defaults, read from STRUCTGEN_* environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="STRUCTGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field("INFO", description="Root log level")
    log_format: str = Field("json", description="json or console")
    service_name: str = Field("structgen", description="Service name bound into every log entry")
    environment: str = Field("development")
    service_version: str = Field("unknown")

    default_temperature: float = Field(0.7, description="Sampling temperature for the final response")
    default_max_tokens: int = Field(4000, description="Token limit for every generation call")
    decision_temperature: float = Field(0.3, description="Sampling temperature for selection and parameter calls")

    http_timeout: float = Field(30.0, description="Timeout in seconds for provider and analytics requests")
    analytics_url: Optional[str] = Field(None, description="Default endpoint receiving run records")


@lru_cache
def get_settings() -> Settings:
    return Settings()
