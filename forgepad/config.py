"""
ForgePad Configuration Module

This module manages application settings and environment variables using
pydantic-settings for type-safe configuration management.

Environment variables are loaded from .env file or system environment.
The Gemini override key uses SecretStr to prevent accidental logging.
"""

from functools import lru_cache
from typing import Literal
import logging
import sys

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from forgepad.registry.providers import ProviderKind


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic Settings automatically reads from:
    1. Environment variables
    2. .env file in working directory
    3. Default values defined here

    Provider keys normally live in the credential store; only the
    free-tier Gemini key may be injected through the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )

    gemini_api_key: SecretStr | None = Field(
        default=None,
        description="Gemini key that bypasses the credential store (optional)",
    )

    default_provider: ProviderKind = Field(
        default=ProviderKind.GEMINI,
        description="Provider tried first when preferences have not been saved",
    )

    provider_fallback_enabled: bool = Field(
        default=True,
        description="Initial value of the fallback preference",
    )

    request_timeout_ms: int = Field(
        default=20_000,
        gt=0,
        description="Per-attempt provider timeout in milliseconds",
    )

    validation_timeout_ms: int = Field(
        default=10_000,
        gt=0,
        description="Timeout for key validation probes in milliseconds",
    )

    store_path: str | None = Field(
        default=None,
        description="JSON file backing the credential store (default: memory only)",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Application log level"
    )

    host: str = Field(default="127.0.0.1", description="Server bind host")

    port: int = Field(default=8000, description="Server bind port")

    debug: bool = Field(default=False, description="Enable debug mode")


@lru_cache
def get_settings() -> Settings:
    """
    Returns cached settings instance.

    Returns:
        Settings: The application settings singleton.
    """
    return Settings()


def configure_logging(settings: Settings) -> None:
    """
    Configure application logging based on settings.

    Sets up structured logging with timestamps and reduces noise
    from the provider SDKs and their HTTP libraries.

    Args:
        settings: The application settings instance.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)
