"""
Application configuration using pydantic-settings.

Loads configuration from environment variables and .env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Credentials
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    openai_api_key: str = Field(default="", description="OpenAI API key")
    elevenlabs_api_key: str = Field(default="", description="ElevenLabs API key")

    # Text improvement providers
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com/v1",
        description="Base URL of the Anthropic API",
    )
    anthropic_model: str = Field(
        default="claude-3-sonnet-20240229",
        description="Anthropic model used for rewriting",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI API",
    )
    openai_model: str = Field(
        default="gpt-4-turbo-preview",
        description="OpenAI model used for rewriting",
    )
    max_tokens: int = Field(
        default=1024,
        description="Maximum tokens requested from the text provider",
    )
    request_timeout: float = Field(
        default=60.0,
        description="Timeout in seconds for every outbound HTTP request",
    )
    default_provider: Literal["anthropic", "openai"] = Field(
        default="anthropic",
        description="Provider selected when a session starts",
    )
    default_style: str = Field(
        default="professional",
        description="Writing style selected when a session starts",
    )

    # Voice synthesis (ElevenLabs)
    elevenlabs_base_url: str = Field(
        default="https://api.elevenlabs.io/v1",
        description="Base URL of the ElevenLabs API",
    )
    elevenlabs_model_id: str = Field(
        default="eleven_monolingual_v1",
        description="ElevenLabs synthesis model",
    )
    default_voice_id: str = Field(
        default="21m00Tcm4TlvDq8ikWAM",
        description="Voice used until the user picks another one (Rachel)",
    )
    default_stability: float = Field(default=0.5, ge=0.0, le=1.0)
    default_similarity_boost: float = Field(default=0.75, ge=0.0, le=1.0)
    speak_source: Literal["output", "input"] = Field(
        default="output",
        description="Which session text speak() reads aloud",
    )
    player_bin: str = Field(
        default="afplay",
        description="Command used to play synthesized audio",
    )

    # Update checks
    app_version: str = Field(default="1.0.0", description="Version of the running application")
    update_owner: str = Field(default="", description="GitHub owner of the release feed")
    update_repo: str = Field(default="", description="GitHub repository of the release feed")
    update_api_url: str = Field(
        default="https://api.github.com",
        description="Base URL of the GitHub REST API",
    )

    # Application
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
