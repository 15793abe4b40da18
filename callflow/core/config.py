"""
Configuration management for CallFlow
Uses Pydantic Settings for environment variable management
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # OpenAI Configuration
    openai_api_key: str = Field(default=...)
    openai_model: str = Field(default="gpt-4o-mini")
    openai_tts_model: str = Field(default="gpt-4o-mini-tts")
    openai_tts_voice: str = Field(default="alloy")
    intent_temperature: float = Field(default=0.0)
    reply_temperature: float = Field(default=0.3)

    # Redis Configuration
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_max_connections: int = Field(default=100)

    # Call Session Limits
    session_ttl_seconds: int = Field(default=3600)
    max_call_turns: int = Field(default=20)
    max_call_duration_sec: int = Field(default=900)

    # Human Transfer
    human_agent_number: Optional[str] = Field(default=None)

    # Twilio Configuration
    twilio_auth_token: str = Field(default="")
    twilio_validate_signatures: bool = Field(default=False)
    twilio_voice: str = Field(default="Polly.Matthew")
    gather_timeout_seconds: int = Field(default=5)

    # Audio
    audio_dir: str = Field(default="audio")

    # Admin API
    admin_api_key: Optional[str] = Field(default=None)

    # Application Settings
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    environment: str = Field(default="development")

    # Server Configuration
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=8080)
    api_base_url: str = Field(default="http://localhost:8080")

    @property
    def webhook_base_url(self) -> str:
        """Base URL Twilio should call back into"""
        return f"{self.api_base_url.rstrip('/')}/api/v1/webhooks"

    @property
    def audio_base_url(self) -> str:
        """Public URL under which synthesized audio is served"""
        return f"{self.api_base_url.rstrip('/')}/audio"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
