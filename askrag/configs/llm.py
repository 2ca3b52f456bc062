"""
LLM backend configuration settings.

Defaults for the OpenAI-compatible embedding and chat-completion endpoint.
Runtime changes go through the runtime settings store; these values only
seed it on first start.

Dependencies: pydantic, pydantic_settings
System role: LLM client configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from askrag.configs.base import BaseSettings


class LLMSettings(BaseSettings):
    """OpenAI-compatible backend configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LLM_",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:1234",
        description="Backend base URL (with or without trailing /v1)",
    )
    chat_model: str = Field(default="local-model", description="Chat completion model")
    embed_model: str = Field(
        default="text-embedding-nomic-embed-text-v1.5",
        description="Embedding model",
    )
    api_key: str = Field(
        default="not-needed",
        description="API key sent to the backend (local servers ignore it)",
    )
    temperature: float = Field(default=0.7, description="Sampling temperature")
    timeout_seconds: float = Field(default=120.0, description="Completion/embedding timeout")
    models_timeout_seconds: float = Field(default=10.0, description="Model listing timeout")
    discover_urls: list[str] = Field(
        default=["http://localhost:1234", "http://localhost:11434"],
        description="Local endpoints checked by GET /api/discover",
    )
