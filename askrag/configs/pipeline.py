"""
Streaming pipeline configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Ask pipeline limits
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from askrag.configs.base import BaseSettings


class PipelineSettings(BaseSettings):
    """Ask pipeline configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PIPELINE_",
        case_sensitive=False,
        extra="ignore",
    )

    history_turns: int = Field(default=10, description="Prior messages sent with each question")
    system_prompt_max_chars: int = Field(
        default=32000, description="Ceiling above which the context is truncated"
    )
    truncated_context_chars: int = Field(
        default=5000, description="Context length kept after truncation"
    )
    relay_buffer_size: int = Field(default=64, description="Token relay queue size")
    offline_piece_chars: int = Field(default=64, description="Chunk size for offline answers")
