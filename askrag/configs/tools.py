"""
Tool execution configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Tool gate and web fetcher configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from askrag.configs.base import BaseSettings


class ToolSettings(BaseSettings):
    """Tool execution configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TOOLS_",
        case_sensitive=False,
        extra="ignore",
    )

    sandbox_timeout_seconds: float = Field(default=5.0, description="Hard limit for sandboxed code")
    execution_timeout_seconds: float = Field(
        default=60.0, description="Hard limit for any single tool invocation"
    )
    http_timeout_seconds: float = Field(default=30.0, description="Page and encyclopedia fetch timeout")
    search_timeout_seconds: float = Field(default=15.0, description="Search API timeout")
    user_agent: str = Field(default="askrag/0.1", description="User-Agent for outbound requests")
    max_output_chars: int = Field(default=20000, description="Tool output kept for ingestion")
    min_page_chars: int = Field(default=50, description="Minimum stripped page length")
