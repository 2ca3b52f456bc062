"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from askrag.configs.base import BaseSettings
from askrag.configs.database import DatabaseSettings
from askrag.configs.llm import LLMSettings
from askrag.configs.pipeline import PipelineSettings
from askrag.configs.retrieval import RetrievalSettings
from askrag.configs.tools import ToolSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    settings_path: str = Field(
        default="askrag_settings.json",
        description="File holding runtime-editable settings",
    )

    # Aggregated settings
    database: DatabaseSettings = DatabaseSettings()
    llm: LLMSettings = LLMSettings()
    retrieval: RetrievalSettings = RetrievalSettings()
    pipeline: PipelineSettings = PipelineSettings()
    tools: ToolSettings = ToolSettings()


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read from the environment on first call."""
    return Settings()
