"""
Configuration management module.

Provides centralized, type-safe configuration using Pydantic Settings.
Each sub-settings class reads its own environment prefix.
"""

from askrag.configs.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
