"""LLM backend boundary: client, client holder and token filters."""

from askrag.boundary.llm.client import LLMClient, list_models
from askrag.boundary.llm.holder import LLMClientHolder, build_llm_client

__all__ = ["LLMClient", "LLMClientHolder", "build_llm_client", "list_models"]
