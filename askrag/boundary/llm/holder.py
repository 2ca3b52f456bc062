"""
Swappable holder for the active LLM client.

Readers take the current client reference once per request and keep it;
a swap replaces the whole client so no request sees a mixed configuration.

Dependencies: threading
System role: Atomic backend configuration hot-swap
"""

import logging
import threading

from askrag.boundary.llm.client import LLMClient
from askrag.configs.llm import LLMSettings
from askrag.models.runtime_settings import RuntimeSettings

logger = logging.getLogger(__name__)


def build_llm_client(runtime: RuntimeSettings, llm_settings: LLMSettings) -> LLMClient:
    """Client for the endpoint and models named in a runtime snapshot."""
    return LLMClient(
        base_url=runtime.base_url,
        chat_model=runtime.chat_model,
        embed_model=runtime.embed_model,
        api_key=llm_settings.api_key,
        temperature=llm_settings.temperature,
        timeout=llm_settings.timeout_seconds,
        models_timeout=llm_settings.models_timeout_seconds,
    )


class LLMClientHolder:
    """Holds the active client behind a short-held lock."""

    def __init__(self, client: LLMClient) -> None:
        self._lock = threading.Lock()
        self._client = client

    def get(self) -> LLMClient:
        with self._lock:
            return self._client

    def swap(self, client: LLMClient) -> LLMClient:
        """Install a new client and return the previous one."""
        with self._lock:
            previous, self._client = self._client, client
        logger.info(
            f"{__name__}:swap - LLM client replaced",
            extra={
                "base_url": client.base_url,
                "chat_model": client.chat_model,
                "embed_model": client.embed_model,
            },
        )
        return previous

    def refresh(self, runtime: RuntimeSettings, llm_settings: LLMSettings) -> bool:
        """Rebuild the client if the snapshot names a different endpoint or model."""
        current = self.get()
        if (current.base_url, current.chat_model, current.embed_model) == (
            runtime.base_url,
            runtime.chat_model,
            runtime.embed_model,
        ):
            return False
        self.swap(build_llm_client(runtime, llm_settings))
        return True
