"""
Embedding and completion client.

Thin adapter over an OpenAI-compatible backend (LM Studio, Ollama, vLLM, ...)
built on langchain-openai. Embeddings go to /v1/embeddings, chat goes to
streaming /v1/chat/completions, model discovery uses /v1/models over httpx.

Dependencies: langchain_openai, langchain_core, httpx
System role: LLM backend boundary
"""

import logging
from collections.abc import AsyncIterator, Sequence

import httpx
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI, OpenAIEmbeddings

from askrag.boundary.llm.segment_filter import ThinkFilter
from askrag.core.exceptions import BackendUnavailableError
from askrag.models.runtime_settings import normalize_base_url

logger = logging.getLogger(__name__)


def _chunk_text(content) -> str:
    """Text of a streamed message chunk (content may be a list of parts)."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class LLMClient:
    """
    Client for one backend endpoint and model pair.

    Instances are immutable once built; configuration changes produce a new
    client which LLMClientHolder swaps in.
    """

    def __init__(
        self,
        base_url: str,
        chat_model: str,
        embed_model: str,
        api_key: str = "not-needed",
        temperature: float = 0.7,
        timeout: float = 120.0,
        models_timeout: float = 10.0,
    ) -> None:
        """
        Initialize client.

        Args:
            base_url: Backend URL, with or without /v1
            chat_model: Chat completion model name
            embed_model: Embedding model name
            api_key: Bearer key (ignored by most local servers)
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            models_timeout: Timeout for model listing
        """
        self.base_url = normalize_base_url(base_url)
        self.chat_model = chat_model
        self.embed_model = embed_model
        self._api_key = api_key
        self._models_timeout = models_timeout

        self._chat = ChatOpenAI(
            model=chat_model,
            base_url=self.api_base,
            api_key=api_key,
            temperature=temperature,
            timeout=timeout,
            max_retries=0,
        )
        # Non-OpenAI servers reject token-array inputs
        self._embeddings = OpenAIEmbeddings(
            model=embed_model,
            base_url=self.api_base,
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
            check_embedding_ctx_length=False,
        )

    @property
    def api_base(self) -> str:
        return f"{self.base_url}/v1"

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed a batch of texts.

        Raises:
            BackendUnavailableError: On transport failure or a short reply
        """
        if not texts:
            return []
        try:
            vectors = await self._embeddings.aembed_documents(list(texts))
        except Exception as e:
            logger.error(f"{__name__}:embed - {type(e).__name__}: {e}")
            raise BackendUnavailableError(
                f"embedding request failed: {e}", operation="embed"
            ) from e
        if len(vectors) != len(texts):
            raise BackendUnavailableError(
                f"embedding backend returned {len(vectors)} vectors for {len(texts)} inputs",
                operation="embed",
            )
        return vectors

    async def embed_one(self, text: str) -> list[float]:
        vectors = await self.embed([text])
        if not vectors or not vectors[0]:
            raise BackendUnavailableError("no embedding returned", operation="embed")
        return vectors[0]

    async def stream_chat(
        self,
        system: str,
        messages: Sequence[BaseMessage],
    ) -> AsyncIterator[str]:
        """
        Stream answer tokens with reasoning segments removed.

        Args:
            system: System prompt (omitted when empty)
            messages: Conversation turns

        Yields:
            str: Non-empty text tokens

        Raises:
            BackendUnavailableError: If the request fails before or mid-stream
        """
        prompt: list[BaseMessage] = [SystemMessage(content=system)] if system else []
        prompt.extend(messages)
        think = ThinkFilter()
        try:
            async for chunk in self._chat.astream(prompt):
                text = think.feed(_chunk_text(chunk.content))
                if text:
                    yield text
        except Exception as e:
            logger.error(f"{__name__}:stream_chat - {type(e).__name__}: {e}")
            raise BackendUnavailableError(f"chat request failed: {e}", operation="chat") from e
        rest = think.flush()
        if rest:
            yield rest

    async def complete(self, system: str, messages: Sequence[BaseMessage]) -> str:
        """Collect a full streamed reply."""
        parts = [token async for token in self.stream_chat(system, messages)]
        return "".join(parts)

    async def prompt(self, text: str) -> str:
        """Single user prompt without system message."""
        return await self.complete("", [HumanMessage(content=text)])

    async def list_models(self) -> list[str]:
        """
        Model ids advertised by the backend.

        Raises:
            BackendUnavailableError: If the endpoint is unreachable or malformed
        """
        return await list_models(self.base_url, self._api_key, self._models_timeout)

    async def ping(self) -> bool:
        """Whether the backend answers the model listing."""
        try:
            await self.list_models()
        except BackendUnavailableError:
            return False
        return True


async def list_models(base_url: str, api_key: str = "not-needed", timeout: float = 10.0) -> list[str]:
    """Query GET /v1/models on any backend URL."""
    url = f"{normalize_base_url(base_url)}/v1/models"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url, headers={"Authorization": f"Bearer {api_key}"})
            response.raise_for_status()
            payload = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise BackendUnavailableError(
            f"model listing failed: {e}", operation="models", details={"url": url}
        ) from e
    return [item["id"] for item in payload.get("data", []) if isinstance(item, dict) and "id" in item]
