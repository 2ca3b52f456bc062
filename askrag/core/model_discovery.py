"""
Backend model discovery heuristics.

Guesses the server type from its URL and picks likely chat and embedding
models out of a /v1/models listing.

Dependencies: none
System role: Recommendations for the settings UI
"""

PROVIDER_PORTS = (
    ("11434", "Ollama"),
    ("1234", "LM Studio"),
)
CHAT_HINTS = ("llama", "mistral", "ministral", "qwen", "gemma", "phi", "gpt")
EMBED_HINTS = ("embed",)
MAX_RECOMMENDATIONS = 8


def provider_hint(base_url: str) -> str:
    """Human-readable server type, judged by its default port."""
    for port, name in PROVIDER_PORTS:
        if port in base_url:
            return name
    return "OpenAI-compatible"


def recommend_models(models: list[str]) -> tuple[list[str], list[str]]:
    """
    Likely chat and embedding models, in listing order.

    A model can appear in both lists. Each list is cut to MAX_RECOMMENDATIONS.

    Returns:
        tuple[list[str], list[str]]: (chat candidates, embedding candidates)
    """
    chat: list[str] = []
    embed: list[str] = []
    for model in models:
        lowered = model.lower()
        if any(hint in lowered for hint in EMBED_HINTS):
            embed.append(model)
        if any(hint in lowered for hint in CHAT_HINTS):
            chat.append(model)
    return chat[:MAX_RECOMMENDATIONS], embed[:MAX_RECOMMENDATIONS]
