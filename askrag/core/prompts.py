"""
System prompt assembly for the ask pipeline.

Dependencies: None
System role: Prompt templates and context truncation
"""

BASE_INSTRUCTION = "You are a helpful assistant. Answer questions based on the provided context."

DEEP_RESEARCH_SUFFIX = """
--- DEEP RESEARCH MODE ---
Give a structured, well-reasoned answer based on the context:
1) Short summary of the findings
2) Sources: relevant chunks and articles
3) Confidence level and alternative interpretations
4) Final concise answer
Do not reveal internal reasoning; show only analysis and result.
"""

TRUNCATION_MARKER = "\n[... context truncated ...]"

OFFLINE_HEADER = "**Offline mode** (no LLM)\n\nBased on the available documents:\n\n"


def build_system_prompt(
    context: str,
    tool_section: str,
    persona_prompt: str = "",
    deep: bool = False,
) -> str:
    """Persona preamble, instructions, tool catalog, context and deep-mode suffix."""
    prompt = f"{BASE_INSTRUCTION}\n\n{tool_section}\n\nContext:\n{context}"
    if deep:
        prompt += "\n" + DEEP_RESEARCH_SUFFIX
    if persona_prompt:
        prompt = f"{persona_prompt}\n\n{prompt}"
    return prompt


def fit_system_prompt(
    context: str,
    tool_section: str,
    persona_prompt: str,
    deep: bool,
    max_chars: int,
    truncated_context_chars: int,
) -> tuple[str, str]:
    """
    Build the system prompt, truncating only the context if it is too long.

    Returns:
        tuple[str, str]: (system prompt, context actually used)
    """
    prompt = build_system_prompt(context, tool_section, persona_prompt, deep)
    if len(prompt) > max_chars and len(context) > truncated_context_chars:
        context = context[:truncated_context_chars] + TRUNCATION_MARKER
        prompt = build_system_prompt(context, tool_section, persona_prompt, deep)
    return prompt, context
