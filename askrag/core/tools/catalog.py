"""
Tool catalog.

Built-in tools plus caller-registered template APIs, and their description
for the system prompt.

Dependencies: askrag.models
System role: Registry of tools the model may request
"""

from askrag.core.tools.protocol import ToolMarkerParser
from askrag.models.runtime_settings import RuntimeSettings
from askrag.models.tools import ToolSpec

WIKIPEDIA = "wikipedia"
DUCKDUCKGO = "duckduckgo"
WIKTIONARY = "wiktionary"
STACKOVERFLOW = "stackoverflow"
WEBSEARCH = "websearch"
PYTHON = "python"
LLM = "llm"
CALCULATE = "calculate"
EXEC_CODE = "exec_code"

BUILTIN_TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name=WIKIPEDIA,
        description="Looks up a Wikipedia article and loads its full text. Use it for facts about people, places, events and science.",
        param_hint="Article title (e.g. 'Solar System', 'Albert_Einstein')",
    ),
    ToolSpec(
        name=DUCKDUCKGO,
        description="Searches the web via DuckDuckGo and returns a short answer. Good for current facts and definitions.",
        param_hint="Search term (e.g. 'capital of France')",
    ),
    ToolSpec(
        name=WIKTIONARY,
        description="Looks up a word in Wiktionary: meaning, etymology, translations.",
        param_hint="Single word (e.g. 'apple', 'serendipity')",
    ),
    ToolSpec(
        name=STACKOVERFLOW,
        description="Finds relevant StackOverflow answers (programming questions).",
        param_hint="Search term (e.g. 'python httpx timeout')",
    ),
    ToolSpec(
        name=WEBSEARCH,
        description="General web search (DuckDuckGo based) for broad research.",
        param_hint="Search term (e.g. 'weather Berlin today')",
    ),
    ToolSpec(
        name=PYTHON,
        description="Runs a short Python snippet in a restricted sandbox and returns what it prints. Must be enabled in the settings.",
        param_hint="Python source (short snippets using print)",
    ),
    ToolSpec(
        name=LLM,
        description="Runs a direct prompt against the configured LLM (creative answers or short analyses).",
        param_hint="Prompt / question",
    ),
    ToolSpec(
        name=CALCULATE,
        description="Evaluates an arithmetic expression safely.",
        param_hint="Expression (e.g. '3*2+(2^3)')",
    ),
    ToolSpec(
        name=EXEC_CODE,
        description="Checks Python code. Static analysis only unless execution is enabled in the settings.",
        param_hint="Python source",
    ),
)

BUILTIN_NAMES = frozenset(tool.name for tool in BUILTIN_TOOLS)


def all_tools(runtime: RuntimeSettings) -> list[ToolSpec]:
    """Built-in tools followed by the registered template APIs."""
    tools = list(BUILTIN_TOOLS)
    for api in runtime.custom_apis:
        description = api.desc or f"Custom API {api.name}"
        tools.append(
            ToolSpec(
                name=api.id,
                description=f"{api.name}: {description}",
                param_hint="Search term (substituted for $q)",
                builtin=False,
            )
        )
    return tools


def describe_tools(tools: list[ToolSpec], parser: ToolMarkerParser) -> str:
    """Tool section of the system prompt."""
    lines = [
        "## Available tools",
        "If the context does NOT contain enough information to answer reliably, you may request one "
        "of the following tools. Append a tool request at the END of your answer in exactly this format:",
        "",
        parser.describe(),
        "",
        "Tools:",
    ]
    lines.extend(f"- **{tool.name}**: {tool.description} (Parameter: {tool.param_hint})" for tool in tools)
    lines.extend(
        [
            "",
            "Rules:",
            "- Request at most ONE tool per answer.",
            "- Still give a short answer with what you know before the tool request.",
            "- If the context is sufficient, answer normally WITHOUT a tool request.",
            f"- The tool request must use EXACTLY the format {parser.describe()}.",
        ]
    )
    return "\n".join(lines)
