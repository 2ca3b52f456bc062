"""
Tool execution gate.

Applies the per-tool execution policy, dispatches to the executor and
converts every failure into a ToolOutcome. Denied tools are reported as
DISALLOWED, runtime failures (including timeouts) as FAILED.

Policy:
    calculate, lookups, llm, template APIs  always run
    python                                   only if allow_sandbox
    exec_code                                sandboxed if allow_code_exec,
                                             otherwise a static check

Dependencies: fastapi.concurrency, askrag.boundary.web, askrag.boundary.llm
System role: Supervised boundary around tool execution
"""

import asyncio
import logging

from fastapi.concurrency import run_in_threadpool

from askrag.boundary.llm.client import LLMClient
from askrag.boundary.llm.holder import LLMClientHolder
from askrag.boundary.web.fetchers import WebFetcher
from askrag.configs.tools import ToolSettings
from askrag.core.exceptions import AskRagException, UnknownToolError
from askrag.core.tools import catalog
from askrag.core.tools.calculator import calculate
from askrag.core.tools.code_check import static_check
from askrag.core.tools.sandbox import run_sandboxed
from askrag.models.runtime_settings import RuntimeSettings
from askrag.models.tools import ToolOutcome, ToolRequest, ToolStatus

logger = logging.getLogger(__name__)


def is_allowed(tool: str, runtime: RuntimeSettings) -> bool:
    """Whether policy lets the tool run at all."""
    if tool == catalog.PYTHON:
        return runtime.allow_sandbox
    return True


def _message(error: Exception) -> str:
    if isinstance(error, AskRagException):
        return error.message
    return str(error) or type(error).__name__


class ToolGate:
    """Executes tool requests under policy and a hard timeout."""

    def __init__(self, fetcher: WebFetcher, llm: LLMClientHolder, settings: ToolSettings) -> None:
        """
        Initialize gate.

        Args:
            fetcher: HTTP fetchers for lookup tools and template APIs
            llm: Holder of the active client for the llm tool
            settings: Timeouts and output limits
        """
        self.fetcher = fetcher
        self.llm = llm
        self.settings = settings

    async def execute(
        self,
        request: ToolRequest,
        runtime: RuntimeSettings,
        client: LLMClient | None = None,
    ) -> ToolOutcome:
        """
        Run a tool request.

        Never raises for tool failures; the outcome carries the status.

        Args:
            request: Parsed tool request
            runtime: Settings snapshot holding the policy flags
            client: Client for the llm tool (defaults to the active one)

        Returns:
            ToolOutcome: success with source and output, failed with error,
            or disallowed
        """
        tool, query = request.tool, request.query
        logger.info(f"{__name__}:execute - START tool={tool}", extra={"tool": tool, "query": query})

        if not is_allowed(tool, runtime):
            logger.info(f"{__name__}:execute - Disallowed by policy", extra={"tool": tool})
            return ToolOutcome(status=ToolStatus.DISALLOWED, tool=tool, query=query)

        try:
            source, output = await asyncio.wait_for(
                self._dispatch(tool, query, runtime, client or self.llm.get()),
                timeout=self.settings.execution_timeout_seconds,
            )
        except asyncio.TimeoutError:
            error = f"tool timed out after {self.settings.execution_timeout_seconds:g}s"
            logger.warning(f"{__name__}:execute - {error}", extra={"tool": tool})
            return ToolOutcome(status=ToolStatus.FAILED, tool=tool, query=query, error=error)
        except Exception as e:
            logger.warning(f"{__name__}:execute - FAILED {type(e).__name__}: {e}", extra={"tool": tool})
            return ToolOutcome(status=ToolStatus.FAILED, tool=tool, query=query, error=_message(e))

        output = output.strip()
        if not output:
            return ToolOutcome(
                status=ToolStatus.FAILED, tool=tool, query=query, error="tool returned no output"
            )
        output = output[: self.settings.max_output_chars]
        logger.info(
            f"{__name__}:execute - END tool={tool}",
            extra={"tool": tool, "source": source, "output_chars": len(output)},
        )
        return ToolOutcome(
            status=ToolStatus.SUCCESS, tool=tool, query=query, source=source, output=output
        )

    async def _dispatch(
        self, tool: str, query: str, runtime: RuntimeSettings, client: LLMClient
    ) -> tuple[str, str]:
        """Run the executor; returns (source name, output text)."""
        if tool == catalog.WIKIPEDIA:
            return f"wiki:{query}", await self.fetcher.wikipedia(query, runtime.lang)
        if tool == catalog.DUCKDUCKGO:
            return f"ddg:{query}", await self.fetcher.duckduckgo(query)
        if tool == catalog.WIKTIONARY:
            return f"wikt:{query}", await self.fetcher.wiktionary(query, runtime.lang)
        if tool == catalog.STACKOVERFLOW:
            return f"so:{query}", await self.fetcher.duckduckgo(f"site:stackoverflow.com {query}")
        if tool == catalog.WEBSEARCH:
            return f"web:{query}", await self.fetcher.duckduckgo(query)
        if tool == catalog.LLM:
            return "llm:prompt", await client.prompt(query)
        if tool == catalog.CALCULATE:
            return f"calc:{query}", await run_in_threadpool(calculate, query)
        if tool == catalog.PYTHON:
            return "sandbox:exec", await self._run_code(query, tool)
        if tool == catalog.EXEC_CODE:
            if runtime.allow_code_exec:
                return "sandbox:exec", await self._run_code(query, tool)
            return "code:python", await run_in_threadpool(static_check, query)

        api = runtime.custom_api(tool)
        if api is None:
            raise UnknownToolError(tool)
        return f"api:{api.name}:{query}", await self.fetcher.template_api(api.template, query)

    async def _run_code(self, code: str, tool: str) -> str:
        return await run_in_threadpool(
            run_sandboxed, code, self.settings.sandbox_timeout_seconds, tool
        )
