"""
Ask service: the streaming session pipeline.

Orchestrates one question end to end: conversation and persona resolution,
adaptive context assembly, prompt construction, streamed generation, tool
interception with result ingestion and continuation, and history storage.
Everything is emitted as one ordered stream of StreamEvents:

    meta -> [debug] -> tokens -> [tool_request -> tool_result -> tokens] -> done

Dependencies: langchain_core, askrag.core, askrag.boundary, askrag.application
System role: Per-request orchestration for POST /api/ask
"""

import logging
import secrets
from collections.abc import AsyncGenerator

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from sqlalchemy.ext.asyncio import AsyncSession

from askrag.application.adapters.conversation_adapter import ConversationAdapter
from askrag.application.services.conversation_service import ConversationService
from askrag.application.services.knowledge_service import KnowledgeService
from askrag.application.services.token_relay import relay_tokens
from askrag.boundary.llm.client import LLMClient
from askrag.boundary.llm.holder import LLMClientHolder
from askrag.boundary.settings_store import RuntimeSettingsStore
from askrag.configs.settings import Settings
from askrag.core.exceptions import AskRagException, BackendUnavailableError
from askrag.core.prompts import OFFLINE_HEADER, fit_system_prompt
from askrag.core.retrieval.context_assembler import ContextAssembler
from askrag.core.tools.catalog import all_tools, describe_tools
from askrag.core.tools.gate import ToolGate
from askrag.core.tools.protocol import ToolMarkerParser, default_parser
from askrag.models.chat import AskRequest
from askrag.models.streaming import StreamEvent, StreamEventType
from askrag.models.tools import ToolOutcome
from askrag.observability import request_scope

logger = logging.getLogger(__name__)


def new_request_id() -> str:
    return f"req-{secrets.token_hex(4)}"


def continuation_note(outcome: ToolOutcome) -> str:
    return (
        f"Tool {outcome.tool} returned:\n{outcome.output}\n\n"
        "Please continue the answer using this information."
    )


class AskService:
    """
    Streaming question-answering pipeline.

    One instance serves one request; the client snapshot taken at the start
    is used for every backend call of that request.
    """

    def __init__(
        self,
        db: AsyncSession,
        assembler: ContextAssembler,
        knowledge: KnowledgeService,
        gate: ToolGate,
        llm: LLMClientHolder,
        runtime: RuntimeSettingsStore,
        settings: Settings,
        parser: ToolMarkerParser = default_parser,
    ) -> None:
        """
        Initialize ask service.

        Args:
            db: AsyncSession for conversation storage
            assembler: Adaptive context assembler
            knowledge: Knowledge service (tool result ingestion)
            gate: Tool execution gate
            llm: Holder of the active completion client
            runtime: Runtime settings store
            settings: Application settings (pipeline and retrieval limits)
            parser: Tool marker parser
        """
        self.db = db
        self.assembler = assembler
        self.knowledge = knowledge
        self.gate = gate
        self.llm = llm
        self.runtime = runtime
        self.settings = settings
        self.parser = parser

    async def _stream(
        self,
        client: LLMClient,
        system_prompt: str,
        messages: list[BaseMessage],
        raw_parts: list[str],
    ) -> AsyncGenerator[StreamEvent, None]:
        """
        Stream one completion as token events with tool markers hidden.

        Raw tokens, markers included, are appended to raw_parts.

        Raises:
            BackendUnavailableError: If the completion fails
        """
        marker_filter = self.parser.stream_filter()
        source = client.stream_chat(system_prompt, messages)
        async for token in relay_tokens(source, self.settings.pipeline.relay_buffer_size):
            raw_parts.append(token)
            visible = marker_filter.feed(token)
            if visible:
                yield StreamEvent.token(visible)
        rest = marker_filter.flush()
        if rest:
            yield StreamEvent.token(rest)

    async def stream_ask(self, request: AskRequest) -> AsyncGenerator[StreamEvent, None]:
        """
        Answer a question as a stream of events.

        Args:
            request: AskRequest with question and mode flags

        Yields:
            StreamEvent: meta, debug, token, tool_request, tool_result,
            error and a final done event
        """
        request_id = new_request_id()
        with request_scope(request_id):
            async for event in self._answer(request, request_id):
                yield event

    async def _answer(self, request: AskRequest, request_id: str) -> AsyncGenerator[StreamEvent, None]:
        runtime = self.runtime.get()
        client = self.llm.get()
        pipeline = self.settings.pipeline
        logger.info(
            f"{__name__}:stream_ask - START",
            extra={"deep": request.deep, "offline": request.offline},
        )

        # Step 1: conversation and persona
        conversations = ConversationService(self.db)
        conversation = await conversations.resolve(request.chat_id, request.question, request.persona_id)
        persona = (
            runtime.persona(request.persona_id)
            or runtime.persona(conversation.persona_id)
            or runtime.default_persona()
        )
        history = ConversationAdapter(conversation, self.db)
        await history.add_user_message(request.question)

        # Step 2: metadata
        total_chunks = await self.assembler.store.count_all()
        base_k = runtime.k
        k = self.settings.retrieval.deep_k(base_k, total_chunks) if request.deep else base_k
        mode = "offline" if request.offline else "deep" if request.deep else "normal"
        models = {
            "base_url": client.base_url,
            "chat_model": client.chat_model,
            "embed_model": client.embed_model,
        }
        yield StreamEvent(
            event=StreamEventType.META,
            data={
                "chat_id": str(conversation.id),
                "title": conversation.title,
                "request_id": request_id,
                "mode": mode,
                "k": k,
                "base_k": base_k,
                "chunk_size": runtime.chunk_size,
                "total_chunks": total_chunks,
                "persona": {"id": persona.id, "name": persona.name},
                "models": models,
            },
        )

        # Step 3: context assembly
        try:
            assembled = await self.assembler.prepare(request.question, k, client)
        except AskRagException as e:
            logger.error(f"{__name__}:stream_ask - Context preparation failed: {e}")
            text = f"Error while preparing context: {e.message}"
            yield StreamEvent.token(text)
            await history.add_ai_message(text)
            yield StreamEvent.done()
            return

        debug_payload = {
            "request_id": request_id,
            "mode": mode,
            "question": request.question,
            "used_k": assembled.trace.used_k,
            "base_k": base_k,
            "chunk_size": runtime.chunk_size,
            "total_chunks": total_chunks,
            "context_chars": len(assembled.text),
            "models": models,
            "persona_id": persona.id,
            "persona_name": persona.name,
            "persona_prompt_chars": len(persona.prompt),
            "retrieval": assembled.trace.model_dump(mode="json"),
        }

        # Step 4a: offline mode returns the context itself
        if request.offline:
            if request.debug:
                yield StreamEvent(event=StreamEventType.DEBUG, data=debug_payload)
            answer = OFFLINE_HEADER + assembled.text
            size = pipeline.offline_piece_chars
            for start in range(0, len(answer), size):
                yield StreamEvent.token(answer[start:start + size])
            await history.add_ai_message(answer)
            logger.info(f"{__name__}:stream_ask - END (offline)")
            yield StreamEvent.done()
            return

        # Step 4b: prompt
        tool_section = describe_tools(all_tools(runtime), self.parser)
        system_prompt, context = fit_system_prompt(
            assembled.text,
            tool_section,
            persona.prompt,
            request.deep,
            pipeline.system_prompt_max_chars,
            pipeline.truncated_context_chars,
        )
        if len(context) != len(assembled.text):
            logger.warning(
                f"{__name__}:stream_ask - System prompt too long, context truncated",
                extra={"context_chars": len(assembled.text)},
            )
        messages = await history.get_history(pipeline.history_turns, exclude_latest=True)
        messages.append(HumanMessage(content=request.question))

        if request.debug:
            debug_payload.update(
                context_chars=len(context),
                system_prompt_chars=len(system_prompt),
                history_messages=len(messages),
            )
            yield StreamEvent(event=StreamEventType.DEBUG, data=debug_payload)

        # Step 5: stream the answer
        raw_parts: list[str] = []
        stream_error: BackendUnavailableError | None = None
        try:
            async for event in self._stream(client, system_prompt, messages, raw_parts):
                yield event
        except BackendUnavailableError as e:
            stream_error = e
        raw_answer = "".join(raw_parts)
        answer = self.parser.strip(raw_answer)

        if stream_error is not None:
            logger.error(f"{__name__}:stream_ask - LLM stream failed: {stream_error}")
            if not raw_answer:
                text = f"LLM error: {stream_error.message}"
                yield StreamEvent.token(text)
                await history.add_ai_message(text)
                yield StreamEvent.done()
                return
            yield self._error_event(stream_error)

        # Step 6: tool interception
        tool_request = self.parser.find(raw_answer)
        if tool_request is not None:
            yield StreamEvent(event=StreamEventType.TOOL_REQUEST, data=tool_request.model_dump())

        if tool_request is not None and stream_error is None:
            outcome = await self.gate.execute(tool_request, runtime, client)
            if outcome.ok:
                try:
                    await self.knowledge.ingest_tool_result(
                        outcome, request_id, client, runtime.chunk_size
                    )
                except AskRagException as e:
                    logger.warning(f"{__name__}:stream_ask - Tool result not stored: {e}")
            yield StreamEvent(event=StreamEventType.TOOL_RESULT, data=outcome.to_event_data())

            # Step 7: continuation
            if outcome.ok:
                follow_up = [
                    *messages,
                    AIMessage(content=answer),
                    HumanMessage(content=continuation_note(outcome)),
                ]
                continuation_parts: list[str] = []
                try:
                    async for event in self._stream(client, system_prompt, follow_up, continuation_parts):
                        yield event
                except BackendUnavailableError as e:
                    logger.error(f"{__name__}:stream_ask - Continuation failed: {e}")
                    yield self._error_event(e)
                continuation = self.parser.strip("".join(continuation_parts))
                if continuation:
                    answer = f"{answer}\n\n{continuation}"

        # Step 8: persist and finish
        await history.add_ai_message(answer)
        logger.info(
            f"{__name__}:stream_ask - END",
            extra={"answer_chars": len(answer)},
        )
        yield StreamEvent.done()

    @staticmethod
    def _error_event(error: BackendUnavailableError) -> StreamEvent:
        return StreamEvent(
            event=StreamEventType.ERROR,
            data={"code": "BACKEND_ERROR", "message": error.message},
        )
