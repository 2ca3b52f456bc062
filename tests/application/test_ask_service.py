"""
Test suite for AskService streaming pipeline.

Tests cover:
- Event ordering and metadata
- Debug and offline modes
- Tool interception, ingestion and continuation
- Backend failures before and during streaming
- Persona resolution

Dependencies: pytest, pytest-asyncio, unittest.mock
System role: Verification of the per-request ask orchestration
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest
from langchain_core.messages import HumanMessage

from askrag.application.services.ask_service import AskService
from askrag.application.services.conversation_service import ConversationService
from askrag.application.services.knowledge_service import KnowledgeService
from askrag.boundary.settings_store import RuntimeSettingsStore
from askrag.configs.settings import Settings
from askrag.core.exceptions import BackendUnavailableError
from askrag.core.prompts import DEEP_RESEARCH_SUFFIX, OFFLINE_HEADER
from askrag.core.retrieval.context_assembler import ContextAssembler
from askrag.models.chat import AskRequest
from askrag.models.retrieval import AssembledContext, DebugTrace, DecisionTag
from askrag.models.runtime_settings import Persona, RuntimeSettings, default_persona
from askrag.models.streaming import StreamEventType
from askrag.models.tools import ToolOutcome, ToolStatus
from conftest import FakeLLMClient

CONTEXT = "Mars is the fourth planet from the Sun."
MARKER = '[TOOL_REQUEST]{"tool":"wikipedia","query":"Mars"}[/TOOL_REQUEST]'


@pytest.fixture
def runtime_store() -> RuntimeSettingsStore:
    """Provide in-memory runtime settings with an extra persona."""
    return RuntimeSettingsStore(
        RuntimeSettings(
            base_url="http://llm.test",
            chat_model="chat-model",
            embed_model="embed-model",
            k=3,
            personas=(default_persona(), Persona(id="persona-pirate", name="Pirate", prompt="Talk like a pirate.")),
        )
    )


@pytest.fixture
def mock_assembler(chunk_store):
    """Provide assembler returning a fixed context."""
    assembler = MagicMock()
    assembler.store = chunk_store
    assembler.prepare = AsyncMock(
        return_value=AssembledContext(
            text=CONTEXT,
            trace=DebugTrace(query="Mars", used_k=3, decision=DecisionTag.HIGH_CONFIDENCE),
        )
    )
    return assembler


@pytest.fixture
def mock_gate():
    """Provide tool gate returning a successful wikipedia result."""
    gate = MagicMock()
    gate.execute = AsyncMock(
        return_value=ToolOutcome(
            status=ToolStatus.SUCCESS,
            tool="wikipedia",
            query="Mars",
            source="wiki:Mars",
            output="Mars has two moons.",
        )
    )
    return gate


@pytest.fixture
def ask_service(test_async_db, mock_assembler, mock_gate, chunk_store, llm_holder, runtime_store) -> AskService:
    """Provide ask service over the test database and scripted client."""
    settings = Settings()
    knowledge = KnowledgeService(chunk_store, llm_holder, runtime_store, settings.retrieval)
    return AskService(
        db=test_async_db,
        assembler=mock_assembler,
        knowledge=knowledge,
        gate=mock_gate,
        llm=llm_holder,
        runtime=runtime_store,
        settings=settings,
    )


async def _collect(service: AskService, **kwargs) -> list:
    return [event async for event in service.stream_ask(AskRequest(**kwargs))]


def _types(events: list) -> list[StreamEventType]:
    return [event.event for event in events]


def _text(events: list) -> str:
    return "".join(e.data["token"] for e in events if e.event == StreamEventType.TOKEN)


async def _stored(db, events: list) -> list[tuple[str, str]]:
    chat_id = UUID(events[0].data["chat_id"])
    conversation = await ConversationService(db).get(chat_id)
    return [(m.role, m.content) for m in conversation.messages]


class TestStreamOrder:
    """Test suite for the basic event sequence."""

    @pytest.mark.asyncio
    async def test_answer_should_stream_between_meta_and_done(
        self, ask_service: AskService, fake_llm, test_async_db
    ) -> None:
        # Arrange
        fake_llm.replies = [["Mars ", "is red."]]

        # Act
        events = await _collect(ask_service, question="What color is Mars?")

        # Assert
        types = _types(events)
        assert types[0] == StreamEventType.META
        assert types[-1] == StreamEventType.DONE
        assert set(types[1:-1]) == {StreamEventType.TOKEN}
        assert _text(events) == "Mars is red."
        assert await _stored(test_async_db, events) == [
            ("user", "What color is Mars?"),
            ("assistant", "Mars is red."),
        ]

    @pytest.mark.asyncio
    async def test_prompt_should_carry_context_and_question(self, ask_service: AskService, fake_llm) -> None:
        # Arrange
        fake_llm.replies = [["ok"]]

        # Act
        await _collect(ask_service, question="What color is Mars?")

        # Assert
        system, messages = fake_llm.chat_calls[0]
        assert CONTEXT in system
        assert messages == [HumanMessage(content="What color is Mars?")]

    @pytest.mark.asyncio
    async def test_meta_should_describe_request(self, ask_service: AskService, fake_llm) -> None:
        # Arrange
        fake_llm.replies = [["ok"]]

        # Act
        events = await _collect(ask_service, question="What color is Mars?")

        # Assert
        meta = events[0].data
        assert meta["request_id"].startswith("req-")
        assert meta["mode"] == "normal"
        assert meta["k"] == 3
        assert meta["base_k"] == 3
        assert meta["persona"] == {"id": "persona-default", "name": "Standard"}
        assert meta["models"]["chat_model"] == "chat-model"

    @pytest.mark.asyncio
    async def test_deep_mode_should_expand_k(self, ask_service: AskService, fake_llm, mock_assembler) -> None:
        # Arrange
        fake_llm.replies = [["ok"]]

        # Act
        events = await _collect(ask_service, question="Explain Mars", deep=True)

        # Assert
        assert events[0].data["mode"] == "deep"
        assert events[0].data["k"] == 10
        mock_assembler.prepare.assert_awaited_once_with("Explain Mars", 10, fake_llm)
        assert DEEP_RESEARCH_SUFFIX in fake_llm.chat_calls[0][0]

    @pytest.mark.asyncio
    async def test_follow_up_should_send_prior_turns(self, ask_service: AskService, fake_llm) -> None:
        # Arrange
        fake_llm.replies = [["Red."], ["Two."]]
        first = await _collect(ask_service, question="What color is Mars?")

        # Act
        await _collect(ask_service, question="How many moons?", chat_id=first[0].data["chat_id"])

        # Assert
        contents = [m.content for m in fake_llm.chat_calls[1][1]]
        assert contents == ["What color is Mars?", "Red.", "How many moons?"]

    @pytest.mark.asyncio
    async def test_long_conversation_should_send_only_recent_messages(
        self, ask_service: AskService, fake_llm
    ) -> None:
        # Arrange
        fake_llm.replies = [[f"a{i}"] for i in range(7)]
        first = await _collect(ask_service, question="q0")
        chat_id = first[0].data["chat_id"]
        for i in range(1, 6):
            await _collect(ask_service, question=f"q{i}", chat_id=chat_id)

        # Act
        await _collect(ask_service, question="q6", chat_id=chat_id)

        # Assert
        contents = [m.content for m in fake_llm.chat_calls[6][1]]
        assert contents == [
            "q1", "a1", "q2", "a2", "q3", "a3", "q4", "a4", "q5", "a5", "q6",
        ]


class TestModes:
    """Test suite for debug and offline modes."""

    @pytest.mark.asyncio
    async def test_debug_should_follow_meta(self, ask_service: AskService, fake_llm) -> None:
        # Arrange
        fake_llm.replies = [["ok"]]

        # Act
        events = await _collect(ask_service, question="What color is Mars?", debug=True)

        # Assert
        assert _types(events)[:2] == [StreamEventType.META, StreamEventType.DEBUG]
        debug = events[1].data
        assert debug["retrieval"]["decision"] == "high_confidence"
        assert debug["context_chars"] == len(CONTEXT)
        assert debug["persona_id"] == "persona-default"

    @pytest.mark.asyncio
    async def test_offline_should_return_context_without_llm(
        self, ask_service: AskService, fake_llm, test_async_db
    ) -> None:
        # Act
        events = await _collect(ask_service, question="What color is Mars?", offline=True)

        # Assert
        assert events[0].data["mode"] == "offline"
        assert _text(events) == OFFLINE_HEADER + CONTEXT
        assert fake_llm.chat_calls == []
        stored = await _stored(test_async_db, events)
        assert stored[-1] == ("assistant", OFFLINE_HEADER + CONTEXT)

    @pytest.mark.asyncio
    async def test_preparation_error_should_become_answer_text(
        self, ask_service: AskService, mock_assembler, test_async_db
    ) -> None:
        # Arrange
        mock_assembler.prepare.side_effect = BackendUnavailableError("embed down", operation="embed")

        # Act
        events = await _collect(ask_service, question="What color is Mars?")

        # Assert
        assert _types(events) == [StreamEventType.META, StreamEventType.TOKEN, StreamEventType.DONE]
        assert _text(events) == "Error while preparing context: embed down"
        stored = await _stored(test_async_db, events)
        assert stored[-1] == ("assistant", "Error while preparing context: embed down")


class TestToolFlow:
    """Test suite for tool interception."""

    @pytest.mark.asyncio
    async def test_tool_marker_should_run_tool_and_continue(
        self, ask_service: AskService, fake_llm, mock_gate, chunk_store, test_async_db
    ) -> None:
        # Arrange
        fake_llm.replies = [["Let me check. ", MARKER], ["Mars has ", "two moons."]]

        # Act
        events = await _collect(ask_service, question="How many moons does Mars have?")

        # Assert
        types = _types(events)
        request_at = types.index(StreamEventType.TOOL_REQUEST)
        assert types[request_at + 1] == StreamEventType.TOOL_RESULT
        assert types[-1] == StreamEventType.DONE
        assert _text(events[:request_at]) == "Let me check. "
        assert _text(events[request_at:]) == "Mars has two moons."
        assert events[request_at].data == {"tool": "wikipedia", "query": "Mars"}
        assert events[request_at + 1].data["output"] == "Mars has two moons."
        mock_gate.execute.assert_awaited_once()

        continuation = fake_llm.chat_calls[1][1]
        assert continuation[-2].content == "Let me check."
        assert continuation[-1].content.startswith("Tool wikipedia returned:")

        stored = await _stored(test_async_db, events)
        assert stored[-1] == ("assistant", "Let me check.\n\nMars has two moons.")
        articles = [entry.article for entry in await chunk_store.list_articles()]
        assert articles == [f"wiki:Mars#{events[0].data['request_id']}"]

    @pytest.mark.asyncio
    async def test_failed_tool_should_not_continue(
        self, ask_service: AskService, fake_llm, mock_gate, chunk_store, test_async_db
    ) -> None:
        # Arrange
        fake_llm.replies = [["Let me check. ", MARKER]]
        mock_gate.execute.return_value = ToolOutcome(
            status=ToolStatus.FAILED, tool="wikipedia", query="Mars", error="page not found"
        )

        # Act
        events = await _collect(ask_service, question="How many moons does Mars have?")

        # Assert
        result = next(e for e in events if e.event == StreamEventType.TOOL_RESULT)
        assert result.data == {"tool": "wikipedia", "query": "Mars", "error": "page not found"}
        assert len(fake_llm.chat_calls) == 1
        assert await chunk_store.count_all() == 0
        stored = await _stored(test_async_db, events)
        assert stored[-1] == ("assistant", "Let me check.")

    @pytest.mark.asyncio
    async def test_answer_without_marker_should_not_touch_gate(
        self, ask_service: AskService, fake_llm, mock_gate
    ) -> None:
        # Arrange
        fake_llm.replies = [["Plain answer."]]

        # Act
        events = await _collect(ask_service, question="What color is Mars?")

        # Assert
        assert StreamEventType.TOOL_REQUEST not in _types(events)
        mock_gate.execute.assert_not_awaited()


class TestBackendFailures:
    """Test suite for completion errors."""

    @pytest.mark.asyncio
    async def test_error_before_first_token_should_become_answer_text(
        self, ask_service: AskService, fake_llm, test_async_db
    ) -> None:
        # Arrange
        fake_llm.replies = []

        # Act
        events = await _collect(ask_service, question="What color is Mars?")

        # Assert
        assert _types(events) == [StreamEventType.META, StreamEventType.TOKEN, StreamEventType.DONE]
        assert _text(events) == "LLM error: no scripted reply"
        stored = await _stored(test_async_db, events)
        assert stored[-1] == ("assistant", "LLM error: no scripted reply")

    @pytest.mark.asyncio
    async def test_error_mid_stream_should_emit_error_and_skip_tool(
        self, ask_service: AskService, fake_llm, mock_gate, test_async_db
    ) -> None:
        # Arrange
        fake_llm.replies = [["Partial ", MARKER, BackendUnavailableError("connection reset", operation="chat")]]

        # Act
        events = await _collect(ask_service, question="What color is Mars?")

        # Assert
        types = _types(events)
        assert StreamEventType.ERROR in types
        assert StreamEventType.TOOL_REQUEST in types
        assert StreamEventType.TOOL_RESULT not in types
        error = next(e for e in events if e.event == StreamEventType.ERROR)
        assert error.data == {"code": "BACKEND_ERROR", "message": "connection reset"}
        mock_gate.execute.assert_not_awaited()
        stored = await _stored(test_async_db, events)
        assert stored[-1] == ("assistant", "Partial")


class TestPersona:
    """Test suite for persona resolution."""

    @pytest.mark.asyncio
    async def test_request_persona_should_be_remembered(self, ask_service: AskService, fake_llm) -> None:
        # Arrange
        fake_llm.replies = [["Arr."], ["Arr again."]]

        # Act
        first = await _collect(ask_service, question="Hello", persona_id="persona-pirate")
        second = await _collect(ask_service, question="Again", chat_id=first[0].data["chat_id"])

        # Assert
        assert first[0].data["persona"]["name"] == "Pirate"
        assert second[0].data["persona"]["name"] == "Pirate"
        assert fake_llm.chat_calls[1][0].startswith("Talk like a pirate.")

    @pytest.mark.asyncio
    async def test_unknown_persona_should_fall_back_to_default(self, ask_service: AskService, fake_llm) -> None:
        # Arrange
        fake_llm.replies = [["ok"]]

        # Act
        events = await _collect(ask_service, question="Hello", persona_id="persona-missing")

        # Assert
        assert events[0].data["persona"]["id"] == "persona-default"


class TestClientSnapshot:
    """Test suite for settings swaps during a request."""

    @pytest.mark.asyncio
    async def test_swap_mid_request_should_not_mix_clients(
        self, test_async_db, mock_gate, chunk_store, llm_holder, runtime_store, fake_llm, monkeypatch
    ) -> None:
        # Arrange
        settings = Settings()
        service = AskService(
            db=test_async_db,
            assembler=ContextAssembler(chunk_store, llm_holder, settings.retrieval),
            knowledge=KnowledgeService(chunk_store, llm_holder, runtime_store, settings.retrieval),
            gate=mock_gate,
            llm=llm_holder,
            runtime=runtime_store,
            settings=settings,
        )
        replacement = FakeLLMClient(chat_model="other-model", embed_model="other-embed")
        count_all = chunk_store.count_all

        async def count_and_swap() -> int:
            llm_holder.swap(replacement)
            return await count_all()

        monkeypatch.setattr(chunk_store, "count_all", count_and_swap)
        fake_llm.replies = [['{"action":"ANSWER_DIRECT"}'], ["Let me check. ", MARKER], ["Two moons."]]

        # Act
        events = await _collect(service, question="hello there")

        # Assert
        assert replacement.embed_calls == []
        assert replacement.chat_calls == []
        assert fake_llm.embed_calls[0] == ["hello there"]
        assert fake_llm.embed_calls[1] == ["Mars has two moons."]
        assert len(fake_llm.chat_calls) == 3
        assert mock_gate.execute.await_args.args[2] is fake_llm
        assert events[0].data["models"]["chat_model"] == "chat-model"
        assert _text(events) == "Let me check. Two moons."
