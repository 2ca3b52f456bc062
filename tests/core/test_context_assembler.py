"""
Test suite for ContextAssembler.

Covers every branch of the retrieval decision procedure against a real
in-memory chunk store and a scripted LLM client.

System role: Verification of adaptive context assembly
"""

import pytest

from askrag.core.chunk_store import ChunkStore
from askrag.core.exceptions import BackendUnavailableError
from askrag.core.retrieval.context_assembler import ContextAssembler
from askrag.models.retrieval import DecisionTag
from conftest import FakeLLMClient

SEP = "\n---\n"
QUERY = [1.0, 0.0, 0.0]


def _vector(score: float) -> list[float]:
    """Unit vector whose cosine with QUERY equals score."""
    return [score, (1.0 - score * score) ** 0.5, 0.0]


@pytest.fixture
def assembler(chunk_store: ChunkStore, llm_holder, retrieval_settings) -> ContextAssembler:
    """Provide assembler over the test store."""
    return ContextAssembler(chunk_store, llm_holder, retrieval_settings)


class TestArticleShortcut:
    """Test suite for the exact-article branch."""

    @pytest.mark.asyncio
    async def test_refined_entity_should_return_whole_article(
        self, assembler: ContextAssembler, chunk_store: ChunkStore, fake_llm
    ) -> None:
        # Arrange
        await chunk_store.insert("Mars", ["Mars is a planet.", "It is red.", "It has two moons."])
        fake_llm.embed_calls.clear()

        # Act
        result = await assembler.prepare("wer ist Mars")

        # Assert
        assert result.trace.decision == DecisionTag.ARTICLE_SPECIFIC
        assert result.text == SEP.join(["Mars is a planet.", "It is red.", "It has two moons."])
        assert result.trace.query == "Mars"
        assert [chunk.chunk_idx for chunk in result.trace.chunks] == [0, 1, 2]
        assert not any(chunk.is_neighbor for chunk in result.trace.chunks)
        assert fake_llm.embed_calls == []
        assert fake_llm.chat_calls == []


class TestHighConfidence:
    """Test suite for the high-confidence branch."""

    @pytest.mark.asyncio
    async def test_should_take_confident_hit_with_neighbors_and_skip_arbitration(
        self, assembler: ContextAssembler, chunk_store: ChunkStore, fake_llm
    ) -> None:
        # Arrange
        fake_llm.vectors = {
            "intro": [0.0, 0.0, 1.0],
            "best": _vector(0.95),
            "outro": [0.0, 0.0, 1.0],
            "second": _vector(0.80),
            "question": QUERY,
        }
        await chunk_store.insert("Doc", ["intro", "best", "outro"])
        await chunk_store.insert("Other", ["second"])

        # Act
        result = await assembler.prepare("question", k=1)

        # Assert
        assert result.trace.decision == DecisionTag.HIGH_CONFIDENCE
        assert result.text == SEP.join(["intro", "best", "outro"])
        assert [chunk.is_neighbor for chunk in result.trace.chunks] == [True, False, True]
        assert result.trace.chunks[0].score == -1.0
        assert fake_llm.chat_calls == []

    @pytest.mark.asyncio
    async def test_adjacent_primaries_should_not_duplicate(
        self, assembler: ContextAssembler, chunk_store: ChunkStore, fake_llm
    ) -> None:
        # Arrange
        fake_llm.vectors = {
            "p0": [0.0, 0.0, 1.0],
            "p1": _vector(0.97),
            "p2": _vector(0.96),
            "p3": [0.0, 0.0, 1.0],
            "question": QUERY,
        }
        await chunk_store.insert("Doc", ["p0", "p1", "p2", "p3"])

        # Act
        result = await assembler.prepare("question", k=5)

        # Assert
        keys = [(chunk.article, chunk.chunk_idx) for chunk in result.trace.chunks]
        assert len(keys) == len(set(keys))
        assert result.text == SEP.join(["p0", "p1", "p2", "p3"])
        assert [chunk.is_neighbor for chunk in result.trace.chunks] == [True, False, False, True]


class TestArbitration:
    """Test suite for the LLM-arbitrated branches."""

    @pytest.mark.asyncio
    async def test_answer_direct_should_yield_empty_context(
        self, assembler: ContextAssembler, chunk_store: ChunkStore, fake_llm
    ) -> None:
        # Arrange
        fake_llm.vectors = {"weak": _vector(0.5), "question": QUERY}
        fake_llm.replies = [['{"action":"ANSWER_DIRECT"}']]
        await chunk_store.insert("Doc", ["weak"])

        # Act
        result = await assembler.prepare("question")

        # Assert
        assert result.text == ""
        assert result.trace.decision == DecisionTag.ANSWER_DIRECT
        assert result.trace.used_k == 0
        assert "Doc (score=0.5000)" in fake_llm.chat_calls[0][1][0].content

    @pytest.mark.asyncio
    async def test_retrieve_more_should_apply_threshold_and_k(
        self, assembler: ContextAssembler, chunk_store: ChunkStore, fake_llm
    ) -> None:
        # Arrange
        fake_llm.vectors = {"a": _vector(0.85), "b": _vector(0.75), "c": _vector(0.3), "question": QUERY}
        fake_llm.replies = [['{"action":"RETRIEVE_MORE","k":5,"threshold":0.7,"query":"better"}']]
        await chunk_store.insert("A", ["a"])
        await chunk_store.insert("B", ["b"])
        await chunk_store.insert("C", ["c"])

        # Act
        result = await assembler.prepare("question")

        # Assert
        assert result.trace.decision == DecisionTag.LM_REQUESTED_RETRIEVAL
        assert result.text == SEP.join(["a", "b"])
        assert result.trace.arbitration_query == "better"
        assert len(fake_llm.embed_calls) == 4

    @pytest.mark.asyncio
    async def test_retrieve_more_without_qualifying_hits_should_take_top_k(
        self, assembler: ContextAssembler, chunk_store: ChunkStore, fake_llm
    ) -> None:
        # Arrange
        fake_llm.vectors = {"a": _vector(0.4), "b": _vector(0.3), "question": QUERY}
        fake_llm.replies = [['{"action":"RETRIEVE_MORE","k":1,"threshold":0.9}']]
        await chunk_store.insert("A", ["a"])
        await chunk_store.insert("B", ["b"])

        # Act
        result = await assembler.prepare("question")

        # Assert
        assert result.text == "a"

    @pytest.mark.asyncio
    async def test_unparsable_reply_should_use_relaxed_fallback(
        self, assembler: ContextAssembler, chunk_store: ChunkStore, fake_llm
    ) -> None:
        # Arrange
        fake_llm.vectors = {"a": _vector(0.7), "b": _vector(0.5), "question": QUERY}
        fake_llm.replies = [["I think you should retrieve more."]]
        await chunk_store.insert("A", ["a"])
        await chunk_store.insert("B", ["b"])

        # Act
        result = await assembler.prepare("question")

        # Assert
        assert result.trace.decision == DecisionTag.RELAXED_FALLBACK
        assert result.text == "a"

    @pytest.mark.asyncio
    async def test_unreachable_backend_should_use_relaxed_fallback(
        self, assembler: ContextAssembler, chunk_store: ChunkStore, fake_llm
    ) -> None:
        # Arrange
        fake_llm.vectors = {"a": _vector(0.65), "question": QUERY}
        fake_llm.replies = [[BackendUnavailableError("down", operation="chat")]]
        await chunk_store.insert("A", ["a"])

        # Act
        result = await assembler.prepare("question")

        # Assert
        assert result.trace.decision == DecisionTag.RELAXED_FALLBACK
        assert result.text == "a"

    @pytest.mark.asyncio
    async def test_embedding_failure_should_propagate(
        self, assembler: ContextAssembler, fake_llm
    ) -> None:
        # Arrange
        fake_llm.embed_error = BackendUnavailableError("down", operation="embed")

        # Act & Assert
        with pytest.raises(BackendUnavailableError):
            await assembler.prepare("anything at all")


class TestSimilarityQuery:
    """Test suite for the similarity query inputs."""

    @pytest.mark.asyncio
    async def test_candidate_limit_should_follow_k(
        self, assembler: ContextAssembler, chunk_store: ChunkStore, monkeypatch
    ) -> None:
        # Arrange
        limits: list[int] = []
        similarity_search = chunk_store.similarity_search

        async def recording_search(vector, limit):
            limits.append(limit)
            return await similarity_search(vector, limit)

        monkeypatch.setattr(chunk_store, "similarity_search", recording_search)

        # Act
        await assembler.prepare("question", k=40)

        # Assert
        assert limits == [120]

    @pytest.mark.asyncio
    async def test_given_client_should_be_used_instead_of_active_one(
        self, assembler: ContextAssembler, chunk_store: ChunkStore, fake_llm
    ) -> None:
        # Arrange
        request_client = FakeLLMClient(vectors={"a": _vector(0.95), "question": QUERY})
        await chunk_store.insert("A", ["a"], request_client)
        fake_llm.embed_calls.clear()

        # Act
        result = await assembler.prepare("question", client=request_client)

        # Assert
        assert result.trace.decision == DecisionTag.HIGH_CONFIDENCE
        assert result.text == "a"
        assert request_client.embed_calls[-1] == ["question"]
        assert fake_llm.embed_calls == []
